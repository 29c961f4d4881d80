"""Command-line entrypoint for the Sovereign world tick."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from sovereign.config import get_settings, rules_from_settings
from sovereign.database import check_database_health, get_session_factory, init_db
from sovereign.runtime import WorldTickScheduler
from sovereign.services.tick_service import process_world_tick

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Sovereign world tick")
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single world tick, print its summary and exit",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create all tables before running",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between scheduled ticks (overrides SOVEREIGN_WORLD_TICK_INTERVAL_SECONDS)",
    )
    parser.add_argument("--log-level", default=None, help="Root log level (default from settings)")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=(args.log_level or settings.log_level).upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.init_db:
        init_db()
        logger.info("Database tables created")

    if not check_database_health():
        logger.error("Database at %s is not reachable", settings.DATABASE_URL)
        return 1

    rules = rules_from_settings(settings)
    session_factory = get_session_factory()

    if args.once:
        summary = process_world_tick(session_factory, rules=rules)
        print(json.dumps(summary))
        return 1 if summary["failed"] else 0

    scheduler = WorldTickScheduler(
        session_factory,
        rules=rules,
        interval_seconds=args.interval or settings.world_tick_interval_seconds,
    )
    try:
        asyncio.run(_serve(scheduler))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


async def _serve(scheduler: WorldTickScheduler) -> None:
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.stop()


if __name__ == "__main__":
    raise SystemExit(main())
