"""Background scheduler that runs the world tick on a fixed cadence."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.orm import Session

from sovereign.domain.rules_config import DEFAULT_RULES, RulesConfig
from sovereign.services.tick_service import process_world_tick

logger = logging.getLogger(__name__)


class WorldTickScheduler:
    """Calls :func:`process_world_tick` in a worker thread every interval.

    Ticks never overlap: a manual :meth:`run_once` waits for a running
    scheduled cycle and vice versa.
    """

    MIN_INTERVAL_SECONDS = 0.1

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        interval_seconds: float,
    ) -> None:
        self._session_factory = session_factory
        self._rules = rules
        self._interval = max(interval_seconds, self.MIN_INTERVAL_SECONDS)
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._tick_lock = asyncio.Lock()
        self.last_summary: dict[str, Any] | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run_loop(), name="sovereign-world-tick")
        logger.info("World tick scheduler started (every %.1fs)", self._interval)

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        await task
        self._task = None
        logger.info("World tick scheduler stopped")

    async def run_once(self) -> dict[str, Any]:
        """Run one world tick now and return its summary."""
        async with self._tick_lock:
            summary = await asyncio.to_thread(
                process_world_tick, self._session_factory, rules=self._rules
            )
        self.last_summary = summary
        return summary

    async def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                    break
                except TimeoutError:
                    pass
                try:
                    await self.run_once()
                except Exception:
                    # A broken batch (e.g. the database is down) must not kill the loop.
                    logger.exception("World tick cycle failed")
        finally:
            self._task = None
