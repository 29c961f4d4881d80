"""World tick service for Sovereign.

This service advances one player's world state per call:
- Resource accrual scaled by elapsed wall-clock time
- Completion of building and defense upgrades
- Completion of the active research
- Completion of unit training queues
- Army arrivals (see :mod:`sovereign.services.arrival_service`)

Each player tick runs inside one transaction on the given session: it
either commits as a whole or rolls back and re-raises.  Ticks arriving
within the debounce window, or for players without a resource record, are
silent no-ops.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from sovereign.domain.economy import ProductionInputs, apply_accrual, compute_accrual, tick_multiplier
from sovereign.domain.enums import ArmyStatus, BuildingType, ResearchTrack
from sovereign.domain.rules_config import DEFAULT_RULES, RulesConfig
from sovereign.domain.units import UnitGroup, upkeep_per_tick
from sovereign.models import (
    ActiveResearch,
    Army,
    Building,
    Player,
    PlayerResources,
    ResearchState,
    Settlement,
)
from sovereign.schemas.events import ResearchCompletePayload, TrainingCompletePayload
from sovereign.services.arrival_service import process_arrivals
from sovereign.services.tick_context import TickContext, add_to_garrison
from sovereign.utils.rng import RandomSource, default_rng

logger = logging.getLogger(__name__)

_TRACKED_ARMY_STATUSES = (
    ArmyStatus.IDLE.value,
    ArmyStatus.MARCHING.value,
    ArmyStatus.RETURNING.value,
)


def process_player_tick(
    player_id: int,
    session: Session,
    *,
    now: datetime | None = None,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[str, Any] | None:
    """Advance one player's world state to ``now``.

    Args:
        player_id: Player to tick
        session: Database session; committed on success, rolled back on error
        now: Tick time (sampled once, defaults to the current UTC time)
        rng: Randomness for scout outcomes (defaults to OS entropy)
        rules: Rule set

    Returns:
        Summary of what the tick did, or ``None`` when the tick was a no-op
    """
    now = _as_utc(now) if now is not None else datetime.now(UTC)

    try:
        summary = _run_tick(player_id, session, now, rng or default_rng(), rules)
        if summary is None:
            return None
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.debug("Tick for player %s: %s", player_id, summary)
    return summary


def process_world_tick(
    session_factory: Callable[[], Session] | None = None,
    *,
    now: datetime | None = None,
    rng: RandomSource | None = None,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[str, Any]:
    """Tick every player sequentially, each in its own session.

    A failing player tick is logged and skipped; it never aborts the batch.

    Returns:
        Counts of players ticked, skipped (no-op) and failed, plus the failed ids
    """
    if session_factory is None:
        from sovereign.database import get_session_factory

        session_factory = get_session_factory()

    with session_factory() as session:
        player_ids = list(session.execute(select(Player.id).order_by(Player.id)).scalars())

    ticked = 0
    skipped = 0
    failed: list[int] = []
    for player_id in player_ids:
        try:
            with session_factory() as session:
                summary = process_player_tick(player_id, session, now=now, rng=rng, rules=rules)
        except Exception:
            logger.exception("World tick failed for player %s", player_id)
            failed.append(player_id)
            continue
        if summary is None:
            skipped += 1
        else:
            ticked += 1

    if failed:
        logger.warning("World tick finished with %d failed player(s): %s", len(failed), failed)
    return {
        "players": len(player_ids),
        "ticked": ticked,
        "skipped": skipped,
        "failed": failed,
    }


# --- Tick steps -----------------------------------------------------------------


def _run_tick(
    player_id: int,
    session: Session,
    now: datetime,
    rng: RandomSource,
    rules: RulesConfig,
) -> dict[str, Any] | None:
    resources = session.execute(
        select(PlayerResources).where(PlayerResources.player_id == player_id)
    ).scalar_one_or_none()
    if resources is None:
        return None

    elapsed_ms = (now - resources.last_tick_at).total_seconds() * 1000
    if elapsed_ms < rules.economy.debounce_ms:
        return None

    settlements = list(
        session.execute(
            select(Settlement)
            .where(Settlement.player_id == player_id)
            .order_by(Settlement.id)
            .options(
                selectinload(Settlement.buildings),
                selectinload(Settlement.defenses),
                selectinload(Settlement.units),
                selectinload(Settlement.unit_queues),
            )
        ).scalars()
    )
    armies = list(
        session.execute(
            select(Army)
            .where(Army.player_id == player_id, Army.status.in_(_TRACKED_ARMY_STATUSES))
            .order_by(Army.id)
            .options(selectinload(Army.units))
        ).scalars()
    )
    research_states = {
        state.track: state
        for state in session.execute(
            select(ResearchState).where(ResearchState.player_id == player_id)
        ).scalars()
    }
    active_research = session.execute(
        select(ActiveResearch).where(ActiveResearch.player_id == player_id)
    ).scalar_one_or_none()

    ctx = TickContext(
        session=session,
        player_id=player_id,
        now=now,
        rng=rng,
        rules=rules,
        resources=resources,
        settlements=settlements,
    )
    multiplier = tick_multiplier(elapsed_ms, rules.economy)

    _accrue_resources(ctx, armies, research_states, multiplier)
    _complete_construction(ctx)
    _complete_research(ctx, active_research, research_states)
    _complete_training(ctx)
    process_arrivals(ctx, armies)

    resources.last_tick_at = now

    return {
        "player_id": player_id,
        "elapsed_ms": elapsed_ms,
        "tick_multiplier": multiplier,
        "buildings_completed": ctx.counters["buildings_completed"],
        "research_completed": ctx.counters["research_completed"],
        "units_trained": ctx.counters["units_trained"],
        "armies_processed": ctx.counters["armies_processed"],
        "battles_resolved": ctx.counters["battles_resolved"],
        "events_generated": ctx.counters["events_generated"],
    }


def _accrue_resources(
    ctx: TickContext,
    armies: list[Army],
    research_states: dict[str, ResearchState],
    multiplier: float,
) -> None:
    mine = _first_building(ctx.settlements, BuildingType.MINE)
    farm = _first_building(ctx.settlements, BuildingType.FARM)
    sawmill = _first_building(ctx.settlements, BuildingType.SAWMILL)
    has_observatory = any(
        b.type == BuildingType.OBSERVATORY and b.is_built
        for s in ctx.settlements
        for b in s.buildings
    )

    groups: list[UnitGroup] = [
        UnitGroup(u.unit_type, u.quantity) for s in ctx.settlements for u in s.units
    ]
    for army in armies:
        groups.extend(army.unit_groups())

    inputs = ProductionInputs(
        tick_multiplier=multiplier,
        mine_level=mine.level if mine else 0,
        mine_upgrading=mine.is_upgrading(ctx.now) if mine else False,
        farm_level=farm.level if farm else 0,
        farm_upgrading=farm.is_upgrading(ctx.now) if farm else False,
        sawmill_level=sawmill.level if sawmill else 0,
        sawmill_built=bool(sawmill and sawmill.is_built),
        sawmill_upgrading=sawmill.is_upgrading(ctx.now) if sawmill else False,
        crop_mastery_level=_research_level(research_states, ResearchTrack.CROP_MASTERY),
        forestry_level=_research_level(research_states, ResearchTrack.FORESTRY),
        mana_discovered=has_observatory and ctx.resources.mana_cap > 0,
        upkeep_per_tick=upkeep_per_tick(groups),
    )
    delta = compute_accrual(inputs, ctx.rules.economy)
    ctx.resources.store(apply_accrual(ctx.resources.stock(), ctx.resources.caps(), delta))


def _complete_construction(ctx: TickContext) -> None:
    for settlement in ctx.settlements:
        for building in settlement.buildings:
            if building.upgrade_finish_at is not None and building.upgrade_finish_at <= ctx.now:
                building.level += 1
                building.is_built = True
                building.upgrade_started_at = None
                building.upgrade_finish_at = None
                ctx.counters["buildings_completed"] += 1
        for defense in settlement.defenses:
            if defense.upgrade_finish_at is not None and defense.upgrade_finish_at <= ctx.now:
                defense.level += 1
                defense.upgrade_started_at = None
                defense.upgrade_finish_at = None
                ctx.counters["buildings_completed"] += 1


def _complete_research(
    ctx: TickContext,
    active: ActiveResearch | None,
    research_states: dict[str, ResearchState],
) -> None:
    if active is None or active.finish_at > ctx.now:
        return

    state = research_states.get(active.track)
    if state is not None:
        state.level += 1
    else:
        state = ResearchState(player_id=ctx.player_id, track=active.track, level=1)
        ctx.session.add(state)
        research_states[active.track] = state

    ctx.session.delete(active)
    ctx.counters["research_completed"] += 1
    ctx.emit(
        ResearchCompletePayload(track=active.track, new_level=state.level),
        f"Research in {active.track} has completed.",
    )


def _complete_training(ctx: TickContext) -> None:
    for settlement in ctx.settlements:
        for queue in list(settlement.unit_queues):
            if queue.finish_at > ctx.now:
                continue
            add_to_garrison(settlement, queue.unit_type, queue.quantity)
            settlement.unit_queues.remove(queue)
            ctx.session.delete(queue)
            ctx.counters["units_trained"] += queue.quantity
            ctx.emit(
                TrainingCompletePayload(
                    settlement_id=settlement.id,
                    unit_type=queue.unit_type,
                    quantity=queue.quantity,
                ),
                f"{queue.quantity}x {queue.unit_type} training complete at {settlement.name}.",
            )


# --- Helpers --------------------------------------------------------------------


def _first_building(settlements: list[Settlement], kind: BuildingType) -> Building | None:
    for settlement in settlements:
        building = settlement.building(kind)
        if building is not None:
            return building
    return None


def _research_level(research_states: dict[str, ResearchState], track: ResearchTrack) -> int:
    state = research_states.get(track.value)
    return state.level if state is not None else 0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
