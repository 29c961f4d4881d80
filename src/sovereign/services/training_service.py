"""Unit training service.

Training batches queue per settlement: a new batch starts when the last
queued batch finishes (or now, if the queue is empty) and takes the per-unit
time times the quantity, shortened by the barracks level.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from sovereign.domain.costs import (
    BARRACKS_TRAINING_MULTIPLIERS,
    UNIT_TRAINING_COSTS,
    UnitRequirements,
)
from sovereign.domain.enums import WAR_TRACKS, BuildingType, UnitType
from sovereign.models import ResearchState, Settlement, UnitQueue
from sovereign.services.command_support import charge, owned_settlement, player_resources

logger = logging.getLogger(__name__)


def queue_training(
    session: Session,
    player_id: int,
    settlement_id: int,
    unit_type: UnitType | str,
    quantity: int,
    now: datetime,
) -> UnitQueue:
    """Pay for ``quantity`` units and append them to the settlement's queue.

    Raises:
        ValueError: If the unit type or quantity is invalid, the settlement
            is not the player's or has no built barracks, a prerequisite is
            missing, or resources are short
    """
    try:
        parsed = UnitType.parse(unit_type)
        if parsed is None:
            raise ValueError(f"Invalid unit type: {unit_type}")
        unit_type = parsed
        if not isinstance(quantity, int) or quantity < 1:
            raise ValueError("quantity must be a positive integer")

        settlement = owned_settlement(session, player_id, settlement_id)
        barracks = settlement.building(BuildingType.BARRACKS)
        if barracks is None or not barracks.is_built:
            raise ValueError("Barracks must be built to train units")

        training = UNIT_TRAINING_COSTS[unit_type]
        _check_requirements(session, player_id, settlement, training.requires)

        cost = training.cost.scaled(quantity)
        charge(player_resources(session, player_id), cost)

        multiplier = BARRACKS_TRAINING_MULTIPLIERS.get(barracks.level, 1.0)
        started_at = max([now, *(q.finish_at for q in settlement.unit_queues)])
        entry = UnitQueue(
            unit_type=unit_type.value,
            quantity=quantity,
            started_at=started_at,
            finish_at=started_at + timedelta(seconds=cost.time_seconds * multiplier),
        )
        settlement.unit_queues.append(entry)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Settlement %s queued %dx %s, finishing at %s",
        settlement_id,
        quantity,
        unit_type,
        entry.finish_at.isoformat(),
    )
    return entry


def _check_requirements(
    session: Session, player_id: int, settlement: Settlement, requires: UnitRequirements
) -> None:
    levels = dict(
        session.execute(
            select(ResearchState.track, ResearchState.level).where(
                ResearchState.player_id == player_id
            )
        ).all()
    )

    if requires.total_war:
        total_war = sum(levels.get(track.value, 0) for track in WAR_TRACKS)
        if total_war < requires.total_war:
            raise ValueError(
                f"Requires total War research level {requires.total_war} (current: {total_war})"
            )

    if requires.mine_level:
        mine = settlement.building(BuildingType.MINE)
        mine_level = mine.level if mine is not None and mine.is_built else 0
        if mine_level < requires.mine_level:
            raise ValueError(
                f"Requires Mine level {requires.mine_level} (current: {mine_level})"
            )

    for track, needed in requires.research.items():
        current = levels.get(track.value, 0)
        if current < needed:
            raise ValueError(f"Requires {track} research level {needed} (current: {current})")
