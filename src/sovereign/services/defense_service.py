"""Defense construction service.

Building a defense and upgrading it are the same operation: pay for the
next level and stamp the upgrade window.  The world tick raises the level
when the window closes.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from sovereign.domain.costs import DEFENSE_UPGRADE_COSTS
from sovereign.domain.enums import DefenseType, ResearchTrack
from sovereign.domain.rules_config import DEFAULT_RULES, RulesConfig
from sovereign.models import Defense, ResearchState
from sovereign.services.command_support import charge, owned_settlement, player_resources

logger = logging.getLogger(__name__)

# Research needed before a defense type can be built at all.
DEFENSE_REQUIREMENTS: dict[DefenseType, dict[ResearchTrack, int]] = {
    DefenseType.BALLISTA: {ResearchTrack.BALLISTICS: 4, ResearchTrack.DEFENSE_TRACK: 3},
}


def start_defense_upgrade(
    session: Session,
    player_id: int,
    settlement_id: int,
    defense_type: DefenseType | str,
    now: datetime,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Defense:
    """Pay for and start the next level of ``defense_type``.

    The defense row is created at level 0 when the settlement has none.

    Raises:
        ValueError: If the type is unknown, the settlement is not the
            player's, an upgrade is already running, the defense is at its
            maximum level, research is missing, or resources are short
    """
    try:
        try:
            defense_type = DefenseType(defense_type)
        except ValueError:
            raise ValueError(f"Invalid defense type: {defense_type}") from None

        settlement = owned_settlement(session, player_id, settlement_id)
        defense = settlement.defense(defense_type)
        if defense is not None and defense.is_upgrading(now):
            raise ValueError(f"{defense_type} is already being upgraded")

        current_level = defense.level if defense is not None else 0
        next_level = current_level + 1
        if next_level > rules.economy.max_defense_level:
            raise ValueError(f"{defense_type} is already at maximum level")

        for track, needed in DEFENSE_REQUIREMENTS.get(defense_type, {}).items():
            level = session.execute(
                select(ResearchState.level).where(
                    ResearchState.player_id == player_id, ResearchState.track == track.value
                )
            ).scalar_one_or_none()
            if (level or 0) < needed:
                raise ValueError(f"{defense_type} requires {track} research level {needed}")

        cost = DEFENSE_UPGRADE_COSTS[defense_type][next_level]
        charge(player_resources(session, player_id), cost)

        if defense is None:
            defense = Defense(type=defense_type.value, level=0)
            settlement.defenses.append(defense)
        defense.upgrade_started_at = now
        defense.upgrade_finish_at = now + timedelta(seconds=cost.time_seconds)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Settlement %s started %s level %d", settlement_id, defense_type, next_level
    )
    return defense
