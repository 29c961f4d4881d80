"""Army Management Service for Sovereign.

This module provides the player commands that put armies on the map:
raising an army from a garrison, marching it, recalling it, and dispatching
scout missions.  Arrivals are resolved later by the world tick.
"""

import logging
import math
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from sovereign.domain.enums import ArmyStatus, BuildingType, UnitType
from sovereign.domain.rules_config import DEFAULT_RULES, RulesConfig
from sovereign.domain.units import SCOUT_CAP_BY_CITADEL, slowest_speed, stats_for
from sovereign.models import Army, ArmyUnit, MapTile
from sovereign.services.command_support import get_tile, owned_settlement

logger = logging.getLogger(__name__)

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def create_army(
    session: Session,
    player_id: int,
    settlement_id: int,
    selections: Mapping[UnitType | str, int],
    name: str | None = None,
) -> Army:
    """Detach units from a settlement garrison into a new IDLE army.

    Args:
        session: Database session
        player_id: Commanding player
        settlement_id: Settlement whose garrison supplies the units
        selections: Unit type to quantity
        name: Army name (generated when omitted)

    Returns:
        The new army, stationed on the settlement's tile

    Raises:
        ValueError: If the settlement is not the player's, a quantity is not
            positive, or the garrison is short of a unit type
    """
    try:
        if not selections:
            raise ValueError("At least one unit selection is required")

        settlement = owned_settlement(session, player_id, settlement_id)

        for unit_type, quantity in selections.items():
            if quantity < 1:
                raise ValueError("Each unit selection must have quantity >= 1")
            garrison = settlement.garrison(unit_type)
            available = garrison.quantity if garrison is not None else 0
            if quantity > available:
                raise ValueError(
                    f"Not enough {unit_type}. Available: {available}, requested: {quantity}"
                )

        army = Army(
            player_id=player_id,
            name=name or f"Army {_stamp(datetime.now(UTC))}",
            status=ArmyStatus.IDLE.value,
            from_tile_id=settlement.tile_id,
            provisions=0.0,
        )
        for unit_type, quantity in selections.items():
            settlement.garrison(unit_type).quantity -= quantity
            army.units.append(ArmyUnit(unit_type=str(unit_type), quantity=quantity))

        session.add(army)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Player %s raised army %s from settlement %s", player_id, army.id, settlement_id)
    return army


def march_army(
    session: Session,
    player_id: int,
    army_id: int,
    to_tile_id: int,
    now: datetime,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Army:
    """Send an IDLE army towards ``to_tile_id``.

    Travel time is the Euclidean tile distance divided by the speed of the
    slowest unit (tiles per minute).

    Raises:
        ValueError: If the army is not the player's, is not IDLE, or the tile
            does not exist
    """
    try:
        army = _owned_army(session, player_id, army_id)
        if army.status != ArmyStatus.IDLE:
            raise ValueError(f"Army is currently {army.status} and cannot march")

        to_tile = get_tile(session, to_tile_id)
        speed = slowest_speed(army.unit_groups()) or rules.march.default_speed_tiles_per_minute
        travel_minutes = _distance(army.from_tile, to_tile) / speed

        army.status = ArmyStatus.MARCHING.value
        army.to_tile_id = to_tile.id
        army.departed_at = now
        army.arrives_at = now + timedelta(minutes=travel_minutes)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(
        "Army %s marching to tile %s, arriving in %.1f minutes", army.id, to_tile_id, travel_minutes
    )
    return army


def recall_army(
    session: Session,
    player_id: int,
    army_id: int,
    now: datetime,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Army:
    """Turn a MARCHING army around.

    The way back takes as long as the army has already travelled, and a
    share of its carried provisions is burned.

    Raises:
        ValueError: If the army is not the player's or is not MARCHING
    """
    try:
        army = _owned_army(session, player_id, army_id)
        if army.status != ArmyStatus.MARCHING:
            raise ValueError("Army is not marching and cannot be recalled")

        total = army.arrives_at - army.departed_at
        elapsed = now - army.departed_at
        progress = min(elapsed / total, 1.0) if total > timedelta(0) else 1.0
        progress = max(progress, 0.0)

        burned = army.provisions * rules.march.recall_provision_burn
        army.status = ArmyStatus.RETURNING.value
        army.to_tile_id = army.from_tile_id
        army.departed_at = now
        army.arrives_at = now + total * progress
        army.provisions = max(0.0, army.provisions - burned)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Army %s recalled at %.0f%% progress", army.id, progress * 100)
    return army


def dispatch_scout(
    session: Session,
    player_id: int,
    settlement_id: int,
    to_tile_id: int,
    now: datetime,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Army:
    """Send one garrison scout on a round trip to ``to_tile_id``.

    Active missions are capped by the settlement's citadel level; an unbuilt
    citadel counts as level 1.

    Raises:
        ValueError: If no scout is available, the cap is reached, or the
            settlement or tile is unknown
    """
    prefix = rules.scout.mission_name_prefix
    try:
        settlement = owned_settlement(session, player_id, settlement_id)
        garrison = settlement.garrison(UnitType.SCOUT)
        if garrison is None or garrison.quantity < 1:
            raise ValueError("No scouts available in this settlement")

        citadel = settlement.building(BuildingType.CITADEL)
        citadel_level = citadel.level if citadel is not None and citadel.is_built else 1
        cap = SCOUT_CAP_BY_CITADEL.get(citadel_level, 1)
        active = session.execute(
            select(func.count(Army.id)).where(
                Army.player_id == player_id,
                Army.name.startswith(prefix),
                Army.status.in_((ArmyStatus.MARCHING.value, ArmyStatus.RETURNING.value)),
            )
        ).scalar_one()
        if active >= cap:
            raise ValueError(f"Scout cap reached ({cap}). Wait for active scouts to return.")

        to_tile = get_tile(session, to_tile_id)
        round_trip_minutes = _distance(settlement.tile, to_tile) / stats_for(UnitType.SCOUT).speed * 2

        garrison.quantity -= 1
        army = Army(
            player_id=player_id,
            name=f"{prefix} #{_stamp(now)}",
            status=ArmyStatus.MARCHING.value,
            from_tile_id=settlement.tile_id,
            to_tile_id=to_tile.id,
            departed_at=now,
            arrives_at=now + timedelta(minutes=round_trip_minutes),
            provisions=0.0,
        )
        army.units.append(ArmyUnit(unit_type=UnitType.SCOUT.value, quantity=1))
        session.add(army)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Player %s dispatched %s to tile %s", player_id, army.name, to_tile_id)
    return army


# --- Helpers --------------------------------------------------------------------


def _owned_army(session: Session, player_id: int, army_id: int) -> Army:
    army = session.get(Army, army_id)
    if army is None or army.player_id != player_id:
        raise ValueError("Army not found or not owned by you")
    return army


def _distance(origin: MapTile, destination: MapTile) -> float:
    return math.hypot(destination.x - origin.x, destination.y - origin.y)


def _stamp(moment: datetime) -> str:
    """Base-36 millisecond timestamp used to tell generated names apart."""
    value = int(moment.timestamp() * 1000)
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"
