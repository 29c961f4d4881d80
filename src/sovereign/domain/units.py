"""Static unit and structure tables.

Pure lookups only.  Unit types arriving as raw strings (for example from an
older save) resolve to :data:`UNKNOWN_STATS`, which contributes nothing to
combat or carrying.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from sovereign.domain.enums import UnitType


@dataclass(frozen=True, slots=True)
class UnitStats:
    """Per-unit combat and logistics stats."""

    attack: int
    defense: int
    speed: float  # tiles per minute
    carry_capacity: int
    provisions_per_tile: int
    upkeep_per_tick: float


@dataclass(frozen=True, slots=True)
class UnitGroup:
    """A quantity of one unit type held by an army or garrison."""

    unit_type: UnitType | str
    quantity: int


UNKNOWN_STATS = UnitStats(
    attack=0, defense=0, speed=0.0, carry_capacity=0, provisions_per_tile=0, upkeep_per_tick=0.0
)

UNIT_STATS: Mapping[UnitType, UnitStats] = MappingProxyType(
    {
        UnitType.INFANTRY: UnitStats(10, 8, 0.5, 0, 2, 0.5),
        UnitType.ARCHER: UnitStats(12, 5, 0.5, 0, 2, 0.5),
        UnitType.HEAVY_INFANTRY: UnitStats(8, 15, 0.3, 0, 3, 0.8),
        UnitType.WARDEN: UnitStats(3, 25, 0.1, 0, 1, 0.3),
        UnitType.CARAVAN: UnitStats(0, 2, 0.4, 200, 4, 1.0),
        UnitType.SCOUT: UnitStats(2, 2, 2.0, 0, 1, 0.3),
        UnitType.CAVALRY: UnitStats(15, 10, 1.0, 0, 5, 1.5),
    }
)

RANGED_TYPES: frozenset[UnitType] = frozenset({UnitType.ARCHER})
MELEE_TYPES: frozenset[UnitType] = frozenset(
    {
        UnitType.INFANTRY,
        UnitType.HEAVY_INFANTRY,
        UnitType.CAVALRY,
        UnitType.WARDEN,
        UnitType.SCOUT,
    }
)
CARAVAN_TYPES: frozenset[UnitType] = frozenset({UnitType.CARAVAN})

# Ranged volleys (archers and guard towers alike) use the archer row.
RANGED_SOURCE = UnitType.ARCHER

# Attacker -> target damage multiplier; pairs not listed are 1.0.
_TRIANGLE: Mapping[tuple[UnitType, UnitType], float] = MappingProxyType(
    {
        (UnitType.CAVALRY, UnitType.ARCHER): 1.25,
        (UnitType.CAVALRY, UnitType.INFANTRY): 0.8,
        (UnitType.CAVALRY, UnitType.HEAVY_INFANTRY): 0.75,
        (UnitType.ARCHER, UnitType.INFANTRY): 1.25,
        (UnitType.ARCHER, UnitType.CAVALRY): 0.8,
        (UnitType.INFANTRY, UnitType.CAVALRY): 1.25,
        (UnitType.INFANTRY, UnitType.ARCHER): 0.8,
        # 0.85 damage taken, expressed as the attacker's inverse multiplier
        (UnitType.HEAVY_INFANTRY, UnitType.CAVALRY): 1.18,
    }
)

SCOUT_CAP_BY_CITADEL: Mapping[int, int] = MappingProxyType({1: 1, 2: 2, 3: 3, 4: 4})


def _coerce(unit_type: UnitType | str) -> UnitType | None:
    if isinstance(unit_type, UnitType):
        return unit_type
    return UnitType.parse(unit_type)


def stats_for(unit_type: UnitType | str) -> UnitStats:
    """Return the stats for ``unit_type`` (all zeros for unknown types)."""

    known = _coerce(unit_type)
    if known is None:
        return UNKNOWN_STATS
    return UNIT_STATS[known]


def triangle(attacker: UnitType | str, target: UnitType | str) -> float:
    """Total matchup function: every (attacker, target) pair has a multiplier."""

    source = _coerce(attacker)
    victim = _coerce(target)
    if source is None or victim is None:
        return 1.0
    return _TRIANGLE.get((source, victim), 1.0)


def is_ranged(unit_type: UnitType | str) -> bool:
    return _coerce(unit_type) in RANGED_TYPES


def is_melee(unit_type: UnitType | str) -> bool:
    return _coerce(unit_type) in MELEE_TYPES


def is_caravan(unit_type: UnitType | str) -> bool:
    return _coerce(unit_type) in CARAVAN_TYPES


def raw_attack(groups: Iterable[UnitGroup]) -> float:
    """Sum of attack x quantity."""

    return float(sum(stats_for(g.unit_type).attack * g.quantity for g in groups))


def carry_capacity(groups: Iterable[UnitGroup]) -> int:
    """Total carry capacity of the carrying units in ``groups``."""

    total = 0
    for group in groups:
        stats = stats_for(group.unit_type)
        if stats.carry_capacity > 0 and group.quantity > 0:
            total += stats.carry_capacity * group.quantity
    return total


def has_caravans(groups: Iterable[UnitGroup]) -> bool:
    return any(is_caravan(g.unit_type) and g.quantity > 0 for g in groups)


def slowest_speed(groups: Iterable[UnitGroup]) -> float | None:
    """Speed of the slowest known unit with a positive speed, if any."""

    speeds = [
        stats_for(g.unit_type).speed
        for g in groups
        if g.quantity > 0 and stats_for(g.unit_type).speed > 0
    ]
    return min(speeds) if speeds else None


def upkeep_per_tick(groups: Iterable[UnitGroup]) -> float:
    """Provisions consumed per tick by ``groups``."""

    return sum(stats_for(g.unit_type).upkeep_per_tick * g.quantity for g in groups)
