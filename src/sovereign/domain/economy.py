"""Resource accrual for one tick.

Production scales continuously with elapsed wall-clock time: a tick that
covers 45 seconds of a 30 second cadence yields 1.5x the per-tick rates.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from sovereign.domain.rules_config import DEFAULT_RULES, EconomyRules

MINE_LEVEL_MULTIPLIERS: Mapping[int, float] = MappingProxyType(
    {1: 1.0, 2: 1.2, 3: 1.4, 4: 1.65, 5: 2.0, 6: 2.4, 7: 2.85, 8: 3.4}
)
FARM_LEVEL_MULTIPLIERS: Mapping[int, float] = MappingProxyType(
    {0: 1.0, 1: 1.0, 2: 1.3, 3: 1.6, 4: 2.0, 5: 2.5}
)
SAWMILL_LEVEL_MULTIPLIERS: Mapping[int, float] = MappingProxyType(
    {1: 1.0, 2: 1.3, 3: 1.6, 4: 2.0, 5: 2.5, 6: 3.0, 7: 3.6, 8: 4.3}
)
CROP_MASTERY_MULTIPLIERS: Mapping[int, float] = MappingProxyType(
    {0: 1.0, 1: 1.3, 2: 1.6, 3: 2.0, 4: 2.5, 5: 3.0}
)
FORESTRY_MULTIPLIERS: Mapping[int, float] = MappingProxyType(
    {0: 1.0, 1: 1.2, 2: 1.4, 3: 1.7, 4: 2.0, 5: 2.5}
)


def level_multiplier(table: Mapping[int, float], level: int) -> float:
    """Look up ``level`` in ``table``; unlisted levels multiply by 1.0."""
    return table.get(level, 1.0)


@dataclass(frozen=True, slots=True)
class ResourceStock:
    """Amounts (or caps) of the five stockpiled resources."""

    ore: float = 0.0
    provisions: float = 0.0
    gold: float = 0.0
    lumber: float = 0.0
    mana: float = 0.0


@dataclass(frozen=True, slots=True)
class ResourceDelta:
    ore: float = 0.0
    provisions: float = 0.0
    gold: float = 0.0
    lumber: float = 0.0
    mana: float = 0.0
    upkeep: float = 0.0


@dataclass(frozen=True, slots=True)
class ProductionInputs:
    """Everything accrual reads, flattened out of the player's persisted state.

    A building that is mid-upgrade still reports its current level; the
    ``*_upgrading`` flags zero the affected production.
    """

    tick_multiplier: float
    mine_level: int = 0
    mine_upgrading: bool = False
    farm_level: int = 0
    farm_upgrading: bool = False
    sawmill_level: int = 0
    sawmill_built: bool = False
    sawmill_upgrading: bool = False
    crop_mastery_level: int = 0
    forestry_level: int = 0
    mana_discovered: bool = False
    upkeep_per_tick: float = 0.0


def tick_multiplier(elapsed_ms: float, rules: EconomyRules = DEFAULT_RULES.economy) -> float:
    """Fractional number of ticks covered by ``elapsed_ms``."""
    return elapsed_ms / rules.tick_interval_ms


def compute_accrual(
    inputs: ProductionInputs, rules: EconomyRules = DEFAULT_RULES.economy
) -> ResourceDelta:
    """Compute the per-resource change for one tick.

    The provisions delta is net of unit upkeep and may be negative;
    :func:`apply_accrual` floors the resulting stock at zero.
    """

    mult = inputs.tick_multiplier

    ore = 0.0
    if not inputs.mine_upgrading:
        ore = rules.base_ore_per_tick * level_multiplier(MINE_LEVEL_MULTIPLIERS, inputs.mine_level) * mult

    production = 0.0
    if not inputs.farm_upgrading:
        production = (
            rules.base_provisions_per_tick
            * level_multiplier(FARM_LEVEL_MULTIPLIERS, inputs.farm_level)
            * level_multiplier(CROP_MASTERY_MULTIPLIERS, inputs.crop_mastery_level)
            * mult
        )
    upkeep = inputs.upkeep_per_tick * mult

    if inputs.sawmill_built and not inputs.sawmill_upgrading:
        lumber = (
            rules.sawmill_base_per_tick
            * level_multiplier(SAWMILL_LEVEL_MULTIPLIERS, inputs.sawmill_level)
            * level_multiplier(FORESTRY_MULTIPLIERS, inputs.forestry_level)
            * mult
        )
    else:
        lumber = rules.base_lumber_per_tick * mult

    mana = rules.base_mana_per_tick * mult if inputs.mana_discovered else 0.0

    return ResourceDelta(
        ore=ore,
        provisions=production - upkeep,
        gold=rules.base_gold_per_tick * mult,
        lumber=lumber,
        mana=mana,
        upkeep=upkeep,
    )


def apply_accrual(current: ResourceStock, caps: ResourceStock, delta: ResourceDelta) -> ResourceStock:
    """Add ``delta`` to ``current``, capping each resource and flooring provisions at 0."""

    return ResourceStock(
        ore=min(current.ore + delta.ore, caps.ore),
        provisions=max(0.0, min(current.provisions + delta.provisions, caps.provisions)),
        gold=min(current.gold + delta.gold, caps.gold),
        lumber=min(current.lumber + delta.lumber, caps.lumber),
        mana=min(current.mana + delta.mana, caps.mana),
    )
