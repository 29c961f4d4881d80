"""NPC garrison generation and fuzzed scout reports.

Both functions derive everything from a faction's ``strength`` scalar.  The
generator is deterministic; only :func:`generate_scout_estimate` draws random
numbers, one independent draw per reported field.
"""

from __future__ import annotations

from dataclasses import dataclass

from sovereign.domain.combat import ArmyForCombat, DefenseStructure
from sovereign.domain.enums import DefenseType, UnitType
from sovereign.domain.rules_config import DEFAULT_RULES, NpcRules
from sovereign.domain.units import UnitGroup
from sovereign.utils.rng import RandomSource, default_rng, fuzz, round_half_up


@dataclass(frozen=True, slots=True)
class FactionProfile:
    """The parts of an NPC faction the generator reads."""

    strength: int
    aggression_level: int
    name: str = ""


@dataclass(frozen=True, slots=True)
class ResourceEstimate:
    ore: int
    provisions: int
    gold: int
    lumber: int


@dataclass(frozen=True, slots=True)
class ScoutEstimate:
    """Player-facing report on an NPC tile.  Every figure is approximate."""

    faction_name: str
    estimated_troops: tuple[UnitGroup, ...]
    has_defenses: bool
    resource_estimate: ResourceEstimate


def generate_defenders(
    faction: FactionProfile,
    is_hideout: bool,
    *,
    rules: NpcRules = DEFAULT_RULES.npc,
) -> ArmyForCombat:
    """Build the defending garrison for an NPC tile.

    Hideouts scale every count by ``rules.hideout_multiplier`` and add walls
    at ``min(strength, rules.hideout_max_wall_level)``.
    """

    strength = faction.strength
    mult = rules.hideout_multiplier if is_hideout else 1.0

    units = [
        UnitGroup(UnitType.INFANTRY, round_half_up(strength * rules.infantry_per_strength * mult)),
        UnitGroup(UnitType.ARCHER, round_half_up(strength * rules.archers_per_strength * mult)),
    ]
    if strength >= rules.heavy_infantry_min_strength:
        units.append(
            UnitGroup(
                UnitType.HEAVY_INFANTRY,
                round_half_up(strength * rules.heavy_infantry_per_strength * mult),
            )
        )

    structures: tuple[DefenseStructure, ...] = ()
    if is_hideout:
        structures = (
            DefenseStructure(DefenseType.WALLS, min(strength, rules.hideout_max_wall_level)),
        )

    return ArmyForCombat(
        units=tuple(units),
        provisions=strength * rules.provisions_per_strength * mult,
        is_defending=True,
        defense_structures=structures,
    )


def generate_scout_estimate(
    faction: FactionProfile,
    is_hideout: bool,
    *,
    rng: RandomSource | None = None,
    rules: NpcRules = DEFAULT_RULES.npc,
) -> ScoutEstimate:
    """Fuzz the generated garrison and a resource guess for a scout report.

    ``rng`` defaults to an unseedable OS-entropy source; tests pass a seeded
    ``random.Random`` to pin the draws.
    """

    rng = rng or default_rng()
    defenders = generate_defenders(faction, is_hideout, rules=rules)
    low, high = rules.fuzz_low, rules.fuzz_high
    strength = faction.strength

    troops = tuple(
        UnitGroup(group.unit_type, fuzz(rng, group.quantity, low, high))
        for group in defenders.units
    )
    resources = ResourceEstimate(
        ore=fuzz(rng, strength * rules.ore_estimate_per_strength, low, high),
        provisions=fuzz(rng, strength * rules.provisions_estimate_per_strength, low, high),
        gold=fuzz(rng, strength * rules.gold_estimate_per_strength, low, high),
        lumber=fuzz(rng, strength * rules.lumber_estimate_per_strength, low, high),
    )
    return ScoutEstimate(
        faction_name=faction.name,
        estimated_troops=troops,
        has_defenses=is_hideout,
        resource_estimate=resources,
    )
