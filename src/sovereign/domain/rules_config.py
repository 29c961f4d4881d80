"""Declarative rule configuration for the simulation core.

Scalar balance constants are grouped per subsystem.  Lookup tables keyed by
enum or level live next to the code that reads them (:mod:`units`,
:mod:`economy`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Round-based combat parameters."""

    max_rounds: int = 50
    wall_hp_per_level: int = 100
    guard_tower_damage_per_level: int = 20
    cavalry_charge_multiplier: float = 1.5
    mana_per_bonus_percent: int = 100
    mana_bonus_cap_percent: int = 25
    npc_loot_fraction: float = 0.2
    loot_ore_share: float = 0.4
    loot_provisions_share: float = 0.4
    loot_gold_share: float = 0.2
    strict_invariants: bool = True


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Tick cadence and production constants."""

    tick_interval_ms: int = 30_000
    debounce_ms: int = 5_000
    base_ore_per_tick: float = 5.0
    base_provisions_per_tick: float = 8.0
    base_gold_per_tick: float = 2.0
    base_lumber_per_tick: float = 1.0
    sawmill_base_per_tick: float = 4.0
    base_mana_per_tick: float = 1.0
    max_research_level: int = 5
    max_defense_level: int = 5


@dataclass(frozen=True, slots=True)
class NpcRules:
    """NPC garrison generation and scout-report fuzzing."""

    infantry_per_strength: int = 5
    archers_per_strength: int = 2
    heavy_infantry_per_strength: int = 1
    heavy_infantry_min_strength: int = 5
    hideout_multiplier: float = 1.5
    hideout_max_wall_level: int = 3
    provisions_per_strength: int = 200
    fuzz_low: float = 0.8
    fuzz_high: float = 1.2
    ore_estimate_per_strength: int = 100
    provisions_estimate_per_strength: int = 150
    gold_estimate_per_strength: int = 50
    lumber_estimate_per_strength: int = 80


@dataclass(frozen=True, slots=True)
class PvpRules:
    """Player-versus-player raid parameters."""

    loot_percent: float = 0.15
    protection_duration: timedelta = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class ScoutRules:
    """Scout mission parameters."""

    mission_name_prefix: str = "Scout Mission"
    loss_chance_per_aggression: float = 0.05


@dataclass(frozen=True, slots=True)
class MarchRules:
    """Army movement parameters."""

    default_speed_tiles_per_minute: float = 0.5
    recall_provision_burn: float = 0.25


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Aggregate rule set passed through the engine."""

    combat: CombatRules = field(default_factory=CombatRules)
    economy: EconomyRules = field(default_factory=EconomyRules)
    npc: NpcRules = field(default_factory=NpcRules)
    pvp: PvpRules = field(default_factory=PvpRules)
    scout: ScoutRules = field(default_factory=ScoutRules)
    march: MarchRules = field(default_factory=MarchRules)


DEFAULT_RULES = RulesConfig()
