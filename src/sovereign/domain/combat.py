"""Round-based battle resolution.

A battle is a sequence of rounds.  Each round is a ranged volley followed by a
melee clash, both simultaneous: damage for a sub-phase is computed from the
compositions before that sub-phase's casualties are applied.

The loop is expressed as a pure step function over :class:`BattleState`;
:func:`step_round` never mutates its argument.  Source armies are never
touched either, only the :class:`UnitTracker` copies made by
:func:`open_battle`.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sovereign.domain.enums import DefenseType, UnitType
from sovereign.domain.rules_config import DEFAULT_RULES, CombatRules
from sovereign.domain.units import (
    RANGED_SOURCE,
    UnitGroup,
    carry_capacity,
    has_caravans,
    is_melee,
    is_ranged,
    stats_for,
    triangle,
)


class CombatInvariantError(RuntimeError):
    """Raised when a tracker or damage value breaks a combat invariant."""


# --- Inputs and outputs ---------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DefenseStructure:
    """A defense structure at a given level."""

    type: DefenseType | str
    level: int


@dataclass(frozen=True, slots=True)
class ArmyForCombat:
    """Combat view of an army or garrison, built fresh for each battle."""

    units: Sequence[UnitGroup]
    provisions: float = 0.0
    is_defending: bool = False
    defense_structures: Sequence[DefenseStructure] = ()
    mana_reserve: float = 0.0

    def structure_level(self, kind: DefenseType) -> int:
        """Level of ``kind``; structures missing from the list count as level 0."""

        for structure in self.defense_structures:
            if structure.type == kind:
                return max(0, structure.level)
        return 0

    @property
    def total_units(self) -> int:
        return sum(max(0, group.quantity) for group in self.units)


@dataclass(frozen=True, slots=True)
class UnitLoss:
    unit_type: str
    lost: int


@dataclass(frozen=True, slots=True)
class Loot:
    ore: int = 0
    provisions: int = 0
    gold: int = 0
    lumber: int = 0

    @property
    def total(self) -> int:
        return self.ore + self.provisions + self.gold + self.lumber

    def is_empty(self) -> bool:
        return self.total == 0


@dataclass(frozen=True, slots=True)
class RangedPhase:
    attacker_casualties: tuple[UnitLoss, ...]
    defender_casualties: tuple[UnitLoss, ...]
    guard_tower_damage: float


@dataclass(frozen=True, slots=True)
class MeleePhase:
    attacker_casualties: tuple[UnitLoss, ...]
    defender_casualties: tuple[UnitLoss, ...]
    wall_damage_absorbed: float


@dataclass(frozen=True, slots=True)
class CombatPhases:
    ranged: RangedPhase
    melee: MeleePhase


@dataclass(frozen=True, slots=True)
class CombatResult:
    """Outcome of one battle.  Phase casualties are summed over all rounds."""

    attacker_wins: bool
    attacker_losses: tuple[UnitLoss, ...]
    defender_losses: tuple[UnitLoss, ...]
    loot: Loot
    phases: CombatPhases
    rounds: int


# --- Battle state ---------------------------------------------------------------


@dataclass(slots=True)
class UnitTracker:
    """Working copy of a unit group; ``quantity + lost == initial`` always holds."""

    unit_type: UnitType | str
    quantity: int
    initial: int
    lost: int = 0

    @classmethod
    def from_group(cls, group: UnitGroup) -> UnitTracker:
        return cls(unit_type=group.unit_type, quantity=group.quantity, initial=group.quantity)

    @property
    def alive(self) -> bool:
        return self.quantity > 0

    @property
    def hp_pool(self) -> float:
        return float(self.quantity * stats_for(self.unit_type).defense)

    def kill(self, count: int) -> int:
        """Remove up to ``count`` units and return how many were removed."""

        removed = min(max(count, 0), self.quantity)
        self.quantity -= removed
        self.lost += removed
        return removed

    def copy(self) -> UnitTracker:
        return UnitTracker(self.unit_type, self.quantity, self.initial, self.lost)


@dataclass(slots=True)
class BattleState:
    """Everything that changes between rounds.

    The ``*_ranged_lost`` and ``*_melee_lost`` lists run parallel to the
    tracker lists and accumulate per-phase casualties across rounds.
    """

    round: int
    attackers: list[UnitTracker]
    defenders: list[UnitTracker]
    wall_hp_remaining: float
    attacker_ranged_lost: list[int] = field(default_factory=list)
    defender_ranged_lost: list[int] = field(default_factory=list)
    attacker_melee_lost: list[int] = field(default_factory=list)
    defender_melee_lost: list[int] = field(default_factory=list)
    guard_tower_damage: float = 0.0
    wall_damage_absorbed: float = 0.0
    finished: bool = False

    def copy(self) -> BattleState:
        return BattleState(
            round=self.round,
            attackers=[t.copy() for t in self.attackers],
            defenders=[t.copy() for t in self.defenders],
            wall_hp_remaining=self.wall_hp_remaining,
            attacker_ranged_lost=list(self.attacker_ranged_lost),
            defender_ranged_lost=list(self.defender_ranged_lost),
            attacker_melee_lost=list(self.attacker_melee_lost),
            defender_melee_lost=list(self.defender_melee_lost),
            guard_tower_damage=self.guard_tower_damage,
            wall_damage_absorbed=self.wall_damage_absorbed,
            finished=self.finished,
        )

    @property
    def attacker_survivors(self) -> int:
        return sum(t.quantity for t in self.attackers)

    @property
    def defender_survivors(self) -> int:
        return sum(t.quantity for t in self.defenders)


@dataclass(frozen=True, slots=True)
class BattleContext:
    """Per-battle constants derived from the defender."""

    guard_tower_damage: float
    mana_multiplier: float
    rules: CombatRules


# --- Public helpers -------------------------------------------------------------


def mana_defense_multiplier(
    mana_reserve: float, rules: CombatRules = DEFAULT_RULES.combat
) -> float:
    """+1% per ``mana_per_bonus_percent`` mana, capped at ``mana_bonus_cap_percent``."""

    if mana_reserve <= 0:
        return 1.0
    bonus_percent = min(
        math.floor(mana_reserve / rules.mana_per_bonus_percent), rules.mana_bonus_cap_percent
    )
    return 1 + bonus_percent / 100


def side_melee_damage(
    trackers: Iterable[UnitTracker],
    *,
    round_index: int,
    charging: bool,
    multiplier: float = 1.0,
    rules: CombatRules = DEFAULT_RULES.combat,
) -> float:
    """Raw melee output of the live melee units in ``trackers``.

    ``charging`` applies the cavalry charge bonus, which only counts in round 0.
    """

    contributions = _melee_contributions(
        trackers, round_index=round_index, charging=charging, rules=rules
    )
    return sum(amount for _, amount in contributions) * multiplier


def battle_context(
    defender: ArmyForCombat, rules: CombatRules = DEFAULT_RULES.combat
) -> BattleContext:
    guard_tower_level = 0
    if defender.is_defending:
        guard_tower_level = defender.structure_level(DefenseType.GUARD_TOWER)
    mana = defender.mana_reserve if defender.is_defending else 0.0
    return BattleContext(
        guard_tower_damage=float(rules.guard_tower_damage_per_level * guard_tower_level),
        mana_multiplier=mana_defense_multiplier(mana, rules),
        rules=rules,
    )


def open_battle(
    attacker: ArmyForCombat,
    defender: ArmyForCombat,
    rules: CombatRules = DEFAULT_RULES.combat,
) -> BattleState:
    """Create the round-0 state.  Empty sides produce an already finished battle."""

    attackers = [UnitTracker.from_group(g) for g in attacker.units if g.quantity > 0]
    defenders = [UnitTracker.from_group(g) for g in defender.units if g.quantity > 0]
    wall_level = defender.structure_level(DefenseType.WALLS) if defender.is_defending else 0
    return BattleState(
        round=0,
        attackers=attackers,
        defenders=defenders,
        wall_hp_remaining=float(rules.wall_hp_per_level * wall_level),
        attacker_ranged_lost=[0] * len(attackers),
        defender_ranged_lost=[0] * len(defenders),
        attacker_melee_lost=[0] * len(attackers),
        defender_melee_lost=[0] * len(defenders),
        finished=not attackers or not defenders,
    )


def step_round(state: BattleState, context: BattleContext) -> BattleState:
    """Resolve one round and return the resulting state."""

    if state.finished:
        return state

    rules = context.rules
    nxt = state.copy()

    atk_before = [t.lost for t in nxt.attackers]
    def_before = [t.lost for t in nxt.defenders]

    _ranged_volley(nxt, context)
    ranged_atk = _accumulate(nxt.attackers, atk_before, nxt.attacker_ranged_lost)
    ranged_def = _accumulate(nxt.defenders, def_before, nxt.defender_ranged_lost)
    _enforce_invariants(nxt, rules.strict_invariants)

    if nxt.attacker_survivors == 0 or nxt.defender_survivors == 0:
        nxt.round += 1
        nxt.finished = True
        return nxt

    atk_before = [t.lost for t in nxt.attackers]
    def_before = [t.lost for t in nxt.defenders]

    _melee_clash(nxt, context)
    melee_atk = _accumulate(nxt.attackers, atk_before, nxt.attacker_melee_lost)
    melee_def = _accumulate(nxt.defenders, def_before, nxt.defender_melee_lost)
    _enforce_invariants(nxt, rules.strict_invariants)

    nxt.round += 1
    stalled = (ranged_atk + ranged_def + melee_atk + melee_def) == 0
    if (
        stalled
        or nxt.attacker_survivors == 0
        or nxt.defender_survivors == 0
        or nxt.round >= rules.max_rounds
    ):
        nxt.finished = True
    return nxt


def resolve_combat(
    attacker: ArmyForCombat,
    defender: ArmyForCombat,
    *,
    rules: CombatRules = DEFAULT_RULES.combat,
) -> CombatResult:
    """Resolve a battle between ``attacker`` and ``defender``.

    Deterministic: identical inputs always yield identical casualties,
    phase breakdowns and winner.
    """

    context = battle_context(defender, rules)
    state = open_battle(attacker, defender, rules)
    while not state.finished:
        state = step_round(state, context)
    return conclude_battle(attacker, defender, state, rules)


def conclude_battle(
    attacker: ArmyForCombat,
    defender: ArmyForCombat,
    state: BattleState,
    rules: CombatRules = DEFAULT_RULES.combat,
) -> CombatResult:
    """Determine the winner and loot for a finished ``state``."""

    attacker_wins = _attacker_wins(state)

    loot = Loot()
    if attacker_wins and has_caravans(attacker.units):
        pool = max(0.0, defender.provisions) * rules.npc_loot_fraction
        haul = min(pool, carry_capacity(attacker.units))
        loot = Loot(
            ore=math.floor(haul * rules.loot_ore_share),
            provisions=math.floor(haul * rules.loot_provisions_share),
            gold=math.floor(haul * rules.loot_gold_share),
        )

    return CombatResult(
        attacker_wins=attacker_wins,
        attacker_losses=_losses(state.attackers, [t.lost for t in state.attackers]),
        defender_losses=_losses(state.defenders, [t.lost for t in state.defenders]),
        loot=loot,
        phases=CombatPhases(
            ranged=RangedPhase(
                attacker_casualties=_losses(state.attackers, state.attacker_ranged_lost),
                defender_casualties=_losses(state.defenders, state.defender_ranged_lost),
                guard_tower_damage=state.guard_tower_damage,
            ),
            melee=MeleePhase(
                attacker_casualties=_losses(state.attackers, state.attacker_melee_lost),
                defender_casualties=_losses(state.defenders, state.defender_melee_lost),
                wall_damage_absorbed=state.wall_damage_absorbed,
            ),
        ),
        rounds=state.round,
    )


# --- Sub-phases -----------------------------------------------------------------


def _ranged_volley(state: BattleState, context: BattleContext) -> None:
    strict = context.rules.strict_invariants
    attacker_raw = _checked(_ranged_output(state.attackers), "attacker ranged damage", strict)
    defender_raw = _checked(
        _ranged_output(state.defenders) + context.guard_tower_damage,
        "defender ranged damage",
        strict,
    )

    if attacker_raw > 0:
        _apply_ranged_proportional(attacker_raw, state.defenders)
    if defender_raw > 0:
        _apply_ranged_slowest_first(defender_raw, state.attackers)
        state.guard_tower_damage += context.guard_tower_damage


def _melee_clash(state: BattleState, context: BattleContext) -> None:
    rules = context.rules
    attacker_mix = _melee_contributions(
        state.attackers, round_index=state.round, charging=True, rules=rules
    )
    defender_mix = _melee_contributions(
        state.defenders, round_index=state.round, charging=False, rules=rules
    )

    attacker_raw = _checked(
        sum(amount for _, amount in attacker_mix), "attacker melee damage", rules.strict_invariants
    )
    defender_raw = _checked(
        sum(amount for _, amount in defender_mix) * context.mana_multiplier,
        "defender melee damage",
        rules.strict_invariants,
    )

    absorbed = min(attacker_raw, state.wall_hp_remaining)
    state.wall_hp_remaining = max(0.0, state.wall_hp_remaining - absorbed)
    state.wall_damage_absorbed += absorbed
    overflow = attacker_raw - absorbed

    if overflow > 0:
        _apply_melee_proportional(overflow, attacker_mix, state.defenders)
    if defender_raw > 0:
        _apply_melee_proportional(defender_raw, defender_mix, state.attackers)


def _ranged_output(trackers: Iterable[UnitTracker]) -> float:
    return float(
        sum(
            stats_for(t.unit_type).attack * t.quantity
            for t in trackers
            if t.alive and is_ranged(t.unit_type)
        )
    )


def _melee_contributions(
    trackers: Iterable[UnitTracker],
    *,
    round_index: int,
    charging: bool,
    rules: CombatRules,
) -> list[tuple[UnitType | str, float]]:
    """Snapshot of (unit type, raw damage) for each live melee group."""

    mix: list[tuple[UnitType | str, float]] = []
    for tracker in trackers:
        if not tracker.alive or not is_melee(tracker.unit_type):
            continue
        amount = float(stats_for(tracker.unit_type).attack * tracker.quantity)
        if charging and round_index == 0 and tracker.unit_type == UnitType.CAVALRY:
            amount *= rules.cavalry_charge_multiplier
        mix.append((tracker.unit_type, amount))
    return mix


def _targets(trackers: Iterable[UnitTracker]) -> list[UnitTracker]:
    # Units without a defense stat have no HP pool and cannot be targeted.
    return [t for t in trackers if t.alive and stats_for(t.unit_type).defense > 0]


def _apply_ranged_proportional(raw_damage: float, targets: Sequence[UnitTracker]) -> None:
    live = _targets(targets)
    pools = [t.hp_pool for t in live]
    total_pool = sum(pools)
    if total_pool <= 0:
        return

    for target, pool in zip(live, pools, strict=True):
        defense = stats_for(target.unit_type).defense
        damage = raw_damage * (pool / total_pool) * triangle(RANGED_SOURCE, target.unit_type)
        target.kill(math.floor(damage / defense))


def _apply_ranged_slowest_first(raw_damage: float, targets: Sequence[UnitTracker]) -> None:
    ordered = sorted(_targets(targets), key=lambda t: stats_for(t.unit_type).speed)
    remaining = raw_damage

    for target in ordered:
        if remaining <= 0:
            break
        defense = stats_for(target.unit_type).defense
        multiplier = triangle(RANGED_SOURCE, target.unit_type)
        pool = target.hp_pool
        effective = remaining * multiplier

        if effective >= pool:
            target.kill(target.quantity)
            remaining -= pool / multiplier
        else:
            target.kill(math.floor(effective / defense))
            remaining = 0


def _apply_melee_proportional(
    total_damage: float,
    attacker_mix: Sequence[tuple[UnitType | str, float]],
    targets: Sequence[UnitTracker],
) -> None:
    total_raw = sum(amount for _, amount in attacker_mix)
    live = _targets(targets)
    pools = [t.hp_pool for t in live]
    total_pool = sum(pools)
    if total_pool <= 0 or total_raw <= 0:
        return

    for target, pool in zip(live, pools, strict=True):
        defense = stats_for(target.unit_type).defense
        weighted = sum(amount * triangle(kind, target.unit_type) for kind, amount in attacker_mix)
        damage = total_damage * (pool / total_pool) * (weighted / total_raw)
        target.kill(math.floor(damage / defense))


# --- Bookkeeping ----------------------------------------------------------------


def _accumulate(trackers: Sequence[UnitTracker], before: Sequence[int], into: list[int]) -> int:
    delta_total = 0
    for index, tracker in enumerate(trackers):
        delta = tracker.lost - before[index]
        into[index] += delta
        delta_total += delta
    return delta_total


def _losses(trackers: Sequence[UnitTracker], counts: Sequence[int]) -> tuple[UnitLoss, ...]:
    merged: dict[str, int] = {}
    for tracker, count in zip(trackers, counts, strict=True):
        if count > 0:
            key = str(tracker.unit_type)
            merged[key] = merged.get(key, 0) + count
    return tuple(UnitLoss(unit_type=kind, lost=lost) for kind, lost in merged.items())


def _attacker_wins(state: BattleState) -> bool:
    if state.defender_survivors == 0:
        return True
    if state.attacker_survivors == 0:
        return False
    attacker_power = sum(stats_for(t.unit_type).attack * t.quantity for t in state.attackers)
    defender_power = sum(stats_for(t.unit_type).attack * t.quantity for t in state.defenders)
    return attacker_power > defender_power


def _checked(value: float, label: str, strict: bool) -> float:
    if math.isfinite(value) and value >= 0:
        return value
    if strict:
        raise CombatInvariantError(f"{label} is {value!r}")
    return 0.0


def _enforce_invariants(state: BattleState, strict: bool) -> None:
    for tracker in (*state.attackers, *state.defenders):
        if (
            tracker.quantity >= 0
            and tracker.lost >= 0
            and tracker.quantity + tracker.lost == tracker.initial
        ):
            continue
        if strict:
            raise CombatInvariantError(
                f"{tracker.unit_type}: quantity={tracker.quantity} lost={tracker.lost} "
                f"initial={tracker.initial}"
            )
        tracker.quantity = min(max(tracker.quantity, 0), tracker.initial)
        tracker.lost = tracker.initial - tracker.quantity
