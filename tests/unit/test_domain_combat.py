"""Unit tests for round-based combat resolution."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import replace

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from sovereign.domain import combat
from sovereign.domain.combat import (
    ArmyForCombat,
    BattleState,
    CombatInvariantError,
    DefenseStructure,
    Loot,
    UnitLoss,
    UnitTracker,
)
from sovereign.domain.enums import DefenseType, UnitType
from sovereign.domain.rules_config import DEFAULT_RULES
from sovereign.domain.units import UnitGroup, carry_capacity, has_caravans

RULES = DEFAULT_RULES.combat


def _army(*groups: tuple[UnitType | str, int], **kwargs) -> ArmyForCombat:
    return ArmyForCombat(units=tuple(UnitGroup(t, q) for t, q in groups), **kwargs)


class TestScenarios:
    """Worked examples with hand-computed outcomes."""

    def test_ranged_volley_wipes_slow_attacker(self):
        attacker = _army((UnitType.INFANTRY, 10))
        defender = _army((UnitType.ARCHER, 50))

        result = combat.resolve_combat(attacker, defender)

        assert result.attacker_wins is False
        assert result.attacker_losses == (UnitLoss("INFANTRY", 10),)
        assert result.defender_losses == ()
        assert result.phases.ranged.attacker_casualties == (UnitLoss("INFANTRY", 10),)
        assert result.phases.melee.attacker_casualties == ()
        assert result.rounds == 1

    def test_wall_absorbs_melee_below_its_hp(self):
        attacker = _army((UnitType.INFANTRY, 15))
        defender = _army(
            (UnitType.WARDEN, 10),
            is_defending=True,
            defense_structures=(DefenseStructure(DefenseType.WALLS, 2),),
        )
        state = combat.open_battle(attacker, defender)
        assert state.wall_hp_remaining == 200

        after = combat.step_round(state, combat.battle_context(defender))

        assert after.wall_damage_absorbed == 150
        assert after.wall_hp_remaining == 50
        assert after.defender_melee_lost == [0]
        assert after.defenders[0].quantity == 10

    def test_mana_reserve_scales_defender_melee(self):
        assert combat.mana_defense_multiplier(250) == pytest.approx(1.02)

        defender = _army((UnitType.INFANTRY, 10), is_defending=True, mana_reserve=250)
        context = combat.battle_context(defender)
        trackers = [UnitTracker.from_group(g) for g in defender.units]

        base = combat.side_melee_damage(trackers, round_index=0, charging=False)
        scaled = combat.side_melee_damage(
            trackers, round_index=0, charging=False, multiplier=context.mana_multiplier
        )

        assert base == 100
        assert scaled == pytest.approx(102)

    def test_loot_is_split_forty_forty_twenty(self):
        attacker = _army((UnitType.INFANTRY, 20), (UnitType.CARAVAN, 1))
        defender = _army((UnitType.INFANTRY, 1), provisions=2000)

        result = combat.resolve_combat(attacker, defender)

        assert result.attacker_wins is True
        assert result.loot == Loot(ore=80, provisions=80, gold=40, lumber=0)

    def test_caravans_lost_in_battle_still_carry_loot(self):
        attacker = _army((UnitType.INFANTRY, 20), (UnitType.CARAVAN, 1))
        defender = _army((UnitType.ARCHER, 2), provisions=2000)

        result = combat.resolve_combat(attacker, defender)

        assert result.attacker_wins is True
        assert UnitLoss("CARAVAN", 1) in result.phases.ranged.attacker_casualties
        assert result.loot == Loot(ore=80, provisions=80, gold=40, lumber=0)

    def test_cavalry_charge_only_in_first_round(self):
        trackers = [UnitTracker.from_group(UnitGroup(UnitType.CAVALRY, 10))]

        first = combat.side_melee_damage(trackers, round_index=0, charging=True)
        later = combat.side_melee_damage(trackers, round_index=1, charging=True)

        assert first == 10 * 15 * RULES.cavalry_charge_multiplier
        assert later == 150

    def test_defender_cavalry_never_charges(self):
        trackers = [UnitTracker.from_group(UnitGroup(UnitType.CAVALRY, 10))]
        assert combat.side_melee_damage(trackers, round_index=0, charging=False) == 150


class TestEdgeCases:
    def test_empty_defender_loses_without_a_round(self):
        result = combat.resolve_combat(_army((UnitType.INFANTRY, 5)), _army())

        assert result.attacker_wins is True
        assert result.rounds == 0
        assert result.attacker_losses == ()

    def test_empty_attacker_loses_without_a_round(self):
        result = combat.resolve_combat(_army(), _army((UnitType.INFANTRY, 5)))

        assert result.attacker_wins is False
        assert result.rounds == 0

    def test_zero_quantity_groups_are_ignored(self):
        state = combat.open_battle(
            _army((UnitType.INFANTRY, 0), (UnitType.ARCHER, 3)), _army((UnitType.WARDEN, 1))
        )
        assert [t.unit_type for t in state.attackers] == [UnitType.ARCHER]

    def test_stalled_battle_goes_to_stronger_side(self):
        # Neither side can kill a single unit, so the first round stalls.
        result = combat.resolve_combat(_army((UnitType.INFANTRY, 1)), _army((UnitType.WARDEN, 1)))

        assert result.rounds == 1
        assert result.attacker_wins is True

    def test_round_absorbed_by_wall_without_casualties_stalls(self):
        defender = _army(
            (UnitType.WARDEN, 1),
            is_defending=True,
            defense_structures=(DefenseStructure(DefenseType.WALLS, 2),),
        )

        result = combat.resolve_combat(_army((UnitType.INFANTRY, 15)), defender)

        assert result.rounds == 1
        assert result.phases.melee.wall_damage_absorbed == 150
        assert result.defender_losses == ()
        assert result.attacker_wins is True

    def test_equal_power_favours_defender(self):
        result = combat.resolve_combat(_army((UnitType.WARDEN, 1)), _army((UnitType.WARDEN, 1)))

        assert result.attacker_wins is False

    def test_round_cap_ends_battle(self):
        rules = replace(RULES, max_rounds=1)
        result = combat.resolve_combat(
            _army((UnitType.INFANTRY, 40)), _army((UnitType.WARDEN, 40)), rules=rules
        )
        assert result.rounds == 1

    def test_structures_count_only_for_defending_side(self):
        walls = (DefenseStructure(DefenseType.WALLS, 3),)
        raiding = combat.open_battle(
            _army((UnitType.INFANTRY, 1)), _army((UnitType.INFANTRY, 1), defense_structures=walls)
        )
        holding = combat.open_battle(
            _army((UnitType.INFANTRY, 1)),
            _army((UnitType.INFANTRY, 1), defense_structures=walls, is_defending=True),
        )
        assert raiding.wall_hp_remaining == 0
        assert holding.wall_hp_remaining == 300

    def test_guard_tower_fires_every_round_and_is_totalled(self):
        defender = _army(
            (UnitType.WARDEN, 1),
            is_defending=True,
            defense_structures=(DefenseStructure(DefenseType.GUARD_TOWER, 1),),
        )
        result = combat.resolve_combat(_army((UnitType.INFANTRY, 1)), defender)

        assert result.attacker_wins is False
        assert result.phases.ranged.guard_tower_damage == 20
        assert result.phases.ranged.attacker_casualties == (UnitLoss("INFANTRY", 1),)

    def test_unknown_unit_types_are_tracked_but_inert(self):
        result = combat.resolve_combat(_army(("GOLEM", 5)), _army((UnitType.INFANTRY, 1)))

        assert result.attacker_wins is False
        assert result.attacker_losses == ()

    def test_losses_merge_groups_of_the_same_type(self):
        result = combat.resolve_combat(
            _army((UnitType.INFANTRY, 5), (UnitType.INFANTRY, 5)), _army((UnitType.ARCHER, 50))
        )
        assert result.attacker_losses == (UnitLoss("INFANTRY", 10),)

    def test_no_caravans_means_no_loot(self):
        result = combat.resolve_combat(
            _army((UnitType.INFANTRY, 20)), _army((UnitType.INFANTRY, 1), provisions=5000)
        )
        assert result.attacker_wins is True
        assert result.loot.is_empty()


class TestStepRound:
    def test_step_round_does_not_mutate_its_input(self):
        attacker = _army((UnitType.INFANTRY, 30))
        defender = _army((UnitType.ARCHER, 10))
        state = combat.open_battle(attacker, defender)
        snapshot = state.copy()

        combat.step_round(state, combat.battle_context(defender))

        assert state == snapshot

    def test_finished_state_is_returned_unchanged(self):
        state = combat.open_battle(_army(), _army((UnitType.INFANTRY, 1)))
        assert combat.step_round(state, combat.battle_context(_army())) is state

    def test_broken_tracker_raises_when_strict(self):
        state = BattleState(
            round=0,
            attackers=[UnitTracker(UnitType.INFANTRY, quantity=5, initial=3)],
            defenders=[UnitTracker(UnitType.WARDEN, quantity=1, initial=1)],
            wall_hp_remaining=0.0,
            attacker_ranged_lost=[0],
            defender_ranged_lost=[0],
            attacker_melee_lost=[0],
            defender_melee_lost=[0],
        )
        context = combat.battle_context(_army())

        with pytest.raises(CombatInvariantError):
            combat.step_round(state, context)

    def test_broken_tracker_is_clamped_when_lenient(self):
        state = BattleState(
            round=0,
            attackers=[UnitTracker(UnitType.INFANTRY, quantity=5, initial=3)],
            defenders=[UnitTracker(UnitType.WARDEN, quantity=1, initial=1)],
            wall_hp_remaining=0.0,
            attacker_ranged_lost=[0],
            defender_ranged_lost=[0],
            attacker_melee_lost=[0],
            defender_melee_lost=[0],
        )
        lenient = replace(RULES, strict_invariants=False)
        context = combat.battle_context(_army(), lenient)

        after = combat.step_round(state, context)

        tracker = after.attackers[0]
        assert tracker.quantity + tracker.lost == tracker.initial
        assert 0 <= tracker.quantity <= 3


# --- Properties -----------------------------------------------------------------

_unit_types = st.sampled_from(list(UnitType))
_groups = st.lists(
    st.tuples(_unit_types, st.integers(min_value=0, max_value=300)), min_size=0, max_size=4
)


@st.composite
def _defenders(draw):
    return ArmyForCombat(
        units=tuple(UnitGroup(t, q) for t, q in draw(_groups)),
        provisions=draw(st.floats(min_value=0, max_value=50_000)),
        is_defending=draw(st.booleans()),
        defense_structures=(
            DefenseStructure(DefenseType.WALLS, draw(st.integers(0, 5))),
            DefenseStructure(DefenseType.GUARD_TOWER, draw(st.integers(0, 5))),
        ),
        mana_reserve=draw(st.floats(min_value=0, max_value=10_000)),
    )


_attackers = _groups.map(lambda gs: ArmyForCombat(units=tuple(UnitGroup(t, q) for t, q in gs)))


class TestCombatProperties:
    @settings(max_examples=75, deadline=None)
    @given(attacker=_attackers, defender=_defenders())
    def test_trackers_conserve_units_every_round(self, attacker, defender):
        context = combat.battle_context(defender)
        state = combat.open_battle(attacker, defender)
        while not state.finished:
            state = combat.step_round(state, context)
            for tracker in (*state.attackers, *state.defenders):
                assert tracker.quantity >= 0
                assert tracker.quantity + tracker.lost == tracker.initial

    @settings(max_examples=75, deadline=None)
    @given(attacker=_attackers, defender=_defenders())
    def test_wall_hp_never_increases(self, attacker, defender):
        context = combat.battle_context(defender)
        state = combat.open_battle(attacker, defender)
        previous = state.wall_hp_remaining
        while not state.finished:
            state = combat.step_round(state, context)
            assert 0 <= state.wall_hp_remaining <= previous
            previous = state.wall_hp_remaining

    @settings(max_examples=50, deadline=None)
    @given(attacker=_attackers, defender=_defenders())
    def test_resolution_is_deterministic(self, attacker, defender):
        assert combat.resolve_combat(attacker, defender) == combat.resolve_combat(
            attacker, defender
        )

    @settings(max_examples=75, deadline=None)
    @given(attacker=_attackers, defender=_defenders())
    def test_losses_never_exceed_committed_units(self, attacker, defender):
        result = combat.resolve_combat(attacker, defender)

        committed = Counter()
        for group in attacker.units:
            committed[str(group.unit_type)] += group.quantity
        for loss in result.attacker_losses:
            assert 0 < loss.lost <= committed[loss.unit_type]
        assert result.rounds <= RULES.max_rounds

    @settings(max_examples=75, deadline=None)
    @given(attacker=_attackers, defender=_defenders())
    def test_loot_is_bounded_by_pool_and_committed_capacity(self, attacker, defender):
        result = combat.resolve_combat(attacker, defender)

        if not result.attacker_wins or not has_caravans(attacker.units):
            assert result.loot.is_empty()
        else:
            pool = defender.provisions * RULES.npc_loot_fraction
            bound = min(pool, carry_capacity(attacker.units))
            assert result.loot.total <= math.floor(bound)
            assert result.loot.lumber == 0
