"""Unit tests for NPC garrison generation and scout estimates."""

import random

import pytest

from sovereign.domain.enums import DefenseType, UnitType
from sovereign.domain.npc import FactionProfile, generate_defenders, generate_scout_estimate
from sovereign.domain.units import UnitGroup


class TestGenerateDefenders:
    def test_camp_scales_linearly_with_strength(self):
        defenders = generate_defenders(FactionProfile(strength=4, aggression_level=1), False)

        assert defenders.units == (
            UnitGroup(UnitType.INFANTRY, 20),
            UnitGroup(UnitType.ARCHER, 8),
        )
        assert defenders.provisions == 800
        assert defenders.defense_structures == ()
        assert defenders.is_defending is True

    def test_heavy_infantry_joins_from_strength_five(self):
        defenders = generate_defenders(FactionProfile(strength=5, aggression_level=1), False)

        assert UnitGroup(UnitType.HEAVY_INFANTRY, 5) in defenders.units

    def test_hideout_multiplies_counts_and_adds_walls(self):
        defenders = generate_defenders(FactionProfile(strength=5, aggression_level=1), True)

        counts = {group.unit_type: group.quantity for group in defenders.units}
        # 5 * 1 * 1.5 = 7.5 rounds half up
        assert counts == {
            UnitType.INFANTRY: 38,
            UnitType.ARCHER: 15,
            UnitType.HEAVY_INFANTRY: 8,
        }
        assert defenders.provisions == 1500
        assert defenders.structure_level(DefenseType.WALLS) == 3

    def test_hideout_walls_follow_weak_strength(self):
        defenders = generate_defenders(FactionProfile(strength=2, aggression_level=0), True)
        assert defenders.structure_level(DefenseType.WALLS) == 2

    def test_generation_is_deterministic(self):
        faction = FactionProfile(strength=7, aggression_level=3)
        assert generate_defenders(faction, True) == generate_defenders(faction, True)


class TestScoutEstimate:
    def test_every_figure_stays_within_fuzz_band(self):
        faction = FactionProfile(strength=10, aggression_level=2, name="Ash Clan")
        estimate = generate_scout_estimate(faction, False, rng=random.Random(11))
        actual = {g.unit_type: g.quantity for g in generate_defenders(faction, False).units}

        assert estimate.faction_name == "Ash Clan"
        assert estimate.has_defenses is False
        for group in estimate.estimated_troops:
            base = actual[group.unit_type]
            assert round(base * 0.8) <= group.quantity <= round(base * 1.2)
        assert 800 <= estimate.resource_estimate.ore <= 1200
        assert 1200 <= estimate.resource_estimate.provisions <= 1800
        assert 400 <= estimate.resource_estimate.gold <= 600
        assert 640 <= estimate.resource_estimate.lumber <= 960

    def test_fields_are_fuzzed_independently(self):
        class Recorder(random.Random):
            calls = 0

            def uniform(self, a, b):
                Recorder.calls += 1
                return super().uniform(a, b)

        faction = FactionProfile(strength=5, aggression_level=1)
        generate_scout_estimate(faction, True, rng=Recorder(3))

        # three troop groups plus four resource guesses
        assert Recorder.calls == 7

    def test_hideout_reports_defenses(self):
        estimate = generate_scout_estimate(
            FactionProfile(strength=1, aggression_level=0), True, rng=random.Random(1)
        )
        assert estimate.has_defenses is True

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_same_seed_gives_same_report(self, seed):
        faction = FactionProfile(strength=6, aggression_level=1)
        first = generate_scout_estimate(faction, False, rng=random.Random(seed))
        second = generate_scout_estimate(faction, False, rng=random.Random(seed))
        assert first == second
