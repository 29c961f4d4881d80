"""Unit tests for unit stat lookups and army aggregates."""

import pytest

from sovereign.domain.enums import UnitType
from sovereign.domain.units import (
    UNIT_STATS,
    UNKNOWN_STATS,
    UnitGroup,
    carry_capacity,
    has_caravans,
    is_caravan,
    is_melee,
    is_ranged,
    raw_attack,
    slowest_speed,
    stats_for,
    triangle,
    upkeep_per_tick,
)


class TestStatsFor:
    def test_every_unit_type_has_stats(self):
        assert set(UNIT_STATS) == set(UnitType)

    def test_accepts_raw_strings(self):
        assert stats_for("CAVALRY") == UNIT_STATS[UnitType.CAVALRY]

    def test_unknown_type_contributes_nothing(self):
        assert stats_for("TREBUCHET") is UNKNOWN_STATS


class TestClassification:
    def test_archers_are_the_only_ranged_unit(self):
        assert [t for t in UnitType if is_ranged(t)] == [UnitType.ARCHER]

    def test_caravans_neither_shoot_nor_fight(self):
        assert is_caravan(UnitType.CARAVAN)
        assert not is_melee(UnitType.CARAVAN)
        assert not is_ranged(UnitType.CARAVAN)

    def test_scouts_fight_in_melee(self):
        assert is_melee(UnitType.SCOUT)

    def test_unknown_type_is_unclassified(self):
        assert not is_melee("GOLEM")
        assert not is_ranged("GOLEM")
        assert not is_caravan("GOLEM")


class TestTriangle:
    @pytest.mark.parametrize(
        ("attacker", "target", "expected"),
        [
            (UnitType.CAVALRY, UnitType.ARCHER, 1.25),
            (UnitType.ARCHER, UnitType.INFANTRY, 1.25),
            (UnitType.INFANTRY, UnitType.CAVALRY, 1.25),
            (UnitType.CAVALRY, UnitType.HEAVY_INFANTRY, 0.75),
            (UnitType.HEAVY_INFANTRY, UnitType.CAVALRY, 1.18),
            (UnitType.WARDEN, UnitType.SCOUT, 1.0),
        ],
    )
    def test_matchups(self, attacker, target, expected):
        assert triangle(attacker, target) == expected

    def test_is_total_over_unknown_types(self):
        assert triangle("GOLEM", UnitType.INFANTRY) == 1.0
        assert triangle(UnitType.INFANTRY, "GOLEM") == 1.0


class TestAggregates:
    def test_raw_attack(self):
        groups = [UnitGroup(UnitType.INFANTRY, 3), UnitGroup(UnitType.ARCHER, 2)]
        assert raw_attack(groups) == 54.0

    def test_carry_capacity_counts_only_carriers(self):
        groups = [UnitGroup(UnitType.CARAVAN, 3), UnitGroup(UnitType.INFANTRY, 50)]
        assert carry_capacity(groups) == 600

    def test_has_caravans_ignores_empty_groups(self):
        assert not has_caravans([UnitGroup(UnitType.CARAVAN, 0)])
        assert has_caravans([UnitGroup(UnitType.CARAVAN, 1)])

    def test_slowest_speed(self):
        groups = [
            UnitGroup(UnitType.CAVALRY, 5),
            UnitGroup(UnitType.HEAVY_INFANTRY, 1),
            UnitGroup(UnitType.WARDEN, 0),
        ]
        assert slowest_speed(groups) == 0.3

    def test_slowest_speed_without_known_units(self):
        assert slowest_speed([UnitGroup("GOLEM", 4)]) is None
        assert slowest_speed([]) is None

    def test_upkeep(self):
        groups = [UnitGroup(UnitType.INFANTRY, 10), UnitGroup(UnitType.CAVALRY, 2)]
        assert upkeep_per_tick(groups) == pytest.approx(8.0)
