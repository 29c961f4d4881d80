"""Unit tests for PvP loot."""

from hypothesis import given
from hypothesis import strategies as st

from sovereign.domain.combat import Loot
from sovereign.domain.economy import ResourceStock
from sovereign.domain.loot import compute_pvp_loot


class TestComputePvpLoot:
    def test_takes_fifteen_percent_when_capacity_allows(self):
        stock = ResourceStock(ore=1000, provisions=2000, gold=400, lumber=600, mana=900)

        loot = compute_pvp_loot(stock, carry_capacity=10_000)

        assert loot == Loot(ore=150, provisions=300, gold=60, lumber=90)

    def test_scales_every_resource_to_capacity(self):
        stock = ResourceStock(ore=1000, provisions=1000, gold=1000, lumber=1000)

        loot = compute_pvp_loot(stock, carry_capacity=300)

        assert loot == Loot(ore=75, provisions=75, gold=75, lumber=75)

    def test_no_capacity_takes_nothing(self):
        stock = ResourceStock(ore=1000, provisions=1000, gold=1000, lumber=1000)

        assert compute_pvp_loot(stock, carry_capacity=0).is_empty()

    def test_negative_stock_is_ignored(self):
        stock = ResourceStock(ore=-50, provisions=100)

        assert compute_pvp_loot(stock, carry_capacity=1000) == Loot(provisions=15)

    def test_custom_percent(self):
        stock = ResourceStock(gold=100)

        assert compute_pvp_loot(stock, 1000, percent=0.5) == Loot(gold=50)

    @given(
        ore=st.floats(min_value=0, max_value=1e6),
        provisions=st.floats(min_value=0, max_value=1e6),
        gold=st.floats(min_value=0, max_value=1e6),
        lumber=st.floats(min_value=0, max_value=1e6),
        capacity=st.integers(min_value=0, max_value=50_000),
    )
    def test_never_exceeds_capacity(self, ore, provisions, gold, lumber, capacity):
        stock = ResourceStock(ore=ore, provisions=provisions, gold=gold, lumber=lumber)

        loot = compute_pvp_loot(stock, capacity)

        assert loot.total <= capacity
        assert loot.ore <= ore * 0.15 + 1e-9
