"""Loot taken from a defeated player settlement."""

from __future__ import annotations

import math

from sovereign.domain.combat import Loot
from sovereign.domain.economy import ResourceStock
from sovereign.domain.rules_config import DEFAULT_RULES


def compute_pvp_loot(
    defender: ResourceStock,
    carry_capacity: float,
    percent: float = DEFAULT_RULES.pvp.loot_percent,
) -> Loot:
    """Take ``percent`` of each lootable resource, scaled down to fit ``carry_capacity``.

    Mana is never looted.  When the raw haul exceeds capacity every resource
    shrinks by the same factor before flooring, so the total never exceeds
    capacity.
    """

    if carry_capacity <= 0:
        return Loot()

    raw = {
        "ore": max(0.0, defender.ore) * percent,
        "provisions": max(0.0, defender.provisions) * percent,
        "gold": max(0.0, defender.gold) * percent,
        "lumber": max(0.0, defender.lumber) * percent,
    }
    total = sum(raw.values())
    scale = 1.0 if total <= carry_capacity else carry_capacity / total

    return Loot(**{kind: math.floor(amount * scale) for kind, amount in raw.items()})
