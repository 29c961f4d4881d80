"""Pure rules layer for Sovereign.

Nothing in this package touches the database:

* :mod:`units` and :mod:`costs` hold the static balance tables.
* :mod:`combat` resolves a battle into casualties, a winner and loot.
* :mod:`npc` derives NPC garrisons and fuzzed scout reports.
* :mod:`economy` and :mod:`loot` compute per-tick accrual and PvP plunder.

The tick service in :mod:`sovereign.services.tick_service` is the only
caller that persists their results.
"""

from . import combat, costs, economy, enums, loot, npc, rules_config, units

__all__ = [
    "combat",
    "costs",
    "economy",
    "enums",
    "loot",
    "npc",
    "rules_config",
    "units",
]
