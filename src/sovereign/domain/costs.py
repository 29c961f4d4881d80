"""Cost and duration tables consumed by the player-command services."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from sovereign.domain.enums import DefenseType, ResearchTrack, UnitType


@dataclass(frozen=True, slots=True)
class ResourceCost:
    time_seconds: int
    ore: int = 0
    provisions: int = 0
    gold: int = 0
    lumber: int = 0
    mana: int = 0

    def scaled(self, quantity: int) -> ResourceCost:
        """Resource cost of ``quantity`` units; the time component is scaled too."""
        return ResourceCost(
            time_seconds=self.time_seconds * quantity,
            ore=self.ore * quantity,
            provisions=self.provisions * quantity,
            gold=self.gold * quantity,
            lumber=self.lumber * quantity,
            mana=self.mana * quantity,
        )


@dataclass(frozen=True, slots=True)
class UnitRequirements:
    """Prerequisites for training a unit type.

    ``total_war`` is the sum of the BALLISTICS, DEFENSE_TRACK and STRATEGY
    levels.  ``mine_level`` refers to a built mine in the training settlement.
    """

    research: Mapping[ResearchTrack, int] = field(default_factory=dict)
    total_war: int = 0
    mine_level: int = 0


@dataclass(frozen=True, slots=True)
class UnitTrainingCost:
    cost: ResourceCost
    requires: UnitRequirements = field(default_factory=UnitRequirements)


def _levels(*costs: ResourceCost) -> Mapping[int, ResourceCost]:
    return MappingProxyType({level: cost for level, cost in enumerate(costs, start=1)})


_WAR_TECH = _levels(
    ResourceCost(3 * 60, ore=200),
    ResourceCost(6 * 60, ore=400),
    ResourceCost(12 * 60, ore=800),
    ResourceCost(25 * 60, ore=1600),
    ResourceCost(45 * 60, ore=3000),
)

_ARCANA = _levels(
    ResourceCost(10 * 60, mana=500, gold=1000),
    ResourceCost(25 * 60, mana=1500, gold=3000),
    ResourceCost(45 * 60, mana=4000, gold=7000),
    ResourceCost(75 * 60, mana=8000, gold=15000),
    ResourceCost(180 * 60, mana=25000, gold=40000),
)

RESEARCH_COSTS: Mapping[ResearchTrack, Mapping[int, ResourceCost]] = MappingProxyType(
    {
        ResearchTrack.BALLISTICS: _WAR_TECH,
        ResearchTrack.DEFENSE_TRACK: _WAR_TECH,
        ResearchTrack.STRATEGY: _WAR_TECH,
        ResearchTrack.CROP_MASTERY: _levels(
            ResourceCost(4 * 60, provisions=300),
            ResourceCost(8 * 60, provisions=600),
            ResourceCost(15 * 60, provisions=1200),
            ResourceCost(30 * 60, provisions=2400),
            ResourceCost(50 * 60, provisions=4000),
        ),
        ResearchTrack.ANIMAL_HUSBANDRY: _levels(
            ResourceCost(5 * 60, provisions=300),
            ResourceCost(10 * 60, provisions=700),
            ResourceCost(18 * 60, provisions=1400),
            ResourceCost(35 * 60, provisions=2800),
            ResourceCost(60 * 60, provisions=5000),
        ),
        ResearchTrack.FORESTRY: _levels(
            ResourceCost(180, lumber=200),
            ResourceCost(360, lumber=450),
            ResourceCost(720, lumber=900),
            ResourceCost(1440, lumber=1800),
            ResourceCost(2400, lumber=3200),
        ),
        ResearchTrack.HOLY: _ARCANA,
        ResearchTrack.NECROTIC: _ARCANA,
    }
)

UNIT_TRAINING_COSTS: Mapping[UnitType, UnitTrainingCost] = MappingProxyType(
    {
        UnitType.INFANTRY: UnitTrainingCost(ResourceCost(30, ore=20, provisions=10)),
        UnitType.ARCHER: UnitTrainingCost(
            ResourceCost(45, ore=30, provisions=15),
            UnitRequirements(research={ResearchTrack.BALLISTICS: 1}),
        ),
        UnitType.HEAVY_INFANTRY: UnitTrainingCost(
            ResourceCost(90, ore=60, provisions=25),
            UnitRequirements(total_war=3, mine_level=3),
        ),
        UnitType.WARDEN: UnitTrainingCost(
            ResourceCost(60, ore=40, provisions=30),
            UnitRequirements(research={ResearchTrack.DEFENSE_TRACK: 3}),
        ),
        UnitType.CARAVAN: UnitTrainingCost(
            ResourceCost(45, ore=10, provisions=50),
            UnitRequirements(research={ResearchTrack.ANIMAL_HUSBANDRY: 2}),
        ),
        UnitType.SCOUT: UnitTrainingCost(
            ResourceCost(60, ore=15, provisions=20, gold=10),
            UnitRequirements(research={ResearchTrack.STRATEGY: 1}),
        ),
        UnitType.CAVALRY: UnitTrainingCost(
            ResourceCost(120, ore=80, provisions=40, gold=20),
            UnitRequirements(total_war=5, research={ResearchTrack.ANIMAL_HUSBANDRY: 4}),
        ),
    }
)

# Training time multiplier by barracks level; unlisted levels train at 1.0.
BARRACKS_TRAINING_MULTIPLIERS: Mapping[int, float] = MappingProxyType(
    {1: 1.0, 2: 0.85, 3: 0.70, 4: 0.55, 5: 0.40}
)

DEFENSE_UPGRADE_COSTS: Mapping[DefenseType, Mapping[int, ResourceCost]] = MappingProxyType(
    {
        DefenseType.WALLS: _levels(
            ResourceCost(5 * 60, ore=200, provisions=100),
            ResourceCost(10 * 60, ore=500, provisions=250),
            ResourceCost(20 * 60, ore=1200, provisions=600),
            ResourceCost(40 * 60, ore=2800, provisions=1400),
            ResourceCost(75 * 60, ore=6000, provisions=3000),
        ),
        DefenseType.GUARD_TOWER: _levels(
            ResourceCost(5 * 60, ore=300, gold=100),
            ResourceCost(12 * 60, ore=700, gold=300),
            ResourceCost(25 * 60, ore=1500, gold=700),
            ResourceCost(50 * 60, ore=3500, gold=1500),
            ResourceCost(90 * 60, ore=7000, gold=3000),
        ),
        DefenseType.WATCH_TOWER: _levels(
            ResourceCost(3 * 60, ore=150, gold=50),
            ResourceCost(8 * 60, ore=400, gold=150),
            ResourceCost(18 * 60, ore=900, gold=400),
            ResourceCost(35 * 60, ore=2000, gold=900),
            ResourceCost(65 * 60, ore=4500, gold=2000),
        ),
        DefenseType.BALLISTA: _levels(
            ResourceCost(8 * 60, ore=500, gold=200),
            ResourceCost(18 * 60, ore=1200, gold=500),
            ResourceCost(35 * 60, ore=2800, gold=1200),
            ResourceCost(60 * 60, ore=6000, gold=2500),
            ResourceCost(100 * 60, ore=12000, gold=5000),
        ),
    }
)
