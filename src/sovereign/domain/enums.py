"""Enumerations shared by the rules layer and the ORM models."""

from __future__ import annotations

from enum import StrEnum


class UnitType(StrEnum):
    """Trainable unit types."""

    INFANTRY = "INFANTRY"
    ARCHER = "ARCHER"
    HEAVY_INFANTRY = "HEAVY_INFANTRY"
    WARDEN = "WARDEN"
    CARAVAN = "CARAVAN"
    SCOUT = "SCOUT"
    CAVALRY = "CAVALRY"

    @classmethod
    def parse(cls, value: str) -> UnitType | None:
        """Return the member for ``value`` or ``None`` when it is not a known unit type."""

        try:
            return cls(value)
        except ValueError:
            return None


class DefenseType(StrEnum):
    """Settlement defense structures, at most one of each per settlement."""

    WALLS = "WALLS"
    GUARD_TOWER = "GUARD_TOWER"
    WATCH_TOWER = "WATCH_TOWER"
    BALLISTA = "BALLISTA"


class BuildingType(StrEnum):
    """Economic buildings."""

    CITADEL = "CITADEL"
    FARM = "FARM"
    MINE = "MINE"
    SAWMILL = "SAWMILL"
    OBSERVATORY = "OBSERVATORY"
    BARRACKS = "BARRACKS"
    STORAGE = "STORAGE"


class ArmyStatus(StrEnum):
    """Army lifecycle states."""

    IDLE = "IDLE"
    MARCHING = "MARCHING"
    RETURNING = "RETURNING"


class ResearchTrack(StrEnum):
    """Research tracks; each has levels 1-5."""

    BALLISTICS = "BALLISTICS"
    DEFENSE_TRACK = "DEFENSE_TRACK"
    STRATEGY = "STRATEGY"
    CROP_MASTERY = "CROP_MASTERY"
    ANIMAL_HUSBANDRY = "ANIMAL_HUSBANDRY"
    FORESTRY = "FORESTRY"
    HOLY = "HOLY"
    NECROTIC = "NECROTIC"


WAR_TRACKS: frozenset[ResearchTrack] = frozenset(
    {ResearchTrack.BALLISTICS, ResearchTrack.DEFENSE_TRACK, ResearchTrack.STRATEGY}
)
ARCANA_TRACKS: frozenset[ResearchTrack] = frozenset({ResearchTrack.HOLY, ResearchTrack.NECROTIC})


class EventType(StrEnum):
    """Types written to the append-only game event log."""

    RESEARCH_COMPLETE = "RESEARCH_COMPLETE"
    TRAINING_COMPLETE = "TRAINING_COMPLETE"
    ARMY_RETURNED = "ARMY_RETURNED"
    ARMY_ARRIVED = "ARMY_ARRIVED"
    SCOUT_LOST = "SCOUT_LOST"
    SCOUT_REPORT = "SCOUT_REPORT"
    BATTLE_WON = "BATTLE_WON"
    BATTLE_LOST = "BATTLE_LOST"
    SETTLEMENT_ATTACKED = "SETTLEMENT_ATTACKED"
    SETTLEMENT_DEFENDED = "SETTLEMENT_DEFENDED"


class ResourceKind(StrEnum):
    """Stockpiled resources."""

    ORE = "ore"
    PROVISIONS = "provisions"
    GOLD = "gold"
    LUMBER = "lumber"
    MANA = "mana"
