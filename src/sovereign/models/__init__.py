"""SQLAlchemy models for the Sovereign game system.

This module exports all database models and the declarative base.
"""

# Base classes
# Army models
from .army import Army, ArmyUnit
from .base import Base, TimestampCreatedMixin, TimestampMixin, UTCDateTime, utc_now

# Event models
from .event import GameEvent

# Map models
from .map import MapTile, NPCFaction

# Player models
from .player import Player, PlayerResources

# Research models
from .research import ActiveResearch, ResearchState

# Settlement models
from .settlement import Building, Defense, Settlement, SettlementUnits, UnitQueue

__all__ = [
    "ActiveResearch",
    "Army",
    "ArmyUnit",
    "Base",
    "Building",
    "Defense",
    "GameEvent",
    "MapTile",
    "NPCFaction",
    "Player",
    "PlayerResources",
    "ResearchState",
    "Settlement",
    "SettlementUnits",
    "TimestampCreatedMixin",
    "TimestampMixin",
    "UTCDateTime",
    "UnitQueue",
    "utc_now",
]
