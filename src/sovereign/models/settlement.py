"""Settlement models for the Sovereign game system.

This module contains models for:
- Settlements (a player's town on a map tile)
- Buildings (economic structures that gate production)
- Defenses (walls and towers, one row per type)
- SettlementUnits (the garrison, one row per unit type)
- UnitQueue (units in training)
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sovereign.domain.enums import BuildingType, DefenseType, UnitType

from .base import Base, TimestampCreatedMixin, UTCDateTime, enum_check

if TYPE_CHECKING:
    from .map import MapTile
    from .player import Player


class Settlement(Base, TimestampCreatedMixin):
    """A player-owned settlement occupying one map tile.

    Attributes:
        id: Primary key
        player_id: Owning player
        tile_id: Map tile the settlement sits on (at most one settlement per tile)
        name: Display name
        protected_until: End of the post-defeat protection window, if any
    """

    __tablename__ = "settlements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    tile_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("map_tiles.id"), nullable=False, unique=True
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    protected_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    player: Mapped["Player"] = relationship("Player", back_populates="settlements")
    tile: Mapped["MapTile"] = relationship("MapTile", back_populates="settlement")
    buildings: Mapped[list["Building"]] = relationship(
        "Building", back_populates="settlement", cascade="all, delete-orphan"
    )
    defenses: Mapped[list["Defense"]] = relationship(
        "Defense", back_populates="settlement", cascade="all, delete-orphan"
    )
    units: Mapped[list["SettlementUnits"]] = relationship(
        "SettlementUnits", back_populates="settlement", cascade="all, delete-orphan"
    )
    unit_queues: Mapped[list["UnitQueue"]] = relationship(
        "UnitQueue",
        back_populates="settlement",
        cascade="all, delete-orphan",
        order_by="UnitQueue.finish_at",
    )

    __table_args__ = (Index("idx_settlements_player", "player_id"),)

    def building(self, kind: BuildingType) -> "Building | None":
        return next((b for b in self.buildings if b.type == kind), None)

    def defense(self, kind: DefenseType) -> "Defense | None":
        return next((d for d in self.defenses if d.type == kind), None)

    def garrison(self, unit_type: UnitType | str) -> "SettlementUnits | None":
        return next((u for u in self.units if u.unit_type == unit_type), None)

    def is_protected(self, now: datetime) -> bool:
        return self.protected_until is not None and self.protected_until > now

    def __repr__(self) -> str:
        return f"<Settlement(id={self.id}, name='{self.name}', tile={self.tile_id})>"


class Building(Base):
    """An economic building.  ``level`` counts completed upgrades."""

    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    settlement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("settlements.id"), nullable=False
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_built: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    upgrade_started_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    upgrade_finish_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    settlement: Mapped["Settlement"] = relationship("Settlement", back_populates="buildings")

    __table_args__ = (
        enum_check("type", BuildingType, "ck_buildings_type"),
        CheckConstraint("level >= 0", name="ck_buildings_level"),
        UniqueConstraint("settlement_id", "type", name="uq_buildings_settlement_type"),
    )

    def is_upgrading(self, now: datetime) -> bool:
        return self.upgrade_finish_at is not None and self.upgrade_finish_at > now

    def __repr__(self) -> str:
        return f"<Building(id={self.id}, type='{self.type}', level={self.level})>"


class Defense(Base):
    """A defense structure; level 0 means not built (or destroyed)."""

    __tablename__ = "defenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    settlement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("settlements.id"), nullable=False
    )
    type: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    upgrade_started_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    upgrade_finish_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    settlement: Mapped["Settlement"] = relationship("Settlement", back_populates="defenses")

    __table_args__ = (
        enum_check("type", DefenseType, "ck_defenses_type"),
        CheckConstraint("level >= 0", name="ck_defenses_level"),
        UniqueConstraint("settlement_id", "type", name="uq_defenses_settlement_type"),
    )

    def is_upgrading(self, now: datetime) -> bool:
        return self.upgrade_finish_at is not None and self.upgrade_finish_at > now

    def __repr__(self) -> str:
        return f"<Defense(id={self.id}, type='{self.type}', level={self.level})>"


class SettlementUnits(Base):
    """Garrison count for one unit type.  Never negative, never deleted by combat."""

    __tablename__ = "settlement_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    settlement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("settlements.id"), nullable=False
    )
    unit_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    settlement: Mapped["Settlement"] = relationship("Settlement", back_populates="units")

    __table_args__ = (
        enum_check("unit_type", UnitType, "ck_settlement_units_type"),
        CheckConstraint("quantity >= 0", name="ck_settlement_units_quantity"),
        UniqueConstraint("settlement_id", "unit_type", name="uq_settlement_units_type"),
    )

    def __repr__(self) -> str:
        return f"<SettlementUnits(settlement={self.settlement_id}, {self.unit_type}x{self.quantity})>"


class UnitQueue(Base):
    """A batch of units in training."""

    __tablename__ = "unit_queues"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    settlement_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("settlements.id"), nullable=False
    )
    unit_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    started_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    finish_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    settlement: Mapped["Settlement"] = relationship("Settlement", back_populates="unit_queues")

    __table_args__ = (
        enum_check("unit_type", UnitType, "ck_unit_queues_type"),
        CheckConstraint("quantity > 0", name="ck_unit_queues_quantity"),
        Index("idx_unit_queues_finish", "finish_at"),
    )

    def __repr__(self) -> str:
        return f"<UnitQueue(id={self.id}, {self.unit_type}x{self.quantity}, finish={self.finish_at})>"
