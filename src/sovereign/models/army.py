"""Army models for the Sovereign game system.

An army is a mobile force detached from a settlement garrison.  Its status
moves ``IDLE -> MARCHING -> RETURNING`` and the row is deleted either when it
arrives home (units merge back into the garrison) or when it is destroyed.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sovereign.domain.enums import ArmyStatus, UnitType
from sovereign.domain.units import UnitGroup

from .base import Base, TimestampMixin, UTCDateTime, enum_check

if TYPE_CHECKING:
    from .map import MapTile
    from .player import Player


class Army(Base, TimestampMixin):
    """A mobile force.

    Attributes:
        id: Primary key
        player_id: Owning player
        name: Display name; scout missions are recognised by name prefix
        status: IDLE, MARCHING or RETURNING
        from_tile_id: Origin tile (the home settlement's tile)
        to_tile_id: Destination tile while marching
        departed_at: Departure time of the current leg
        arrives_at: Arrival time of the current leg
        provisions: Provisions carried
    """

    __tablename__ = "armies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default=ArmyStatus.IDLE.value)
    from_tile_id: Mapped[int] = mapped_column(Integer, ForeignKey("map_tiles.id"), nullable=False)
    to_tile_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("map_tiles.id"), nullable=True
    )
    departed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    arrives_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    provisions: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    player: Mapped["Player"] = relationship("Player", back_populates="armies")
    from_tile: Mapped["MapTile"] = relationship("MapTile", foreign_keys=[from_tile_id])
    to_tile: Mapped[Optional["MapTile"]] = relationship("MapTile", foreign_keys=[to_tile_id])
    units: Mapped[list["ArmyUnit"]] = relationship(
        "ArmyUnit", back_populates="army", cascade="all, delete-orphan"
    )

    __table_args__ = (
        enum_check("status", ArmyStatus, "ck_armies_status"),
        CheckConstraint("provisions >= 0", name="ck_armies_provisions"),
        Index("idx_armies_player", "player_id"),
        Index("idx_armies_status", "status"),
    )

    def unit_groups(self) -> list[UnitGroup]:
        return [UnitGroup(u.unit_type, u.quantity) for u in self.units]

    @property
    def total_units(self) -> int:
        return sum(u.quantity for u in self.units)

    def __repr__(self) -> str:
        return f"<Army(id={self.id}, name='{self.name}', status='{self.status}')>"


class ArmyUnit(Base):
    """Count of one unit type within an army; rows at zero are deleted."""

    __tablename__ = "army_units"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    army_id: Mapped[int] = mapped_column(Integer, ForeignKey("armies.id"), nullable=False)
    unit_type: Mapped[str] = mapped_column(String, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    army: Mapped["Army"] = relationship("Army", back_populates="units")

    __table_args__ = (
        enum_check("unit_type", UnitType, "ck_army_units_type"),
        CheckConstraint("quantity >= 0", name="ck_army_units_quantity"),
        UniqueConstraint("army_id", "unit_type", name="uq_army_units_type"),
    )

    def __repr__(self) -> str:
        return f"<ArmyUnit(army={self.army_id}, {self.unit_type}x{self.quantity})>"
