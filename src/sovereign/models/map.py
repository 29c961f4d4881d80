"""Map tile and NPC faction models.

A tile is hostile when it hosts an NPC faction or another player's
settlement.  Hideouts are NPC strongholds with walls and a larger garrison.
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sovereign.domain.npc import FactionProfile

from .base import Base

if TYPE_CHECKING:
    from .settlement import Settlement


class NPCFaction(Base):
    """A non-player faction.

    Attributes:
        id: Primary key
        name: Faction name shown in scout reports
        strength: Scalar that drives garrison size and loot
        aggression_level: Scales the chance of intercepting scouts
    """

    __tablename__ = "npc_factions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    strength: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    aggression_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    tiles: Mapped[list["MapTile"]] = relationship("MapTile", back_populates="npc_faction")

    __table_args__ = (
        CheckConstraint("strength >= 0", name="ck_npc_factions_strength"),
        CheckConstraint("aggression_level >= 0", name="ck_npc_factions_aggression"),
    )

    def profile(self) -> FactionProfile:
        return FactionProfile(
            strength=self.strength, aggression_level=self.aggression_level, name=self.name
        )

    def __repr__(self) -> str:
        return f"<NPCFaction(id={self.id}, name='{self.name}', strength={self.strength})>"


class MapTile(Base):
    __tablename__ = "map_tiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    x: Mapped[int] = mapped_column(Integer, nullable=False)
    y: Mapped[int] = mapped_column(Integer, nullable=False)
    is_hideout: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    npc_faction_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("npc_factions.id"), nullable=True
    )

    npc_faction: Mapped[Optional["NPCFaction"]] = relationship(
        "NPCFaction", back_populates="tiles"
    )
    settlement: Mapped[Optional["Settlement"]] = relationship(
        "Settlement", back_populates="tile", uselist=False
    )

    __table_args__ = (UniqueConstraint("x", "y", name="uq_map_tiles_xy"),)

    def __repr__(self) -> str:
        return f"<MapTile(id={self.id}, x={self.x}, y={self.y})>"
