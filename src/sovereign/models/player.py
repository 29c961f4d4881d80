"""Player and resource-pool models.

``PlayerResources.last_tick_at`` is the tick engine's checkpoint: it is
written exactly once per successful tick and only ever moves forward.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sovereign.domain.economy import ResourceStock

from .base import Base, TimestampCreatedMixin, TimestampMixin, UTCDateTime

if TYPE_CHECKING:
    from .army import Army
    from .event import GameEvent
    from .research import ActiveResearch, ResearchState
    from .settlement import Settlement


class Player(Base, TimestampCreatedMixin):
    """A player account.

    Attributes:
        id: Primary key
        username: Unique display name
        resources: The player's single resource pool (absent until provisioned)
    """

    __tablename__ = "players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)

    resources: Mapped[Optional["PlayerResources"]] = relationship(
        "PlayerResources", back_populates="player", uselist=False, cascade="all, delete-orphan"
    )
    settlements: Mapped[list["Settlement"]] = relationship(
        "Settlement", back_populates="player", cascade="all, delete-orphan"
    )
    armies: Mapped[list["Army"]] = relationship(
        "Army", back_populates="player", cascade="all, delete-orphan"
    )
    research_states: Mapped[list["ResearchState"]] = relationship(
        "ResearchState", back_populates="player", cascade="all, delete-orphan"
    )
    active_research: Mapped[Optional["ActiveResearch"]] = relationship(
        "ActiveResearch", back_populates="player", uselist=False, cascade="all, delete-orphan"
    )
    events: Mapped[list["GameEvent"]] = relationship(
        "GameEvent", back_populates="player", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Player(id={self.id}, username='{self.username}')>"


class PlayerResources(Base, TimestampMixin):
    """Stockpiles and storage caps for one player."""

    __tablename__ = "player_resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=False, unique=True
    )

    ore: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    provisions: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    gold: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    lumber: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    mana: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    ore_cap: Mapped[float] = mapped_column(Float, nullable=False, default=5000.0)
    provisions_cap: Mapped[float] = mapped_column(Float, nullable=False, default=5000.0)
    gold_cap: Mapped[float] = mapped_column(Float, nullable=False, default=5000.0)
    lumber_cap: Mapped[float] = mapped_column(Float, nullable=False, default=5000.0)
    mana_cap: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    last_tick_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    player: Mapped["Player"] = relationship("Player", back_populates="resources")

    __table_args__ = (
        CheckConstraint("ore >= 0", name="ck_player_resources_ore"),
        CheckConstraint("provisions >= 0", name="ck_player_resources_provisions"),
        CheckConstraint("gold >= 0", name="ck_player_resources_gold"),
        CheckConstraint("lumber >= 0", name="ck_player_resources_lumber"),
        CheckConstraint("mana >= 0", name="ck_player_resources_mana"),
    )

    def stock(self) -> ResourceStock:
        return ResourceStock(
            ore=self.ore,
            provisions=self.provisions,
            gold=self.gold,
            lumber=self.lumber,
            mana=self.mana,
        )

    def caps(self) -> ResourceStock:
        return ResourceStock(
            ore=self.ore_cap,
            provisions=self.provisions_cap,
            gold=self.gold_cap,
            lumber=self.lumber_cap,
            mana=self.mana_cap,
        )

    def store(self, stock: ResourceStock) -> None:
        """Overwrite the stockpiles with ``stock``."""
        self.ore = stock.ore
        self.provisions = stock.provisions
        self.gold = stock.gold
        self.lumber = stock.lumber
        self.mana = stock.mana

    def __repr__(self) -> str:
        return (
            f"<PlayerResources(player={self.player_id}, ore={self.ore:.0f}, "
            f"provisions={self.provisions:.0f}, gold={self.gold:.0f})>"
        )
