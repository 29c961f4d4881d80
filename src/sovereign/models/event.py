"""Game event model for the Sovereign game system.

Events form an append-only log addressed to one player.  ``data`` holds the
JSON dump of one of the payload models in :mod:`sovereign.schemas.events`.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sovereign.domain.enums import EventType

from .base import Base, UTCDateTime, enum_check, utc_now

if TYPE_CHECKING:
    from .player import Player


class GameEvent(Base):
    """A notification-worthy occurrence.

    Attributes:
        id: Primary key
        player_id: Recipient player
        type: Event type (see :class:`~sovereign.domain.enums.EventType`)
        message: Human-readable summary
        data: Typed payload as JSON
        read: Whether the player has seen it
        created_at: Tick time at which the event was produced
    """

    __tablename__ = "game_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    type: Mapped[str] = mapped_column(String, nullable=False)
    message: Mapped[str] = mapped_column(String, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utc_now)

    player: Mapped["Player"] = relationship("Player", back_populates="events")

    __table_args__ = (
        enum_check("type", EventType, "ck_game_events_type"),
        Index("idx_game_events_player_created", "player_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<GameEvent(id={self.id}, player={self.player_id}, type='{self.type}')>"
