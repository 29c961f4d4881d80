"""Research progress models.

A player holds at most one ``ActiveResearch`` row; the unique constraint on
``player_id`` backs the single-research rule enforced by the research
service.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from sovereign.domain.enums import ResearchTrack

from .base import Base, UTCDateTime, enum_check

if TYPE_CHECKING:
    from .player import Player


class ResearchState(Base):
    """Completed level of one research track."""

    __tablename__ = "research_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(Integer, ForeignKey("players.id"), nullable=False)
    track: Mapped[str] = mapped_column(String, nullable=False)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    player: Mapped["Player"] = relationship("Player", back_populates="research_states")

    __table_args__ = (
        enum_check("track", ResearchTrack, "ck_research_states_track"),
        CheckConstraint("level >= 0", name="ck_research_states_level"),
        UniqueConstraint("player_id", "track", name="uq_research_states_player_track"),
    )

    def __repr__(self) -> str:
        return f"<ResearchState(player={self.player_id}, {self.track}={self.level})>"


class ActiveResearch(Base):
    __tablename__ = "active_research"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("players.id"), nullable=False, unique=True
    )
    track: Mapped[str] = mapped_column(String, nullable=False)
    started_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    finish_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    player: Mapped["Player"] = relationship("Player", back_populates="active_research")

    __table_args__ = (enum_check("track", ResearchTrack, "ck_active_research_track"),)

    def __repr__(self) -> str:
        return f"<ActiveResearch(player={self.player_id}, track='{self.track}')>"
