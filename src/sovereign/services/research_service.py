"""Research Service for Sovereign.

A player researches one track at a time.  Starting research pays the next
level's cost up front; the world tick completes it once ``finish_at`` has
passed.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from sovereign.domain.costs import RESEARCH_COSTS
from sovereign.domain.enums import ARCANA_TRACKS, BuildingType, ResearchTrack
from sovereign.domain.rules_config import DEFAULT_RULES, RulesConfig
from sovereign.models import ActiveResearch, Building, ResearchState, Settlement
from sovereign.services.command_support import charge, player_resources

logger = logging.getLogger(__name__)


def start_research(
    session: Session,
    player_id: int,
    track: ResearchTrack | str,
    now: datetime,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ActiveResearch:
    """Start researching the next level of ``track``.

    Raises:
        ValueError: If the track is unknown, another research is active, the
            track is maxed, an arcana track lacks a built observatory, or
            resources are short
    """
    try:
        try:
            track = ResearchTrack(track)
        except ValueError:
            raise ValueError(f"Invalid research track: {track}") from None

        active = session.execute(
            select(ActiveResearch).where(ActiveResearch.player_id == player_id)
        ).scalar_one_or_none()
        if active is not None:
            raise ValueError("You already have active research. Wait for it to complete.")

        next_level = research_level(session, player_id, track) + 1
        if next_level > rules.economy.max_research_level:
            raise ValueError(f"{track} is already at maximum level")

        if track in ARCANA_TRACKS and not _has_observatory(session, player_id):
            raise ValueError("You must build an Observatory to research arcana tracks")

        cost = RESEARCH_COSTS[track][next_level]
        charge(player_resources(session, player_id), cost)

        research = ActiveResearch(
            player_id=player_id,
            track=track.value,
            started_at=now,
            finish_at=now + timedelta(seconds=cost.time_seconds),
        )
        session.add(research)
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info("Player %s started %s level %d", player_id, track, next_level)
    return research


def research_level(session: Session, player_id: int, track: ResearchTrack) -> int:
    """Completed level of ``track`` (0 when never researched)."""
    level = session.execute(
        select(ResearchState.level).where(
            ResearchState.player_id == player_id, ResearchState.track == track.value
        )
    ).scalar_one_or_none()
    return level or 0


def _has_observatory(session: Session, player_id: int) -> bool:
    found = session.execute(
        select(Building.id)
        .join(Settlement, Building.settlement_id == Settlement.id)
        .where(
            Settlement.player_id == player_id,
            Building.type == BuildingType.OBSERVATORY.value,
            Building.is_built.is_(True),
        )
        .limit(1)
    ).first()
    return found is not None
