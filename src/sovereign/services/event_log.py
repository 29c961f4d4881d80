"""Append-only game event log.

The tick engine writes events and never reads them back within the same
tick; consumers use :func:`parse_event_payload` to get a typed payload.
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from sovereign.models import GameEvent
from sovereign.schemas.events import EVENT_PAYLOAD_ADAPTER, EventPayload


def record_event(
    session: Session,
    player_id: int,
    payload: EventPayload,
    message: str,
    created_at: datetime,
) -> GameEvent:
    """Add a ``GameEvent`` for ``player_id`` to the session (not flushed)."""
    event = GameEvent(
        player_id=player_id,
        type=payload.type,
        message=message,
        data=payload.model_dump(mode="json"),
        read=False,
        created_at=created_at,
    )
    session.add(event)
    return event


def parse_event_payload(event: GameEvent) -> EventPayload:
    """Validate a stored event's data back into its payload model.

    Raises:
        pydantic.ValidationError: If the stored data does not match the event type
    """
    return EVENT_PAYLOAD_ADAPTER.validate_python(event.data)


def list_events(
    session: Session, player_id: int, *, unread_only: bool = False, limit: int = 50
) -> list[GameEvent]:
    """Most recent events for a player, newest first."""
    stmt = select(GameEvent).where(GameEvent.player_id == player_id)
    if unread_only:
        stmt = stmt.where(GameEvent.read.is_(False))
    stmt = stmt.order_by(GameEvent.created_at.desc(), GameEvent.id.desc()).limit(limit)
    return list(session.execute(stmt).scalars().all())


def mark_events_read(session: Session, player_id: int) -> int:
    """Mark all of a player's events as read and return how many changed."""
    events = list_events(session, player_id, unread_only=True, limit=10_000)
    for event in events:
        event.read = True
    session.commit()
    return len(events)
