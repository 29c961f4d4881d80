"""State shared by the steps of one player tick."""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session

from sovereign.domain.enums import UnitType
from sovereign.domain.rules_config import RulesConfig
from sovereign.models import GameEvent, PlayerResources, Settlement, SettlementUnits
from sovereign.schemas.events import EventPayload
from sovereign.services.event_log import record_event
from sovereign.utils.rng import RandomSource


@dataclass
class TickContext:
    """One tick's session, clock sample and loaded player state.

    ``now`` is sampled once when the tick starts; every "has it finished"
    comparison in the tick uses it.
    """

    session: Session
    player_id: int
    now: datetime
    rng: RandomSource
    rules: RulesConfig
    resources: PlayerResources
    settlements: list[Settlement]
    counters: Counter[str] = field(default_factory=Counter)

    def emit(
        self, payload: EventPayload, message: str, *, player_id: int | None = None
    ) -> GameEvent:
        """Record an event for the ticking player (or ``player_id``) at tick time."""
        self.counters["events_generated"] += 1
        return record_event(
            self.session,
            self.player_id if player_id is None else player_id,
            payload,
            message,
            self.now,
        )

    def settlement_on_tile(self, tile_id: int) -> Settlement | None:
        return next((s for s in self.settlements if s.tile_id == tile_id), None)


def add_to_garrison(settlement: Settlement, unit_type: UnitType | str, quantity: int) -> None:
    """Merge ``quantity`` units into the garrison, creating the row if needed."""
    if quantity <= 0:
        return
    existing = settlement.garrison(unit_type)
    if existing is not None:
        existing.quantity += quantity
    else:
        settlement.units.append(SettlementUnits(unit_type=str(unit_type), quantity=quantity))
