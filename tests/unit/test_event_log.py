"""Unit tests for event payload schemas and the event log."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from sovereign.domain.combat import Loot
from sovereign.domain.enums import EventType, UnitType
from sovereign.domain.npc import ResourceEstimate, ScoutEstimate
from sovereign.domain.units import UnitGroup
from sovereign.schemas.events import (
    EVENT_PAYLOAD_ADAPTER,
    ArmyReturnedPayload,
    LootAmounts,
    ResearchCompletePayload,
    ScoutReportPayload,
    TrainingCompletePayload,
)
from sovereign.services.event_log import (
    list_events,
    mark_events_read,
    parse_event_payload,
    record_event,
)


class TestPayloadSchemas:
    def test_payloads_dispatch_on_type(self):
        samples = {
            EventType.RESEARCH_COMPLETE: {"track": "BALLISTICS", "new_level": 1},
            EventType.TRAINING_COMPLETE: {"settlement_id": 1, "unit_type": "ARCHER", "quantity": 2},
            EventType.ARMY_RETURNED: {"army_id": 1, "army_name": "A"},
            EventType.ARMY_ARRIVED: {"army_id": 1, "army_name": "A", "tile_id": 3},
            EventType.SCOUT_LOST: {"army_id": 1, "tile_id": 3, "faction_name": "X"},
        }
        for event_type, body in samples.items():
            payload = EVENT_PAYLOAD_ADAPTER.validate_python({"type": event_type.value, **body})
            assert payload.type == event_type

    def test_unknown_type_is_rejected(self):
        with pytest.raises(ValidationError):
            EVENT_PAYLOAD_ADAPTER.validate_python({"type": "DRAGON_SIGHTED"})

    def test_extra_fields_are_rejected(self):
        with pytest.raises(ValidationError):
            ResearchCompletePayload(track="HOLY", new_level=1, bonus=True)

    def test_loot_amounts_from_loot(self):
        loot = LootAmounts.from_loot(Loot(ore=1, provisions=2, gold=3, lumber=4))
        assert loot.model_dump() == {"ore": 1, "provisions": 2, "gold": 3, "lumber": 4}

    def test_scout_report_from_estimate(self):
        estimate = ScoutEstimate(
            faction_name="Grey Wolves",
            estimated_troops=(UnitGroup(UnitType.INFANTRY, 11),),
            has_defenses=True,
            resource_estimate=ResourceEstimate(ore=90, provisions=140, gold=55, lumber=70),
        )

        payload = ScoutReportPayload.from_estimate(7, 12, estimate)

        assert payload.estimated_troops[0].unit_type == "INFANTRY"
        assert payload.estimated_troops[0].quantity == 11
        assert payload.resource_estimate.gold == 55
        assert payload.has_defenses is True


class TestEventLog:
    def test_recorded_payload_parses_back(self, session, world, now):
        player = world.player()
        payload = TrainingCompletePayload(settlement_id=4, unit_type="CAVALRY", quantity=3)

        event = record_event(session, player.id, payload, "3x CAVALRY ready.", now)
        session.commit()

        assert event.type == "TRAINING_COMPLETE"
        assert event.read is False
        assert event.data["quantity"] == 3
        assert parse_event_payload(event) == payload

    def test_list_events_newest_first(self, session, world, now):
        player = world.player()
        other = world.player("bob")
        for minutes in (3, 1, 2):
            record_event(
                session,
                player.id,
                ResearchCompletePayload(track="STRATEGY", new_level=minutes),
                "done",
                now - timedelta(minutes=minutes),
            )
        record_event(session, other.id, ArmyReturnedPayload(army_id=1, army_name="B"), "home", now)
        session.commit()

        events = list_events(session, player.id)

        assert [parse_event_payload(e).new_level for e in events] == [1, 2, 3]

    def test_mark_events_read(self, session, world, now):
        player = world.player()
        for level in (1, 2):
            record_event(
                session,
                player.id,
                ResearchCompletePayload(track="HOLY", new_level=level),
                "done",
                now,
            )
        session.commit()

        assert mark_events_read(session, player.id) == 2
        assert list_events(session, player.id, unread_only=True) == []
        assert mark_events_read(session, player.id) == 0
