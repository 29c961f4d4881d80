"""Integration tests for the world tick batch.

Players are ticked one after another, each in a session of its own, against
a shared in-memory database.
"""

import logging
import random
from datetime import timedelta

from sqlalchemy import select

from sovereign.domain.enums import ArmyStatus, UnitType
from sovereign.models import Army, GameEvent, PlayerResources
from sovereign.services import tick_service
from sovereign.services.tick_service import process_world_tick


def _resources(session_factory, player_id):
    with session_factory() as session:
        return session.execute(
            select(PlayerResources).where(PlayerResources.player_id == player_id)
        ).scalar_one()


class TestWorldTick:
    """Tests for batch ticking and failure isolation."""

    def test_counts_ticked_and_skipped_players(self, session_factory, world, now):
        """Test that debounced players are counted as skipped."""
        alice = world.player("alice")
        world.player("bob", last_tick_at=now - timedelta(seconds=1))

        summary = process_world_tick(session_factory, now=now, rng=random.Random(3))

        assert summary == {"players": 2, "ticked": 1, "skipped": 1, "failed": []}
        assert _resources(session_factory, alice.id).last_tick_at == now

    def test_failed_player_is_rolled_back_and_skipped(
        self, session_factory, world, now, monkeypatch, caplog
    ):
        """Test that one player's failure neither aborts the batch nor leaks writes."""
        alice = world.player("alice")
        carol = world.player("carol", ore=10.0)
        dave = world.player("dave")
        real_run_tick = tick_service._run_tick

        def flaky_run_tick(player_id, session, *args):
            summary = real_run_tick(player_id, session, *args)
            if player_id == carol.id:
                raise RuntimeError("disk on fire")
            return summary

        monkeypatch.setattr(tick_service, "_run_tick", flaky_run_tick)

        with caplog.at_level(logging.ERROR, logger="sovereign.services.tick_service"):
            summary = process_world_tick(session_factory, now=now, rng=random.Random(3))

        assert summary["ticked"] == 2
        assert summary["failed"] == [carol.id]
        assert f"World tick failed for player {carol.id}" in caplog.text

        carol_resources = _resources(session_factory, carol.id)
        assert carol_resources.ore == 10.0
        assert carol_resources.last_tick_at == now - timedelta(seconds=30)
        assert _resources(session_factory, alice.id).last_tick_at == now
        assert _resources(session_factory, dave.id).last_tick_at == now

    def test_pvp_raid_across_players(self, session_factory, world, now):
        """Test that the attacker's tick writes the defender's side of a raid."""
        raider = world.player("raider")
        victim = world.player("victim", ore=2000.0, gold=2000.0)
        camp = world.settlement(raider, name="Camp")
        town = world.settlement(victim, name="Town")
        world.army(raider, camp.tile, town.tile, {UnitType.CAVALRY: 10, UnitType.CARAVAN: 5})

        summary = process_world_tick(session_factory, now=now, rng=random.Random(3))

        assert summary["failed"] == []
        with session_factory() as session:
            types = {
                (event.player_id, event.type)
                for event in session.execute(select(GameEvent)).scalars()
            }
            army = session.execute(select(Army)).scalar_one()
            assert army.status == ArmyStatus.RETURNING

        assert (raider.id, "BATTLE_WON") in types
        assert (victim.id, "SETTLEMENT_ATTACKED") in types
        # 15% of the victim's ore and gold; one tick of the victim's own production on top
        assert _resources(session_factory, victim.id).ore == 1700.0 + 5.0
        assert _resources(session_factory, raider.id).gold == 300.0 + 2.0
