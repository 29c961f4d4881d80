"""Pytest configuration and shared fixtures.

This adds the `src/` directory to `sys.path` so tests can import the
`sovereign` package without requiring an editable install in CI, and
provides an in-memory SQLite database plus a small builder for game worlds.
"""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from sovereign.domain.enums import ArmyStatus  # noqa: E402
from sovereign.models import (  # noqa: E402
    Army,
    ArmyUnit,
    Base,
    Building,
    Defense,
    MapTile,
    NPCFaction,
    Player,
    PlayerResources,
    Settlement,
    SettlementUnits,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine():
    """Create an in-memory SQLite database shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory configured like the production one."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def session(session_factory):
    """Create database session."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


class WorldBuilder:
    """Creates committed game rows with sensible defaults."""

    def __init__(self, session):
        self.session = session
        self._tiles = 0

    def player(self, username="alice", *, last_tick_at=None, **resources):
        player = Player(username=username)
        player.resources = PlayerResources(
            last_tick_at=last_tick_at or NOW - timedelta(seconds=30),
            **{"ore": 0.0, "provisions": 0.0, "gold": 0.0, "lumber": 0.0, "mana": 0.0, **resources},
        )
        self.session.add(player)
        self.session.commit()
        return player

    def tile(self, x=None, y=0, *, faction=None, is_hideout=False):
        if x is None:
            x = self._tiles
        self._tiles += 1
        tile = MapTile(x=x, y=y, is_hideout=is_hideout, npc_faction=faction)
        self.session.add(tile)
        self.session.commit()
        return tile

    def faction(self, name="Red Hand", *, strength=1, aggression_level=0):
        faction = NPCFaction(name=name, strength=strength, aggression_level=aggression_level)
        self.session.add(faction)
        self.session.commit()
        return faction

    def settlement(
        self,
        player,
        tile=None,
        *,
        name="Home",
        buildings=None,
        units=None,
        defenses=None,
    ):
        settlement = Settlement(player=player, tile=tile or self.tile(), name=name)
        for kind, level in (buildings or {}).items():
            settlement.buildings.append(Building(type=str(kind), level=level, is_built=level > 0))
        for unit_type, quantity in (units or {}).items():
            settlement.units.append(SettlementUnits(unit_type=str(unit_type), quantity=quantity))
        for kind, level in (defenses or {}).items():
            settlement.defenses.append(Defense(type=str(kind), level=level))
        self.session.add(settlement)
        self.session.commit()
        return settlement

    def army(
        self,
        player,
        from_tile,
        to_tile=None,
        units=None,
        *,
        name="First Legion",
        status=ArmyStatus.MARCHING,
        departed_at=None,
        arrives_at=None,
        provisions=0.0,
    ):
        army = Army(
            player=player,
            name=name,
            status=str(status),
            from_tile=from_tile,
            to_tile=to_tile,
            departed_at=departed_at or NOW - timedelta(minutes=10),
            arrives_at=arrives_at or NOW - timedelta(seconds=1),
            provisions=provisions,
        )
        for unit_type, quantity in (units or {}).items():
            army.units.append(ArmyUnit(unit_type=str(unit_type), quantity=quantity))
        self.session.add(army)
        self.session.commit()
        return army


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    """Point the global settings and engine at a fresh SQLite file."""
    from sovereign.config import get_settings
    from sovereign.database import dispose_engine

    url = f"sqlite:///{tmp_path / 'sovereign.db'}"
    monkeypatch.setenv("SOVEREIGN_DATABASE_URL", url)
    get_settings.cache_clear()
    dispose_engine()
    yield url
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture
def now():
    """Fixed tick time; builder defaults are relative to it."""
    return NOW


@pytest.fixture
def world(session):
    """Builder for players, tiles, settlements and armies."""
    return WorldBuilder(session)
