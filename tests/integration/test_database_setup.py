"""Integration tests for database setup.

Tests table creation through ``init_db`` and through the alembic migration
chain, against a throwaway SQLite file.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from sovereign.database import (
    check_database_health,
    get_table_names,
    init_db,
)
from sovereign.models import Base

EXPECTED_TABLES = {
    "active_research",
    "armies",
    "army_units",
    "buildings",
    "defenses",
    "game_events",
    "map_tiles",
    "npc_factions",
    "player_resources",
    "players",
    "research_states",
    "settlement_units",
    "settlements",
    "unit_queues",
}


@pytest.fixture(scope="module")
def project_root():
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent


class TestInitDb:
    """Tests for direct table creation."""

    def test_all_tables_created(self, database_url):  # noqa: ARG002
        """Test that init_db creates every model table."""
        init_db()

        assert set(get_table_names()) == EXPECTED_TABLES
        assert set(Base.metadata.tables) == EXPECTED_TABLES

    def test_database_health_check(self, database_url):  # noqa: ARG002
        """Test database health check function."""
        assert check_database_health() is True


class TestMigrations:
    """Tests for the alembic migration chain."""

    def test_upgrade_head_matches_models(self, database_url, project_root):
        """Test that migrating an empty database yields the model schema."""
        result = subprocess.run(
            [sys.executable, "-m", "alembic", "upgrade", "head"],
            check=False,
            cwd=project_root,
            capture_output=True,
            text=True,
            env={**os.environ, "SOVEREIGN_DATABASE_URL": database_url},
        )
        assert result.returncode == 0, result.stderr

        engine = create_engine(database_url)
        try:
            inspector = inspect(engine)
            tables = set(inspector.get_table_names())
            assert tables == EXPECTED_TABLES | {"alembic_version"}

            for name, table in Base.metadata.tables.items():
                migrated = {column["name"] for column in inspector.get_columns(name)}
                assert migrated == set(table.columns.keys()), name
        finally:
            engine.dispose()

    def test_downgrade_base_drops_everything(self, database_url, project_root):
        """Test that the initial migration reverses cleanly."""
        env = {**os.environ, "SOVEREIGN_DATABASE_URL": database_url}
        for target in ("upgrade head", "downgrade base"):
            result = subprocess.run(
                [sys.executable, "-m", "alembic", *target.split()],
                check=False,
                cwd=project_root,
                capture_output=True,
                text=True,
                env=env,
            )
            assert result.returncode == 0, result.stderr

        engine = create_engine(database_url)
        try:
            assert set(inspect(engine).get_table_names()) == {"alembic_version"}
        finally:
            engine.dispose()
