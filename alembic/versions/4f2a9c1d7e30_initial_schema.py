"""Initial schema

Revision ID: 4f2a9c1d7e30
Revises:
Create Date: 2026-10-18 09:12:44.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4f2a9c1d7e30'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UNIT_TYPES = ('INFANTRY', 'ARCHER', 'HEAVY_INFANTRY', 'WARDEN', 'CARAVAN', 'SCOUT', 'CAVALRY')
DEFENSE_TYPES = ('WALLS', 'GUARD_TOWER', 'WATCH_TOWER', 'BALLISTA')
BUILDING_TYPES = ('CITADEL', 'FARM', 'MINE', 'SAWMILL', 'OBSERVATORY', 'BARRACKS', 'STORAGE')
ARMY_STATUSES = ('IDLE', 'MARCHING', 'RETURNING')
RESEARCH_TRACKS = (
    'BALLISTICS', 'DEFENSE_TRACK', 'STRATEGY', 'CROP_MASTERY',
    'ANIMAL_HUSBANDRY', 'FORESTRY', 'HOLY', 'NECROTIC',
)
EVENT_TYPES = (
    'RESEARCH_COMPLETE', 'TRAINING_COMPLETE', 'ARMY_RETURNED', 'ARMY_ARRIVED',
    'SCOUT_LOST', 'SCOUT_REPORT', 'BATTLE_WON', 'BATTLE_LOST',
    'SETTLEMENT_ATTACKED', 'SETTLEMENT_DEFENDED',
)


def _in(column: str, values: tuple[str, ...], name: str) -> sa.CheckConstraint:
    allowed = ", ".join(f"'{value}'" for value in values)
    return sa.CheckConstraint(f"{column} IN ({allowed})", name=name)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
    )
    op.create_table(
        'npc_factions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('strength', sa.Integer(), nullable=False),
        sa.Column('aggression_level', sa.Integer(), nullable=False),
        sa.CheckConstraint('strength >= 0', name='ck_npc_factions_strength'),
        sa.CheckConstraint('aggression_level >= 0', name='ck_npc_factions_aggression'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'map_tiles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('x', sa.Integer(), nullable=False),
        sa.Column('y', sa.Integer(), nullable=False),
        sa.Column('is_hideout', sa.Boolean(), nullable=False),
        sa.Column('npc_faction_id', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['npc_faction_id'], ['npc_factions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('x', 'y', name='uq_map_tiles_xy'),
    )
    op.create_table(
        'player_resources',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('ore', sa.Float(), nullable=False),
        sa.Column('provisions', sa.Float(), nullable=False),
        sa.Column('gold', sa.Float(), nullable=False),
        sa.Column('lumber', sa.Float(), nullable=False),
        sa.Column('mana', sa.Float(), nullable=False),
        sa.Column('ore_cap', sa.Float(), nullable=False),
        sa.Column('provisions_cap', sa.Float(), nullable=False),
        sa.Column('gold_cap', sa.Float(), nullable=False),
        sa.Column('lumber_cap', sa.Float(), nullable=False),
        sa.Column('mana_cap', sa.Float(), nullable=False),
        sa.Column('last_tick_at', sa.DateTime(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('ore >= 0', name='ck_player_resources_ore'),
        sa.CheckConstraint('provisions >= 0', name='ck_player_resources_provisions'),
        sa.CheckConstraint('gold >= 0', name='ck_player_resources_gold'),
        sa.CheckConstraint('lumber >= 0', name='ck_player_resources_lumber'),
        sa.CheckConstraint('mana >= 0', name='ck_player_resources_mana'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('player_id'),
    )
    op.create_table(
        'settlements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('tile_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('protected_until', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['player_id'], ['players.id']),
        sa.ForeignKeyConstraint(['tile_id'], ['map_tiles.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('tile_id'),
    )
    op.create_index('idx_settlements_player', 'settlements', ['player_id'])
    op.create_table(
        'buildings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('settlement_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('is_built', sa.Boolean(), nullable=False),
        sa.Column('upgrade_started_at', sa.DateTime(), nullable=True),
        sa.Column('upgrade_finish_at', sa.DateTime(), nullable=True),
        _in('type', BUILDING_TYPES, 'ck_buildings_type'),
        sa.CheckConstraint('level >= 0', name='ck_buildings_level'),
        sa.ForeignKeyConstraint(['settlement_id'], ['settlements.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('settlement_id', 'type', name='uq_buildings_settlement_type'),
    )
    op.create_table(
        'defenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('settlement_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('upgrade_started_at', sa.DateTime(), nullable=True),
        sa.Column('upgrade_finish_at', sa.DateTime(), nullable=True),
        _in('type', DEFENSE_TYPES, 'ck_defenses_type'),
        sa.CheckConstraint('level >= 0', name='ck_defenses_level'),
        sa.ForeignKeyConstraint(['settlement_id'], ['settlements.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('settlement_id', 'type', name='uq_defenses_settlement_type'),
    )
    op.create_table(
        'settlement_units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('settlement_id', sa.Integer(), nullable=False),
        sa.Column('unit_type', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _in('unit_type', UNIT_TYPES, 'ck_settlement_units_type'),
        sa.CheckConstraint('quantity >= 0', name='ck_settlement_units_quantity'),
        sa.ForeignKeyConstraint(['settlement_id'], ['settlements.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('settlement_id', 'unit_type', name='uq_settlement_units_type'),
    )
    op.create_table(
        'unit_queues',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('settlement_id', sa.Integer(), nullable=False),
        sa.Column('unit_type', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finish_at', sa.DateTime(), nullable=False),
        _in('unit_type', UNIT_TYPES, 'ck_unit_queues_type'),
        sa.CheckConstraint('quantity > 0', name='ck_unit_queues_quantity'),
        sa.ForeignKeyConstraint(['settlement_id'], ['settlements.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_unit_queues_finish', 'unit_queues', ['finish_at'])
    op.create_table(
        'research_states',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('track', sa.String(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        _in('track', RESEARCH_TRACKS, 'ck_research_states_track'),
        sa.CheckConstraint('level >= 0', name='ck_research_states_level'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('player_id', 'track', name='uq_research_states_player_track'),
    )
    op.create_table(
        'active_research',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('track', sa.String(), nullable=False),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('finish_at', sa.DateTime(), nullable=False),
        _in('track', RESEARCH_TRACKS, 'ck_active_research_track'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('player_id'),
    )
    op.create_table(
        'armies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('from_tile_id', sa.Integer(), nullable=False),
        sa.Column('to_tile_id', sa.Integer(), nullable=True),
        sa.Column('departed_at', sa.DateTime(), nullable=True),
        sa.Column('arrives_at', sa.DateTime(), nullable=True),
        sa.Column('provisions', sa.Float(), nullable=False),
        *_timestamps(),
        _in('status', ARMY_STATUSES, 'ck_armies_status'),
        sa.CheckConstraint('provisions >= 0', name='ck_armies_provisions'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id']),
        sa.ForeignKeyConstraint(['from_tile_id'], ['map_tiles.id']),
        sa.ForeignKeyConstraint(['to_tile_id'], ['map_tiles.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_armies_player', 'armies', ['player_id'])
    op.create_index('idx_armies_status', 'armies', ['status'])
    op.create_table(
        'army_units',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('army_id', sa.Integer(), nullable=False),
        sa.Column('unit_type', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        _in('unit_type', UNIT_TYPES, 'ck_army_units_type'),
        sa.CheckConstraint('quantity >= 0', name='ck_army_units_quantity'),
        sa.ForeignKeyConstraint(['army_id'], ['armies.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('army_id', 'unit_type', name='uq_army_units_type'),
    )
    op.create_table(
        'game_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=False),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        _in('type', EVENT_TYPES, 'ck_game_events_type'),
        sa.ForeignKeyConstraint(['player_id'], ['players.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_game_events_player_created', 'game_events', ['player_id', 'created_at']
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_game_events_player_created', table_name='game_events')
    op.drop_table('game_events')
    op.drop_table('army_units')
    op.drop_index('idx_armies_status', table_name='armies')
    op.drop_index('idx_armies_player', table_name='armies')
    op.drop_table('armies')
    op.drop_table('active_research')
    op.drop_table('research_states')
    op.drop_index('idx_unit_queues_finish', table_name='unit_queues')
    op.drop_table('unit_queues')
    op.drop_table('settlement_units')
    op.drop_table('defenses')
    op.drop_table('buildings')
    op.drop_index('idx_settlements_player', table_name='settlements')
    op.drop_table('settlements')
    op.drop_table('player_resources')
    op.drop_table('map_tiles')
    op.drop_table('npc_factions')
    op.drop_table('players')
