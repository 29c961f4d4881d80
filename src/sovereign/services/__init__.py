"""Service layer for Sovereign.

Services own transactions: each public function either commits its work or
rolls the session back and re-raises.

Architecture:
    - tick_service: per-player world tick and the world-wide batch
    - arrival_service: army arrival transitions inside a tick
    - army_service: raising, marching, recalling armies and scout missions
    - research_service: starting research
    - training_service: queueing unit training
    - defense_service: building and upgrading defenses
    - event_log: recording and reading game events
"""

from sovereign.services.army_service import create_army, dispatch_scout, march_army, recall_army
from sovereign.services.defense_service import start_defense_upgrade
from sovereign.services.event_log import list_events, mark_events_read, parse_event_payload
from sovereign.services.research_service import start_research
from sovereign.services.tick_service import process_player_tick, process_world_tick
from sovereign.services.training_service import queue_training

__all__ = [
    "create_army",
    "dispatch_scout",
    "list_events",
    "mark_events_read",
    "march_army",
    "parse_event_payload",
    "process_player_tick",
    "process_world_tick",
    "queue_training",
    "recall_army",
    "start_defense_upgrade",
    "start_research",
]
