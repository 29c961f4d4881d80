"""Lookups and resource charging shared by the player-command services.

Every helper raises ``ValueError`` with a message fit for the player; the
calling service owns the transaction.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from sovereign.domain.costs import ResourceCost
from sovereign.models import MapTile, PlayerResources, Settlement

_CHARGED_FIELDS = ("ore", "provisions", "gold", "lumber", "mana")


def owned_settlement(session: Session, player_id: int, settlement_id: int) -> Settlement:
    settlement = session.get(Settlement, settlement_id)
    if settlement is None or settlement.player_id != player_id:
        raise ValueError("Settlement not found or not owned by you")
    return settlement


def player_resources(session: Session, player_id: int) -> PlayerResources:
    resources = session.execute(
        select(PlayerResources).where(PlayerResources.player_id == player_id)
    ).scalar_one_or_none()
    if resources is None:
        raise ValueError(f"Player {player_id} has no resources")
    return resources


def get_tile(session: Session, tile_id: int) -> MapTile:
    tile = session.get(MapTile, tile_id)
    if tile is None:
        raise ValueError("Destination tile not found")
    return tile


def charge(resources: PlayerResources, cost: ResourceCost) -> None:
    """Deduct ``cost`` from ``resources``.

    Raises:
        ValueError: Naming every resource that is short; nothing is deducted
    """
    short = [
        f"{name} (need {getattr(cost, name)}, have {int(getattr(resources, name))})"
        for name in _CHARGED_FIELDS
        if getattr(resources, name) < getattr(cost, name)
    ]
    if short:
        raise ValueError("Insufficient resources: " + ", ".join(short))

    for name in _CHARGED_FIELDS:
        setattr(resources, name, getattr(resources, name) - getattr(cost, name))
