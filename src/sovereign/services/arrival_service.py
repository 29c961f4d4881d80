"""Army arrival handling for the world tick.

Every MARCHING or RETURNING army whose ``arrives_at`` has passed goes
through exactly one branch of the transition table:

- RETURNING: units merge into the home garrison and the army is deleted.
- MARCHING scout mission: the scout is lost or files a report and heads home.
- MARCHING onto an NPC tile: battle against the generated garrison.
- MARCHING onto another player's settlement: PvP battle, or a bounce while
  the settlement is protected.
- Anything else: peaceful arrival, the army goes IDLE at its destination.

All combat is resolved through :func:`sovereign.domain.combat.resolve_combat`;
this module only translates results into row changes and events.
"""

import logging
from datetime import timedelta

from sqlalchemy import select

from sovereign.domain.combat import (
    ArmyForCombat,
    CombatResult,
    DefenseStructure,
    UnitLoss,
    resolve_combat,
)
from sovereign.domain.enums import ArmyStatus
from sovereign.domain.loot import compute_pvp_loot
from sovereign.domain.npc import (
    ResourceEstimate,
    ScoutEstimate,
    generate_defenders,
    generate_scout_estimate,
)
from sovereign.domain.units import UnitGroup, carry_capacity
from sovereign.models import Army, MapTile, PlayerResources, Settlement
from sovereign.schemas.events import (
    ArmyArrivedPayload,
    ArmyReturnedPayload,
    BattleLostPayload,
    BattleWonPayload,
    DefenseLevel,
    LootAmounts,
    PhaseReport,
    ScoutLostPayload,
    ScoutReportPayload,
    SettlementAttackedPayload,
    SettlementDefendedPayload,
    UnitCount,
    UnitLossEntry,
)
from sovereign.services.tick_context import TickContext, add_to_garrison
from sovereign.utils.rng import roll_below

logger = logging.getLogger(__name__)

PROTECTION_ACTIVE = "PROTECTION_ACTIVE"


def process_arrivals(ctx: TickContext, armies: list[Army]) -> None:
    """Resolve every arrived army in ``armies``; IDLE armies are skipped."""
    for army in armies:
        if army.status not in (ArmyStatus.MARCHING, ArmyStatus.RETURNING):
            continue
        if army.arrives_at is None or army.arrives_at > ctx.now:
            continue

        ctx.counters["armies_processed"] += 1
        if army.status == ArmyStatus.RETURNING:
            _arrive_home(ctx, army)
            continue

        tile = ctx.session.get(MapTile, army.to_tile_id) if army.to_tile_id is not None else None

        if army.name.startswith(ctx.rules.scout.mission_name_prefix):
            _arrive_scout(ctx, army, tile)
        elif tile is not None and tile.npc_faction is not None:
            _arrive_npc_battle(ctx, army, tile)
        elif (
            tile is not None
            and tile.settlement is not None
            and tile.settlement.player_id != ctx.player_id
        ):
            _arrive_pvp(ctx, army, tile, tile.settlement)
        else:
            _arrive_peacefully(ctx, army)


# --- Branches -------------------------------------------------------------------


def _arrive_home(ctx: TickContext, army: Army) -> None:
    home = ctx.settlement_on_tile(army.from_tile_id)
    returned = [UnitGroup(u.unit_type, u.quantity) for u in army.units if u.quantity > 0]
    if home is not None:
        for group in returned:
            add_to_garrison(home, group.unit_type, group.quantity)
    else:
        logger.warning(
            "Army %s returned to tile %s but player %s has no settlement there; units lost",
            army.id,
            army.from_tile_id,
            ctx.player_id,
        )

    ctx.emit(
        ArmyReturnedPayload(army_id=army.id, army_name=army.name, units=UnitCount.many(returned)),
        f'Army "{army.name}" has returned home.',
    )
    ctx.session.delete(army)


def _arrive_scout(ctx: TickContext, army: Army, tile: MapTile | None) -> None:
    faction = tile.npc_faction if tile is not None else None
    tile_id = army.to_tile_id or 0
    where = _where(tile)

    loss_chance = (
        faction.aggression_level * ctx.rules.scout.loss_chance_per_aggression if faction else 0.0
    )
    if roll_below(ctx.rng, loss_chance):
        ctx.emit(
            ScoutLostPayload(
                army_id=army.id, tile_id=tile_id, faction_name=faction.name if faction else "None"
            ),
            f"Scout mission to {where} was intercepted. The scout was lost.",
        )
        ctx.session.delete(army)
        return

    if faction is not None:
        estimate = generate_scout_estimate(
            faction.profile(), tile.is_hideout, rng=ctx.rng, rules=ctx.rules.npc
        )
        summary = f"{faction.name} forces spotted."
    else:
        estimate = ScoutEstimate(
            faction_name="None",
            estimated_troops=(),
            has_defenses=False,
            resource_estimate=ResourceEstimate(ore=0, provisions=0, gold=0, lumber=0),
        )
        summary = "Area is clear."

    ctx.emit(
        ScoutReportPayload.from_estimate(army.id, tile_id, estimate),
        f"Scout report from {where}: {summary}",
    )
    _send_home(ctx, army)


def _arrive_npc_battle(ctx: TickContext, army: Army, tile: MapTile) -> None:
    if army.total_units <= 0:
        _arrive_peacefully(ctx, army)
        return

    faction = tile.npc_faction
    defenders = generate_defenders(faction.profile(), tile.is_hideout, rules=ctx.rules.npc)
    result = resolve_combat(_attacker_view(army), defenders, rules=ctx.rules.combat)
    ctx.counters["battles_resolved"] += 1
    phases = PhaseReport.from_phases(result.phases)

    if result.attacker_wins:
        _apply_army_losses(ctx, army, result.attacker_losses)
        _credit(ctx.resources, result.loot.ore, result.loot.provisions, result.loot.gold, 0)
        tile.npc_faction_id = None
        tile.npc_faction = None
        defenses = [
            DefenseLevel(type=str(s.type), level=s.level) for s in defenders.defense_structures
        ]
        was_hideout = tile.is_hideout
        tile.is_hideout = False
        _send_home(ctx, army)

        ctx.emit(
            BattleWonPayload(
                army_id=army.id,
                tile_id=tile.id,
                attacker_losses=UnitLossEntry.many(result.attacker_losses),
                defender_losses=UnitLossEntry.many(result.defender_losses),
                loot=LootAmounts.from_loot(result.loot),
                phases=phases,
                rounds=result.rounds,
                defender_defenses=defenses,
            ),
            f'Victory! Army "{army.name}" defeated {faction.name} at {_where(tile)}'
            + (" and razed the hideout." if was_hideout else "."),
        )
        logger.info(
            "Player %s army %s defeated NPC faction %s on tile %s in %d rounds",
            ctx.player_id,
            army.id,
            faction.id,
            tile.id,
            result.rounds,
        )
        return

    ctx.emit(
        BattleLostPayload(
            army_id=army.id,
            tile_id=tile.id,
            attacker_losses=UnitLossEntry.many(result.attacker_losses),
            defender_losses=UnitLossEntry.many(result.defender_losses),
            phases=phases,
            rounds=result.rounds,
        ),
        f'Defeat! Army "{army.name}" was destroyed by {faction.name} at {_where(tile)}.',
    )
    ctx.session.delete(army)


def _arrive_pvp(ctx: TickContext, army: Army, tile: MapTile, target: Settlement) -> None:
    if target.is_protected(ctx.now):
        _send_home(ctx, army)
        ctx.emit(
            ArmyReturnedPayload(army_id=army.id, army_name=army.name, reason=PROTECTION_ACTIVE),
            f'Army "{army.name}" could not attack: the settlement at {_where(tile)} is under '
            "protection. Returning home.",
        )
        return

    if army.total_units <= 0:
        _arrive_peacefully(ctx, army)
        return

    defender_id = target.player_id
    defender_resources = _load_resources(ctx, defender_id)
    standing = [d for d in target.defenses if d.level > 0]
    defender = ArmyForCombat(
        units=tuple(UnitGroup(u.unit_type, u.quantity) for u in target.units if u.quantity > 0),
        provisions=0.0,
        is_defending=True,
        defense_structures=tuple(DefenseStructure(d.type, d.level) for d in standing),
        mana_reserve=defender_resources.mana if defender_resources is not None else 0.0,
    )
    # Carry capacity counts the units that marched in, casualties included.
    capacity = carry_capacity(army.unit_groups())
    result = resolve_combat(_attacker_view(army), defender, rules=ctx.rules.combat)
    ctx.counters["battles_resolved"] += 1
    phases = PhaseReport.from_phases(result.phases)
    attacker_losses = UnitLossEntry.many(result.attacker_losses)
    defender_losses = UnitLossEntry.many(result.defender_losses)

    _apply_garrison_losses(target, result)

    if not result.attacker_wins:
        ctx.emit(
            BattleLostPayload(
                army_id=army.id,
                tile_id=tile.id,
                is_pvp=True,
                defender_player_id=defender_id,
                attacker_losses=attacker_losses,
                defender_losses=defender_losses,
                phases=phases,
                rounds=result.rounds,
            ),
            f'Defeat! Army "{army.name}" was destroyed attacking {_where(tile)}.',
        )
        ctx.emit(
            SettlementDefendedPayload(
                settlement_id=target.id,
                attacker_player_id=ctx.player_id,
                attacker_losses=attacker_losses,
                defender_losses=defender_losses,
            ),
            f"Your settlement at {_where(tile)} successfully repelled an attack!",
            player_id=defender_id,
        )
        ctx.session.delete(army)
        return

    _apply_army_losses(ctx, army, result.attacker_losses)

    for defense in target.defenses:
        defense.level = 0
        defense.upgrade_started_at = None
        defense.upgrade_finish_at = None
    protected_until = ctx.now + ctx.rules.pvp.protection_duration
    target.protected_until = protected_until

    loot = _plunder(ctx, capacity, defender_resources)
    _send_home(ctx, army)

    ctx.emit(
        BattleWonPayload(
            army_id=army.id,
            tile_id=tile.id,
            is_pvp=True,
            defender_player_id=defender_id,
            attacker_losses=attacker_losses,
            defender_losses=defender_losses,
            loot=loot,
            phases=phases,
            rounds=result.rounds,
            defenses_destroyed=len(standing),
        ),
        f'Victory! Army "{army.name}" conquered the settlement at {_where(tile)}.',
    )
    ctx.emit(
        SettlementAttackedPayload(
            settlement_id=target.id,
            attacker_player_id=ctx.player_id,
            attacker_losses=attacker_losses,
            defender_losses=defender_losses,
            loot_stolen=loot,
            defenses_destroyed=len(standing),
            protected_until=protected_until,
        ),
        f"Your settlement at {_where(tile)} was attacked and defeated!",
        player_id=defender_id,
    )
    logger.info(
        "Player %s army %s sacked settlement %s of player %s",
        ctx.player_id,
        army.id,
        target.id,
        defender_id,
    )


def _arrive_peacefully(ctx: TickContext, army: Army) -> None:
    army.status = ArmyStatus.IDLE.value
    ctx.emit(
        ArmyArrivedPayload(army_id=army.id, army_name=army.name, tile_id=army.to_tile_id or 0),
        f'Army "{army.name}" has arrived at its destination.',
    )


# --- Helpers --------------------------------------------------------------------


def _attacker_view(army: Army) -> ArmyForCombat:
    return ArmyForCombat(
        units=tuple(army.unit_groups()),
        provisions=army.provisions,
        is_defending=False,
    )


def _send_home(ctx: TickContext, army: Army) -> None:
    """Flip ``army`` to RETURNING with a trip as long as the outbound one."""
    outbound = timedelta(0)
    if army.departed_at is not None and army.arrives_at is not None:
        outbound = army.arrives_at - army.departed_at
    army.status = ArmyStatus.RETURNING.value
    army.to_tile_id = army.from_tile_id
    army.departed_at = ctx.now
    army.arrives_at = ctx.now + outbound


def _apply_army_losses(ctx: TickContext, army: Army, losses: tuple[UnitLoss, ...]) -> None:
    lost = {loss.unit_type: loss.lost for loss in losses}
    for unit in list(army.units):
        remaining = unit.quantity - lost.get(unit.unit_type, 0)
        if remaining <= 0:
            army.units.remove(unit)
            ctx.session.delete(unit)
        else:
            unit.quantity = remaining


def _apply_garrison_losses(settlement: Settlement, result: CombatResult) -> None:
    # Garrison rows are kept at zero rather than deleted.
    lost = {loss.unit_type: loss.lost for loss in result.defender_losses}
    for unit in settlement.units:
        if unit.unit_type in lost:
            unit.quantity = max(0, unit.quantity - lost[unit.unit_type])


def _plunder(
    ctx: TickContext, capacity: int, defender_resources: PlayerResources | None
) -> LootAmounts:
    if defender_resources is None:
        return LootAmounts()
    loot = compute_pvp_loot(defender_resources.stock(), capacity, ctx.rules.pvp.loot_percent)
    if loot.is_empty():
        return LootAmounts()

    defender_resources.ore = max(0.0, defender_resources.ore - loot.ore)
    defender_resources.provisions = max(0.0, defender_resources.provisions - loot.provisions)
    defender_resources.gold = max(0.0, defender_resources.gold - loot.gold)
    defender_resources.lumber = max(0.0, defender_resources.lumber - loot.lumber)
    _credit(ctx.resources, loot.ore, loot.provisions, loot.gold, loot.lumber)
    return LootAmounts.from_loot(loot)


def _credit(
    resources: PlayerResources, ore: float, provisions: float, gold: float, lumber: float
) -> None:
    # Loot is not capped by storage.
    resources.ore += ore
    resources.provisions += provisions
    resources.gold += gold
    resources.lumber += lumber


def _load_resources(ctx: TickContext, player_id: int) -> PlayerResources | None:
    return ctx.session.execute(
        select(PlayerResources).where(PlayerResources.player_id == player_id)
    ).scalar_one_or_none()


def _where(tile: MapTile | None) -> str:
    if tile is None:
        return "(?, ?)"
    return f"({tile.x}, {tile.y})"
