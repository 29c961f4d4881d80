"""Typed payloads stored in ``GameEvent.data``.

Each event type has its own model tagged by a ``type`` literal so stored
JSON can be validated back into the right variant with
:data:`EVENT_PAYLOAD_ADAPTER`.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from sovereign.domain.combat import CombatPhases, Loot, UnitLoss
from sovereign.domain.npc import ScoutEstimate
from sovereign.domain.units import UnitGroup


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class UnitCount(_Payload):
    unit_type: str
    quantity: int = Field(..., ge=0)

    @classmethod
    def many(cls, groups: Iterable[UnitGroup]) -> list["UnitCount"]:
        return [cls(unit_type=str(g.unit_type), quantity=g.quantity) for g in groups]


class UnitLossEntry(_Payload):
    unit_type: str
    lost: int = Field(..., ge=0)

    @classmethod
    def many(cls, losses: Iterable[UnitLoss]) -> list["UnitLossEntry"]:
        return [cls(unit_type=loss.unit_type, lost=loss.lost) for loss in losses]


class LootAmounts(_Payload):
    ore: int = Field(default=0, ge=0)
    provisions: int = Field(default=0, ge=0)
    gold: int = Field(default=0, ge=0)
    lumber: int = Field(default=0, ge=0)

    @classmethod
    def from_loot(cls, loot: Loot) -> "LootAmounts":
        return cls(ore=loot.ore, provisions=loot.provisions, gold=loot.gold, lumber=loot.lumber)


class RangedPhaseReport(_Payload):
    attacker_casualties: list[UnitLossEntry]
    defender_casualties: list[UnitLossEntry]
    guard_tower_damage: float = Field(..., ge=0.0)


class MeleePhaseReport(_Payload):
    attacker_casualties: list[UnitLossEntry]
    defender_casualties: list[UnitLossEntry]
    wall_damage_absorbed: float = Field(..., ge=0.0)


class PhaseReport(_Payload):
    ranged: RangedPhaseReport
    melee: MeleePhaseReport

    @classmethod
    def from_phases(cls, phases: CombatPhases) -> "PhaseReport":
        return cls(
            ranged=RangedPhaseReport(
                attacker_casualties=UnitLossEntry.many(phases.ranged.attacker_casualties),
                defender_casualties=UnitLossEntry.many(phases.ranged.defender_casualties),
                guard_tower_damage=phases.ranged.guard_tower_damage,
            ),
            melee=MeleePhaseReport(
                attacker_casualties=UnitLossEntry.many(phases.melee.attacker_casualties),
                defender_casualties=UnitLossEntry.many(phases.melee.defender_casualties),
                wall_damage_absorbed=phases.melee.wall_damage_absorbed,
            ),
        )


class DefenseLevel(_Payload):
    type: str
    level: int = Field(..., ge=0)


class ResourceGuess(_Payload):
    ore: int
    provisions: int
    gold: int
    lumber: int


# --- Event variants -------------------------------------------------------------


class ResearchCompletePayload(_Payload):
    type: Literal["RESEARCH_COMPLETE"] = "RESEARCH_COMPLETE"
    track: str
    new_level: int = Field(..., ge=1)


class TrainingCompletePayload(_Payload):
    type: Literal["TRAINING_COMPLETE"] = "TRAINING_COMPLETE"
    settlement_id: int
    unit_type: str
    quantity: int = Field(..., gt=0)


class ArmyReturnedPayload(_Payload):
    type: Literal["ARMY_RETURNED"] = "ARMY_RETURNED"
    army_id: int
    army_name: str
    units: list[UnitCount] = Field(default_factory=list)
    reason: str | None = Field(None, description="Set when the army bounced instead of arriving home")


class ArmyArrivedPayload(_Payload):
    type: Literal["ARMY_ARRIVED"] = "ARMY_ARRIVED"
    army_id: int
    army_name: str
    tile_id: int


class ScoutLostPayload(_Payload):
    type: Literal["SCOUT_LOST"] = "SCOUT_LOST"
    army_id: int
    tile_id: int
    faction_name: str


class ScoutReportPayload(_Payload):
    type: Literal["SCOUT_REPORT"] = "SCOUT_REPORT"
    army_id: int
    tile_id: int
    faction_name: str
    estimated_troops: list[UnitCount]
    has_defenses: bool
    resource_estimate: ResourceGuess

    @classmethod
    def from_estimate(cls, army_id: int, tile_id: int, estimate: ScoutEstimate) -> "ScoutReportPayload":
        guess = estimate.resource_estimate
        return cls(
            army_id=army_id,
            tile_id=tile_id,
            faction_name=estimate.faction_name,
            estimated_troops=UnitCount.many(estimate.estimated_troops),
            has_defenses=estimate.has_defenses,
            resource_estimate=ResourceGuess(
                ore=guess.ore, provisions=guess.provisions, gold=guess.gold, lumber=guess.lumber
            ),
        )


class BattleWonPayload(_Payload):
    type: Literal["BATTLE_WON"] = "BATTLE_WON"
    army_id: int
    tile_id: int
    is_pvp: bool = False
    defender_player_id: int | None = None
    attacker_losses: list[UnitLossEntry]
    defender_losses: list[UnitLossEntry]
    loot: LootAmounts
    phases: PhaseReport
    rounds: int = Field(..., ge=0)
    defender_defenses: list[DefenseLevel] = Field(default_factory=list)
    defenses_destroyed: int = Field(default=0, ge=0)


class BattleLostPayload(_Payload):
    type: Literal["BATTLE_LOST"] = "BATTLE_LOST"
    army_id: int
    tile_id: int
    is_pvp: bool = False
    defender_player_id: int | None = None
    attacker_losses: list[UnitLossEntry]
    defender_losses: list[UnitLossEntry]
    phases: PhaseReport
    rounds: int = Field(..., ge=0)


class SettlementAttackedPayload(_Payload):
    type: Literal["SETTLEMENT_ATTACKED"] = "SETTLEMENT_ATTACKED"
    settlement_id: int
    attacker_player_id: int
    attacker_losses: list[UnitLossEntry]
    defender_losses: list[UnitLossEntry]
    loot_stolen: LootAmounts
    defenses_destroyed: int = Field(default=0, ge=0)
    protected_until: datetime


class SettlementDefendedPayload(_Payload):
    type: Literal["SETTLEMENT_DEFENDED"] = "SETTLEMENT_DEFENDED"
    settlement_id: int
    attacker_player_id: int
    attacker_losses: list[UnitLossEntry]
    defender_losses: list[UnitLossEntry]
    attacker_destroyed: bool = True


EventPayload = Annotated[
    ResearchCompletePayload
    | TrainingCompletePayload
    | ArmyReturnedPayload
    | ArmyArrivedPayload
    | ScoutLostPayload
    | ScoutReportPayload
    | BattleWonPayload
    | BattleLostPayload
    | SettlementAttackedPayload
    | SettlementDefendedPayload,
    Field(discriminator="type"),
]

EVENT_PAYLOAD_ADAPTER: TypeAdapter[EventPayload] = TypeAdapter(EventPayload)
