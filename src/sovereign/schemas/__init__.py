from .events import (
    EVENT_PAYLOAD_ADAPTER,
    ArmyArrivedPayload,
    ArmyReturnedPayload,
    BattleLostPayload,
    BattleWonPayload,
    DefenseLevel,
    EventPayload,
    LootAmounts,
    PhaseReport,
    ResearchCompletePayload,
    ScoutLostPayload,
    ScoutReportPayload,
    SettlementAttackedPayload,
    SettlementDefendedPayload,
    TrainingCompletePayload,
    UnitCount,
    UnitLossEntry,
)

__all__ = [
    "EVENT_PAYLOAD_ADAPTER",
    "ArmyArrivedPayload",
    "ArmyReturnedPayload",
    "BattleLostPayload",
    "BattleWonPayload",
    "DefenseLevel",
    "EventPayload",
    "LootAmounts",
    "PhaseReport",
    "ResearchCompletePayload",
    "ScoutLostPayload",
    "ScoutReportPayload",
    "SettlementAttackedPayload",
    "SettlementDefendedPayload",
    "TrainingCompletePayload",
    "UnitCount",
    "UnitLossEntry",
]
