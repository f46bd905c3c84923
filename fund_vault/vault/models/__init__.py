"""
Fund Vault Models.

Data models for vault state, records and audit events.
"""

from .events import (
    CapitalDeployedEvent,
    ConfigurationChangedEvent,
    DepositEvent,
    PayoutClaimedEvent,
    PayoutDeferredEvent,
    ProtocolFeesCollectedEvent,
    RedemptionProcessedEvent,
    RedemptionQueueTrimmedEvent,
    RedemptionRequestedEvent,
    StrategiesRemovedEvent,
    StrategyAddedEvent,
    TransferEvent,
    VaultEvent,
    WeightsUpdatedEvent,
)
from .records import (
    BatchSettlement,
    CompensatingAction,
    FeeQuote,
    OperationTransaction,
    RebalanceMove,
    RebalancePlan,
    RedemptionRequest,
    StrategyEntry,
    TransactionStatus,
)
from .state import AccessSnapshot, FundState, QueueSnapshot, VaultSnapshot

__all__ = [
    # Events
    "VaultEvent",
    "DepositEvent",
    "TransferEvent",
    "RedemptionRequestedEvent",
    "RedemptionProcessedEvent",
    "RedemptionQueueTrimmedEvent",
    "PayoutDeferredEvent",
    "PayoutClaimedEvent",
    "ProtocolFeesCollectedEvent",
    "StrategyAddedEvent",
    "StrategiesRemovedEvent",
    "WeightsUpdatedEvent",
    "CapitalDeployedEvent",
    "ConfigurationChangedEvent",
    # Records
    "StrategyEntry",
    "RedemptionRequest",
    "FeeQuote",
    "RebalanceMove",
    "RebalancePlan",
    "BatchSettlement",
    "CompensatingAction",
    "OperationTransaction",
    "TransactionStatus",
    # State
    "FundState",
    "AccessSnapshot",
    "QueueSnapshot",
    "VaultSnapshot",
]
