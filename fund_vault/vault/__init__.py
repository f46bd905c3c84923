"""
Fund Vault Module.

Accounting and capital-allocation engine of a pooled investment fund.
Tracks participant ownership as shares, allocates deposited capital across
strategy adapters by weight, settles queued redemptions in batches and
accrues a performance fee on gains.

Includes:
- FundVault: Aggregate exposing every public operation
- StrategyRegistry / AllocationEngine: Weighted capital deployment
- RedemptionQueue / RedemptionProcessor: Batch settlement with liquidity cascade
- TransactionManager: Atomic operations under a reentrancy guard
"""

from .core.access import AccessRegistry, Capability
from .core.allocator import AllocationEngine, plan_rebalance
from .core.fees import FeeAccrual
from .core.ledger import CapitalLedger, ShareAccounting
from .core.redemption import RedemptionProcessor, RedemptionQueue, plan_liquidity
from .core.registry import StrategyRegistry
from .core.transaction import ReentrancyGuard, TransactionManager
from .interfaces import AssetToken, ShareLedger, StrategyAdapter
from .manager import FundVault
from .models.events import (
    CapitalDeployedEvent,
    ConfigurationChangedEvent,
    DepositEvent,
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
from .models.records import (
    BatchSettlement,
    FeeQuote,
    OperationTransaction,
    RebalancePlan,
    RedemptionRequest,
    StrategyEntry,
    TransactionStatus,
)

__all__ = [
    # Vault
    "FundVault",
    # Interfaces
    "AssetToken",
    "ShareLedger",
    "StrategyAdapter",
    # Core
    "AccessRegistry",
    "Capability",
    "AllocationEngine",
    "plan_rebalance",
    "CapitalLedger",
    "ShareAccounting",
    "FeeAccrual",
    "RedemptionQueue",
    "RedemptionProcessor",
    "plan_liquidity",
    "StrategyRegistry",
    "ReentrancyGuard",
    "TransactionManager",
    # Events
    "VaultEvent",
    "DepositEvent",
    "TransferEvent",
    "RedemptionRequestedEvent",
    "RedemptionProcessedEvent",
    "RedemptionQueueTrimmedEvent",
    "ProtocolFeesCollectedEvent",
    "StrategyAddedEvent",
    "StrategiesRemovedEvent",
    "WeightsUpdatedEvent",
    "CapitalDeployedEvent",
    "ConfigurationChangedEvent",
    # Records
    "BatchSettlement",
    "FeeQuote",
    "OperationTransaction",
    "RebalancePlan",
    "RedemptionRequest",
    "StrategyEntry",
    "TransactionStatus",
]
