"""
Fund Vault Core Components.

Custody, strategy registry, allocation, share accounting, redemptions, fees,
access control and atomic transactions.
"""

from .access import AccessCheckResult, AccessRegistry, Capability
from .allocator import AllocationEngine, plan_rebalance
from .custody import Custody
from .fees import FeeAccrual
from .ledger import CapitalLedger, ShareAccounting, require_positive
from .redemption import RedemptionProcessor, RedemptionQueue, plan_liquidity
from .registry import StrategyRegistry
from .transaction import ReentrancyGuard, TransactionManager

__all__ = [
    # Access Control
    "AccessRegistry",
    "AccessCheckResult",
    "Capability",
    # Transactions
    "ReentrancyGuard",
    "TransactionManager",
    # Custody
    "Custody",
    # Strategies
    "StrategyRegistry",
    "AllocationEngine",
    "plan_rebalance",
    # Shares
    "ShareAccounting",
    "CapitalLedger",
    "require_positive",
    # Redemptions
    "RedemptionQueue",
    "RedemptionProcessor",
    "plan_liquidity",
    # Fees
    "FeeAccrual",
]
