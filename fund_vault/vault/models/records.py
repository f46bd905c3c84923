"""
Fund Vault Record Models.

Registry entries, redemption requests, planning results and the transaction
model used for atomic operations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple
import uuid

from .events import VaultEvent

if TYPE_CHECKING:
    from ..interfaces import StrategyAdapter
    from .state import VaultSnapshot


class TransactionStatus(Enum):
    """
    Status of an operation transaction.

    Lifecycle: PENDING -> EXECUTING -> COMMITTED or ROLLED_BACK or FAILED
    """

    PENDING = "pending"          # Transaction created, not started
    EXECUTING = "executing"      # Transaction in progress
    COMMITTED = "committed"      # Transaction completed successfully
    ROLLED_BACK = "rolled_back"  # Transaction rolled back
    FAILED = "failed"            # Rollback could not fully compensate


@dataclass(frozen=True)
class StrategyEntry:
    """
    Registered strategy.

    Attributes:
        adapter: External strategy adapter
        name: Adapter name, fetched once at registration
        weight: Relative allocation target (>= 0)
    """

    adapter: "StrategyAdapter"
    name: str
    weight: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"name": self.name, "weight": self.weight}


@dataclass(frozen=True)
class RedemptionRequest:
    """
    Queued redemption.

    Attributes:
        request_id: Stable handle, unaffected by queue compaction
        requester: Account that receives the payout
        shares: Locked shares; 0 once settled (tombstone)
    """

    request_id: int
    requester: str
    shares: int

    @property
    def is_tombstoned(self) -> bool:
        return self.shares == 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "request_id": self.request_id,
            "requester": self.requester,
            "shares": self.shares,
        }


@dataclass(frozen=True)
class FeeQuote:
    """Outcome of a fee accrual computed at the current fund value."""

    current_value: int
    principal_after_fees: int
    new_gains: int
    fee_value: int
    shares_to_mint: int

    @property
    def has_gains(self) -> bool:
        return self.new_gains > 0


@dataclass(frozen=True)
class RebalanceMove:
    """Single capital movement between idle custody and a strategy."""

    index: int
    amount: int


@dataclass(frozen=True)
class RebalancePlan:
    """
    Capital movements computed by the allocation engine.

    Withdrawals (phase 1) are executed before deposits (phase 2).
    """

    total_capital: int = 0
    targets: Tuple[int, ...] = ()
    withdrawals: Tuple[RebalanceMove, ...] = ()
    deposits: Tuple[RebalanceMove, ...] = ()

    @property
    def total_withdrawn(self) -> int:
        return sum(m.amount for m in self.withdrawals)

    @property
    def total_deposited(self) -> int:
        return sum(m.amount for m in self.deposits)

    @property
    def is_empty(self) -> bool:
        return not self.withdrawals and not self.deposits


@dataclass
class BatchSettlement:
    """
    Result of processing a slice of the redemption queue.

    ``assets_paid`` is the value settled to every listed account, including
    the part held back as unclaimed for ``deferred_accounts``.
    """

    start: int
    end: int
    paid_accounts: List[str] = field(default_factory=list)
    shares_burned: int = 0
    assets_paid: int = 0
    fee_shares_minted: int = 0
    liquidity_sourced: int = 0
    deferred_accounts: List[str] = field(default_factory=list)
    assets_deferred: int = 0

    @property
    def settled_count(self) -> int:
        return len(self.paid_accounts)


@dataclass
class CompensatingAction:
    """
    Journal entry for an external side effect.

    ``undo`` is None for effects that cannot be reversed (payouts).
    """

    description: str
    undo: Optional[Callable[[], None]] = None

    @property
    def reversible(self) -> bool:
        return self.undo is not None


@dataclass
class OperationTransaction:
    """
    Atomic operation on the vault.

    Ensures all-or-nothing semantics: engine state is snapshotted up front,
    external effects are journaled with their compensations, and events are
    only published on commit.

    Attributes:
        transaction_id: Unique transaction identifier
        operation: Public operation name
        status: Current transaction status
        created_at: When transaction was created
        completed_at: When transaction completed (success or failure)
        pre_state_snapshot: Engine state before the operation (for rollback)
        journal: External effects in execution order
        staged_events: Events to publish on commit
        error_message: Error message if rolled back or failed
    """

    operation: str
    pre_state_snapshot: Optional["VaultSnapshot"] = None
    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: TransactionStatus = TransactionStatus.PENDING
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    journal: List[CompensatingAction] = field(default_factory=list)
    staged_events: List[VaultEvent] = field(default_factory=list)
    error_message: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        """Check if transaction is completed (success or failure)."""
        return self.status in (
            TransactionStatus.COMMITTED,
            TransactionStatus.ROLLED_BACK,
            TransactionStatus.FAILED,
        )

    @property
    def is_successful(self) -> bool:
        return self.status == TransactionStatus.COMMITTED

    @property
    def irreversible_effects(self) -> List[str]:
        return [a.description for a in self.journal if not a.reversible]

    def record(self, description: str, undo: Optional[Callable[[], None]]) -> None:
        """Journal an external effect that has just succeeded."""
        self.journal.append(CompensatingAction(description, undo))

    def emit(self, event: VaultEvent) -> None:
        """Stage an event for publication on commit."""
        self.staged_events.append(event)

    def mark_executing(self) -> None:
        self.status = TransactionStatus.EXECUTING

    def mark_committed(self) -> None:
        self.status = TransactionStatus.COMMITTED
        self.completed_at = datetime.now(timezone.utc)

    def mark_rolled_back(self, error: Optional[str] = None) -> None:
        self.status = TransactionStatus.ROLLED_BACK
        self.completed_at = datetime.now(timezone.utc)
        if error:
            self.error_message = error

    def mark_failed(self, error: str) -> None:
        self.status = TransactionStatus.FAILED
        self.completed_at = datetime.now(timezone.utc)
        self.error_message = error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "transaction_id": self.transaction_id,
            "operation": self.operation,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "journal": [a.description for a in self.journal],
            "events": [e.to_dict() for e in self.staged_events],
            "error_message": self.error_message,
        }
