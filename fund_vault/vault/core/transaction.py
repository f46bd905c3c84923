"""
Atomic Operation Manager.

Provides transaction semantics for vault operations with automatic rollback
on failure, and the reentrancy guard held for each operation's full duration.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

from fund_vault.core import (
    ExternalCallError,
    FundVaultError,
    ReentrancyDetectedError,
    clear_operation_context,
    get_audit_logger,
    get_logger,
    get_security_logger,
    set_operation_context,
)

from ..models.events import ConfigurationChangedEvent, VaultEvent
from ..models.records import OperationTransaction, TransactionStatus
from ..models.state import VaultSnapshot

logger = get_logger(__name__)


class ReentrancyGuard:
    """
    Scoped mutual-exclusion flag.

    Held from the start of a guarded operation until it has committed or
    rolled back; released on every exit path.
    """

    def __init__(self) -> None:
        self._active: Optional[str] = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    @property
    def active_operation(self) -> Optional[str]:
        return self._active

    def check(self, attempted: str) -> None:
        """
        Reject ``attempted`` while an operation holds the guard.

        Raises:
            ReentrancyDetectedError: If the guard is held
        """
        if self._active is not None:
            get_security_logger().reentrancy_rejected(attempted, self._active)
            raise ReentrancyDetectedError(
                f"{attempted} rejected while {self._active} is in progress",
                details={"attempted": attempted, "active": self._active},
            )

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        self.check(operation)
        self._active = operation
        try:
            yield
        finally:
            self._active = None


class TransactionManager:
    """
    Runs vault operations atomically.

    Provides transaction-like semantics:
    - Begin: Snapshot engine state
    - Execute: Perform the operation, journaling external effects
    - Commit: Publish staged events
    - Rollback: Run compensations in reverse, restore the snapshot

    Example:
        >>> with manager.atomic("deposit") as tx:
        ...     custody.pull(payer, amount, tx)
        ...     tx.emit(DepositEvent(...))
    """

    def __init__(
        self,
        create_snapshot: Callable[[], VaultSnapshot],
        restore_snapshot: Callable[[VaultSnapshot], None],
        publish: Callable[[VaultEvent], None],
        max_history: int = 100,
    ):
        """
        Initialize TransactionManager.

        Args:
            create_snapshot: Captures all engine state
            restore_snapshot: Restores engine state from a snapshot
            publish: Receives each event of a committed transaction
            max_history: Completed transactions kept for inspection
        """
        self._create_snapshot = create_snapshot
        self._restore_snapshot = restore_snapshot
        self._publish = publish
        self._guard = ReentrancyGuard()
        self._current: Optional[OperationTransaction] = None
        self._history: List[OperationTransaction] = []
        self._max_history = max_history
        self._audit = get_audit_logger()

    @property
    def guard(self) -> ReentrancyGuard:
        return self._guard

    @property
    def current(self) -> Optional[OperationTransaction]:
        return self._current

    @contextmanager
    def atomic(self, operation: str) -> Iterator[OperationTransaction]:
        """
        Run the enclosed block as one atomic operation.

        Taxonomy errors propagate unchanged after rollback; anything else
        raised by a collaborator is wrapped in ExternalCallError.

        Raises:
            ReentrancyDetectedError: If another operation is in progress
        """
        with self._guard.hold(operation):
            tx = self.begin(operation)
            try:
                yield tx
            except FundVaultError as e:
                self.rollback(tx, str(e))
                raise
            except Exception as e:
                self.rollback(tx, f"{type(e).__name__}: {e}")
                raise ExternalCallError(
                    f"{operation} aborted by external call failure: {e}",
                    details={"cause": type(e).__name__},
                ) from e
            else:
                self.commit(tx)
            finally:
                self._current = None
                clear_operation_context()

    def begin(self, operation: str) -> OperationTransaction:
        """Begin a new transaction, snapshotting engine state."""
        tx = OperationTransaction(
            operation=operation,
            pre_state_snapshot=self._create_snapshot(),
        )
        tx.mark_executing()
        self._current = tx
        set_operation_context(correlation_id=tx.transaction_id, operation=operation)
        logger.debug(f"Transaction {tx.transaction_id[:8]} started: {operation}")
        return tx

    def commit(self, tx: OperationTransaction) -> OperationTransaction:
        """Commit a transaction and publish its staged events."""
        tx.mark_committed()
        for event in tx.staged_events:
            self._publish(event)
            if isinstance(event, ConfigurationChangedEvent):
                self._audit.config_changed(
                    event.key, event.old_value, event.new_value, changed_by=event.changed_by
                )
            else:
                self._audit.record(event.event_type, event.to_dict())
        self._archive(tx)

        logger.info(
            f"Transaction {tx.transaction_id[:8]} committed: {tx.operation} "
            f"({len(tx.journal)} external effects, {len(tx.staged_events)} events)"
        )
        return tx

    def rollback(self, tx: OperationTransaction, reason: str) -> OperationTransaction:
        """
        Roll back a transaction, restoring previous state.

        Compensations run newest first. A compensation that raises is logged
        and marks the transaction FAILED; the remaining compensations and the
        state restore still run.
        """
        logger.warning(f"Rolling back transaction {tx.transaction_id[:8]} ({tx.operation}): {reason}")

        compensation_errors: List[str] = []
        for action in reversed(tx.journal):
            if not action.reversible:
                continue
            try:
                action.undo()
            except Exception as e:
                logger.error(f"Compensation failed for '{action.description}': {e}")
                self._audit.compensation_failed(
                    tx.operation, tx.transaction_id, action.description, str(e)
                )
                compensation_errors.append(f"{action.description}: {e}")

        if tx.pre_state_snapshot is not None:
            self._restore_snapshot(tx.pre_state_snapshot)

        irreversible = tx.irreversible_effects
        if irreversible:
            logger.critical(
                f"Transaction {tx.transaction_id[:8]} rolled back after irreversible effects: "
                f"{irreversible}"
            )
            self._audit.irreversible_effects(tx.operation, tx.transaction_id, irreversible)

        if compensation_errors:
            tx.mark_failed(f"{reason}; compensation errors: {compensation_errors}")
        else:
            tx.mark_rolled_back(reason)

        self._audit.operation_rolled_back(tx.operation, tx.transaction_id, reason, irreversible)
        self._archive(tx)
        return tx

    def _archive(self, tx: OperationTransaction) -> None:
        self._history.append(tx)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

    # =========================================================================
    # Query Methods
    # =========================================================================

    def get_transaction_history(
        self,
        limit: int = 50,
        status: Optional[TransactionStatus] = None,
    ) -> List[OperationTransaction]:
        """
        Get transaction history.

        Args:
            limit: Maximum transactions to return
            status: Filter by status

        Returns:
            List of transactions (newest first)
        """
        history = self._history
        if status:
            history = [tx for tx in history if tx.status == status]
        return history[-limit:][::-1]

    def get_status(self) -> Dict[str, Any]:
        """Get manager status."""
        return {
            "active_operation": self._guard.active_operation,
            "history_count": len(self._history),
            "max_history": self._max_history,
        }
