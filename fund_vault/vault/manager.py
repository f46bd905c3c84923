"""
Fund Vault.

Single aggregate exposing every public operation of the pooled fund. Each
state-mutating operation runs as one atomic transaction under the reentrancy
guard. Views of fund state are rejected while an operation is in
progress, so adapters called back mid-operation never observe
partially-updated state.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from fund_vault.config import VaultConfig, load_config
from fund_vault.core import InsufficientBalanceError, InvalidArgumentError, get_logger

from .core.access import AccessRegistry, Capability
from .core.allocator import AllocationEngine
from .core.custody import Custody
from .core.fees import FeeAccrual
from .core.ledger import CapitalLedger, ShareAccounting
from .core.redemption import RedemptionProcessor, RedemptionQueue
from .core.registry import StrategyRegistry
from .core.transaction import TransactionManager
from .interfaces import AssetToken, ShareLedger, StrategyAdapter
from .models.events import (
    CapitalDeployedEvent,
    ConfigurationChangedEvent,
    PayoutClaimedEvent,
    StrategiesRemovedEvent,
    StrategyAddedEvent,
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
from .models.state import FundState, VaultSnapshot

logger = get_logger(__name__)


def _require_account(account: str, label: str) -> None:
    if not isinstance(account, str) or not account:
        raise InvalidArgumentError(f"{label} must be a non-empty account name")


class FundVault:
    """
    Pooled fund accounting and capital allocation engine.

    Tracks ownership as shares, allocates capital across strategy adapters
    by weight, settles queued redemptions in batches and accrues the protocol
    performance fee.

    Example:
        >>> vault = FundVault.from_config("config/vault.yaml", asset, shares)
        >>> vault.add_strategy("owner", adapter, 50)
        >>> vault.deposit("alice", 1_000_000)
        >>> vault.deploy_capital("keeper")
        >>> vault.request_redemption("alice", 250_000)
        >>> vault.process_redemptions_batch("keeper", 0, 10)
    """

    def __init__(
        self,
        asset: AssetToken,
        share_ledger: ShareLedger,
        config: VaultConfig,
    ):
        """
        Initialize FundVault.

        Args:
            asset: Backing asset token
            share_ledger: Share ledger; the vault must be its only minter
            config: Vault configuration
        """
        self._config = config
        self._account = config.account

        self._state = FundState(
            treasury=config.treasury,
            protocol_fee_rate=config.protocol_fee_rate,
        )
        self._access = AccessRegistry(
            owner=config.owner,
            treasury_manager=config.effective_treasury_manager,
            whitelist=set(config.whitelist),
        )
        self._registry = StrategyRegistry()
        self._queue = RedemptionQueue()

        # Core components
        self._custody = Custody(asset, self._account, self._state)
        self._accounting = ShareAccounting(share_ledger, self._custody, self._registry)
        self._ledger = CapitalLedger(self._accounting, self._custody, self._state)
        self._allocator = AllocationEngine(self._registry, self._custody)
        self._fees = FeeAccrual(self._accounting, self._state)
        self._redemptions = RedemptionProcessor(
            queue=self._queue,
            registry=self._registry,
            custody=self._custody,
            accounting=self._accounting,
            fees=self._fees,
            state=self._state,
        )

        self._events: List[VaultEvent] = []
        self._transactions = TransactionManager(
            create_snapshot=self._create_snapshot,
            restore_snapshot=self._restore_snapshot,
            publish=self._events.append,
            max_history=config.transaction_history_limit,
        )

        logger.info(
            f"FundVault initialized: account={self._account}, owner={config.owner}, "
            f"fee_rate={config.protocol_fee_rate}%"
        )

    @classmethod
    def from_config(
        cls,
        config: Union[VaultConfig, str, Path],
        asset: AssetToken,
        share_ledger: ShareLedger,
        env: Optional[str] = None,
    ) -> "FundVault":
        """
        Build a vault from a configuration object or a YAML file path.

        Args:
            config: VaultConfig or path to a vault YAML file
            asset: Backing asset token
            share_ledger: Share ledger
            env: Environment overlay to merge when loading from a file
        """
        if not isinstance(config, VaultConfig):
            config = load_config(config, env=env)
        return cls(asset, share_ledger, config)

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> VaultConfig:
        return self._config

    @property
    def account(self) -> str:
        """Account that holds custody of the asset and locked shares."""
        return self._account

    @property
    def owner(self) -> str:
        return self._access.owner

    @property
    def treasury(self) -> str:
        return self._state.treasury

    @property
    def treasury_manager(self) -> str:
        return self._access.treasury_manager

    @property
    def protocol_fee_rate(self) -> int:
        return self._state.protocol_fee_rate

    @property
    def principal_after_fees(self) -> int:
        self._require_settled("principal_after_fees")
        return self._state.principal_after_fees

    @property
    def events(self) -> List[VaultEvent]:
        """Committed audit events, oldest first."""
        return list(self._events)

    @property
    def transactions(self) -> TransactionManager:
        return self._transactions

    # =========================================================================
    # Capital Ledger
    # =========================================================================

    def deposit(self, payer: str, amount: int, receiver: Optional[str] = None) -> int:
        """
        Deposit ``amount`` of the asset and mint shares to ``receiver``.

        Returns:
            Shares minted
        """
        receiver = receiver or payer
        with self._transactions.atomic("deposit") as tx:
            return self._ledger.deposit(payer, amount, receiver, tx)

    def transfer(self, sender: str, recipient: str, amount: int) -> int:
        """
        Transfer ``amount`` of asset value from sender to recipient.

        Returns:
            Shares moved
        """
        _require_account(recipient, "recipient")
        with self._transactions.atomic("transfer") as tx:
            return self._ledger.transfer(sender, recipient, amount, tx)

    # =========================================================================
    # Strategies and Allocation
    # =========================================================================

    def add_strategy(self, caller: str, adapter: StrategyAdapter, weight: int) -> int:
        """
        Register a strategy adapter.

        Returns:
            Index of the new strategy
        """
        with self._transactions.atomic("add_strategy") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            index = self._registry.add(adapter, weight)
            entry = self._registry[index]
            tx.emit(StrategyAddedEvent(strategy=entry.name, weight=entry.weight, index=index))
            return index

    def set_weights(self, caller: str, weights: Sequence[int]) -> None:
        """Replace every strategy weight at once."""
        with self._transactions.atomic("set_weights") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            self._registry.set_weights(weights)
            tx.emit(WeightsUpdatedEvent(weights=tuple(self._registry.weights)))

    def apply_configured_weights(self, caller: str) -> List[int]:
        """
        Set registered strategy weights from the configured name/weight list.

        Registered strategies missing from the configuration get weight 0.

        Raises:
            InvalidArgumentError: If a configured name is not registered
        """
        with self._transactions.atomic("apply_configured_weights") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            configured = {s.name: s.weight for s in self._config.strategies}
            names = self._registry.names
            unknown = sorted(set(configured) - set(names))
            if unknown:
                raise InvalidArgumentError(
                    f"Configured strategies are not registered: {unknown}",
                    details={"unknown": unknown, "registered": names},
                )
            weights = [configured.get(name, 0) for name in names]
            self._registry.set_weights(weights)
            tx.emit(WeightsUpdatedEvent(weights=tuple(weights)))
            return weights

    def remove_strategies(self, caller: str, indexes: Sequence[int]) -> List[str]:
        """
        Remove strategies by index, in the order given.

        Each removal recalls the strategy's value into idle custody and then
        swaps the last strategy into the freed position, so later indexes in
        ``indexes`` refer to the registry as it is after earlier removals.
        Pass indexes in descending order to remove exactly the named entries.

        Returns:
            Names of the removed strategies

        Raises:
            InvalidArgumentError: If no index is given
            RangeError: If an index is out of range when it is processed
        """
        indexes = list(indexes)
        if not indexes:
            raise InvalidArgumentError("At least one strategy index is required")

        with self._transactions.atomic("remove_strategies") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            removed: List[str] = []
            recalled = 0
            for index in indexes:
                entry = self._registry[index]
                value = entry.adapter.value()
                if value > 0:
                    recalled += self._custody.recall_from_strategy(entry.adapter, value, tx)
                removed.append(self._registry.remove_at(index).name)

            tx.emit(StrategiesRemovedEvent(strategies=tuple(removed), recalled=recalled))
            return removed

    def deploy_capital(self, caller: str) -> RebalancePlan:
        """Rebalance capital across strategies toward their target weights."""
        with self._transactions.atomic("deploy_capital") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            plan = self._allocator.deploy(tx)
            tx.emit(
                CapitalDeployedEvent(
                    total_capital=plan.total_capital,
                    withdrawn=plan.total_withdrawn,
                    deposited=plan.total_deposited,
                )
            )
            return plan

    # =========================================================================
    # Redemptions
    # =========================================================================

    def request_redemption(self, requester: str, shares: int) -> int:
        """
        Queue ``shares`` for redemption, locking them in fund custody.

        Returns:
            Queue index of the request
        """
        with self._transactions.atomic("request_redemption") as tx:
            return self._redemptions.request(requester, shares, tx)

    def process_redemptions_batch(
        self,
        caller: str,
        start: int,
        batch_size: int,
    ) -> BatchSettlement:
        """Settle queued redemptions in [start, start + batch_size)."""
        with self._transactions.atomic("process_redemptions_batch") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            return self._redemptions.process_batch(start, batch_size, tx)

    def trim_redemption_queue(self, caller: str) -> int:
        """
        Remove settled requests from the queue.

        Indices returned by earlier requests are invalid afterwards; use
        ``find_redemption`` with the request id to locate a request again.

        Returns:
            Number of requests removed
        """
        with self._transactions.atomic("trim_redemption_queue") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            return self._redemptions.trim(tx)

    def claim_payout(self, recipient: str) -> int:
        """
        Transfer a payout that a batch held back after its transfer was rejected.

        Returns:
            Amount transferred

        Raises:
            InsufficientBalanceError: If nothing is held for ``recipient``
        """
        with self._transactions.atomic("claim_payout") as tx:
            amount = self._state.take_unclaimed(recipient)
            if amount == 0:
                raise InsufficientBalanceError(
                    f"No unclaimed payout for {recipient}",
                    details={"account": recipient},
                )
            self._custody.pay(recipient, amount, tx)
            tx.emit(PayoutClaimedEvent(recipient=recipient, amount=amount))
            return amount

    # =========================================================================
    # Fees
    # =========================================================================

    def collect_fees(self, caller: str) -> int:
        """
        Mint protocol fee shares to the treasury.

        Returns:
            Shares minted
        """
        with self._transactions.atomic("collect_fees") as tx:
            self._access.require(caller, Capability.WHITELISTED)
            return self._fees.collect(tx).shares_to_mint

    def preview_fees(self) -> FeeQuote:
        """Fee a collection would charge at the current fund value."""
        self._require_settled("preview_fees")
        return self._fees.quote()

    # =========================================================================
    # Administration
    # =========================================================================

    def set_protocol_fee_rate(self, caller: str, rate: int) -> None:
        if not isinstance(rate, int) or isinstance(rate, bool) or not 0 <= rate <= 100:
            raise InvalidArgumentError(f"Fee rate must be an integer percent in [0, 100], got {rate!r}")
        with self._transactions.atomic("set_protocol_fee_rate") as tx:
            self._access.require(caller, Capability.OWNER)
            old = self._state.protocol_fee_rate
            self._state.protocol_fee_rate = rate
            self._changed(tx, "protocol_fee_rate", old, rate, caller)

    def set_treasury(self, caller: str, account: str) -> None:
        self._require_external_account(account, "treasury")
        with self._transactions.atomic("set_treasury") as tx:
            self._access.require(caller, Capability.TREASURY_MANAGER)
            old = self._state.treasury
            self._state.treasury = account
            self._changed(tx, "treasury", old, account, caller)

    def set_treasury_manager(self, caller: str, account: str) -> None:
        _require_account(account, "treasury_manager")
        with self._transactions.atomic("set_treasury_manager") as tx:
            self._access.require(caller, Capability.OWNER)
            old = self._access.treasury_manager
            self._access.set_treasury_manager(account)
            self._changed(tx, "treasury_manager", old, account, caller)

    def set_whitelisted(self, caller: str, account: str, allowed: bool) -> None:
        _require_account(account, "account")
        with self._transactions.atomic("set_whitelisted") as tx:
            self._access.require(caller, Capability.OWNER)
            old = account in self._access.whitelist
            self._access.set_whitelisted(account, allowed)
            self._changed(tx, f"whitelist.{account}", old, allowed, caller)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_external_account(new_owner, "owner")
        with self._transactions.atomic("transfer_ownership") as tx:
            self._access.require(caller, Capability.OWNER)
            old = self._access.owner
            self._access.transfer_ownership(new_owner)
            self._changed(tx, "owner", old, new_owner, caller)

    def _require_external_account(self, account: str, label: str) -> None:
        _require_account(account, label)
        if account == self._account:
            raise InvalidArgumentError(f"{label} cannot be the vault account")

    @staticmethod
    def _changed(
        tx: OperationTransaction,
        key: str,
        old_value: Any,
        new_value: Any,
        changed_by: str,
    ) -> None:
        tx.emit(
            ConfigurationChangedEvent(
                key=key,
                old_value=str(old_value),
                new_value=str(new_value),
                changed_by=changed_by,
            )
        )

    # =========================================================================
    # Views
    # =========================================================================

    def _require_settled(self, view: str) -> None:
        """Reject reads of fund state while an operation is in progress."""
        self._transactions.guard.check(view)

    def total_value(self) -> int:
        self._require_settled("total_value")
        return self._accounting.total_value()

    def total_supply(self) -> int:
        self._require_settled("total_supply")
        return self._accounting.total_supply()

    def idle_balance(self) -> int:
        """Undeployed balance owned by the fund, net of unclaimed payouts."""
        self._require_settled("idle_balance")
        return self._custody.available()

    def balance_of(self, account: str) -> int:
        """Asset value of an account's shares at the current price."""
        self._require_settled("balance_of")
        return self._accounting.balance_of(account)

    def shares_of(self, account: str) -> int:
        self._require_settled("shares_of")
        return self._accounting.shares_of(account)

    def convert_to_assets(self, shares: int) -> int:
        self._require_settled("convert_to_assets")
        return self._accounting.convert_to_assets(shares)

    def convert_to_shares(self, amount: int) -> int:
        self._require_settled("convert_to_shares")
        return self._accounting.convert_to_shares(amount)

    def strategies(self) -> List[StrategyEntry]:
        self._require_settled("strategies")
        return self._registry.entries

    def weights(self) -> List[int]:
        self._require_settled("weights")
        return self._registry.weights

    def strategy_values(self) -> List[int]:
        self._require_settled("strategy_values")
        return self._registry.values()

    def is_whitelisted(self, account: str) -> bool:
        self._require_settled("is_whitelisted")
        return self._access.has(account, Capability.WHITELISTED)

    def redemption_queue_length(self) -> int:
        self._require_settled("redemption_queue_length")
        return len(self._queue)

    def redemption_request(self, index: int) -> RedemptionRequest:
        self._require_settled("redemption_request")
        return self._queue[index]

    def find_redemption(self, request_id: int) -> Optional[int]:
        """Current queue index of a request id, or None once trimmed."""
        self._require_settled("find_redemption")
        return self._queue.find(request_id)

    def pending_redemption_shares(self) -> int:
        self._require_settled("pending_redemption_shares")
        return self._queue.pending_shares()

    def unclaimed_payout(self, account: str) -> int:
        """Settled payout held back for ``account`` until it claims it."""
        self._require_settled("unclaimed_payout")
        return self._state.unclaimed.get(account, 0)

    def total_unclaimed(self) -> int:
        self._require_settled("total_unclaimed")
        return self._state.total_unclaimed

    def get_status(self) -> Dict[str, Any]:
        """
        Get vault status.

        Returns:
            Dictionary with current status
        """
        self._require_settled("get_status")
        return {
            "account": self._account,
            "owner": self._access.owner,
            "fund": self._state.to_dict(),
            "total_value": self._accounting.total_value(),
            "total_supply": self._accounting.total_supply(),
            "idle_balance": self._custody.available(),
            "strategies": [e.to_dict() for e in self._registry.entries],
            "redemption_queue_length": len(self._queue),
            "pending_redemption_shares": self._queue.pending_shares(),
            "transactions": self._transactions.get_status(),
            "event_count": len(self._events),
        }

    def get_transaction_history(
        self,
        limit: int = 50,
        status: Optional[TransactionStatus] = None,
    ) -> List[OperationTransaction]:
        return self._transactions.get_transaction_history(limit=limit, status=status)

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def _create_snapshot(self) -> VaultSnapshot:
        return VaultSnapshot(
            fund=self._state.copy(),
            strategies=self._registry.create_snapshot(),
            queue=self._queue.create_snapshot(),
            access=self._access.create_snapshot(),
        )

    def _restore_snapshot(self, snapshot: VaultSnapshot) -> None:
        self._state.restore(snapshot.fund)
        self._registry.restore_snapshot(snapshot.strategies)
        self._queue.restore_snapshot(snapshot.queue)
        self._access.restore_snapshot(snapshot.access)
