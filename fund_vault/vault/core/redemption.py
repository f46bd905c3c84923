"""
Redemption Queue and Batch Settlement.

Redemptions are queued with their shares locked in fund custody and settled
in batches by an operator. Settled entries are tombstoned in place; only an
explicit trim compacts the queue, which invalidates previously issued
indices. Request ids stay valid across trims.
"""

from typing import List, Optional, Sequence, Tuple

from fund_vault.core import (
    InsufficientBalanceError,
    InsufficientLiquidityError,
    RangeError,
    get_logger,
)

from ..models.events import (
    PayoutDeferredEvent,
    RedemptionProcessedEvent,
    RedemptionQueueTrimmedEvent,
    RedemptionRequestedEvent,
)
from ..models.records import (
    BatchSettlement,
    OperationTransaction,
    RebalanceMove,
    RedemptionRequest,
)
from ..models.state import FundState, QueueSnapshot
from .custody import Custody
from .fees import FeeAccrual
from .ledger import ShareAccounting, require_positive
from .registry import StrategyRegistry

logger = get_logger(__name__)


class RedemptionQueue:
    """
    Ordered redemption requests addressed by index or by request id.

    Example:
        >>> index, request = queue.enqueue("alice", 500)
        >>> queue.find(request.request_id) == index
        True
    """

    def __init__(self) -> None:
        self._requests: List[RedemptionRequest] = []
        self._next_request_id = 1

    def __len__(self) -> int:
        return len(self._requests)

    def __getitem__(self, index: int) -> RedemptionRequest:
        self.check_index(index)
        return self._requests[index]

    @property
    def requests(self) -> List[RedemptionRequest]:
        return list(self._requests)

    def check_index(self, index: int) -> None:
        """
        Raises:
            RangeError: If ``index`` is not a queue position
        """
        if not isinstance(index, int) or index < 0 or index >= len(self._requests):
            raise RangeError(
                f"Queue index {index} out of range (length {len(self._requests)})",
                details={"index": index, "length": len(self._requests)},
            )

    def enqueue(self, requester: str, shares: int) -> Tuple[int, RedemptionRequest]:
        """Append a request and return its index and record."""
        request = RedemptionRequest(
            request_id=self._next_request_id,
            requester=requester,
            shares=shares,
        )
        self._next_request_id += 1
        self._requests.append(request)
        return len(self._requests) - 1, request

    def find(self, request_id: int) -> Optional[int]:
        """Current index of a request, or None once it was trimmed."""
        for index, request in enumerate(self._requests):
            if request.request_id == request_id:
                return index
        return None

    def live_between(self, start: int, end: int) -> List[Tuple[int, RedemptionRequest]]:
        """Non-tombstoned requests in [start, end)."""
        return [
            (index, self._requests[index])
            for index in range(start, end)
            if not self._requests[index].is_tombstoned
        ]

    def tombstone(self, index: int) -> None:
        self.check_index(index)
        request = self._requests[index]
        self._requests[index] = RedemptionRequest(
            request_id=request.request_id,
            requester=request.requester,
            shares=0,
        )

    def pending_shares(self) -> int:
        return sum(r.shares for r in self._requests)

    def trim(self) -> int:
        """
        Remove every tombstone by swapping it with the tail and shrinking.

        Survivor order is not preserved.

        Returns:
            Number of entries removed
        """
        removed = 0
        index = 0
        while index < len(self._requests):
            if self._requests[index].is_tombstoned:
                self._requests[index] = self._requests[-1]
                self._requests.pop()
                removed += 1
            else:
                index += 1
        return removed

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def create_snapshot(self) -> QueueSnapshot:
        return QueueSnapshot(
            requests=tuple(self._requests),
            next_request_id=self._next_request_id,
        )

    def restore_snapshot(self, snapshot: QueueSnapshot) -> None:
        self._requests = list(snapshot.requests)
        self._next_request_id = snapshot.next_request_id


def plan_liquidity(
    shortfall: int,
    values: Sequence[int],
    weights: Sequence[int],
) -> List[RebalanceMove]:
    """
    Plan the strategy withdrawals that cover ``shortfall``.

    Pass 1 walks the registry in reverse and takes from each strategy its
    weighted share of the shortfall, capped by its value and by what is still
    missing. Pass 2 walks forward and drains strategies until covered.

    Returns:
        Withdrawals in execution order; a strategy may appear in both passes

    Raises:
        InsufficientLiquidityError: If all strategies together cannot cover it
    """
    available = list(values)
    remaining = shortfall
    moves: List[RebalanceMove] = []

    total_weight = sum(weights)
    if total_weight > 0:
        for index in reversed(range(len(available))):
            if remaining == 0:
                break
            amount = min(shortfall * weights[index] // total_weight, available[index], remaining)
            if amount > 0:
                moves.append(RebalanceMove(index=index, amount=amount))
                available[index] -= amount
                remaining -= amount

    for index in range(len(available)):
        if remaining == 0:
            break
        amount = min(available[index], remaining)
        if amount > 0:
            moves.append(RebalanceMove(index=index, amount=amount))
            available[index] -= amount
            remaining -= amount

    if remaining > 0:
        raise InsufficientLiquidityError(
            f"Strategies cannot cover shortfall of {shortfall}",
            shortfall=shortfall,
            uncovered=remaining,
        )
    return moves


class RedemptionProcessor:
    """
    Queues redemptions and settles them in batches.

    Example:
        >>> index = processor.request("alice", 500, tx)
        >>> settlement = processor.process_batch(0, 10, tx)
        >>> settlement.paid_accounts
        ['alice']
    """

    def __init__(
        self,
        queue: RedemptionQueue,
        registry: StrategyRegistry,
        custody: Custody,
        accounting: ShareAccounting,
        fees: FeeAccrual,
        state: FundState,
    ):
        self._queue = queue
        self._registry = registry
        self._custody = custody
        self._accounting = accounting
        self._fees = fees
        self._state = state

    @property
    def queue(self) -> RedemptionQueue:
        return self._queue

    def request(self, requester: str, shares: int, tx: OperationTransaction) -> int:
        """
        Lock ``shares`` in fund custody and queue them for redemption.

        Returns:
            Queue index of the request

        Raises:
            InvalidArgumentError: If shares is not positive
            InsufficientBalanceError: If requester holds fewer shares
        """
        require_positive(shares, "shares")
        held = self._accounting.shares_of(requester)
        if held < shares:
            raise InsufficientBalanceError(
                f"{requester} holds {held} shares, requested {shares}",
                details={"account": requester, "shares": held, "requested": shares},
            )

        self._accounting.move(requester, self._custody.account, shares, tx)
        index, request = self._queue.enqueue(requester, shares)

        tx.emit(
            RedemptionRequestedEvent(
                requester=requester,
                amount=shares,
                index=index,
                request_id=request.request_id,
            )
        )
        logger.info(f"Redemption requested: {requester} {shares} shares (index={index})")
        return index

    def process_batch(
        self,
        start: int,
        batch_size: int,
        tx: OperationTransaction,
    ) -> BatchSettlement:
        """
        Settle live requests in [start, min(start + batch_size, length)).

        Pending fees are collected first. Every request is then paid at the
        same post-fee price, sourcing any idle shortfall from strategies.
        Payouts come last and cannot fail the batch: a payout whose transfer
        is rejected is held as unclaimed for the recipient to claim later.
        principal_after_fees is reset to the fund value net of all payouts.

        Raises:
            InvalidArgumentError: If batch_size is not positive
            RangeError: If start is not a queue position
            InsufficientLiquidityError: If strategies cannot cover the payouts
            InsufficientBalanceError: If idle custody does not cover the payouts
        """
        require_positive(batch_size, "batch_size")
        self._queue.check_index(start)
        end = min(start + batch_size, len(self._queue))
        settlement = BatchSettlement(start=start, end=end)

        if self._fees.is_due():
            settlement.fee_shares_minted = self._fees.collect(tx).shares_to_mint

        value = self._accounting.total_value()
        supply = self._accounting.total_supply()
        live = self._queue.live_between(start, end)
        total_shares = sum(request.shares for _, request in live)
        payout_total = self._accounting.convert_to_assets(total_shares, value, supply)

        shortfall = max(payout_total - self._custody.available(), 0)
        if shortfall > 0:
            moves = plan_liquidity(shortfall, self._registry.values(), self._registry.weights)
            logger.debug(f"Sourcing {shortfall} from strategies: {moves}")
            for move in moves:
                adapter = self._registry[move.index].adapter
                settlement.liquidity_sourced += self._custody.recall_from_strategy(
                    adapter, move.amount, tx
                )

        payouts: List[Tuple[str, int]] = []
        for index, request in live:
            payout = self._accounting.convert_to_assets(request.shares, value, supply)
            self._accounting.burn(self._custody.account, request.shares, tx)
            self._queue.tombstone(index)
            payouts.append((request.requester, payout))
            settlement.shares_burned += request.shares

        owed = sum(payout for _, payout in payouts)
        value_before_payouts = self._accounting.total_value()
        available = self._custody.available()
        if available < owed:
            raise InsufficientBalanceError(
                f"Idle balance {available} cannot cover payouts of {owed}",
                details={"available": available, "required": owed},
            )

        # No step after the first payout may raise
        for requester, payout in payouts:
            if payout > 0 and not self._custody.try_pay(requester, payout, tx):
                self._state.credit_unclaimed(requester, payout)
                settlement.deferred_accounts.append(requester)
                settlement.assets_deferred += payout
                tx.emit(PayoutDeferredEvent(recipient=requester, amount=payout))
            settlement.paid_accounts.append(requester)
            settlement.assets_paid += payout

        self._state.principal_after_fees = value_before_payouts - owed

        tx.emit(
            RedemptionProcessedEvent(
                start=start,
                end=end,
                paid_accounts=tuple(settlement.paid_accounts),
            )
        )
        logger.info(
            f"Redemptions processed [{start}, {end}): {settlement.settled_count} paid, "
            f"{settlement.assets_paid} assets, {settlement.shares_burned} shares burned"
        )
        return settlement

    def trim(self, tx: OperationTransaction) -> int:
        """Compact the queue; returns the number of tombstones removed."""
        removed = self._queue.trim()
        tx.emit(RedemptionQueueTrimmedEvent(removed=removed, remaining=len(self._queue)))
        logger.info(f"Redemption queue trimmed: {removed} removed, {len(self._queue)} remaining")
        return removed
