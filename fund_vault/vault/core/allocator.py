"""
Capital Allocation.

Rebalances fund capital across registered strategies toward their target
weights. Planning is pure integer arithmetic; execution moves the asset
through custody.
"""

from typing import List, Sequence

from fund_vault.core import get_logger

from ..models.records import OperationTransaction, RebalanceMove, RebalancePlan
from .custody import Custody
from .registry import StrategyRegistry

logger = get_logger(__name__)


def plan_rebalance(
    idle: int,
    values: Sequence[int],
    weights: Sequence[int],
) -> RebalancePlan:
    """
    Compute the two-phase rebalance for the given fund position.

    Phase 1 sheds every strategy's excess over its target into idle capital.
    Phase 2 funds underweight strategies in registry order with
    min(target - current, remaining idle), so earlier strategies take priority
    when idle capital is scarce.

    Args:
        idle: Idle balance held by the fund
        values: Current value of each strategy
        weights: Weight of each strategy (co-indexed with values)

    Returns:
        RebalancePlan (empty when the weights sum to zero)
    """
    total_capital = idle + sum(values)
    total_weight = sum(weights)
    if total_weight == 0:
        return RebalancePlan(total_capital=total_capital)

    targets = [total_capital * w // total_weight for w in weights]

    withdrawals: List[RebalanceMove] = []
    for index, (value, target) in enumerate(zip(values, targets)):
        if value > target:
            withdrawals.append(RebalanceMove(index=index, amount=value - target))

    remaining = idle + sum(m.amount for m in withdrawals)
    deposits: List[RebalanceMove] = []
    for index, (value, target) in enumerate(zip(values, targets)):
        if value >= target or remaining == 0:
            continue
        amount = min(target - value, remaining)
        deposits.append(RebalanceMove(index=index, amount=amount))
        remaining -= amount

    return RebalancePlan(
        total_capital=total_capital,
        targets=tuple(targets),
        withdrawals=tuple(withdrawals),
        deposits=tuple(deposits),
    )


class AllocationEngine:
    """
    Moves capital between idle custody and the registered strategies.

    Example:
        >>> engine = AllocationEngine(registry, custody)
        >>> plan = engine.deploy(tx)
        >>> plan.total_deposited
        1000000
    """

    def __init__(self, registry: StrategyRegistry, custody: Custody):
        self._registry = registry
        self._custody = custody

    def plan(self) -> RebalancePlan:
        """Plan a rebalance at current values without moving capital."""
        return plan_rebalance(
            self._custody.available(),
            self._registry.values(),
            self._registry.weights,
        )

    def deploy(self, tx: OperationTransaction) -> RebalancePlan:
        """Plan and execute a rebalance."""
        plan = self.plan()
        if plan.is_empty:
            logger.debug(f"Nothing to rebalance (total capital {plan.total_capital})")
            return plan

        logger.debug(
            f"Rebalance plan: targets={list(plan.targets)}, "
            f"withdraw={plan.total_withdrawn}, deposit={plan.total_deposited}"
        )

        for move in plan.withdrawals:
            adapter = self._registry[move.index].adapter
            self._custody.recall_from_strategy(adapter, move.amount, tx)

        for move in plan.deposits:
            adapter = self._registry[move.index].adapter
            self._custody.fund_strategy(adapter, move.amount, tx)

        return plan
