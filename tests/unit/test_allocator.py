"""
Capital Allocation Unit Tests.

Tests for rebalance planning and capital deployment.
"""

import pytest

from fund_vault.core import UnauthorizedError
from fund_vault.vault.core.allocator import plan_rebalance
from fund_vault.vault.models import CapitalDeployedEvent, RebalanceMove


class TestPlanRebalance:
    """Test plan_rebalance."""

    def test_fund_from_idle(self):
        """Test idle capital is split by weight."""
        plan = plan_rebalance(1_000_000, [0, 0], [50, 50])

        assert plan.total_capital == 1_000_000
        assert plan.targets == (500_000, 500_000)
        assert plan.withdrawals == ()
        assert plan.deposits == (
            RebalanceMove(index=0, amount=500_000),
            RebalanceMove(index=1, amount=500_000),
        )

    def test_zero_weights_is_noop(self):
        """Test no moves are planned when weights sum to zero."""
        plan = plan_rebalance(1_000, [200, 300], [0, 0])

        assert plan.is_empty is True
        assert plan.total_capital == 1_500

    def test_shed_overweight_then_fund_underweight(self):
        """Test excess is withdrawn before underweight strategies are funded."""
        plan = plan_rebalance(0, [900, 100], [50, 50])

        assert plan.withdrawals == (RebalanceMove(index=0, amount=400),)
        assert plan.deposits == (RebalanceMove(index=1, amount=400),)

    def test_zero_weight_strategy_drained(self):
        """Test a strategy with weight 0 is fully withdrawn."""
        plan = plan_rebalance(0, [300, 0], [0, 1])

        assert plan.withdrawals == (RebalanceMove(index=0, amount=300),)
        assert plan.deposits == (RebalanceMove(index=1, amount=300),)

    def test_rounding_dust_stays_idle(self):
        """Test floor targets leave the remainder idle."""
        plan = plan_rebalance(1_001, [0, 0], [1, 1])

        assert plan.targets == (500, 500)
        assert plan.total_deposited == 1_000

    def test_balanced_position_is_noop(self):
        """Test strategies at target need no moves."""
        plan = plan_rebalance(0, [250, 750], [1, 3])

        assert plan.is_empty is True

    def test_withdrawn_excess_funds_underweight(self):
        """Test capital shed in phase 1 is available to phase 2."""
        plan = plan_rebalance(100, [0, 0, 200], [1, 1, 1])

        assert plan.targets == (100, 100, 100)
        assert plan.withdrawals == (RebalanceMove(index=2, amount=100),)
        assert plan.deposits == (
            RebalanceMove(index=0, amount=100),
            RebalanceMove(index=1, amount=100),
        )


class TestDeployCapital:
    """Test FundVault.deploy_capital."""

    def test_deploy_moves_capital_into_strategies(self, two_strategy_vault, fund, asset):
        """Test idle capital is deployed according to weights."""
        vault, alpha, beta = two_strategy_vault
        fund("alice", 1_000_000)
        vault.deposit("alice", 1_000_000)

        plan = vault.deploy_capital("keeper")

        assert alpha.value() == 500_000
        assert beta.value() == 500_000
        assert asset.balance_of("fund_vault") == 0
        assert vault.total_value() == 1_000_000
        assert plan.total_deposited == 1_000_000
        assert isinstance(vault.events[-1], CapitalDeployedEvent)

    def test_second_deploy_moves_nothing(self, two_strategy_vault, fund):
        """Test deploying twice without new deposits is stable."""
        vault, alpha, beta = two_strategy_vault
        fund("alice", 1_000_000)
        vault.deposit("alice", 1_000_000)
        vault.deploy_capital("keeper")

        plan = vault.deploy_capital("keeper")

        assert plan.is_empty is True
        assert vault.strategy_values() == [500_000, 500_000]
        assert alpha.deposits == [500_000]
        assert beta.deposits == [500_000]

    def test_reweight_rebalances(self, two_strategy_vault, fund):
        """Test a weight change is applied on the next deploy."""
        vault, alpha, beta = two_strategy_vault
        fund("alice", 1_000_000)
        vault.deposit("alice", 1_000_000)
        vault.deploy_capital("keeper")

        vault.set_weights("keeper", [25, 75])
        vault.deploy_capital("keeper")

        assert vault.strategy_values() == [250_000, 750_000]
        assert alpha.withdrawals == [250_000]

    def test_deploy_requires_whitelist(self, two_strategy_vault):
        """Test unprivileged callers are rejected."""
        vault, _, _ = two_strategy_vault

        with pytest.raises(UnauthorizedError):
            vault.deploy_capital("alice")
