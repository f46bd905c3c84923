"""
Capital Ledger Unit Tests.

Tests for deposits, share conversions and value-denominated transfers.
"""

import pytest

from fund_vault.core import (
    ExternalCallError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidArgumentError,
    ZeroSharesComputedError,
)
from fund_vault.vault.models import DepositEvent, TransactionStatus, TransferEvent


class TestDeposit:
    """Test FundVault.deposit."""

    def test_bootstrap_deposit_is_one_to_one(self, vault, fund, asset):
        """Test the first deposit mints exactly the amount."""
        fund("alice", 1_000_000)

        minted = vault.deposit("alice", 1_000_000)

        assert minted == 1_000_000
        assert vault.shares_of("alice") == 1_000_000
        assert vault.balance_of("alice") == 1_000_000
        assert vault.principal_after_fees == 1_000_000
        assert asset.balance_of("fund_vault") == 1_000_000
        assert vault.events == [
            DepositEvent(payer="alice", amount=1_000_000, receiver="alice", shares=1_000_000)
        ]

    def test_deposit_to_other_receiver(self, vault, fund):
        """Test shares can be minted to another account."""
        fund("alice", 500)

        vault.deposit("alice", 500, receiver="bob")

        assert vault.shares_of("alice") == 0
        assert vault.shares_of("bob") == 500

    def test_deposit_at_appreciated_price(self, vault, fund, asset):
        """Test later deposits mint at the current share price."""
        fund("alice", 1_000_000)
        vault.deposit("alice", 1_000_000)
        asset.mint("fund_vault", 100_000)  # Gain of 10%

        fund("bob", 110_000)
        minted = vault.deposit("bob", 110_000)

        assert minted == 100_000
        assert vault.principal_after_fees == 1_110_000
        assert vault.balance_of("bob") == 110_000

    def test_supply_strictly_increases(self, vault, fund):
        """Test each deposit grows supply and value stays covered."""
        supplies = []
        for account, amount in [("a", 1_000), ("b", 333), ("c", 7), ("d", 12_345)]:
            fund(account, amount)
            vault.deposit(account, amount)
            supplies.append(vault.total_supply())

        assert supplies == sorted(set(supplies))
        total_balances = sum(vault.balance_of(a) for a in ["a", "b", "c", "d"])
        assert total_balances <= vault.total_value()
        assert vault.total_value() - total_balances <= 4

    def test_zero_shares_rejected(self, vault, fund, asset):
        """Test a deposit rounding to zero shares fails without effects."""
        fund("alice", 1)
        vault.deposit("alice", 1)
        asset.mint("fund_vault", 1_000)

        fund("bob", 1)
        with pytest.raises(ZeroSharesComputedError):
            vault.deposit("bob", 1)

        assert asset.balance_of("bob") == 1
        assert vault.shares_of("bob") == 0
        assert vault.principal_after_fees == 1

    @pytest.mark.parametrize("amount", [0, -10, True])
    def test_non_positive_amount_rejected(self, vault, fund, amount):
        """Test amounts must be positive integers."""
        fund("alice", 100)

        with pytest.raises(InvalidArgumentError):
            vault.deposit("alice", amount)

    def test_insufficient_balance(self, vault, asset):
        """Test payer must hold the amount."""
        asset.approve("alice", "fund_vault", 1_000)

        with pytest.raises(InsufficientBalanceError):
            vault.deposit("alice", 1_000)

    def test_insufficient_allowance(self, vault, asset):
        """Test payer must approve the amount."""
        asset.mint("alice", 1_000)
        asset.approve("alice", "fund_vault", 999)

        with pytest.raises(InsufficientAllowanceError):
            vault.deposit("alice", 1_000)

    def test_mint_failure_refunds_payer(self, vault, fund, asset, shares):
        """Test a failing share ledger rolls the asset pull back."""
        fund("alice", 1_000)
        shares.fail_next_mint = True

        with pytest.raises(ExternalCallError):
            vault.deposit("alice", 1_000)

        assert asset.balance_of("alice") == 1_000
        assert asset.balance_of("fund_vault") == 0
        assert vault.principal_after_fees == 0
        assert vault.events == []
        last = vault.get_transaction_history(limit=1)[0]
        assert last.operation == "deposit"
        assert last.status == TransactionStatus.ROLLED_BACK


class TestShareConversion:
    """Test share/asset conversions."""

    def test_empty_fund(self, vault):
        """Test conversions of an empty fund."""
        assert vault.convert_to_shares(100) == 100
        assert vault.convert_to_assets(100) == 0
        assert vault.balance_of("nobody") == 0

    def test_floor_rounding(self, vault, fund, asset):
        """Test conversions round down."""
        fund("alice", 3)
        vault.deposit("alice", 3)
        asset.mint("fund_vault", 1)  # Value 4, supply 3

        assert vault.convert_to_assets(1) == 1
        assert vault.convert_to_assets(3) == 4
        assert vault.convert_to_shares(3) == 2


class TestTransfer:
    """Test FundVault.transfer."""

    def test_transfer_moves_value(self, vault, fund, shares):
        """Test transfer is a burn + mint of the equivalent shares."""
        fund("alice", 1_000)
        vault.deposit("alice", 1_000)

        moved = vault.transfer("alice", "bob", 400)

        assert moved == 400
        assert vault.balance_of("alice") == 600
        assert vault.balance_of("bob") == 400
        assert shares.history[-2:] == [("burn", "alice", 400), ("mint", "bob", 400)]
        assert vault.events[-1] == TransferEvent(
            sender="alice", recipient="bob", amount=400, shares=400
        )

    def test_transfer_at_appreciated_price(self, vault, fund, asset):
        """Test the share count follows the current price."""
        fund("alice", 1_000)
        vault.deposit("alice", 1_000)
        asset.mint("fund_vault", 1_000)  # Price 2

        moved = vault.transfer("alice", "bob", 500)

        assert moved == 250
        assert vault.balance_of("bob") == 500
        assert vault.total_supply() == 1_000

    def test_transfer_exceeding_balance(self, vault, fund):
        """Test sender value must cover the amount."""
        fund("alice", 1_000)
        vault.deposit("alice", 1_000)

        with pytest.raises(InsufficientBalanceError):
            vault.transfer("alice", "bob", 1_001)
        assert vault.shares_of("alice") == 1_000

    def test_transfer_rounding_to_zero_shares(self, vault, fund, asset):
        """Test a transfer worth less than one share fails."""
        fund("alice", 10)
        vault.deposit("alice", 10)
        asset.mint("fund_vault", 90)  # Price 10

        with pytest.raises(ZeroSharesComputedError):
            vault.transfer("alice", "bob", 5)

    def test_failed_mint_restores_sender(self, vault, fund, shares):
        """Test a failure after the burn re-mints the sender's shares."""
        fund("alice", 1_000)
        vault.deposit("alice", 1_000)
        shares.fail_next_mint = True

        with pytest.raises(ExternalCallError):
            vault.transfer("alice", "bob", 100)

        assert vault.shares_of("alice") == 1_000
        assert vault.shares_of("bob") == 0
