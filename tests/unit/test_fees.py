"""
Fee Accrual Unit Tests.

Tests for protocol fee quotes and collection.
"""

import pytest

from fund_vault.core import NoGainsError, UnauthorizedError
from fund_vault.vault.models import ProtocolFeesCollectedEvent


@pytest.fixture
def funded_vault(vault, fund):
    """Vault holding a 1,000,000 deposit from alice."""
    fund("alice", 1_000_000)
    vault.deposit("alice", 1_000_000)
    return vault


class TestPreviewFees:
    """Test FundVault.preview_fees."""

    def test_quote_on_gains(self, funded_vault, asset):
        """Test the quote follows the fee formula."""
        asset.mint("fund_vault", 100_000)

        quote = funded_vault.preview_fees()

        assert quote.current_value == 1_100_000
        assert quote.principal_after_fees == 1_000_000
        assert quote.new_gains == 100_000
        assert quote.fee_value == 10_000
        assert quote.shares_to_mint == 9_090
        assert funded_vault.total_supply() == 1_000_000

    def test_quote_without_gains(self, funded_vault):
        """Test a flat fund quotes nothing."""
        quote = funded_vault.preview_fees()

        assert quote.has_gains is False
        assert quote.fee_value == 0
        assert quote.shares_to_mint == 0

    def test_quote_after_loss(self, funded_vault, asset):
        """Test losses do not produce negative gains."""
        asset.burn("fund_vault", 50_000)

        assert funded_vault.preview_fees().new_gains == 0


class TestCollectFees:
    """Test FundVault.collect_fees."""

    def test_collect_mints_to_treasury(self, funded_vault, asset, shares):
        """Test fee shares are minted and principal is reset."""
        asset.mint("fund_vault", 100_000)

        minted = funded_vault.collect_fees("keeper")

        assert minted == 9_090
        assert shares.balance_of("treasury") == 9_090
        assert funded_vault.principal_after_fees == 1_100_000
        assert funded_vault.events[-1] == ProtocolFeesCollectedEvent(
            fee_value=10_000, shares_minted=9_090, treasury="treasury"
        )

    def test_second_collect_has_no_gains(self, funded_vault, asset):
        """Test collecting twice without value change fails."""
        asset.mint("fund_vault", 100_000)
        funded_vault.collect_fees("keeper")

        with pytest.raises(NoGainsError):
            funded_vault.collect_fees("keeper")
        assert funded_vault.principal_after_fees == 1_100_000

    def test_no_gains_on_flat_fund(self, funded_vault):
        """Test a fund without gains cannot be charged."""
        with pytest.raises(NoGainsError):
            funded_vault.collect_fees("keeper")

    def test_zero_rate_resets_principal_only(self, funded_vault, asset, shares):
        """Test a 0% fee mints nothing but still resets the baseline."""
        funded_vault.set_protocol_fee_rate("owner", 0)
        asset.mint("fund_vault", 100_000)

        minted = funded_vault.collect_fees("keeper")

        assert minted == 0
        assert shares.balance_of("treasury") == 0
        assert funded_vault.principal_after_fees == 1_100_000

    def test_fee_dilutes_holders(self, funded_vault, asset):
        """Test holders lose roughly the fee value to the treasury."""
        asset.mint("fund_vault", 100_000)

        funded_vault.collect_fees("keeper")

        alice = funded_vault.balance_of("alice")
        treasury = funded_vault.balance_of("treasury")
        assert alice + treasury <= funded_vault.total_value()
        assert 1_089_000 < alice < 1_091_000
        assert 9_900 < treasury < 10_000

    def test_collect_requires_whitelist(self, funded_vault, asset):
        """Test fee collection is a privileged operation."""
        asset.mint("fund_vault", 100_000)

        with pytest.raises(UnauthorizedError):
            funded_vault.collect_fees("alice")
        assert funded_vault.principal_after_fees == 1_000_000
