"""
Pytest configuration and fixtures for fund vault tests.
"""

from typing import Callable

import pytest

from fund_vault.config import VaultConfig
from fund_vault.vault import FundVault
from tests.mocks import MockAssetToken, MockShareLedger, MockStrategy

VAULT_ACCOUNT = "fund_vault"
OWNER = "owner"
KEEPER = "keeper"
TREASURY = "treasury"


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def asset() -> MockAssetToken:
    return MockAssetToken()


@pytest.fixture
def shares() -> MockShareLedger:
    return MockShareLedger()


@pytest.fixture
def vault_config() -> VaultConfig:
    """Vault with a 10% fee and one whitelisted keeper."""
    return VaultConfig(
        account=VAULT_ACCOUNT,
        owner=OWNER,
        treasury=TREASURY,
        protocol_fee_rate=10,
        whitelist=[KEEPER],
    )


@pytest.fixture
def vault(asset, shares, vault_config) -> FundVault:
    return FundVault(asset, shares, vault_config)


@pytest.fixture
def make_strategy(asset) -> Callable[..., MockStrategy]:
    """Factory for strategies funded from the vault account."""

    def _make(name: str = "strategy") -> MockStrategy:
        return MockStrategy(asset, VAULT_ACCOUNT, name=name)

    return _make


@pytest.fixture
def fund(asset) -> Callable[[str, int], None]:
    """Give an account ``amount`` of the asset and approve the vault for it."""

    def _fund(account: str, amount: int) -> None:
        asset.mint(account, amount)
        asset.approve(account, VAULT_ACCOUNT, asset.allowance(account, VAULT_ACCOUNT) + amount)

    return _fund


@pytest.fixture
def two_strategy_vault(vault, make_strategy):
    """Vault with strategies "alpha" and "beta" weighted [50, 50]."""
    alpha = make_strategy("alpha")
    beta = make_strategy("beta")
    vault.add_strategy(OWNER, alpha, 50)
    vault.add_strategy(OWNER, beta, 50)
    return vault, alpha, beta
