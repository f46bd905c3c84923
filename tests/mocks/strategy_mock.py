"""
Mock Strategy Adapter for testing.

Holds the backing asset under its own address and supports gain/loss
simulation, failure injection and reentrancy hooks.
"""

from typing import Any, Callable, Optional

from .asset_mock import MockAssetToken


class MockStrategy:
    """
    Mock Strategy Adapter.

    Simulates a yield venue:
    - Value equals the asset held under its address
    - simulate_gain / simulate_loss move that value
    - fail_* flags make the matching call raise
    - on_deposit / on_withdraw hooks run before the transfer (reentrancy)

    Example:
        >>> strategy = MockStrategy(asset, "fund_vault", name="aave")
        >>> strategy.simulate_gain(1_000)
        >>> strategy.value()
        1000
    """

    def __init__(
        self,
        asset: MockAssetToken,
        vault_account: str,
        name: str = "strategy",
        address: Optional[str] = None,
    ):
        """
        Initialize mock strategy.

        Args:
            asset: Backing asset token
            vault_account: Account that funds deposits
            name: Value returned by the name query
            address: Account holding the strategy's assets
        """
        self._asset = asset
        self._vault = vault_account
        self._name = name
        self.address = address or f"strategy:{name}"

        # Failure injection
        self.fail_name: bool = False
        self.fail_value: bool = False
        self.fail_deposit: bool = False
        self.fail_withdraw: bool = False
        self.withdraw_shortfall: int = 0
        self.value_override: Optional[Any] = None

        # Reentrancy hooks
        self.on_deposit: Optional[Callable[[], Any]] = None
        self.on_withdraw: Optional[Callable[[], Any]] = None

        # Call tracking
        self.name_calls: int = 0
        self.value_calls: int = 0
        self.deposits: list[int] = []
        self.withdrawals: list[int] = []

    # =========================================================================
    # Adapter Interface
    # =========================================================================

    def name(self) -> str:
        self.name_calls += 1
        if self.fail_name:
            raise RuntimeError("name query failed")
        return self._name

    def value(self) -> int:
        self.value_calls += 1
        if self.fail_value:
            raise RuntimeError("value query failed")
        if self.value_override is not None:
            return self.value_override
        return self._asset.balance_of(self.address)

    def deposit(self, amount: int) -> None:
        if self.on_deposit is not None:
            self.on_deposit()
        if self.fail_deposit:
            raise RuntimeError("deposit failed")
        self._asset.transfer_from(self.address, self._vault, self.address, amount)
        self.deposits.append(amount)

    def withdraw(self, amount: int, recipient: str) -> None:
        if self.on_withdraw is not None:
            self.on_withdraw()
        if self.fail_withdraw:
            raise RuntimeError("withdraw failed")
        self._asset.transfer(self.address, recipient, amount - self.withdraw_shortfall)
        self.withdrawals.append(amount)

    # =========================================================================
    # Test Helpers
    # =========================================================================

    def simulate_gain(self, amount: int) -> None:
        self._asset.mint(self.address, amount)

    def simulate_loss(self, amount: int) -> None:
        self._asset.burn(self.address, amount)
