"""
Capital Ledger and Share Accounting.

Share price is never stored: every conversion is recomputed from the live
fund value and share supply, rounding down in the fund's favour.
"""

from typing import Optional

from fund_vault.core import (
    InsufficientBalanceError,
    InvalidArgumentError,
    ZeroSharesComputedError,
    get_logger,
)

from ..interfaces import ShareLedger
from ..models.events import DepositEvent, TransferEvent
from ..models.records import OperationTransaction
from ..models.state import FundState
from .custody import Custody
from .registry import StrategyRegistry

logger = get_logger(__name__)


def require_positive(value: int, label: str = "amount") -> None:
    """
    Raises:
        InvalidArgumentError: If ``value`` is not a positive integer
    """
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise InvalidArgumentError(
            f"{label} must be a positive integer, got {value!r}",
            details={label: repr(value)},
        )


class ShareAccounting:
    """
    Conversions between shares and asset value, plus journaled mint/burn.

    Example:
        >>> accounting.total_value()
        1100000
        >>> accounting.convert_to_assets(1000)
        1100
    """

    def __init__(
        self,
        shares: ShareLedger,
        custody: Custody,
        registry: StrategyRegistry,
    ):
        self._shares = shares
        self._custody = custody
        self._registry = registry

    # =========================================================================
    # Views
    # =========================================================================

    def total_value(self) -> int:
        """Fund-owned idle balance plus the value held by every strategy."""
        return self._custody.available() + self._registry.total_value()

    def total_supply(self) -> int:
        return self._shares.total_supply()

    def shares_of(self, account: str) -> int:
        return self._shares.balance_of(account)

    def balance_of(self, account: str) -> int:
        """Asset value of an account's shares at the current price."""
        return self.convert_to_assets(self.shares_of(account))

    def convert_to_assets(
        self,
        shares: int,
        value: Optional[int] = None,
        supply: Optional[int] = None,
    ) -> int:
        """floor(shares * value / supply); 0 while no shares exist."""
        supply = self.total_supply() if supply is None else supply
        if supply == 0:
            return 0
        value = self.total_value() if value is None else value
        return shares * value // supply

    def convert_to_shares(
        self,
        amount: int,
        value: Optional[int] = None,
        supply: Optional[int] = None,
    ) -> int:
        """floor(amount * supply / value); 1:1 for an empty or worthless fund."""
        supply = self.total_supply() if supply is None else supply
        value = self.total_value() if value is None else value
        if supply == 0 or value == 0:
            return amount
        return amount * supply // value

    # =========================================================================
    # Journaled Mutation
    # =========================================================================

    def mint(self, account: str, shares: int, tx: OperationTransaction) -> None:
        self._shares.mint(account, shares)
        tx.record(
            f"mint {shares} shares to {account}",
            lambda: self._shares.burn(account, shares),
        )

    def burn(self, account: str, shares: int, tx: OperationTransaction) -> None:
        self._shares.burn(account, shares)
        tx.record(
            f"burn {shares} shares from {account}",
            lambda: self._shares.mint(account, shares),
        )

    def move(self, sender: str, recipient: str, shares: int, tx: OperationTransaction) -> None:
        """Move shares between accounts as a burn + mint pair."""
        self.burn(sender, shares, tx)
        self.mint(recipient, shares, tx)


class CapitalLedger:
    """
    Deposits and value-denominated transfers.

    Example:
        >>> ledger.deposit("alice", 1_000_000, "alice", tx)
        1000000
    """

    def __init__(self, accounting: ShareAccounting, custody: Custody, state: FundState):
        self._accounting = accounting
        self._custody = custody
        self._state = state

    def deposit(
        self,
        payer: str,
        amount: int,
        receiver: str,
        tx: OperationTransaction,
    ) -> int:
        """
        Pull ``amount`` from ``payer`` and mint shares to ``receiver``.

        Shares are 1:1 while the fund has no supply or no value, otherwise
        floor(amount * supply / value_before). The deposit is principal, so
        principal_after_fees grows by ``amount``.

        Returns:
            Shares minted

        Raises:
            InvalidArgumentError: If amount is not positive
            InsufficientBalanceError: If payer holds less than amount
            InsufficientAllowanceError: If payer approved less than amount
            ZeroSharesComputedError: If amount converts to zero shares
        """
        require_positive(amount)
        self._custody.check_pull(payer, amount)

        value_before = self._accounting.total_value()
        supply = self._accounting.total_supply()
        shares = self._accounting.convert_to_shares(amount, value_before, supply)
        if shares == 0:
            raise ZeroSharesComputedError(
                f"Deposit of {amount} converts to zero shares",
                details={"amount": amount, "value": value_before, "supply": supply},
            )

        self._custody.pull(payer, amount, tx)
        self._accounting.mint(receiver, shares, tx)
        self._state.principal_after_fees += amount

        tx.emit(DepositEvent(payer=payer, amount=amount, receiver=receiver, shares=shares))
        logger.info(f"Deposit: {payer} paid {amount}, {receiver} received {shares} shares")
        return shares

    def transfer(
        self,
        sender: str,
        recipient: str,
        amount: int,
        tx: OperationTransaction,
    ) -> int:
        """
        Transfer ``amount`` of asset value worth of shares.

        Returns:
            Shares moved

        Raises:
            InvalidArgumentError: If amount is not positive
            InsufficientBalanceError: If sender's value is below amount
            ZeroSharesComputedError: If amount converts to zero shares
        """
        require_positive(amount)

        value = self._accounting.total_value()
        supply = self._accounting.total_supply()
        balance = self._accounting.convert_to_assets(
            self._accounting.shares_of(sender), value, supply
        )
        if balance < amount:
            raise InsufficientBalanceError(
                f"{sender} holds {balance} in value, needs {amount}",
                details={"account": sender, "balance": balance, "required": amount},
            )

        shares = amount * supply // value
        if shares == 0:
            raise ZeroSharesComputedError(
                f"Transfer of {amount} converts to zero shares",
                details={"amount": amount, "value": value, "supply": supply},
            )

        self._accounting.move(sender, recipient, shares, tx)

        tx.emit(TransferEvent(sender=sender, recipient=recipient, amount=amount, shares=shares))
        logger.info(f"Transfer: {sender} -> {recipient}, {amount} ({shares} shares)")
        return shares
