"""
Backing-Asset Custody.

All movements of the backing asset in and out of the fund account. Every
movement is validated against the observed change of the idle balance and
journaled on the enclosing transaction together with its compensation.
Payouts rejected by their recipient are held back as unclaimed balances,
which stay in idle custody but no longer belong to the fund.
"""

from fund_vault.core import (
    ExternalCallError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    get_logger,
)

from ..interfaces import AssetToken, StrategyAdapter
from ..models.records import OperationTransaction
from ..models.state import FundState

logger = get_logger(__name__)


class Custody:
    """
    Idle balance held by the fund account.

    Example:
        >>> custody = Custody(asset, "fund_vault", state)
        >>> custody.pull("alice", 1_000, tx)
        >>> custody.idle()
        1000
    """

    def __init__(self, asset: AssetToken, account: str, state: FundState):
        """
        Initialize Custody.

        Args:
            asset: Backing asset token
            account: Account under which the fund holds the asset
            state: Fund state holding the unclaimed payouts
        """
        self._asset = asset
        self._account = account
        self._state = state

    @property
    def asset(self) -> AssetToken:
        return self._asset

    @property
    def account(self) -> str:
        return self._account

    def idle(self) -> int:
        """Asset balance not deployed into any strategy."""
        return self._asset.balance_of(self._account)

    def available(self) -> int:
        """Idle balance owned by the fund, net of unclaimed payouts."""
        return self.idle() - self._state.total_unclaimed

    # =========================================================================
    # Payer / Recipient Movements
    # =========================================================================

    def check_pull(self, payer: str, amount: int) -> None:
        """
        Verify that ``payer`` can fund a pull of ``amount``.

        Raises:
            InsufficientBalanceError: If payer holds less than amount
            InsufficientAllowanceError: If payer approved less than amount
        """
        balance = self._asset.balance_of(payer)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{payer} holds {balance}, needs {amount}",
                details={"account": payer, "balance": balance, "required": amount},
            )
        allowance = self._asset.allowance(payer, self._account)
        if allowance < amount:
            raise InsufficientAllowanceError(
                f"{payer} approved {allowance}, needs {amount}",
                details={"account": payer, "allowance": allowance, "required": amount},
            )

    def pull(self, payer: str, amount: int, tx: OperationTransaction) -> None:
        """Move ``amount`` from ``payer`` into custody."""
        self.check_pull(payer, amount)
        before = self.idle()
        self._asset.transfer_from(self._account, payer, self._account, amount)
        received = self.idle() - before

        def refund() -> None:
            self._asset.transfer(self._account, payer, received)

        if received > 0:
            tx.record(f"pull {received} from {payer}", refund)
        if received != amount:
            raise ExternalCallError(
                f"Asset pull from {payer} credited {received}, expected {amount}",
                details={"payer": payer, "expected": amount, "received": received},
            )
        logger.debug(f"Pulled {amount} from {payer}")

    def pay(self, recipient: str, amount: int, tx: OperationTransaction) -> None:
        """
        Pay ``amount`` out of custody. Payouts cannot be compensated.

        Raises:
            InsufficientBalanceError: If the idle balance does not cover amount
        """
        idle = self.idle()
        if idle < amount:
            raise InsufficientBalanceError(
                f"Idle balance {idle} cannot cover payout of {amount}",
                details={"idle": idle, "required": amount},
            )
        self._asset.transfer(self._account, recipient, amount)
        tx.record(f"pay {amount} to {recipient}", None)
        logger.debug(f"Paid {amount} to {recipient}")

    def try_pay(self, recipient: str, amount: int, tx: OperationTransaction) -> bool:
        """
        Pay ``amount`` unless the transfer is rejected.

        Used for batch payouts, where earlier payouts of the same operation
        may already be final and a rejected transfer must not abort it. The
        caller verifies the idle balance beforehand.

        Returns:
            False if the transfer raised and nothing was paid
        """
        try:
            self._asset.transfer(self._account, recipient, amount)
        except Exception as e:
            logger.warning(f"Payout of {amount} to {recipient} rejected: {e}")
            return False
        tx.record(f"pay {amount} to {recipient}", None)
        logger.debug(f"Paid {amount} to {recipient}")
        return True

    # =========================================================================
    # Strategy Movements
    # =========================================================================

    def fund_strategy(
        self,
        adapter: StrategyAdapter,
        amount: int,
        tx: OperationTransaction,
    ) -> None:
        """Approve and deposit ``amount`` of idle capital into a strategy."""
        before = self.idle()
        self._asset.approve(self._account, adapter.address, amount)
        adapter.deposit(amount)
        spent = before - self.idle()

        def recall() -> None:
            adapter.withdraw(spent, self._account)

        if spent > 0:
            tx.record(f"deposit {spent} into {adapter.address}", recall)
        if spent != amount:
            raise ExternalCallError(
                f"Strategy {adapter.address} took {spent}, expected {amount}",
                details={"strategy": adapter.address, "expected": amount, "spent": spent},
            )
        logger.debug(f"Deposited {amount} into {adapter.address}")

    def recall_from_strategy(
        self,
        adapter: StrategyAdapter,
        amount: int,
        tx: OperationTransaction,
    ) -> int:
        """
        Withdraw ``amount`` from a strategy into custody.

        Returns:
            Amount actually received (at least ``amount``)
        """
        before = self.idle()
        adapter.withdraw(amount, self._account)
        received = self.idle() - before

        def redeposit() -> None:
            self._asset.approve(self._account, adapter.address, received)
            adapter.deposit(received)

        if received > 0:
            tx.record(f"withdraw {received} from {adapter.address}", redeposit)
        if received < amount:
            raise ExternalCallError(
                f"Strategy {adapter.address} returned {received}, expected {amount}",
                details={"strategy": adapter.address, "expected": amount, "received": received},
            )
        logger.debug(f"Withdrew {received} from {adapter.address}")
        return received
