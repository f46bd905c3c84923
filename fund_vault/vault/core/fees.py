"""
Performance Fee Accrual.

Charges the protocol fee on gains above the fee-accounted principal by
minting shares to the treasury, diluting every holder proportionally.
"""

from fund_vault.core import NoGainsError, get_logger

from ..models.events import ProtocolFeesCollectedEvent
from ..models.records import FeeQuote, OperationTransaction
from ..models.state import FundState
from .ledger import ShareAccounting

logger = get_logger(__name__)


class FeeAccrual:
    """
    Fee computation and collection.

    Example:
        >>> quote = fees.quote()
        >>> quote.fee_value
        10000
        >>> fees.collect(tx).shares_to_mint
        9090
    """

    def __init__(self, accounting: ShareAccounting, state: FundState):
        self._accounting = accounting
        self._state = state

    def quote(self) -> FeeQuote:
        """Compute the fee a collection would charge right now."""
        current = self._accounting.total_value()
        principal = self._state.principal_after_fees
        gains = max(current - principal, 0)
        fee_value = gains * self._state.protocol_fee_rate // 100
        supply = self._accounting.total_supply()
        shares = fee_value * supply // current if current > 0 else 0
        return FeeQuote(
            current_value=current,
            principal_after_fees=principal,
            new_gains=gains,
            fee_value=fee_value,
            shares_to_mint=shares,
        )

    def is_due(self) -> bool:
        return self._accounting.total_value() > self._state.principal_after_fees

    def collect(self, tx: OperationTransaction) -> FeeQuote:
        """
        Mint fee shares to the treasury and reset the principal baseline.

        Raises:
            NoGainsError: If fund value does not exceed principal_after_fees
        """
        quote = self.quote()
        if not quote.has_gains:
            raise NoGainsError(
                f"Fund value {quote.current_value} does not exceed principal "
                f"{quote.principal_after_fees}",
                details={
                    "current_value": quote.current_value,
                    "principal_after_fees": quote.principal_after_fees,
                },
            )

        treasury = self._state.treasury
        if quote.shares_to_mint > 0:
            self._accounting.mint(treasury, quote.shares_to_mint, tx)
        self._state.principal_after_fees = quote.current_value

        tx.emit(
            ProtocolFeesCollectedEvent(
                fee_value=quote.fee_value,
                shares_minted=quote.shares_to_mint,
                treasury=treasury,
            )
        )
        logger.info(
            f"Fees collected: gains={quote.new_gains}, fee={quote.fee_value}, "
            f"shares={quote.shares_to_mint} to {treasury}"
        )
        return quote
