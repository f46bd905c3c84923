"""
Custom exceptions for the fund vault engine.

Every error is terminal to the attempted operation only: the operation is
rolled back and the engine keeps its pre-call state.

Exception hierarchy:
    FundVaultError (base)
    ├── InvalidArgumentError
    ├── UnauthorizedError
    ├── InvalidAdapterError
    ├── ZeroSharesComputedError
    ├── InsufficientBalanceError
    ├── InsufficientAllowanceError
    ├── RangeError
    ├── InsufficientLiquidityError
    ├── NoGainsError
    ├── ReentrancyDetectedError
    └── ExternalCallError
"""

from typing import Any


class FundVaultError(Exception):
    """Base exception for all fund vault errors."""

    default_message = "Fund vault error occurred"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.default_message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"[{self.code}]")
        if self.details:
            parts.append(f"Details: {self.details}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r})"
        )


class InvalidArgumentError(FundVaultError):
    """An argument failed validation."""

    default_message = "Invalid argument"


class UnauthorizedError(FundVaultError):
    """Caller lacks the capability required by the operation."""

    default_message = "Unauthorized"

    def __init__(
        self,
        message: str | None = None,
        account: str | None = None,
        capability: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.account = account
        self.capability = capability

    def __str__(self) -> str:
        base = super().__str__()
        parts = [base]
        if self.account:
            parts.append(f"account={self.account}")
        if self.capability:
            parts.append(f"requires={self.capability}")
        return " ".join(parts)


class InvalidAdapterError(FundVaultError):
    """Strategy adapter did not answer its name or value query."""

    default_message = "Invalid strategy adapter"


class ZeroSharesComputedError(FundVaultError):
    """Share conversion rounded down to zero."""

    default_message = "Amount converts to zero shares"


class InsufficientBalanceError(FundVaultError):
    """Insufficient balance for operation."""

    default_message = "Insufficient balance"


class InsufficientAllowanceError(FundVaultError):
    """Payer has not approved enough of the backing asset."""

    default_message = "Insufficient allowance"


class RangeError(FundVaultError):
    """Index outside the bounds of the strategy registry or redemption queue."""

    default_message = "Index out of range"


class InsufficientLiquidityError(FundVaultError):
    """Strategies cannot cover a redemption shortfall."""

    default_message = "Insufficient liquidity"

    def __init__(
        self,
        message: str | None = None,
        shortfall: int = 0,
        uncovered: int = 0,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, code, details)
        self.shortfall = shortfall
        self.uncovered = uncovered

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (shortfall={self.shortfall}, uncovered={self.uncovered})"


class NoGainsError(FundVaultError):
    """Fund value has not grown past the fee-accounted principal."""

    default_message = "No gains to collect fees on"


class ReentrancyDetectedError(FundVaultError):
    """A guarded operation was entered while another one is in progress."""

    default_message = "Reentrant call rejected"


class ExternalCallError(FundVaultError):
    """An external collaborator failed or returned an unexpected result."""

    default_message = "External call failed"
