"""
Collaborator Interfaces.

Protocols for the external systems the vault drives: the backing asset,
the share ledger and the strategy adapters. Callers identify themselves
explicitly since there is no ambient sender.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AssetToken(Protocol):
    """Fungible backing asset held in custody by the vault."""

    def balance_of(self, account: str) -> int:
        """Get the asset balance of an account."""
        ...

    def allowance(self, owner: str, spender: str) -> int:
        """Get how much ``spender`` may pull from ``owner``."""
        ...

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Allow ``spender`` to pull up to ``amount`` from ``owner``."""
        ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move ``amount`` from sender to recipient."""
        ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        """Move ``amount`` from owner to recipient, consuming spender's allowance."""
        ...


@runtime_checkable
class ShareLedger(Protocol):
    """Share token ledger; mint and burn are reserved to the vault."""

    def mint(self, account: str, shares: int) -> None:
        ...

    def burn(self, account: str, shares: int) -> None:
        ...

    def total_supply(self) -> int:
        ...

    def balance_of(self, account: str) -> int:
        ...


@runtime_checkable
class StrategyAdapter(Protocol):
    """
    Yield venue the vault allocates capital to.

    ``deposit`` pulls the approved amount from the vault account;
    ``withdraw`` sends ``amount`` of the asset to ``recipient``.
    """

    address: str

    def name(self) -> str:
        ...

    def value(self) -> int:
        """Current value held for the vault, in asset units."""
        ...

    def deposit(self, amount: int) -> None:
        ...

    def withdraw(self, amount: int, recipient: str) -> None:
        ...
