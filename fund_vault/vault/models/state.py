"""
Fund State Models.

Mutable singleton state of the fund plus the immutable snapshot used to
restore every engine component when an operation rolls back.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Tuple

from .records import RedemptionRequest, StrategyEntry


@dataclass
class FundState:
    """
    Singleton fund accounting state.

    Attributes:
        principal_after_fees: Fund value already fee-accounted; baseline for gains
        protocol_fee_rate: Performance fee in percent (0-100)
        treasury: Account receiving fee shares
        unclaimed: Settled payouts whose transfer the recipient rejected;
            held in idle custody and excluded from fund value until claimed
    """

    treasury: str
    protocol_fee_rate: int = 0
    principal_after_fees: int = 0
    unclaimed: Dict[str, int] = field(default_factory=dict)

    @property
    def total_unclaimed(self) -> int:
        return sum(self.unclaimed.values())

    def credit_unclaimed(self, account: str, amount: int) -> None:
        self.unclaimed[account] = self.unclaimed.get(account, 0) + amount

    def take_unclaimed(self, account: str) -> int:
        """Remove and return the unclaimed payout of ``account``."""
        return self.unclaimed.pop(account, 0)

    def restore(self, snapshot: "FundState") -> None:
        """Overwrite this state in place from a snapshot copy."""
        self.treasury = snapshot.treasury
        self.protocol_fee_rate = snapshot.protocol_fee_rate
        self.principal_after_fees = snapshot.principal_after_fees
        self.unclaimed = dict(snapshot.unclaimed)

    def copy(self) -> "FundState":
        return FundState(
            treasury=self.treasury,
            protocol_fee_rate=self.protocol_fee_rate,
            principal_after_fees=self.principal_after_fees,
            unclaimed=dict(self.unclaimed),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "treasury": self.treasury,
            "protocol_fee_rate": self.protocol_fee_rate,
            "principal_after_fees": self.principal_after_fees,
            "unclaimed": dict(self.unclaimed),
        }


@dataclass(frozen=True)
class AccessSnapshot:
    owner: str
    treasury_manager: str
    whitelist: FrozenSet[str]


@dataclass(frozen=True)
class QueueSnapshot:
    requests: Tuple[RedemptionRequest, ...]
    next_request_id: int


@dataclass(frozen=True)
class VaultSnapshot:
    """Pre-operation state of every engine component."""

    fund: FundState
    strategies: Tuple[StrategyEntry, ...]
    queue: QueueSnapshot
    access: AccessSnapshot
