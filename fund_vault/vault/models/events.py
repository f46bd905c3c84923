"""
Vault Audit Events.

Observable records published when an operation commits.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Dict, Tuple

from fund_vault.core import EventType


@dataclass(frozen=True)
class VaultEvent:
    """Base class for audit events."""

    event_type: ClassVar[EventType]

    @property
    def event_name(self) -> str:
        return type(self).__name__.removesuffix("Event")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        data["event"] = self.event_name
        return data


@dataclass(frozen=True)
class DepositEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.DEPOSIT

    payer: str
    amount: int
    receiver: str
    shares: int


@dataclass(frozen=True)
class TransferEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.TRANSFER

    sender: str
    recipient: str
    amount: int
    shares: int


@dataclass(frozen=True)
class RedemptionRequestedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.REDEMPTION_REQUESTED

    requester: str
    amount: int
    index: int
    request_id: int


@dataclass(frozen=True)
class RedemptionProcessedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.REDEMPTION_PROCESSED

    start: int
    end: int
    paid_accounts: Tuple[str, ...]


@dataclass(frozen=True)
class ProtocolFeesCollectedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.PROTOCOL_FEES_COLLECTED

    fee_value: int
    shares_minted: int
    treasury: str


@dataclass(frozen=True)
class StrategyAddedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.STRATEGY_ADDED

    strategy: str
    weight: int
    index: int


@dataclass(frozen=True)
class StrategiesRemovedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.STRATEGIES_REMOVED

    strategies: Tuple[str, ...]
    recalled: int


@dataclass(frozen=True)
class WeightsUpdatedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.WEIGHTS_UPDATED

    weights: Tuple[int, ...]


@dataclass(frozen=True)
class CapitalDeployedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.CAPITAL_DEPLOYED

    total_capital: int
    withdrawn: int
    deposited: int


@dataclass(frozen=True)
class RedemptionQueueTrimmedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.REDEMPTION_QUEUE_TRIMMED

    removed: int
    remaining: int


@dataclass(frozen=True)
class ConfigurationChangedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.CONFIG_CHANGED

    key: str
    old_value: str
    new_value: str
    changed_by: str


@dataclass(frozen=True)
class PayoutDeferredEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.PAYOUT_DEFERRED

    recipient: str
    amount: int


@dataclass(frozen=True)
class PayoutClaimedEvent(VaultEvent):
    event_type: ClassVar[EventType] = EventType.PAYOUT_CLAIMED

    recipient: str
    amount: int
