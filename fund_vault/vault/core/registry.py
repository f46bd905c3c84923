"""
Strategy Registry.

Ordered collection of strategy adapters and their allocation weights. Entries
keep the adapter, its name and its weight together so the strategy and weight
views are always co-indexed.
"""

from typing import List, Sequence, Tuple

from fund_vault.core import (
    InvalidAdapterError,
    InvalidArgumentError,
    RangeError,
    get_logger,
)

from ..interfaces import StrategyAdapter
from ..models.records import StrategyEntry

logger = get_logger(__name__)


def _is_amount(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class StrategyRegistry:
    """
    Registered strategies in allocation order.

    Example:
        >>> registry = StrategyRegistry()
        >>> registry.add(adapter, weight=50)
        0
        >>> registry.weights
        [50]
    """

    def __init__(self) -> None:
        self._entries: List[StrategyEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> StrategyEntry:
        self.check_index(index)
        return self._entries[index]

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def entries(self) -> List[StrategyEntry]:
        return list(self._entries)

    @property
    def adapters(self) -> List[StrategyAdapter]:
        return [e.adapter for e in self._entries]

    @property
    def names(self) -> List[str]:
        return [e.name for e in self._entries]

    @property
    def weights(self) -> List[int]:
        return [e.weight for e in self._entries]

    @property
    def total_weight(self) -> int:
        return sum(e.weight for e in self._entries)

    def values(self) -> List[int]:
        """Query every adapter for the value it currently holds."""
        return [e.adapter.value() for e in self._entries]

    def total_value(self) -> int:
        return sum(self.values())

    def check_index(self, index: int) -> None:
        """
        Raises:
            RangeError: If ``index`` is not a live registry position
        """
        if not isinstance(index, int) or index < 0 or index >= len(self._entries):
            raise RangeError(
                f"Strategy index {index} out of range (size {len(self._entries)})",
                details={"index": index, "size": len(self._entries)},
            )

    # =========================================================================
    # Mutation
    # =========================================================================

    def add(self, adapter: StrategyAdapter, weight: int) -> int:
        """
        Register a strategy after probing its name and value queries.

        Args:
            adapter: Strategy adapter
            weight: Non-negative allocation weight

        Returns:
            Index of the new entry

        Raises:
            InvalidArgumentError: If weight is negative or not an integer
            InvalidAdapterError: If the adapter does not answer its queries
        """
        if not _is_amount(weight):
            raise InvalidArgumentError(f"Weight must be a non-negative integer, got {weight!r}")

        try:
            name = adapter.name()
            value = adapter.value()
        except Exception as e:
            raise InvalidAdapterError(
                f"Strategy adapter did not answer name/value queries: {e}",
                details={"adapter": repr(adapter)},
            ) from e

        if not isinstance(name, str) or not name:
            raise InvalidAdapterError(f"Strategy adapter returned invalid name {name!r}")
        if not _is_amount(value):
            raise InvalidAdapterError(f"Strategy adapter {name} returned invalid value {value!r}")

        self._entries.append(StrategyEntry(adapter=adapter, name=name, weight=weight))
        index = len(self._entries) - 1
        logger.info(f"Strategy registered: {name} (weight={weight}, index={index})")
        return index

    def set_weights(self, weights: Sequence[int]) -> None:
        """
        Replace every weight at once.

        Raises:
            InvalidArgumentError: If the length differs from the registry size,
                a weight is negative, or all weights are zero
        """
        weights = list(weights)
        if len(weights) != len(self._entries):
            raise InvalidArgumentError(
                f"Expected {len(self._entries)} weights, got {len(weights)}",
                details={"expected": len(self._entries), "received": len(weights)},
            )
        for weight in weights:
            if not _is_amount(weight):
                raise InvalidArgumentError(f"Weight must be a non-negative integer, got {weight!r}")
        if sum(weights) <= 0:
            raise InvalidArgumentError("Sum of weights must be positive")

        self._entries = [
            StrategyEntry(adapter=e.adapter, name=e.name, weight=w)
            for e, w in zip(self._entries, weights)
        ]
        logger.info(f"Strategy weights updated: {weights}")

    def remove_at(self, index: int) -> StrategyEntry:
        """
        Remove the entry at ``index`` by swapping it with the last entry.

        The previous last entry takes over ``index``.
        """
        self.check_index(index)
        last = len(self._entries) - 1
        removed = self._entries[index]
        self._entries[index] = self._entries[last]
        self._entries.pop()
        logger.info(f"Strategy removed: {removed.name} (index={index})")
        return removed

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def create_snapshot(self) -> Tuple[StrategyEntry, ...]:
        return tuple(self._entries)

    def restore_snapshot(self, snapshot: Tuple[StrategyEntry, ...]) -> None:
        self._entries = list(snapshot)
