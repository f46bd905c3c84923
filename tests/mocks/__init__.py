# Mock classes for testing
"""In-memory asset, share ledger and strategy collaborators for testing."""

from .asset_mock import MockAssetToken
from .ledger_mock import MockShareLedger
from .strategy_mock import MockStrategy

__all__ = [
    "MockAssetToken",
    "MockShareLedger",
    "MockStrategy",
]
