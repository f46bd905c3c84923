"""Configuration models."""

from .base import BaseConfig
from .vault import StrategyConfig, VaultConfig

__all__ = [
    "BaseConfig",
    "StrategyConfig",
    "VaultConfig",
]
