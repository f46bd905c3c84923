"""
Vault Configuration Model.

Accounts, fee rate and initial strategy weights for a fund vault.
"""

from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from .base import BaseConfig


class StrategyConfig(BaseConfig):
    """Configured target weight for a strategy, matched by adapter name."""

    name: str = Field(min_length=1)
    weight: int = Field(default=0, ge=0)


class VaultConfig(BaseConfig):
    """
    Fund vault configuration.

    Example:
        >>> config = VaultConfig(
        ...     owner="alice",
        ...     treasury="treasury",
        ...     protocol_fee_rate=10,
        ...     whitelist=["keeper"],
        ... )
    """

    account: str = Field(
        default="fund_vault",
        min_length=1,
        description="Account that holds custody of assets and locked shares",
    )
    owner: str = Field(min_length=1)
    treasury: str = Field(min_length=1)
    treasury_manager: Optional[str] = Field(
        default=None,
        description="Account allowed to change the treasury; defaults to owner",
    )
    protocol_fee_rate: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Performance fee in percent of realized gains",
    )
    whitelist: List[str] = Field(default_factory=list)
    strategies: List[StrategyConfig] = Field(default_factory=list)
    transaction_history_limit: int = Field(default=100, ge=1)

    @field_validator("whitelist")
    @classmethod
    def dedupe_whitelist(cls, v: List[str]) -> List[str]:
        """Drop duplicate and blank operator entries, keeping order."""
        seen: List[str] = []
        for account in v:
            if account and account not in seen:
                seen.append(account)
        return seen

    @field_validator("strategies")
    @classmethod
    def unique_strategy_names(cls, v: List[StrategyConfig]) -> List[StrategyConfig]:
        names = [s.name for s in v]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate strategy names: {duplicates}")
        return v

    @model_validator(mode="after")
    def distinct_custody_account(self) -> "VaultConfig":
        if self.account in (self.owner, self.treasury):
            raise ValueError("vault account must differ from owner and treasury")
        return self

    @property
    def effective_treasury_manager(self) -> str:
        return self.treasury_manager or self.owner
