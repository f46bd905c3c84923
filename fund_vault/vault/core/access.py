"""
Access Control.

Capability checks gating privileged vault operations. The owner satisfies
every narrower capability.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set

from fund_vault.core import UnauthorizedError, get_logger, get_security_logger

from ..models.state import AccessSnapshot

logger = get_logger(__name__)


class Capability(Enum):
    """Vault capabilities."""

    OWNER = "owner"                        # Full control
    TREASURY_MANAGER = "treasury_manager"  # May change the treasury account only
    WHITELISTED = "whitelisted"            # Strategy, allocation, settlement and fee ops


@dataclass
class AccessCheckResult:
    """Result of access check."""

    allowed: bool
    account: Optional[str] = None
    capability: Optional[Capability] = None
    reason: str = ""


@dataclass
class AccessRegistry:
    """
    Owner, treasury manager and whitelisted operators.

    Example:
        >>> access = AccessRegistry(owner="alice")
        >>> access.set_whitelisted("keeper", True)
        >>> access.require("keeper", Capability.WHITELISTED)
    """

    owner: str
    treasury_manager: str = ""
    whitelist: Set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if not self.owner:
            raise ValueError("owner account is required")
        if not self.treasury_manager:
            self.treasury_manager = self.owner
        self.whitelist = set(self.whitelist)

    # =========================================================================
    # Authorization
    # =========================================================================

    def has(self, account: str, capability: Capability) -> bool:
        """Check whether ``account`` holds ``capability``."""
        if account == self.owner:
            return True
        if capability == Capability.TREASURY_MANAGER:
            return account == self.treasury_manager
        if capability == Capability.WHITELISTED:
            return account in self.whitelist
        return False

    def check(self, account: str, capability: Capability) -> AccessCheckResult:
        if self.has(account, capability):
            return AccessCheckResult(allowed=True, account=account, capability=capability)
        return AccessCheckResult(
            allowed=False,
            account=account,
            capability=capability,
            reason=f"Missing capability: {capability.value}",
        )

    def require(self, account: str, capability: Capability) -> None:
        """
        Enforce a capability.

        Raises:
            UnauthorizedError: If ``account`` lacks ``capability``
        """
        result = self.check(account, capability)
        if not result.allowed:
            get_security_logger().auth_failure(account, capability.value)
            logger.warning(f"Access denied: {account} lacks {capability.value}")
            raise UnauthorizedError(
                result.reason,
                account=account,
                capability=capability.value,
            )

    # =========================================================================
    # Mutation (authorization is enforced by the vault)
    # =========================================================================

    def set_whitelisted(self, account: str, allowed: bool) -> None:
        if allowed:
            self.whitelist.add(account)
        else:
            self.whitelist.discard(account)

    def transfer_ownership(self, new_owner: str) -> None:
        self.owner = new_owner

    def set_treasury_manager(self, account: str) -> None:
        self.treasury_manager = account

    # =========================================================================
    # Snapshot Support
    # =========================================================================

    def create_snapshot(self) -> AccessSnapshot:
        return AccessSnapshot(
            owner=self.owner,
            treasury_manager=self.treasury_manager,
            whitelist=frozenset(self.whitelist),
        )

    def restore_snapshot(self, snapshot: AccessSnapshot) -> None:
        self.owner = snapshot.owner
        self.treasury_manager = snapshot.treasury_manager
        self.whitelist = set(snapshot.whitelist)
