"""
Core module for the fund vault engine.

Provides logging utilities and the error taxonomy.
"""

from .exceptions import (
    ExternalCallError,
    FundVaultError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InsufficientLiquidityError,
    InvalidAdapterError,
    InvalidArgumentError,
    NoGainsError,
    RangeError,
    ReentrancyDetectedError,
    UnauthorizedError,
    ZeroSharesComputedError,
)
from .logger import setup_logger, get_logger
from .structured_logging import (
    # Loggers
    StructuredLogger,
    AuditLogger,
    SecurityLogger,
    # Logger factories
    get_audit_logger,
    get_security_logger,
    # Types
    LogChannel,
    EventType,
    LogContext,
    # Context management
    set_correlation_id,
    get_correlation_id,
    set_operation_context,
    clear_operation_context,
)

__all__ = [
    # Exceptions
    "FundVaultError",
    "InvalidArgumentError",
    "UnauthorizedError",
    "InvalidAdapterError",
    "ZeroSharesComputedError",
    "InsufficientBalanceError",
    "InsufficientAllowanceError",
    "RangeError",
    "InsufficientLiquidityError",
    "NoGainsError",
    "ReentrancyDetectedError",
    "ExternalCallError",
    # Basic logging
    "setup_logger",
    "get_logger",
    # Structured logging
    "StructuredLogger",
    "AuditLogger",
    "SecurityLogger",
    "get_audit_logger",
    "get_security_logger",
    "LogChannel",
    "EventType",
    "LogContext",
    "set_correlation_id",
    "get_correlation_id",
    "set_operation_context",
    "clear_operation_context",
]
