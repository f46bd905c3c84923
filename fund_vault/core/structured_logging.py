"""
Structured logging module.

Provides JSON-formatted logging with correlation IDs, context injection,
and separate log channels for audit and security records.
"""

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Context variables for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
operation_var: ContextVar[Optional[str]] = ContextVar("operation", default=None)
account_var: ContextVar[Optional[str]] = ContextVar("account", default=None)


class LogChannel(Enum):
    """Log channels for different purposes."""

    APPLICATION = "application"
    AUDIT = "audit"
    SECURITY = "security"


class EventType(Enum):
    """Standard event types for structured logging."""

    # Ledger events
    DEPOSIT = "fund.deposit"
    TRANSFER = "fund.transfer"

    # Redemption events
    REDEMPTION_REQUESTED = "redemption.requested"
    REDEMPTION_PROCESSED = "redemption.processed"
    REDEMPTION_QUEUE_TRIMMED = "redemption.queue_trimmed"
    PAYOUT_DEFERRED = "redemption.payout_deferred"
    PAYOUT_CLAIMED = "redemption.payout_claimed"

    # Fee events
    PROTOCOL_FEES_COLLECTED = "fees.collected"

    # Strategy events
    STRATEGY_ADDED = "strategy.added"
    STRATEGIES_REMOVED = "strategy.removed"
    WEIGHTS_UPDATED = "strategy.weights_updated"
    CAPITAL_DEPLOYED = "strategy.capital_deployed"

    # Administrative events
    CONFIG_CHANGED = "config.changed"

    # Transaction events
    OPERATION_ROLLED_BACK = "operation.rolled_back"
    IRREVERSIBLE_EFFECT = "operation.irreversible_effect"
    COMPENSATION_FAILED = "operation.compensation_failed"

    # Security events
    AUTH_FAILURE = "auth.failure"
    REENTRANCY_REJECTED = "reentrancy.rejected"


@dataclass
class LogContext:
    """Context information for structured logs."""

    correlation_id: Optional[str] = None
    operation: Optional[str] = None
    account: Optional[str] = None
    strategy: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {}
        for key, value in asdict(self).items():
            if value is not None:
                if key == "extra":
                    result.update(value)
                else:
                    result[key] = value
        return result


@dataclass
class StructuredLogRecord:
    """Structured log record for JSON output."""

    timestamp: str
    level: str
    channel: str
    event_type: str
    message: str
    logger_name: str
    context: Dict[str, Any] = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "timestamp": self.timestamp,
            "level": self.level,
            "channel": self.channel,
            "event_type": self.event_type,
            "message": self.message,
            "logger": self.logger_name,
            "context": self.context,
            "data": self.data,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), default=str)


class JSONFormatter(logging.Formatter):
    """Formatter that outputs JSON structured logs."""

    def __init__(self, channel: LogChannel = LogChannel.APPLICATION):
        super().__init__()
        self._channel = channel

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        context = {
            "correlation_id": correlation_id_var.get(),
            "operation": operation_var.get(),
            "account": account_var.get(),
        }
        context = {k: v for k, v in context.items() if v is not None}

        if hasattr(record, "context") and isinstance(record.context, dict):
            context.update(record.context)

        event_type = getattr(record, "event_type", "log.message")
        if isinstance(event_type, EventType):
            event_type = event_type.value

        data = getattr(record, "data", {})
        if not isinstance(data, dict):
            data = {"value": data}

        structured = StructuredLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=record.levelname,
            channel=self._channel.value,
            event_type=event_type,
            message=record.getMessage(),
            logger_name=record.name,
            context=context,
            data=data,
        )

        return structured.to_json()


class StructuredLogger:
    """
    Structured logger with JSON output and correlation ID support.

    JSON lines are written to ``<log_dir>/<channel>.jsonl`` when a log
    directory is given or FUND_VAULT_LOG_DIR is set, and to stdout when
    LOG_JSON_CONSOLE=true. Without either the records still reach any
    handler attached by the host application.
    """

    def __init__(
        self,
        name: str,
        channel: LogChannel = LogChannel.APPLICATION,
        level: int = logging.INFO,
        log_dir: Optional[Path] = None,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            channel: Log channel
            level: Log level
            log_dir: Directory for log files
        """
        self._name = name
        self._channel = channel
        self._logger = logging.getLogger(f"structured.{channel.value}.{name}")
        self._logger.setLevel(level)
        self._logger.propagate = False

        if log_dir is None and os.getenv("FUND_VAULT_LOG_DIR"):
            log_dir = Path(os.environ["FUND_VAULT_LOG_DIR"])

        if not self._logger.handlers:
            if log_dir is not None:
                log_dir.mkdir(parents=True, exist_ok=True)
                file_handler = RotatingFileHandler(
                    log_dir / f"{channel.value}.jsonl",
                    maxBytes=50 * 1024 * 1024,  # 50 MB
                    backupCount=10,
                    encoding="utf-8",
                )
                file_handler.setFormatter(JSONFormatter(channel))
                self._logger.addHandler(file_handler)

            if os.getenv("LOG_JSON_CONSOLE", "false").lower() == "true":
                console_handler = logging.StreamHandler(sys.stdout)
                console_handler.setFormatter(JSONFormatter(channel))
                self._logger.addHandler(console_handler)

    @property
    def channel(self) -> LogChannel:
        return self._channel

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(
        self,
        level: int,
        event_type: Union[str, EventType],
        message: str,
        context: Optional[LogContext] = None,
        **data: Any,
    ) -> None:
        """Internal logging method."""
        extra = {
            "event_type": event_type,
            "data": data,
        }
        if context:
            extra["context"] = context.to_dict()

        self._logger.log(level, message, extra=extra)

    def info(
        self,
        event_type: Union[str, EventType],
        message: str,
        context: Optional[LogContext] = None,
        **data: Any,
    ) -> None:
        """Log info message."""
        self._log(logging.INFO, event_type, message, context, **data)

    def warning(
        self,
        event_type: Union[str, EventType],
        message: str,
        context: Optional[LogContext] = None,
        **data: Any,
    ) -> None:
        """Log warning message."""
        self._log(logging.WARNING, event_type, message, context, **data)

    def error(
        self,
        event_type: Union[str, EventType],
        message: str,
        context: Optional[LogContext] = None,
        **data: Any,
    ) -> None:
        """Log error message."""
        self._log(logging.ERROR, event_type, message, context, **data)

    def critical(
        self,
        event_type: Union[str, EventType],
        message: str,
        context: Optional[LogContext] = None,
        **data: Any,
    ) -> None:
        """Log critical message."""
        self._log(logging.CRITICAL, event_type, message, context, **data)


class AuditLogger(StructuredLogger):
    """Specialized logger for fund audit records."""

    def __init__(self, name: str, log_dir: Optional[Path] = None):
        super().__init__(name, LogChannel.AUDIT, log_dir=log_dir)

    def record(self, event_type: EventType, payload: Dict[str, Any]) -> None:
        """Log a committed audit record."""
        self.info(event_type, f"Audit record: {event_type.value}", **payload)

    def config_changed(
        self,
        config_key: str,
        old_value: Any,
        new_value: Any,
        changed_by: Optional[str] = None,
        **extra: Any,
    ) -> None:
        """Log configuration change."""
        ctx = LogContext(account=changed_by)
        self.info(
            EventType.CONFIG_CHANGED,
            f"Config changed: {config_key}",
            context=ctx,
            config_key=config_key,
            old_value=str(old_value),
            new_value=str(new_value),
            **extra,
        )

    def operation_rolled_back(
        self,
        operation: str,
        transaction_id: str,
        reason: str,
        irreversible: List[str],
    ) -> None:
        """Log a rolled back operation."""
        ctx = LogContext(operation=operation, correlation_id=transaction_id)
        self.warning(
            EventType.OPERATION_ROLLED_BACK,
            f"Operation rolled back: {operation} - {reason}",
            context=ctx,
            reason=reason,
            irreversible=irreversible,
        )

    def compensation_failed(
        self,
        operation: str,
        transaction_id: str,
        action: str,
        error: str,
    ) -> None:
        """Log a compensation that could not be applied during rollback."""
        ctx = LogContext(operation=operation, correlation_id=transaction_id)
        self.error(
            EventType.COMPENSATION_FAILED,
            f"Compensation failed: {action}",
            context=ctx,
            action=action,
            error=error,
        )

    def irreversible_effects(
        self,
        operation: str,
        transaction_id: str,
        effects: List[str],
    ) -> None:
        """Log effects that survived a rollback."""
        ctx = LogContext(operation=operation, correlation_id=transaction_id)
        self.critical(
            EventType.IRREVERSIBLE_EFFECT,
            f"Rolled back after irreversible effects: {operation}",
            context=ctx,
            effects=effects,
        )


class SecurityLogger(StructuredLogger):
    """Specialized logger for security events."""

    def __init__(self, name: str, log_dir: Optional[Path] = None):
        super().__init__(name, LogChannel.SECURITY, log_dir=log_dir)

    def auth_failure(
        self,
        account: Optional[str],
        capability: str,
        **extra: Any,
    ) -> None:
        """Log failed capability check."""
        ctx = LogContext(account=account)
        self.warning(
            EventType.AUTH_FAILURE,
            f"Capability check failed: {account or 'unknown'} lacks {capability}",
            context=ctx,
            capability=capability,
            **extra,
        )

    def reentrancy_rejected(
        self,
        attempted: str,
        active: Optional[str],
        **extra: Any,
    ) -> None:
        """Log a rejected reentrant call."""
        self.warning(
            EventType.REENTRANCY_REJECTED,
            f"Reentrant call rejected: {attempted} during {active or 'unknown'}",
            attempted=attempted,
            active=active,
            **extra,
        )


# Context management functions
def generate_correlation_id() -> str:
    """Generate a new correlation ID."""
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set correlation ID in context, returns the ID used."""
    cid = correlation_id or generate_correlation_id()
    correlation_id_var.set(cid)
    return cid


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID."""
    return correlation_id_var.get()


def set_operation_context(
    correlation_id: Optional[str] = None,
    operation: Optional[str] = None,
    account: Optional[str] = None,
) -> str:
    """Set operation context, returns correlation ID."""
    cid = set_correlation_id(correlation_id)
    if operation:
        operation_var.set(operation)
    if account:
        account_var.set(account)
    return cid


def clear_operation_context() -> None:
    """Clear all operation context."""
    correlation_id_var.set(None)
    operation_var.set(None)
    account_var.set(None)


# Logger factory functions
_loggers: Dict[str, StructuredLogger] = {}


def get_audit_logger(name: str = "audit") -> AuditLogger:
    """Get or create an audit logger."""
    key = f"audit.{name}"
    if key not in _loggers:
        _loggers[key] = AuditLogger(name)
    return _loggers[key]  # type: ignore


def get_security_logger(name: str = "security") -> SecurityLogger:
    """Get or create a security logger."""
    key = f"security.{name}"
    if key not in _loggers:
        _loggers[key] = SecurityLogger(name)
    return _loggers[key]  # type: ignore
