"""
Core Unit Tests.

Tests for the exception hierarchy and logging utilities.
"""

import json
import logging

import pytest

from fund_vault.core import (
    EventType,
    FundVaultError,
    InsufficientLiquidityError,
    InvalidArgumentError,
    LogChannel,
    RangeError,
    UnauthorizedError,
    get_logger,
    set_correlation_id,
    clear_operation_context,
)
from fund_vault.core.structured_logging import JSONFormatter


class TestExceptions:
    """Test the error taxonomy."""

    def test_default_message(self):
        """Test errors fall back to their default message."""
        error = RangeError()

        assert error.message == "Index out of range"
        assert isinstance(error, FundVaultError)

    def test_str_includes_code_and_details(self):
        """Test string form carries code and details."""
        error = InvalidArgumentError("bad weight", code="E_WEIGHT", details={"weight": -1})

        text = str(error)
        assert "bad weight" in text
        assert "[E_WEIGHT]" in text
        assert "weight" in text

    def test_unauthorized_fields(self):
        """Test Unauthorized exposes account and capability."""
        error = UnauthorizedError("denied", account="eve", capability="owner")

        assert "account=eve" in str(error)
        assert "requires=owner" in str(error)

    def test_insufficient_liquidity_fields(self):
        """Test InsufficientLiquidity exposes the shortfall."""
        error = InsufficientLiquidityError(shortfall=100, uncovered=40)

        assert error.shortfall == 100
        assert "uncovered=40" in str(error)

    def test_catchable_as_base(self):
        """Test every taxonomy error is a FundVaultError."""
        with pytest.raises(FundVaultError):
            raise RangeError("index 3")


class TestLogging:
    """Test logging utilities."""

    def test_get_logger_configures_once(self):
        """Test repeated lookups reuse the same logger."""
        first = get_logger("fund_vault.test_logger")
        handlers = list(first.handlers)

        second = get_logger("fund_vault.test_logger")

        assert first is second
        assert second.handlers == handlers

    def test_module_loggers_share_package_handlers(self):
        """Test vault module loggers propagate to the configured package logger."""
        module_logger = get_logger("fund_vault.vault.core.custody")
        package_logger = logging.getLogger("fund_vault")

        assert module_logger.handlers == []
        assert module_logger.propagate is True
        assert package_logger.handlers
        assert package_logger.propagate is False

    def test_foreign_logger_gets_own_handlers(self):
        """Test names outside the package are configured directly."""
        other = get_logger("keeper_bot")

        assert other.handlers
        assert other.propagate is False

    def test_json_formatter_includes_context(self):
        """Test structured records carry channel, event and correlation id."""
        formatter = JSONFormatter(LogChannel.AUDIT)
        cid = set_correlation_id("cid-123")
        record = logging.LogRecord(
            name="structured.audit.test",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Audit record",
            args=(),
            exc_info=None,
        )
        record.event_type = EventType.DEPOSIT
        record.data = {"amount": 100}

        try:
            payload = json.loads(formatter.format(record))
        finally:
            clear_operation_context()

        assert cid == "cid-123"
        assert payload["channel"] == "audit"
        assert payload["event_type"] == EventType.DEPOSIT.value
        assert payload["context"]["correlation_id"] == "cid-123"
        assert payload["data"] == {"amount": 100}
