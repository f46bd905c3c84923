"""
Operational logging for the fund vault.

Every vault component logs under the ``fund_vault`` namespace with
``get_logger(__name__)``. Handlers are attached once, to the package
logger, so records from the ledger, custody, allocator and redemption
modules share one console stream and one optional rotating file. Audit
and security records go through ``structured_logging`` instead.

Example:
    >>> from fund_vault.core import get_logger
    >>> logger = get_logger("fund_vault.vault.core.custody")
    >>> logger.debug("Pulled 1000 from alice")
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

PACKAGE_LOGGER = "fund_vault"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation for the operational log file
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    GRAY = "\033[90m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    RED = "\033[91m"
    BOLD = "\033[1m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED + Colors.BOLD,
}


class ColoredFormatter(logging.Formatter):
    """Console formatter; rejected payouts and rollbacks stand out by level."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
        return f"{color}{super().format(record)}{Colors.RESET}"


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def _file_handler(log_file: Path, level: int) -> RotatingFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return handler


def setup_logger(
    name: str = PACKAGE_LOGGER,
    level: int | str | None = None,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Attach console and file handlers to a logger.

    Called without a name this configures the package logger that every
    vault module propagates to. An already configured logger is returned
    unchanged.

    Args:
        name: Logger to configure, ``fund_vault`` by default
        level: Log level. Defaults to LOG_LEVEL env var or INFO
        log_file: Rotating log file. Defaults to FUND_VAULT_LOG_FILE env var;
                  console only when neither is set

    Returns:
        Configured logger instance

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/vault.log")
        >>> get_logger("fund_vault.vault.manager").info("Deposit accepted")
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _resolve_level(level)
    logger.setLevel(level)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(console)

    if log_file is None and os.getenv("FUND_VAULT_LOG_FILE"):
        log_file = os.environ["FUND_VAULT_LOG_FILE"]
    if log_file is not None:
        logger.addHandler(_file_handler(Path(log_file), level))

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get the logger for a vault module.

    Names under ``fund_vault`` carry no handlers of their own and propagate
    to the package logger, which is configured on first use. Any other
    name gets its own handlers.

    Args:
        name: Logger name, normally ``__name__``

    Returns:
        Logger instance
    """
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        setup_logger(PACKAGE_LOGGER)
        return logging.getLogger(name)
    return setup_logger(name)
