"""Logging setup for console and the system log.

Every message goes to the console and, when available, to syslog tagged
with a fixed identifier so it can be followed with ``journalctl -t <tag>``.
"""

from __future__ import annotations

import errno
import logging
import logging.handlers
import os
import sys
from typing import Any

PACKAGE_LOGGER = "cdn_ips_updater"

# Between INFO and WARNING; sent to syslog as "notice"
SUCCESS = 25
logging.addLevelName(SUCCESS, "SUCCESS")

CONSOLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _MaxLevelFilter(logging.Filter):
    """Pass records below a level."""

    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the package namespace.

    Args:
        name: Optional child name.

    Returns:
        Logger instance.
    """
    if not name or name == PACKAGE_LOGGER:
        return logging.getLogger(PACKAGE_LOGGER)
    if name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def log_success(logger: logging.Logger, msg: str, *args: Any) -> None:
    """Log a message at SUCCESS level."""
    logger.log(SUCCESS, msg, *args)


def create_syslog_handler(
    tag: str,
    address: str | tuple[str, int] = "/dev/log",
) -> logging.Handler:
    """Create a syslog handler with the given identifier.

    Args:
        tag: Identifier prefixed to each message.
        address: Path of the syslog unix socket, or a (host, port) pair.

    Returns:
        Configured SysLogHandler.

    Raises:
        OSError: If the syslog socket does not exist.
    """
    # SysLogHandler defers unix socket errors to emit()
    if isinstance(address, str) and not os.path.exists(address):
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), address)

    handler = logging.handlers.SysLogHandler(
        address=address,
        facility=logging.handlers.SysLogHandler.LOG_USER,
    )
    handler.ident = f"{tag}: "
    handler.priority_map = {**handler.priority_map, "SUCCESS": "notice"}
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    tag: str,
    verbose: bool = False,
    syslog: bool = True,
    address: str = "/dev/log",
) -> logging.Logger:
    """Configure the package logger for CLI output.

    INFO and SUCCESS go to stdout, warnings and errors to stderr. Calling
    this again replaces the handlers installed by the previous call.

    Args:
        tag: Syslog identifier.
        verbose: Enable debug logging.
        syslog: Also log to the system log.
        address: Path of the syslog unix socket.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    formatter = logging.Formatter(CONSOLE_FORMAT, datefmt=CONSOLE_DATEFMT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    stderr_handler.setLevel(logging.WARNING)
    logger.addHandler(stderr_handler)

    if syslog:
        try:
            logger.addHandler(create_syslog_handler(tag, address))
        except OSError as e:
            logger.warning("System log unavailable at %s (%s), logging to console only", address, e)

    return logger
