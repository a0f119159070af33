"""Utility modules for logging."""

from cdn_ips_updater.utils.logging import SUCCESS, get_logger, log_success, setup_logging

__all__ = [
    "SUCCESS",
    "get_logger",
    "log_success",
    "setup_logging",
]
