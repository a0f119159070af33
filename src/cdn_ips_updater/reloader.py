"""Graceful reload of dependent services through systemctl."""

import logging
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from cdn_ips_updater.exceptions import ServiceReloadError
from cdn_ips_updater.utils.logging import log_success

logger = logging.getLogger(__name__)

Runner = Callable[..., subprocess.CompletedProcess[Any]]


class ReloadStatus(str, Enum):
    """Outcome of a single service reload."""

    RELOADED = "reloaded"
    SKIPPED = "skipped"  # Service not active
    FAILED = "failed"


@dataclass
class ReloadResult:
    """Result of reloading a service.

    Attributes:
        service: Service name
        status: What happened to the service
        error: Error message if the reload failed
    """

    service: str
    status: ReloadStatus
    error: str | None = None


class ServiceReloader:
    """Reloads services that are currently running.

    Example:
        ```python
        reloader = ServiceReloader()
        results = reloader.reload_all(["haproxy", "fail2ban"])
        ```
    """

    def __init__(
        self,
        systemctl: str = "systemctl",
        runner: Runner = subprocess.run,
        timeout: float | None = None,
    ) -> None:
        """Initialize the reloader.

        Args:
            systemctl: Service manager executable.
            runner: Callable with the signature of subprocess.run.
            timeout: Optional timeout for each systemctl call.
        """
        self.systemctl = systemctl
        self._run = runner
        self.timeout = timeout

    def is_active(self, service: str) -> bool:
        """Check whether a service is running.

        Args:
            service: Service name.

        Returns:
            True if ``systemctl is-active`` reports the service as active.

        Raises:
            ServiceReloadError: If systemctl cannot be executed.
        """
        try:
            result = self._run(
                [self.systemctl, "is-active", "--quiet", service],
                check=False,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"Could not query status of {service}: {e}"
            raise ServiceReloadError(msg, service=service) from e
        return result.returncode == 0

    def reload_service(self, service: str) -> ReloadStatus:
        """Reload one service if it is active.

        Args:
            service: Service name.

        Returns:
            RELOADED or SKIPPED.

        Raises:
            ServiceReloadError: If the reload command fails.
        """
        logger.info("Checking status of service: %s", service)

        if not self.is_active(service):
            logger.info("Service %s is not running, skipping reload", service)
            return ReloadStatus.SKIPPED

        logger.info("Service %s is active, reloading", service)
        try:
            result = self._run(
                [self.systemctl, "reload", service],
                check=False,
                timeout=self.timeout,
            )
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"Reload of {service} failed: {e}"
            raise ServiceReloadError(msg, service=service) from e

        if result.returncode != 0:
            msg = f"Reload of {service} failed with exit status {result.returncode}"
            raise ServiceReloadError(msg, service=service, returncode=result.returncode)

        log_success(logger, "Service %s reloaded", service)
        return ReloadStatus.RELOADED

    def reload_all(self, services: Sequence[str]) -> list[ReloadResult]:
        """Reload every active service, continuing past failures.

        Args:
            services: Service names in processing order.

        Returns:
            One result per service.
        """
        logger.info("Checking and reloading services")
        results = []

        for service in services:
            try:
                status = self.reload_service(service)
            except ServiceReloadError as e:
                logger.error("%s", e)
                results.append(ReloadResult(service, ReloadStatus.FAILED, str(e)))
            else:
                results.append(ReloadResult(service, status))

        failed = sum(1 for r in results if r.status == ReloadStatus.FAILED)
        if failed:
            logger.warning("Service reload finished with %d failure(s)", failed)
        else:
            log_success(logger, "Service check and reload finished")
        return results
