"""Exception hierarchy for the CDN IP updater.

All updater errors inherit from UpdaterError so the CLI can report them
uniformly before exiting.

Exception Hierarchy:
    UpdaterError (base for all updater exceptions)
    ├── ConfigurationError (bad selectors, options or config file)
    ├── FetchError (network or HTTP status failures)
    ├── EmptyResultError (extraction produced no addresses)
    ├── WriteError (filesystem failures in the target directory)
    └── ServiceReloadError (a single service failed to reload)

Usage:
    from cdn_ips_updater.exceptions import FetchError

    try:
        text = fetcher.fetch_text(url)
    except FetchError as e:
        logger.error("%s", e)
        return 1
"""

from __future__ import annotations

from typing import Any


class UpdaterError(Exception):
    """Base exception for all updater errors.

    Attributes:
        message: Human-readable error message.
        details: Additional context about the error (optional).
        error_code: Machine-readable error code (optional).
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Additional context as key-value pairs.
            error_code: Machine-readable error code.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.error_code = error_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for structured reporting.

        Returns:
            Dictionary with error details suitable for JSON serialization.
        """
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.error_code:
            result["code"] = self.error_code
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(UpdaterError):
    """Invalid selectors, options, or configuration file.

    Example:
        >>> raise ConfigurationError(
        ...     "Unknown option or command: restart",
        ...     details={"argument": "restart"},
        ... )
    """


class FetchError(UpdaterError):
    """Network or HTTP failure while downloading an IP list.

    Attributes:
        url: URL that failed.
        status_code: HTTP status code, if a response was received.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize fetch error with request context.

        Args:
            message: Description of the failure.
            url: URL that was requested.
            status_code: HTTP status code of the response.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        details = details or {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message,
            details=details,
            error_code=error_code or "FETCH_FAILED",
        )
        self.url = url
        self.status_code = status_code


class EmptyResultError(UpdaterError):
    """Extraction produced zero addresses.

    Attributes:
        source: URL or provider the text came from.
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize empty result error.

        Args:
            message: Description of the failure.
            source: URL or provider name the response came from.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        details = details or {}
        if source:
            details["source"] = source
        super().__init__(
            message,
            details=details,
            error_code=error_code or "EMPTY_RESULT",
        )
        self.source = source


class WriteError(UpdaterError):
    """Filesystem failure while preparing the directory or writing a list.

    Attributes:
        path: File or directory that could not be written.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize write error.

        Args:
            message: Description of the failure.
            path: Path that could not be written.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(
            message,
            details=details,
            error_code=error_code or "WRITE_FAILED",
        )
        self.path = path


class ServiceReloadError(UpdaterError):
    """A single service failed to reload.

    Not fatal: the reloader records it and moves on to the next service.

    Attributes:
        service: Name of the service.
        returncode: Exit status of the service manager, if it ran.
    """

    def __init__(
        self,
        message: str,
        *,
        service: str,
        returncode: int | None = None,
        details: dict[str, Any] | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize service reload error.

        Args:
            message: Description of the failure.
            service: Service that failed to reload.
            returncode: Exit status of the reload command.
            details: Additional context.
            error_code: Machine-readable error code.
        """
        details = details or {}
        details["service"] = service
        if returncode is not None:
            details["returncode"] = returncode
        super().__init__(
            message,
            details=details,
            error_code=error_code or "RELOAD_FAILED",
        )
        self.service = service
        self.returncode = returncode
