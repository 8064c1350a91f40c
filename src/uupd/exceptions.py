"""Exception classes for uupd operations."""


class UupdError(Exception):
    """Base exception for uupd operations."""

    error_prefix: str = "Operation failed"

    def __init__(self, message: str, target: str | None = None) -> None:
        """Initialize error with message and optional target.

        Args:
            message: Error message describing the failure.
            target: Optional name of the driver or resource that failed.

        """
        super().__init__(message)
        self.message = message
        self.target = target

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.target:
            return f"{self.error_prefix} for '{self.target}': {self.message}"
        return f"{self.error_prefix}: {self.message}"


class LockError(UupdError):
    """Raised when the single-instance lock cannot be acquired."""

    error_prefix = "Lock unavailable"

    def __init__(
        self,
        message: str,
        target: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize lock error with the underlying OS error, if any."""
        super().__init__(message, target)
        self.cause = cause


class DriverError(UupdError):
    """Raised when a driver probe or construction step fails."""

    error_prefix = "Driver failed"


class SessionError(UupdError):
    """Raised when user sessions cannot be enumerated."""

    error_prefix = "Session enumeration failed"


class HardwareCheckError(UupdError):
    """Raised when a mandatory hardware check fails."""

    error_prefix = "Hardware checks failed"


class ConfigurationError(UupdError):
    """Raised when the settings file or logging setup is invalid."""

    error_prefix = "Invalid configuration"


class DriverUnavailableError(DriverError):
    """Raised by a driver probe when its tool is not installed."""

    error_prefix = "Driver unavailable"
