"""Core exception hierarchy for pipewatch.

All pipewatch exceptions inherit from PipewatchError for easy exception
handling. Remote operations only ever raise :class:`RemoteError`.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class PipewatchError(Exception):
    """Base exception for all pipewatch errors.

    Catch this to handle all pipewatch errors.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(PipewatchError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("dashboard", "unknown key 'timeout'")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(PipewatchError):
    """Raised when data validation fails.

    Examples
    --------
    Example usage::

        raise ValidationError("refresh_interval_ms", "must be positive", value=-1)
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Remote Errors
# ============================================================================


class RemoteError(PipewatchError):
    """Raised when a request to the job-running service fails.

    Covers non-2xx responses, transport failures and undecodable bodies.

    Attributes
    ----------
    status_code : int | None
        The HTTP status code, or None when no response was received.
    message : str
        Best-effort description of the failure.
    """

    def __init__(self, status_code: int | None, message: str = "") -> None:
        self.status_code = status_code
        if not message:
            message = f"HTTP {status_code}" if status_code is not None else "Request failed"
        self.message = message
        super().__init__(message)


# ============================================================================
# State Machine Errors
# ============================================================================


class InvalidTransitionError(PipewatchError):
    """Raised when a state transition violates the machine config."""


__all__ = [
    "ConfigurationError",
    "InvalidTransitionError",
    "PipewatchError",
    "RemoteError",
    "ValidationError",
]
