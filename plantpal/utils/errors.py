"""
Error types and logging helpers shared by the sync layer and the mock API.

Provides consistent error handling across the application:
- Exception hierarchy for the remote gateway and the local store
- Sanitized user-facing messages for API responses
- Context-aware logging that works with or without a Flask app context
"""

from __future__ import annotations
import logging

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

# User-friendly generic error messages
GENERIC_MESSAGES = {
    "storage": "Could not save your changes on this device.",
    "validation": "The information provided is invalid. Please check and try again.",
    "not_found": "The requested item was not found.",
    "network": "Network error occurred. Please check your connection and try again.",
    "server": "Something went wrong on our side. Please try again.",
}


class PlantPalError(Exception):
    """Base exception for all PlantPal errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details


# ----------------------------------------------------------------------------
# Remote gateway errors
# ----------------------------------------------------------------------------

class ApiError(PlantPalError):
    """Any failure talking to the remote API. Triggers local fallback."""
    pass


class ApiTimeoutError(ApiError):
    """The request did not complete within the configured timeout."""

    def __init__(self, message: str = "Request timeout", details: dict | None = None):
        super().__init__(message, details)


class ApiConnectionError(ApiError):
    """Connection refused, DNS failure, or the connection dropped mid-request."""
    pass


class ApiHTTPError(ApiError):
    """The server answered with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the server
    """

    status_code: int

    def __init__(self, message: str, status_code: int):
        super().__init__(message, details={"status_code": status_code})
        self.status_code = status_code


class ApiResponseError(ApiError):
    """The server answered 2xx but the envelope was unusable."""
    pass


# ----------------------------------------------------------------------------
# Local store errors
# ----------------------------------------------------------------------------

class StorageWriteError(PlantPalError):
    """A storage backend refused a write."""
    pass


class StorageQuotaExceeded(StorageWriteError):
    """A write would exceed the backend's byte quota."""
    pass


class LocalStoreError(PlantPalError):
    """A collection could not be persisted to local storage."""

    def __init__(self, message: str, key: str):
        super().__init__(message, details={"key": key})
        self.key = key


class RecordValidationError(PlantPalError):
    """Caller-supplied data does not form a valid record."""
    pass


class RecordNotFound(PlantPalError):
    """An update targeted a record the local store does not hold."""

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} not found", details={"id": record_id})
        self.kind = kind
        self.record_id = record_id


# ----------------------------------------------------------------------------
# Logging helpers
# ----------------------------------------------------------------------------

def _logger() -> logging.Logger:
    if has_app_context():
        return current_app.logger
    return logger


def _with_context(message: str, context: dict) -> str:
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        message = f"{message} | Context: {context_str}"
    return message


def log_error(message: str, **context) -> None:
    """
    Log an error with optional context.

    Uses the Flask app logger inside an app context, the module logger
    otherwise (CLI scripts, tests, library use).
    """
    _logger().error(_with_context(message, context))


def log_warning(message: str, **context) -> None:
    """
    Log a warning with optional context.

    Examples:
        >>> log_warning("Falling back to local store", operation="add_plant")
    """
    _logger().warning(_with_context(message, context))


def log_info(message: str, **context) -> None:
    """
    Log an info message with optional context.

    Examples:
        >>> log_info("Plant created", plant_name="Monstera")
    """
    _logger().info(_with_context(message, context))


def sanitize_error(error: Exception, error_type: str = "server", log_prefix: str = "") -> str:
    """
    Log full error details and return a user-friendly message.

    Args:
        error: The exception that occurred
        error_type: Type of error (storage, validation, not_found, network, server)
        log_prefix: Optional prefix for log message context

    Returns:
        User-friendly error message
    """
    error_message = str(error)
    log_message = f"{log_prefix}: {error_message}" if log_prefix else error_message

    if error_type in ["validation", "not_found"]:
        # Expected errors (caller mistakes)
        _logger().info(f"Expected error - {log_message}")
    else:
        _logger().error(f"Unexpected error - {log_message}", exc_info=True)

    return GENERIC_MESSAGES.get(error_type, GENERIC_MESSAGES["server"])
