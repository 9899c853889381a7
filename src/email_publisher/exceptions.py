# src/email_publisher/exceptions.py

"""
Shared custom exceptions for the Email Publisher service.

Exception Hierarchy:
- EmailPublisherError (base)
  - RetryableError (can be retried)
    - QueueThrottlingError
    - QueueUnavailableError
    - QueueSendError
  - NonRetryableError (should not be retried)
    - ValidationError
      - InvalidEmailMessageError
    - QueueNotFoundError
    - QueueAccessDeniedError
    - TopologyError
      - DuplicateResourceError
      - UnknownResourceError
      - DependencyCycleError
    - ConfigurationError
"""

from typing import Any, Dict, Iterable, Optional


class EmailPublisherError(Exception):
    """Base exception for all Email Publisher errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        correlation_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = dict(context) if context else {}
        self.correlation_id = correlation_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "correlation_id": self.correlation_id,
            "retryable": isinstance(self, RetryableError),
        }


class RetryableError(EmailPublisherError):
    """Base class for errors that can be retried."""
    pass


class NonRetryableError(EmailPublisherError):
    """Base class for errors that should not be retried."""
    pass


# === Queue Errors ===

class QueueError(EmailPublisherError):
    """Base class for queue-related errors."""
    pass


class QueueNotFoundError(QueueError, NonRetryableError):
    """Raised when the target queue does not exist."""

    def __init__(self, queue_name: str, **kwargs):
        message = f"Queue not found: {queue_name}"
        context = {"queue_name": queue_name}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        super().__init__(message, error_code="QUEUE_NOT_FOUND", context=context, **kwargs)


class QueueAccessDeniedError(QueueError, NonRetryableError):
    """Raised when access to the queue is denied."""

    def __init__(self, queue_name: str, **kwargs):
        message = f"Access denied to queue: {queue_name}"
        context = {"queue_name": queue_name}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        super().__init__(message, error_code="QUEUE_ACCESS_DENIED", context=context, **kwargs)


class QueueThrottlingError(QueueError, RetryableError):
    """Raised when queue operations are being throttled."""

    def __init__(self, operation: str, **kwargs):
        message = f"Queue operation throttled: {operation}"
        context = {"operation": operation}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        super().__init__(message, error_code="QUEUE_THROTTLING", context=context, **kwargs)


class QueueUnavailableError(QueueError, RetryableError):
    """Raised when the queue endpoint cannot be reached."""

    def __init__(self, endpoint: str, **kwargs):
        message = f"Queue endpoint unreachable: {endpoint}"
        context = {"endpoint": endpoint}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        super().__init__(message, error_code="QUEUE_UNAVAILABLE", context=context, **kwargs)


class QueueSendError(QueueError, RetryableError):
    """Raised when a message could not be enqueued for any other reason."""

    def __init__(self, reason: str, **kwargs):
        message = f"Failed to send message: {reason}"
        context = {"reason": reason}
        if "context" in kwargs:
            context.update(kwargs.pop("context"))
        super().__init__(message, error_code="QUEUE_SEND_FAILED", context=context, **kwargs)


# === Validation Errors ===

class ValidationError(NonRetryableError):
    """Base class for validation errors."""
    pass


class InvalidEmailMessageError(ValidationError):
    """Raised when a producer tries to publish a malformed email message."""

    def __init__(self, message: str, **kwargs):
        if "error_code" not in kwargs:
            kwargs["error_code"] = "INVALID_EMAIL_MESSAGE"
        super().__init__(message, **kwargs)


# === Topology Errors ===

class TopologyError(NonRetryableError):
    """Base class for errors in the application composition."""
    pass


class DuplicateResourceError(TopologyError):
    """Raised when two resources share a name."""

    def __init__(self, name: str, **kwargs):
        message = f"Resource '{name}' is already declared"
        super().__init__(
            message, error_code="DUPLICATE_RESOURCE", context={"resource": name}, **kwargs
        )


class UnknownResourceError(TopologyError):
    """Raised when a resource depends on something that was never declared."""

    def __init__(self, name: str, referenced_by: str, **kwargs):
        message = f"Resource '{referenced_by}' refers to undeclared resource '{name}'"
        context = {"resource": name, "referenced_by": referenced_by}
        super().__init__(message, error_code="UNKNOWN_RESOURCE", context=context, **kwargs)


class DependencyCycleError(TopologyError):
    """Raised when wait-for dependencies form a cycle."""

    def __init__(self, cycle: Iterable[str], **kwargs):
        cycle = list(cycle)
        message = f"Dependency cycle detected: {' -> '.join(cycle)}"
        super().__init__(
            message, error_code="DEPENDENCY_CYCLE", context={"cycle": cycle}, **kwargs
        )


# === Configuration Errors ===

class ConfigurationError(NonRetryableError):
    """Raised when there's an error in the application configuration."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)


# === Utility Functions ===

def is_retryable_error(error: Exception) -> bool:
    """Check if an error is retryable."""
    return isinstance(error, RetryableError)


def get_error_context(error: Exception) -> Dict[str, Any]:
    """Extract error context for logging."""
    if isinstance(error, EmailPublisherError):
        return error.to_dict()
    else:
        return {
            "error_type": error.__class__.__name__,
            "message": str(error),
            "retryable": False,
        }
