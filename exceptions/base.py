"""
Base exception classes for the Maikanwa store backend.
"""


class ShopException(Exception):
    """
    Base exception for all store errors.

    All custom exceptions in the application should inherit from this class.
    This allows mapping every store-specific error to an HTTP response with a
    single exception handler (see utils/error_handler.py).

    Attributes:
        message: Human-readable error message (returned to the client)
        details: Optional dict with additional context (entity IDs, states, etc.)
    """

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize base exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message."""
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation with context."""
        if self.details:
            details_str = ', '.join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class RateLimitExceededException(ShopException):
    """Raised when a client exceeds the allowed rate for an operation."""

    def __init__(self, operation: str, retry_after: int):
        super().__init__(
            "Too many requests, please try again later",
            details={'operation': operation, 'retry_after': retry_after}
        )
        self.operation = operation
        self.retry_after = retry_after


class ConfigurationException(ShopException):
    """Raised when a required setting is missing at request time."""

    def __init__(self, setting: str):
        super().__init__(
            f"{setting} not configured",
            details={'setting': setting}
        )
        self.setting = setting


class InvalidRequestException(ShopException):
    """Raised when a request body or query is missing a field or has a malformed one."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message,
            details={'field': field}
        )
        self.field = field
