"""
User/authentication-related exceptions.
"""

from .base import ShopException


class UserException(ShopException):
    """Base exception for user-related errors."""
    pass


class AuthenticationRequiredException(UserException):
    """Raised when an endpoint needs a logged-in user."""

    def __init__(self):
        super().__init__("Unauthorized")


class InvalidCredentialsException(UserException):
    """Raised on a wrong email/password combination."""

    def __init__(self):
        super().__init__("Invalid email or password")


class AdminRequiredException(UserException):
    """Raised when a non-admin (or inactive admin) calls an admin endpoint."""

    def __init__(self, user_id: str | None = None):
        super().__init__(
            "Forbidden",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class EmailAlreadyRegisteredException(UserException):
    """Raised when registering an email that already has an account."""

    def __init__(self, email: str):
        super().__init__(
            "Email is already registered",
            details={'email': email}
        )
        self.email = email


class InvalidResetTokenException(UserException):
    """Raised when a password reset token is unknown, used or expired."""

    def __init__(self):
        super().__init__("Invalid or expired reset link")


class AccountDisabledException(UserException):
    """Raised when an inactive user tries to log in."""

    def __init__(self, user_id: str | None = None):
        super().__init__(
            "Account disabled",
            details={'user_id': user_id}
        )
        self.user_id = user_id
