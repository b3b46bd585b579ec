"""
Domain errors raised by the auth core.

The messages are deliberately generic: callers turn them into HTTP
responses as-is (see api/errors.py).
"""


class AuthError(Exception):
    """Base class for authentication/authorization failures."""

    message = "Authentication failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidCredentials(AuthError):
    message = "Invalid username or password"


class InvalidOrExpiredToken(AuthError):
    message = "Invalid or expired token"


class NotAuthorized(AuthError):
    # Surfaced as 404, same body as a missing resource
    message = "Resource not found"


class UsernameTaken(AuthError):
    message = "Username already exists"


class StorageUnavailable(Exception):
    """The database could not complete the operation; nothing was persisted."""

    message = "Storage temporarily unavailable"
