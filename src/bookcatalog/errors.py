from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class BookNotFoundError(NotFoundError):
    """Raised when an ISBN is unknown to the catalog."""

    def __init__(self, isbn: str) -> None:
        super().__init__(f"Book '{isbn}' not found")
        self.isbn = isbn


class ReviewNotFoundError(NotFoundError):
    """Raised when a user has no review for a book."""

    def __init__(self, isbn: str, username: str) -> None:
        super().__init__(f"No review by '{username}' for book '{isbn}'")
        self.isbn = isbn
        self.username = username


class AuthenticationError(UserError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """Raised when no user matches the supplied username and password."""

    def __init__(self, message: str = "Invalid login. Check username and password") -> None:
        super().__init__(message)


class UnauthenticatedError(AuthenticationError):
    """Raised when a session has no token bound to it."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class ExpiredTokenError(AuthenticationError):
    """Raised when a token is past its expiry."""

    def __init__(self, message: str = "Token has expired") -> None:
        super().__init__(message)


class InvalidSignatureError(AuthenticationError):
    """Raised when a token is malformed or its signature does not match."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class RateLimitedError(UserError):
    """Raised when a client exceeds its request quota."""

    def __init__(self, retry_after: float) -> None:
        super().__init__(f"Rate limit exceeded, retry after {retry_after:.1f} seconds")
        self.retry_after = retry_after


class GatewayError(Exception):
    """Base class for failures of the downstream call made by the gateway."""


class GatewayTimeoutError(GatewayError):
    """Raised when the downstream call does not finish in time."""


class UpstreamUnreachableError(GatewayError):
    """Raised on connection-level failures to the downstream API."""


class UpstreamClientError(GatewayError):
    """Raised when the downstream API answers with a 4xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Upstream returned {status_code}")
        self.status_code = status_code
        self.body = body


class UpstreamServerError(GatewayError):
    """Raised when the downstream API answers with a 5xx status or a malformed body."""


class InternalInvariantViolation(RuntimeError):
    """Raised when internal state is corrupted. Always a bug, never user input."""
