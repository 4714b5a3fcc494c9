class DomainError(Exception):
    """Base exception for business rule violations."""

    http_status = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field


class MissingRangeError(ValidationError):
    """Raised when a custom report period has no start/end date."""


class InvalidPeriodError(ValidationError):
    """Raised for an unknown report period."""


class StateConflictError(DomainError):
    """The requested transition does not apply to the record's current state."""


class AlreadyCheckedInError(StateConflictError):
    pass


class AlreadyCheckedOutError(StateConflictError):
    pass


class NoCheckInFoundError(StateConflictError):
    pass


class AuthenticationError(DomainError):
    """Raised when no valid principal is attached to the request."""

    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    http_status = 403


class EmployeeInactiveError(AuthorizationError):
    pass


class NotFoundError(DomainError):
    http_status = 404


class EmployeeNotFoundError(NotFoundError):
    pass


class RecordNotFoundError(NotFoundError):
    pass


class TokenError(DomainError):
    """Base for QR token failures. Clients only ever see a generic message."""

    public_message = "Invalid or expired code"


class ExpiredTokenError(TokenError):
    pass


class MalformedTokenError(TokenError):
    pass


class InvalidActionError(ValidationError, TokenError):
    """Action outside check-in/check-out, on issue or inside a token payload."""


class StoreUnavailableError(DomainError):
    """The backing store failed or timed out. No partial state is committed."""

    http_status = 500
