class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class ImportParseError(ValidationError):
    """Raised when an uploaded file cannot be turned into records."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class BackendError(DomainError):
    """Raised when the database rejects or fails a query/mutation."""
