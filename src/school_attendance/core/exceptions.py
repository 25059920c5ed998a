class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is missing or malformed."""


class NotFoundError(DomainError):
    """Raised when a referenced teacher or student does not exist."""


class ConflictError(DomainError):
    """Raised when a submission collides with data already recorded."""


class StorageError(DomainError):
    """Raised when the persistence layer fails."""


class AuthenticationError(DomainError):
    """Raised when login credentials or reset tokens are invalid."""
