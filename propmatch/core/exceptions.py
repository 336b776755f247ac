"""Custom exceptions for the propmatch core."""


class PropMatchError(Exception):
    """Base exception for propmatch."""

    pass


class ValidationError(PropMatchError):
    """Raised when caller input is malformed."""

    pass


class NotFoundError(PropMatchError):
    """Raised when a resource is absent or not visible to the tenant."""

    pass


class ConflictError(PropMatchError):
    """Raised when a write is based on a stale version.

    Callers should surface this as "refresh and retry".
    """

    pass


class DatabaseError(PropMatchError):
    """Raised when a database operation fails."""

    pass


class ConfigurationError(PropMatchError):
    """Raised when configuration is invalid."""

    pass
