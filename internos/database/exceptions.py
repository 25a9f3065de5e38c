"""Custom exceptions for store operations."""


class DatabaseError(Exception):
    """Base exception for store errors."""
    pass


class DatabaseConnectionError(DatabaseError):
    """The store is not configured or cannot be reached."""
    pass


class DatabaseConstraintError(DatabaseError):
    """Constraint violation (duplicate email, missing foreign key target, ...)."""
    pass


class DatabaseOperationError(DatabaseError):
    """General store operation failed."""
    pass


class EntityNotFoundError(DatabaseError):
    """Requested row not found."""
    pass
