from __future__ import annotations


class AppError(RuntimeError):
    """Base application-level error."""


class ValidationError(AppError):
    """Malformed or missing transition input."""


class ConflictError(AppError):
    """Slot already held by a different active patient."""


class NotFoundError(AppError):
    """Unknown or archived patient, instrument set or request."""


class AlreadyDischargedError(NotFoundError):
    pass


class OracleError(AppError):
    """Decision call failed, timed out or returned unusable data."""
