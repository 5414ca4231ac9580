# core/errors.py
"""
Error taxonomy shared by the lifecycle, ledger and reporting code.

Callers tell business outcomes apart from infrastructure faults with
``retryable``: only ``DataAccessError`` is worth retrying.
"""


class MaintenanceError(Exception):
    """Base class for every error raised by the maintenance core."""

    retryable: bool = False


class ConflictError(MaintenanceError):
    """Illegal state transition or a second open event for an asset."""
    pass


class NotFoundError(MaintenanceError):
    """Referenced asset or event does not exist."""
    pass


class ValidationError(MaintenanceError):
    """Malformed input: unknown type, invalid date, bad ceiling."""
    pass


class DataAccessError(MaintenanceError):
    """The persistence layer failed (connection, timeout, failed page fetch)."""

    retryable = True
