"""Exceptions raised by the reservation persistence layer."""
from __future__ import annotations


class ReservationError(RuntimeError):
    """Base class for every error raised by this package."""


class ConfigurationError(ReservationError):
    """Raised when connection settings are missing or invalid."""


class ConnectivityError(ReservationError):
    """Raised when the database cannot be reached."""


class StorageError(ReservationError):
    """Raised for unexpected failures reported by the database."""


class IntegrityError(ReservationError):
    """Raised when a referenced row does not resolve or a key was not generated."""


class DataCorruptionError(IntegrityError):
    """Raised when a persisted status column is null or holds an unknown token."""
