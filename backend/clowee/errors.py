# Overview: Error hierarchy shared by services and routes.

from __future__ import annotations


class CloweeError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class ValidationError(CloweeError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(CloweeError, LookupError):
    """Referenced machine, settlement or invoice does not exist."""
    status_code = 404


class ConflictError(CloweeError, ValueError):
    """409-level business rule conflict (e.g., second invoice for a settlement)."""
    status_code = 409


class NoDataForPeriodError(CloweeError):
    """No counter reading exists at or before the requested period end."""
    status_code = 422


class StorageError(CloweeError):
    """The underlying database read or write failed."""
    status_code = 503
