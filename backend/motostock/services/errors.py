# Overview: Service-layer exception hierarchy shared by every engine operation.

from __future__ import annotations


class MotostockError(Exception):
    """
    Base class for all service errors.

    status_code is the HTTP status the routes answer with; retryable marks
    failures the client can fix by refreshing its view and trying again.
    """
    status_code = 400
    retryable = False

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        if self.retryable:
            body["retryable"] = True
        return body


class ValidationError(MotostockError):
    """Input rejected before any write (missing fields, bad values)."""
    status_code = 400


class NotFoundError(MotostockError):
    """A referenced record (location, chassis, transfer, sale, user) does not exist."""
    status_code = 404


class PreconditionError(MotostockError):
    """Stored state no longer matches what the caller expected. Refresh and retry."""
    status_code = 409
    retryable = True


class ConflictError(MotostockError):
    """Uniqueness clash (duplicate chassis number, email, location code)."""
    status_code = 409


class PermissionDeniedError(MotostockError):
    """Raised when the access policy refuses an action."""
    status_code = 403
