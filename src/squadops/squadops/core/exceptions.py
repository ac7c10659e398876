from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    ``kind`` groups errors so the transport layer can pick a status code,
    ``code`` names the violated rule precisely.
    """

    kind = "domain_error"
    code = "domain_error"
    default_message = "Business rule violated"

    def __init__(self, message: Optional[str] = None, *, details: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = dict(details or {})
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(DomainError):
    """Raised when input data is malformed or out of range."""

    kind = "validation_error"
    code = "validation_error"
    default_message = "Validation error"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, details={field: [message]})


class AuthenticationError(DomainError):
    """Raised when no authenticated actor is available."""

    kind = "unauthenticated"
    code = "unauthenticated"
    default_message = "Authentication required"


class Forbidden(DomainError):
    """Raised when an actor lacks the role or relationship for an action."""

    kind = "forbidden"
    code = "forbidden"
    default_message = "You are not allowed to perform this action"


class NotOwner(Forbidden):
    code = "not_owner"
    default_message = "Only the owner of this record can do that"


class NotFound(DomainError):
    kind = "not_found"
    code = "not_found"
    default_message = "Resource not found"


class Conflict(DomainError):
    """Business-rule violation against the current state of an entity."""

    kind = "conflict"
    code = "conflict"
    default_message = "Conflicting state"


class AlreadyCheckedIn(Conflict):
    code = "already_checked_in"
    default_message = "Already checked in today for this squad"


class AlreadyCheckedOut(Conflict):
    code = "already_checked_out"
    default_message = "Already checked out"


class NotPending(Conflict):
    code = "not_pending"
    default_message = "Leave request is not pending"


class InvalidRange(Conflict):
    code = "invalid_range"
    default_message = "End date must not be before start date"
