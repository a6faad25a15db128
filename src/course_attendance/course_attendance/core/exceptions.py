from __future__ import annotations

from .enums import ImportFailure


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a required record does not exist."""


class RecordImportError(DomainError):
    """A single import line could not be committed.

    Carries the raw line so the batch driver can keep it for resubmission.
    """

    def __init__(self, reason: ImportFailure, raw_line: str):
        super().__init__(f"{reason.value}: {raw_line}")
        self.reason = reason
        self.raw_line = raw_line


class GradebookPushFailed(DomainError):
    """The gradebook sink rejected a grade update."""
