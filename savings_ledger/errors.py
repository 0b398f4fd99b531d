"""
Error taxonomy for Savings Ledger

Every failure a ledger operation can report is one of these.
Each carries a ``kind`` and the transport status a caller should map it to.
The core never retries and never recovers silently.
"""

from typing import Optional

from savings_ledger.models.ledger import ValidationIssue


class LedgerError(Exception):
    """Base exception for ledger operations."""

    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed or missing input. Caller error, never retried."""

    kind = "validation"
    status_code = 400

    def __init__(self, message: str, issues: Optional[list[ValidationIssue]] = None):
        super().__init__(message)
        self.issues = issues or []

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> "ValidationError":
        return cls("; ".join(issue.message for issue in issues), issues)


class NotFoundError(LedgerError):
    """Referenced entity absent."""

    kind = "not_found"
    status_code = 404

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(f"{entity_type.replace('_', ' ').capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ReferenceError(LedgerError):
    """A provided foreign key does not resolve."""

    kind = "reference"
    status_code = 400


class StorageError(LedgerError):
    """Storage collaborator failure. Surfaced as-is."""

    kind = "storage"
    status_code = 500


def status_code_for(exc: BaseException) -> int:
    """Map any exception to the status code a transport layer should return."""
    if isinstance(exc, LedgerError):
        return exc.status_code
    return 500


def error_kind_for(exc: BaseException) -> str:
    if isinstance(exc, LedgerError):
        return exc.kind
    return "internal"
