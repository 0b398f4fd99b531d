"""
Input Validation

DESIGN DECISION: Every rule that rejects caller input lives here.
The services call these before they open a unit of work, so a
rejected request never touches storage.

Checks collect ValidationIssues and raise a single ValidationError
carrying all of them, so a caller sees every problem at once.

IMPORTANT: Validation NEVER silently fixes issues. Values are only
normalized (numeric strings to Decimal, ISO strings to dates), never
corrected.
"""

import math
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from savings_ledger.config import AppSettings, get_settings
from savings_ledger.errors import ValidationError
from savings_ledger.models.ledger import (
    EntryKind,
    GoalPatch,
    Pagination,
    TransactionFilters,
    TransactionPatch,
    ValidationIssue,
)

PatchT = TypeVar("PatchT", bound=BaseModel)

# Fields that exist on stored rows but are never caller-writable
_DERIVED_FIELDS = {
    "current_amount": "current_amount is derived from contributions and cannot be updated directly",
    "id": "id cannot be changed",
    "created_at": "created_at cannot be changed",
    "updated_at": "updated_at is maintained by the ledger",
}


def _missing(field: str, label: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{label} is required",
    )


def _invalid(field: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="invalid_value",
        message=message,
    )


def _issues_from(error: PydanticValidationError) -> list[ValidationIssue]:
    issues = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "*"
        issues.append(ValidationIssue(
            field=location,
            issue_type=detail["type"],
            message=f"{location}: {detail['msg']}",
        ))
    return issues


class LedgerValidator:
    """
    Validates and normalizes caller input for the ledger services.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    # -------------------------------------------------------------------
    # Scalar helpers
    # -------------------------------------------------------------------

    @staticmethod
    def to_decimal(value: Any) -> Optional[Decimal]:
        """Normalize a numeric value; None if it is not a finite number."""
        if value is None or isinstance(value, bool):
            return None
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
        if not amount.is_finite():
            return None
        return amount

    @staticmethod
    def to_date(value: Any) -> Optional[date]:
        if isinstance(value, date):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return date.fromisoformat(value.strip())
            except ValueError:
                return None
        return None

    @staticmethod
    def to_kind(value: Any) -> Optional[EntryKind]:
        if isinstance(value, EntryKind):
            return value
        try:
            return EntryKind(value)
        except ValueError:
            return None

    def _check_positive_amount(
        self,
        field: str,
        value: Any,
        label: str,
        issues: list[ValidationIssue],
    ) -> Optional[Decimal]:
        if value is None or value == "":
            issues.append(_missing(field, label))
            return None
        amount = self.to_decimal(value)
        if amount is None:
            issues.append(_invalid(field, f"{label} must be a number"))
            return None
        if amount <= 0:
            issues.append(_invalid(field, f"{label} must be positive"))
            return None
        # Stored as REAL: must survive the float conversion as a positive finite value
        as_float = float(amount)
        if not math.isfinite(as_float) or as_float <= 0:
            issues.append(_invalid(field, f"{label} is out of range"))
            return None
        return amount

    def _check_date(
        self,
        field: str,
        value: Any,
        label: str,
        issues: list[ValidationIssue],
    ) -> Optional[date]:
        if value is None or value == "":
            issues.append(_missing(field, label))
            return None
        parsed = self.to_date(value)
        if parsed is None:
            issues.append(_invalid(field, f"{label} must be a calendar date (YYYY-MM-DD)"))
        return parsed

    def _check_text(
        self,
        field: str,
        value: Any,
        label: str,
        issues: list[ValidationIssue],
    ) -> Optional[str]:
        if value is None or not str(value).strip():
            issues.append(_missing(field, label))
            return None
        return str(value)

    def _check_kind(self, value: Any, issues: list[ValidationIssue]) -> Optional[EntryKind]:
        if value is None or value == "":
            issues.append(_missing("kind", "Type"))
            return None
        kind = self.to_kind(value)
        if kind is None:
            issues.append(_invalid("kind", "Type must be either income or expense"))
        return kind

    @staticmethod
    def _optional_text(value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value)
        return text if text.strip() else None

    @staticmethod
    def _raise_if_issues(issues: list[ValidationIssue]) -> None:
        if issues:
            raise ValidationError.from_issues(issues)

    # -------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------

    def validate_new_transaction(
        self,
        amount: Any,
        description: Any,
        category_id: Any,
        kind: Any,
        date_value: Any,
    ) -> dict[str, Any]:
        """
        Validate a transaction about to be created.

        Returns the normalized field values.

        Raises:
            ValidationError: With every issue found
        """
        issues: list[ValidationIssue] = []

        values = {
            "amount": self._check_positive_amount("amount", amount, "Amount", issues),
            "description": self._check_text("description", description, "Description", issues),
            "category_id": self._check_text("category_id", category_id, "Category", issues),
            "kind": self._check_kind(kind, issues),
            "date": self._check_date("date", date_value, "Date", issues),
        }

        self._raise_if_issues(issues)
        return values

    def validate_transaction_changes(self, patch: TransactionPatch) -> dict[str, Any]:
        """
        Validate the set fields of a transaction patch.

        Returns the normalized changes.

        Raises:
            ValidationError: If the patch is empty or a field is invalid
        """
        changes = patch.changes()
        if not changes:
            raise ValidationError(
                "No fields to update",
                [ValidationIssue(field="*", issue_type="empty_patch", message="No fields to update")],
            )

        issues: list[ValidationIssue] = []
        normalized: dict[str, Any] = {}

        for field, value in changes.items():
            if field == "amount":
                normalized[field] = self._check_positive_amount(field, value, "Amount", issues)
            elif field == "description":
                normalized[field] = self._check_text(field, value, "Description", issues)
            elif field == "category_id":
                normalized[field] = self._check_text(field, value, "Category", issues)
            elif field == "kind":
                normalized[field] = self._check_kind(value, issues)
            elif field == "date":
                normalized[field] = self._check_date(field, value, "Date", issues)

        self._raise_if_issues(issues)
        return normalized

    # -------------------------------------------------------------------
    # Goals and contributions
    # -------------------------------------------------------------------

    def validate_new_goal(
        self,
        name: Any,
        target_amount: Any,
        target_date: Any = None,
        description: Any = None,
    ) -> dict[str, Any]:
        """Validate a savings goal about to be created."""
        issues: list[ValidationIssue] = []

        values = {
            "name": self._check_text("name", name, "Name", issues),
            "target_amount": self._check_positive_amount(
                "target_amount", target_amount, "Target amount", issues
            ),
            "target_date": None,
            "description": self._optional_text(description),
        }
        if target_date is not None and target_date != "":
            values["target_date"] = self._check_date("target_date", target_date, "Target date", issues)

        self._raise_if_issues(issues)
        return values

    def validate_goal_changes(self, patch: GoalPatch) -> dict[str, Any]:
        """
        Validate the set fields of a goal patch.

        target_date and description may be cleared with None;
        name and target_amount may not.
        """
        changes = patch.changes()
        if not changes:
            raise ValidationError(
                "No fields to update",
                [ValidationIssue(field="*", issue_type="empty_patch", message="No fields to update")],
            )

        issues: list[ValidationIssue] = []
        normalized: dict[str, Any] = {}

        for field, value in changes.items():
            if field == "name":
                normalized[field] = self._check_text(field, value, "Name", issues)
            elif field == "target_amount":
                normalized[field] = self._check_positive_amount(field, value, "Target amount", issues)
            elif field == "target_date":
                normalized[field] = (
                    None if value is None
                    else self._check_date(field, value, "Target date", issues)
                )
            elif field == "description":
                normalized[field] = self._optional_text(value)

        self._raise_if_issues(issues)
        return normalized

    def validate_contribution(
        self,
        amount: Any,
        date_value: Any,
        description: Any = None,
    ) -> dict[str, Any]:
        """Validate a contribution about to be applied to a goal."""
        issues: list[ValidationIssue] = []

        values = {
            "amount": self._check_positive_amount("amount", amount, "Amount", issues),
            "date": self._check_date("date", date_value, "Date", issues),
            "description": self._optional_text(description),
        }

        self._raise_if_issues(issues)
        return values

    # -------------------------------------------------------------------
    # Parsing caller structures
    # -------------------------------------------------------------------

    def parse_patch(
        self,
        model: type[PatchT],
        data: Union[PatchT, dict[str, Any]],
    ) -> PatchT:
        """
        Build a patch model from caller data.

        Unknown fields are rejected. Derived fields such as
        current_amount get a message that says why.
        """
        if isinstance(data, model):
            return data

        issues: list[ValidationIssue] = []
        for field in data:
            if field in _DERIVED_FIELDS:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="not_updatable",
                    message=_DERIVED_FIELDS[field],
                ))
        self._raise_if_issues(issues)

        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_issues(_issues_from(e)) from e

    def parse_filters(
        self,
        filters: Union[TransactionFilters, dict[str, Any], None],
    ) -> TransactionFilters:
        """Build transaction list filters from caller data."""
        if filters is None:
            return TransactionFilters()
        if isinstance(filters, TransactionFilters):
            return filters

        if filters.get("kind") is not None and self.to_kind(filters["kind"]) is None:
            raise ValidationError.from_issues([
                _invalid("kind", "Type must be either income or expense")
            ])
        try:
            return TransactionFilters.model_validate(filters)
        except PydanticValidationError as e:
            raise ValidationError.from_issues(_issues_from(e)) from e

    def pagination(
        self,
        limit: Any = None,
        offset: Any = None,
    ) -> Pagination:
        """
        Build a result window from caller values.

        Missing values fall back to configured defaults. A configured
        max_page_limit caps the limit; without one the caller's value is used.
        """
        if isinstance(limit, Pagination):
            return limit

        values = {
            "limit": self._settings.default_page_limit if limit is None else limit,
            "offset": 0 if offset is None else offset,
        }
        try:
            window = Pagination.model_validate(values)
        except PydanticValidationError as e:
            raise ValidationError.from_issues([
                _invalid(str(error["loc"][0]), f"{error['loc'][0]} must be a non-negative integer")
                for error in e.errors()
            ]) from e

        if self._settings.max_page_limit is not None and window.limit > self._settings.max_page_limit:
            window = Pagination(limit=self._settings.max_page_limit, offset=window.offset)
        return window
