"""Tests for input validation."""

import pytest
from datetime import date
from decimal import Decimal

from savings_ledger.config import AppSettings
from savings_ledger.errors import ValidationError
from savings_ledger.models.ledger import (
    EntryKind,
    GoalPatch,
    TransactionFilters,
    TransactionPatch,
)
from savings_ledger.validation import LedgerValidator


@pytest.fixture
def checker() -> LedgerValidator:
    return LedgerValidator(AppSettings(default_page_limit=50))


class TestScalarHelpers:
    """Tests for value normalization."""

    def test_to_decimal_accepts_numeric_strings(self):
        """Test that numeric strings become Decimal."""
        assert LedgerValidator.to_decimal("100.50") == Decimal("100.50")
        assert LedgerValidator.to_decimal(12) == Decimal("12")

    def test_to_decimal_rejects_garbage(self):
        """Test that non-numbers and non-finite values are rejected."""
        assert LedgerValidator.to_decimal("abc") is None
        assert LedgerValidator.to_decimal("NaN") is None
        assert LedgerValidator.to_decimal(True) is None

    def test_to_date_parses_iso_strings(self):
        """Test ISO date parsing."""
        assert LedgerValidator.to_date("2024-01-01") == date(2024, 1, 1)
        assert LedgerValidator.to_date("01/01/2024") is None

    def test_to_kind(self):
        """Test kind normalization."""
        assert LedgerValidator.to_kind("expense") is EntryKind.EXPENSE
        assert LedgerValidator.to_kind("transfer") is None


class TestTransactionValidation:
    """Tests for transaction input rules."""

    def test_valid_transaction_is_normalized(self, checker):
        """Test that a good transaction comes back normalized."""
        values = checker.validate_new_transaction(
            "100.50", "Lunch", "expense-food", "expense", "2024-01-01"
        )
        assert values == {
            "amount": Decimal("100.50"),
            "description": "Lunch",
            "category_id": "expense-food",
            "kind": EntryKind.EXPENSE,
            "date": date(2024, 1, 1),
        }

    @pytest.mark.parametrize("amount", [0, -5, "0.00"])
    def test_non_positive_amount_rejected(self, checker, amount):
        """Test that amount must be > 0."""
        with pytest.raises(ValidationError, match="Amount must be positive"):
            checker.validate_new_transaction(amount, "x", "expense-food", "expense", "2024-01-01")

    @pytest.mark.parametrize("amount", ["1e400", "1e-400", Decimal("1e-400")])
    def test_amount_outside_float_range_rejected(self, checker, amount):
        """Test that amounts which overflow or underflow a float are rejected."""
        with pytest.raises(ValidationError, match="Amount is out of range") as exc_info:
            checker.validate_new_transaction(amount, "x", "expense-food", "expense", "2024-01-01")
        assert exc_info.value.issues[0].field == "amount"

    def test_description_kept_as_entered(self, checker):
        """Test that surrounding whitespace is not trimmed away."""
        values = checker.validate_new_transaction(
            "10", "  Lunch  ", "expense-food", "expense", "2024-01-01"
        )
        assert values["description"] == "  Lunch  "

    def test_patched_description_kept_as_entered(self, checker):
        """Test that a patch description is not trimmed either."""
        patch = checker.parse_patch(TransactionPatch, {"description": " Dinner "})
        assert checker.validate_transaction_changes(patch) == {"description": " Dinner "}

    def test_blank_description_rejected(self, checker):
        """Test that description must not be blank."""
        with pytest.raises(ValidationError) as exc_info:
            checker.validate_new_transaction(10, "   ", "expense-food", "expense", "2024-01-01")
        assert exc_info.value.issues[0].field == "description"

    def test_unknown_kind_rejected(self, checker):
        """Test that kind must be income or expense."""
        with pytest.raises(ValidationError, match="income or expense"):
            checker.validate_new_transaction(10, "x", "expense-food", "transfer", "2024-01-01")

    def test_missing_date_rejected(self, checker):
        """Test that date is required."""
        with pytest.raises(ValidationError, match="Date is required"):
            checker.validate_new_transaction(10, "x", "expense-food", "expense", None)

    def test_all_issues_reported_together(self, checker):
        """Test that every problem is collected."""
        with pytest.raises(ValidationError) as exc_info:
            checker.validate_new_transaction(-1, "", None, "nope", None)
        fields = {issue.field for issue in exc_info.value.issues}
        assert fields == {"amount", "description", "category_id", "kind", "date"}

    def test_empty_patch_rejected(self, checker):
        """Test that an empty patch is an error."""
        with pytest.raises(ValidationError, match="No fields to update"):
            checker.validate_transaction_changes(TransactionPatch())

    def test_patch_changes_validated(self, checker):
        """Test that supplied patch fields follow creation rules."""
        with pytest.raises(ValidationError, match="Amount must be positive"):
            checker.validate_transaction_changes(TransactionPatch(amount=Decimal("-3")))
        changes = checker.validate_transaction_changes(TransactionPatch(kind="income"))
        assert changes == {"kind": EntryKind.INCOME}


class TestGoalValidation:
    """Tests for goal and contribution input rules."""

    def test_goal_requires_name_and_positive_target(self, checker):
        """Test the goal creation rules."""
        with pytest.raises(ValidationError) as exc_info:
            checker.validate_new_goal(None, 0)
        assert {issue.field for issue in exc_info.value.issues} == {"name", "target_amount"}

    def test_goal_optional_fields(self, checker):
        """Test that target date and description are optional."""
        values = checker.validate_new_goal("Emergency", "1000")
        assert values["target_date"] is None
        assert values["description"] is None
        assert values["target_amount"] == Decimal("1000")

    def test_long_goal_name_accepted(self, checker):
        """Test that a goal name has no length cap."""
        assert checker.validate_new_goal("x" * 201, "1000")["name"] == "x" * 201

    def test_contribution_amount_out_of_range_rejected(self, checker):
        """Test that an overflowing contribution amount is a validation error."""
        with pytest.raises(ValidationError, match="out of range"):
            checker.validate_contribution("1e400", "2024-01-01")

    def test_goal_patch_may_clear_target_date(self, checker):
        """Test that target_date can be cleared."""
        assert checker.validate_goal_changes(GoalPatch(target_date=None)) == {"target_date": None}

    def test_goal_patch_rejects_non_positive_target(self, checker):
        """Test that a patched target must be > 0."""
        with pytest.raises(ValidationError):
            checker.validate_goal_changes(GoalPatch(target_amount=Decimal("0")))

    def test_contribution_requires_amount_and_date(self, checker):
        """Test contribution rules."""
        with pytest.raises(ValidationError) as exc_info:
            checker.validate_contribution(0, None)
        assert {issue.field for issue in exc_info.value.issues} == {"amount", "date"}


class TestParsing:
    """Tests for caller structure parsing."""

    def test_parse_patch_rejects_current_amount(self, checker):
        """Test that the derived balance is not updatable."""
        with pytest.raises(ValidationError) as exc_info:
            checker.parse_patch(GoalPatch, {"current_amount": 500})
        issue = exc_info.value.issues[0]
        assert issue.field == "current_amount"
        assert issue.issue_type == "not_updatable"

    def test_parse_patch_rejects_unknown_field(self, checker):
        """Test that unknown fields are reported."""
        with pytest.raises(ValidationError) as exc_info:
            checker.parse_patch(TransactionPatch, {"colour": "red"})
        assert exc_info.value.issues[0].field == "colour"

    def test_parse_patch_passes_models_through(self, checker):
        """Test that an existing patch model is returned as is."""
        patch = GoalPatch(name="Car")
        assert checker.parse_patch(GoalPatch, patch) is patch

    def test_parse_filters(self, checker):
        """Test filter parsing."""
        assert checker.parse_filters(None) == TransactionFilters()
        filters = checker.parse_filters({"kind": "income", "date_from": "2024-01-01"})
        assert filters.kind is EntryKind.INCOME
        assert filters.date_from == date(2024, 1, 1)

    def test_parse_filters_rejects_bad_kind(self, checker):
        """Test that an unknown kind filter is a validation error."""
        with pytest.raises(ValidationError, match="income or expense"):
            checker.parse_filters({"kind": "transfer"})

    def test_pagination_defaults(self, checker):
        """Test that missing pagination falls back to settings."""
        window = checker.pagination()
        assert (window.limit, window.offset) == (50, 0)

    def test_pagination_rejects_negative(self, checker):
        """Test that negative windows are rejected."""
        with pytest.raises(ValidationError):
            checker.pagination(limit=-1)

    def test_pagination_cap(self):
        """Test that a configured cap limits caller values."""
        capped = LedgerValidator(AppSettings(max_page_limit=20))
        assert capped.pagination(limit=500).limit == 20

    def test_pagination_uncapped_by_default(self, checker):
        """Test that without a cap the caller's limit is used."""
        assert checker.pagination(limit=500).limit == 500


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
