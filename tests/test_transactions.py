"""Tests for the transaction ledger."""

import pytest
from datetime import date
from decimal import Decimal

from savings_ledger.errors import NotFoundError, ReferenceError, ValidationError
from savings_ledger.models.audit import AuditEventType
from savings_ledger.models.ledger import EntryKind, Pagination, TransactionFilters


async def _create(ledger, amount="10", description="Lunch", category_id="expense-food",
                  kind="expense", on="2024-01-01"):
    return await ledger.create_transaction(amount, description, category_id, kind, on)


class TestCreateTransaction:
    """Tests for recording transactions."""

    async def test_create_returns_denormalized_row(self, ledger):
        """Test that creation returns the transaction with its category."""
        transaction = await _create(ledger, amount="100.50")
        assert transaction.amount == Decimal("100.50")
        assert transaction.kind == EntryKind.EXPENSE
        assert transaction.date == date(2024, 1, 1)
        assert transaction.category.id == "expense-food"
        assert transaction.category.name == "Food & Dining"
        assert transaction.created_at == transaction.updated_at

    async def test_create_rejects_unknown_category(self, ledger):
        """Test that an unresolved category is a ReferenceError."""
        with pytest.raises(ReferenceError, match="nonexistent"):
            await _create(ledger, category_id="nonexistent")

    @pytest.mark.parametrize("amount", ["1e400", "1e-400"])
    async def test_create_rejects_amount_outside_float_range(self, ledger, storage, amount):
        """Test that an amount storage cannot hold is a validation error."""
        with pytest.raises(ValidationError, match="out of range"):
            await _create(ledger, amount=amount)
        row = await storage.query_one("SELECT COUNT(*) AS count FROM transactions")
        assert row["count"] == 0

    async def test_description_stored_as_entered(self, ledger):
        """Test that the description keeps its surrounding whitespace."""
        transaction = await _create(ledger, description="  Lunch  ")
        assert (await ledger.get_transaction(transaction.id)).description == "  Lunch  "

    async def test_create_rejects_invalid_input(self, ledger, storage):
        """Test that validation runs before anything is stored."""
        with pytest.raises(ValidationError):
            await _create(ledger, amount="-1")
        row = await storage.query_one("SELECT COUNT(*) AS count FROM transactions")
        assert row["count"] == 0

    async def test_kind_not_checked_against_category(self, ledger):
        """Test that an income transaction may use an expense category."""
        transaction = await _create(ledger, kind="income", category_id="expense-food")
        assert transaction.kind == EntryKind.INCOME

    async def test_create_is_audited(self, ledger, audit_logger):
        """Test that creation emits an audit event."""
        transaction = await _create(ledger)
        events = audit_logger.of_type(AuditEventType.TRANSACTION_CREATED)
        assert [e.entity_id for e in events] == [transaction.id]


class TestGetAndDelete:
    """Tests for lookup and removal."""

    async def test_get_transaction(self, ledger):
        """Test fetching by id."""
        created = await _create(ledger)
        fetched = await ledger.get_transaction(created.id)
        assert fetched == created

    async def test_get_missing_transaction(self, ledger):
        """Test that an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await ledger.get_transaction("missing")

    async def test_delete_twice(self, ledger):
        """Test that the second delete of the same id fails."""
        created = await _create(ledger)
        await ledger.delete_transaction(created.id)
        with pytest.raises(NotFoundError):
            await ledger.delete_transaction(created.id)
        with pytest.raises(NotFoundError):
            await ledger.get_transaction(created.id)


class TestUpdateTransaction:
    """Tests for partial updates."""

    async def test_update_applies_only_set_fields(self, ledger):
        """Test that unspecified fields keep their values."""
        created = await _create(ledger, amount="10", description="Lunch")
        updated = await ledger.update_transaction(created.id, {"amount": "12.75"})
        assert updated.amount == Decimal("12.75")
        assert updated.description == "Lunch"
        assert updated.updated_at >= created.updated_at

    async def test_update_category_refreshes_denormalized_fields(self, ledger):
        """Test that a new category shows up in the read model."""
        created = await _create(ledger)
        updated = await ledger.update_transaction(created.id, {"category_id": "expense-transport"})
        assert updated.category.name == "Transportation"

    async def test_update_unknown_category_leaves_row_unchanged(self, ledger):
        """Test that a failing update changes nothing."""
        created = await _create(ledger)
        with pytest.raises(ReferenceError):
            await ledger.update_transaction(
                created.id, {"category_id": "nonexistent", "amount": "99"}
            )
        assert await ledger.get_transaction(created.id) == created

    async def test_update_empty_patch(self, ledger):
        """Test that an empty patch is rejected."""
        created = await _create(ledger)
        with pytest.raises(ValidationError, match="No fields to update"):
            await ledger.update_transaction(created.id, {})

    async def test_update_missing_transaction(self, ledger):
        """Test that updating an unknown id raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await ledger.update_transaction("missing", {"amount": "1"})

    @pytest.mark.parametrize("patch", [
        {"amount": "0"},
        {"description": "  "},
        {"kind": "transfer"},
    ])
    async def test_update_invalid_values(self, ledger, patch):
        """Test that supplied fields follow creation rules."""
        created = await _create(ledger)
        with pytest.raises(ValidationError):
            await ledger.update_transaction(created.id, patch)

    async def test_update_is_audited_with_fields(self, ledger, audit_logger):
        """Test that the update event lists the changed fields."""
        created = await _create(ledger)
        await ledger.update_transaction(created.id, {"description": "Dinner", "amount": "20"})
        event = audit_logger.of_type(AuditEventType.TRANSACTION_UPDATED)[0]
        assert event.details["fields"] == ["amount", "description"]


class TestListTransactions:
    """Tests for listing and filtering."""

    async def test_ordered_by_date_then_creation(self, ledger):
        """Test most-recent-first ordering with creation tie-break."""
        older = await _create(ledger, description="older", on="2024-01-01")
        first_same_day = await _create(ledger, description="first", on="2024-02-01")
        second_same_day = await _create(ledger, description="second", on="2024-02-01")

        listed = await ledger.list_transactions()
        assert [t.id for t in listed] == [second_same_day.id, first_same_day.id, older.id]

    async def test_filters(self, ledger):
        """Test category, kind and date filters."""
        await _create(ledger, category_id="expense-food", on="2024-01-05")
        await _create(ledger, category_id="expense-transport", on="2024-01-10")
        await _create(ledger, category_id="income-salary", kind="income", on="2024-02-01")

        food = await ledger.list_transactions({"category_id": "expense-food"})
        assert [t.category_id for t in food] == ["expense-food"]

        income = await ledger.list_transactions(TransactionFilters(kind=EntryKind.INCOME))
        assert [t.category_id for t in income] == ["income-salary"]

        january = await ledger.list_transactions(
            {"date_from": "2024-01-01", "date_to": "2024-01-31"}
        )
        assert len(january) == 2

    async def test_pagination(self, ledger):
        """Test limit and offset."""
        for day in range(1, 6):
            await _create(ledger, on=f"2024-01-0{day}")

        page = await ledger.list_transactions(pagination=Pagination(limit=2, offset=1))
        assert [t.date.day for t in page] == [4, 3]

    async def test_list_category_transactions(self, ledger):
        """Test the per-category listing."""
        await _create(ledger, category_id="expense-food")
        await _create(ledger, category_id="expense-housing")
        listed = await ledger.list_category_transactions("expense-housing")
        assert [t.category_id for t in listed] == ["expense-housing"]

    async def test_list_category_transactions_missing_category(self, ledger):
        """Test that an unknown category raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await ledger.list_category_transactions("nonexistent")


class TestCategorySummary:
    """Tests for per-category summaries."""

    async def test_single_transaction_summary(self, ledger):
        """Test the summary of one 100.50 transaction."""
        await _create(ledger, amount="100.50", on="2024-01-01")
        result = await ledger.summarize_category("expense-food")

        assert result.category.id == "expense-food"
        summary = result.summary
        assert summary.transaction_count == 1
        assert summary.total_amount == Decimal("100.50")
        assert summary.average_amount == Decimal("100.50")
        assert summary.min_amount == Decimal("100.50")
        assert summary.max_amount == Decimal("100.50")
        assert summary.first_transaction_date == date(2024, 1, 1)

    async def test_empty_category_summary(self, ledger):
        """Test that an empty category reports zeros, not nulls."""
        summary = (await ledger.summarize_category("expense-education")).summary
        assert summary.transaction_count == 0
        assert summary.total_amount == Decimal("0")
        assert summary.average_amount == Decimal("0")
        assert summary.min_amount == Decimal("0")
        assert summary.max_amount == Decimal("0")
        assert summary.last_transaction_date is None

    async def test_summary_date_range(self, ledger):
        """Test that the date range limits the summarized set."""
        await _create(ledger, amount="10", on="2024-01-01")
        await _create(ledger, amount="20", on="2024-02-01")
        await _create(ledger, amount="40", on="2024-03-01")

        summary = (await ledger.summarize_category(
            "expense-food", date(2024, 2, 1), date(2024, 3, 31)
        )).summary
        assert summary.transaction_count == 2
        assert summary.total_amount == Decimal("60")
        assert summary.average_amount == Decimal("30.00")
        assert summary.first_transaction_date == date(2024, 2, 1)

    async def test_summary_missing_category(self, ledger):
        """Test that an unknown category raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await ledger.summarize_category("nonexistent")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
