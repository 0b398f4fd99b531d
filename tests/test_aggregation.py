"""Tests for the aggregation helpers and dashboard statistics."""

import pytest
from datetime import date
from decimal import Decimal

from savings_ledger.models.ledger import EntryKind
from savings_ledger.queries import mean, summarize_amounts, totals_by_kind
from savings_ledger.queries.dashboard import month_bounds


class TestSummarizeAmounts:
    """Tests for summary statistics."""

    def test_empty_input(self):
        """Test the defined empty-set answer."""
        summary = summarize_amounts([])
        assert summary.transaction_count == 0
        assert summary.total_amount == Decimal("0")
        assert summary.average_amount == Decimal("0")
        assert summary.min_amount == Decimal("0")
        assert summary.max_amount == Decimal("0")
        assert summary.first_transaction_date is None
        assert summary.last_transaction_date is None

    def test_statistics(self):
        """Test count, sum, mean, min, max and date bounds."""
        summary = summarize_amounts([
            (Decimal("10.00"), date(2024, 3, 1)),
            (Decimal("2.50"), date(2024, 1, 15)),
            (Decimal("7.25"), date(2024, 2, 1)),
        ])
        assert summary.transaction_count == 3
        assert summary.total_amount == Decimal("19.75")
        assert summary.average_amount == Decimal("19.75") / 3
        assert summary.min_amount == Decimal("2.50")
        assert summary.max_amount == Decimal("10.00")
        assert summary.first_transaction_date == date(2024, 1, 15)
        assert summary.last_transaction_date == date(2024, 3, 1)

    def test_accepts_generators(self):
        """Test that any iterable of pairs works."""
        entries = ((Decimal(n), date(2024, 1, n)) for n in range(1, 4))
        assert summarize_amounts(entries).total_amount == Decimal("6")


class TestMean:
    """Tests for the mean helper."""

    def test_mean_is_not_rounded_to_cents(self):
        """Test that the mean keeps sub-cent precision."""
        assert mean([Decimal("0.01"), Decimal("0.02")]) == Decimal("0.015")

    def test_mean_repeating_fraction(self):
        """Test a mean that is not a whole number of cents."""
        result = mean([Decimal("1"), Decimal("1"), Decimal("2")])
        assert result == Decimal(4) / 3
        assert result != Decimal("1.33")

    def test_mean_of_nothing_is_zero(self):
        """Test the empty mean."""
        assert mean([]) == Decimal("0")


class TestTotalsByKind:
    """Tests for per-kind totals."""

    def test_both_kinds_always_present(self):
        """Test that an empty input still has both kinds."""
        assert totals_by_kind([]) == {
            EntryKind.INCOME: Decimal("0"),
            EntryKind.EXPENSE: Decimal("0"),
        }

    def test_date_range_is_inclusive(self):
        """Test inclusive date bounds."""
        entries = [
            (EntryKind.INCOME, Decimal("100"), date(2024, 1, 31)),
            (EntryKind.INCOME, Decimal("50"), date(2024, 2, 1)),
            (EntryKind.EXPENSE, Decimal("30"), date(2024, 2, 29)),
            (EntryKind.EXPENSE, Decimal("5"), date(2024, 3, 1)),
        ]
        totals = totals_by_kind(entries, date(2024, 2, 1), date(2024, 2, 29))
        assert totals[EntryKind.INCOME] == Decimal("50")
        assert totals[EntryKind.EXPENSE] == Decimal("30")


class TestMonthBounds:
    """Tests for calendar month bounds."""

    @pytest.mark.parametrize("day,expected", [
        (date(2024, 2, 10), (date(2024, 2, 1), date(2024, 2, 29))),
        (date(2023, 12, 31), (date(2023, 12, 1), date(2023, 12, 31))),
        (date(2024, 4, 1), (date(2024, 4, 1), date(2024, 4, 30))),
    ])
    def test_month_bounds(self, day, expected):
        """Test first and last day of month, including year end."""
        assert month_bounds(day) == expected


class TestDashboard:
    """Tests for dashboard statistics."""

    async def test_empty_dashboard(self, dashboard):
        """Test that an empty ledger reports zeros."""
        stats = await dashboard.get_stats(date(2024, 2, 15))
        assert stats.total_balance == Decimal("0")
        assert stats.monthly_income == Decimal("0")
        assert stats.monthly_expenses == Decimal("0")
        assert stats.total_savings == Decimal("0")
        assert stats.recent_transactions == []
        assert stats.savings_goals == []

    async def test_dashboard_totals(self, dashboard, ledger, goals):
        """Test balance, monthly figures, savings and recent list."""
        await ledger.create_transaction("3000", "Salary", "income-salary", "income", "2024-01-31")
        await ledger.create_transaction("2500", "Salary", "income-salary", "income", "2024-02-28")
        await ledger.create_transaction("800", "Rent", "expense-housing", "expense", "2024-02-01")
        await ledger.create_transaction("45.50", "Dinner", "expense-food", "expense", "2024-01-10")

        goal = await goals.create_goal("Emergency", 1000)
        await goals.add_contribution(goal.id, 200, "2024-02-01")
        other = await goals.create_goal("Car", 5000)
        await goals.add_contribution(other.id, "99.50", "2024-02-02")

        stats = await dashboard.get_stats(date(2024, 2, 15))

        assert stats.total_balance == Decimal("4654.50")
        assert stats.monthly_income == Decimal("2500")
        assert stats.monthly_expenses == Decimal("800")
        assert stats.total_savings == Decimal("299.50")
        assert [t.description for t in stats.recent_transactions] == [
            "Salary", "Rent", "Salary", "Dinner",
        ]
        assert {g.name for g in stats.savings_goals} == {"Emergency", "Car"}

    async def test_recent_transactions_limited(self, dashboard, ledger):
        """Test that the recent list honours the configured limit."""
        for day in range(1, 8):
            await ledger.create_transaction("1", f"Coffee {day}", "expense-food", "expense", f"2024-01-0{day}")
        stats = await dashboard.get_stats(date(2024, 1, 20))
        assert len(stats.recent_transactions) == 5
        assert stats.recent_transactions[0].description == "Coffee 7"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
