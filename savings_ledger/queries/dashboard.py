"""
Dashboard Statistics

Headline numbers for the overview screen, computed from the ledger
and the goal balances. Like every summary in the project, totals are
Decimal sums over stored rows and an empty ledger reports zeros.
"""

from datetime import date
from typing import Optional

from savings_ledger.config import AppSettings, get_settings
from savings_ledger.goals import GoalBalanceEngine
from savings_ledger.ledger import TransactionLedger
from savings_ledger.models.ledger import DashboardStats, EntryKind, Pagination
from savings_ledger.queries.aggregation import ZERO, totals_by_kind


def month_bounds(day: date) -> tuple[date, date]:
    """First and last calendar day of the month containing ``day``."""
    first = day.replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return first, date.fromordinal(next_first.toordinal() - 1)


class DashboardService:
    """
    Read-only overview across transactions and goals.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        goals: GoalBalanceEngine,
        settings: Optional[AppSettings] = None,
    ):
        self._ledger = ledger
        self._goals = goals
        self._settings = settings or get_settings().app

    async def get_stats(self, today: Optional[date] = None) -> DashboardStats:
        """
        Build the dashboard for the month containing ``today``.

        total_balance is all-time income minus all-time expenses;
        the monthly figures cover the calendar month only.
        """
        today = today or date.today()
        month_start, month_end = month_bounds(today)

        entries = await self._ledger.entries_by_kind()
        all_time = totals_by_kind(entries)
        this_month = totals_by_kind(entries, month_start, month_end)

        goals = await self._goals.list_goals()
        recent = await self._ledger.list_transactions(
            pagination=Pagination(limit=self._settings.recent_transactions_limit),
        )

        return DashboardStats(
            total_balance=all_time[EntryKind.INCOME] - all_time[EntryKind.EXPENSE],
            monthly_income=this_month[EntryKind.INCOME],
            monthly_expenses=this_month[EntryKind.EXPENSE],
            total_savings=sum((goal.current_amount for goal in goals), ZERO),
            recent_transactions=recent,
            savings_goals=goals,
        )
