"""
Aggregation Engine

DESIGN DECISION: Aggregation is DETERMINISTIC and runs in Python over
the rows storage returns, using Decimal arithmetic. SQL SUM/AVG over
REAL columns would reintroduce binary float rounding.

Empty input has a defined answer: count 0, every amount 0, no dates.
Display consumers get the same response shape either way.
"""

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from typing import Optional

from savings_ledger.models.ledger import AggregateSummary, EntryKind

ZERO = Decimal("0")


def mean(amounts: list[Decimal]) -> Decimal:
    """Exact Decimal average; 0 for an empty list."""
    if not amounts:
        return ZERO
    return sum(amounts, ZERO) / len(amounts)


def summarize_amounts(entries: Iterable[tuple[Decimal, date]]) -> AggregateSummary:
    """
    Compute count/sum/mean/min/max and date bounds.

    Args:
        entries: (amount, date) pairs

    Returns:
        AggregateSummary; all zeros and None dates for empty input
    """
    amounts: list[Decimal] = []
    dates: list[date] = []
    for amount, entry_date in entries:
        amounts.append(amount)
        dates.append(entry_date)

    if not amounts:
        return AggregateSummary()

    return AggregateSummary(
        transaction_count=len(amounts),
        total_amount=sum(amounts, ZERO),
        average_amount=mean(amounts),
        min_amount=min(amounts),
        max_amount=max(amounts),
        first_transaction_date=min(dates),
        last_transaction_date=max(dates),
    )


def totals_by_kind(
    entries: Iterable[tuple[EntryKind, Decimal, date]],
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> dict[EntryKind, Decimal]:
    """
    Sum amounts per kind, optionally within an inclusive date range.

    Both kinds are always present in the result.
    """
    totals = {kind: ZERO for kind in EntryKind}
    for kind, amount, entry_date in entries:
        if date_from and entry_date < date_from:
            continue
        if date_to and entry_date > date_to:
            continue
        totals[kind] += amount
    return totals
