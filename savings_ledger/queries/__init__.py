"""
Summary queries.

The dashboard lives in ``savings_ledger.queries.dashboard``; it depends on
the ledger, which itself imports the aggregation helpers exported here.
"""

from savings_ledger.queries.aggregation import mean, summarize_amounts, totals_by_kind

__all__ = ["mean", "summarize_amounts", "totals_by_kind"]
