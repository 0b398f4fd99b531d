"""Savings goal package."""

from savings_ledger.goals.engine import GoalBalanceEngine

__all__ = ["GoalBalanceEngine"]
