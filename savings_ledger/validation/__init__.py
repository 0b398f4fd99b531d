"""Input validation package."""

from savings_ledger.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
