"""Transaction ledger package."""

from savings_ledger.ledger.transactions import TransactionLedger

__all__ = ["TransactionLedger"]
