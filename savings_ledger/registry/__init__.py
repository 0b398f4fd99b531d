"""Category registry package."""

from savings_ledger.registry.categories import CategoryRegistry

__all__ = ["CategoryRegistry"]
