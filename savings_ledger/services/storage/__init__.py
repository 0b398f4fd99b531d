"""
Storage Services Package

Provides the abstract storage contract and the SQLite implementation.
Services only ever see the contract, so the backend is swappable.
"""

from savings_ledger.errors import ReferenceError, StorageError
from savings_ledger.services.storage.interface import (
    StorageInterface,
    UnitOfWork,
)
from savings_ledger.services.storage.sqlite import (
    SqliteStorage,
    SqliteUnitOfWork,
)

__all__ = [
    # Interfaces
    "StorageInterface",
    "UnitOfWork",
    # Exceptions
    "ReferenceError",
    "StorageError",
    # SQLite implementation
    "SqliteStorage",
    "SqliteUnitOfWork",
]
