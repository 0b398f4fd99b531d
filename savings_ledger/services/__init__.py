"""Services package."""

from savings_ledger.services.storage import (
    ReferenceError,
    SqliteStorage,
    SqliteUnitOfWork,
    StorageError,
    StorageInterface,
    UnitOfWork,
)

__all__ = [
    "ReferenceError",
    "SqliteStorage",
    "SqliteUnitOfWork",
    "StorageError",
    "StorageInterface",
    "UnitOfWork",
]
