"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap SQLite for another relational backend later
2. Keep business logic decoupled from the driver
3. Make the transactional boundary explicit in the services

The contract is intentionally small: parameterized statements run inside
a unit of work. Values are always bound as parameters, never interpolated.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

Params = Optional[dict[str, Any]]


class UnitOfWork(ABC):
    """
    One storage transaction.

    Either every statement executed through it is committed, or none is.
    """

    @abstractmethod
    async def execute(self, statement: str, params: Params = None) -> int:
        """
        Execute a write statement.

        Returns:
            Number of rows affected

        Raises:
            ReferenceError: If a constraint (e.g. a foreign key) is violated
            StorageError: On any other driver failure
        """
        pass

    @abstractmethod
    async def query_one(self, statement: str, params: Params = None) -> Optional[dict[str, Any]]:
        """
        Run a query and return the first row.

        Returns:
            The row as a dict, or None if nothing matched
        """
        pass

    @abstractmethod
    async def query_many(self, statement: str, params: Params = None) -> list[dict[str, Any]]:
        """Run a query and return every row as a dict."""
        pass


class StorageInterface(ABC):
    """
    Abstract interface for the relational store.

    Any storage implementation must implement the lifecycle methods and
    ``transaction``. The single-statement helpers each run in their own
    unit of work.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """
        Open the store, create the schema and seed reference data.

        Raises:
            StorageError: If the store cannot be opened
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release every resource held by the store."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[UnitOfWork]:
        """
        Open a unit of work.

        Usage:
            async with storage.transaction() as uow:
                await uow.execute(...)

        Commits when the block exits normally and rolls back when it raises.
        """
        pass

    async def execute(self, statement: str, params: Params = None) -> int:
        async with self.transaction() as uow:
            return await uow.execute(statement, params)

    async def query_one(self, statement: str, params: Params = None) -> Optional[dict[str, Any]]:
        async with self.transaction() as uow:
            return await uow.query_one(statement, params)

    async def query_many(self, statement: str, params: Params = None) -> list[dict[str, Any]]:
        async with self.transaction() as uow:
            return await uow.query_many(statement, params)
