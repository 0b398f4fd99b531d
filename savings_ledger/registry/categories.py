"""
Category Registry

Read-only access to the seeded categories. Creating, editing and
removing categories is a bootstrap concern handled by storage seeding.
"""

from typing import Optional

from savings_ledger.errors import NotFoundError, ValidationError
from savings_ledger.models.ledger import Category, EntryKind
from savings_ledger.services.storage import StorageInterface, UnitOfWork
from savings_ledger.services.storage.rows import to_category
from savings_ledger.validation import LedgerValidator

_SELECT = "SELECT id, name, type, color, icon, created_at, updated_at FROM categories"


class CategoryRegistry:
    """Lookup of categories by id and kind."""

    def __init__(self, storage: StorageInterface):
        self._storage = storage

    async def list_categories(self, kind: Optional[EntryKind] = None) -> list[Category]:
        """Categories ordered by name (id breaks ties), optionally of one kind."""
        sql = _SELECT
        params = {}
        if kind is not None:
            resolved = LedgerValidator.to_kind(kind)
            if resolved is None:
                raise ValidationError("Type must be either income or expense")
            sql += " WHERE type = :type"
            params["type"] = resolved
        sql += " ORDER BY name, id"

        rows = await self._storage.query_many(sql, params)
        return [to_category(row) for row in rows]

    async def get_category(self, category_id: str) -> Category:
        """
        Get a category by id.

        Raises:
            NotFoundError: If no category has this id
        """
        row = await self._storage.query_one(f"{_SELECT} WHERE id = :id", {"id": category_id})
        if row is None:
            raise NotFoundError("category", category_id)
        return to_category(row)

    async def exists(self, category_id: str, uow: Optional[UnitOfWork] = None) -> bool:
        """
        Check that a category id resolves.

        Pass the caller's unit of work to make the check part of its transaction.
        """
        statement = "SELECT id FROM categories WHERE id = :id"
        params = {"id": category_id}
        if uow is not None:
            row = await uow.query_one(statement, params)
        else:
            row = await self._storage.query_one(statement, params)
        return row is not None
