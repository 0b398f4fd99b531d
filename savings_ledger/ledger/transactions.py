"""
Transaction Ledger

Create, update, delete and query dated, categorized monetary entries.

GUARANTEES:
- Every mutation runs in one unit of work; a failure leaves prior state intact
- Every read returns TransactionWithCategory, never a bare category_id
- Category references are checked inside the same unit of work that writes them
- Statements are parameterized; column names come from a fixed mapping
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from savings_ledger.audit import AuditLogger
from savings_ledger.errors import NotFoundError, ReferenceError
from savings_ledger.models.ledger import (
    CategorySummary,
    EntryKind,
    Pagination,
    TransactionFilters,
    TransactionPatch,
    TransactionWithCategory,
)
from savings_ledger.queries.aggregation import summarize_amounts
from savings_ledger.registry import CategoryRegistry
from savings_ledger.services.storage import StorageInterface, UnitOfWork
from savings_ledger.services.storage.rows import (
    TRANSACTION_SELECT,
    to_decimal,
    to_transaction_with_category,
    utc_now,
)
from savings_ledger.validation import LedgerValidator

# Patch field -> column
_UPDATABLE_COLUMNS = {
    "amount": "amount",
    "description": "description",
    "category_id": "category_id",
    "kind": "type",
    "date": "date",
}

_ORDER = " ORDER BY t.date DESC, t.created_at DESC, t.rowid DESC"


class TransactionLedger:
    """
    The append/mutate log of financial transactions.
    """

    def __init__(
        self,
        storage: StorageInterface,
        registry: CategoryRegistry,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._registry = registry
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def _fetch(self, uow: UnitOfWork, transaction_id: str) -> Optional[TransactionWithCategory]:
        row = await uow.query_one(f"{TRANSACTION_SELECT} WHERE t.id = :id", {"id": transaction_id})
        return to_transaction_with_category(row) if row else None

    async def _require_category(self, uow: UnitOfWork, category_id: str) -> None:
        if not await self._registry.exists(category_id, uow):
            raise ReferenceError(f"Category not found: {category_id}")

    async def create_transaction(
        self,
        amount: Any,
        description: Any,
        category_id: Any,
        kind: Any,
        date: Any,
        correlation_id: Optional[UUID] = None,
    ) -> TransactionWithCategory:
        """
        Record a new transaction.

        Raises:
            ValidationError: amount <= 0, empty description, unknown kind or no date
            ReferenceError: category_id does not resolve
        """
        values = self._validator.validate_new_transaction(
            amount, description, category_id, kind, date
        )

        transaction_id = str(uuid4())
        now = utc_now()

        async with self._storage.transaction() as uow:
            await self._require_category(uow, values["category_id"])
            await uow.execute(
                """
                INSERT INTO transactions
                    (id, amount, description, category_id, type, date, created_at, updated_at)
                VALUES
                    (:id, :amount, :description, :category_id, :kind, :date, :created_at, :updated_at)
                """,
                {
                    "id": transaction_id,
                    **values,
                    "created_at": now,
                    "updated_at": now,
                },
            )
            transaction = await self._fetch(uow, transaction_id)

        await self._audit_logger.log_transaction_created(
            transaction_id=transaction_id,
            amount=str(transaction.amount),
            kind=transaction.kind.value,
            category_id=transaction.category_id,
            correlation_id=correlation_id,
        )
        return transaction

    async def get_transaction(self, transaction_id: str) -> TransactionWithCategory:
        """
        Raises:
            NotFoundError: If the transaction does not exist
        """
        async with self._storage.transaction() as uow:
            transaction = await self._fetch(uow, transaction_id)
        if transaction is None:
            raise NotFoundError("transaction", transaction_id)
        return transaction

    async def update_transaction(
        self,
        transaction_id: str,
        patch: Union[TransactionPatch, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> TransactionWithCategory:
        """
        Apply the set fields of a patch.

        Raises:
            NotFoundError: If the transaction does not exist
            ValidationError: Empty patch or an invalid field value
            ReferenceError: A supplied category_id does not resolve
        """
        patch = self._validator.parse_patch(TransactionPatch, patch)

        async with self._storage.transaction() as uow:
            existing = await uow.query_one(
                "SELECT id FROM transactions WHERE id = :id", {"id": transaction_id}
            )
            if existing is None:
                raise NotFoundError("transaction", transaction_id)

            changes = self._validator.validate_transaction_changes(patch)
            if "category_id" in changes:
                await self._require_category(uow, changes["category_id"])

            assignments = [f"{_UPDATABLE_COLUMNS[field]} = :{field}" for field in changes]
            assignments.append("updated_at = :updated_at")
            await uow.execute(
                f"UPDATE transactions SET {', '.join(assignments)} WHERE id = :id",
                {**changes, "updated_at": utc_now(), "id": transaction_id},
            )
            transaction = await self._fetch(uow, transaction_id)

        await self._audit_logger.log_transaction_updated(
            transaction_id=transaction_id,
            fields=sorted(changes),
            correlation_id=correlation_id,
        )
        return transaction

    async def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Hard-delete a transaction. Not idempotent: a second call raises.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        async with self._storage.transaction() as uow:
            deleted = await uow.execute(
                "DELETE FROM transactions WHERE id = :id", {"id": transaction_id}
            )
            if deleted == 0:
                raise NotFoundError("transaction", transaction_id)

        await self._audit_logger.log_transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )

    async def list_transactions(
        self,
        filters: Union[TransactionFilters, dict[str, Any], None] = None,
        pagination: Optional[Pagination] = None,
    ) -> list[TransactionWithCategory]:
        """
        List transactions, most recent first.

        Ordered by date descending; within a day, by creation time descending.
        """
        filters = self._validator.parse_filters(filters)
        window = pagination or self._validator.pagination()

        clauses: list[str] = []
        params: dict[str, Any] = {}
        if filters.category_id:
            clauses.append("t.category_id = :category_id")
            params["category_id"] = filters.category_id
        if filters.kind:
            clauses.append("t.type = :kind")
            params["kind"] = filters.kind
        if filters.date_from:
            clauses.append("t.date >= :date_from")
            params["date_from"] = filters.date_from
        if filters.date_to:
            clauses.append("t.date <= :date_to")
            params["date_to"] = filters.date_to

        sql = TRANSACTION_SELECT
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += _ORDER + " LIMIT :limit OFFSET :offset"
        params.update(limit=window.limit, offset=window.offset)

        rows = await self._storage.query_many(sql, params)
        return [to_transaction_with_category(row) for row in rows]

    async def list_category_transactions(
        self,
        category_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        pagination: Optional[Pagination] = None,
    ) -> list[TransactionWithCategory]:
        """
        Transactions filed under one category.

        Raises:
            NotFoundError: If the category does not exist
        """
        if not await self._registry.exists(category_id):
            raise NotFoundError("category", category_id)
        return await self.list_transactions(
            TransactionFilters(category_id=category_id, date_from=date_from, date_to=date_to),
            pagination,
        )

    async def summarize_category(
        self,
        category_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> CategorySummary:
        """
        Count, sum, mean, min, max and date bounds for one category.

        An empty match reports count 0 and 0 for every amount.

        Raises:
            NotFoundError: If the category does not exist
        """
        category = await self._registry.get_category(category_id)

        sql = "SELECT amount, date FROM transactions WHERE category_id = :category_id"
        params: dict[str, Any] = {"category_id": category_id}
        if date_from:
            sql += " AND date >= :date_from"
            params["date_from"] = date_from
        if date_to:
            sql += " AND date <= :date_to"
            params["date_to"] = date_to

        rows = await self._storage.query_many(sql, params)
        summary = summarize_amounts(
            (to_decimal(row["amount"]), date.fromisoformat(row["date"])) for row in rows
        )
        return CategorySummary(category=category, summary=summary)

    async def entries_by_kind(self) -> list[tuple[EntryKind, Decimal, date]]:
        """Every transaction as (kind, amount, date), for dashboard totals."""
        rows = await self._storage.query_many("SELECT type, amount, date FROM transactions")
        return [
            (EntryKind(row["type"]), to_decimal(row["amount"]), date.fromisoformat(row["date"]))
            for row in rows
        ]
