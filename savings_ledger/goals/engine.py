"""
Goal Balance Engine

Maintains each savings goal's balance as a value derived from its
contribution history.

CRITICAL INVARIANT: after every committed mutation,
    current_amount == max(0, sum(contribution amounts))

Only add_contribution and remove_contribution write current_amount
(reconcile_goal is the repair path). Each of them inserts or deletes the
contribution and rewrites the cached balance in ONE unit of work, so no
reader ever sees one write without the other.

The unit of work takes SQLite's write lock before its first read, so two
contributions to the same goal cannot interleave their read-modify-write.
"""

from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID, uuid4

import structlog

from savings_ledger.audit import AuditLogger
from savings_ledger.errors import NotFoundError
from savings_ledger.models.ledger import (
    GoalContribution,
    GoalPatch,
    Pagination,
    SavingsGoal,
)
from savings_ledger.services.storage import StorageInterface, UnitOfWork
from savings_ledger.services.storage.rows import (
    to_contribution,
    to_decimal,
    to_goal,
    utc_now,
)
from savings_ledger.validation import LedgerValidator

logger = structlog.get_logger(__name__)

_GOAL_SELECT = """
    SELECT id, name, target_amount, current_amount, target_date, description,
           created_at, updated_at
    FROM savings_goals
"""

_CONTRIBUTION_SELECT = """
    SELECT id, goal_id, amount, date, description, created_at
    FROM goal_contributions
"""

# Patch field -> column
_UPDATABLE_COLUMNS = {
    "name": "name",
    "target_amount": "target_amount",
    "target_date": "target_date",
    "description": "description",
}

ZERO = Decimal("0")


class GoalBalanceEngine:
    """
    Savings goals and the contributions that fund them.
    """

    def __init__(
        self,
        storage: StorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._audit_logger = audit_logger or AuditLogger()

    async def _fetch_goal(self, uow: UnitOfWork, goal_id: str) -> Optional[SavingsGoal]:
        row = await uow.query_one(f"{_GOAL_SELECT} WHERE id = :id", {"id": goal_id})
        return to_goal(row) if row else None

    async def _require_goal(self, uow: UnitOfWork, goal_id: str) -> SavingsGoal:
        goal = await self._fetch_goal(uow, goal_id)
        if goal is None:
            raise NotFoundError("goal", goal_id)
        return goal

    async def _write_balance(self, uow: UnitOfWork, goal_id: str, balance: Decimal) -> None:
        await uow.execute(
            """
            UPDATE savings_goals
            SET current_amount = :current_amount, updated_at = :updated_at
            WHERE id = :id
            """,
            {"current_amount": balance, "updated_at": utc_now(), "id": goal_id},
        )

    # -------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------

    async def create_goal(
        self,
        name: Any,
        target_amount: Any,
        target_date: Any = None,
        description: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsGoal:
        """
        Create a goal with a zero balance.

        Raises:
            ValidationError: Missing name, missing target or target <= 0
        """
        values = self._validator.validate_new_goal(name, target_amount, target_date, description)

        goal_id = str(uuid4())
        now = utc_now()

        async with self._storage.transaction() as uow:
            await uow.execute(
                """
                INSERT INTO savings_goals
                    (id, name, target_amount, current_amount, target_date, description,
                     created_at, updated_at)
                VALUES
                    (:id, :name, :target_amount, 0, :target_date, :description,
                     :created_at, :updated_at)
                """,
                {"id": goal_id, **values, "created_at": now, "updated_at": now},
            )
            goal = await self._fetch_goal(uow, goal_id)

        await self._audit_logger.log_goal_created(
            goal_id=goal_id,
            name=goal.name,
            target_amount=str(goal.target_amount),
            correlation_id=correlation_id,
        )
        return goal

    async def get_goal(self, goal_id: str) -> SavingsGoal:
        """
        Raises:
            NotFoundError: If the goal does not exist
        """
        async with self._storage.transaction() as uow:
            return await self._require_goal(uow, goal_id)

    async def list_goals(self) -> list[SavingsGoal]:
        """All goals, newest first."""
        rows = await self._storage.query_many(
            f"{_GOAL_SELECT} ORDER BY created_at DESC, rowid DESC"
        )
        return [to_goal(row) for row in rows]

    async def update_goal(
        self,
        goal_id: str,
        patch: Union[GoalPatch, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> SavingsGoal:
        """
        Apply the set fields of a goal patch.

        current_amount is not part of the patch; a request that names it
        is rejected before storage is touched.

        Raises:
            NotFoundError: If the goal does not exist
            ValidationError: Empty patch, target <= 0 or a non-updatable field
        """
        patch = self._validator.parse_patch(GoalPatch, patch)

        async with self._storage.transaction() as uow:
            await self._require_goal(uow, goal_id)

            changes = self._validator.validate_goal_changes(patch)
            assignments = [f"{_UPDATABLE_COLUMNS[field]} = :{field}" for field in changes]
            assignments.append("updated_at = :updated_at")
            await uow.execute(
                f"UPDATE savings_goals SET {', '.join(assignments)} WHERE id = :id",
                {**changes, "updated_at": utc_now(), "id": goal_id},
            )
            goal = await self._fetch_goal(uow, goal_id)

        await self._audit_logger.log_goal_updated(
            goal_id=goal_id,
            fields=sorted(changes),
            correlation_id=correlation_id,
        )
        return goal

    async def delete_goal(
        self,
        goal_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Delete a goal and every contribution it owns.

        Contributions go first so no orphan is left behind if the
        goal delete fails; both deletes commit or neither does.

        Raises:
            NotFoundError: If the goal does not exist
        """
        async with self._storage.transaction() as uow:
            await self._require_goal(uow, goal_id)
            removed = await uow.execute(
                "DELETE FROM goal_contributions WHERE goal_id = :goal_id",
                {"goal_id": goal_id},
            )
            await uow.execute("DELETE FROM savings_goals WHERE id = :id", {"id": goal_id})

        await self._audit_logger.log_goal_deleted(
            goal_id=goal_id,
            contributions_removed=removed,
            correlation_id=correlation_id,
        )

    # -------------------------------------------------------------------
    # Contributions
    # -------------------------------------------------------------------

    async def add_contribution(
        self,
        goal_id: str,
        amount: Any,
        date: Any,
        description: Any = None,
        correlation_id: Optional[UUID] = None,
    ) -> GoalContribution:
        """
        Record a contribution and add it to the goal balance.

        Raises:
            ValidationError: amount <= 0 or no date
            NotFoundError: If the goal does not exist
        """
        values = self._validator.validate_contribution(amount, date, description)

        contribution_id = str(uuid4())

        async with self._storage.transaction() as uow:
            goal = await self._require_goal(uow, goal_id)
            await uow.execute(
                """
                INSERT INTO goal_contributions
                    (id, goal_id, amount, date, description, created_at)
                VALUES
                    (:id, :goal_id, :amount, :date, :description, :created_at)
                """,
                {
                    "id": contribution_id,
                    "goal_id": goal_id,
                    **values,
                    "created_at": utc_now(),
                },
            )
            new_balance = goal.current_amount + values["amount"]
            await self._write_balance(uow, goal_id, new_balance)
            row = await uow.query_one(
                f"{_CONTRIBUTION_SELECT} WHERE id = :id", {"id": contribution_id}
            )

        await self._audit_logger.log_contribution_added(
            goal_id=goal_id,
            contribution_id=contribution_id,
            amount=str(values["amount"]),
            new_balance=str(new_balance),
            correlation_id=correlation_id,
        )
        return to_contribution(row)

    async def remove_contribution(
        self,
        goal_id: str,
        contribution_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsGoal:
        """
        Delete a contribution and take it back out of the goal balance.

        The balance never goes below zero. If the stored balance is smaller
        than the contribution (it drifted from the contribution history),
        the balance is set to zero and a goal_balance_clamped warning is
        logged instead of the usual contribution_removed event.

        Raises:
            NotFoundError: If the contribution (for this goal) or the goal does not exist
        """
        clamped = False

        async with self._storage.transaction() as uow:
            row = await uow.query_one(
                f"{_CONTRIBUTION_SELECT} WHERE id = :id AND goal_id = :goal_id",
                {"id": contribution_id, "goal_id": goal_id},
            )
            if row is None:
                raise NotFoundError("contribution", contribution_id)
            goal = await self._require_goal(uow, goal_id)

            contribution = to_contribution(row)
            stored_balance = goal.current_amount
            new_balance = stored_balance - contribution.amount
            if new_balance < ZERO:
                clamped = True
                new_balance = ZERO

            await uow.execute(
                "DELETE FROM goal_contributions WHERE id = :id", {"id": contribution_id}
            )
            await self._write_balance(uow, goal_id, new_balance)
            goal = await self._fetch_goal(uow, goal_id)

        if clamped:
            await self._audit_logger.log_goal_balance_clamped(
                goal_id=goal_id,
                contribution_id=contribution_id,
                stored_balance=str(stored_balance),
                contribution_amount=str(contribution.amount),
                correlation_id=correlation_id,
            )
        else:
            await self._audit_logger.log_contribution_removed(
                goal_id=goal_id,
                contribution_id=contribution_id,
                amount=str(contribution.amount),
                new_balance=str(new_balance),
                correlation_id=correlation_id,
            )
        return goal

    async def list_contributions(
        self,
        goal_id: str,
        pagination: Optional[Pagination] = None,
    ) -> list[GoalContribution]:
        """
        Contributions to one goal, most recent first.

        Raises:
            NotFoundError: If the goal does not exist
        """
        window = pagination or self._validator.pagination()

        async with self._storage.transaction() as uow:
            await self._require_goal(uow, goal_id)
            rows = await uow.query_many(
                f"""{_CONTRIBUTION_SELECT}
                WHERE goal_id = :goal_id
                ORDER BY date DESC, created_at DESC, rowid DESC
                LIMIT :limit OFFSET :offset
                """,
                {"goal_id": goal_id, "limit": window.limit, "offset": window.offset},
            )
        return [to_contribution(row) for row in rows]

    async def reconcile_goal(
        self,
        goal_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> SavingsGoal:
        """
        Recompute a goal's balance from its contributions.

        A no-op when the cached balance already matches.

        Raises:
            NotFoundError: If the goal does not exist
        """
        async with self._storage.transaction() as uow:
            goal = await self._require_goal(uow, goal_id)
            rows = await uow.query_many(
                "SELECT amount FROM goal_contributions WHERE goal_id = :goal_id",
                {"goal_id": goal_id},
            )
            actual = sum((to_decimal(row["amount"]) for row in rows), ZERO)
            cached = goal.current_amount
            if actual != cached:
                await self._write_balance(uow, goal_id, actual)
                goal = await self._fetch_goal(uow, goal_id)

        if actual != cached:
            await self._audit_logger.log_goal_balance_reconciled(
                goal_id=goal_id,
                cached_balance=str(cached),
                actual_balance=str(actual),
                correlation_id=correlation_id,
            )
        else:
            logger.debug("goal_balance_consistent", goal_id=goal_id, balance=str(cached))
        return goal
