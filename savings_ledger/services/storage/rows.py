"""
Row <-> model conversion.

Every read path goes through these functions, so the denormalized
transaction shape is built in exactly one place.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from savings_ledger.models.ledger import (
    Category,
    CategoryRef,
    EntryKind,
    GoalContribution,
    SavingsGoal,
    TransactionWithCategory,
)

# Columns selected by every transaction read. Category display attributes
# are aliased so one row carries both entities.
TRANSACTION_SELECT = """
    SELECT t.id, t.amount, t.description, t.category_id, t.type, t.date,
           t.created_at, t.updated_at,
           c.name AS category_name, c.color AS category_color, c.icon AS category_icon
    FROM transactions t
    JOIN categories c ON t.category_id = c.id
"""


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Fixed-width ISO timestamp so stored values sort lexically."""
    return value.isoformat(timespec="microseconds")


def to_db_value(value: Any) -> Any:
    """Convert a Python value into something the SQLite driver can bind."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, EntryKind):
        return value.value
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    return value


def to_decimal(value: Any) -> Decimal:
    """Read a stored REAL back as a Decimal without binary float noise."""
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


def _optional_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def to_category(row: dict) -> Category:
    return Category(
        id=row["id"],
        name=row["name"],
        kind=EntryKind(row["type"]),
        color=row["color"],
        icon=row["icon"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def to_transaction_with_category(row: dict) -> TransactionWithCategory:
    """Build the denormalized read model from a TRANSACTION_SELECT row."""
    return TransactionWithCategory(
        id=row["id"],
        amount=to_decimal(row["amount"]),
        description=row["description"],
        category_id=row["category_id"],
        kind=EntryKind(row["type"]),
        date=date.fromisoformat(row["date"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        category=CategoryRef(
            id=row["category_id"],
            name=row["category_name"],
            color=row["category_color"],
            icon=row["category_icon"],
        ),
    )


def to_goal(row: dict) -> SavingsGoal:
    return SavingsGoal(
        id=row["id"],
        name=row["name"],
        target_amount=to_decimal(row["target_amount"]),
        current_amount=to_decimal(row["current_amount"]),
        target_date=_optional_date(row["target_date"]),
        description=row["description"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def to_contribution(row: dict) -> GoalContribution:
    return GoalContribution(
        id=row["id"],
        goal_id=row["goal_id"],
        amount=to_decimal(row["amount"]),
        date=date.fromisoformat(row["date"]),
        description=row["description"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
