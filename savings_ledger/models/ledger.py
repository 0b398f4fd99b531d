"""
Core Data Models for Savings Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Be serializable for storage and logging
3. Keep the derived goal balance out of every general update path

DESIGN DECISION: Amounts are Decimal end to end. Storage rows are converted
into these models at the storage boundary, never passed around as raw dicts.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryKind(str, Enum):
    """
    Direction of money for categories and transactions.

    The stored amount is always positive; the sign lives here.
    """
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# CATEGORY MODELS
# =============================================================================

class Category(BaseModel):
    """A seeded classification entity. Referenced, never owned, by transactions."""

    id: str = Field(
        ...,
        min_length=1,
        description="Stable category identifier (e.g. 'expense-food')"
    )
    name: str = Field(
        ...,
        min_length=1,
        description="Display name"
    )
    kind: EntryKind = Field(
        ...,
        description="Whether the category groups income or expenses"
    )
    color: str = Field(
        ...,
        description="Display color (hex)"
    )
    icon: Optional[str] = Field(
        default=None,
        description="Optional icon glyph"
    )
    created_at: dt.datetime
    updated_at: dt.datetime


class CategoryRef(BaseModel):
    """Display attributes of a category embedded in transaction reads."""

    id: str
    name: str
    color: str
    icon: Optional[str] = None


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class Transaction(BaseModel):
    """
    A dated, categorized monetary entry.

    Hard-deleted when removed; there is no tombstone.
    """

    id: str = Field(
        ...,
        description="Unique transaction ID"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Strictly positive amount; the sign is carried by kind"
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the money was for"
    )
    category_id: str = Field(
        ...,
        description="Category this transaction is filed under"
    )
    kind: EntryKind
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class TransactionWithCategory(Transaction):
    """
    Denormalized read model.

    Every ledger read returns this shape: the transaction plus the
    display attributes of its category.
    """

    category: CategoryRef


class TransactionPatch(BaseModel):
    """
    Partial update for a transaction.

    All fields are optional. Only the fields the caller actually set
    (pydantic's ``model_fields_set``) are applied.
    """
    model_config = ConfigDict(extra="forbid")

    amount: Optional[Decimal] = None
    description: Optional[str] = None
    category_id: Optional[str] = None
    kind: Optional[str] = None
    date: Optional[dt.date] = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were explicitly set."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TransactionFilters(BaseModel):
    """Optional filters for listing transactions."""

    category_id: Optional[str] = None
    kind: Optional[EntryKind] = None
    date_from: Optional[dt.date] = None
    date_to: Optional[dt.date] = None


class Pagination(BaseModel):
    """
    Result window for list operations.

    Numeric strings coming from a query string are coerced to integers.
    """

    limit: int = Field(
        default=50,
        ge=0,
        description="Maximum number of rows to return"
    )
    offset: int = Field(
        default=0,
        ge=0,
        description="Number of rows to skip"
    )


# =============================================================================
# SAVINGS GOAL MODELS
# =============================================================================

class SavingsGoal(BaseModel):
    """
    A savings target with a balance derived from its contributions.

    CRITICAL: current_amount is a cached aggregate. Only contribution
    apply/reverse writes it.
    """

    id: str
    name: str = Field(
        ...,
        min_length=1
    )
    target_amount: Decimal = Field(
        ...,
        gt=0
    )
    current_amount: Decimal = Field(
        default=Decimal("0"),
        ge=0
    )
    target_date: Optional[dt.date] = None
    description: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    @computed_field
    @property
    def progress(self) -> float:
        """Fraction of the target reached, capped at 1."""
        return float(min(Decimal("1"), self.current_amount / self.target_amount))

    @computed_field
    @property
    def remaining_amount(self) -> Decimal:
        return max(Decimal("0"), self.target_amount - self.current_amount)


class GoalPatch(BaseModel):
    """
    Partial update for a savings goal.

    There is deliberately no current_amount field, and unknown fields
    are rejected, so the balance cannot be edited through this path.
    """
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    target_amount: Optional[Decimal] = None
    target_date: Optional[dt.date] = None
    description: Optional[str] = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that were explicitly set."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class GoalContribution(BaseModel):
    """A single deposit toward exactly one goal."""

    id: str
    goal_id: str
    amount: Decimal = Field(
        ...,
        gt=0
    )
    date: dt.date
    description: Optional[str] = None
    created_at: dt.datetime


# =============================================================================
# SUMMARY MODELS
# =============================================================================

class AggregateSummary(BaseModel):
    """
    Statistics over a set of amounts.

    The shape is the same for empty input: every amount is 0 and the
    date bounds are None.
    """

    transaction_count: int = Field(
        default=0,
        ge=0
    )
    total_amount: Decimal = Decimal("0")
    average_amount: Decimal = Decimal("0")
    min_amount: Decimal = Decimal("0")
    max_amount: Decimal = Decimal("0")
    first_transaction_date: Optional[dt.date] = None
    last_transaction_date: Optional[dt.date] = None


class CategorySummary(BaseModel):
    """Summary of one category's transactions over a date range."""

    category: Category
    summary: AggregateSummary


class DashboardStats(BaseModel):
    """Headline numbers for the overview screen."""

    total_balance: Decimal
    monthly_income: Decimal
    monthly_expenses: Decimal
    total_savings: Decimal
    recent_transactions: list[TransactionWithCategory] = Field(default_factory=list)
    savings_goals: list[SavingsGoal] = Field(default_factory=list)


# =============================================================================
# VALIDATION & RESULT MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'not_updatable')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class OperationResult(BaseModel):
    """
    Outcome of one ledger operation, ready for a transport layer.

    Either payload is set (success) or the error fields are.
    """

    operation_id: str
    executed_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.timezone.utc)
    )

    success: bool
    status_code: int = Field(
        ...,
        ge=100,
        le=599
    )
    payload: Any = None

    error_kind: Optional[str] = None
    error_message: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)
