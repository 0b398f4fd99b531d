"""
Data Models Package

This package contains all Pydantic models used in the Savings Ledger.
All data flowing through the system must conform to these schemas.
"""

from savings_ledger.models.ledger import (
    AggregateSummary,
    Category,
    CategoryRef,
    CategorySummary,
    DashboardStats,
    EntryKind,
    GoalContribution,
    GoalPatch,
    OperationResult,
    Pagination,
    SavingsGoal,
    Transaction,
    TransactionFilters,
    TransactionPatch,
    TransactionWithCategory,
    ValidationIssue,
)
from savings_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "AggregateSummary",
    "Category",
    "CategoryRef",
    "CategorySummary",
    "DashboardStats",
    "EntryKind",
    "GoalContribution",
    "GoalPatch",
    "OperationResult",
    "Pagination",
    "SavingsGoal",
    "Transaction",
    "TransactionFilters",
    "TransactionPatch",
    "TransactionWithCategory",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
