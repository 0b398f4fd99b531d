"""
Audit Models for Savings Ledger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of every balance change
2. Debugging information when things go wrong
3. A distinct trail for balance repairs (clamps and reconciliations)

DESIGN DECISION: Audit events are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutating ledger operation has its own event type.
    """
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_UPDATED = "goal_updated"
    GOAL_DELETED = "goal_deleted"

    # Contributions
    CONTRIBUTION_ADDED = "contribution_added"
    CONTRIBUTION_REMOVED = "contribution_removed"

    # Balance repairs
    GOAL_BALANCE_CLAMPED = "goal_balance_clamped"
    GOAL_BALANCE_RECONCILED = "goal_balance_reconciled"

    # Failures
    OPERATION_FAILED = "operation_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'goal', 'contribution')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one API request)"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(transaction_id, "12.50", "expense", "expense-food")
        event = AuditEventBuilder.goal_balance_clamped(goal_id, contribution_id, "30", "50")
    """

    @staticmethod
    def transaction_created(
        transaction_id: str,
        amount: str,
        kind: str,
        category_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction created: {kind} {amount} in {category_id}",
            details={
                "amount": amount,
                "kind": kind,
                "category_id": category_id,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction updated: {', '.join(fields)}",
            details={
                "fields": fields,
            },
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
        )

    @staticmethod
    def goal_created(
        goal_id: str,
        name: str,
        target_amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_CREATED,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Savings goal created with target {target_amount}",
            details={
                "name": name,
                "target_amount": target_amount,
            },
        )

    @staticmethod
    def goal_updated(
        goal_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_UPDATED,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Savings goal updated: {', '.join(fields)}",
            details={
                "fields": fields,
            },
        )

    @staticmethod
    def goal_deleted(
        goal_id: str,
        contributions_removed: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_DELETED,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Savings goal deleted with {contributions_removed} contributions",
            details={
                "contributions_removed": contributions_removed,
            },
        )

    @staticmethod
    def contribution_added(
        goal_id: str,
        contribution_id: str,
        amount: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_ADDED,
            entity_type="contribution",
            entity_id=contribution_id,
            correlation_id=correlation_id,
            description=f"Contribution of {amount} added, balance now {new_balance}",
            details={
                "goal_id": goal_id,
                "amount": amount,
                "new_balance": new_balance,
            },
        )

    @staticmethod
    def contribution_removed(
        goal_id: str,
        contribution_id: str,
        amount: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTRIBUTION_REMOVED,
            entity_type="contribution",
            entity_id=contribution_id,
            correlation_id=correlation_id,
            description=f"Contribution of {amount} removed, balance now {new_balance}",
            details={
                "goal_id": goal_id,
                "amount": amount,
                "new_balance": new_balance,
            },
        )

    @staticmethod
    def goal_balance_clamped(
        goal_id: str,
        contribution_id: str,
        stored_balance: str,
        contribution_amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_BALANCE_CLAMPED,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=(
                f"Goal balance {stored_balance} is below removed contribution "
                f"{contribution_amount}; balance set to 0"
            ),
            details={
                "contribution_id": contribution_id,
                "stored_balance": stored_balance,
                "contribution_amount": contribution_amount,
            },
        )

    @staticmethod
    def goal_balance_reconciled(
        goal_id: str,
        cached_balance: str,
        actual_balance: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_BALANCE_RECONCILED,
            severity=AuditSeverity.WARNING,
            entity_type="goal",
            entity_id=goal_id,
            correlation_id=correlation_id,
            description=f"Goal balance corrected from {cached_balance} to {actual_balance}",
            details={
                "cached_balance": cached_balance,
                "actual_balance": actual_balance,
            },
        )

    @staticmethod
    def operation_failed(
        operation: str,
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_FAILED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Operation {operation} failed: {error_kind}",
            error_code=error_kind,
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
