"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Complete traceability of balance changes
2. Debugging capability
3. A separate, searchable trail for balance repairs

The audit logger:
- Is async so it can be awaited inside service flows
- Never raises; a logging failure must not undo a committed mutation
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from savings_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog (JSON lines) on top of stdlib logging."""
    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Writes every event to the structured log. Warning-level events
    (balance clamps, reconciliations) are distinguishable by event_type.
    """

    def __init__(self):
        self._logger = structlog.get_logger("savings_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # Logging must never break a committed operation
            return False

        return True

    async def log_transaction_created(
        self,
        transaction_id: str,
        amount: str,
        kind: str,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log transaction creation."""
        event = AuditEventBuilder.transaction_created(
            transaction_id=transaction_id,
            amount=amount,
            kind=kind,
            category_id=category_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_updated(
        self,
        transaction_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            fields=fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_transaction_deleted(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_goal_created(
        self,
        goal_id: str,
        name: str,
        target_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.goal_created(
            goal_id=goal_id,
            name=name,
            target_amount=target_amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_goal_updated(
        self,
        goal_id: str,
        fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.goal_updated(
            goal_id=goal_id,
            fields=fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_goal_deleted(
        self,
        goal_id: str,
        contributions_removed: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.goal_deleted(
            goal_id=goal_id,
            contributions_removed=contributions_removed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_contribution_added(
        self,
        goal_id: str,
        contribution_id: str,
        amount: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a contribution applied to a goal balance."""
        event = AuditEventBuilder.contribution_added(
            goal_id=goal_id,
            contribution_id=contribution_id,
            amount=amount,
            new_balance=new_balance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_contribution_removed(
        self,
        goal_id: str,
        contribution_id: str,
        amount: str,
        new_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a contribution reversed from a goal balance."""
        event = AuditEventBuilder.contribution_removed(
            goal_id=goal_id,
            contribution_id=contribution_id,
            amount=amount,
            new_balance=new_balance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_goal_balance_clamped(
        self,
        goal_id: str,
        contribution_id: str,
        stored_balance: str,
        contribution_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a reversal that would have driven the balance negative."""
        event = AuditEventBuilder.goal_balance_clamped(
            goal_id=goal_id,
            contribution_id=contribution_id,
            stored_balance=stored_balance,
            contribution_amount=contribution_amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_goal_balance_reconciled(
        self,
        goal_id: str,
        cached_balance: str,
        actual_balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.goal_balance_reconciled(
            goal_id=goal_id,
            cached_balance=cached_balance,
            actual_balance=actual_balance,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_operation_failed(
        self,
        operation: str,
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.operation_failed(
            operation=operation,
            error_kind=error_kind,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an unexpected error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a caller request and pass it through
    every operation that request triggers.
    """
    return uuid4()
