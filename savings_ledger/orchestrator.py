"""
Main Orchestrator for Savings Ledger

This module ties the components together and owns their lifecycle:
1. Build (storage handle -> registry -> ledger / goals -> dashboard)
2. Start (logging, schema, seed categories)
3. Run operations and turn their outcome into an OperationResult
4. Shut down (dispose the storage engine)

DESIGN DECISION: There is no process-wide database handle. The storage
object is constructed here and passed explicitly into every service;
whoever calls startup() also calls shutdown().

The run() boundary is the only place exceptions become results:
- LedgerError subclasses map to their own status code (400/404/500)
- Anything else is reported as a 500 and logged as a system error
"""

from collections.abc import Awaitable
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel

from savings_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from savings_ledger.config import Settings, get_settings
from savings_ledger.errors import LedgerError, ValidationError
from savings_ledger.goals import GoalBalanceEngine
from savings_ledger.ledger import TransactionLedger
from savings_ledger.models.ledger import OperationResult
from savings_ledger.queries.dashboard import DashboardService
from savings_ledger.registry import CategoryRegistry
from savings_ledger.services.storage import SqliteStorage, StorageInterface
from savings_ledger.validation import LedgerValidator


def _to_payload(value: Any) -> Any:
    """Convert an operation's return value into JSON-safe data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_to_payload(item) for item in value]
    return value


class LedgerApp:
    """
    The assembled ledger: every service sharing one storage handle.

    Usage:
        async with open_app() as app:
            result = await app.run(
                "create_goal",
                app.goals.create_goal("Emergency", 1000),
            )
    """

    def __init__(
        self,
        settings: Settings,
        storage: StorageInterface,
        categories: CategoryRegistry,
        ledger: TransactionLedger,
        goals: GoalBalanceEngine,
        dashboard: DashboardService,
        validator: LedgerValidator,
        audit_logger: AuditLogger,
    ):
        self.settings = settings
        self.storage = storage
        self.categories = categories
        self.ledger = ledger
        self.goals = goals
        self.dashboard = dashboard
        self.validator = validator
        self.audit_logger = audit_logger

    async def startup(self) -> None:
        """Configure logging, connect, create tables and seed categories."""
        configure_logging(self.settings.app.log_level)
        await self.storage.initialize()

    async def shutdown(self) -> None:
        await self.storage.close()

    async def run(
        self,
        operation: str,
        call: Awaitable[Any],
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """
        Await one operation and report its outcome.

        Never raises for a failure of the operation itself; the
        failure is described by the returned OperationResult.

        Args:
            operation: Name recorded in the audit log on failure
            call: The awaitable returned by a service method
            correlation_id: Ties the failure event to the caller's request

        Returns:
            OperationResult with payload on success, error fields otherwise
        """
        operation_id = str(uuid4())
        correlation_id = correlation_id or create_correlation_id()

        try:
            value = await call
        except LedgerError as e:
            await self.audit_logger.log_operation_failed(
                operation=operation,
                error_kind=e.kind,
                error_message=e.message,
                correlation_id=correlation_id,
            )
            return OperationResult(
                operation_id=operation_id,
                success=False,
                status_code=e.status_code,
                error_kind=e.kind,
                error_message=e.message,
                issues=e.issues if isinstance(e, ValidationError) else [],
            )
        except Exception as e:
            await self.audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation},
                correlation_id=correlation_id,
            )
            return OperationResult(
                operation_id=operation_id,
                success=False,
                status_code=500,
                error_kind="internal",
                error_message="Internal server error",
            )

        return OperationResult(
            operation_id=operation_id,
            success=True,
            status_code=200,
            payload=_to_payload(value),
        )


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[StorageInterface] = None,
) -> LedgerApp:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to build from; the cached settings by default
        storage: Storage handle to use; a SqliteStorage from settings by default.
                 Tests pass a handle bound to a temporary database.

    Returns:
        LedgerApp, not yet started
    """
    settings = settings or get_settings()
    storage = storage or SqliteStorage(settings.database)

    app_settings = settings.app
    audit_logger = AuditLogger()
    validator = LedgerValidator(app_settings)

    categories = CategoryRegistry(storage)
    ledger = TransactionLedger(
        storage,
        categories,
        validator=validator,
        audit_logger=audit_logger,
    )
    goals = GoalBalanceEngine(
        storage,
        validator=validator,
        audit_logger=audit_logger,
    )
    dashboard = DashboardService(ledger, goals, settings=app_settings)

    return LedgerApp(
        settings=settings,
        storage=storage,
        categories=categories,
        ledger=ledger,
        goals=goals,
        dashboard=dashboard,
        validator=validator,
        audit_logger=audit_logger,
    )


@asynccontextmanager
async def open_app(
    settings: Optional[Settings] = None,
    storage: Optional[StorageInterface] = None,
) -> AsyncIterator[LedgerApp]:
    """Build, start and (on exit) shut down a LedgerApp."""
    app = create_app_components(settings, storage)
    await app.startup()
    try:
        yield app
    finally:
        await app.shutdown()
