"""
Shared fixtures.

Every test gets its own file-backed SQLite database under tmp_path, with
the schema created and the default categories seeded. Services are wired
to a RecordingAuditLogger so tests can assert on the audit trail.
"""

from pathlib import Path

import pytest

from savings_ledger.audit import AuditLogger
from savings_ledger.config import AppSettings, DatabaseSettings
from savings_ledger.goals import GoalBalanceEngine
from savings_ledger.ledger import TransactionLedger
from savings_ledger.models.audit import AuditEvent, AuditEventType
from savings_ledger.orchestrator import create_app_components
from savings_ledger.queries.dashboard import DashboardService
from savings_ledger.registry import CategoryRegistry
from savings_ledger.services.storage import SqliteStorage
from savings_ledger.validation import LedgerValidator


class RecordingAuditLogger(AuditLogger):
    """AuditLogger that also keeps every event in memory."""

    def __init__(self):
        super().__init__()
        self.events: list[AuditEvent] = []

    async def log(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return await super().log(event)

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [event for event in self.events if event.event_type == event_type]


def _database_url(tmp_path: Path) -> str:
    return f"sqlite+pysqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(default_page_limit=50, recent_transactions_limit=5)


@pytest.fixture
async def storage(tmp_path: Path):
    """Initialized storage on a fresh database file."""
    store = SqliteStorage(
        settings=DatabaseSettings(url=_database_url(tmp_path)),
    )
    await store.initialize()
    yield store
    await store.close()


@pytest.fixture
def audit_logger() -> RecordingAuditLogger:
    return RecordingAuditLogger()


@pytest.fixture
def validator(app_settings: AppSettings) -> LedgerValidator:
    return LedgerValidator(app_settings)


@pytest.fixture
def registry(storage: SqliteStorage) -> CategoryRegistry:
    return CategoryRegistry(storage)


@pytest.fixture
def ledger(storage, registry, validator, audit_logger) -> TransactionLedger:
    return TransactionLedger(
        storage,
        registry,
        validator=validator,
        audit_logger=audit_logger,
    )


@pytest.fixture
def goals(storage, validator, audit_logger) -> GoalBalanceEngine:
    return GoalBalanceEngine(
        storage,
        validator=validator,
        audit_logger=audit_logger,
    )


@pytest.fixture
def dashboard(ledger, goals, app_settings) -> DashboardService:
    return DashboardService(ledger, goals, settings=app_settings)


@pytest.fixture
async def app(tmp_path: Path, audit_logger: RecordingAuditLogger):
    """A started LedgerApp on its own database file."""
    store = SqliteStorage(
        settings=DatabaseSettings(url=_database_url(tmp_path / "app")),
    )
    ledger_app = create_app_components(storage=store)
    ledger_app.audit_logger = audit_logger
    await ledger_app.startup()
    yield ledger_app
    await ledger_app.shutdown()
