"""
Pytest configuration and fixtures.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ledger.core.logging_config import reset_logging
from ledger.domain.reports import ReportGenerator
from ledger.domain.services import (
    AccountRegistry,
    IntegrityGuard,
    JournalWriter,
    LedgerQueryEngine,
)
from ledger.infrastructure.database import build_engine, build_session_factory, init_db
from ledger.infrastructure.memory import InMemoryLedgerStore
from ledger.infrastructure.repositories import SqlLedgerStore

START = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)


class SteppingClock:
    """Each call returns a time one hour after the previous one."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(hours=1)):
        self.current = start - step
        self.step = step

    def __call__(self) -> datetime:
        self.current += self.step
        return self.current


@pytest.fixture(autouse=True)
def _propagating_logs():
    # the app factory disables propagation; caplog needs it back
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine) -> SqlLedgerStore:
    return SqlLedgerStore(build_session_factory(sql_engine))


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryLedgerStore()
    return request.getfixturevalue("sql_store")


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def guard() -> IntegrityGuard:
    return IntegrityGuard()


@pytest.fixture
def registry(store) -> AccountRegistry:
    return AccountRegistry(store)


@pytest.fixture
def writer(store, clock, guard) -> JournalWriter:
    return JournalWriter(store, clock=clock, guard=guard)


@pytest.fixture
def ledger(store) -> LedgerQueryEngine:
    return LedgerQueryEngine(store)


@pytest.fixture
def reports(store, guard) -> ReportGenerator:
    return ReportGenerator(store, guard=guard)


@pytest.fixture
def chart(registry):
    """Cash, bank, card, capital, revenue and expense accounts."""
    registry.create_account("1000", "Cash", "asset")
    registry.create_account("1010", "Checking Account", "asset")
    registry.create_account("2000", "Credit Card", "liability")
    registry.create_account("3000", "Owner's Equity", "equity")
    registry.create_account("4000", "Revenue", "revenue")
    registry.create_account("5000", "Software Expense", "expense")
    return registry


def debit(code: str, amount: int) -> dict:
    return {"accountCode": code, "debit": amount, "credit": 0}


def credit(code: str, amount: int) -> dict:
    return {"accountCode": code, "debit": 0, "credit": amount}
