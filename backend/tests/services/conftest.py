"""Service test fixtures — async DB, bet store, ledgers and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - The route module's active_bet handle is replaced for each test

Design Decisions:
    - SQLite in-memory: fast, no external dependency; no Postgres-only
      features are used by the bet tables
    - db_manager patched: startup restore and readiness use it directly
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import betpool.models  # noqa: F401
from betpool.api.routes import bets as bet_routes
from betpool.core.payouts import LedgerLine
from betpool.db.base import Base
from betpool.infrastructure.bet_store import BetStore
from betpool.infrastructure.database import get_db, DatabaseSessionManager
from betpool.infrastructure.ledger import SqlLedger
import betpool.infrastructure.database as db_module
from betpool.main import app
from betpool.services.active_bet import ActiveBet
from tests.services.fake_ledger import RecordingLedger


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def store(test_db):
    return BetStore(test_db)


@pytest.fixture
def ledger():
    return RecordingLedger()


@pytest.fixture
def sql_ledger(test_db):
    return SqlLedger(test_db)


@pytest.fixture
def fake_db_manager(test_engine, test_session_factory):
    """DatabaseSessionManager wired to the test engine (no pool kwargs for SQLite)."""
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    return manager


@pytest.fixture
async def funded(sql_ledger):
    """Give users an opening balance: await funded(alice=500, bob=300)."""
    async def _fund(**balances):
        await sql_ledger.transactions([
            LedgerLine(user, amount, "opening balance")
            for user, amount in balances.items()
        ])
    return _fund


@pytest.fixture(autouse=True)
def reset_active_bet(monkeypatch):
    """Fresh handle per test; its lock must not outlive the test's event loop."""
    monkeypatch.setattr(bet_routes, "active_bet", ActiveBet())


@pytest.fixture
async def client(fake_db_manager, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    original_manager = db_module.db_manager
    db_module.db_manager = fake_db_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
