"""Recovery — tests for re-attaching to an unfinished bet after a restart.

Invariants:
    - The most recent non-ended bet is restored with its data intact
    - Ended bets are never restored
    - Store failures are logged and yield None
    - Startup restore attaches the front-end handle
"""

from betpool.api.routes import bets as bet_routes
from betpool.core.domain_types import BetStatus
from betpool.core.errors import DependencyError
from betpool.main import restore_on_startup
from betpool.services.bet_manager import BetManager, restore_active_bet


async def test_nothing_to_restore(store, ledger):
    assert await restore_active_bet(store, ledger) is None


async def test_restores_open_bet(store, ledger):
    original = await BetManager.create(store, ledger, {"a": "Cats", "b": "Dogs"})
    await original.enter("alice", "a", 100)

    restored = await restore_active_bet(store, ledger)

    assert restored.bet_id == original.bet_id
    assert await restored.entry_value("alice") == 100
    assert await restored.status() == BetStatus.OPEN


async def test_restores_closed_bet(store, ledger):
    original = await BetManager.create(store, ledger, {"a": "Cats"})
    await original.close()

    restored = await restore_active_bet(store, ledger)

    assert restored.bet_id == original.bet_id
    assert await restored.closed()


async def test_ended_bet_is_not_restored(store, ledger):
    manager = await BetManager.create(store, ledger, {"a": "Cats"})
    await manager.end("a")
    assert await restore_active_bet(store, ledger) is None


async def test_restore_failure_is_logged_not_raised(ledger, caplog):
    class BrokenStore:
        async def find_unfinished_bet(self):
            raise DependencyError("OperationalError", "store", "find_unfinished_bet")

    assert await restore_active_bet(BrokenStore(), ledger) is None
    assert "Failed to restore bets" in caplog.text


async def test_startup_attaches_handle(store, ledger, fake_db_manager):
    original = await BetManager.create(store, ledger, {"a": "Cats"})

    await restore_on_startup(fake_db_manager)

    assert bet_routes.active_bet.bet_id == original.bet_id
