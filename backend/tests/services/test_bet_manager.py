"""Bet Manager — state machine tests against a real store and a recording ledger.

Invariants:
    - create() persists one option per key, descriptions preserved
    - enter() replaces, never duplicates, a user's entry
    - enter() releases the old hold before reserving the new one
    - end() debits exactly the pool and credits pool..pool+winners-1
    - illegal transitions raise typed errors and leave the store untouched
"""

import pytest

from betpool.core.domain_types import BetStatus
from betpool.core.errors import (
    ConfigError,
    DependencyError,
    InvalidAmountError,
    InvalidStateError,
    UnknownOptionError,
)
from betpool.core.payouts import LedgerLine
from betpool.services.bet_manager import BetManager


def by_user(line: LedgerLine) -> str:
    return line.user


@pytest.fixture
async def manager(store, ledger):
    return await BetManager.create(store, ledger, {"a": "Cats", "b": "Dogs"})


@pytest.fixture
async def cats_and_dogs(manager):
    await manager.enter("alice", "a", 100)
    await manager.enter("bob", "b", 200)
    await manager.enter("carol", "a", 50)
    return manager


# ─── create ──────────────────────────────────────────────────────

async def test_create_persists_options(manager):
    options = await manager.options()
    assert [(o.name, o.description) for o in options] == [
        ("a", "Cats"), ("b", "Dogs"),
    ]
    assert await manager.status() == BetStatus.OPEN


async def test_create_normalizes_keys(store, ledger):
    manager = await BetManager.create(store, ledger, {" A ": "Red", "B": "Blue"})
    assert await manager.valid("a")
    assert await manager.valid("B")


async def test_create_without_options_fails(store, ledger):
    with pytest.raises(ConfigError):
        await BetManager.create(store, ledger, {})


async def test_create_without_ledger_fails(store):
    with pytest.raises(ConfigError):
        await BetManager.create(store, None, {"a": "Cats"})


# ─── enter / clear ───────────────────────────────────────────────

async def test_enter_returns_entry(manager):
    entry = await manager.enter("Alice", "A", 100)
    assert entry.user == "alice"
    assert entry.amount == 100


async def test_enter_twice_replaces_entry(manager):
    await manager.enter("alice", "a", 100)
    await manager.enter("ALICE", "b", 40)

    entries = await manager.entries()
    assert len(entries) == 1
    assert entries[0].amount == 40
    assert await manager.option_value("a") == 0
    assert await manager.option_value("b") == 40


async def test_enter_releases_then_reserves(manager, ledger):
    await manager.enter("alice", "a", 100)
    assert ledger.calls == [
        ("unreserve", "alice", "bet"),
        ("reserve", "alice", "bet", 100),
    ]
    assert ledger.holds == {("alice", "bet"): 100}


async def test_enter_accepts_text_amount(manager):
    entry = await manager.enter("alice", "a", "25")
    assert entry.amount == 25


async def test_enter_negative_amount_fails(manager, ledger):
    with pytest.raises(InvalidAmountError):
        await manager.enter("alice", "a", -5)
    assert ledger.calls == []
    assert await manager.entries() == []


async def test_enter_unknown_option_fails(manager):
    with pytest.raises(UnknownOptionError) as exc:
        await manager.enter("alice", "z", 10)
    assert exc.value.option == "z"


async def test_enter_when_closed_fails(manager):
    await manager.close()
    with pytest.raises(InvalidStateError) as exc:
        await manager.enter("alice", "a", 10)
    assert exc.value.message == "The current bet has been closed."


async def test_enter_state_checked_before_option(manager):
    await manager.close()
    with pytest.raises(InvalidStateError):
        await manager.enter("alice", "z", -1)


async def test_enter_wraps_ledger_failure(manager, ledger):
    ledger.fail_on = "reserve"
    with pytest.raises(DependencyError) as exc:
        await manager.enter("alice", "a", 10)
    assert exc.value.dependency == "ledger"
    assert exc.value.operation == "reserve"
    assert await manager.entries() == []


async def test_clear_removes_entry(manager):
    await manager.enter("alice", "a", 100)
    await manager.clear("Alice")
    assert await manager.entry_value("alice") == 0
    assert await manager.pool() == 0


async def test_clear_when_closed_fails(manager):
    await manager.enter("alice", "a", 100)
    await manager.close()
    with pytest.raises(InvalidStateError):
        await manager.clear("alice")
    assert await manager.entry_value("alice") == 100


# ─── queries ─────────────────────────────────────────────────────

async def test_aggregates(cats_and_dogs):
    assert await cats_and_dogs.pool() == 350
    assert await cats_and_dogs.option_value("a") == 150
    assert await cats_and_dogs.option_value("B") == 200
    assert await cats_and_dogs.entry_value("Carol") == 50


async def test_values_default_to_zero(manager):
    assert await manager.pool() == 0
    assert await manager.option_value("a") == 0
    assert await manager.option_value("nope") == 0
    assert await manager.entry_value("nobody") == 0


async def test_valid(manager):
    assert await manager.valid("a")
    assert not await manager.valid("c")


# ─── close ───────────────────────────────────────────────────────

async def test_close_transitions_to_closed(manager):
    assert not await manager.closed()
    await manager.close()
    assert await manager.closed()
    assert await manager.status() == BetStatus.CLOSED


async def test_redundant_close_is_allowed(manager):
    await manager.close()
    await manager.close()
    assert await manager.closed()


# ─── end ─────────────────────────────────────────────────────────

async def test_end_reference_scenario(cats_and_dogs, ledger):
    await cats_and_dogs.close()
    winners = await cats_and_dogs.end("a")

    assert sorted(w.user for w in winners) == ["alice", "carol"]
    assert sorted(ledger.batches[0], key=by_user) == [
        LedgerLine("alice", -100, "bet on option a"),
        LedgerLine("bob", -200, "bet on option b"),
        LedgerLine("carol", -50, "bet on option a"),
    ]
    assert sorted(ledger.batches[1], key=by_user) == [
        LedgerLine("alice", 234, "bet payout from option a"),
        LedgerLine("carol", 117, "bet payout from option a"),
    ]
    assert sum(line.amount for line in ledger.debits) == -350
    assert sum(line.amount for line in ledger.credits) == 351
    assert ledger.calls[-1] == ("clear_reservations", "bet")
    assert ledger.holds == {}


async def test_end_directly_from_open(cats_and_dogs):
    await cats_and_dogs.end("b")
    assert await cats_and_dogs.status() == BetStatus.ENDED


async def test_end_without_winning_entries(manager, ledger):
    await manager.enter("dave", "a", 30)

    winners = await manager.end("b")

    assert winners == []
    assert ledger.batches == [[LedgerLine("dave", -30, "bet on option a")]]
    assert ledger.credits == []
    assert ledger.calls[-1] == ("clear_reservations", "bet")


async def test_end_debits_equal_pool_at_start(cats_and_dogs, ledger):
    pool = await cats_and_dogs.pool()
    await cats_and_dogs.end("b")
    assert -sum(line.amount for line in ledger.debits) == pool


async def test_end_unknown_option_fails_without_transition(cats_and_dogs, ledger):
    ledger.calls.clear()
    with pytest.raises(InvalidStateError):
        await cats_and_dogs.end("z")
    assert await cats_and_dogs.status() == BetStatus.OPEN
    assert ledger.calls == []


async def test_end_twice_fails(cats_and_dogs, ledger):
    await cats_and_dogs.end("a")
    paid = len(ledger.batches)
    with pytest.raises(InvalidStateError):
        await cats_and_dogs.end("a")
    assert len(ledger.batches) == paid


async def test_end_records_status_before_payout(cats_and_dogs, ledger):
    ledger.fail_on = "transactions"
    with pytest.raises(DependencyError):
        await cats_and_dogs.end("a")
    assert await cats_and_dogs.status() == BetStatus.ENDED


async def test_close_after_end_fails(cats_and_dogs):
    await cats_and_dogs.end("a")
    with pytest.raises(InvalidStateError):
        await cats_and_dogs.close()


async def test_manager_is_reconstructable(cats_and_dogs, store, ledger):
    rebuilt = BetManager(cats_and_dogs.bet_id, store, ledger)
    assert await rebuilt.pool() == 350
    assert await rebuilt.entry_value("bob") == 200


async def test_end_runs_on_ended_before_paying_out(cats_and_dogs, ledger):
    batches_at_release = []

    await cats_and_dogs.end(
        "a", on_ended=lambda: batches_at_release.append(len(ledger.batches)),
    )

    assert batches_at_release == [0]
    assert len(ledger.batches) == 2
    assert await cats_and_dogs.status() == BetStatus.ENDED


async def test_end_skips_on_ended_for_unknown_option(cats_and_dogs):
    called = []
    with pytest.raises(InvalidStateError):
        await cats_and_dogs.end("z", on_ended=lambda: called.append(True))
    assert called == []


async def test_enter_without_ledger_fails_before_writing(manager, store):
    detached = BetManager(manager.bet_id, store, None)
    with pytest.raises(ConfigError):
        await detached.enter("alice", "a", 10)
    assert await manager.entries() == []
