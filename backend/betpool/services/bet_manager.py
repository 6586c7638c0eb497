"""Bet Manager — state machine for one bet over the store and the ledger.

Invariants:
    - The manager holds no state besides its bet_id: everything durable is in
      the store, so a manager can be rebuilt at any time (restore_active_bet)
    - Status moves open -> closed -> ended, or open -> ended; ended is terminal
    - Entries change only while open; a user never has two entries
    - end() persists status=ended BEFORE touching the ledger
    - Ledger failures surface as DependencyError("ledger"); domain refusals
      from the ledger (e.g. InsufficientFundsError) pass through unchanged

Design Decisions:
    - No locking here: the HTTP front-end serializes commands under
      active_bet.lock
    - No compensation: a failure half-way through enter() or end() leaves the
      steps already committed in place and is logged, not repaired
    - Settlement math lives in core/payouts.py; this module only moves data
"""

import logging
from typing import Awaitable, Callable

from betpool.core.domain_types import BetId, BetStatus, DEFAULT_RESERVATION_TAG
from betpool.core.errors import (
    BetPoolError,
    ConfigError,
    DependencyError,
    ErrorContext,
    InvalidStateError,
    UnknownOptionError,
)
from betpool.core.normalize import (
    normalize_amount, normalize_option_key, normalize_user,
)
from betpool.core.payouts import compute_settlement
from betpool.core.repository_protocols import (
    BetEntryLike, BetOptionLike, BetStoreLike, LedgerService,
)

logger = logging.getLogger(__name__)


class BetManager:
    """Operations on a single bet, addressed by its id."""

    def __init__(
        self,
        bet_id: BetId,
        store: BetStoreLike,
        ledger: LedgerService | None,
        reservation_tag: str = DEFAULT_RESERVATION_TAG,
    ):
        self.bet_id = bet_id
        self.store = store
        self.ledger = ledger
        self.reservation_tag = reservation_tag

    @classmethod
    async def create(
        cls,
        store: BetStoreLike,
        ledger: LedgerService | None,
        options: dict[str, str],
        reservation_tag: str = DEFAULT_RESERVATION_TAG,
    ) -> "BetManager":
        """Open a new bet with the given {key: description} options."""
        if ledger is None:
            raise ConfigError(
                "Bets require a ledger, but none appears to be available.",
            )
        normalized = {
            normalize_option_key(key): str(description).strip()
            for key, description in (options or {}).items()
            if normalize_option_key(key)
        }
        if not normalized:
            raise ConfigError("A bet needs at least one option.")

        bet = await store.insert_bet(normalized)
        logger.info(
            f"Bet opened with options {sorted(normalized)}",
            extra={"bet_id": bet.id},
        )
        return cls(BetId(bet.id), store, ledger, reservation_tag)

    def _context(self, **fields) -> ErrorContext:
        return ErrorContext(bet_id=str(self.bet_id), **fields)

    def _require_ledger(self) -> LedgerService:
        if self.ledger is None:
            raise ConfigError("No ledger is attached to this bet.", self._context())
        return self.ledger

    async def _ledger_call(
        self, operation: str, call: Callable[..., Awaitable[None]], *args,
    ) -> None:
        """Await call(*args), mapping ledger IO failures to DependencyError."""
        try:
            await call(*args)
        except BetPoolError:
            raise
        except Exception as e:
            logger.error(
                f"Ledger {operation} failed: {e}",
                extra={"bet_id": self.bet_id, "error_code": "DEPENDENCY_ERROR"},
            )
            raise DependencyError(str(e), "ledger", operation, self._context()) from e

    # ─── Queries ─────────────────────────────────────────────────

    async def status(self) -> BetStatus:
        return await self.store.get_status(self.bet_id)

    async def closed(self) -> bool:
        return await self.status() == BetStatus.CLOSED

    async def valid(self, option_key: str) -> bool:
        """Whether option_key names one of this bet's options."""
        return await self._get_option(option_key) is not None

    async def options(self) -> list[BetOptionLike]:
        return await self.store.list_options(self.bet_id)

    async def entries(self) -> list[BetEntryLike]:
        return await self.store.list_entries(self.bet_id)

    async def pool(self) -> int:
        """Sum of all stakes on this bet."""
        return await self.store.sum_amount(self.bet_id)

    async def option_value(self, option_key: str) -> int:
        """Sum of stakes on one option; 0 for unknown or empty options."""
        option = await self._get_option(option_key)
        if option is None:
            return 0
        return await self.store.sum_amount(self.bet_id, option.id)

    async def entry_value(self, user: str) -> int:
        """The user's current stake; 0 if they have not entered."""
        entry = await self.store.get_entry(self.bet_id, normalize_user(user))
        return entry.amount if entry else 0

    async def _get_option(self, option_key: str) -> BetOptionLike | None:
        return await self.store.get_option(
            self.bet_id, normalize_option_key(option_key),
        )

    # ─── Transitions ─────────────────────────────────────────────

    async def enter(self, user: str, option_key: str, amount) -> BetEntryLike:
        """Place or replace the user's stake while the bet is open."""
        status = await self.status()
        if status != BetStatus.OPEN:
            raise InvalidStateError(
                f"The current bet has been {status.value}.", self._context(),
            )

        option = await self._get_option(option_key)
        if option is None:
            raise UnknownOptionError(
                normalize_option_key(option_key), self._context(),
            )

        stake = normalize_amount(amount)
        user = normalize_user(user)

        ledger = self._require_ledger()
        await self._ledger_call(
            "unreserve", ledger.unreserve, user, self.reservation_tag,
        )
        await self._ledger_call(
            "reserve", ledger.reserve, user, self.reservation_tag, stake,
        )
        entry = await self.store.replace_entry(self.bet_id, user, option.id, stake)

        logger.debug(
            f"{user} bet {stake} on option {option.name}",
            extra={"bet_id": self.bet_id, "user": user, "option": option.name, "amount": stake},
        )
        return entry

    async def clear(self, user: str) -> None:
        """Withdraw the user's entry while the bet is open."""
        if await self.status() != BetStatus.OPEN:
            raise InvalidStateError("No bets are open right now.", self._context())
        # The hold is left for the next enter() or the final clear_reservations
        await self.store.delete_entry(self.bet_id, normalize_user(user))

    async def close(self) -> None:
        """Lock entries. Closing twice is allowed; closing an ended bet is not."""
        if await self.status() == BetStatus.ENDED:
            raise InvalidStateError("The bet has already ended.", self._context())
        pool = await self.pool()
        await self.store.set_status(self.bet_id, BetStatus.CLOSED)
        logger.info(f"Bet closed with a pool of {pool}", extra={"bet_id": self.bet_id})

    async def end(
        self,
        winning_option_key: str,
        on_ended: Callable[[], object] | None = None,
    ) -> list[BetEntryLike]:
        """Declare the winner, pay out pro-rata and release all holds.

        on_ended runs once status=ended is stored, before any ledger call.
        Returns the entries placed on the winning option.
        """
        winning = await self._get_option(winning_option_key)
        if winning is None:
            raise InvalidStateError(
                f'Betting option "{normalize_option_key(winning_option_key)}" does not exist.',
                self._context(option=normalize_option_key(winning_option_key)),
            )
        if await self.status() == BetStatus.ENDED:
            raise InvalidStateError("The bet has already ended.", self._context())

        await self.store.set_status(
            self.bet_id, BetStatus.ENDED, winning_option_id=winning.id,
        )
        if on_ended is not None:
            on_ended()

        stakes = await self.store.list_stakes(self.bet_id)
        settlement = compute_settlement(stakes, winning.name)
        winners = await self.store.list_entries(self.bet_id, winning.id)

        try:
            ledger = self._require_ledger()
            await self._ledger_call(
                "transactions", ledger.transactions, settlement.debits,
            )
            if settlement.credits:
                await self._ledger_call(
                    "transactions", ledger.transactions, settlement.credits,
                )
            await self._ledger_call(
                "clear_reservations", ledger.clear_reservations,
                self.reservation_tag,
            )
        except BetPoolError as e:
            # TODO: record settlement batches in an outbox so they can be replayed
            logger.error(
                f"Bet ended but settlement is incomplete: {e.message}",
                extra={"bet_id": self.bet_id, "error_code": e.code},
            )
            raise

        logger.info(
            f"Bet ended on option {winning.name}: pool {settlement.pool}, "
            f"{len(winners)} winner(s), surplus {settlement.surplus}",
            extra={"bet_id": self.bet_id, "option": winning.name},
        )
        return winners


async def restore_active_bet(
    store: BetStoreLike,
    ledger: LedgerService | None,
    reservation_tag: str = DEFAULT_RESERVATION_TAG,
) -> BetManager | None:
    """Re-attach to the most recent bet that never ended. Best effort."""
    try:
        bet = await store.find_unfinished_bet()
    except Exception as e:
        logger.error(f"Failed to restore bets: {e}", exc_info=True)
        return None
    if bet is None:
        return None

    logger.info(
        f"Restoring {bet.status} bet", extra={"bet_id": bet.id},
    )
    return BetManager(BetId(bet.id), store, ledger, reservation_tag)
