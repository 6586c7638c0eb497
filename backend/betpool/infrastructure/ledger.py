"""SQL Ledger — balances, escrow holds and signed transactions in the same database.

Invariants:
    - balance(user) == sum of the user's LedgerTransaction amounts
    - reserve() never lets holds exceed the balance (InsufficientFundsError)
    - unreserve() of a missing hold is a no-op
    - transactions() applies a whole batch in ONE commit, or nothing
    - Users are lower-cased, matching the bet tables

Design Decisions:
    - Holds are separate rows, not balance deductions: settlement debits the
      stake explicitly and then clears the holds, so a crash between the two
      never double-charges
    - Implements LedgerService structurally; any other ledger with the same
      four coroutines can replace it
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from betpool.core.errors import DependencyError, InsufficientFundsError
from betpool.core.normalize import normalize_user
from betpool.core.payouts import LedgerLine
from betpool.models.ledger_reservation import LedgerReservation
from betpool.models.ledger_transaction import LedgerTransaction

logger = logging.getLogger(__name__)


class SqlLedger:
    """Ledger service backed by ledger_reservations and ledger_transactions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncGenerator[None, None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Ledger {operation} failed: {e}")
            raise DependencyError(str(e.__class__.__name__), "ledger", operation) from e

    async def _sum(self, query) -> int:
        result = await self.db.execute(query)
        return int(result.scalar_one())

    # ─── Reads ───────────────────────────────────────────────────

    async def balance(self, user: str) -> int:
        async with self._guard("balance"):
            return await self._sum(
                select(func.coalesce(func.sum(LedgerTransaction.amount), 0))
                .where(LedgerTransaction.user == normalize_user(user))
            )

    async def reserved(self, user: str, tag: str | None = None) -> int:
        """Total held for user, optionally under one tag only."""
        query = (
            select(func.coalesce(func.sum(LedgerReservation.amount), 0))
            .where(LedgerReservation.user == normalize_user(user))
        )
        if tag is not None:
            query = query.where(LedgerReservation.tag == tag)
        async with self._guard("reserved"):
            return await self._sum(query)

    # ─── Holds ───────────────────────────────────────────────────

    async def reserve(self, user: str, tag: str, amount: int) -> None:
        user = normalize_user(user)
        async with self._guard("reserve"):
            balance = await self._sum(
                select(func.coalesce(func.sum(LedgerTransaction.amount), 0))
                .where(LedgerTransaction.user == user)
            )
            held_elsewhere = await self._sum(
                select(func.coalesce(func.sum(LedgerReservation.amount), 0))
                .where(LedgerReservation.user == user)
                .where(LedgerReservation.tag != tag)
            )
            available = balance - held_elsewhere
            if amount > 0 and amount > available:
                raise InsufficientFundsError(user, amount, max(available, 0))

            result = await self.db.execute(
                select(LedgerReservation)
                .where(LedgerReservation.user == user)
                .where(LedgerReservation.tag == tag)
            )
            hold = result.scalars().first()
            if hold:
                hold.amount = amount
            else:
                self.db.add(LedgerReservation(user=user, tag=tag, amount=amount))
            await self.db.commit()
        logger.debug(
            f"Reserved {amount} for {user} under {tag}",
            extra={"user": user, "amount": amount},
        )

    async def unreserve(self, user: str, tag: str) -> None:
        async with self._guard("unreserve"):
            await self.db.execute(
                delete(LedgerReservation)
                .where(LedgerReservation.user == normalize_user(user))
                .where(LedgerReservation.tag == tag)
            )
            await self.db.commit()

    async def clear_reservations(self, tag: str) -> None:
        async with self._guard("clear_reservations"):
            await self.db.execute(
                delete(LedgerReservation).where(LedgerReservation.tag == tag),
            )
            await self.db.commit()

    # ─── Money movement ──────────────────────────────────────────

    async def transactions(self, lines: Sequence[LedgerLine]) -> None:
        """Apply a batch of signed deltas atomically."""
        if not lines:
            return
        async with self._guard("transactions"):
            self.db.add_all([
                LedgerTransaction(
                    user=normalize_user(line.user),
                    amount=line.amount,
                    description=line.description,
                )
                for line in lines
            ])
            await self.db.commit()
        logger.info(f"Applied {len(lines)} ledger transaction(s)")
