"""Bet Store — SQLAlchemy persistence for bets, options and entries.

Invariants:
    - Every query is scoped by bet_id except find_unfinished_bet
    - replace_entry deletes and inserts in ONE commit: a user never has two entries
    - insert_bet writes the bet and all of its options in ONE commit
    - Sums over no rows are 0, never None
    - SQLAlchemy failures roll back and surface as DependencyError("store")

Design Decisions:
    - Status read with a column query, not the ORM object: the identity map
      would otherwise hand back a status cached earlier in the same session
    - Implements BetStoreLike structurally, no inheritance
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from betpool.core.domain_types import BetId, BetStatus
from betpool.core.errors import DependencyError, ResourceNotFoundError
from betpool.core.payouts import Stake
from betpool.models.bet import Bet
from betpool.models.bet_entry import BetEntry
from betpool.models.bet_option import BetOption

logger = logging.getLogger(__name__)


class BetStore:
    """Key-based queries over the bets, bet_options and bet_entries tables."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncGenerator[None, None]:
        try:
            yield
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Bet store {operation} failed: {e}")
            raise DependencyError(str(e.__class__.__name__), "store", operation) from e

    # ─── Bets ────────────────────────────────────────────────────

    async def insert_bet(self, options: dict[str, str]) -> Bet:
        """Create an open bet together with its options."""
        async with self._guard("insert_bet"):
            bet = Bet(status=BetStatus.OPEN.value)
            bet.options = [
                BetOption(name=name, description=description)
                for name, description in options.items()
            ]
            self.db.add(bet)
            await self.db.commit()
            return bet

    async def get_status(self, bet_id: BetId) -> BetStatus:
        async with self._guard("get_status"):
            result = await self.db.execute(
                select(Bet.status).where(Bet.id == bet_id),
            )
            status = result.scalar_one_or_none()
        if status is None:
            raise ResourceNotFoundError("Bet", str(bet_id))
        return BetStatus(status)

    async def set_status(
        self, bet_id: BetId, status: BetStatus, winning_option_id=None,
    ) -> None:
        """Persist a status transition with its timestamp."""
        values: dict = {"status": status.value}
        now = datetime.now(timezone.utc)
        if status == BetStatus.CLOSED:
            values["closed_at"] = now
        elif status == BetStatus.ENDED:
            values["ended_at"] = now
            values["winning_option_id"] = winning_option_id

        async with self._guard("set_status"):
            result = await self.db.execute(
                update(Bet).where(Bet.id == bet_id).values(**values),
            )
            if result.rowcount == 0:
                await self.db.rollback()
                raise ResourceNotFoundError("Bet", str(bet_id))
            await self.db.commit()

    async def find_unfinished_bet(self) -> Bet | None:
        """Most recent bet that has not ended, if any."""
        async with self._guard("find_unfinished_bet"):
            result = await self.db.execute(
                select(Bet)
                .where(Bet.status != BetStatus.ENDED.value)
                .order_by(Bet.created_at.desc())
                .limit(1)
            )
            return result.scalars().first()

    # ─── Options ─────────────────────────────────────────────────

    async def get_option(self, bet_id: BetId, name: str) -> BetOption | None:
        async with self._guard("get_option"):
            result = await self.db.execute(
                select(BetOption)
                .where(BetOption.bet_id == bet_id)
                .where(BetOption.name == name)
            )
            return result.scalars().first()

    async def list_options(self, bet_id: BetId) -> list[BetOption]:
        async with self._guard("list_options"):
            result = await self.db.execute(
                select(BetOption)
                .where(BetOption.bet_id == bet_id)
                .order_by(BetOption.name)
            )
            return list(result.scalars().all())

    # ─── Entries ─────────────────────────────────────────────────

    async def replace_entry(
        self, bet_id: BetId, user: str, option_id, amount: int,
    ) -> BetEntry:
        """Drop the user's previous entry and insert the new one."""
        async with self._guard("replace_entry"):
            await self.db.execute(
                delete(BetEntry)
                .where(BetEntry.bet_id == bet_id)
                .where(BetEntry.user == user)
            )
            entry = BetEntry(
                bet_id=bet_id, user=user, option_id=option_id, amount=amount,
            )
            self.db.add(entry)
            await self.db.commit()
            return entry

    async def delete_entry(self, bet_id: BetId, user: str) -> None:
        async with self._guard("delete_entry"):
            await self.db.execute(
                delete(BetEntry)
                .where(BetEntry.bet_id == bet_id)
                .where(BetEntry.user == user)
            )
            await self.db.commit()

    async def get_entry(self, bet_id: BetId, user: str) -> BetEntry | None:
        async with self._guard("get_entry"):
            result = await self.db.execute(
                select(BetEntry)
                .where(BetEntry.bet_id == bet_id)
                .where(BetEntry.user == user)
            )
            return result.scalars().first()

    async def list_entries(self, bet_id: BetId, option_id=None) -> list[BetEntry]:
        query = (
            select(BetEntry)
            .where(BetEntry.bet_id == bet_id)
            .order_by(BetEntry.created_at)
        )
        if option_id is not None:
            query = query.where(BetEntry.option_id == option_id)
        async with self._guard("list_entries"):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def list_stakes(self, bet_id: BetId) -> list[Stake]:
        """Entries joined with their option name, ready for settlement."""
        async with self._guard("list_stakes"):
            result = await self.db.execute(
                select(BetEntry.user, BetEntry.amount, BetOption.name)
                .join(BetOption, BetEntry.option_id == BetOption.id)
                .where(BetEntry.bet_id == bet_id)
                .order_by(BetEntry.created_at)
            )
            return [
                Stake(user=user, amount=amount, option=name)
                for user, amount, name in result.all()
            ]

    async def sum_amount(self, bet_id: BetId, option_id=None) -> int:
        query = (
            select(func.coalesce(func.sum(BetEntry.amount), 0))
            .where(BetEntry.bet_id == bet_id)
        )
        if option_id is not None:
            query = query.where(BetEntry.option_id == option_id)
        async with self._guard("sum_amount"):
            result = await self.db.execute(query)
            return int(result.scalar_one())
