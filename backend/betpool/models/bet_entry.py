"""BetEntry ORM — one user's stake on one option.

Invariants:
    - At most one entry per (bet_id, user); a new stake replaces the old row
    - user is lower-cased
    - amount is a non-negative integer
    - Rows are only written while the bet is open

Design Decisions:
    - Unique constraint backs up the delete-then-insert sequence in BetStore
    - option_id FK instead of the option name: renames are impossible anyway,
      and joins give the name back when a ledger description needs it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    String, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from betpool.db.base import Base


class BetEntry(Base):
    """Stake placed by a user on a bet option."""
    __tablename__ = "bet_entries"
    __table_args__ = (
        UniqueConstraint("bet_id", "user", name="uq_bet_entries_bet_user"),
        CheckConstraint("amount >= 0", name="ck_bet_entries_amount_non_negative"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    bet_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bets.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    option_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bet_options.id", ondelete="CASCADE"),
        nullable=False,
    )
    user: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
