"""LedgerReservation ORM — a hold on a user's funds under a tag.

Invariants:
    - At most one hold per (user, tag); reserving again replaces the amount
    - Holds never move money: only LedgerTransaction rows change balances
"""

import uuid

from sqlalchemy import String, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from betpool.db.base import Base


class LedgerReservation(Base):
    """Escrow hold, e.g. the stake of an open bet entry."""
    __tablename__ = "ledger_reservations"
    __table_args__ = (
        UniqueConstraint("user", "tag", name="uq_ledger_reservations_user_tag"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user: Mapped[str] = mapped_column(String(100), nullable=False)
    tag: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
