"""BetOption ORM — one mutually exclusive outcome of a bet.

Invariants:
    - Always belongs to a Bet (bet_id FK)
    - name is lower-cased and unique per bet
    - Immutable after the bet is created
"""

import uuid

from sqlalchemy import String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from betpool.db.base import Base


class BetOption(Base):
    """Betting option entity, addressed by its short key (a, b, ...)."""
    __tablename__ = "bet_options"
    __table_args__ = (
        UniqueConstraint("bet_id", "name", name="uq_bet_options_bet_name"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    bet_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("bets.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Relationships
    bet: Mapped["Bet"] = relationship("Bet", back_populates="options")
