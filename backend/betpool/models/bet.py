"""Bet ORM — persists one wagering event and its lifecycle status.

Invariants:
    - id is UUID primary key
    - status transitions: open -> closed -> ended, or open -> ended
    - At most one non-ended bet is expected; the front-end enforces it
    - ended_at and winning_option_id are only set by the end transition

Design Decisions:
    - Options loaded eagerly (selectin): they are few and immutable
    - Entries have no relationship here: they are mutated through bulk
      delete/insert and an identity-mapped collection would go stale
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from betpool.db.base import Base


class Bet(Base):
    """Bet aggregate root — owns its options and entries."""
    __tablename__ = "bets"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="open", index=True,
    )
    winning_option_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ended_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # Relationships
    options: Mapped[list["BetOption"]] = relationship(
        "BetOption", back_populates="bet",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="BetOption.name",
    )
