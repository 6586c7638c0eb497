"""Bet Schemas — Pydantic models with field-level validation for API boundaries.

Invariants:
    - BetCreate.options accepts the chat form ("a) Cats b) Dogs") or a mapping
    - EntryCreate.user is stripped and non-empty
    - Amount sign is NOT validated here: negative stakes must reach the manager
      so they fail with INVALID_AMOUNT like every other front-end

Design Decisions:
    - field_validator for side-effect-free transforms (strip) — keeps models pure
"""

from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class BetCreate(BaseModel):
    """Bet creation — raw option text or an explicit {key: description} map."""
    options: str | dict[str, str]


class EntryCreate(BaseModel):
    """Stake placement."""
    user: str = Field(min_length=1, max_length=100)
    option: str = Field(min_length=1, max_length=50)
    amount: int

    @field_validator("user", "option")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty or whitespace")
        return v


class BetEnd(BaseModel):
    """Winning option declaration."""
    option: str = Field(min_length=1, max_length=50)


class OptionResponse(BaseModel):
    name: str
    description: str
    value: int | None = None


class EntryResponse(BaseModel):
    user: str
    option: str
    amount: int


class BetResponse(BaseModel):
    """Bet state as shown to participants."""
    id: UUID
    status: str
    pool: int
    options: list[OptionResponse]
    listing: str


class BetEndResponse(BaseModel):
    id: UUID
    winning_option: str
    pool: int
    winners: list[EntryResponse]
