"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - BetId wraps UUID — never pass a bare UUID through the manager
    - Users and option keys are lower-cased before they reach the store
    - All valid bet states encoded as an Enum — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enum: serializes to JSON and compares equal to the stored column value
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

BetId = NewType("BetId", UUID)
UserName = NewType("UserName", str)        # lower-cased
OptionKey = NewType("OptionKey", str)      # lower-cased


# ─── Constants ───────────────────────────────────────────────────

DEFAULT_RESERVATION_TAG = "bet"


# ─── Enums ───────────────────────────────────────────────────────

class BetStatus(str, Enum):
    """Bet lifecycle states — maps to DB `status` column.

    open -> closed -> ended, and open -> ended directly. ended is terminal.
    """
    OPEN = "open"
    CLOSED = "closed"
    ENDED = "ended"
