"""Active Bet Handle — which bet the front-end is currently running, if any.

Invariants:
    - At most one bet attached at a time ("Another bet is already open.")
    - Releasing never touches the store: abandoning a bet leaves its row as is
    - The handle stores only the bet id; managers are rebuilt per command
    - Every command that mutates the bet runs under `lock`, so
      check-then-act sequences (ensure_vacant + create, status + enter) never
      interleave

Design Decisions:
    - Explicit object owned by the front-end instead of a process-wide
      "current bet" global inside the core
"""

import asyncio

from betpool.core.domain_types import BetId
from betpool.core.errors import InvalidStateError, ResourceNotFoundError


class ActiveBet:
    """Front-end handle enforcing a single running bet."""

    def __init__(self, bet_id: BetId | None = None):
        self._bet_id = bet_id
        self.lock = asyncio.Lock()

    @property
    def bet_id(self) -> BetId | None:
        return self._bet_id

    def ensure_vacant(self) -> None:
        if self._bet_id is not None:
            raise InvalidStateError("Another bet is already open.")

    def attach(self, bet_id: BetId) -> None:
        self.ensure_vacant()
        self._bet_id = bet_id

    def require(self) -> BetId:
        if self._bet_id is None:
            raise ResourceNotFoundError("Bet", "current")
        return self._bet_id

    def release(self) -> BetId | None:
        bet_id, self._bet_id = self._bet_id, None
        return bet_id
