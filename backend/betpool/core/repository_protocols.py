"""Boundary Protocols — contracts between the bet manager and its collaborators.

Invariants:
    - The manager only talks to the ledger and the store through these types
    - The ledger owns balances and holds; the manager never writes them directly
    - The store only ever sees normalized (lower-cased) users and option keys

Design Decisions:
    - Protocol over ABC: structural subtyping, so a chat bot's own ledger can be
      plugged in without inheriting from anything here
    - Async in Protocol: every implementation does IO
"""

from typing import Protocol, Sequence

from betpool.core.domain_types import BetId, BetStatus
from betpool.core.payouts import LedgerLine, Stake


class LedgerService(Protocol):
    """Escrow and balance contract — implemented by infrastructure/ledger.py."""
    async def reserve(self, user: str, tag: str, amount: int) -> None: ...
    async def unreserve(self, user: str, tag: str) -> None: ...
    async def clear_reservations(self, tag: str) -> None: ...
    async def transactions(self, lines: Sequence[LedgerLine]) -> None: ...


class BetOptionLike(Protocol):
    id: object
    bet_id: object
    name: str
    description: str


class BetEntryLike(Protocol):
    id: object
    bet_id: object
    user: str
    option_id: object
    amount: int


class BetLike(Protocol):
    id: object
    status: str


class BetStoreLike(Protocol):
    """Persistence contract for bets, options and entries."""
    async def insert_bet(self, options: dict[str, str]) -> BetLike: ...
    async def get_status(self, bet_id: BetId) -> BetStatus: ...
    async def set_status(
        self, bet_id: BetId, status: BetStatus, winning_option_id: object = None,
    ) -> None: ...
    async def get_option(self, bet_id: BetId, name: str) -> BetOptionLike | None: ...
    async def list_options(self, bet_id: BetId) -> list[BetOptionLike]: ...
    async def replace_entry(
        self, bet_id: BetId, user: str, option_id: object, amount: int,
    ) -> BetEntryLike: ...
    async def delete_entry(self, bet_id: BetId, user: str) -> None: ...
    async def get_entry(self, bet_id: BetId, user: str) -> BetEntryLike | None: ...
    async def list_entries(
        self, bet_id: BetId, option_id: object = None,
    ) -> list[BetEntryLike]: ...
    async def list_stakes(self, bet_id: BetId) -> list[Stake]: ...
    async def sum_amount(self, bet_id: BetId, option_id: object = None) -> int: ...
    async def find_unfinished_bet(self) -> BetLike | None: ...
