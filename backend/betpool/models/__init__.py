"""ORM Models — SQLAlchemy declarative models for bets and the bundled ledger.

Invariants:
    - All models inherit from Base (db/base.py)
    - Bet is the aggregate root for BetOption and BetEntry; ledger tables stand alone

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references and create_all() sees every table
"""

from betpool.models.bet import Bet  # noqa: F401
from betpool.models.bet_option import BetOption  # noqa: F401
from betpool.models.bet_entry import BetEntry  # noqa: F401
from betpool.models.ledger_reservation import LedgerReservation  # noqa: F401
from betpool.models.ledger_transaction import LedgerTransaction  # noqa: F401
