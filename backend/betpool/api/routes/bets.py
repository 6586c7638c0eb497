"""Bet Routes — HTTP front-end for opening, entering, closing and ending bets.

Invariants:
    - One bet attached at a time (active_bet); a second open is a 409
    - Every request builds a fresh BetManager over the request's DB session
    - Option values are only revealed once betting has closed
    - Mutating routes hold active_bet.lock from the handle check to the last
      store/ledger write, so commands on the bet never interleave
    - /end releases the handle once status=ended is stored and before paying
      out: a failed status write keeps the bet attached, a failed payout never
      leaves an ended bet attached

Design Decisions:
    - active_bet as module-level handle: single-process uvicorn, restored from
      the store on startup (main.lifespan) instead of persisted separately
    - /stop abandons without a stored transition; holds stay until the next
      bet ends and clears the tag
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from betpool.config import get_settings
from betpool.core.domain_types import BetStatus
from betpool.core.errors import InvalidStateError, ResourceNotFoundError
from betpool.core.normalize import normalize_option_key, normalize_user
from betpool.core.parse_options import format_options, parse_options
from betpool.infrastructure.bet_store import BetStore
from betpool.infrastructure.database import get_db
from betpool.infrastructure.ledger import SqlLedger
from betpool.schemas.bet import (
    BetCreate, BetEnd, BetEndResponse, BetResponse, EntryCreate,
    EntryResponse, OptionResponse,
)
from betpool.services.active_bet import ActiveBet
from betpool.services.bet_manager import BetManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/bets", tags=["bets"])

active_bet = ActiveBet()


def get_bet_store(db: AsyncSession = Depends(get_db)) -> BetStore:
    return BetStore(db)


def get_ledger(db: AsyncSession = Depends(get_db)) -> SqlLedger | None:
    """Ledger for this request, or None when bets are configured off."""
    if not get_settings().ledger_enabled:
        return None
    return SqlLedger(db)


def _manager(bet_id, store: BetStore, ledger: SqlLedger | None) -> BetManager:
    return BetManager(bet_id, store, ledger, get_settings().reservation_tag)


async def _describe(manager: BetManager) -> BetResponse:
    bet_status = await manager.status()
    reveal = bet_status != BetStatus.OPEN
    options = []
    for option in await manager.options():
        value = await manager.option_value(option.name) if reveal else None
        options.append(OptionResponse(
            name=option.name, description=option.description, value=value,
        ))
    return BetResponse(
        id=manager.bet_id,
        status=bet_status.value,
        pool=await manager.pool(),
        options=options,
        listing=format_options(
            {o.name: o.description for o in options},
        ),
    )


@router.post(
    "", response_model=BetResponse, status_code=status.HTTP_201_CREATED,
)
async def open_bet(
    body: BetCreate,
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    """Open a bet from "a) Cats b) Dogs" or {"a": "Cats", "b": "Dogs"}."""
    options = (
        parse_options(body.options) if isinstance(body.options, str)
        else body.options
    )
    async with active_bet.lock:
        active_bet.ensure_vacant()
        manager = await BetManager.create(
            store, ledger, options, get_settings().reservation_tag,
        )
        active_bet.attach(manager.bet_id)
    return await _describe(manager)


@router.get("/current", response_model=BetResponse)
async def current_bet(
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    return await _describe(_manager(active_bet.require(), store, ledger))


@router.post(
    "/current/entries", response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enter_bet(
    body: EntryCreate,
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    async with active_bet.lock:
        manager = _manager(active_bet.require(), store, ledger)
        entry = await manager.enter(body.user, body.option, body.amount)
    return EntryResponse(
        user=entry.user,
        option=normalize_option_key(body.option),
        amount=entry.amount,
    )


@router.get("/current/entries/{user}")
async def entry_value(
    user: str,
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    manager = _manager(active_bet.require(), store, ledger)
    return {"user": normalize_user(user), "amount": await manager.entry_value(user)}


@router.delete(
    "/current/entries/{user}", status_code=status.HTTP_204_NO_CONTENT,
)
async def clear_entry(
    user: str,
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    async with active_bet.lock:
        await _manager(active_bet.require(), store, ledger).clear(user)


@router.post("/current/close")
async def close_bet(
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    """Lock entries and report the pool."""
    async with active_bet.lock:
        manager = _manager(active_bet.require(), store, ledger)
        if await manager.status() != BetStatus.OPEN:
            raise InvalidStateError("No bets are currently open.")
        await manager.close()
        pool = await manager.pool()
    return {
        "id": str(manager.bet_id),
        "status": BetStatus.CLOSED.value,
        "pool": pool,
    }


@router.post("/current/end", response_model=BetEndResponse)
async def end_bet(
    body: BetEnd,
    store: BetStore = Depends(get_bet_store),
    ledger: SqlLedger | None = Depends(get_ledger),
):
    """Declare the winning option and pay out."""
    winning = normalize_option_key(body.option)
    async with active_bet.lock:
        manager = _manager(active_bet.require(), store, ledger)
        if not await manager.valid(winning):
            raise InvalidStateError(f'Betting option "{winning}" does not exist.')
        pool = await manager.pool()
        winners = await manager.end(winning, on_ended=active_bet.release)
    return BetEndResponse(
        id=manager.bet_id,
        winning_option=winning,
        pool=pool,
        winners=[
            EntryResponse(user=e.user, option=winning, amount=e.amount)
            for e in winners
        ],
    )


@router.post("/current/stop")
async def stop_bet():
    """Abandon the running bet without settling it."""
    async with active_bet.lock:
        bet_id = active_bet.release()
    if bet_id is None:
        raise ResourceNotFoundError("Bet", "current")
    logger.warning("Bet abandoned without settlement", extra={"bet_id": bet_id})
    return {"id": str(bet_id), "message": "Bet abandoned."}
