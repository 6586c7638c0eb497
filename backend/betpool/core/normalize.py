"""Boundary Normalization — canonical users, option keys and stake amounts.

Invariants:
    - Users and option keys compare case-insensitively: both are lower-cased here
    - Stakes are non-negative ints; everything else raises InvalidAmountError
    - Called once at the service boundary, before the state machine runs
"""

from betpool.core.domain_types import OptionKey, UserName
from betpool.core.errors import InvalidAmountError


def normalize_user(user: str) -> UserName:
    return UserName(str(user).strip().lower())


def normalize_option_key(key: object) -> OptionKey:
    return OptionKey(str(key).strip().lower())


def normalize_amount(amount: object) -> int:
    """Coerce a stake to int. Chat front-ends hand amounts over as text."""
    if isinstance(amount, bool):
        raise InvalidAmountError(f"Invalid bet amount: {amount!r}.")
    if isinstance(amount, int):
        value = amount
    elif isinstance(amount, float):
        if not amount.is_integer():
            raise InvalidAmountError(f"Bet amount must be a whole number, got {amount}.")
        value = int(amount)
    elif isinstance(amount, str):
        try:
            value = int(amount.strip())
        except ValueError:
            raise InvalidAmountError(f"Invalid bet amount: {amount!r}.")
    else:
        raise InvalidAmountError(f"Invalid bet amount: {amount!r}.")

    if value < 0:
        raise InvalidAmountError("You can't place a negative bet.")
    return value
