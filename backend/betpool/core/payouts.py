"""Payout Computation — pro-rata settlement of a bet pool. Pure, no IO.

Invariants:
    - Every stake produces exactly one debit equal to the stake
    - Only stakes on the winning option produce credits
    - payout = ceil(amount * pool / winning_total), in exact integer arithmetic
    - pool <= sum(credits) < pool + len(winners) whenever winning_total > 0
    - winning_total == 0 means no credits at all: the pool is forfeited

Design Decisions:
    - Rounding up mints at most one unit per winner rather than randomly losing
      fractions; the surplus is accepted, not redistributed
    - Integer ceil-division instead of float math: 100/150*350 must give 234
      on every platform, not 233.99999 rounded the wrong way
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Stake:
    """One entry as seen by the settlement: who, how much, on which option."""
    user: str
    amount: int
    option: str


@dataclass(frozen=True)
class LedgerLine:
    """One ledger delta. Negative amount = debit, positive = credit."""
    user: str
    amount: int
    description: str


@dataclass
class Settlement:
    """Result of settling a pool: totals plus the two ledger batches."""
    pool: int
    winning_total: int
    debits: list[LedgerLine] = field(default_factory=list)
    credits: list[LedgerLine] = field(default_factory=list)

    @property
    def surplus(self) -> int:
        """Units minted by rounding (0 when nobody won)."""
        if not self.credits:
            return 0
        return sum(line.amount for line in self.credits) - self.pool


def pro_rata_payout(amount: int, winning_total: int, pool: int) -> int:
    """Winner's share of the pool, rounded up."""
    if winning_total <= 0:
        return 0
    return -(-amount * pool // winning_total)


def compute_settlement(stakes: list[Stake], winning_option: str) -> Settlement:
    """Build debit and credit batches for a pool won by winning_option."""
    pool = sum(stake.amount for stake in stakes)
    winners = [stake for stake in stakes if stake.option == winning_option]
    winning_total = sum(stake.amount for stake in winners)

    debits = [
        LedgerLine(stake.user, -stake.amount, f"bet on option {stake.option}")
        for stake in stakes
    ]
    credits = []
    if winning_total > 0:
        credits = [
            LedgerLine(
                stake.user,
                pro_rata_payout(stake.amount, winning_total, pool),
                f"bet payout from option {winning_option}",
            )
            for stake in winners
        ]

    return Settlement(pool, winning_total, debits, credits)
