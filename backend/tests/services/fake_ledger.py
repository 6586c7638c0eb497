"""Recording ledger — in-memory LedgerService that logs every call.

Used by state-machine tests to assert on reserve/unreserve/transactions
without a ledger database. `fail_on` makes one operation raise a plain
RuntimeError, which BetManager must wrap into DependencyError("ledger").
"""


class RecordingLedger:
    def __init__(self):
        self.calls: list[tuple] = []
        self.holds: dict[tuple[str, str], int] = {}
        self.batches: list[list] = []
        self.fail_on: str | None = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.fail_on == name:
            raise RuntimeError(f"{name} unavailable")

    async def reserve(self, user, tag, amount):
        self._record("reserve", user, tag, amount)
        self.holds[(user, tag)] = amount

    async def unreserve(self, user, tag):
        self._record("unreserve", user, tag)
        self.holds.pop((user, tag), None)

    async def clear_reservations(self, tag):
        self._record("clear_reservations", tag)
        for key in [k for k in self.holds if k[1] == tag]:
            del self.holds[key]

    async def transactions(self, lines):
        self._record("transactions", list(lines))
        self.batches.append(list(lines))

    @property
    def debits(self) -> list:
        return [line for batch in self.batches for line in batch if line.amount < 0]

    @property
    def credits(self) -> list:
        return [line for batch in self.batches for line in batch if line.amount > 0]
