"""In-memory collaborators for tests and offline simulation.

`ConstantProductPool` is a stand-in, not a faithful AMM: deposits mint pool units
proportionally and `sync_reserves` moves the price directly.
"""

import math

from liquid_vault.curves import spot_price
from liquid_vault.errors import ReservesUnavailable, TransferFailed, ZeroAmount
from liquid_vault.interfaces import Clock, TokenLedger
from liquid_vault.models import CumulativePrice, PoolReserves


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("cannot move a clock backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("cannot move a clock backwards")
        self._now = timestamp


class InMemoryTokenLedger:
    """Plain balances-and-allowances token without transfer fees."""

    def __init__(self, address: str = "0x00000000000000000000000000000000000000a1"):
        self.address = address
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}

    def mint(self, account: str, amount: int) -> None:
        self._balances[account] = self._balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(sender) < amount:
            return False
        self._balances[sender] -= amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self._allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        allowed = self.allowance(owner, spender)
        if allowed < amount or not self.transfer(owner, recipient, amount):
            return False
        self._allowances[(owner, spender)] = allowed - amount
        return True


class ConstantProductPool:
    """Two-sided pool of protocol token and paired asset issuing pool units."""

    def __init__(
        self,
        token: TokenLedger,
        clock: Clock,
        address: str = "0x00000000000000000000000000000000000000b2",
    ):
        self.address = address
        self.token = token
        self.clock = clock
        self.token_reserve = 0
        self.paired_reserve = 0
        self.total_supply = 0
        self._balances: dict[str, int] = {}
        self._cumulative = 0
        self._timestamp = clock.now()

    def _accumulate(self) -> None:
        now = self.clock.now()
        if now > self._timestamp and self.token_reserve and self.paired_reserve:
            self._cumulative += spot_price(self.reserves()).raw * (now - self._timestamp)
        self._timestamp = max(self._timestamp, now)

    def reserves(self) -> PoolReserves:
        return PoolReserves(token=self.token_reserve, paired=self.paired_reserve, last_update=self._timestamp)

    def cumulative_price(self) -> CumulativePrice:
        return CumulativePrice(cumulative=self._cumulative, timestamp=self._timestamp)

    def quote_paired_amount(self, value_in: int) -> int:
        if not self.token_reserve or not self.paired_reserve:
            raise ReservesUnavailable("Reserves cannot be zero.")
        return value_in * self.token_reserve // self.paired_reserve

    def add_liquidity(self, provider: str, value_in: int, token_in: int) -> int:
        if value_in <= 0 or token_in <= 0:
            raise ZeroAmount("pool deposit requires both sides > 0")
        if self.total_supply == 0:
            units = math.isqrt(value_in * token_in)
        else:
            units = min(
                value_in * self.total_supply // self.paired_reserve,
                token_in * self.total_supply // self.token_reserve,
            )
        if units <= 0:
            raise ZeroAmount("insufficient pool units minted")
        if not self.token.transfer_from(self.address, provider, self.address, token_in):
            raise TransferFailed(f"pool could not pull {token_in} tokens from {provider}")

        self._accumulate()
        self.paired_reserve += value_in
        self.token_reserve += token_in
        self.total_supply += units
        self._balances[provider] = self.balance_of(provider) + units
        return units

    def sync_reserves(self, paired: int, token: int) -> None:
        """Force reserves to new values, e.g. to emulate trades moving the price."""
        self._accumulate()
        self.paired_reserve = paired
        self.token_reserve = token

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def transfer(self, sender: str, recipient: str, units: int) -> bool:
        if units < 0 or self.balance_of(sender) < units:
            return False
        self._balances[sender] -= units
        self._balances[recipient] = self.balance_of(recipient) + units
        return True


class CollectingFeeSink:
    """Fee sink that just records what it received."""

    def __init__(self) -> None:
        self.deposits: list[int] = []

    def deposit(self, amount: int) -> None:
        self.deposits.append(amount)

    @property
    def total(self) -> int:
        return sum(self.deposits)
