"""Capability interfaces of the vault's external collaborators."""

import time
from typing import Protocol

from liquid_vault.fixed_point import FixedPoint
from liquid_vault.models import CumulativePrice, PoolReserves


class Clock(Protocol):
    def now(self) -> int:
        """Current time as unix seconds."""


class SystemClock:
    def now(self) -> int:
        return int(time.time())


class TokenLedger(Protocol):
    """Protocol-token balances. Transfers return False instead of raising on shortfall."""

    address: str

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool: ...


class LiquidityPool(Protocol):
    """AMM pool plus router: reserves, quoting, deposits and pool-unit (LP) transfers."""

    address: str

    def reserves(self) -> PoolReserves: ...

    def cumulative_price(self) -> CumulativePrice: ...

    def quote_paired_amount(self, value_in: int) -> int:
        """Protocol tokens matching `value_in` paired asset at the current pool price."""

    def add_liquidity(self, provider: str, value_in: int, token_in: int) -> int:
        """Deposit both sides for `provider`; returns pool units minted to the provider."""

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, units: int) -> bool: ...


class FeeSink(Protocol):
    """Accepts buy-pressure fees; downstream routing is opaque."""

    def deposit(self, amount: int) -> None: ...


class PriceFeed(Protocol):
    """The price oracle as the vault consumes it."""

    def update(self) -> None: ...

    def consult(self) -> FixedPoint:
        """Average paired-per-token price over the latest completed window."""
