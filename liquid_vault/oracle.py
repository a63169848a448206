"""Fixed-window time-weighted average price oracle over a liquidity pool."""

from liquid_vault.constants import DEFAULT_ORACLE_PERIOD
from liquid_vault.curves import spot_price
from liquid_vault.errors import OracleNotYetUpdated, OracleUpdatePeriodNotElapsed
from liquid_vault.fixed_point import FixedPoint
from liquid_vault.interfaces import Clock, LiquidityPool
from liquid_vault.models import CumulativePrice


class PriceOracle:
    """
    TWAP of the protocol token, in paired asset per token.

    The first checkpoint is taken at construction. Each successful `update()` closes a
    window of at least `period` seconds and stores its average; `consult()` returns the
    average of the latest closed window. Nothing here expires: a consult long after the
    last update returns the same (stale) value.
    """

    def __init__(self, pool: LiquidityPool, clock: Clock, *, period: int = DEFAULT_ORACLE_PERIOD):
        if period <= 0:
            raise ValueError("period must be > 0")
        self.pool = pool
        self.clock = clock
        self.period = period
        self._checkpoint = self.current_cumulative_price()
        self._previous_checkpoint: CumulativePrice | None = None
        self._average: FixedPoint | None = None

    def current_cumulative_price(self) -> CumulativePrice:
        """Pool cumulative price extended to now with the current spot price."""
        now = self.clock.now()
        last = self.pool.cumulative_price()
        cumulative = last.cumulative
        if now > last.timestamp:
            reserves = self.pool.reserves()
            if reserves.token and reserves.paired:
                cumulative += spot_price(reserves).raw * (now - last.timestamp)
        return CumulativePrice(cumulative=cumulative, timestamp=now)

    @property
    def last_update(self) -> int:
        return self._checkpoint.timestamp

    @property
    def checkpoint_count(self) -> int:
        return 1 if self._previous_checkpoint is None else 2

    def update(self) -> None:
        current = self.current_cumulative_price()
        elapsed = current.timestamp - self._checkpoint.timestamp
        if elapsed < self.period:
            raise OracleUpdatePeriodNotElapsed(
                f"PriceOracle: period not elapsed ({elapsed}s of {self.period}s)"
            )
        self._average = FixedPoint((current.cumulative - self._checkpoint.cumulative) // elapsed)
        self._previous_checkpoint = self._checkpoint
        self._checkpoint = current

    def consult(self) -> FixedPoint:
        if self._average is None:
            raise OracleNotYetUpdated("PriceOracle: no completed window yet")
        return self._average
