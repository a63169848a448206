import pytest

from liquid_vault.constants import UNIT
from liquid_vault.errors import OracleNotYetUpdated, OracleUpdatePeriodNotElapsed, TimingError
from liquid_vault.fakes import ConstantProductPool, InMemoryTokenLedger, ManualClock
from liquid_vault.fixed_point import FixedPoint
from liquid_vault.oracle import PriceOracle

PROVIDER = "0x00000000000000000000000000000000000000e1"


def _pool(paired: int, tokens: int) -> tuple[ConstantProductPool, ManualClock]:
    clock = ManualClock()
    token = InMemoryTokenLedger()
    pool = ConstantProductPool(token, clock)
    token.mint(PROVIDER, tokens)
    token.approve(PROVIDER, pool.address, tokens)
    pool.add_liquidity(PROVIDER, paired, tokens)
    return pool, clock


def test_consult_returns_average_price_after_one_window():
    pool, clock = _pool(5 * UNIT, 10 * UNIT)
    oracle = PriceOracle(pool, clock)
    clock.advance(3_600)
    oracle.update()
    assert oracle.consult() == FixedPoint.from_ratio(1, 2)
    assert oracle.checkpoint_count == 2


def test_consult_before_first_update_fails():
    pool, clock = _pool(5 * UNIT, 10 * UNIT)
    oracle = PriceOracle(pool, clock)
    assert oracle.checkpoint_count == 1
    with pytest.raises(OracleNotYetUpdated):
        oracle.consult()


@pytest.mark.parametrize("elapsed", [0, 1, 3_599])
def test_update_before_period_fails(elapsed):
    pool, clock = _pool(5 * UNIT, 10 * UNIT)
    oracle = PriceOracle(pool, clock)
    clock.advance(elapsed)
    with pytest.raises(OracleUpdatePeriodNotElapsed) as exc:
        oracle.update()
    assert isinstance(exc.value, TimingError)
    assert exc.value.code == "oracle_update_period_not_elapsed"


def test_average_is_time_weighted():
    pool, clock = _pool(5 * UNIT, 10 * UNIT)
    oracle = PriceOracle(pool, clock)
    clock.advance(1_800)
    # Price doubles for the second half of the window.
    pool.sync_reserves(10 * UNIT, 10 * UNIT)
    clock.advance(1_800)
    oracle.update()
    assert oracle.consult() == FixedPoint.from_ratio(3, 4)


def test_stale_value_is_kept_until_next_update():
    pool, clock = _pool(5 * UNIT, 10 * UNIT)
    oracle = PriceOracle(pool, clock, period=60)
    clock.advance(60)
    oracle.update()
    pool.sync_reserves(20 * UNIT, 10 * UNIT)
    clock.advance(10 * 86_400)
    assert oracle.consult() == FixedPoint.from_ratio(1, 2)
    oracle.update()
    assert oracle.consult() == FixedPoint.from_int(2)
    assert oracle.last_update == clock.now()


def test_period_must_be_positive():
    pool, clock = _pool(5 * UNIT, 10 * UNIT)
    with pytest.raises(ValueError):
        PriceOracle(pool, clock, period=0)
