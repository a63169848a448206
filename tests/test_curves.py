from dataclasses import replace

import pytest

from liquid_vault.constants import DEFAULT_MIN_LOCK_TIME, MAX_BUY_PRESSURE_FEE_PERMILLE, UNIT
from liquid_vault.curves import (
    Regime,
    buy_pressure_fee,
    lock_duration,
    lock_percentage,
    lock_regime,
    price_deviation,
    spot_price,
)
from liquid_vault.errors import ReservesUnavailable
from liquid_vault.fixed_point import INT128_MAX, ZERO, FixedPoint
from liquid_vault.models import (
    BuyPressureCalibration,
    LockPercentageCalibration,
    LockTimeCalibration,
    PoolReserves,
)


def _reserves(paired: int, token: int) -> PoolReserves:
    return PoolReserves(token=token * UNIT, paired=paired * UNIT, last_update=0)


def test_thin_paired_liquidity_locks_for_tens_of_days():
    cal = LockTimeCalibration.default()
    reserves = _reserves(10, 1_000)
    assert lock_regime(spot_price(reserves), cal) is Regime.WET
    seconds = lock_duration(reserves, cal)
    assert seconds == 3_931_200
    assert 10 * 86_400 <= seconds < 100 * 86_400


def test_abundant_paired_liquidity_locks_for_the_floor():
    cal = LockTimeCalibration.default()
    reserves = _reserves(10_000, 300_000)
    assert lock_regime(spot_price(reserves), cal) is Regime.DRY
    assert lock_duration(reserves, cal) == DEFAULT_MIN_LOCK_TIME == 86_400


def test_lock_duration_is_non_increasing_in_paired_depth():
    cal = LockTimeCalibration.default()
    durations = [lock_duration(_reserves(paired, 1_000), cal) for paired in range(1, 60)]
    assert all(a >= b for a, b in zip(durations, durations[1:]))
    assert durations[0] > durations[-1]


def test_lock_curve_is_continuous_at_threshold():
    cal = LockTimeCalibration.default()
    # x = 0.02 exactly: first dry point.
    assert lock_duration(_reserves(20, 1_000), cal) == 86_400
    # Just below the threshold the wet branch is already at the floor.
    just_below = PoolReserves(token=1_000 * UNIT, paired=20 * UNIT - 10**9, last_update=0)
    assert lock_regime(spot_price(just_below), cal) is Regime.WET
    assert lock_duration(just_below, cal) == 86_400


@pytest.mark.parametrize(
    ("scaling_dry", "expected"),
    [
        (FixedPoint.from_int(-(10**20)), DEFAULT_MIN_LOCK_TIME),
        (FixedPoint.from_int(10**20), INT128_MAX // FixedPoint.SCALE),
    ],
)
def test_lock_duration_saturates_when_the_curve_overflows(scaling_dry, expected):
    cal = replace(LockTimeCalibration.default(), scaling_dry=scaling_dry)
    assert lock_duration(_reserves(10**9, 1), cal) == expected


def test_lock_duration_for_unrepresentable_price_is_the_floor():
    reserves = PoolReserves(token=1, paired=10**30, last_update=0)
    assert lock_duration(reserves, LockTimeCalibration.default()) == DEFAULT_MIN_LOCK_TIME


def test_force_unlock_short_circuits_to_zero():
    assert lock_duration(_reserves(10, 1_000), LockTimeCalibration.default(), force_unlock=True) == 0


@pytest.mark.parametrize(("paired", "token"), [(0, 1_000), (10, 0), (0, 0)])
def test_zero_reserves_are_unavailable(paired, token):
    with pytest.raises(ReservesUnavailable):
        lock_duration(_reserves(paired, token), LockTimeCalibration.default())


def test_hostile_lock_calibration_still_respects_floor():
    cal = replace(
        LockTimeCalibration.default(),
        scaling_wet=FixedPoint.from_int(-(10**12)),
        shift_wet=FixedPoint.from_int(-5),
    )
    assert lock_duration(_reserves(10, 1_000), cal) == DEFAULT_MIN_LOCK_TIME


@pytest.mark.parametrize(
    ("depth", "permille"),
    [
        (0, 0),
        (1_000, 0),
        (199_000, 200),
        (200_000, 202),
        (500_000, 400),
        (500_001, 400),
        (10_000_000, 400),
    ],
)
def test_buy_pressure_fee(depth, permille):
    assert buy_pressure_fee(depth * UNIT, BuyPressureCalibration.default()) == permille


def test_buy_pressure_fee_saturates_beyond_max_reserves():
    cal = BuyPressureCalibration.default()
    fees = {buy_pressure_fee(depth * UNIT, cal) for depth in (500_000, 750_000, 10**6, 10**9)}
    assert fees == {MAX_BUY_PRESSURE_FEE_PERMILLE}


@pytest.mark.parametrize(
    ("d", "permille"),
    [
        (FixedPoint.from_int(100), MAX_BUY_PRESSURE_FEE_PERMILLE),
        (FixedPoint.from_int(-5), 0),
    ],
)
def test_buy_pressure_fee_is_clamped_regardless_of_calibration(d, permille):
    cal = replace(BuyPressureCalibration.default(), d=d)
    assert buy_pressure_fee(1_000 * UNIT, cal) == permille


@pytest.mark.parametrize(
    ("a", "permille"),
    [
        (FixedPoint.from_decimal("-3e-16"), 0),
        (FixedPoint.from_decimal("3e-16"), MAX_BUY_PRESSURE_FEE_PERMILLE),
    ],
)
def test_buy_pressure_fee_saturates_when_the_cubic_overflows(a, permille):
    cal = replace(BuyPressureCalibration.default(), a=a, max_reserves=10**30)
    assert buy_pressure_fee(10**30, cal) == permille


def test_price_deviation():
    twap = FixedPoint.from_ratio(1, 2)
    assert price_deviation(FixedPoint.from_decimal("0.55"), twap) == FixedPoint.from_decimal("0.1")
    assert price_deviation(FixedPoint.from_decimal("0.45"), twap) == FixedPoint.from_decimal("0.1")
    assert price_deviation(twap, ZERO) == ZERO


@pytest.mark.parametrize(
    ("deviation", "permille"),
    [
        ("0", 12),
        ("0.1", 99),
        ("1", 100),
    ],
)
def test_lock_percentage_tier(deviation, permille):
    assert lock_percentage(FixedPoint.from_decimal(deviation), LockPercentageCalibration.default()) == permille


def test_lock_percentage_grows_with_deviation():
    cal = LockPercentageCalibration.default()
    tiers = [lock_percentage(FixedPoint.from_ratio(i, 1_000), cal) for i in range(0, 60)]
    assert all(a <= b for a, b in zip(tiers, tiers[1:]))


@pytest.mark.parametrize(("d_max", "permille"), [(0, 0), (100, 400)])
def test_lock_percentage_is_clamped(d_max, permille):
    cal = replace(LockPercentageCalibration.default(), d_max=FixedPoint.from_int(d_max))
    assert lock_percentage(FixedPoint.from_int(1), cal) == permille
