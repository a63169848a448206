"""Fixed-point curve evaluation: lock duration, buy-pressure fee and exit-fee tier.

All functions here are pure: they read only the reserve numbers and calibration
passed in. Calibrations are never validated; the post-conditions (duration floor,
fee ceilings) are enforced here at evaluation time instead.
"""

from enum import Enum

from liquid_vault.constants import (
    MAX_BUY_PRESSURE_FEE_PERMILLE,
    MAX_LOCK_PERCENTAGE_PERMILLE,
    PERMILLE,
    UNIT,
)
from liquid_vault.errors import FixedPointOverflow, ReservesUnavailable
from liquid_vault.fixed_point import INT128_MAX, ONE, ZERO, FixedPoint
from liquid_vault.models import (
    BuyPressureCalibration,
    LockPercentageCalibration,
    LockTimeCalibration,
    PoolReserves,
)

PERCENT_TO_PERMILLE = PERMILLE // 100


class Regime(Enum):
    """Branch of the lock-duration curve."""

    WET = "wet"
    DRY = "dry"


def spot_price(reserves: PoolReserves) -> FixedPoint:
    """Paired asset per protocol token at the current reserves."""
    if reserves.token == 0 or reserves.paired == 0:
        raise ReservesUnavailable("Reserves cannot be zero.")
    return FixedPoint.from_ratio(reserves.paired, reserves.token)


def lock_regime(ratio: FixedPoint, calibration: LockTimeCalibration) -> Regime:
    return Regime.DRY if ratio >= calibration.threshold else Regime.WET


def lock_duration(
    reserves: PoolReserves,
    calibration: LockTimeCalibration,
    *,
    force_unlock: bool = False,
) -> int:
    """
    Lock duration in seconds for a batch created at the given reserves.

    duration = scaling * x + shift in the selected regime, x = paired / token reserve,
    never below `min_lock_time`. Force-unlock short-circuits to 0. A curve that leaves
    the fixed-point range saturates in the direction of its slope.
    """
    if force_unlock:
        return 0
    try:
        ratio = spot_price(reserves)
    except FixedPointOverflow:
        # x is beyond any threshold.
        return _saturated_duration(calibration.scaling_dry, calibration)
    if lock_regime(ratio, calibration) is Regime.DRY:
        scaling, shift = calibration.scaling_dry, calibration.shift_dry
    else:
        scaling, shift = calibration.scaling_wet, calibration.shift_wet
    try:
        value = scaling * ratio + shift
    except FixedPointOverflow:
        return _saturated_duration(scaling, calibration)
    return max(calibration.min_lock_time, value.floor())


def _saturated_duration(scaling: FixedPoint, calibration: LockTimeCalibration) -> int:
    if scaling > ZERO:
        return max(calibration.min_lock_time, INT128_MAX // FixedPoint.SCALE)
    return calibration.min_lock_time


def _percent_to_permille(percent: FixedPoint, ceiling: int) -> int:
    # Plain integers so a near-range percentage cannot overflow on the way to the clamp.
    permille = percent.raw * PERCENT_TO_PERMILLE // FixedPoint.SCALE
    return min(max(permille, 0), ceiling)


def buy_pressure_fee(token_reserve: int, calibration: BuyPressureCalibration) -> int:
    """
    Buy-pressure fee in parts-per-thousand for the pool's token reserve depth.

    If the cubic leaves the fixed-point range, the fee saturates by the sign of its
    leading coefficient: the ceiling when positive, 0 otherwise.
    """
    depth = min(token_reserve, calibration.max_reserves)
    try:
        x = FixedPoint.from_ratio(depth, UNIT)
        percent = ((calibration.a * x + calibration.b) * x + calibration.c) * x + calibration.d
    except FixedPointOverflow:
        leading = next((k for k in (calibration.a, calibration.b, calibration.c) if k != ZERO), ZERO)
        return MAX_BUY_PRESSURE_FEE_PERMILLE if leading > ZERO else 0
    return _percent_to_permille(percent, MAX_BUY_PRESSURE_FEE_PERMILLE)


def price_deviation(spot: FixedPoint, twap: FixedPoint) -> FixedPoint:
    """Relative distance of spot from the time-weighted average, |spot - twap| / twap."""
    if twap == ZERO:
        return ZERO
    return abs(spot - twap) / twap


def lock_percentage(deviation: FixedPoint, calibration: LockPercentageCalibration) -> int:
    """Exit-fee tier in parts-per-thousand; grows with deviation up to d_max."""
    exponent = -(calibration.beta * (deviation - calibration.p0))
    try:
        denominator = ONE + calibration.d0 * exponent.exp()
    except FixedPointOverflow:
        # The exponential term dominates and the tier vanishes.
        return 0
    if denominator == ZERO:
        return MAX_LOCK_PERCENTAGE_PERMILLE
    percent = calibration.d_max / denominator
    return _percent_to_permille(percent, MAX_LOCK_PERCENTAGE_PERMILLE)
