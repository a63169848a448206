"""Sanity checks for calibrations and ledger state."""

from liquid_vault.constants import MAX_BUY_PRESSURE_FEE_PERMILLE, UNIT
from liquid_vault.curves import lock_percentage
from liquid_vault.fixed_point import ZERO, FixedPoint
from liquid_vault.ledger import LockedBatchLedger
from liquid_vault.models import BuyPressureCalibration, LockPercentageCalibration, LockTimeCalibration


def _report(issues: list[str], msg: str, warn_only: bool) -> None:
    issues.append(msg)
    if not warn_only:
        raise ValueError(msg)


def validate_lock_calibration(cal: LockTimeCalibration, *, warn_only: bool = True) -> list[str]:
    """
    Check the lock-duration curve for shapes the vault accepts but nobody should deploy.

    Calibration is never rejected by the vault itself; this is advisory tooling.
    """
    issues: list[str] = []

    if cal.min_lock_time < 0:
        _report(issues, f"negative min_lock_time: {cal.min_lock_time}", warn_only)

    if cal.threshold <= ZERO:
        _report(issues, f"regime threshold must be > 0, got {cal.threshold}", warn_only)

    # More paired liquidity must never lengthen the lock.
    for name, scaling in (("scaling_wet", cal.scaling_wet), ("scaling_dry", cal.scaling_dry)):
        if scaling > ZERO:
            _report(issues, f"{name} is positive ({scaling}): lock grows with liquidity", warn_only)

    # Continuity at the threshold: wet curve should not end below the dry curve.
    wet_at_threshold = cal.scaling_wet * cal.threshold + cal.shift_wet
    dry_at_threshold = cal.scaling_dry * cal.threshold + cal.shift_dry
    if wet_at_threshold < dry_at_threshold:
        _report(
            issues,
            f"lock curve jumps up at the threshold: wet={wet_at_threshold} < dry={dry_at_threshold}",
            warn_only,
        )

    return issues


def validate_buy_pressure_calibration(
    cal: BuyPressureCalibration,
    *,
    samples: int = 50,
    warn_only: bool = True,
) -> list[str]:
    """Check that the buy-pressure cubic is non-negative and non-decreasing over its domain."""
    issues: list[str] = []

    if cal.max_reserves <= 0:
        _report(issues, f"max_reserves must be > 0, got {cal.max_reserves}", warn_only)
        return issues

    whole_tokens = cal.max_reserves // UNIT
    previous: FixedPoint | None = None
    for i in range(samples + 1):
        x = FixedPoint.from_int(whole_tokens * i // samples)
        percent = ((cal.a * x + cal.b) * x + cal.c) * x + cal.d
        if percent < ZERO:
            _report(issues, f"buy-pressure curve negative at {x} tokens: {percent}%", warn_only)
        if previous is not None and percent < previous:
            _report(issues, f"buy-pressure curve decreases at {x} tokens: {previous}% -> {percent}%", warn_only)
        previous = percent

    ceiling = FixedPoint.from_ratio(MAX_BUY_PRESSURE_FEE_PERMILLE, 10)
    if previous is not None and previous < ceiling:
        _report(
            issues,
            f"buy-pressure curve never reaches the {ceiling}% ceiling (max {previous}%)",
            warn_only,
        )

    return issues


def validate_lock_percentage_calibration(cal: LockPercentageCalibration, *, warn_only: bool = True) -> list[str]:
    """Check the exit-fee tier: non-negative parameters and a tier that grows with deviation."""
    issues: list[str] = []

    for name in ("d_max", "d0", "beta"):
        value = getattr(cal, name)
        if value < ZERO:
            _report(issues, f"lock percentage {name} is negative: {value}", warn_only)

    low = lock_percentage(ZERO, cal)
    high = lock_percentage(FixedPoint.from_ratio(1, 2), cal)
    if high < low:
        _report(issues, f"exit-fee tier falls with deviation: {low}‰ at 0, {high}‰ at 50%", warn_only)

    return issues


def validate_ledger_invariants(
    ledger: LockedBatchLedger,
    *,
    pool_balance: int | None = None,
    warn_only: bool = True,
) -> list[str]:
    """
    Check cursor/claimed consistency for every holder.

    With `pool_balance`, also check that the vault holds enough pool units to cover
    every unclaimed batch.
    """
    issues: list[str] = []

    for holder in ledger.holders():
        batches = ledger.batches(holder)
        cursor = ledger.cursor(holder)
        if cursor > len(batches):
            _report(issues, f"Holder {holder}: cursor {cursor} past end ({len(batches)})", warn_only)
            continue
        for index, b in enumerate(batches):
            if index < cursor and not b.claimed:
                _report(issues, f"Holder {holder}: batch {index} before cursor is unclaimed", warn_only)
            if index >= cursor and b.claimed:
                _report(issues, f"Holder {holder}: batch {index} at/after cursor is claimed", warn_only)
            if b.amount <= 0:
                _report(issues, f"Holder {holder}: batch {index} has non-positive amount {b.amount}", warn_only)

    if pool_balance is not None:
        unclaimed = ledger.unclaimed_total()
        if pool_balance < unclaimed:
            _report(
                issues,
                f"pool balance {pool_balance} does not cover unclaimed batches ({unclaimed})",
                warn_only,
            )

    return issues
