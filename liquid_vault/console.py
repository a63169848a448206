"""Console output formatting."""

from datetime import datetime, timezone

from liquid_vault import curves
from liquid_vault.constants import UNIT
from liquid_vault.errors import LiquidVaultError
from liquid_vault.fixed_point import FixedPoint
from liquid_vault.formatters import format_duration, format_eth, format_permille, format_units
from liquid_vault.models import (
    BuyPressureCalibration,
    LockPercentageCalibration,
    LockTimeCalibration,
    LPClaimed,
    LPQueued,
    PoolReserves,
    StepOutcome,
)
from liquid_vault.simulation import Deployment

# Reserve ratios (paired per token) and token depths shown by `liquid-vault curves`.
CURVE_RATIOS = ("0.001", "0.005", "0.01", "0.015", "0.02", "0.03", "0.1")
CURVE_DEPTHS = (1_000, 50_000, 100_000, 199_000, 300_000, 500_000, 1_000_000)
CURVE_DEVIATIONS = ("0", "0.005", "0.01", "0.02", "0.05", "0.1")


def _ts(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M UTC")


def print_curve_tables(
    lock_cal: LockTimeCalibration,
    fee_cal: BuyPressureCalibration,
    tier_cal: LockPercentageCalibration,
) -> None:
    """Print lock duration, buy-pressure fee and exit-fee tier at a few sample points."""
    print("=" * 70)
    print("📐 LIQUID VAULT CURVES")
    print("=" * 70)

    print("\n🔒 Lock duration (x = paired / token reserve)")
    print("   " + "─" * 50)
    for ratio in CURVE_RATIOS:
        x = FixedPoint.from_decimal(ratio)
        regime = curves.lock_regime(x, lock_cal)
        # Reserves of 1000 tokens at ratio x.
        reserves = PoolReserves(token=1_000 * UNIT, paired=(x * 1_000).raw, last_update=0)
        seconds = curves.lock_duration(reserves, lock_cal)
        print(f"   x={ratio:<7} {regime.value:<4} {format_duration(seconds):>10}  ({seconds}s)")

    print("\n💸 Buy-pressure fee (token reserve depth)")
    print("   " + "─" * 50)
    for depth in CURVE_DEPTHS:
        permille = curves.buy_pressure_fee(depth * UNIT, fee_cal)
        print(f"   {depth:>10,} tokens  {format_permille(permille):>6}")

    print("\n🔥 Exit-fee tier (|spot - twap| / twap)")
    print("   " + "─" * 50)
    for deviation in CURVE_DEVIATIONS:
        permille = curves.lock_percentage(FixedPoint.from_decimal(deviation), tier_cal)
        print(f"   deviation={deviation:<6} {format_permille(permille):>6}")
    print("")


def print_pool_summary(reserves: PoolReserves, lock_cal: LockTimeCalibration, fee_cal: BuyPressureCalibration) -> None:
    """Print live pool reserves and what a purchase would face right now."""
    print(f"   💧 Reserves: {format_units(reserves.token, symbol='tokens')} / {format_eth(reserves.paired, decimals=6)}")
    if reserves.last_update:
        print(f"   🕐 Last update: {_ts(reserves.last_update)}")
    try:
        spot = curves.spot_price(reserves)
        seconds = curves.lock_duration(reserves, lock_cal)
    except LiquidVaultError as ex:
        print(f"   ⚠️  {ex}")
        return
    regime = curves.lock_regime(spot, lock_cal)
    print(f"   💱 Spot price: {spot} ETH/token")
    print(f"   🔒 Lock duration: {format_duration(seconds)} ({regime.value} regime)")
    print(f"   💸 Buy-pressure fee: {format_permille(curves.buy_pressure_fee(reserves.token, fee_cal))}")


def describe_outcome(outcome: StepOutcome) -> str:
    """One line per simulated step."""
    step = outcome.step
    who = f" {step.holder[:10]}…" if step.holder else ""
    head = f"#{outcome.index:<3} {step.action}{who}"
    if not outcome.ok:
        return f"❌ {head}: [{outcome.error_code}] {outcome.detail}"
    detail = outcome.detail
    if isinstance(detail, LPQueued):
        return (
            f"🟢 {head}: {format_units(detail.lp_amount, symbol='LP')} locked "
            f"for {format_duration(detail.lock_period)}, fee {format_units(detail.fee, symbol='ETH')}"
        )
    if isinstance(detail, LPClaimed):
        return (
            f"💰 {head}: paid {format_units(detail.payout, symbol='LP')}, "
            f"{'burned' if detail.exit_fee_burned else 'kept'} {format_units(detail.exit_fee, symbol='LP')} "
            f"({format_permille(detail.lock_percentage)})"
        )
    if step.action == "advance":
        return f"⏩ {head}: now {_ts(outcome.timestamp)}"
    return f"✅ {head}"


def print_deployment_summary(d: Deployment) -> None:
    """Print final vault state after a simulation."""
    vault = d.vault
    print("=" * 70)
    print("📊 LIQUID VAULT STATE")
    print(f"   🕐 {_ts(d.clock.now())}")
    print("=" * 70)
    print_pool_summary(d.pool.reserves(), vault.lock_time_calibration, vault.buy_pressure_calibration)
    print(f"   🏦 Vault LP balance: {format_units(d.pool.balance_of(vault.address), symbol='LP')}")
    print(f"   🪙 Vault token balance: {format_units(d.token.balance_of(vault.address), symbol='tokens')}")
    print(f"   🧾 Fees collected: {format_eth(d.fee_sink.total)}")
    print(f"   🔓 Force unlock: {vault.force_unlock}  •  Purchases disabled: {vault.purchases_disabled}")

    holders = sorted(vault.ledger.holders())
    if not holders:
        print("\n   (no locked batches)")
        return
    print("\n   Holders:")
    for holder in holders:
        length = vault.locked_lp_length(holder)
        cursor = vault.ledger.cursor(holder)
        unclaimed = vault.ledger.unclaimed_total(holder)
        print(f"   • {holder}: {cursor}/{length} claimed, {format_units(unclaimed, symbol='LP')} still locked")
    print("")


def print_exit_tier(reserves: PoolReserves, twap: FixedPoint | None, tier_cal: LockPercentageCalibration) -> None:
    """Print the exit-fee tier a claim would pay against the given TWAP."""
    if twap is None:
        print("   🔥 Exit-fee tier: n/a (no TWAP window)")
        return
    try:
        spot = curves.spot_price(reserves)
    except LiquidVaultError as ex:
        print(f"   ⚠️  {ex}")
        return
    deviation = curves.price_deviation(spot, twap)
    print(f"   📈 TWAP: {twap} ETH/token (deviation {deviation})")
    print(f"   🔥 Exit-fee tier: {format_permille(curves.lock_percentage(deviation, tier_cal))}")
