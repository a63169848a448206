"""CLI and main logic."""

import argparse
import os
import sys

from tqdm import tqdm

from liquid_vault.console import (
    describe_outcome,
    print_curve_tables,
    print_deployment_summary,
    print_exit_tier,
    print_pool_summary,
)
from liquid_vault.constants import DEFAULT_PUBLIC_ETH_RPC_URLS, UNISWAP_V2_FACTORY_MAINNET, WETH_MAINNET
from liquid_vault.contracts import UniswapPairReader, average_price, resolve_pair
from liquid_vault.errors import LiquidVaultError
from liquid_vault.formatters import format_units
from liquid_vault.models import BuyPressureCalibration, LockPercentageCalibration, LockTimeCalibration
from liquid_vault.parsing import load_scenario
from liquid_vault.simulation import deploy_scenario, run_steps
from liquid_vault.validation import (
    validate_buy_pressure_calibration,
    validate_ledger_invariants,
    validate_lock_calibration,
    validate_lock_percentage_calibration,
)

# Internal defaults (not exposed as CLI flags)
DEFAULT_TIMEOUT = 30


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(description="Liquidity lock vault: curve tables, live pool inspection and simulation.")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("curves", help="Print the default lock-duration, buy-pressure and exit-fee curves.")

    inspect = sub.add_parser("inspect", help="Evaluate the curves against a live Uniswap V2 pair.")
    inspect.add_argument("token", help="Protocol token address.")
    inspect.add_argument(
        "--rpc-url",
        default=None,
        help="Execution-layer RPC URL. Falls back to ETH_RPC_URL, then to a public endpoint.",
    )
    inspect.add_argument("--pair", default=None, help="Pair address. Resolved via the factory when omitted.")
    inspect.add_argument("--paired", default=WETH_MAINNET, help="Paired asset address. Default: mainnet WETH.")
    inspect.add_argument(
        "--factory",
        default=UNISWAP_V2_FACTORY_MAINNET,
        help="Uniswap V2 factory address. Default: mainnet factory.",
    )
    inspect.add_argument("--block", default="latest", help="Block number or tag to read at. Default: latest.")
    inspect.add_argument(
        "--twap-block",
        type=int,
        default=None,
        help="Earlier block to average the pair's cumulative price from, for the exit-fee tier.",
    )
    inspect.add_argument("--vault", default=None, help="Vault address; prints the pair units it holds.")

    simulate = sub.add_parser("simulate", help="Run a JSON scenario against an in-memory vault.")
    simulate.add_argument("scenario", help="Path to scenario JSON file.")
    simulate.add_argument("--quiet", action="store_true", help="Only print the final state.")

    return p.parse_args(argv)


def _check_default_calibrations() -> None:
    issues = (
        validate_lock_calibration(LockTimeCalibration.default())
        + validate_buy_pressure_calibration(BuyPressureCalibration.default())
        + validate_lock_percentage_calibration(LockPercentageCalibration.default())
    )
    if issues:
        print("⚠️  Calibration warnings:", file=sys.stderr)
        for issue in issues:
            print(f"   {issue}", file=sys.stderr)


def cmd_curves(_args: argparse.Namespace) -> int:
    _check_default_calibrations()
    print_curve_tables(
        LockTimeCalibration.default(),
        BuyPressureCalibration.default(),
        LockPercentageCalibration.default(),
    )
    return 0


def cmd_inspect(args: argparse.Namespace) -> int:
    try:
        from web3 import Web3
    except ImportError as ex:  # pragma: no cover
        print("Missing dependency. Run: pip install web3", file=sys.stderr)
        raise SystemExit(2) from ex

    rpc_url = args.rpc_url or os.getenv("ETH_RPC_URL")
    if not rpc_url:
        rpc_url = DEFAULT_PUBLIC_ETH_RPC_URLS[0]
        print(f"ℹ️ No RPC URL given, using public endpoint {rpc_url}", file=sys.stderr)

    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": DEFAULT_TIMEOUT}))
    if not w3.is_connected():
        print(f"Error: failed to connect to RPC at {rpc_url}", file=sys.stderr)
        return 2

    block = int(args.block) if str(args.block).isdigit() else args.block
    try:
        pair = args.pair or resolve_pair(w3, args.factory, args.token, args.paired)
        reader = UniswapPairReader(w3, pair, args.token, block_identifier=block)
        reserves = reader.reserves()
        twap = None
        if args.twap_block is not None:
            earlier = UniswapPairReader(w3, pair, args.token, block_identifier=args.twap_block)
            twap = average_price(earlier.cumulative_price(), reader.cumulative_price())
        vault_units = reader.balance_of(args.vault) if args.vault else None
    except Exception as ex:  # pylint: disable=broad-exception-caught
        print(f"Error: failed to read pair for {args.token}: {ex}", file=sys.stderr)
        return 2

    print("=" * 70)
    print(f"🔗 Pair {reader.address}  •  block={block}")
    print("=" * 70)
    print_pool_summary(reserves, LockTimeCalibration.default(), BuyPressureCalibration.default())
    if args.twap_block is not None:
        print_exit_tier(reserves, twap, LockPercentageCalibration.default())
    if vault_units is not None:
        print(f"   🏦 Vault LP balance: {format_units(vault_units, symbol='LP')}")
    print("")
    return 0


def cmd_simulate(args: argparse.Namespace) -> int:
    try:
        scenario = load_scenario(args.scenario)
    except (OSError, ValueError) as ex:
        print(f"Error: cannot load scenario {args.scenario}: {ex}", file=sys.stderr)
        return 2

    try:
        deployment = deploy_scenario(scenario)
    except LiquidVaultError as ex:
        print(f"Error: cannot deploy scenario [{ex.code}]: {ex}", file=sys.stderr)
        return 2

    def report(outcome) -> None:
        if not args.quiet:
            tqdm.write(describe_outcome(outcome), file=sys.stderr)

    with tqdm(scenario.steps, desc="🧪 Simulating", unit="step", file=sys.stderr) as pbar:
        outcomes = run_steps(deployment, pbar, on_outcome=report)

    issues = validate_ledger_invariants(
        deployment.vault.ledger,
        pool_balance=deployment.pool.balance_of(deployment.vault.address),
    )
    if issues:
        print("⚠️  Ledger invariant warnings:", file=sys.stderr)
        for issue in issues:
            print(f"   {issue}", file=sys.stderr)

    print_deployment_summary(deployment)
    failed = sum(1 for o in outcomes if not o.ok)
    print(f"Steps: {len(outcomes)} run, {failed} failed", file=sys.stderr)
    return 0


COMMANDS = {
    "curves": cmd_curves,
    "inspect": cmd_inspect,
    "simulate": cmd_simulate,
}


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)
    return COMMANDS[args.command](args)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
