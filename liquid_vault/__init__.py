"""Liquidity lock vault: locked LP batches, curve-driven fees and emergency rescue."""

from typing import NoReturn

__version__ = "0.1.0"


def _entry_point() -> NoReturn:
    """Entry point for the liquid-vault script."""
    import sys

    from liquid_vault.cli import main

    raise SystemExit(main(sys.argv[1:]))
