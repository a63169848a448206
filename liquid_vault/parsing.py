"""Scenario file parsing for offline simulation."""

import json
from pathlib import Path
from typing import Any

from liquid_vault.constants import DEFAULT_ORACLE_PERIOD, UNIT
from liquid_vault.formatters import as_int, normalize_hex_str, parse_units
from liquid_vault.models import Scenario, ScenarioStep

DEFAULT_OWNER = "0x0000000000000000000000000000000000000001"
DEFAULT_TREASURY = "0x0000000000000000000000000000000000000002"
DEFAULT_START_TIME = 1_700_000_000

# action -> fields the step must carry
STEP_ACTIONS: dict[str, tuple[str, ...]] = {
    "purchase": ("holder", "value"),
    "claim": ("holder",),
    "advance": ("seconds",),
    "oracle_update": (),
    "sync_reserves": ("paired", "tokens"),
    "insert": ("holders", "amounts", "timestamps"),
    "finish_insertion": (),
    "force_unlock": ("enabled",),
    "disable_purchases": ("enabled",),
    "flush": ("value",),
}


def _address(value: Any) -> str:
    return normalize_hex_str(value).lower()


def _flag(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{where}: expected true or false, got {value!r}")
    return value


def parse_step(raw: dict[str, Any], *, index: int = 0) -> ScenarioStep:
    """Parse one step object, e.g. {"action": "purchase", "holder": "0xab..", "value": "1 ETH"}."""
    if not isinstance(raw, dict):
        raise ValueError(f"step {index}: expected JSON object, got {type(raw).__name__}")
    action = str(raw.get("action", "")).strip().lower()
    if action not in STEP_ACTIONS:
        known = ", ".join(sorted(STEP_ACTIONS))
        raise ValueError(f"step {index}: unknown action {action!r} (known: {known})")
    missing = [name for name in STEP_ACTIONS[action] if name not in raw]
    if missing:
        raise ValueError(f"step {index} ({action}): missing {', '.join(missing)}")

    if action == "advance" and as_int(raw["seconds"]) < 0:
        raise ValueError(f"step {index} (advance): seconds must be >= 0")

    holders = tuple(_address(h) for h in raw.get("holders", ()))
    amounts = tuple(parse_units(a) for a in raw.get("amounts", ()))
    timestamps = tuple(as_int(t) for t in raw.get("timestamps", ()))

    return ScenarioStep(
        action=action,
        holder=_address(raw["holder"]) if "holder" in raw else None,
        value=parse_units(raw.get("value", 0)),
        seconds=as_int(raw.get("seconds")),
        paired=parse_units(raw.get("paired", 0)),
        tokens=parse_units(raw.get("tokens", 0)),
        enabled=_flag(raw.get("enabled", True), f"step {index} ({action}): enabled"),
        holders=holders,
        amounts=amounts,
        timestamps=timestamps,
    )


def parse_scenario(data: dict[str, Any]) -> Scenario:
    """
    Parse a scenario document.

    Quantities accept base-unit integers or whole-unit strings ("10 ETH", "1000 tokens").
    Only `steps` is required; the pool defaults to 10 ETH / 1000 tokens.
    """
    if not isinstance(data, dict):
        raise ValueError("Unexpected scenario format (expected JSON object)")
    pool = data.get("pool") or {}
    raw_steps = data.get("steps")
    if not isinstance(raw_steps, list):
        raise ValueError("scenario needs a 'steps' list")

    return Scenario(
        owner=_address(data.get("owner", DEFAULT_OWNER)),
        treasury=_address(data.get("treasury", DEFAULT_TREASURY)),
        start_time=as_int(data.get("start_time"), default=DEFAULT_START_TIME),
        pool_paired=parse_units(pool.get("paired", 10 * UNIT)),
        pool_tokens=parse_units(pool.get("tokens", 1_000 * UNIT)),
        vault_tokens=parse_units(data.get("vault_tokens", 1_000_000 * UNIT)),
        oracle_period=as_int(data.get("oracle_period"), default=DEFAULT_ORACLE_PERIOD),
        steps=tuple(parse_step(s, index=i) for i, s in enumerate(raw_steps)),
        strict_insertion=_flag(data.get("strict_insertion", False), "strict_insertion"),
    )


def load_scenario(path: str | Path) -> Scenario:
    """Read and parse a scenario JSON file."""
    raw = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: invalid JSON: {e}") from e
    return parse_scenario(data)
