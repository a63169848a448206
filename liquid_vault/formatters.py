"""Formatting and conversion utilities."""

from decimal import Decimal, InvalidOperation

from liquid_vault.constants import ONE_DAY, PERMILLE, UNIT_DECIMAL


def as_int(value, *, default: int = 0) -> int:
    """Convert value to int, handling various types."""
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip().replace("_", "")
        if v.startswith("0x"):
            return int(v, 16)
        return int(v)
    return int(value)


def normalize_hex_str(value) -> str:
    """Normalize hex string to 0x-prefixed format."""
    if isinstance(value, (bytes, bytearray)):
        return f"0x{value.hex()}"
    if hasattr(value, "hex") and not isinstance(value, str):
        hex_str = value.hex()
        return hex_str if hex_str.startswith("0x") else f"0x{hex_str}"
    s = str(value).strip()
    if s.lower().startswith("0x"):
        return f"0x{s[2:]}"
    return f"0x{s}"


def parse_units(value) -> int:
    """
    Parse a token quantity into base units.

    Integers (and integer strings) are taken as base units already; strings with a
    decimal point or a unit suffix ("1.5", "2 ETH", "300000 tokens") are whole units.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    s = str(value).strip().replace("_", "")
    for suffix in (" ETH", " tokens", " LP"):
        if s.endswith(suffix):
            s = s[: -len(suffix)].strip()
            break
    else:
        if s.lower().startswith("0x") or ("." not in s and "e" not in s.lower()):
            return as_int(s)
    try:
        amount = Decimal(s) * UNIT_DECIMAL
    except InvalidOperation as e:
        raise ValueError(f"not a quantity: {value!r}") from e
    return int(amount)


def format_units(value: int, *, decimals: int = 6, symbol: str = "") -> str:
    """Format base units as whole units (18 decimals)."""
    whole = Decimal(value) / UNIT_DECIMAL
    s = f"{whole:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{s} {symbol}" if symbol else s


def format_eth(value_wei: int, *, decimals: int = 9, approx: bool = False) -> str:
    """Format wei value as ETH."""
    prefix = "~" if approx else ""
    return f"{prefix}{format_units(value_wei, decimals=decimals, symbol='ETH')}"


def format_permille(permille: int) -> str:
    """Format parts-per-thousand as percentage."""
    return f"{(Decimal(permille) / Decimal(PERMILLE // 100)):.1f}%"


def format_duration(seconds: int) -> str:
    """Human-readable duration, e.g. '45d 12h' or '1d'."""
    if seconds <= 0:
        return "unlocked"
    days, rest = divmod(seconds, ONE_DAY)
    hours, rest = divmod(rest, 3600)
    minutes = rest // 60
    parts = []
    if days:
        parts.append(f"{days}d")
    if hours:
        parts.append(f"{hours}h")
    if minutes and not days:
        parts.append(f"{minutes}m")
    return " ".join(parts) or f"{seconds}s"
