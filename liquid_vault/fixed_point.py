"""Signed 128-bit decimal fixed-point numbers used by the vault curves."""

import decimal
from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from liquid_vault.errors import FixedPointOverflow

INT128_MIN = -(2**127)
INT128_MAX = 2**127 - 1

# IEEE-754 binary128 layout
_QUAD_EXPONENT_BIAS = 16383
_QUAD_FRACTION_BITS = 112
_QUAD_EXPONENT_MASK = 0x7FFF


def _div_trunc(numer: int, denom: int) -> int:
    """Integer division rounding toward zero."""
    if denom == 0:
        raise ZeroDivisionError("division by zero fixed-point value")
    q = abs(numer) // abs(denom)
    return q if (numer >= 0) == (denom > 0) else -q


def _checked(raw: int) -> int:
    if raw < INT128_MIN or raw > INT128_MAX:
        raise FixedPointOverflow(f"fixed-point value out of signed 128-bit range: raw={raw}")
    return raw


@dataclass(frozen=True, order=True)
class FixedPoint:
    """
    Fixed-point number stored as a signed 128-bit integer scaled by 10**18.

    Encoding: ``value == raw / 10**18``. Multiplication and division truncate toward
    zero. Any result that does not fit in signed 128 bits raises FixedPointOverflow.
    """

    raw: int

    SCALE: ClassVar[int] = 10**18

    def __post_init__(self) -> None:
        _checked(self.raw)

    # Constructors

    @classmethod
    def from_int(cls, value: int) -> "FixedPoint":
        return cls(_checked(int(value) * cls.SCALE))

    @classmethod
    def from_ratio(cls, numer: int, denom: int) -> "FixedPoint":
        """Exact ratio of two integers, truncated to 18 decimals."""
        return cls(_checked(_div_trunc(int(numer) * cls.SCALE, int(denom))))

    @classmethod
    def from_decimal(cls, value: "Decimal | str | int") -> "FixedPoint":
        with decimal.localcontext() as ctx:
            ctx.prec = 80
            scaled = (Decimal(value) * cls.SCALE).to_integral_value(rounding=decimal.ROUND_DOWN)
        return cls(_checked(int(scaled)))

    @classmethod
    def from_quad_bits(cls, bits: "str | int") -> "FixedPoint":
        """
        Decode an IEEE-754 binary128 bit pattern (e.g. ``"0x3fde33dc..."``).

        The original calibration constants were stored in this encoding; decoding them
        lets the old values be checked against the decimal defaults. Truncates toward zero.
        """
        value = int(bits, 16) if isinstance(bits, str) else int(bits)
        if value < 0 or value >= 1 << 128:
            raise ValueError(f"not a 128-bit pattern: {bits!r}")
        negative = bool(value >> 127)
        exponent = (value >> _QUAD_FRACTION_BITS) & _QUAD_EXPONENT_MASK
        fraction = value & ((1 << _QUAD_FRACTION_BITS) - 1)
        if exponent == _QUAD_EXPONENT_MASK:
            raise ValueError(f"quad value is infinite or NaN: {bits!r}")
        if exponent == 0:
            mantissa = fraction
            shift = 1 - _QUAD_EXPONENT_BIAS - _QUAD_FRACTION_BITS
        else:
            mantissa = fraction | (1 << _QUAD_FRACTION_BITS)
            shift = exponent - _QUAD_EXPONENT_BIAS - _QUAD_FRACTION_BITS
        if shift >= 0:
            raw = (mantissa << shift) * cls.SCALE
        else:
            raw = (mantissa * cls.SCALE) >> -shift
        return cls(_checked(-raw if negative else raw))

    # Conversions

    def to_decimal(self) -> Decimal:
        with decimal.localcontext() as ctx:
            ctx.prec = 80
            return Decimal(self.raw) / Decimal(self.SCALE)

    def floor(self) -> int:
        return self.raw // self.SCALE

    def exp(self) -> "FixedPoint":
        """e**self, computed through Decimal at 60 significant digits."""
        with decimal.localcontext() as ctx:
            ctx.prec = 60
            try:
                result = self.to_decimal().exp()
            except decimal.Overflow as ex:
                raise FixedPointOverflow(f"exp overflow for {self}") from ex
        return FixedPoint.from_decimal(result)

    # Arithmetic

    def _coerce(self, other: "FixedPoint | int") -> "FixedPoint":
        if isinstance(other, FixedPoint):
            return other
        if isinstance(other, int) and not isinstance(other, bool):
            return FixedPoint.from_int(other)
        raise TypeError(f"unsupported operand: {other!r}")

    def __add__(self, other: "FixedPoint | int") -> "FixedPoint":
        return FixedPoint(_checked(self.raw + self._coerce(other).raw))

    __radd__ = __add__

    def __sub__(self, other: "FixedPoint | int") -> "FixedPoint":
        return FixedPoint(_checked(self.raw - self._coerce(other).raw))

    def __rsub__(self, other: "FixedPoint | int") -> "FixedPoint":
        return self._coerce(other) - self

    def __mul__(self, other: "FixedPoint | int") -> "FixedPoint":
        if isinstance(other, int) and not isinstance(other, bool):
            return FixedPoint(_checked(self.raw * other))
        return FixedPoint(_checked(_div_trunc(self.raw * self._coerce(other).raw, self.SCALE)))

    __rmul__ = __mul__

    def __truediv__(self, other: "FixedPoint | int") -> "FixedPoint":
        if isinstance(other, int) and not isinstance(other, bool):
            return FixedPoint(_checked(_div_trunc(self.raw, other)))
        return FixedPoint(_checked(_div_trunc(self.raw * self.SCALE, self._coerce(other).raw)))

    def __neg__(self) -> "FixedPoint":
        return FixedPoint(_checked(-self.raw))

    def __abs__(self) -> "FixedPoint":
        return FixedPoint(_checked(abs(self.raw)))

    def __bool__(self) -> bool:
        return self.raw != 0

    def __str__(self) -> str:
        s = f"{self.to_decimal():f}"
        if "." in s:
            s = s.rstrip("0").rstrip(".")
        return s


ZERO = FixedPoint(0)
ONE = FixedPoint(FixedPoint.SCALE)
