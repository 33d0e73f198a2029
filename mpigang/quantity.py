"""Resource quantities such as ``500m``, ``2Gi`` or ``1e3``."""

from __future__ import annotations

import enum
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from functools import total_ordering

_NANO = 10**9

_BINARY_SUFFIXES = {"Ki": 1, "Mi": 2, "Gi": 3, "Ti": 4, "Pi": 5, "Ei": 6}
_DECIMAL_SUFFIXES = {
    "n": -9,
    "u": -6,
    "m": -3,
    "": 0,
    "k": 3,
    "M": 6,
    "G": 9,
    "T": 12,
    "P": 15,
    "E": 18,
}
_BINARY_BY_POWER = {power: suffix for suffix, power in _BINARY_SUFFIXES.items()}
_DECIMAL_BY_EXPONENT = {exp: suffix for suffix, exp in _DECIMAL_SUFFIXES.items()}

_NUMBER = re.compile(r"^([+-]?)(\d+(?:\.\d*)?|\.\d+)(.*)$")
_EXPONENT = re.compile(r"^[eE]([+-]?\d+)$")


class QuantityFormat(enum.Enum):
    """How a quantity is written out."""

    DECIMAL_SI = "DecimalSI"
    BINARY_SI = "BinarySI"
    DECIMAL_EXPONENT = "DecimalExponent"


def _round_away_from_zero(value: Fraction) -> int:
    scaled = value * _NANO
    magnitude = math.ceil(abs(scaled))
    return -magnitude if scaled < 0 else magnitude


@total_ordering
@dataclass(frozen=True, eq=False)
class Quantity:
    """A fixed-point amount held in billionths, with the format it prints in.

    Two quantities compare equal when their values are equal, whatever
    their formats.
    """

    nanos: int = 0
    format: QuantityFormat = QuantityFormat.DECIMAL_SI

    @property
    def value(self) -> Fraction:
        """The exact numeric value."""
        return Fraction(self.nanos, _NANO)

    def __add__(self, other: Quantity) -> Quantity:
        if not isinstance(other, Quantity):
            return NotImplemented
        return Quantity(self.nanos + other.nanos, self.format)

    def __mul__(self, factor: int) -> Quantity:
        if isinstance(factor, bool) or not isinstance(factor, int):
            return NotImplemented
        return Quantity(self.nanos * factor, self.format)

    __rmul__ = __mul__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.nanos == other.nanos

    def __lt__(self, other: Quantity) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.nanos < other.nanos

    def __hash__(self) -> int:
        return hash(self.nanos)

    def __repr__(self) -> str:
        return f"Quantity({str(self)!r})"

    def __str__(self) -> str:
        if self.format is QuantityFormat.BINARY_SI:
            binary = self._binary_string()
            if binary is not None:
                return binary
            return self._decimal_string(exponent_suffix=False)
        return self._decimal_string(
            exponent_suffix=self.format is QuantityFormat.DECIMAL_EXPONENT
        )

    def _binary_string(self) -> str | None:
        whole, fraction = divmod(self.nanos, _NANO)
        if fraction or -1024 < whole < 1024:
            return None
        power = 0
        while power < 6 and whole % 1024 == 0:
            whole //= 1024
            power += 1
        return f"{whole}{_BINARY_BY_POWER.get(power, '')}"

    def _decimal_string(self, exponent_suffix: bool) -> str:
        if self.nanos == 0:
            return "0"
        exponent = -9
        while exponent < 18 and self.nanos % 10 ** (exponent + 3 + 9) == 0:
            exponent += 3
        mantissa = self.nanos // 10 ** (exponent + 9)
        if exponent_suffix:
            suffix = f"e{exponent}" if exponent else ""
        else:
            suffix = _DECIMAL_BY_EXPONENT[exponent]
        return f"{mantissa}{suffix}"


def parse_quantity(text: str) -> Quantity:
    """Parse a quantity string; raise ValueError if it is malformed."""
    match = _NUMBER.match(text.strip()) if isinstance(text, str) else None
    if match is None:
        raise ValueError(f"quantities must match the regular expression: {text!r}")
    sign, digits, suffix = match.groups()
    try:
        number = Fraction(Decimal(digits))
    except InvalidOperation as exc:
        raise ValueError(f"invalid quantity number: {text!r}") from exc
    if sign == "-":
        number = -number

    if suffix in _BINARY_SUFFIXES:
        value = number * 1024 ** _BINARY_SUFFIXES[suffix]
        fmt = QuantityFormat.BINARY_SI
    elif suffix in _DECIMAL_SUFFIXES:
        value = number * Fraction(10) ** _DECIMAL_SUFFIXES[suffix]
        fmt = QuantityFormat.DECIMAL_SI
    else:
        exp_match = _EXPONENT.match(suffix)
        if exp_match is None:
            raise ValueError(f"unable to parse quantity's suffix: {text!r}")
        value = number * Fraction(10) ** int(exp_match.group(1))
        fmt = QuantityFormat.DECIMAL_EXPONENT
    return Quantity(_round_away_from_zero(value), fmt)