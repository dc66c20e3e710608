"""
Quantity Model
==============

Typed representation of the physical quantities handled by the calculator.

A quantity kind (cells, capacity, load, time, energy) declares its numeric
domain, its absolute range and its precision rule. A QuantityTriple carries
the nominal/min/max values of one quantity, each independently optional.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from ..config import (
    CELLS_MIN,
    CELLS_MAX,
    CAPACITY_MIN_MAH,
    CAPACITY_MAX_MAH,
    CAPACITY_BAND_LOW_MAH,
    CAPACITY_BAND_HIGH_MAH,
    LOAD_MIN_W,
    LOAD_MAX_W,
    LOAD_WHOLE_NUMBER_THRESHOLD_W,
    TIME_MIN_MIN,
    TIME_MAX_MIN,
)


_ONE_DECIMAL_RE = re.compile(r"^\d+(\.\d)?$")
_WHOLE_RE = re.compile(r"^\d+$")


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round to the given number of decimals, halves rounding up.

    Matches the rounding users see on a pocket calculator: 2.25 -> 2.3,
    2.35 -> 2.4 (Python's round() would give banker's results).
    """
    scale = 10 ** decimals
    return math.floor(value * scale + 0.5) / scale


def parse_number(raw_text: str) -> Optional[float]:
    """
    Parse field text into a finite number.

    Returns None for empty text and for anything that is not a finite
    decimal number ("abc", "nan", "inf").
    """
    text = raw_text.strip()
    if not text or "_" in text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def format_number(value: float, decimals: int) -> str:
    """Format a value with at most `decimals` places and no trailing zeros."""
    rounded = round_half_up(value, decimals)
    if float(rounded).is_integer():
        return str(int(rounded))
    return f"{rounded:.{decimals}f}".rstrip("0").rstrip(".")


class NumericDomain(Enum):
    """Numeric domain of a quantity."""
    INTEGER = "integer"
    REAL = "real"


class PrecisionRule(Enum):
    """
    Maximum decimal places a value may carry.

    The text rules apply to the raw decimal text as typed, not to the
    parsed number, so "7.0" and "7" are tested separately.
    """
    WHOLE = "whole"                # whole numbers only
    ONE_DECIMAL = "one_decimal"    # at most one decimal place
    LOAD_STEPPED = "load_stepped"  # <= 20: one decimal place; > 20: whole

    def matches(self, raw_text: str, value: float) -> bool:
        """Return True when the raw text satisfies this precision rule."""
        text = raw_text.strip()
        if self == PrecisionRule.WHOLE:
            return float(value).is_integer()
        if self == PrecisionRule.ONE_DECIMAL:
            return bool(_ONE_DECIMAL_RE.match(text))
        if self == PrecisionRule.LOAD_STEPPED:
            if value <= LOAD_WHOLE_NUMBER_THRESHOLD_W:
                return bool(_ONE_DECIMAL_RE.match(text))
            return bool(_WHOLE_RE.match(text))
        return True

    def decimals_for(self, value: float) -> int:
        """Decimal places allowed for a value under this rule."""
        if self == PrecisionRule.WHOLE:
            return 0
        if self == PrecisionRule.LOAD_STEPPED:
            return 0 if value > LOAD_WHOLE_NUMBER_THRESHOLD_W else 1
        return 1

    def round(self, value: float) -> float:
        """Round a computed value to this rule."""
        return round_half_up(value, self.decimals_for(value))

    def format(self, value: float) -> str:
        """Format a computed value as field text under this rule."""
        return format_number(value, self.decimals_for(value))


class QuantityKind(Enum):
    """Physical quantities known to the calculator."""
    CELLS = "cells"
    CAPACITY = "capacity"
    LOAD = "load"
    TIME = "time"

    @property
    def unit(self) -> str:
        """Display unit."""
        units = {
            QuantityKind.CELLS: "",
            QuantityKind.CAPACITY: "mAh",
            QuantityKind.LOAD: "W",
            QuantityKind.TIME: "Min",
        }
        return units[self]


@dataclass(frozen=True)
class QuantitySpec:
    """
    Validation bounds for one member of a quantity triple.

    Attributes:
    ----------
    kind : QuantityKind
        Physical quantity

    label : str
        Name used in error messages ("Cells", "Nominal", "Min", "Max")

    domain : NumericDomain
        Integer or real

    low, high : float
        Absolute range

    low_inclusive, high_inclusive : bool
        Whether the range ends are allowed values

    precision : PrecisionRule
        Decimal places rule
    """
    kind: QuantityKind
    label: str
    domain: NumericDomain
    low: float
    high: float
    precision: PrecisionRule
    low_inclusive: bool = True
    high_inclusive: bool = True

    def in_range(self, value: float) -> bool:
        """Check the absolute range."""
        above = value >= self.low if self.low_inclusive else value > self.low
        below = value <= self.high if self.high_inclusive else value < self.high
        return above and below


# Bounds for every field key. Min/Max members of a triple share the kind of
# their nominal but may carry a wider absolute band.
QUANTITY_SPECS = {
    "N": QuantitySpec(QuantityKind.CELLS, "Cells", NumericDomain.INTEGER,
                      CELLS_MIN, CELLS_MAX, PrecisionRule.WHOLE),
    "C": QuantitySpec(QuantityKind.CAPACITY, "Nominal", NumericDomain.INTEGER,
                      CAPACITY_MIN_MAH, CAPACITY_MAX_MAH, PrecisionRule.WHOLE),
    "Cmin": QuantitySpec(QuantityKind.CAPACITY, "Min", NumericDomain.INTEGER,
                         CAPACITY_BAND_LOW_MAH, CAPACITY_BAND_HIGH_MAH, PrecisionRule.WHOLE),
    "Cmax": QuantitySpec(QuantityKind.CAPACITY, "Max", NumericDomain.INTEGER,
                         CAPACITY_BAND_LOW_MAH, CAPACITY_BAND_HIGH_MAH, PrecisionRule.WHOLE),
    "L": QuantitySpec(QuantityKind.LOAD, "Nominal", NumericDomain.REAL,
                      0.0, LOAD_MAX_W, PrecisionRule.LOAD_STEPPED, low_inclusive=False),
    "Lmin": QuantitySpec(QuantityKind.LOAD, "Min", NumericDomain.REAL,
                         LOAD_MIN_W, LOAD_MAX_W, PrecisionRule.LOAD_STEPPED),
    "Lmax": QuantitySpec(QuantityKind.LOAD, "Max", NumericDomain.REAL,
                         LOAD_MIN_W, LOAD_MAX_W, PrecisionRule.LOAD_STEPPED),
    "T": QuantitySpec(QuantityKind.TIME, "Nominal", NumericDomain.REAL,
                      TIME_MIN_MIN, TIME_MAX_MIN, PrecisionRule.ONE_DECIMAL),
    "Tmin": QuantitySpec(QuantityKind.TIME, "Min", NumericDomain.REAL,
                         TIME_MIN_MIN, TIME_MAX_MIN, PrecisionRule.ONE_DECIMAL),
    "Tmax": QuantitySpec(QuantityKind.TIME, "Max", NumericDomain.REAL,
                         TIME_MIN_MIN, TIME_MAX_MIN, PrecisionRule.ONE_DECIMAL),
}


@dataclass(frozen=True)
class QuantityTriple:
    """
    Nominal/min/max values of one quantity.

    Any member may be absent (None). When present, min <= nominal <= max.

    Attributes:
    ----------
    nominal : float | None
        Expected value

    min : float | None
        Lowest expected value

    max : float | None
        Highest expected value
    """
    nominal: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    @classmethod
    def of(cls, nominal: Optional[float]) -> "QuantityTriple":
        """Triple with only a nominal value."""
        return cls(nominal=nominal)

    @property
    def is_absent(self) -> bool:
        """True when no nominal value is available."""
        return self.nominal is None

    def values(self) -> Tuple[float, ...]:
        """Present values, nominal first."""
        return tuple(v for v in (self.nominal, self.min, self.max) if v is not None)

    def is_consistent(self) -> bool:
        """Check min <= nominal <= max for the members that are present."""
        if self.nominal is None:
            return self.min is None or self.max is None or self.min <= self.max
        if self.min is not None and self.min > self.nominal:
            return False
        if self.max is not None and self.max < self.nominal:
            return False
        return True
