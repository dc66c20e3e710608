"""
Validation Rules
================

Per-field checks for cell count, capacity, load and run time entries, plus
the anchor-relative bounds between members of a group:

- Cmin in [ceil(C x 0.5), C], Cmax in [C, floor(C x 1.15)]
- Lmin <= L (else Lmin <= Lmax), Lmax >= L (else Lmax >= Lmin)
- Tmin <= T, Tmax >= T

A group is validated in two layers. The first layer checks every member on
its own (number, range, precision). The second layer applies the
anchor-relative bounds, using only anchors that passed the first layer.
No member is checked twice in one pass.

Failures are returned as values, never raised.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional

from ..config import (
    CAPACITY_MIN_FACTOR,
    CAPACITY_MAX_FACTOR,
    CEILING_GUARD_DIGITS,
)
from ..models.field import FieldGroup
from ..models.quantity import (
    QUANTITY_SPECS,
    NumericDomain,
    PrecisionRule,
    QuantityKind,
    QuantitySpec,
    format_number,
    parse_number,
)


class ErrorKind(Enum):
    """Validation failure categories."""
    NOT_A_NUMBER = "not_a_number"
    OUT_OF_RANGE = "out_of_range"
    WRONG_PRECISION = "wrong_precision"
    CROSS_FIELD_VIOLATION = "cross_field_violation"


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of validating one field.

    Attributes:
    ----------
    value : float | None
        Parsed value, None when the text is empty or invalid

    error_kind : ErrorKind | None
        Failure category, None when valid

    message : str
        User-facing message, empty when valid
    """
    value: Optional[float] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.error_kind is None

    @property
    def is_absent(self) -> bool:
        """Valid and empty."""
        return self.is_valid and self.value is None

    @classmethod
    def ok(cls, value: Optional[float]) -> "ValidationOutcome":
        return cls(value=value)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "ValidationOutcome":
        return cls(error_kind=kind, message=message)


# Members whose absolute range is replaced by anchor bounds when the anchor
# is valid
_ANCHOR_RANGED = frozenset({"Cmin", "Cmax"})

# Anchors consulted by the second layer, in order of preference
CROSS_FIELD_ANCHORS = {
    "Cmin": ("C",),
    "Cmax": ("C",),
    "Lmin": ("L", "Lmax"),
    "Lmax": ("L", "Lmin"),
    "Tmin": ("T",),
    "Tmax": ("T",),
}


def _num(value: float) -> str:
    return format_number(value, 6)


def _range_message(spec: QuantitySpec, value: float) -> str:
    unit = spec.kind.unit
    if spec.kind == QuantityKind.LOAD:
        if value <= spec.low:
            op = "≥" if spec.low_inclusive else ">"
            return f"{spec.label} must be {op} {_num(spec.low)} {unit}"
        return f"{spec.label} must be ≤ {_num(spec.high)} {unit}"
    return f"{spec.label} must be {_num(spec.low)} – {_num(spec.high)} {unit}".rstrip()


def _precision_message(key: str, spec: QuantitySpec, value: float) -> str:
    if spec.domain == NumericDomain.INTEGER:
        return f"{spec.label} must be a whole number"
    if spec.precision == PrecisionRule.LOAD_STEPPED:
        # The nominal load uses the "Values" wording
        subject = "Values" if key == "L" else spec.label
        if value > 20:
            return (f"{subject} > 20 W must be whole numbers" if key == "L"
                    else f"{subject} > 20 W must be a whole number")
        return f"{subject} ≤ 20 W: max 1 decimal place"
    return "Max 1 decimal place"


def check_field(key: str, raw_text: str) -> ValidationOutcome:
    """
    Check one field on its own: number, range and precision.

    Integer kinds check precision before range. Cmin/Cmax range checks are
    left to check_cross_field.

    Parameters:
    ----------
    key : str
        Field key ("N", "C", "Lmin", ...)

    raw_text : str
        Text as typed

    Returns:
    -------
    ValidationOutcome
        Valid-and-absent for empty text
    """
    spec = QUANTITY_SPECS[key]
    if raw_text.strip() == "":
        return ValidationOutcome.ok(None)

    value = parse_number(raw_text)

    if spec.domain == NumericDomain.INTEGER:
        if value is None:
            return ValidationOutcome.fail(
                ErrorKind.NOT_A_NUMBER, _precision_message(key, spec, 0.0))
        if not spec.precision.matches(raw_text, value):
            return ValidationOutcome.fail(
                ErrorKind.WRONG_PRECISION, _precision_message(key, spec, value))
        if key not in _ANCHOR_RANGED and not spec.in_range(value):
            return ValidationOutcome.fail(
                ErrorKind.OUT_OF_RANGE, _range_message(spec, value))
        return ValidationOutcome.ok(value)

    if value is None:
        return ValidationOutcome.fail(
            ErrorKind.NOT_A_NUMBER, f"{spec.label} must be a number")
    if not spec.in_range(value):
        return ValidationOutcome.fail(
            ErrorKind.OUT_OF_RANGE, _range_message(spec, value))
    if not spec.precision.matches(raw_text, value):
        return ValidationOutcome.fail(
            ErrorKind.WRONG_PRECISION, _precision_message(key, spec, value))
    return ValidationOutcome.ok(value)


def capacity_bounds(nominal: float) -> tuple:
    """
    Allowed (Cmin floor, Cmax ceiling) for a capacity nominal.

    Returns:
    -------
    tuple
        (ceil(C x 0.5), floor(C x 1.15)) in whole mAh
    """
    low = math.ceil(round(nominal * CAPACITY_MIN_FACTOR, CEILING_GUARD_DIGITS))
    high = math.floor(round(nominal * CAPACITY_MAX_FACTOR, CEILING_GUARD_DIGITS))
    return low, high


def check_cross_field(
    key: str,
    value: float,
    anchors: Dict[str, float]
) -> ValidationOutcome:
    """
    Apply anchor-relative bounds to a member that passed check_field.

    Parameters:
    ----------
    key : str
        Field key

    value : float
        Value of the member

    anchors : dict
        Values of the group members that passed check_field

    Returns:
    -------
    ValidationOutcome
    """
    violation = ErrorKind.CROSS_FIELD_VIOLATION

    if key in ("Cmin", "Cmax"):
        spec = QUANTITY_SPECS[key]
        c_val = anchors.get("C")
        if c_val is None:
            if not spec.in_range(value):
                return ValidationOutcome.fail(
                    ErrorKind.OUT_OF_RANGE, _range_message(spec, value))
            return ValidationOutcome.ok(value)
        low, high = capacity_bounds(c_val)
        if key == "Cmin":
            if value < low:
                return ValidationOutcome.fail(violation, f"Min must be ≥ {low} mAh")
            if value > c_val:
                return ValidationOutcome.fail(
                    violation, f"Min must be ≤ {_num(c_val)} mAh (≤ Nominal)")
        else:
            if value > high:
                return ValidationOutcome.fail(violation, f"Max must be ≤ {high} mAh")
            if value < c_val:
                return ValidationOutcome.fail(
                    violation, f"Max must be ≥ {_num(c_val)} mAh (≥ Nominal)")
        return ValidationOutcome.ok(value)

    if key == "Lmin":
        if "L" in anchors:
            if value > anchors["L"]:
                return ValidationOutcome.fail(
                    violation, f"Min must be ≤ {_num(anchors['L'])} W (≤ Nominal)")
        elif "Lmax" in anchors and value > anchors["Lmax"]:
            return ValidationOutcome.fail(
                violation, f"Min must be ≤ {_num(anchors['Lmax'])} W (≤ Max)")
        return ValidationOutcome.ok(value)

    if key == "Lmax":
        if "L" in anchors:
            if value < anchors["L"]:
                return ValidationOutcome.fail(
                    violation, f"Max must be ≥ {_num(anchors['L'])} W (≥ Nominal)")
        elif "Lmin" in anchors and value < anchors["Lmin"]:
            return ValidationOutcome.fail(
                violation, f"Max must be ≥ {_num(anchors['Lmin'])} W (≥ Min)")
        return ValidationOutcome.ok(value)

    if key == "Tmin" and "T" in anchors and value > anchors["T"]:
        return ValidationOutcome.fail(
            violation, f"Min must be ≤ Nominal ({_num(anchors['T'])})")
    if key == "Tmax" and "T" in anchors and value < anchors["T"]:
        return ValidationOutcome.fail(
            violation, f"Max must be ≥ Nominal ({_num(anchors['T'])})")

    return ValidationOutcome.ok(value)


def validate_outcomes(group: FieldGroup) -> Dict[str, ValidationOutcome]:
    """
    Validate every member of a group in one pass.

    Returns:
    -------
    dict
        Outcome per field key
    """
    outcomes = {f.key: check_field(f.key, f.raw_text) for f in group.fields}

    anchors = {
        key: outcome.value
        for key, outcome in outcomes.items()
        if outcome.is_valid and outcome.value is not None
    }

    for key in group.keys:
        outcome = outcomes[key]
        if key not in CROSS_FIELD_ANCHORS or not outcome.is_valid or outcome.value is None:
            continue
        peers = {a: anchors[a] for a in CROSS_FIELD_ANCHORS[key] if a in anchors}
        outcomes[key] = check_cross_field(key, outcome.value, peers)

    return outcomes


def validate_group(group: FieldGroup) -> FieldGroup:
    """
    Validate a group and record each member's error message.

    Returns:
    -------
    FieldGroup
        New group; the group error surface is FieldGroup.error_message
    """
    outcomes = validate_outcomes(group)
    return group.with_fields(
        replace(f, error_message=outcomes[f.key].message) for f in group.fields
    )
