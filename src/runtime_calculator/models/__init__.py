"""
Runtime Calculator Models
=========================

Core data models for the derivation engine.
"""

from .quantity import (
    QuantityKind,
    QuantitySpec,
    QuantityTriple,
    NumericDomain,
    PrecisionRule,
    QUANTITY_SPECS,
    round_half_up,
    format_number,
    parse_number,
)
from .field import (
    Field,
    FieldGroup,
    Derivation,
    make_pack_group,
    make_load_group,
    make_time_group,
)
from .solve_path import SolvePath, SolvePathSelector, Unset, Locked

__all__ = [
    "QuantityKind",
    "QuantitySpec",
    "QuantityTriple",
    "NumericDomain",
    "PrecisionRule",
    "QUANTITY_SPECS",
    "round_half_up",
    "format_number",
    "parse_number",
    "Field",
    "FieldGroup",
    "Derivation",
    "make_pack_group",
    "make_load_group",
    "make_time_group",
    "SolvePath",
    "SolvePathSelector",
    "Unset",
    "Locked",
]
