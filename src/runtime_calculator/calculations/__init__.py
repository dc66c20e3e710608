"""
Runtime Calculator Calculations Module
======================================

Pure functions of the derivation engine: validation, ownership resolution,
candidate solving and load aggregation.
"""

from .validation import (
    ErrorKind,
    ValidationOutcome,
    check_field,
    check_cross_field,
    capacity_bounds,
    validate_outcomes,
    validate_group,
)

from .ownership import resolve

from .solver import (
    Relation,
    RelationSpec,
    Rounding,
    RELATIONS,
    SolveResult,
    candidate_set,
    solve,
)

from .energy import load_totals

__all__ = [
    # Validation
    "ErrorKind",
    "ValidationOutcome",
    "check_field",
    "check_cross_field",
    "capacity_bounds",
    "validate_outcomes",
    "validate_group",
    # Ownership
    "resolve",
    # Solver
    "Relation",
    "RelationSpec",
    "Rounding",
    "RELATIONS",
    "SolveResult",
    "candidate_set",
    "solve",
    # Aggregation
    "load_totals",
]
