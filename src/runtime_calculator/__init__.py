"""
Battery Run Time Calculator Module
==================================

Range-aware derivation engine for battery run time, load, energy and pack
sizing. Every input may carry a nominal value plus an optional min and max;
results report the true achievable min/max across all input combinations.

Features:
---------
- Validation of cell count, capacity, load and run time entries, including
  anchor-relative bounds (Cmin/Cmax around C, Lmin <= L <= Lmax, ...)
- Ownership tracking: user-typed values are never overwritten, the rest
  are derived from them
- Candidate solver over the full cross product of two input triples
- Pack sizing rounded up, with the exact value kept as a footnote
- Three calculator pages: run time, required energy, define by time

Usage:
------
    from src.runtime_calculator import RunTimeSession

    session = RunTimeSession()          # 7 cells, 2000 mAh by default
    session.on_field_blur("load0.L", "10")
    session.on_field_blur("load0.Lmin", "8")
    session.on_field_blur("load0.Lmax", "12")

    result = session.run_time
    print(result.nominal, result.min, result.max)   # 302.4 252.0 378.0
"""

from .config import RuntimeCalculatorConfig, DEFAULT_NOMINAL_VOLTAGE
from .models.quantity import QuantityKind, QuantityTriple, PrecisionRule
from .models.field import Field, FieldGroup, Derivation
from .models.solve_path import SolvePath, SolvePathSelector
from .calculations.validation import ErrorKind, ValidationOutcome, validate_group
from .calculations.ownership import resolve
from .calculations.solver import Relation, SolveResult, solve
from .calculations.energy import load_totals
from .sessions import (
    CalculatorSession,
    BlurResult,
    GroupSnapshot,
    RunTimeSession,
    RequiredEnergySession,
    DefineByTimeSession,
)
from .debugger import CalculationDebugger, get_debugger, set_debugger, debug_step
from .debug_trace import trace_session
from .plotting import RangePlotter

__all__ = [
    # Sessions
    "CalculatorSession",
    "BlurResult",
    "GroupSnapshot",
    "RunTimeSession",
    "RequiredEnergySession",
    "DefineByTimeSession",
    # Models
    "QuantityKind",
    "QuantityTriple",
    "PrecisionRule",
    "Field",
    "FieldGroup",
    "Derivation",
    "SolvePath",
    "SolvePathSelector",
    # Engine
    "ErrorKind",
    "ValidationOutcome",
    "validate_group",
    "resolve",
    "Relation",
    "SolveResult",
    "solve",
    "load_totals",
    # Config
    "RuntimeCalculatorConfig",
    "DEFAULT_NOMINAL_VOLTAGE",
    # Debugger
    "CalculationDebugger",
    "get_debugger",
    "set_debugger",
    "debug_step",
    "trace_session",
    # Plotting
    "RangePlotter",
]
