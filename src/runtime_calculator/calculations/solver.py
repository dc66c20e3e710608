"""
Candidate Solver
================

Combines two known quantity triples through a fixed relation and reports the
third quantity's nominal value plus the true achievable min and max.

The min/max come from the full cross product of every present value of the
first triple with every present value of the second (the candidate set).
Extreme-with-extreme pairing is not assumed: relations that divide by one
input and multiply by the other are enumerated like any other.

Relations (k = nominal cell voltage, 3.6 V):
    RUN_TIME       T = E / L x 60            1 dp, min
    ENERGY         E = L x T / 60            2 dp, Wh
    LOAD           L = E / T x 60            1 dp, W
    PACK_CAPACITY  C = E x 1000 / (N x k)    ceiling, mAh
    PACK_COUNT     N = E x 1000 / (k x C)    ceiling, cells
    PACK_ENERGY    E = N x k x C / 1000      2 dp, Wh

Pack sizing rounds up because an under-sized pack cannot deliver the
required energy. The unrounded value is kept for display as a footnote.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np

from ..config import (
    DEFAULT_NOMINAL_VOLTAGE,
    MAH_PER_AH,
    MINUTES_PER_HOUR,
    TIME_DECIMALS,
    LOAD_DECIMALS,
    ENERGY_DECIMALS,
    FOOTNOTE_DECIMALS,
    CEILING_GUARD_DIGITS,
)
from ..debugger import debug_step
from ..models.quantity import QuantityTriple, round_half_up


class Relation(Enum):
    """Relations the solver can evaluate."""
    RUN_TIME = "run_time"
    ENERGY = "energy"
    LOAD = "load"
    PACK_CAPACITY = "pack_capacity"
    PACK_COUNT = "pack_count"
    PACK_ENERGY = "pack_energy"


class Rounding(Enum):
    """Result rounding policy."""
    HALF_UP = "half_up"
    CEILING = "ceiling"


@dataclass(frozen=True)
class RelationSpec:
    """
    Definition of one relation.

    Attributes:
    ----------
    formula : str
        Human-readable formula, used in traces

    operands : tuple of str
        Names of the two inputs (a, b)

    result_name : str
        Name of the produced quantity

    unit : str
        Unit of the produced quantity

    function : callable
        Vectorised evaluation f(a, b, k) over numpy arrays

    rounding : Rounding
        Rounding policy of the result

    decimals : int
        Decimal places for HALF_UP rounding

    divides_by_b : bool
        True when b is a denominator; candidates with b <= 0 are discarded
    """
    formula: str
    operands: tuple
    result_name: str
    unit: str
    function: Callable
    rounding: Rounding = Rounding.HALF_UP
    decimals: int = 0
    divides_by_b: bool = False

    def round(self, value: float) -> float:
        """Round one value under this relation's policy."""
        if self.rounding == Rounding.CEILING:
            # Absorb float noise: 7200.000000000001 mAh stays 7200
            return float(math.ceil(round(value, CEILING_GUARD_DIGITS)))
        return round_half_up(value, self.decimals)


RELATIONS = {
    Relation.RUN_TIME: RelationSpec(
        formula="T = E / L × 60",
        operands=("E", "L"),
        result_name="T",
        unit="min",
        function=lambda e, load, k: e / load * MINUTES_PER_HOUR,
        decimals=TIME_DECIMALS,
        divides_by_b=True,
    ),
    Relation.ENERGY: RelationSpec(
        formula="E = L × T / 60",
        operands=("L", "T"),
        result_name="E",
        unit="Wh",
        function=lambda load, t, k: load * t / MINUTES_PER_HOUR,
        decimals=ENERGY_DECIMALS,
    ),
    Relation.LOAD: RelationSpec(
        formula="L = E / T × 60",
        operands=("E", "T"),
        result_name="L",
        unit="W",
        function=lambda e, t, k: e / t * MINUTES_PER_HOUR,
        decimals=LOAD_DECIMALS,
        divides_by_b=True,
    ),
    Relation.PACK_CAPACITY: RelationSpec(
        formula="C = E × 1000 / (N × k)",
        operands=("E", "N"),
        result_name="C",
        unit="mAh",
        function=lambda e, n, k: e * MAH_PER_AH / (n * k),
        rounding=Rounding.CEILING,
        divides_by_b=True,
    ),
    Relation.PACK_COUNT: RelationSpec(
        formula="N = ceil(E × 1000 / (k × C))",
        operands=("E", "C"),
        result_name="N",
        unit="cells",
        function=lambda e, c, k: e * MAH_PER_AH / (k * c),
        rounding=Rounding.CEILING,
        divides_by_b=True,
    ),
    Relation.PACK_ENERGY: RelationSpec(
        formula="E = N × k × C / 1000",
        operands=("N", "C"),
        result_name="E",
        unit="Wh",
        function=lambda n, c, k: n * k * c / MAH_PER_AH,
        decimals=ENERGY_DECIMALS,
    ),
}


@dataclass(frozen=True)
class SolveResult:
    """
    Output of solve().

    Attributes:
    ----------
    nominal : float | None
        Rounded nominal result; None when the relation could not be evaluated

    min, max : float | None
        Rounded extremes, present only when they differ from the nominal

    exact_nominal, exact_min, exact_max : float | None
        Unrounded values matching the reported members

    footnote : float | None
        Unrounded nominal at display precision, for ceiling-rounded relations
    """
    relation: Optional[Relation] = None
    nominal: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    exact_nominal: Optional[float] = None
    exact_min: Optional[float] = None
    exact_max: Optional[float] = None
    footnote: Optional[float] = None

    @property
    def is_absent(self) -> bool:
        return self.nominal is None

    def as_triple(self, exact: bool = True) -> QuantityTriple:
        """
        Result as a triple for chaining into another solve.

        Parameters:
        ----------
        exact : bool
            Use the unrounded values (default) rather than the displayed ones
        """
        if exact:
            return QuantityTriple(self.exact_nominal, self.exact_min, self.exact_max)
        return QuantityTriple(self.nominal, self.min, self.max)


def candidate_set(
    relation: Relation,
    known_a: QuantityTriple,
    known_b: QuantityTriple,
    cell_voltage: float = DEFAULT_NOMINAL_VOLTAGE
) -> np.ndarray:
    """
    Evaluate a relation over the cross product of two triples.

    Parameters:
    ----------
    relation : Relation
        Relation to evaluate

    known_a, known_b : QuantityTriple
        Inputs, in the operand order of the relation

    cell_voltage : float
        Nominal voltage per cell (V)

    Returns:
    -------
    np.ndarray
        2-D grid of candidates, shape (len(a values), len(b values)).
        Row 0 / column 0 pair the nominals. Unevaluable pairs are NaN.
    """
    spec = RELATIONS[relation]
    values_a = np.asarray(known_a.values(), dtype=float)
    values_b = np.asarray(known_b.values(), dtype=float)
    if values_a.size == 0 or values_b.size == 0:
        return np.empty((values_a.size, values_b.size))

    grid_a, grid_b = np.meshgrid(values_a, values_b, indexing="ij")
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        grid = np.asarray(spec.function(grid_a, grid_b, cell_voltage), dtype=float)

    invalid = ~np.isfinite(grid)
    if spec.divides_by_b:
        invalid |= grid_b <= 0
    grid[invalid] = np.nan
    return grid


def solve(
    relation: Relation,
    known_a: QuantityTriple,
    known_b: QuantityTriple,
    cell_voltage: float = DEFAULT_NOMINAL_VOLTAGE
) -> SolveResult:
    """
    Solve for the third quantity of a relation.

    The nominal result pairs the two nominals and is always reported. Min
    and max are the extremes of the candidate set and are reported only
    when, after rounding, they are strictly below/above the nominal.

    Parameters:
    ----------
    relation : Relation
        Relation to evaluate

    known_a, known_b : QuantityTriple
        Inputs, in the operand order of the relation

    cell_voltage : float
        Nominal voltage per cell (V)

    Returns:
    -------
    SolveResult
        Fully absent when either nominal is missing or the nominal pair
        cannot be evaluated
    """
    spec = RELATIONS[relation]
    name_a, name_b = spec.operands

    if known_a.is_absent or known_b.is_absent:
        return SolveResult(relation=relation)

    grid = candidate_set(relation, known_a, known_b, cell_voltage)
    exact_nominal = float(grid[0, 0])
    if math.isnan(exact_nominal):
        return SolveResult(relation=relation)

    candidates = grid[~np.isnan(grid)]
    exact_min = float(candidates.min())
    exact_max = float(candidates.max())

    nominal = spec.round(exact_nominal)
    low = spec.round(exact_min)
    high = spec.round(exact_max)

    footnote = None
    if spec.rounding == Rounding.CEILING:
        footnote = round_half_up(exact_nominal, FOOTNOTE_DECIMALS)

    result = SolveResult(
        relation=relation,
        nominal=nominal,
        min=low if low < nominal else None,
        max=high if high > nominal else None,
        exact_nominal=exact_nominal,
        exact_min=exact_min if low < nominal else None,
        exact_max=exact_max if high > nominal else None,
        footnote=footnote,
    )

    discarded = grid.size - candidates.size
    debug_step(
        category="Solve",
        description=f"Solve {spec.result_name} ({relation.name})",
        formula=spec.formula,
        variables={
            name_a: known_a.nominal,
            f"{name_a}min": known_a.min,
            f"{name_a}max": known_a.max,
            name_b: known_b.nominal,
            f"{name_b}min": known_b.min,
            f"{name_b}max": known_b.max,
            "k": cell_voltage,
        },
        result=(result.nominal, result.min, result.max),
        result_name=spec.result_name,
        result_unit=spec.unit,
        comment=(
            f"{candidates.size} candidates"
            + (f", {discarded} discarded" if discarded else "")
            + (f", exact {exact_nominal:.6g}" if footnote is not None else "")
        ),
    )
    return result
