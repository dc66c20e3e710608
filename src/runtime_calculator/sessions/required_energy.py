"""
Required Energy Session
=======================

Page: what pack is needed to run the given loads for the given time?

    E = L_total × T / 60
    N given: C = E × 1000 / (N × k), rounded up
    C given: N = E × 1000 / (k × C), rounded up

The cell count wins when both are valid.
"""

from typing import List

from ..calculations.solver import Relation, SolveResult, solve
from ..models.field import FieldGroup, make_pack_group, make_time_group
from ..models.quantity import QuantityTriple
from .base import CalculatorSession


class RequiredEnergySession(CalculatorSession):
    """
    Required energy and pack sizing calculator.

    Groups: ``time`` (T, Tmin, Tmax entered independently), ``pack``
    (N, C, no defaults) and ``load0`` onwards.
    """

    name = "Required Energy"

    def _fixed_groups(self) -> List[FieldGroup]:
        return [
            make_time_group("time", mutual_seed=False),
            make_pack_group("pack", with_range=False),
        ]

    def recompute(self):
        k = self.config.cell_voltage
        totals = self.load_totals() or QuantityTriple()
        energy = solve(Relation.ENERGY, totals, self.groups["time"].triple(), cell_voltage=k)
        self.results = {"E": energy}
        self.output = energy

        if energy.is_absent:
            return

        pack = self.groups["pack"]
        cells = pack.value("N")
        capacity = pack.value("C")
        if cells is not None:
            sized = solve(Relation.PACK_CAPACITY, energy.as_triple(),
                          QuantityTriple.of(cells), cell_voltage=k)
            self.results["C"] = sized
            self.output = sized
        elif capacity is not None:
            sized = solve(Relation.PACK_COUNT, energy.as_triple(),
                          QuantityTriple.of(capacity), cell_voltage=k)
            self.results["N"] = sized
            self.output = sized

    @property
    def energy(self) -> SolveResult:
        return self.results.get("E", SolveResult())

    @property
    def sizing(self) -> SolveResult:
        """Pack sizing result (capacity or cell count), absent if neither is known."""
        return self.results.get("C") or self.results.get("N") or SolveResult()
