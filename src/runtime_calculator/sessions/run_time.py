"""
Run Time Session
================

Page: how long does a given pack last under the given loads?

    E = N × k × C / 1000     (C triple: Cmin/Cmax seeded from C)
    T = E / L_total × 60
"""

from typing import Dict, List

from ..calculations.solver import Relation, SolveResult, solve
from ..models.field import FieldGroup, make_pack_group
from ..models.quantity import QuantityTriple
from .base import CalculatorSession


class RunTimeSession(CalculatorSession):
    """
    Run time calculator.

    Groups: ``pack`` (N, C, Cmin, Cmax; defaults from the configuration)
    and ``load0`` onwards.
    """

    name = "Run Time"

    def _fixed_groups(self) -> List[FieldGroup]:
        return [make_pack_group("pack", with_range=True)]

    def _defaults(self, group_id: str) -> Dict[str, str]:
        if group_id == "pack":
            return {"N": self.config.default_cells, "C": self.config.default_capacity}
        return {}

    def recompute(self):
        pack = self.groups["pack"]
        cells = QuantityTriple.of(pack.value("N"))

        energy = solve(Relation.PACK_ENERGY, cells, pack.triple(),
                       cell_voltage=self.config.cell_voltage)

        totals = self.load_totals() or QuantityTriple()
        run_time = solve(Relation.RUN_TIME, energy.as_triple(), totals,
                         cell_voltage=self.config.cell_voltage)

        self.results = {"E": energy, "T": run_time}
        self.output = run_time

    @property
    def run_time(self) -> SolveResult:
        return self.results.get("T", SolveResult())

    @property
    def energy(self) -> SolveResult:
        return self.results.get("E", SolveResult())
