"""
Define-By-Time Session
======================

Page: given a run time, either
- find the load a pack can sustain (VIA_ENERGY):
      E = N × k × C / 1000,  L = E / T × 60
- or size the pack for the loads (VIA_LOAD):
      E = L_total × T / 60,  C = E × 1000 / (N × k)

Which one applies is decided by the first valid pack or load entry
after the run time is given, and stays fixed until a reset.
"""

from typing import Dict, List, Optional, Tuple

from ..calculations.solver import Relation, SolveResult, solve
from ..config import RuntimeCalculatorConfig
from ..models.field import Field, FieldGroup, make_pack_group, make_time_group
from ..models.quantity import QuantityTriple
from ..models.solve_path import SolvePath, SolvePathSelector
from .base import CalculatorSession


class DefineByTimeSession(CalculatorSession):
    """
    Define-by-time calculator.

    Groups: ``time`` (T and Tmin seed each other), ``pack`` (N, C, Cmin,
    Cmax; no defaults) and ``load0`` onwards.
    """

    name = "Define By Time"

    def __init__(
        self,
        config: Optional[RuntimeCalculatorConfig] = None,
        load_cards: int = 1
    ):
        self.selector = SolvePathSelector(prerequisite_group="time")
        super().__init__(config, load_cards)

    def _fixed_groups(self) -> List[FieldGroup]:
        return [
            make_time_group("time", mutual_seed=True),
            make_pack_group("pack", with_range=True),
        ]

    def _on_commit(self, f: Field, accepted: bool):
        self.selector.observe(f.field_id, accepted and not f.is_empty)

    @property
    def path(self) -> Optional[SolvePath]:
        return self.selector.path

    def visible_sections(self) -> Tuple[str, ...]:
        return self.selector.visible_sections()

    def recompute(self):
        k = self.config.cell_voltage
        time = self.groups["time"].triple()
        self.results = {}
        self.output = SolveResult()

        if self.path == SolvePath.VIA_ENERGY:
            pack = self.groups["pack"]
            energy = solve(Relation.PACK_ENERGY, QuantityTriple.of(pack.value("N")),
                           pack.triple(), cell_voltage=k)
            load = solve(Relation.LOAD, energy.as_triple(), time, cell_voltage=k)
            self.results = {"E": energy, "L": load}
            self.output = load

        elif self.path == SolvePath.VIA_LOAD:
            totals = self.load_totals() or QuantityTriple()
            energy = solve(Relation.ENERGY, totals, time, cell_voltage=k)
            self.results = {"E": energy}
            self.output = energy
            cells = self.groups["pack"].value("N")
            if not energy.is_absent and cells is not None:
                capacity = solve(Relation.PACK_CAPACITY, energy.as_triple(),
                                 QuantityTriple.of(cells), cell_voltage=k)
                self.results["C"] = capacity
                self.output = capacity

    def reset_group(self, group_id: str, defaults: Optional[Dict[str, str]] = None):
        """Reset a group and clear the solve-path lock."""
        self.group(group_id)
        if group_id == self.selector.prerequisite_group:
            self.selector.reset()
        else:
            self.selector.unlock()
        super().reset_group(group_id, defaults)

    def reset(self):
        self.selector.reset()
        super().reset()
