"""
Solve-Path Selector
===================

The define-by-time page accepts two input categories that can each determine
the result: the pack (energy from cells and capacity, load follows) or load cards
(energy from the loads, capacity follows). The first valid entry made after
a run time has been supplied picks the direction for the rest of the session.

State machine:

    Unset --(valid pack entry)------> Locked(VIA_ENERGY)
    Unset --(valid load entry)------> Locked(VIA_LOAD)

Only a reset returns to Unset.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class SolvePath(Enum):
    """Algebraic direction governing a define-by-time session."""
    VIA_LOAD = "via_load"      # E = L x T, then C = E / (N x k)
    VIA_ENERGY = "via_energy"  # E = N x k x C, then L = E / T


@dataclass(frozen=True)
class Unset:
    """No direction chosen yet."""


@dataclass(frozen=True)
class Locked:
    """Direction chosen; terminal until reset."""
    path: SolvePath


SolvePathState = Union[Unset, Locked]


# Page sections the view layer may show
SECTION_TIME = "time"
SECTION_CELLS = "cells"
SECTION_CAPACITY = "capacity"
SECTION_LOAD = "load"

# Pack entries, cell count included, select the pack-driven direction
PACK_FIELD_IDS = frozenset({"pack.N", "pack.C", "pack.Cmin", "pack.Cmax"})


def path_for_field(field_id: str) -> Optional[SolvePath]:
    """
    Category of a field id.

    Pack fields (cell count and capacity) select VIA_ENERGY, load card
    fields select VIA_LOAD.
    """
    if field_id in PACK_FIELD_IDS:
        return SolvePath.VIA_ENERGY
    if field_id.startswith("load"):
        return SolvePath.VIA_LOAD
    return None


def section_of(field_id: str) -> str:
    """Page section a field is shown in; N stays visible on both paths."""
    if field_id == "pack.N":
        return SECTION_CELLS
    if field_id in PACK_FIELD_IDS:
        return SECTION_CAPACITY
    if field_id.startswith("load"):
        return SECTION_LOAD
    return SECTION_TIME


class SolvePathSelector:
    """
    Tracks the prerequisite and the locked direction of one session.

    Parameters:
    ----------
    prerequisite_group : str
        Group whose first valid entry reveals the other sections
    """

    def __init__(self, prerequisite_group: str = "time"):
        self.prerequisite_group = prerequisite_group
        self.state: SolvePathState = Unset()
        self.prerequisite_met = False

    @property
    def path(self) -> Optional[SolvePath]:
        """Locked path, or None while unset."""
        if isinstance(self.state, Locked):
            return self.state.path
        return None

    def observe(self, field_id: str, valid_non_empty: bool) -> SolvePathState:
        """
        Feed one committed user entry to the state machine.

        Parameters:
        ----------
        field_id : str
            Identifier of the blurred field

        valid_non_empty : bool
            True when the committed text is non-empty and passed validation

        Returns:
        -------
        SolvePathState
            State after the transition
        """
        if not valid_non_empty:
            return self.state

        if field_id.split(".", 1)[0] == self.prerequisite_group:
            # Sticky: clearing the run time later does not hide sections again
            self.prerequisite_met = True
            return self.state

        if self.prerequisite_met and isinstance(self.state, Unset):
            path = path_for_field(field_id)
            if path is not None:
                self.state = Locked(path)
        return self.state

    def visible_sections(self) -> Tuple[str, ...]:
        """Sections the view layer should show in the current state."""
        if not self.prerequisite_met:
            return (SECTION_TIME,)
        if self.path == SolvePath.VIA_ENERGY:
            return (SECTION_TIME, SECTION_CELLS, SECTION_CAPACITY)
        if self.path == SolvePath.VIA_LOAD:
            return (SECTION_TIME, SECTION_CELLS, SECTION_LOAD)
        return (SECTION_TIME, SECTION_CELLS, SECTION_CAPACITY, SECTION_LOAD)

    def unlock(self):
        """Return to Unset, keeping the prerequisite."""
        self.state = Unset()

    def reset(self):
        """Return to Unset and hide everything but the run time section."""
        self.state = Unset()
        self.prerequisite_met = False
