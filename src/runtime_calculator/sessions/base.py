"""
Calculator Session Base
=======================

A session owns the field store of one calculator page and runs the engine
on every committed edit:

    blur -> validate group -> revert if invalid -> resolve group -> solve

Each step replaces the stored FieldGroup record; nothing partially derived is
ever observable from outside.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..calculations.energy import load_totals
from ..calculations.ownership import resolve
from ..calculations.solver import SolveResult
from ..calculations.validation import validate_group
from ..config import RuntimeCalculatorConfig
from ..debugger import CalculationDebugger, current_debugger, set_debugger
from ..models.field import Field, FieldGroup, make_load_group
from ..models.quantity import QuantityTriple


@dataclass(frozen=True)
class FieldSnapshot:
    """Read-only view of one field."""
    field_id: str
    value: str
    owner: bool
    error: str
    derived: bool


@dataclass(frozen=True)
class GroupSnapshot:
    """
    Read-only projection of a group for rendering.

    Attributes:
    ----------
    group_id : str
        Group identifier

    fields : tuple of FieldSnapshot
        Members in error priority order

    error_message : str
        The single message shown on the group's error surface

    derived_quantity : SolveResult
        The page result the group currently contributes to
    """
    group_id: str
    fields: Tuple[FieldSnapshot, ...]
    error_message: str
    derived_quantity: SolveResult

    def field(self, field_id: str) -> FieldSnapshot:
        for f in self.fields:
            if f.field_id == field_id:
                return f
        raise KeyError(field_id)


@dataclass(frozen=True)
class BlurResult:
    """
    Outcome of a committed edit.

    Attributes:
    ----------
    accepted : bool
        False when the entry was invalid and the field was reverted

    error_message : str
        Rejection message when not accepted, else the group's current message

    group_snapshot : GroupSnapshot
        Group state after validation, revert and resolution
    """
    accepted: bool
    error_message: str
    group_snapshot: GroupSnapshot


class CalculatorSession:
    """
    Field store and event entry points shared by all calculator pages.

    Subclasses provide the fixed groups of the page and the solve chain in
    recompute().

    Parameters:
    ----------
    config : RuntimeCalculatorConfig, optional
        Session configuration

    load_cards : int
        Number of load cards to start with
    """

    name = "Calculator"

    def __init__(
        self,
        config: Optional[RuntimeCalculatorConfig] = None,
        load_cards: int = 1
    ):
        self.config = config or RuntimeCalculatorConfig()
        valid, message = self.config.validate()
        if not valid:
            raise ValueError(f"Invalid configuration: {message}")
        if not 1 <= load_cards <= self.config.max_load_cards:
            raise ValueError(
                f"Load cards must be 1-{self.config.max_load_cards}, got {load_cards}"
            )

        # Holds the trace of the most recent blur only
        self.debugger: Optional[CalculationDebugger] = (
            CalculationDebugger() if self.config.trace_enabled else None
        )

        self.groups: Dict[str, FieldGroup] = {}
        for group in self._fixed_groups():
            self.groups[group.group_id] = group
        for index in range(load_cards):
            group = make_load_group(index)
            self.groups[group.group_id] = group

        self.results: Dict[str, SolveResult] = {}
        self.output = SolveResult()

        for group_id in list(self.groups):
            self._settle(group_id, self._defaults(group_id))
        self.recompute()

    # -------------------------------------------------------------------------
    # Page definition (overridden by subclasses)
    # -------------------------------------------------------------------------

    def _fixed_groups(self) -> List[FieldGroup]:
        """Groups other than the load cards."""
        return []

    def _defaults(self, group_id: str) -> Dict[str, str]:
        """Default texts applied on creation and reset."""
        return {}

    def recompute(self):
        """Re-run the solve chain and store results and output."""
        raise NotImplementedError

    def _on_commit(self, f: Field, accepted: bool):
        """Hook called after a blur has been committed."""

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def group(self, group_id: str) -> FieldGroup:
        """Get a group; raises KeyError for unknown identifiers."""
        if group_id not in self.groups:
            raise KeyError(f"Unknown group: {group_id}")
        return self.groups[group_id]

    def field(self, field_id: str) -> Field:
        """Get a field by "<group>.<key>" identifier."""
        group_id, _, key = field_id.partition(".")
        if not key:
            raise KeyError(f"Unknown field: {field_id}")
        return self.group(group_id).field(key)

    def load_groups(self) -> List[FieldGroup]:
        """Load card groups in card order."""
        return [g for gid, g in self.groups.items() if gid.startswith("load")]

    @property
    def load_card_count(self) -> int:
        return len(self.load_groups())

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_field_input(self, field_id: str, raw_text: str) -> Field:
        """
        Keystroke-level edit: update text and ownership only.

        No validation or derivation runs until the field is blurred.
        """
        f = self.field(field_id).edited(raw_text)
        self.groups[f.group_id] = self.groups[f.group_id].with_field(f)
        return f

    def on_field_blur(self, field_id: str, raw_text: Optional[str] = None) -> BlurResult:
        """
        Commit an edit.

        Validates the field's group; an invalid entry is reverted to its
        last valid text and the group re-validated. The group is then
        resolved and the page results recomputed.

        Parameters:
        ----------
        field_id : str
            Field identifier, e.g. "load0.Lmin"

        raw_text : str, optional
            Final text; when it differs from the stored text it is applied
            as a user edit first

        Returns:
        -------
        BlurResult
        """
        f = self.field(field_id)
        group = self.groups[f.group_id]
        if raw_text is not None and raw_text != f.raw_text:
            group = group.with_field(f.edited(raw_text))

        group = validate_group(group)
        f = group.field(f.key)
        accepted = f.is_valid
        rejection = f.error_message

        if accepted:
            group = group.with_field(f.committed())
        else:
            group = validate_group(group.with_field(f.reverted()))

        previous = current_debugger()
        if self.debugger is not None:
            self.debugger.start(page=self.name, field=field_id, accepted=accepted)
            self.debugger.start_section(f"Blur {field_id}")
            set_debugger(self.debugger)
        try:
            group = resolve(group)
            self.groups[group.group_id] = group

            committed = group.field(f.key)
            self._on_commit(committed, accepted)
            self.recompute()
        finally:
            if self.debugger is not None:
                set_debugger(previous)
                self.debugger.finish()

        return BlurResult(
            accepted=accepted,
            error_message=group.error_message if accepted else rejection,
            group_snapshot=self.get_group_snapshot(group.group_id),
        )

    def reset_group(self, group_id: str, defaults: Optional[Dict[str, str]] = None):
        """
        Reinitialise a group to defaults, clearing ownership and errors.

        Parameters:
        ----------
        group_id : str
            Group identifier

        defaults : dict, optional
            Default text per key; the page defaults when omitted
        """
        self.group(group_id)
        self._settle(group_id, defaults if defaults is not None else self._defaults(group_id))
        self.recompute()

    def reset(self):
        """Reset the whole page to its initial state."""
        for group in self.load_groups()[1:]:
            del self.groups[group.group_id]
        for group_id in list(self.groups):
            self._settle(group_id, self._defaults(group_id))
        self.recompute()

    def add_load_card(self) -> str:
        """
        Append an empty load card.

        Returns:
        -------
        str
            New group identifier
        """
        count = self.load_card_count
        if count >= self.config.max_load_cards:
            raise ValueError(f"At most {self.config.max_load_cards} load cards")
        group = make_load_group(count)
        self.groups[group.group_id] = group
        self.recompute()
        return group.group_id

    def remove_load_card(self) -> str:
        """
        Remove the last load card.

        Returns:
        -------
        str
            Removed group identifier
        """
        groups = self.load_groups()
        if len(groups) <= 1:
            raise ValueError("At least one load card is required")
        group_id = groups[-1].group_id
        del self.groups[group_id]
        self.recompute()
        return group_id

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def load_totals(self) -> Optional[QuantityTriple]:
        """Column totals of the valid load cards, rounded to 0.1 W."""
        return load_totals(self.load_groups())

    def get_group_snapshot(self, group_id: str) -> GroupSnapshot:
        group = self.group(group_id)
        return GroupSnapshot(
            group_id=group_id,
            fields=tuple(
                FieldSnapshot(
                    field_id=f.field_id,
                    value=f.raw_text,
                    owner=f.owner,
                    error=f.error_message,
                    derived=f.derived,
                )
                for f in group.fields
            ),
            error_message=group.error_message,
            derived_quantity=self.output,
        )

    def _settle(self, group_id: str, defaults: Dict[str, str]):
        group = self.groups[group_id].reset(defaults)
        self.groups[group_id] = resolve(validate_group(group))
