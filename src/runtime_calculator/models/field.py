"""
Field and FieldGroup Models
===========================

A Field is one user-facing numeric input bound to one member of a quantity
triple. A FieldGroup is the set of 2-4 fields that share a derivation
relationship (a capacity card, a load card, a run time card).

Both are immutable: every mutation returns a new record, and the session
replaces the stored record on each event.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .quantity import QUANTITY_SPECS, QuantitySpec, QuantityTriple, parse_number


class Derivation(Enum):
    """How the resolver fills non-owner fields of a group."""
    SYMMETRIC_TRIPLE = "symmetric_triple"  # load: nominal <-> min <-> max
    PAIRED = "paired"                      # capacity: min, max <- nominal
    MUTUAL_SEED = "mutual_seed"            # run time: nominal <-> min
    INDEPENDENT = "independent"            # no auto-population


@dataclass(frozen=True)
class Field:
    """
    One numeric input.

    Attributes:
    ----------
    group_id : str
        Owning group identifier (e.g. "load0")

    key : str
        Member key within the group ("N", "C", "Cmin", "L", "Tmax", ...)

    raw_text : str
        Text as typed or as written by the resolver

    owner : bool
        True iff the current value was typed by the user

    error_message : str
        Validation message, empty when valid

    last_valid_text : str
        Most recent text that passed validation, restored on invalid blur

    derived : bool
        True iff the current value was written by the resolver
    """
    group_id: str
    key: str
    raw_text: str = ""
    owner: bool = False
    error_message: str = ""
    last_valid_text: str = ""
    derived: bool = False

    @property
    def field_id(self) -> str:
        """Stable identifier, "<group>.<key>"."""
        return f"{self.group_id}.{self.key}"

    @property
    def spec(self) -> QuantitySpec:
        """Validation bounds for this field."""
        return QUANTITY_SPECS[self.key]

    @property
    def text(self) -> str:
        """Stripped raw text."""
        return self.raw_text.strip()

    @property
    def is_empty(self) -> bool:
        return self.text == ""

    @property
    def is_valid(self) -> bool:
        return self.error_message == ""

    @property
    def value(self) -> Optional[float]:
        """Numeric value when present and error-free, else None."""
        if self.is_empty or not self.is_valid:
            return None
        return parse_number(self.raw_text)

    def edited(self, raw_text: str) -> "Field":
        """
        Apply a direct user edit; ownership follows the text.

        Unchanged text is not an edit and leaves ownership untouched.
        """
        if raw_text == self.raw_text:
            return self
        return replace(
            self,
            raw_text=raw_text,
            owner=raw_text.strip() != "",
            derived=False,
        )

    def committed(self) -> "Field":
        """Accept the current text as the new revert baseline."""
        return replace(
            self,
            last_valid_text=self.raw_text,
            owner=self.owner and not self.is_empty,
        )

    def reverted(self) -> "Field":
        """Restore the last valid text, releasing ownership if it is empty."""
        return replace(
            self,
            raw_text=self.last_valid_text,
            owner=self.owner and self.last_valid_text.strip() != "",
            error_message="",
        )

    def with_error(self, message: str) -> "Field":
        return replace(self, error_message=message)

    def auto_set(self, text: str) -> "Field":
        """Write a derived value."""
        return replace(
            self,
            raw_text=text,
            last_valid_text=text,
            owner=False,
            derived=True,
            error_message="",
        )

    def auto_clear(self) -> "Field":
        """Clear a previously derived value; other values are left alone."""
        if not self.derived:
            return self
        return replace(
            self,
            raw_text="",
            last_valid_text="",
            derived=False,
            error_message="",
        )

    def reset(self, text: str = "") -> "Field":
        """Reinitialise to a default with no ownership or error."""
        return Field(self.group_id, self.key, raw_text=text, last_valid_text=text)


@dataclass(frozen=True)
class FieldGroup:
    """
    Fields sharing one derivation relationship.

    Fields are stored in error priority order: when several fields are
    invalid at once, the group shows the message of the first.

    Attributes:
    ----------
    group_id : str
        Stable identifier ("pack", "time", "load0", ...)

    prefix : str
        Key of the nominal member; min/max members are prefix + "min"/"max"

    derivation : Derivation
        Resolver table for this group

    fields : tuple of Field
        Members in error priority order

    derivable : frozenset of str
        Keys the resolver may write
    """
    group_id: str
    prefix: str
    derivation: Derivation
    fields: Tuple[Field, ...]
    derivable: FrozenSet[str] = frozenset()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @property
    def keys(self) -> Tuple[str, ...]:
        return tuple(f.key for f in self.fields)

    @property
    def nominal_key(self) -> str:
        return self.prefix

    @property
    def min_key(self) -> str:
        return self.prefix + "min"

    @property
    def max_key(self) -> str:
        return self.prefix + "max"

    def has(self, key: str) -> bool:
        return key in self.keys

    def field(self, key: str) -> Field:
        """Get a member by key."""
        for f in self.fields:
            if f.key == key:
                return f
        raise KeyError(f"Group {self.group_id} has no field {key}")

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    @property
    def error_message(self) -> str:
        """Highest-priority active error, or empty."""
        for f in self.fields:
            if f.error_message:
                return f.error_message
        return ""

    def is_source(self, key: str) -> bool:
        """
        True when a member may feed derivations.

        Sources are non-empty, error-free and either typed by the user or
        never derivable (a capacity nominal is always a source).
        """
        if not self.has(key):
            return False
        f = self.field(key)
        if f.is_empty or not f.is_valid:
            return False
        return f.owner or key not in self.derivable

    def source_value(self, key: str) -> Optional[float]:
        return self.field(key).value if self.is_source(key) else None

    def value(self, key: str) -> Optional[float]:
        """Valid value of any member, or None."""
        return self.field(key).value if self.has(key) else None

    def triple(self) -> QuantityTriple:
        """Valid nominal/min/max values of this group's quantity."""
        return QuantityTriple(
            nominal=self.value(self.nominal_key),
            min=self.value(self.min_key),
            max=self.value(self.max_key),
        )

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def with_field(self, updated: Field) -> "FieldGroup":
        """Replace one member."""
        self.field(updated.key)
        return replace(self, fields=tuple(
            updated if f.key == updated.key else f for f in self.fields
        ))

    def with_fields(self, updated: Iterable[Field]) -> "FieldGroup":
        group = self
        for f in updated:
            group = group.with_field(f)
        return group

    def reset(self, defaults: Optional[Dict[str, str]] = None) -> "FieldGroup":
        """Reinitialise every member to its default text."""
        defaults = defaults or {}
        return replace(self, fields=tuple(
            f.reset(defaults.get(f.key, defaults.get(f.field_id, "")))
            for f in self.fields
        ))


# =============================================================================
# Group factories
# =============================================================================

def make_pack_group(group_id: str = "pack", with_range: bool = True) -> FieldGroup:
    """
    Pack card: cell count and capacity.

    With range, Cmin/Cmax are seeded from the capacity nominal.
    """
    keys = ("N", "C", "Cmin", "Cmax") if with_range else ("N", "C")
    return FieldGroup(
        group_id=group_id,
        prefix="C",
        derivation=Derivation.PAIRED if with_range else Derivation.INDEPENDENT,
        fields=tuple(Field(group_id, k) for k in keys),
        derivable=frozenset({"Cmin", "Cmax"}) if with_range else frozenset(),
    )


def make_load_group(index: int) -> FieldGroup:
    """Load card Lx: nominal, min and max, all mutually derivable."""
    group_id = f"load{index}"
    keys = ("L", "Lmin", "Lmax")
    return FieldGroup(
        group_id=group_id,
        prefix="L",
        derivation=Derivation.SYMMETRIC_TRIPLE,
        fields=tuple(Field(group_id, k) for k in keys),
        derivable=frozenset(keys),
    )


def make_time_group(group_id: str = "time", mutual_seed: bool = True) -> FieldGroup:
    """
    Run time card.

    Mutual seed: T and Tmin seed each other. Otherwise T, Tmin and Tmax are
    independent entries.
    """
    if mutual_seed:
        keys = ("T", "Tmin")
        return FieldGroup(
            group_id=group_id,
            prefix="T",
            derivation=Derivation.MUTUAL_SEED,
            fields=tuple(Field(group_id, k) for k in keys),
            derivable=frozenset(keys),
        )
    keys = ("T", "Tmin", "Tmax")
    return FieldGroup(
        group_id=group_id,
        prefix="T",
        derivation=Derivation.INDEPENDENT,
        fields=tuple(Field(group_id, k) for k in keys),
    )
