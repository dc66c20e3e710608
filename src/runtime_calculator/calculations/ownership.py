"""
Ownership Resolver
==================

Fills the non-owner members of a group from its owner members.

Derivation tables:
- Symmetric triple (load):
    nominal <- average(min, max) | min | max
    min     <- nominal | max
    max     <- nominal | min
- Paired (capacity): min, max <- nominal
- Mutual seed (run time): nominal <- min, min <- nominal
- Independent: nothing is derived

Only owner (user-typed) or non-derivable members are sources, so derived
values never feed other derivations and resolve() is idempotent.
"""

from typing import Dict, Optional

from ..debugger import debug_step
from ..models.field import Derivation, Field, FieldGroup


def _triple_derivations(group: FieldGroup) -> Dict[str, Optional[float]]:
    nominal = group.source_value(group.nominal_key)
    low = group.source_value(group.min_key)
    high = group.source_value(group.max_key)

    if low is not None and high is not None:
        derived_nominal = (low + high) / 2
    else:
        derived_nominal = low if low is not None else high

    return {
        group.nominal_key: derived_nominal,
        group.min_key: nominal if nominal is not None else high,
        group.max_key: nominal if nominal is not None else low,
    }


def _source_text(group: FieldGroup, key: str) -> Optional[str]:
    """Text of a source member, copied verbatim into seeded peers."""
    if group.is_source(key):
        return group.field(key).text
    return None


def _write(f: Field, text: Optional[str], sources: dict) -> Field:
    if text is None:
        cleared = f.auto_clear()
        if cleared is not f:
            debug_step(
                category="Derivation",
                description=f"Clear derived {f.field_id}",
                formula="",
                variables=sources,
                result=None,
                result_name=f.field_id,
                comment="no source values",
            )
        return cleared
    if f.text == text and f.derived:
        return f
    debug_step(
        category="Derivation",
        description=f"Derive {f.field_id}",
        formula="",
        variables=sources,
        result=text,
        result_name=f.field_id,
        result_unit=f.spec.kind.unit,
    )
    return f.auto_set(text)


def resolve(group: FieldGroup) -> FieldGroup:
    """
    Recompute every non-owner, derivable member of a group.

    Owner members are never written. A derivable member with no source
    values is cleared only if it currently holds a derived value.

    Parameters:
    ----------
    group : FieldGroup
        Validated group

    Returns:
    -------
    FieldGroup
        Group with derived members updated
    """
    if group.derivation == Derivation.INDEPENDENT:
        return group

    sources = {
        f.key: f.text for f in group.fields if group.is_source(f.key)
    }

    if group.derivation == Derivation.SYMMETRIC_TRIPLE:
        values = _triple_derivations(group)
        texts = {
            key: (None if value is None
                  else group.field(key).spec.precision.format(value))
            for key, value in values.items()
        }
    elif group.derivation == Derivation.PAIRED:
        # Seeds are written in canonical form: "2e3" or "2000.0" seed "2000"
        nominal = group.source_value(group.nominal_key)
        texts = {
            key: (None if nominal is None
                  else group.field(key).spec.precision.format(nominal))
            for key in (group.min_key, group.max_key)
        }
    elif group.derivation == Derivation.MUTUAL_SEED:
        texts = {
            group.nominal_key: _source_text(group, group.min_key),
            group.min_key: _source_text(group, group.nominal_key),
        }
    else:
        raise ValueError(f"Unknown derivation: {group.derivation}")

    updated = [
        _write(group.field(key), text, sources)
        for key, text in texts.items()
        if group.has(key) and key in group.derivable and not group.field(key).owner
    ]
    return group.with_fields(updated)
