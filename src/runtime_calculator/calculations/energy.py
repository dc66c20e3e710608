"""
Energy and Load Aggregation
===========================

Helpers that turn field groups into the triples fed to the solver:
- Total load across all load cards
"""

from typing import Iterable, Optional

from ..config import LOAD_DECIMALS
from ..debugger import debug_step
from ..models.field import FieldGroup
from ..models.quantity import QuantityTriple, round_half_up


def load_totals(groups: Iterable[FieldGroup]) -> Optional[QuantityTriple]:
    """
    Sum load cards column by column.

    Cards without a valid nominal are skipped. A card's missing or invalid
    min/max falls back to its nominal, so every counted card contributes to
    all three columns.

    Parameters:
    ----------
    groups : iterable of FieldGroup
        Load card groups

    Returns:
    -------
    QuantityTriple or None
        Totals rounded to 0.1 W, None when no card has a valid nominal
    """
    total = low = high = 0.0
    counted = []

    for group in groups:
        triple = group.triple()
        if triple.nominal is None:
            continue
        counted.append(group.group_id)
        total += triple.nominal
        low += triple.min if triple.min is not None else triple.nominal
        high += triple.max if triple.max is not None else triple.nominal

    if not counted:
        return None

    result = QuantityTriple(
        nominal=round_half_up(total, LOAD_DECIMALS),
        min=round_half_up(low, LOAD_DECIMALS),
        max=round_half_up(high, LOAD_DECIMALS),
    )
    debug_step(
        category="Aggregation",
        description="Total load",
        formula="ΣL, ΣLmin, ΣLmax",
        variables={"cards": ", ".join(counted)},
        result=(result.nominal, result.min, result.max),
        result_name="L_total",
        result_unit="W",
    )
    return result
