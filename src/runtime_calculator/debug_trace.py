"""
Debug Trace Functions
=====================

Builds a full step-by-step trace of a calculator session: every field value,
every solve of the current result chain, and the summary values of the debug
panel (run time, load and energy triples, capacity, cell count and the
unrounded cell count).
"""

from typing import Optional

from .debugger import CalculationDebugger, current_debugger, set_debugger
from .calculations.solver import SolveResult
from .models.quantity import QuantityTriple
from .sessions.base import CalculatorSession
from .sessions.define_by_time import DefineByTimeSession


def _triple_summary(result: Optional[SolveResult]) -> tuple:
    if result is None or result.is_absent:
        return (None, None, None)
    return (result.nominal, result.min, result.max)


def _input_triple(triple: Optional[QuantityTriple]) -> tuple:
    if triple is None:
        return (None, None, None)
    return (triple.nominal, triple.min, triple.max)


def trace_session(session: CalculatorSession) -> CalculationDebugger:
    """
    Trace the current state of a session.

    The session's result chain is re-run with a fresh debugger installed,
    so the report reflects exactly what the page shows. The previously
    installed global debugger is restored afterwards.

    Parameters:
    ----------
    session : CalculatorSession
        Session to trace

    Returns:
    -------
    CalculationDebugger
        Debugger with all steps recorded
    """
    debugger = CalculationDebugger()
    metadata = {
        "page": session.name,
        "cell_voltage": f"{session.config.cell_voltage} V",
        "load_cards": session.load_card_count,
    }
    if isinstance(session, DefineByTimeSession):
        path = session.path
        metadata["solve_path"] = path.name if path is not None else "unset"
    debugger.start(**metadata)

    # ==========================================================================
    # SECTION 1: FIELD VALUES
    # ==========================================================================
    debugger.start_section("FIELD VALUES")
    for group in session.groups.values():
        for f in group.fields:
            origin = "user" if f.owner else ("derived" if f.derived else "default")
            debugger.add_step(
                category="Input",
                description=f"{f.field_id} ({origin})",
                formula="",
                variables={},
                result=f.text or None,
                result_name=f.field_id,
                result_unit=f.spec.kind.unit,
                comment=f.error_message,
            )

    # ==========================================================================
    # SECTION 2: RESULT CHAIN
    # ==========================================================================
    debugger.start_section("RESULT CHAIN")
    previous = current_debugger()
    set_debugger(debugger)
    try:
        session.recompute()
    finally:
        set_debugger(previous)

    # ==========================================================================
    # SECTION 3: SUMMARY
    # ==========================================================================
    debugger.start_section("SUMMARY")
    results = session.results
    time_group = session.groups.get("time")
    pack = session.groups.get("pack")

    time_values = (
        _input_triple(time_group.triple()) if time_group is not None
        else _triple_summary(results.get("T"))
    )
    load_values = (
        _triple_summary(results["L"]) if "L" in results
        else _input_triple(session.load_totals())
    )

    summary = [
        ("T", "Run time", time_values, "min"),
        ("L", "Load", load_values, "W"),
        ("E", "Energy", _triple_summary(results.get("E")), "Wh"),
    ]
    for name, description, values, unit in summary:
        debugger.add_step(
            category="Summary",
            description=description,
            formula="",
            variables={f"{name}min": values[1], f"{name}max": values[2]},
            result=values[0],
            result_name=name,
            result_unit=unit,
        )

    capacity = results["C"].nominal if "C" in results else (
        pack.value("C") if pack is not None else None)
    debugger.add_step(
        category="Summary",
        description="Cell capacity",
        formula="",
        variables={},
        result=capacity,
        result_name="C",
        result_unit="mAh",
        comment=(f"exact {results['C'].footnote}" if "C" in results else ""),
    )

    cells = results["N"].nominal if "N" in results else (
        pack.value("N") if pack is not None else None)
    debugger.add_step(
        category="Summary",
        description="Cell count",
        formula="",
        variables={},
        result=cells,
        result_name="N",
        result_unit="cells",
    )
    debugger.add_step(
        category="Summary",
        description="Unrounded cell count",
        formula="",
        variables={},
        result=results["N"].footnote if "N" in results else None,
        result_name="NN",
        result_unit="cells",
    )

    debugger.finish()
    return debugger
