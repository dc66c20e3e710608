"""
Calculation Debugger
====================

Records every derivation and solve performed by the engine so a session can
be replayed step by step: which fields fed a derived value, which candidates
the solver enumerated and which extremes it reported.

Solve steps carry (nominal, min, max) tuples as their result; they are
rendered as "nominal [min .. max]" with absent members left out.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class CalculationStep:
    """A single recorded step with inputs, formula and result."""
    category: str           # "Input", "Derivation", "Aggregation", "Solve", "Summary"
    description: str
    formula: str            # Relation used (may be empty)
    variables: dict         # Input values by name, None for absent members
    result: Any             # Text, number or (nominal, min, max)
    result_name: str
    result_unit: str
    comment: str = ""       # Exact value, discarded candidates, error message


@dataclass
class TraceSection:
    name: str
    first_step: int
    steps: List[CalculationStep] = field(default_factory=list)


class CalculationDebugger:
    """
    Collects calculation steps per section and renders them as a text report.

    Usage:
        debugger = CalculationDebugger()
        set_debugger(debugger)
        session.on_field_blur("load0.L", "10")
        print(debugger.get_report())
        set_debugger(None)
    """

    REPORT_WIDTH = 70

    def __init__(self):
        self.steps: List[CalculationStep] = []
        self.sections: List[TraceSection] = []
        self.started: Optional[datetime] = None
        self.finished: Optional[datetime] = None
        self.metadata: Dict[str, Any] = {}

    def start(self, **metadata):
        """Begin a new trace, discarding the previous one."""
        self.steps = []
        self.sections = []
        self.finished = None
        self.started = datetime.now()
        self.metadata = metadata

    def finish(self):
        self.finished = datetime.now()

    def start_section(self, name: str):
        """Steps recorded from now on belong to a new named section."""
        self.sections.append(TraceSection(name, len(self.steps)))

    def add_step(
        self,
        category: str,
        description: str,
        formula: str,
        variables: dict,
        result: Any,
        result_name: str,
        result_unit: str = "",
        comment: str = ""
    ):
        """Record one step in the current section."""
        step = CalculationStep(category, description, formula, variables,
                               result, result_name, result_unit, comment)
        self.steps.append(step)
        if self.sections:
            self.sections[-1].steps.append(step)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    @staticmethod
    def format_value(value: Any) -> str:
        """Render a recorded value; tuples are treated as (nominal, min, max)."""
        if value is None:
            return "—"
        if isinstance(value, tuple):
            nominal, low, high = (value + (None, None, None))[:3]
            text = CalculationDebugger.format_value(nominal)
            if low is not None or high is not None:
                bounds = [CalculationDebugger.format_value(v) for v in (low, high)]
                text += f" [{bounds[0]} .. {bounds[1]}]"
            return text
        if isinstance(value, float):
            return f"{value:.6g}"
        return str(value)

    def _render_step(self, number: int, step: CalculationStep) -> List[str]:
        lines = [f"[{number:>3}] {step.category:<11} {step.description}"]
        present = {k: v for k, v in step.variables.items() if v is not None}
        if present:
            lines.append("      in:  " + ", ".join(
                f"{name}={self.format_value(value)}" for name, value in present.items()))
        if step.formula:
            lines.append(f"      rel: {step.formula}")
        out = f"{step.result_name} = {self.format_value(step.result)}"
        if step.result_unit and step.result is not None:
            out += f" {step.result_unit}"
        lines.append(f"      out: {out}")
        if step.comment:
            lines.append(f"      note: {step.comment}")
        return lines

    def get_report(self) -> str:
        """
        Render all recorded steps, grouped by section.

        Returns:
        -------
        str
            Formatted trace
        """
        rule = "=" * self.REPORT_WIDTH
        lines = [rule, "RUN TIME CALCULATOR TRACE", rule]

        if self.started:
            lines.append(f"Generated: {self.started.strftime('%Y-%m-%d %H:%M:%S')}")
        for key, value in self.metadata.items():
            lines.append(f"  {key}: {value}")

        unsectioned = self.steps[:self.sections[0].first_step] if self.sections else self.steps
        blocks: List[Tuple[str, List[CalculationStep]]] = []
        if unsectioned:
            blocks.append(("", unsectioned))
        blocks.extend((s.name, s.steps) for s in self.sections)

        number = 1
        for name, steps in blocks:
            if name:
                lines.append("")
                lines.append(f">>> {name} ({len(steps)} steps)")
                lines.append("-" * self.REPORT_WIDTH)
            for step in steps:
                lines.extend(self._render_step(number, step))
                number += 1

        lines.append("")
        lines.append(rule)
        lines.append(f"Total Steps: {len(self.steps)}")
        if self.started and self.finished:
            elapsed = (self.finished - self.started).total_seconds()
            lines.append(f"Elapsed Time: {elapsed:.3f} seconds")
        lines.append(rule)
        return "\n".join(lines)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def find_steps_by_category(self, category: str) -> List[CalculationStep]:
        return [s for s in self.steps if s.category == category]

    def find_step_by_result(self, result_name: str) -> Optional[CalculationStep]:
        """Most recent step that produced a value of this name."""
        return next((s for s in reversed(self.steps) if s.result_name == result_name), None)


# Global debugger, None when tracing is off
_debugger: Optional[CalculationDebugger] = None


def get_debugger() -> CalculationDebugger:
    """Get the global debugger, creating one if needed."""
    global _debugger
    if _debugger is None:
        _debugger = CalculationDebugger()
    return _debugger


def current_debugger() -> Optional[CalculationDebugger]:
    """Get the global debugger without creating one."""
    return _debugger


def set_debugger(debugger: Optional[CalculationDebugger]):
    """Install (or remove, with None) the global debugger."""
    global _debugger
    _debugger = debugger


def debug_step(category: str, description: str, formula: str, variables: dict,
               result: Any, result_name: str, result_unit: str = "", comment: str = ""):
    """Record a step on the global debugger, if one is installed."""
    if _debugger is not None:
        _debugger.add_step(category, description, formula, variables,
                           result, result_name, result_unit, comment)
