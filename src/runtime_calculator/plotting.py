"""
Runtime Calculator Plotting Module
==================================

Visualisation of solve results and their candidate sets.

Plot Types Available:
--------------------
- Candidate scatter: every candidate of a solve against its nominal, min
  and max
- Result ranges: one horizontal bar per result of a session, spanning the
  reported min..max around the nominal

Classes:
--------
- RangePlotter: generates the figures

Usage:
-----
    from src.runtime_calculator import RangePlotter, RunTimeSession

    session = RunTimeSession()
    session.on_field_blur("load0.L", "10")
    fig = RangePlotter().plot_session(session)
    fig.savefig("run_time.png", dpi=150)
"""

from typing import Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .calculations.solver import RELATIONS, Relation, SolveResult, candidate_set, solve
from .config import DEFAULT_NOMINAL_VOLTAGE
from .models.quantity import QuantityTriple
from .sessions.base import CalculatorSession


class RangePlotter:
    """
    Solve result visualisation.

    Example:
    -------
        plotter = RangePlotter()
        fig = plotter.plot_candidates(
            Relation.RUN_TIME,
            QuantityTriple(50.4),
            QuantityTriple(10.0, 8.0, 12.0),
        )
    """

    DEFAULT_FIGURE_SIZE = (8, 4)
    NOMINAL_COLOR = "tab:blue"
    RANGE_COLOR = "tab:orange"

    def plot_candidates(
        self,
        relation: Relation,
        known_a: QuantityTriple,
        known_b: QuantityTriple,
        cell_voltage: float = DEFAULT_NOMINAL_VOLTAGE,
        figsize: Optional[Tuple[int, int]] = None,
        ax: Optional[Axes] = None
    ) -> Figure:
        """
        Scatter the candidate set of one solve.

        Each column of points is one value of the first input; the points in
        it are that value combined with every value of the second input.

        Parameters:
        ----------
        relation : Relation
            Relation to evaluate

        known_a, known_b : QuantityTriple
            Inputs in the relation's operand order

        cell_voltage : float
            Nominal voltage per cell (V)

        figsize : tuple, optional
            Figure size (width, height) in inches

        ax : Axes, optional
            Existing axes to plot on

        Returns:
        -------
        Figure
            Matplotlib figure object
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=figsize or self.DEFAULT_FIGURE_SIZE)
        else:
            fig = ax.get_figure()

        spec = RELATIONS[relation]
        grid = candidate_set(relation, known_a, known_b, cell_voltage)
        result = solve(relation, known_a, known_b, cell_voltage)

        name_a, name_b = spec.operands
        labels = [f"{name_a}{suffix}" for suffix, value in
                  zip(("", "min", "max"), (known_a.nominal, known_a.min, known_a.max))
                  if value is not None]

        for row, label in enumerate(labels):
            values = grid[row]
            finite = values[np.isfinite(values)]
            ax.scatter(np.full(finite.shape, row), finite, color=self.RANGE_COLOR,
                       alpha=0.7, label=f"{spec.result_name} over {name_b}" if row == 0 else None)

        if not result.is_absent:
            ax.axhline(result.nominal, color=self.NOMINAL_COLOR, linewidth=2,
                       label=f"Nominal {result.nominal:g} {spec.unit}")
            if result.min is not None:
                ax.axhline(result.min, color=self.NOMINAL_COLOR, linestyle="--",
                           label=f"Min {result.min:g} {spec.unit}")
            if result.max is not None:
                ax.axhline(result.max, color=self.NOMINAL_COLOR, linestyle=":",
                           label=f"Max {result.max:g} {spec.unit}")

        ax.set_xticks(range(len(labels)))
        ax.set_xticklabels(labels)
        ax.set_ylabel(f"{spec.result_name} ({spec.unit})")
        ax.set_title(f"Candidates: {spec.formula}")
        ax.grid(True, alpha=0.3)
        if labels:
            ax.legend(loc="best")

        return fig

    def plot_result(
        self,
        name: str,
        result: SolveResult,
        unit: str = "",
        position: float = 0.0,
        ax: Optional[Axes] = None
    ) -> Figure:
        """
        Draw one result as a horizontal range bar with a nominal marker.

        Parameters:
        ----------
        name : str
            Label of the result

        result : SolveResult
            Result to draw; absent results draw nothing

        unit : str
            Display unit

        position : float
            Vertical position of the bar

        ax : Axes, optional
            Existing axes to plot on

        Returns:
        -------
        Figure
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=self.DEFAULT_FIGURE_SIZE)
        else:
            fig = ax.get_figure()

        if result.is_absent:
            return fig

        low = result.min if result.min is not None else result.nominal
        high = result.max if result.max is not None else result.nominal
        ax.barh(position, high - low, left=low, height=0.4,
                color=self.RANGE_COLOR, alpha=0.5)
        ax.plot([result.nominal], [position], marker="o", color=self.NOMINAL_COLOR)
        ax.annotate(f"{result.nominal:g} {unit}".strip(), (result.nominal, position),
                    textcoords="offset points", xytext=(0, 8), ha="center")
        if result.footnote is not None:
            ax.annotate(f"exact {result.footnote:g}", (high, position),
                        textcoords="offset points", xytext=(6, -4), fontsize=8)
        return fig

    def plot_session(
        self,
        session: CalculatorSession,
        figsize: Optional[Tuple[int, int]] = None
    ) -> Figure:
        """
        One subplot per result of a session.

        Results use different units, so each gets its own axis.

        Parameters:
        ----------
        session : CalculatorSession
            Session whose results are drawn

        figsize : tuple, optional
            Figure size (width, height) in inches

        Returns:
        -------
        Figure
        """
        names = list(session.results) or ["—"]
        fig, axes = plt.subplots(len(names), 1, squeeze=False,
                                 figsize=figsize or (8, 1.6 * len(names) + 1))

        for ax, name in zip(axes[:, 0], names):
            result = session.results.get(name, SolveResult())
            unit = RELATIONS[result.relation].unit if result.relation else ""
            self.plot_result(name, result, unit, ax=ax)
            ax.set_yticks([0])
            ax.set_yticklabels([name])
            ax.grid(True, axis="x", alpha=0.3)
            if result.is_absent:
                ax.text(0.5, 0.5, "not available", transform=ax.transAxes,
                        ha="center", va="center", color="gray")

        fig.suptitle(session.name)
        fig.tight_layout()
        return fig
