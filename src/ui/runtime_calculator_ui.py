"""
Battery Run Time Calculator User Interface
==========================================

Tkinter front-end for the run time calculator. One notebook tab per
calculator page; every entry commits to its session when it loses focus,
and the tab is then redrawn from the session's snapshots.

Features:
---------
- Run Time: pack (cells, capacity range) + load cards -> run time range
- Required Energy: run time range + load cards -> energy, then cell
  capacity or cell count
- Define By Time: run time first, then either the pack or the loads
- Up to 5 load cards per page
- Result range chart and calculation trace

Usage:
------
    from src.ui.runtime_calculator_ui import RuntimeCalculatorUI

    app = RuntimeCalculatorUI()
    app.run()
"""

import tkinter as tk
from tkinter import ttk
from typing import Dict, List, Optional
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

# Import matplotlib with TkAgg backend
import matplotlib
matplotlib.use('TkAgg')
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from src.runtime_calculator import (
    CalculatorSession,
    RunTimeSession,
    RequiredEnergySession,
    DefineByTimeSession,
    RangePlotter,
    RuntimeCalculatorConfig,
    trace_session,
)
from src.runtime_calculator.calculations.solver import RELATIONS
from src.runtime_calculator.models.quantity import format_number
from src.runtime_calculator.models.solve_path import section_of


_FIELD_LABELS = {
    "N": "Cells", "C": "Nominal", "Cmin": "Min", "Cmax": "Max",
    "L": "Nominal", "Lmin": "Min", "Lmax": "Max",
    "T": "Nominal", "Tmin": "Min", "Tmax": "Max",
}

_GROUP_TITLES = {"pack": "Pack (mAh)", "time": "Run Time (Min)"}


def _fmt(value: Optional[float]) -> str:
    return "—" if value is None else format_number(value, 2)


class SessionTab:
    """
    One notebook tab bound to one calculator session.

    Parameters:
    ----------
    notebook : ttk.Notebook
        Parent notebook

    session : CalculatorSession
        Session driven by this tab

    status_var : tk.StringVar
        Shared status bar text
    """

    FRAME_PADDING = 10
    WIDGET_PADDING = 3

    def __init__(self, notebook: ttk.Notebook, session: CalculatorSession,
                 status_var: tk.StringVar):
        self.session = session
        self.status_var = status_var
        self.plotter = RangePlotter()

        self.frame = ttk.Frame(notebook, padding=self.FRAME_PADDING)
        notebook.add(self.frame, text=session.name)
        self.frame.columnconfigure(0, weight=1)
        self.frame.columnconfigure(1, weight=2)

        self.inputs_frame = ttk.Frame(self.frame)
        self.inputs_frame.grid(row=0, column=0, sticky="nsew", padx=(0, 5))

        self.group_frames: Dict[str, ttk.LabelFrame] = {}
        self.error_vars: Dict[str, tk.StringVar] = {}
        self.field_vars: Dict[str, tk.StringVar] = {}
        self.field_widgets: Dict[str, tuple] = {}  # field_id -> (label, entry)
        self._refreshing = False

        self._create_controls()
        self._create_results_panel()
        self._rebuild_groups()
        self.refresh()

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def _create_controls(self):
        controls = ttk.Frame(self.frame)
        controls.grid(row=1, column=0, sticky="ew", pady=(10, 0))

        ttk.Button(controls, text="+ Load", command=self._add_load).pack(side="left")
        ttk.Button(controls, text="− Load", command=self._remove_load).pack(side="left", padx=5)
        ttk.Button(controls, text="Reset", command=self._reset).pack(side="right")

    def _create_results_panel(self):
        results = ttk.Notebook(self.frame)
        results.grid(row=0, column=1, rowspan=2, sticky="nsew")

        summary_frame = ttk.Frame(results, padding=5)
        results.add(summary_frame, text="Result")
        self.result_text = tk.Text(summary_frame, height=12, width=48,
                                   state="disabled", font=("Courier", 10))
        self.result_text.pack(fill="x")

        self.fig = Figure(figsize=(6, 3), dpi=100)
        self.canvas = FigureCanvasTkAgg(self.fig, master=summary_frame)
        self.canvas.get_tk_widget().pack(fill="both", expand=True)

        debug_frame = ttk.Frame(results, padding=5)
        results.add(debug_frame, text="Debug")
        self.debug_text = tk.Text(debug_frame, height=25, width=80, state="disabled",
                                  font=("Courier", 9), wrap="none")
        self.debug_text.pack(fill="both", expand=True)

    def _rebuild_groups(self):
        for frame in self.group_frames.values():
            frame.destroy()
        self.group_frames.clear()
        self.error_vars.clear()
        self.field_vars.clear()
        self.field_widgets.clear()

        for row, (group_id, group) in enumerate(self.session.groups.items()):
            if group_id.startswith("load"):
                title = f"Load L{int(group_id[4:]) + 1} (W)"
            else:
                title = _GROUP_TITLES.get(group_id, group_id)
            frame = ttk.LabelFrame(self.inputs_frame, text=title, padding=self.FRAME_PADDING)
            frame.grid(row=row, column=0, sticky="ew", pady=self.WIDGET_PADDING)
            self.group_frames[group_id] = frame

            for column, f in enumerate(group.fields):
                label = ttk.Label(frame, text=_FIELD_LABELS[f.key])
                label.grid(row=0, column=column, sticky="w")
                var = tk.StringVar(value=f.raw_text)
                entry = ttk.Entry(frame, textvariable=var, width=9)
                entry.grid(row=1, column=column, padx=self.WIDGET_PADDING)
                # Text changes only; focus and navigation keys do not edit
                var.trace_add("write",
                              lambda *_, fid=f.field_id, v=var: self._on_input(fid, v.get()))
                entry.bind("<FocusOut>",
                           lambda e, fid=f.field_id, v=var: self._on_blur(fid, v.get()))
                self.field_vars[f.field_id] = var
                self.field_widgets[f.field_id] = (label, entry)

            error_var = tk.StringVar()
            ttk.Label(frame, textvariable=error_var, foreground="red").grid(
                row=2, column=0, columnspan=len(group.fields), sticky="w")
            self.error_vars[group_id] = error_var

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def _on_input(self, field_id: str, text: str):
        if not self._refreshing:
            self.session.on_field_input(field_id, text)

    def _on_blur(self, field_id: str, text: str):
        result = self.session.on_field_blur(field_id, text)
        if not result.accepted:
            self.status_var.set(f"{field_id}: {result.error_message} (reverted)")
        else:
            self.status_var.set("Ready")
        self.refresh()

    def _add_load(self):
        try:
            self.session.add_load_card()
        except ValueError as e:
            self.status_var.set(str(e))
            return
        self._rebuild_groups()
        self.refresh()

    def _remove_load(self):
        try:
            self.session.remove_load_card()
        except ValueError as e:
            self.status_var.set(str(e))
            return
        self._rebuild_groups()
        self.refresh()

    def _reset(self):
        self.session.reset()
        self._rebuild_groups()
        self.refresh()
        self.status_var.set(f"{self.session.name} reset")

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def refresh(self):
        """Redraw fields, errors, results, chart and trace from the session."""
        self._refreshing = True
        try:
            for group_id in self.session.groups:
                snapshot = self.session.get_group_snapshot(group_id)
                for f in snapshot.fields:
                    self.field_vars[f.field_id].set(f.value)
                self.error_vars[group_id].set(snapshot.error_message)
        finally:
            self._refreshing = False

        self._apply_visibility()
        self._show_results()
        self._draw_chart()
        self._show_trace()

    def _apply_visibility(self):
        if not isinstance(self.session, DefineByTimeSession):
            return
        visible = set(self.session.visible_sections())
        shown_groups = set()
        for field_id, widgets in self.field_widgets.items():
            if section_of(field_id) in visible:
                shown_groups.add(field_id.partition(".")[0])
                for widget in widgets:
                    widget.grid()
            else:
                for widget in widgets:
                    widget.grid_remove()
        for group_id, frame in self.group_frames.items():
            if group_id in shown_groups:
                frame.grid()
            else:
                frame.grid_remove()

    def _result_lines(self) -> List[str]:
        lines = []
        totals = self.session.load_totals()
        if totals is not None:
            lines.append(f"{'Load total':<14}{_fmt(totals.nominal):>9}"
                         f"{_fmt(totals.min):>9}{_fmt(totals.max):>9}  W")
        for name, result in self.session.results.items():
            unit = RELATIONS[result.relation].unit if result.relation else ""
            lines.append(f"{name:<14}{_fmt(result.nominal):>9}"
                         f"{_fmt(result.min):>9}{_fmt(result.max):>9}  {unit}")
            if result.footnote is not None:
                lines.append(f"{'':<14}exact {_fmt(result.footnote)}")
        if isinstance(self.session, DefineByTimeSession):
            path = self.session.path
            lines.append("")
            lines.append(f"Solve path: {path.name if path else 'not chosen'}")
        return lines

    def _show_results(self):
        header = f"{'':<14}{'Nom':>9}{'Min':>9}{'Max':>9}"
        self.result_text.config(state="normal")
        self.result_text.delete(1.0, tk.END)
        self.result_text.insert(tk.END, "\n".join([header] + self._result_lines()))
        self.result_text.config(state="disabled")

    def _draw_chart(self):
        self.fig.clear()
        results = self.session.results
        if results:
            axes = self.fig.subplots(len(results), 1, squeeze=False)
            for ax, (name, result) in zip(axes[:, 0], results.items()):
                unit = RELATIONS[result.relation].unit if result.relation else ""
                self.plotter.plot_result(name, result, unit, ax=ax)
                ax.set_yticks([0])
                ax.set_yticklabels([name])
                ax.grid(True, axis="x", alpha=0.3)
            self.fig.tight_layout()
        self.canvas.draw()

    def _show_trace(self):
        report = trace_session(self.session).get_report()
        self.debug_text.config(state="normal")
        self.debug_text.delete(1.0, tk.END)
        self.debug_text.insert(tk.END, report)
        self.debug_text.config(state="disabled")


class RuntimeCalculatorUI:
    """
    Main window: one tab per calculator page.
    """

    WINDOW_TITLE = "Battery Run Time Calculator"
    WINDOW_MIN_WIDTH = 1100
    WINDOW_MIN_HEIGHT = 750

    def __init__(self, config: Optional[RuntimeCalculatorConfig] = None):
        self.config = config or RuntimeCalculatorConfig()

        self.root = tk.Tk()
        self.root.title(self.WINDOW_TITLE)
        self.root.minsize(self.WINDOW_MIN_WIDTH, self.WINDOW_MIN_HEIGHT)
        self.root.columnconfigure(0, weight=1)
        self.root.rowconfigure(0, weight=1)

        self.status_var = tk.StringVar(value="Ready - enter values and leave the field to calculate")

        notebook = ttk.Notebook(self.root)
        notebook.grid(row=0, column=0, sticky="nsew", padx=10, pady=10)

        self.tabs = [
            SessionTab(notebook, RunTimeSession(self.config), self.status_var),
            SessionTab(notebook, RequiredEnergySession(self.config), self.status_var),
            SessionTab(notebook, DefineByTimeSession(self.config), self.status_var),
        ]

        status_bar = ttk.Label(self.root, textvariable=self.status_var,
                               relief="sunken", anchor="w")
        status_bar.grid(row=1, column=0, sticky="ew")

    def run(self):
        """Run the UI application."""
        self.root.mainloop()


def main():
    """Main entry point."""
    app = RuntimeCalculatorUI()
    app.run()


if __name__ == "__main__":
    main()
