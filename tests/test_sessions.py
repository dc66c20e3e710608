"""
Calculator Session Tests
========================

End-to-end checks of the three calculator pages driven through their event
entry points (blur, reset, load cards), plus the trace builder and plots.

Test Methodology:
- Every scenario enters values the way the UI does: one blur per field
- Results are checked against hand-calculated values
- The define-by-time page is checked for its solve path lock
"""

import sys
from pathlib import Path
import unittest

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.runtime_calculator import (
    DefineByTimeSession,
    QuantityTriple,
    RangePlotter,
    Relation,
    RequiredEnergySession,
    RunTimeSession,
    RuntimeCalculatorConfig,
    SolvePath,
    set_debugger,
    trace_session,
)
from src.runtime_calculator.debugger import current_debugger, get_debugger
from src.runtime_calculator.models.solve_path import path_for_field, section_of


def enter_loads(session, card="load0", **texts):
    for key in ("L", "Lmin", "Lmax"):
        if key in texts:
            session.on_field_blur(f"{card}.{key}", texts[key])


class TestRunTimeSession(unittest.TestCase):
    """Run time page: pack + loads -> run time range."""

    def setUp(self):
        self.session = RunTimeSession()

    def test_defaults(self):
        self.assertEqual(self.session.field("pack.N").raw_text, "7")
        self.assertEqual(self.session.field("pack.C").raw_text, "2000")
        self.assertEqual(self.session.field("pack.Cmin").raw_text, "2000")
        self.assertTrue(self.session.field("pack.Cmax").derived)
        self.assertAlmostEqual(self.session.energy.nominal, 50.4, places=6)
        self.assertTrue(self.session.run_time.is_absent)

    def test_run_time_range(self):
        enter_loads(self.session, L="10", Lmin="8", Lmax="12")

        result = self.session.run_time
        self.assertAlmostEqual(result.nominal, 302.4, places=6)
        self.assertAlmostEqual(result.min, 252.0, places=6)
        self.assertAlmostEqual(result.max, 378.0, places=6)
        self.assertIs(self.session.output, result)

    def test_capacity_range_widens_run_time(self):
        enter_loads(self.session, L="10")
        self.session.on_field_blur("pack.Cmin", "1000")
        self.session.on_field_blur("pack.Cmax", "2300")

        result = self.session.run_time
        self.assertAlmostEqual(result.min, 151.2, places=6)
        self.assertAlmostEqual(result.max, 347.8, places=6)

    def test_invalid_entry_reverts(self):
        blur = self.session.on_field_blur("pack.N", "9")
        self.assertFalse(blur.accepted)
        self.assertEqual(blur.error_message, "Cells must be 1 – 8")
        self.assertEqual(self.session.field("pack.N").raw_text, "7")
        self.assertEqual(blur.group_snapshot.error_message, "")
        self.assertAlmostEqual(self.session.energy.nominal, 50.4, places=6)

    def test_revert_releases_ownership_of_empty_field(self):
        blur = self.session.on_field_blur("load0.L", "abc")
        self.assertFalse(blur.accepted)
        self.assertEqual(blur.error_message, "Nominal must be a number")
        f = self.session.field("load0.L")
        self.assertEqual(f.raw_text, "")
        self.assertFalse(f.owner)

    def test_capacity_bounds_enforced(self):
        blur = self.session.on_field_blur("pack.Cmin", "900")
        self.assertFalse(blur.accepted)
        self.assertEqual(blur.error_message, "Min must be ≥ 1000 mAh")
        self.assertEqual(self.session.field("pack.Cmin").raw_text, "2000")

    def test_cleared_capacity_makes_result_absent(self):
        enter_loads(self.session, L="10")
        self.session.on_field_blur("pack.C", "")
        self.assertEqual(self.session.field("pack.Cmin").raw_text, "")
        self.assertTrue(self.session.energy.is_absent)
        self.assertTrue(self.session.run_time.is_absent)

    def test_input_then_blur(self):
        self.session.on_field_input("load0.L", "10")
        self.assertTrue(self.session.field("load0.L").owner)
        self.assertEqual(self.session.field("load0.Lmin").raw_text, "")

        blur = self.session.on_field_blur("load0.L")
        self.assertTrue(blur.accepted)
        self.assertEqual(self.session.field("load0.Lmin").raw_text, "10")

    def test_retyping_derived_text_keeps_it_derived(self):
        enter_loads(self.session, Lmin="5")
        self.assertEqual(self.session.field("load0.L").raw_text, "5")
        self.assertTrue(self.session.field("load0.L").derived)

        f = self.session.on_field_input("load0.L", "5")
        self.assertFalse(f.owner)
        self.assertTrue(f.derived)
        self.session.on_field_blur("load0.L")
        self.session.on_field_blur("load0.Lmax", "15")

        self.assertEqual(self.session.field("load0.L").raw_text, "10")
        self.assertAlmostEqual(self.session.load_totals().nominal, 10.0, places=6)

    def test_unknown_identifiers(self):
        with self.assertRaises(KeyError):
            self.session.on_field_blur("nope.L", "1")
        with self.assertRaises(KeyError):
            self.session.on_field_blur("pack.X", "1")
        with self.assertRaises(KeyError):
            self.session.field("pack")
        with self.assertRaises(KeyError):
            self.session.get_group_snapshot("load9")

    def test_snapshot(self):
        enter_loads(self.session, L="10")
        snapshot = self.session.get_group_snapshot("load0")
        self.assertEqual([f.field_id for f in snapshot.fields],
                         ["load0.L", "load0.Lmin", "load0.Lmax"])
        self.assertTrue(snapshot.field("load0.L").owner)
        self.assertTrue(snapshot.field("load0.Lmin").derived)
        self.assertFalse(snapshot.field("load0.Lmin").owner)
        self.assertEqual(snapshot.derived_quantity, self.session.output)

    def test_load_cards(self):
        self.assertEqual(self.session.add_load_card(), "load1")
        for _ in range(3):
            self.session.add_load_card()
        self.assertEqual(self.session.load_card_count, 5)
        with self.assertRaises(ValueError):
            self.session.add_load_card()

        self.assertEqual(self.session.remove_load_card(), "load4")
        for _ in range(3):
            self.session.remove_load_card()
        with self.assertRaises(ValueError):
            self.session.remove_load_card()

    def test_load_totals(self):
        self.assertIsNone(self.session.load_totals())

        enter_loads(self.session, L="10")
        self.session.add_load_card()
        self.assertEqual(self.session.load_totals(), QuantityTriple(10.0, 10.0, 10.0))

        enter_loads(self.session, card="load1", L="5", Lmax="7")
        self.assertEqual(self.session.load_totals(), QuantityTriple(15.0, 15.0, 17.0))

    def test_reset(self):
        enter_loads(self.session, L="10")
        self.session.add_load_card()
        self.session.on_field_blur("pack.N", "4")

        self.session.reset()
        self.assertEqual(self.session.load_card_count, 1)
        self.assertEqual(self.session.field("pack.N").raw_text, "7")
        self.assertFalse(self.session.field("pack.N").owner)
        self.assertEqual(self.session.field("load0.L").raw_text, "")
        self.assertTrue(self.session.run_time.is_absent)

    def test_reset_group_with_defaults(self):
        self.session.reset_group("pack", {"N": "4", "C": "1500"})
        self.assertEqual(self.session.field("pack.N").raw_text, "4")
        self.assertEqual(self.session.field("pack.Cmin").raw_text, "1500")
        with self.assertRaises(KeyError):
            self.session.reset_group("nope")

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            RunTimeSession(RuntimeCalculatorConfig(cell_voltage=-1))
        with self.assertRaises(ValueError):
            RunTimeSession(load_cards=6)

    def test_custom_cell_voltage(self):
        session = RunTimeSession(RuntimeCalculatorConfig(cell_voltage=3.7))
        self.assertAlmostEqual(session.energy.nominal, 51.8, places=6)


class TestRequiredEnergySession(unittest.TestCase):
    """Required energy page: loads + time -> energy -> pack sizing."""

    def setUp(self):
        self.session = RequiredEnergySession()
        enter_loads(self.session, L="25")
        self.session.on_field_blur("time.T", "30")

    def test_energy(self):
        self.assertAlmostEqual(self.session.energy.nominal, 12.5, places=6)
        self.assertTrue(self.session.sizing.is_absent)

    def test_cell_count_from_capacity(self):
        self.session.on_field_blur("pack.C", "2000")
        sizing = self.session.sizing
        self.assertEqual(sizing.relation, Relation.PACK_COUNT)
        self.assertEqual(sizing.nominal, 2.0)
        self.assertAlmostEqual(sizing.exact_nominal, 1.736, places=3)
        self.assertAlmostEqual(sizing.footnote, 1.74)

    def test_capacity_from_cell_count(self):
        self.session.on_field_blur("pack.N", "2")
        sizing = self.session.sizing
        self.assertEqual(sizing.relation, Relation.PACK_CAPACITY)
        # 12.5 Wh / 7.2 V = 1736.1 mAh
        self.assertEqual(sizing.nominal, 1737.0)
        self.assertAlmostEqual(sizing.footnote, 1736.11)

    def test_cell_count_wins(self):
        self.session.on_field_blur("pack.C", "2000")
        self.session.on_field_blur("pack.N", "3")
        self.assertIn("C", self.session.results)
        self.assertNotIn("N", self.session.results)

    def test_time_range(self):
        self.session.on_field_blur("time.Tmin", "20")
        self.session.on_field_blur("time.Tmax", "40")
        energy = self.session.energy
        self.assertAlmostEqual(energy.min, 8.33, places=6)
        self.assertAlmostEqual(energy.max, 16.67, places=6)

    def test_time_fields_are_independent(self):
        self.assertEqual(self.session.field("time.Tmin").raw_text, "")
        blur = self.session.on_field_blur("time.Tmax", "20")
        self.assertFalse(blur.accepted)
        self.assertEqual(blur.error_message, "Max must be ≥ Nominal (30)")


class TestDefineByTimeSession(unittest.TestCase):
    """Define-by-time page and its solve path lock."""

    def setUp(self):
        self.session = DefineByTimeSession()

    def test_initial_state(self):
        self.assertIsNone(self.session.path)
        self.assertEqual(self.session.visible_sections(), ("time",))
        self.assertTrue(self.session.output.is_absent)
        self.assertEqual(self.session.field("pack.N").raw_text, "")

    def test_entries_before_run_time_do_not_lock(self):
        self.session.on_field_blur("load0.L", "10")
        self.assertIsNone(self.session.path)
        self.assertEqual(self.session.visible_sections(), ("time",))

    def test_run_time_reveals_sections(self):
        self.session.on_field_blur("time.T", "60")
        self.assertEqual(self.session.field("time.Tmin").raw_text, "60")
        self.assertIsNone(self.session.path)
        self.assertEqual(self.session.visible_sections(),
                         ("time", "cells", "capacity", "load"))

    def test_load_entry_locks_via_load(self):
        self.session.on_field_blur("time.T", "60")
        self.session.on_field_blur("load0.L", "10")
        self.assertEqual(self.session.path, SolvePath.VIA_LOAD)
        self.assertEqual(self.session.visible_sections(), ("time", "cells", "load"))
        self.assertAlmostEqual(self.session.output.nominal, 10.0, places=6)

        # Capacity entries are ignored once locked
        self.session.on_field_blur("pack.C", "2000")
        self.assertEqual(self.session.path, SolvePath.VIA_LOAD)
        self.assertNotIn("C", self.session.results)
        self.assertAlmostEqual(self.session.output.nominal, 10.0, places=6)

        self.session.on_field_blur("pack.N", "2")
        capacity = self.session.results["C"]
        self.assertEqual(self.session.path, SolvePath.VIA_LOAD)
        self.assertEqual(capacity.nominal, 1389.0)
        self.assertIs(self.session.output, capacity)

        self.session.reset()
        self.assertIsNone(self.session.path)
        self.assertEqual(self.session.visible_sections(), ("time",))

    def test_cell_count_locks_via_energy(self):
        self.session.on_field_blur("time.T", "30")
        self.session.on_field_blur("pack.N", "4")
        self.assertEqual(self.session.path, SolvePath.VIA_ENERGY)

        self.session.on_field_blur("load0.L", "20")
        self.assertEqual(self.session.path, SolvePath.VIA_ENERGY)
        self.assertTrue(self.session.output.is_absent)

    def test_pack_entry_locks_via_energy(self):
        self.assertEqual(path_for_field("pack.N"), SolvePath.VIA_ENERGY)
        self.assertEqual(path_for_field("pack.Cmax"), SolvePath.VIA_ENERGY)
        self.assertEqual(path_for_field("load2.Lmin"), SolvePath.VIA_LOAD)
        self.assertIsNone(path_for_field("time.T"))

        self.session.on_field_blur("time.T", "60")
        self.session.on_field_blur("pack.C", "2000")
        self.assertEqual(self.session.path, SolvePath.VIA_ENERGY)
        self.assertEqual(self.session.visible_sections(), ("time", "cells", "capacity"))
        self.assertTrue(self.session.output.is_absent)

        self.session.on_field_blur("pack.N", "7")
        self.assertAlmostEqual(self.session.results["L"].nominal, 50.4, places=6)

        self.session.on_field_blur("time.Tmin", "50")
        self.assertAlmostEqual(self.session.results["L"].max, 60.5, places=6)

        self.session.on_field_blur("load0.L", "5")
        self.assertEqual(self.session.path, SolvePath.VIA_ENERGY)
        self.assertAlmostEqual(self.session.output.nominal, 50.4, places=6)

    def test_capacity_inputs_hidden_on_load_path(self):
        self.session.on_field_blur("time.T", "60")
        self.session.on_field_blur("load0.L", "10")
        visible = self.session.visible_sections()
        shown = {
            f.field_id
            for group in self.session.groups.values()
            for f in group.fields
            if section_of(f.field_id) in visible
        }
        self.assertIn("pack.N", shown)
        self.assertIn("load0.Lmax", shown)
        self.assertTrue(shown.isdisjoint({"pack.C", "pack.Cmin", "pack.Cmax"}))

        self.session.reset()
        self.session.on_field_blur("time.T", "60")
        self.session.on_field_blur("pack.N", "4")
        self.assertEqual(section_of("pack.Cmax"), "capacity")
        self.assertNotIn(section_of("load0.L"), self.session.visible_sections())
        self.assertIn(section_of("pack.N"), self.session.visible_sections())

    def test_invalid_entry_does_not_lock(self):
        self.session.on_field_blur("time.T", "60")
        blur = self.session.on_field_blur("load0.L", "abc")
        self.assertFalse(blur.accepted)
        self.assertIsNone(self.session.path)

    def test_reset_group_unlocks(self):
        self.session.on_field_blur("time.T", "60")
        self.session.on_field_blur("pack.C", "2000")
        self.assertEqual(self.session.path, SolvePath.VIA_ENERGY)

        self.session.reset_group("pack")
        self.assertIsNone(self.session.path)
        self.assertEqual(len(self.session.visible_sections()), 4)

        self.session.reset_group("time")
        self.assertEqual(self.session.visible_sections(), ("time",))


class TestTraceAndPlots(unittest.TestCase):
    """Calculation trace and figures."""

    def setUp(self):
        set_debugger(None)
        self.session = RunTimeSession()
        enter_loads(self.session, L="10", Lmin="8", Lmax="12")

    def tearDown(self):
        set_debugger(None)
        plt.close("all")

    def test_trace_session(self):
        debugger = trace_session(self.session)
        self.assertEqual(len(debugger.find_steps_by_category("Solve")), 2)
        self.assertAlmostEqual(debugger.find_step_by_result("T").result, 302.4, places=6)
        self.assertIn("RUN TIME CALCULATOR TRACE", debugger.get_report())
        self.assertIsNone(current_debugger())

    def test_trace_enabled_records_latest_blur(self):
        session = RunTimeSession(RuntimeCalculatorConfig(trace_enabled=True))
        session.on_field_blur("load0.L", "10")
        steps = session.debugger.find_steps_by_category("Derivation")
        self.assertTrue(any(s.result_name == "load0.Lmin" for s in steps))
        self.assertIsNone(current_debugger())

        for text in ("11", "12", "13"):
            session.on_field_blur("load0.L", text)
        self.assertEqual(len(session.debugger.sections), 1)
        self.assertEqual(session.debugger.metadata["field"], "load0.L")
        self.assertEqual(len(session.debugger.find_steps_by_category("Solve")), 2)
        self.assertIsNotNone(session.debugger.finished)

    def test_untraced_session_leaves_other_traces_alone(self):
        traced = RunTimeSession(RuntimeCalculatorConfig(trace_enabled=True))
        traced.on_field_blur("load0.L", "10")
        recorded = len(traced.debugger.steps)

        self.assertIsNone(self.session.debugger)
        self.session.on_field_blur("load0.L", "20")
        self.assertEqual(len(traced.debugger.steps), recorded)
        self.assertIsNone(current_debugger())

    def test_global_debugger_records_blur(self):
        debugger = get_debugger()
        self.assertIs(current_debugger(), debugger)
        self.session.on_field_blur("load0.L", "10")
        self.assertEqual(len(debugger.find_steps_by_category("Solve")), 2)
        self.assertAlmostEqual(debugger.find_step_by_result("T").result[0], 302.4, places=6)

    def test_plot_session(self):
        fig = RangePlotter().plot_session(self.session)
        self.assertIsInstance(fig, Figure)
        self.assertEqual(len(fig.axes), 2)

    def test_plot_candidates(self):
        fig = RangePlotter().plot_candidates(
            Relation.RUN_TIME, QuantityTriple(50.4), QuantityTriple(10, 8, 12))
        self.assertIsInstance(fig, Figure)

    def test_plot_absent_result(self):
        fig = RangePlotter().plot_session(DefineByTimeSession())
        self.assertEqual(len(fig.axes), 1)


def run_validation():
    """Run session tests and print summary."""
    print("=" * 60)
    print("Run Time Calculator Session Validation")
    print("=" * 60)
    print()

    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestRunTimeSession))
    suite.addTests(loader.loadTestsFromTestCase(TestRequiredEnergySession))
    suite.addTests(loader.loadTestsFromTestCase(TestDefineByTimeSession))
    suite.addTests(loader.loadTestsFromTestCase(TestTraceAndPlots))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    print()
    print("=" * 60)
    if result.wasSuccessful():
        print("All session tests PASSED")
    else:
        print(f"FAILED: {len(result.failures)} failures, {len(result.errors)} errors")
    print("=" * 60)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_validation()
    sys.exit(0 if success else 1)
