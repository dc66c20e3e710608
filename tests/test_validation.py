"""
Validation and Ownership Tests
==============================

Verifies field validation rules (number, range, precision, anchor-relative
bounds), the group error surface and the ownership resolver's derivation
tables.

Test Methodology:
- Every rule is checked with its exact user-facing message
- Derivations are checked on the text written back into the fields
- Resolver idempotence is checked by comparing whole group records
"""

import sys
from pathlib import Path
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.runtime_calculator import RuntimeCalculatorConfig
from src.runtime_calculator.calculations.validation import (
    ErrorKind,
    check_field,
    capacity_bounds,
    validate_group,
)
from src.runtime_calculator.calculations.ownership import resolve
from src.runtime_calculator.models.field import (
    make_load_group,
    make_pack_group,
    make_time_group,
)
from src.runtime_calculator.models.quantity import (
    PrecisionRule,
    QuantityTriple,
    format_number,
    parse_number,
    round_half_up,
)


def edit(group, **texts):
    """Apply user edits to a group, then validate and resolve it."""
    for key, text in texts.items():
        group = group.with_field(group.field(key).edited(text))
    return resolve(validate_group(group))


class TestQuantityHelpers(unittest.TestCase):
    """Rounding, formatting and parsing helpers."""

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.25, 1), 2.3)
        self.assertEqual(round_half_up(25.5), 26.0)
        self.assertEqual(round_half_up(2.75, 1), 2.8)

    def test_format_number_drops_trailing_zeros(self):
        self.assertEqual(format_number(10.0, 1), "10")
        self.assertEqual(format_number(2.5, 2), "2.5")
        self.assertEqual(format_number(0.1, 6), "0.1")

    def test_parse_number(self):
        self.assertEqual(parse_number(" 12.5 "), 12.5)
        self.assertIsNone(parse_number(""))
        self.assertIsNone(parse_number("abc"))
        self.assertIsNone(parse_number("nan"))
        self.assertIsNone(parse_number("inf"))
        self.assertIsNone(parse_number("1_000"))

    def test_load_precision_rule(self):
        rule = PrecisionRule.LOAD_STEPPED
        self.assertTrue(rule.matches("7.5", 7.5))
        self.assertTrue(rule.matches("7.0", 7.0))
        self.assertFalse(rule.matches("7.25", 7.25))
        self.assertTrue(rule.matches("25", 25.0))
        self.assertFalse(rule.matches("25.0", 25.0))
        self.assertEqual(rule.format(25.5), "26")
        self.assertEqual(rule.format(12.75), "12.8")

    def test_triple_consistency(self):
        self.assertTrue(QuantityTriple(10, 8, 12).is_consistent())
        self.assertFalse(QuantityTriple(10, 11, 12).is_consistent())
        self.assertEqual(QuantityTriple(10, None, 12).values(), (10, 12))
        self.assertTrue(QuantityTriple().is_absent)


class TestFieldRules(unittest.TestCase):
    """Single-field checks with their messages."""

    def assertFails(self, key, text, kind, message):
        outcome = check_field(key, text)
        self.assertFalse(outcome.is_valid, f"{key}={text!r} should fail")
        self.assertEqual(outcome.error_kind, kind)
        self.assertEqual(outcome.message, message)

    def test_empty_is_valid_and_absent(self):
        for key in ("N", "C", "Cmin", "L", "Lmax", "T", "Tmin"):
            outcome = check_field(key, "   ")
            self.assertTrue(outcome.is_absent)

    def test_cells(self):
        self.assertEqual(check_field("N", "7").value, 7.0)
        self.assertFails("N", "abc", ErrorKind.NOT_A_NUMBER, "Cells must be a whole number")
        self.assertFails("N", "7.5", ErrorKind.WRONG_PRECISION, "Cells must be a whole number")
        self.assertFails("N", "9", ErrorKind.OUT_OF_RANGE, "Cells must be 1 – 8")
        self.assertFails("N", "0", ErrorKind.OUT_OF_RANGE, "Cells must be 1 – 8")

    def test_capacity(self):
        self.assertEqual(check_field("C", "2000.0").value, 2000.0)
        self.assertFails("C", "50", ErrorKind.OUT_OF_RANGE, "Nominal must be 100 – 8000 mAh")
        self.assertFails("C", "2000.5", ErrorKind.WRONG_PRECISION,
                         "Nominal must be a whole number")
        self.assertFails("Cmin", "x", ErrorKind.NOT_A_NUMBER, "Min must be a whole number")

    def test_load_nominal(self):
        self.assertTrue(check_field("L", "7.0").is_valid)
        self.assertTrue(check_field("L", "20").is_valid)
        self.assertFails("L", "abc", ErrorKind.NOT_A_NUMBER, "Nominal must be a number")
        self.assertFails("L", "0", ErrorKind.OUT_OF_RANGE, "Nominal must be > 0 W")
        self.assertFails("L", "751", ErrorKind.OUT_OF_RANGE, "Nominal must be ≤ 750 W")
        self.assertFails("L", "25.5", ErrorKind.WRONG_PRECISION,
                         "Values > 20 W must be whole numbers")
        self.assertFails("L", "20.5", ErrorKind.WRONG_PRECISION,
                         "Values > 20 W must be whole numbers")
        self.assertFails("L", "7.25", ErrorKind.WRONG_PRECISION,
                         "Values ≤ 20 W: max 1 decimal place")

    def test_load_min_max(self):
        self.assertFails("Lmin", "0.05", ErrorKind.OUT_OF_RANGE, "Min must be ≥ 0.1 W")
        self.assertFails("Lmax", "800", ErrorKind.OUT_OF_RANGE, "Max must be ≤ 750 W")
        self.assertFails("Lmin", "22.5", ErrorKind.WRONG_PRECISION,
                         "Min > 20 W must be a whole number")
        self.assertFails("Lmax", "3.25", ErrorKind.WRONG_PRECISION,
                         "Max ≤ 20 W: max 1 decimal place")

    def test_time(self):
        self.assertTrue(check_field("T", "5.5").is_valid)
        self.assertFails("T", "0.4", ErrorKind.OUT_OF_RANGE, "Nominal must be 0.5 – 100 Min")
        self.assertFails("Tmax", "101", ErrorKind.OUT_OF_RANGE, "Max must be 0.5 – 100 Min")
        self.assertFails("T", "5.25", ErrorKind.WRONG_PRECISION, "Max 1 decimal place")
        self.assertFails("T", "nan", ErrorKind.NOT_A_NUMBER, "Nominal must be a number")
        self.assertFails("Tmin", "abc", ErrorKind.NOT_A_NUMBER, "Min must be a number")


class TestCrossFieldRules(unittest.TestCase):
    """Anchor-relative bounds and the group error surface."""

    def test_capacity_bounds(self):
        self.assertEqual(capacity_bounds(2000), (1000, 2300))
        self.assertEqual(capacity_bounds(101), (51, 116))

    def test_capacity_min_max(self):
        group = edit(make_pack_group(), C="2000", Cmin="900")
        self.assertEqual(group.field("Cmin").error_message, "Min must be ≥ 1000 mAh")

        group = edit(make_pack_group(), C="2000", Cmin="2100")
        self.assertEqual(group.field("Cmin").error_message,
                         "Min must be ≤ 2000 mAh (≤ Nominal)")

        group = edit(make_pack_group(), C="2000", Cmax="2400")
        self.assertEqual(group.field("Cmax").error_message, "Max must be ≤ 2300 mAh")

        group = edit(make_pack_group(), C="2000", Cmax="1900")
        self.assertEqual(group.field("Cmax").error_message,
                         "Max must be ≥ 2000 mAh (≥ Nominal)")

        group = edit(make_pack_group(), C="2000", Cmin="1000", Cmax="2300")
        self.assertEqual(group.error_message, "")

    def test_capacity_band_without_valid_anchor(self):
        group = edit(make_pack_group(), C="50", Cmin="60")
        self.assertEqual(group.field("Cmin").error_message, "")

        group = edit(make_pack_group(), C="50", Cmin="40")
        self.assertEqual(group.field("Cmin").error_message, "Min must be 50 – 9200 mAh")

    def test_load_min_against_nominal_then_max(self):
        group = edit(make_load_group(0), L="10", Lmin="12")
        self.assertEqual(group.field("Lmin").error_message, "Min must be ≤ 10 W (≤ Nominal)")

        group = edit(make_load_group(0), Lmax="10", Lmin="12")
        self.assertEqual(group.field("Lmin").error_message, "Min must be ≤ 10 W (≤ Max)")
        self.assertEqual(group.field("Lmax").error_message, "Max must be ≥ 12 W (≥ Min)")

    def test_load_max_against_nominal(self):
        group = edit(make_load_group(0), L="10", Lmax="8")
        self.assertEqual(group.field("Lmax").error_message, "Max must be ≥ 10 W (≥ Nominal)")

    def test_time_min_max(self):
        group = edit(make_time_group(mutual_seed=False), T="10", Tmin="12")
        self.assertEqual(group.field("Tmin").error_message, "Min must be ≤ Nominal (10)")

        group = edit(make_time_group(mutual_seed=False), T="10.5", Tmax="9")
        self.assertEqual(group.field("Tmax").error_message, "Max must be ≥ Nominal (10.5)")

    def test_invalid_anchor_is_ignored(self):
        group = edit(make_load_group(0), L="800", Lmin="12")
        self.assertEqual(group.field("Lmin").error_message, "")

    def test_error_priority(self):
        group = edit(make_pack_group(), N="9", C="50")
        self.assertEqual(group.error_message, "Cells must be 1 – 8")

        group = edit(make_load_group(0), Lmax="10", Lmin="12")
        self.assertEqual(group.error_message, "Min must be ≤ 10 W (≤ Max)")


class TestOwnershipResolver(unittest.TestCase):
    """Derivation tables, ownership and idempotence."""

    def test_round_trip_derivation(self):
        group = edit(make_load_group(0), Lmin="5", Lmax="15")
        self.assertEqual(group.field("L").raw_text, "10")
        self.assertTrue(group.field("L").derived)
        self.assertFalse(group.field("L").owner)

        group = edit(group, Lmin="")
        self.assertEqual(group.field("L").raw_text, "15")

        group = edit(group, Lmax="")
        self.assertEqual(group.field("L").raw_text, "")
        self.assertEqual(group.field("Lmin").raw_text, "")

    def test_nominal_seeds_min_and_max(self):
        group = edit(make_load_group(0), L="12.5")
        self.assertEqual(group.field("Lmin").raw_text, "12.5")
        self.assertEqual(group.field("Lmax").raw_text, "12.5")
        self.assertEqual(group.field("Lmin").last_valid_text, "12.5")

    def test_owner_never_overwritten(self):
        group = edit(make_load_group(0), Lmin="5", Lmax="15", L="8")
        self.assertEqual(group.field("L").raw_text, "8")
        self.assertTrue(group.field("L").owner)
        self.assertEqual(resolve(group).field("L").raw_text, "8")

    def test_derived_values_use_precision_rule(self):
        group = edit(make_load_group(0), Lmin="21", Lmax="30")
        self.assertEqual(group.field("L").raw_text, "26")

        group = edit(make_load_group(0), Lmin="2", Lmax="3.5")
        self.assertEqual(group.field("L").raw_text, "2.8")

    def test_idempotence(self):
        for texts in ({"Lmin": "5", "Lmax": "15"}, {"L": "10"}, {"Lmax": "7"}, {}):
            group = edit(make_load_group(0), **texts)
            self.assertEqual(resolve(group), group)
            self.assertEqual(resolve(resolve(group)), group)

    def test_capacity_seeding(self):
        group = edit(make_pack_group(), C="2000")
        self.assertEqual(group.field("Cmin").raw_text, "2000")
        self.assertEqual(group.field("Cmax").raw_text, "2000")

        group = edit(group, Cmin="1500")
        group = edit(group, C="1800")
        self.assertEqual(group.field("Cmin").raw_text, "1500")
        self.assertEqual(group.field("Cmax").raw_text, "1800")

        group = edit(group, C="")
        self.assertEqual(group.field("Cmax").raw_text, "")
        self.assertEqual(group.field("Cmin").raw_text, "1500")

    def test_invalid_nominal_clears_seeded_values(self):
        group = edit(make_pack_group(), C="2000")
        group = edit(group, C="50")
        self.assertEqual(group.field("Cmin").raw_text, "")

    def test_capacity_seeds_are_canonical(self):
        group = edit(make_pack_group(), C="2e3")
        self.assertEqual(group.field("C").raw_text, "2e3")
        self.assertEqual(group.field("Cmin").raw_text, "2000")
        self.assertEqual(group.field("Cmax").raw_text, "2000")

        group = edit(make_pack_group(), C="2000.0")
        self.assertEqual(group.field("Cmax").raw_text, "2000")
        self.assertEqual(group.error_message, "")

    def test_unchanged_text_keeps_derived_state(self):
        group = edit(make_load_group(0), Lmin="5")
        derived = group.field("L")
        self.assertEqual(derived.raw_text, "5")

        same = derived.edited("5")
        self.assertIs(same, derived)
        self.assertFalse(same.owner)
        self.assertTrue(same.derived)

        group = edit(group, L="5", Lmax="15")
        self.assertEqual(group.field("L").raw_text, "10")

        typed = derived.edited("6")
        self.assertTrue(typed.owner)
        self.assertFalse(typed.derived)

    def test_mutual_seed(self):
        group = edit(make_time_group(mutual_seed=True), T="10")
        self.assertEqual(group.field("Tmin").raw_text, "10")

        group = edit(group, Tmin="8")
        self.assertEqual(group.field("T").raw_text, "10")
        self.assertEqual(group.field("Tmin").raw_text, "8")

        group = edit(group, T="")
        self.assertEqual(group.field("T").raw_text, "8")
        self.assertFalse(group.field("T").owner)

    def test_independent_group_is_untouched(self):
        group = edit(make_time_group(mutual_seed=False), T="10")
        self.assertEqual(group.field("Tmin").raw_text, "")
        self.assertEqual(group.field("Tmax").raw_text, "")

    def test_invariant_preserved_for_valid_groups(self):
        for texts in ({"L": "10", "Lmin": "8"}, {"Lmin": "5", "Lmax": "15"},
                      {"Lmax": "30"}, {"L": "4", "Lmax": "9"}):
            group = edit(make_load_group(0), **texts)
            self.assertEqual(group.error_message, "")
            self.assertTrue(group.triple().is_consistent(), texts)


class TestConfig(unittest.TestCase):

    def test_default_config_is_valid(self):
        self.assertEqual(RuntimeCalculatorConfig().validate(), (True, ""))

    def test_invalid_config(self):
        valid, message = RuntimeCalculatorConfig(cell_voltage=0).validate()
        self.assertFalse(valid)
        self.assertIn("Cell voltage", message)

        valid, _ = RuntimeCalculatorConfig(max_load_cards=6).validate()
        self.assertFalse(valid)


def run_validation():
    """Run validation tests and print summary."""
    print("=" * 60)
    print("Run Time Calculator Validation Rules")
    print("=" * 60)
    print()

    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    suite.addTests(loader.loadTestsFromTestCase(TestQuantityHelpers))
    suite.addTests(loader.loadTestsFromTestCase(TestFieldRules))
    suite.addTests(loader.loadTestsFromTestCase(TestCrossFieldRules))
    suite.addTests(loader.loadTestsFromTestCase(TestOwnershipResolver))
    suite.addTests(loader.loadTestsFromTestCase(TestConfig))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    print()
    print("=" * 60)
    if result.wasSuccessful():
        print("All validation tests PASSED")
    else:
        print(f"FAILED: {len(result.failures)} failures, {len(result.errors)} errors")
    print("=" * 60)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_validation()
    sys.exit(0 if success else 1)
