import unittest

from evaluator import MAX_NESTING, evaluate_equation, format_literal, substitute, validate_equation
from models import EvaluationError


class TestEquationEvaluator(unittest.TestCase):

    def test_01_operator_precedence(self):
        """* and / bind tighter than + and -, parentheses override."""
        self.assertAlmostEqual(evaluate_equation("2 + 3 * 4", 1), 14.0)
        self.assertAlmostEqual(evaluate_equation("(2 + 3) * 4", 1), 20.0)
        self.assertAlmostEqual(evaluate_equation("10 / 4", 1), 2.5)

    def test_02_left_associativity(self):
        self.assertAlmostEqual(evaluate_equation("8 / 2 / 2", 1), 2.0)
        self.assertAlmostEqual(evaluate_equation("2 - 3 - 4", 1), -5.0)

    def test_03_unary_sign(self):
        self.assertAlmostEqual(evaluate_equation("-W + 5", 2), 3.0)
        self.assertAlmostEqual(evaluate_equation("+W * -2", 3), -6.0)
        self.assertAlmostEqual(evaluate_equation("-(W - 10)", 4), 6.0)

    def test_04_table_formulas(self):
        self.assertAlmostEqual(evaluate_equation("0.1 * W", 10), 1.0)
        self.assertAlmostEqual(evaluate_equation("(0.6 * W) / 4", 10), 1.5)
        self.assertAlmostEqual(evaluate_equation("(15 * W) / 10", 12.5), 18.75)
        self.assertAlmostEqual(evaluate_equation("D / 50", 10, dose=100), 2.0)
        self.assertAlmostEqual(evaluate_equation("D * 4", 10, dose=0.25), 1.0)

    def test_05_decimal_literal_forms(self):
        self.assertAlmostEqual(evaluate_equation(".5 * W", 4), 2.0)
        self.assertAlmostEqual(evaluate_equation("2. * W", 4), 8.0)

    def test_06_unresolved_dose_symbol(self):
        with self.assertRaises(EvaluationError) as ctx:
            evaluate_equation("D / 50", 10)
        self.assertIn("D", str(ctx.exception))

    def test_07_division_by_zero(self):
        with self.assertRaises(EvaluationError):
            evaluate_equation("W / 0", 10)
        with self.assertRaises(EvaluationError):
            evaluate_equation("W / (W - W)", 10)

    def test_08_rejects_anything_but_arithmetic(self):
        """Code, exponentiation, scientific notation and stray symbols never evaluate."""
        bad = [
            "__import__('os').system('true')",
            "W ** 2",
            "1e3 * W",
            "X * 2",
            "2W",
            "W +",
            "(W * 2",
            "W * 2)",
            "",
            "   ",
            "W; 1",
        ]
        for equation in bad:
            with self.subTest(equation=equation):
                with self.assertRaises(EvaluationError):
                    evaluate_equation(equation, 10)

    def test_09_invalid_bindings(self):
        for weight in (0, -1, float("nan"), float("inf"), True, "10"):
            with self.subTest(weight=weight):
                with self.assertRaises(EvaluationError):
                    evaluate_equation("0.1 * W", weight)
        with self.assertRaises(EvaluationError):
            evaluate_equation("D / 50", 10, dose=-100)

    def test_10_evaluation_error_is_value_error(self):
        with self.assertRaises(ValueError):
            evaluate_equation("W / 0", 10)

    def test_11_pure(self):
        """Same inputs, same output."""
        first = evaluate_equation("(0.15 * W) / 2", 17.3)
        second = evaluate_equation("(0.15 * W) / 2", 17.3)
        self.assertEqual(first, second)

    def test_12_substitute(self):
        self.assertEqual(substitute("(0.6 * W) / 4", {"W": 12.5}), "(0.6 * 12.5) / 4")
        self.assertEqual(substitute("0.1 * W", {"W": 10.0}), "0.1 * 10")
        self.assertEqual(substitute("D / 50", {"W": 10.0, "D": 100.0}), "100 / 50")
        self.assertEqual(substitute("D / 50", {"W": 10.0}), "D / 50")

    def test_13_validate_equation(self):
        ok, value = validate_equation("0.1 * W", 10)
        self.assertTrue(ok)
        self.assertAlmostEqual(value, 1.0)

        ok, message = validate_equation("0.1 * W +", 10)
        self.assertFalse(ok)
        self.assertIsInstance(message, str)

    def test_14_nesting_limit(self):
        self.assertAlmostEqual(evaluate_equation("(" * MAX_NESTING + "W" + ")" * MAX_NESTING, 10), 10.0)
        for depth in (MAX_NESTING + 1, 3000):
            with self.subTest(depth=depth):
                with self.assertRaises(EvaluationError):
                    evaluate_equation("(" * depth + "W" + ")" * depth, 10)

    def test_15_long_sign_chain(self):
        """Sign runs are read in a loop, at any length."""
        self.assertAlmostEqual(evaluate_equation("-" * 3000 + "W", 10), 10.0)
        self.assertAlmostEqual(evaluate_equation("-" * 3001 + "W", 10), -10.0)
        self.assertAlmostEqual(evaluate_equation("+-+W", 10), -10.0)

    def test_16_unused_dose_is_not_checked(self):
        self.assertAlmostEqual(evaluate_equation("0.1 * W", 10, dose=-1), 1.0)
        self.assertAlmostEqual(evaluate_equation("0.1 * W", 10, dose=0), 1.0)
        with self.assertRaises(EvaluationError):
            evaluate_equation("D / 50", 10, dose=0)

    def test_17_literal_without_float_noise(self):
        self.assertEqual(format_literal(0.1 + 0.2), "0.3")
        self.assertEqual(format_literal(12.5), "12.5")
        self.assertEqual(substitute("0.1 * W", {"W": 0.1 + 0.2}), "0.1 * 0.3")


if __name__ == '__main__':
    unittest.main()
