"""Tests for minisheet.calc arithmetic evaluation."""

from __future__ import annotations

import math

import pytest

from minisheet.calc._evaluator import FormulaError, check_alphabet, evaluate


class TestArithmetic:
    @pytest.mark.parametrize(
        ("expr", "expected"),
        [
            ("1+2", 3),
            ("(5)*(3)+2", 17),
            ("2+3*4", 14),
            ("(2+3)*4", 20),
            ("10-4-3", 3),
            ("8/2/2", 2),
            ("8/2*4", 16),
            ("2*3-4/2+1", 5),
            ("  7  ", 7),
        ],
    )
    def test_precedence_and_associativity(self, expr: str, expected: int) -> None:
        assert evaluate(expr) == expected

    def test_integral_result_is_int(self) -> None:
        result = evaluate("6/3")
        assert result == 2
        assert isinstance(result, int)

    def test_fractional_result_is_float(self) -> None:
        assert evaluate("1/4") == 0.25
        assert evaluate(".5+1.") == 1.5

    def test_unary_minus(self) -> None:
        assert evaluate("-3") == -3
        assert evaluate("2*-3") == -6
        assert evaluate("1 - -2") == 3
        assert evaluate("(-5)*(2)") == -10
        assert evaluate("-(2+3)*2") == -10

    def test_unary_plus(self) -> None:
        assert evaluate("+4-+1") == 3


class TestDivisionByZero:
    def test_positive_over_zero(self) -> None:
        assert evaluate("1/0") == math.inf

    def test_negative_over_zero(self) -> None:
        assert evaluate("-1/0") == -math.inf

    def test_zero_over_zero(self) -> None:
        assert math.isnan(evaluate("0/0"))


class TestAlphabet:
    def test_letters_rejected(self) -> None:
        with pytest.raises(FormulaError, match="Invalid formula"):
            evaluate("DROP TABLE")

    def test_unresolved_reference_rejected(self) -> None:
        with pytest.raises(FormulaError, match="Invalid formula"):
            check_alphabet("(1)+Z9")

    def test_empty_rejected(self) -> None:
        with pytest.raises(FormulaError, match="Invalid formula"):
            evaluate("")

    def test_other_operators_rejected(self) -> None:
        with pytest.raises(FormulaError, match="Invalid formula"):
            evaluate("2^3")

    def test_arithmetic_characters_accepted(self) -> None:
        check_alphabet(" (1.5 + 2) * 3 / 4 - 5 ")


class TestMalformed:
    @pytest.mark.parametrize(
        "expr",
        ["(1+2", "1+2)", ")(", "()", "2+", "*2", "2*", "(5)2", "2(5)", "1 2", "1.2.3", "-"],
    )
    def test_raises_formula_error(self, expr: str) -> None:
        with pytest.raises(FormulaError):
            evaluate(expr)

    def test_unbalanced_message(self) -> None:
        with pytest.raises(FormulaError, match="Unbalanced parentheses"):
            evaluate("((1)")

    def test_formula_error_is_value_error(self) -> None:
        assert issubclass(FormulaError, ValueError)
