"""Unit tests for formula module."""

import pytest

from screen_builder.formula import (
    BinaryOp,
    FormulaError,
    Negate,
    Number,
    Reference,
    evaluate_formula,
    parse_formula,
    tokenize,
)


class TestTokenize:
    """Tests for the tokenizer."""

    @pytest.mark.unit
    def test_token_kinds(self):
        kinds = [t.kind for t in tokenize("(qty + 1.5) * {unit-price}")]
        assert kinds == [
            "LPAREN",
            "REF",
            "OP",
            "NUMBER",
            "RPAREN",
            "OP",
            "REF",
            "END",
        ]

    @pytest.mark.unit
    def test_braced_reference_name(self):
        """Braces are stripped from reference names."""
        tokens = tokenize("{ net amount }")
        assert tokens[0].text == "net amount"

    @pytest.mark.unit
    @pytest.mark.parametrize("formula", ["a ; b", "__import__('os')", "a % 2", "a ** 2"])
    def test_rejects_non_arithmetic(self, formula):
        """Anything beyond the arithmetic grammar fails."""
        with pytest.raises(FormulaError):
            parse_formula(formula)


class TestParse:
    """Tests for operator precedence and structure."""

    @pytest.mark.unit
    def test_precedence(self):
        """Multiplication binds tighter than addition."""
        formula = parse_formula("a + b * 2")
        assert formula.expression == BinaryOp(
            "+", Reference("a"), BinaryOp("*", Reference("b"), Number(2.0))
        )

    @pytest.mark.unit
    def test_left_associative(self):
        assert evaluate_formula("10 - 4 - 3", {}) == 3
        assert evaluate_formula("16 / 4 / 2", {}) == 2

    @pytest.mark.unit
    def test_unary_minus(self):
        assert parse_formula("-a").expression == Negate(Reference("a"))
        assert evaluate_formula("--3", {}) == 3
        assert evaluate_formula("2 * -3", {}) == -6

    @pytest.mark.unit
    def test_references(self):
        assert parse_formula("(a + b) * a - {c-d}").references == {"a", "b", "c-d"}

    @pytest.mark.unit
    @pytest.mark.parametrize("formula", ["", "   ", "(a + b", "a +", "a b", ")"])
    def test_syntax_errors(self, formula):
        with pytest.raises(FormulaError):
            parse_formula(formula)


class TestEvaluate:
    """Tests for evaluating against row cells."""

    @pytest.mark.unit
    def test_cells_as_strings(self):
        """Numeric strings are read as numbers."""
        assert evaluate_formula("qty * price", {"qty": "2", "price": 4.5}) == 9.0

    @pytest.mark.unit
    def test_empty_cells_are_zero(self):
        assert evaluate_formula("a + b", {"a": "", "b": None}) == 0

    @pytest.mark.unit
    def test_parentheses(self):
        assert evaluate_formula("(a + b) * 2", {"a": 1, "b": 2}) == 6

    @pytest.mark.unit
    def test_unknown_column(self):
        with pytest.raises(FormulaError, match="Unknown column"):
            evaluate_formula("a + missing", {"a": 1})

    @pytest.mark.unit
    def test_non_numeric_cell(self):
        with pytest.raises(FormulaError, match="not numeric"):
            evaluate_formula("a * 2", {"a": "abc"})

    @pytest.mark.unit
    def test_division_by_zero(self):
        with pytest.raises(FormulaError, match="Division by zero"):
            evaluate_formula("a / b", {"a": 1, "b": 0})

    @pytest.mark.unit
    def test_error_carries_formula(self):
        with pytest.raises(FormulaError) as exc_info:
            parse_formula("a +* b")
        assert exc_info.value.formula == "a +* b"
        assert exc_info.value.position is not None
