"""Arithmetic expressions for table formula columns.

A formula combines numeric literals and references to other cells of the
same row with ``+ - * /``, unary minus and parentheses::

    quantity * unitPrice
    (gross - {net-amount}) / 2

Plain identifiers name a column id directly. Braces allow ids that are not
valid identifiers (hyphens, spaces). Formulas are tokenized, parsed into an
expression tree and interpreted; nothing is ever executed as code.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

# =============================================================================
# Errors
# =============================================================================


class FormulaError(Exception):
    """Raised when a formula cannot be parsed or evaluated.

    Attributes:
        formula: The formula text.
        position: Character offset of the problem, if known.
    """

    def __init__(self, message: str, formula: str = "", position: int | None = None):
        self.formula = formula
        self.position = position
        super().__init__(message)


# =============================================================================
# Tokenizer
# =============================================================================


@dataclass(frozen=True)
class Token:
    kind: str  # NUMBER, REF, OP, LPAREN, RPAREN, END
    text: str
    position: int


_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+)
    | (?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    | (?P<braced>\{[^{}]+\})
    | (?P<name>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<op>[-+*/])
    | (?P<lparen>\()
    | (?P<rparen>\))
    """,
    re.VERBOSE,
)


def tokenize(formula: str) -> list[Token]:
    """Split a formula into tokens, ending with an END token.

    Raises:
        FormulaError: On a character that starts no token.
    """
    tokens: list[Token] = []
    position = 0
    while position < len(formula):
        match = _TOKEN_RE.match(formula, position)
        if match is None:
            raise FormulaError(
                f"Unexpected character {formula[position]!r} at {position}",
                formula,
                position,
            )
        kind = match.lastgroup
        text = match.group()
        if kind == "number":
            tokens.append(Token("NUMBER", text, position))
        elif kind == "braced":
            tokens.append(Token("REF", text[1:-1].strip(), position))
        elif kind == "name":
            tokens.append(Token("REF", text, position))
        elif kind == "op":
            tokens.append(Token("OP", text, position))
        elif kind == "lparen":
            tokens.append(Token("LPAREN", text, position))
        elif kind == "rparen":
            tokens.append(Token("RPAREN", text, position))
        position = match.end()
    tokens.append(Token("END", "", len(formula)))
    return tokens


# =============================================================================
# Expression Tree
# =============================================================================


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Reference:
    name: str


@dataclass(frozen=True)
class Negate:
    operand: "Expression"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Expression"
    right: "Expression"


Expression = Number | Reference | Negate | BinaryOp


class _Parser:
    """Recursive-descent parser.

    Grammar:
        expr   := term (("+" | "-") term)*
        term   := unary (("*" | "/") unary)*
        unary  := "-" unary | "+" unary | atom
        atom   := NUMBER | REF | "(" expr ")"
    """

    def __init__(self, formula: str):
        self.formula = formula
        self.tokens = tokenize(formula)
        self.index = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.index]

    def _advance(self) -> Token:
        token = self.tokens[self.index]
        self.index += 1
        return token

    def _error(self, message: str) -> FormulaError:
        return FormulaError(message, self.formula, self.current.position)

    def parse(self) -> Expression:
        if self.current.kind == "END":
            raise self._error("Empty formula")
        expression = self._expr()
        if self.current.kind != "END":
            raise self._error(
                f"Unexpected {self.current.text!r} at {self.current.position}"
            )
        return expression

    def _expr(self) -> Expression:
        node = self._term()
        while self.current.kind == "OP" and self.current.text in "+-":
            op = self._advance().text
            node = BinaryOp(op, node, self._term())
        return node

    def _term(self) -> Expression:
        node = self._unary()
        while self.current.kind == "OP" and self.current.text in "*/":
            op = self._advance().text
            node = BinaryOp(op, node, self._unary())
        return node

    def _unary(self) -> Expression:
        if self.current.kind == "OP" and self.current.text in "+-":
            op = self._advance().text
            operand = self._unary()
            return Negate(operand) if op == "-" else operand
        return self._atom()

    def _atom(self) -> Expression:
        token = self.current
        if token.kind == "NUMBER":
            self._advance()
            return Number(float(token.text))
        if token.kind == "REF":
            self._advance()
            return Reference(token.text)
        if token.kind == "LPAREN":
            self._advance()
            node = self._expr()
            if self.current.kind != "RPAREN":
                raise self._error("Missing closing parenthesis")
            self._advance()
            return node
        if token.kind == "END":
            raise self._error("Unexpected end of formula")
        raise self._error(f"Unexpected {token.text!r} at {token.position}")


# =============================================================================
# Evaluation
# =============================================================================


def _references(node: Expression) -> set[str]:
    if isinstance(node, Reference):
        return {node.name}
    if isinstance(node, Negate):
        return _references(node.operand)
    if isinstance(node, BinaryOp):
        return _references(node.left) | _references(node.right)
    return set()


def _cell_number(name: str, value: Any, formula: str) -> float:
    # Empty cells count as zero
    if value is None or value == "" or value is False:
        return 0.0
    if isinstance(value, bool):
        return 1.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        raise FormulaError(
            f"Cell '{name}' is not numeric: {value!r}", formula
        ) from None


@dataclass(frozen=True)
class Formula:
    """A parsed formula, reusable across rows."""

    text: str
    expression: Expression

    @property
    def references(self) -> set[str]:
        """Column ids the formula reads."""
        return _references(self.expression)

    def evaluate(self, cells: Mapping[str, Any]) -> float:
        """Evaluate against one row's cells.

        Raises:
            FormulaError: On an unknown reference, a non-numeric cell,
                division by zero or a non-finite result.
        """
        result = self._eval(self.expression, cells)
        if not math.isfinite(result):
            raise FormulaError("Formula result is not finite", self.text)
        return result

    def _eval(self, node: Expression, cells: Mapping[str, Any]) -> float:
        if isinstance(node, Number):
            return node.value
        if isinstance(node, Reference):
            if node.name not in cells:
                raise FormulaError(f"Unknown column '{node.name}'", self.text)
            return _cell_number(node.name, cells[node.name], self.text)
        if isinstance(node, Negate):
            return -self._eval(node.operand, cells)

        left = self._eval(node.left, cells)
        right = self._eval(node.right, cells)
        if node.op == "+":
            return left + right
        if node.op == "-":
            return left - right
        if node.op == "*":
            return left * right
        if right == 0:
            raise FormulaError("Division by zero", self.text)
        return left / right


@lru_cache(maxsize=256)
def parse_formula(formula: str) -> Formula:
    """Parse formula text into a reusable Formula.

    Raises:
        FormulaError: On a syntax error.
    """
    return Formula(text=formula, expression=_Parser(formula).parse())


def evaluate_formula(formula: str, cells: Mapping[str, Any]) -> float:
    """Parse and evaluate a formula against one row's cells.

    Example:
        >>> evaluate_formula("qty * price", {"qty": "2", "price": 4.5})
        9.0
    """
    return parse_formula(formula).evaluate(cells)


__all__ = [
    "FormulaError",
    "Token",
    "Formula",
    "Number",
    "Reference",
    "Negate",
    "BinaryOp",
    "Expression",
    "tokenize",
    "parse_formula",
    "evaluate_formula",
]
