"""Sandboxed arithmetic for table formula columns."""

from .lib import (
    BinaryOp,
    Expression,
    Formula,
    FormulaError,
    Negate,
    Number,
    Reference,
    Token,
    evaluate_formula,
    parse_formula,
    tokenize,
)

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
