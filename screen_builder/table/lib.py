"""Row operations for table widgets.

A table widget's value is an ordered list of rows. Each row has an id and
a ``cells`` mapping keyed by column id. All operations return new lists;
rows are never modified in place.

Formula columns are recomputed for a row whenever one of its cells
changes. A formula that fails to evaluate yields 0.
"""

import copy
import logging
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from screen_builder.formula import FormulaError, evaluate_formula
from screen_builder.schema import ColumnType, TableColumn, Widget

logger = logging.getLogger(__name__)

# Used when a table widget does not declare minRows
DEFAULT_MIN_ROWS = 1

TOTAL_COLUMN_TYPES = frozenset({ColumnType.NUMBER, ColumnType.FORMULA})


@dataclass(frozen=True)
class TableRow:
    """One row of a table widget value."""

    id: str
    cells: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "cells": dict(self.cells)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TableRow":
        return cls(id=str(data.get("id") or new_row_id()), cells=dict(data.get("cells") or {}))


def new_row_id() -> str:
    return f"row-{uuid4().hex[:12]}"


def rows_from_value(value: Any) -> list[TableRow]:
    """Read a form-state value as table rows. Anything but a list is empty."""
    if not isinstance(value, list):
        return []
    return [
        item if isinstance(item, TableRow) else TableRow.from_dict(item)
        for item in value
        if isinstance(item, (TableRow, Mapping))
    ]


def rows_to_value(rows: Iterable[TableRow]) -> list[dict[str, Any]]:
    """Convert rows to the JSON form stored in form state."""
    return [row.to_dict() for row in rows]


# =============================================================================
# Numbers
# =============================================================================


_LEADING_FLOAT = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_float(value: Any) -> float:
    """Lenient number parsing: the leading numeric prefix of a string, else NaN."""
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_FLOAT.match(str(value))
    if match is None:
        return math.nan
    return float(match.group(1))


def compute_formulas(
    columns: Sequence[TableColumn], cells: Mapping[str, Any]
) -> dict[str, Any]:
    """Return ``cells`` with every formula column recomputed."""
    result = dict(cells)
    for column in columns:
        if column.type != ColumnType.FORMULA or not column.formula:
            continue
        try:
            result[column.id] = evaluate_formula(column.formula, result)
        except FormulaError as e:
            logger.debug("Formula for column %s failed: %s", column.id, e)
            result[column.id] = 0
    return result


def column_totals(
    columns: Sequence[TableColumn], rows: Iterable[TableRow]
) -> dict[str, float]:
    """Sum number and formula columns. Unparseable cells count as 0."""
    rows = list(rows)
    totals: dict[str, float] = {}
    for column in columns:
        if column.type not in TOTAL_COLUMN_TYPES:
            continue
        total = 0.0
        for row in rows:
            value = parse_float(row.cells.get(column.id))
            total += 0.0 if math.isnan(value) else value
        totals[column.id] = total
    return totals


# =============================================================================
# Row Operations
# =============================================================================


def create_empty_row(
    columns: Sequence[TableColumn], row_id: str | None = None
) -> TableRow:
    """A new row holding each column's default value, or an empty string.

    A fresh random id is used when ``row_id`` is not given.
    """
    cells = {
        column.id: (
            copy.deepcopy(column.default_value)
            if column.default_value is not None
            else ""
        )
        for column in columns
    }
    return TableRow(id=row_id or new_row_id(), cells=cells)


def _min_rows(widget: Widget) -> int:
    return widget.min_rows if widget.min_rows is not None else DEFAULT_MIN_ROWS


def padding_row_id(widget: Widget, position: int) -> str:
    """Stable id of the padding row at 1-based ``position`` in a table."""
    return f"{widget.id}-row-{position}"


def ensure_min_rows(widget: Widget, rows: Sequence[TableRow]) -> list[TableRow]:
    """Pad ``rows`` with empty rows up to the widget's minimum.

    Padding ids depend only on the widget and row position, so padding the
    same rows twice gives equal results.
    """
    result = list(rows)
    taken = {row.id for row in result}
    position = len(result)
    while len(result) < _min_rows(widget):
        position += 1
        row_id = padding_row_id(widget, position)
        while row_id in taken:
            position += 1
            row_id = padding_row_id(widget, position)
        taken.add(row_id)
        result.append(create_empty_row(widget.columns, row_id=row_id))
    return result


def can_add_row(widget: Widget, rows: Sequence[TableRow]) -> bool:
    if not widget.allow_add_rows:
        return False
    return not (widget.max_rows and len(rows) >= widget.max_rows)


def can_delete_row(widget: Widget, rows: Sequence[TableRow]) -> bool:
    if not widget.allow_delete_rows:
        return False
    return len(rows) > _min_rows(widget)


def add_row(widget: Widget, rows: Sequence[TableRow]) -> list[TableRow]:
    """Append an empty row unless the widget's maximum is reached."""
    if not can_add_row(widget, rows):
        logger.debug("Row limit reached for table %s", widget.id)
        return list(rows)
    return [*rows, create_empty_row(widget.columns)]


def delete_row(widget: Widget, rows: Sequence[TableRow], row_id: str) -> list[TableRow]:
    """Remove a row unless the widget's minimum would be violated.

    Raises:
        KeyError: If no row has ``row_id``.
    """
    if row_id not in {row.id for row in rows}:
        raise KeyError(f"Unknown row '{row_id}'")
    if not can_delete_row(widget, rows):
        logger.debug("Minimum rows reached for table %s", widget.id)
        return list(rows)
    return [row for row in rows if row.id != row_id]


def update_cell(
    widget: Widget,
    rows: Sequence[TableRow],
    row_id: str,
    column_id: str,
    value: Any,
) -> list[TableRow]:
    """Set one cell and recompute that row's formula columns.

    Raises:
        KeyError: If the row or column does not exist.
    """
    if column_id not in {column.id for column in widget.columns}:
        raise KeyError(f"Unknown column '{column_id}'")

    result: list[TableRow] = []
    found = False
    for row in rows:
        if row.id == row_id:
            found = True
            cells = {**row.cells, column_id: value}
            row = TableRow(id=row.id, cells=compute_formulas(widget.columns, cells))
        result.append(row)
    if not found:
        raise KeyError(f"Unknown row '{row_id}'")
    return result


# =============================================================================
# Cell Validation
# =============================================================================


def row_errors(widget: Widget, rows: Sequence[TableRow]) -> list[str]:
    """Check required cells and column bounds. Row numbers are 1-based."""
    errors: list[str] = []
    for number, row in enumerate(rows, start=1):
        for column in widget.columns:
            value = row.cells.get(column.id)
            header = column.header or column.id
            if value is None or value == "":
                if column.required:
                    errors.append(f"Row {number}: {header} is required")
                continue

            rules = column.validation
            if rules is None:
                continue
            if rules.minimum is not None or rules.maximum is not None:
                number_value = parse_float(value)
                if math.isnan(number_value):
                    errors.append(f"Row {number}: {header} must be a number")
                    continue
                if rules.minimum is not None and number_value < rules.minimum:
                    errors.append(
                        f"Row {number}: {header} must be at least {rules.minimum:g}"
                    )
                if rules.maximum is not None and number_value > rules.maximum:
                    errors.append(
                        f"Row {number}: {header} must be at most {rules.maximum:g}"
                    )
            if rules.pattern:
                try:
                    matched = re.search(rules.pattern, str(value)) is not None
                except re.error:
                    logger.warning("Invalid pattern on column %s", column.id)
                    continue
                if not matched:
                    errors.append(f"Row {number}: {header} has an invalid format")
    return errors


__all__ = [
    "DEFAULT_MIN_ROWS",
    "TableRow",
    "new_row_id",
    "rows_from_value",
    "rows_to_value",
    "parse_float",
    "compute_formulas",
    "column_totals",
    "create_empty_row",
    "padding_row_id",
    "ensure_min_rows",
    "can_add_row",
    "can_delete_row",
    "add_row",
    "delete_row",
    "update_cell",
    "row_errors",
]
