"""Table widget rows, formula recomputation and totals."""

from .lib import (
    DEFAULT_MIN_ROWS,
    TableRow,
    add_row,
    can_add_row,
    can_delete_row,
    column_totals,
    compute_formulas,
    create_empty_row,
    delete_row,
    ensure_min_rows,
    new_row_id,
    padding_row_id,
    parse_float,
    row_errors,
    rows_from_value,
    rows_to_value,
    update_cell,
)

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
