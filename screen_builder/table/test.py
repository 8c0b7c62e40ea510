"""Unit tests for table module."""

import math

import pytest

from screen_builder.schema import Widget
from screen_builder.table import (
    TableRow,
    add_row,
    column_totals,
    create_empty_row,
    delete_row,
    ensure_min_rows,
    padding_row_id,
    parse_float,
    row_errors,
    rows_from_value,
    rows_to_value,
    update_cell,
)


@pytest.fixture
def line_items() -> Widget:
    """A table widget with quantity, price and a computed total."""
    return Widget.model_validate(
        {
            "id": "w-items",
            "type": "table",
            "label": "Line items",
            "field": "items",
            "minRows": 1,
            "maxRows": 3,
            "columns": [
                {"id": "name", "header": "Item", "type": "text", "required": True},
                {
                    "id": "qty",
                    "header": "Qty",
                    "type": "number",
                    "defaultValue": 1,
                    "validation": {"min": 1, "max": 100},
                },
                {"id": "price", "header": "Price", "type": "number"},
                {
                    "id": "total",
                    "header": "Total",
                    "type": "formula",
                    "formula": "qty * price",
                    "editable": False,
                },
            ],
        }
    )


class TestRows:
    """Tests for row creation and conversion."""

    @pytest.mark.unit
    def test_empty_row_defaults(self, line_items):
        """Cells take column defaults or an empty string."""
        row = create_empty_row(line_items.columns)
        assert row.cells == {"name": "", "qty": 1, "price": "", "total": ""}
        assert row.id.startswith("row-")

    @pytest.mark.unit
    def test_row_ids_unique(self, line_items):
        ids = {create_empty_row(line_items.columns).id for _ in range(20)}
        assert len(ids) == 20

    @pytest.mark.unit
    def test_value_conversion(self):
        """Form-state values convert to rows and back."""
        value = [{"id": "r1", "cells": {"qty": 2}}, "junk"]
        rows = rows_from_value(value)
        assert rows == [TableRow(id="r1", cells={"qty": 2})]
        assert rows_to_value(rows) == [{"id": "r1", "cells": {"qty": 2}}]
        assert rows_from_value(None) == []

    @pytest.mark.unit
    def test_ensure_min_rows(self, line_items):
        assert len(ensure_min_rows(line_items, [])) == 1
        widget = line_items.model_copy(update={"min_rows": 3})
        assert len(ensure_min_rows(widget, [])) == 3

    @pytest.mark.unit
    def test_default_min_rows_is_one(self):
        widget = Widget.model_validate({"id": "t", "type": "table", "field": "t"})
        assert len(ensure_min_rows(widget, [])) == 1

    @pytest.mark.unit
    def test_padding_ids_are_stable(self, line_items):
        """Padding rows are named by table and position."""
        widget = line_items.model_copy(update={"min_rows": 3})
        rows = ensure_min_rows(widget, [TableRow(id="r1", cells={})])
        assert [row.id for row in rows] == ["r1", "w-items-row-2", "w-items-row-3"]
        assert ensure_min_rows(widget, [TableRow(id="r1", cells={})]) == rows

    @pytest.mark.unit
    def test_padding_ids_skip_taken(self, line_items):
        widget = line_items.model_copy(update={"min_rows": 2})
        existing = [TableRow(id=padding_row_id(widget, 2), cells={})]
        rows = ensure_min_rows(widget, existing)
        assert [row.id for row in rows] == ["w-items-row-2", "w-items-row-3"]

    @pytest.mark.unit
    def test_padding_row_can_be_edited(self, line_items):
        """A padded row shown to the user can be updated by its id."""
        rows = update_cell(
            line_items, ensure_min_rows(line_items, []), "w-items-row-1", "price", 2
        )
        assert rows[0].cells["total"] == 2


class TestRowLimits:
    """Tests for add/delete limits."""

    @pytest.mark.unit
    def test_add_row_respects_max(self, line_items):
        rows = ensure_min_rows(line_items, [])
        rows = add_row(line_items, rows)
        rows = add_row(line_items, rows)
        assert len(rows) == 3
        assert len(add_row(line_items, rows)) == 3

    @pytest.mark.unit
    def test_add_row_disallowed(self, line_items):
        widget = line_items.model_copy(update={"allow_add_rows": False})
        assert add_row(widget, []) == []

    @pytest.mark.unit
    def test_delete_row_respects_min(self, line_items):
        rows = ensure_min_rows(line_items, [])
        assert delete_row(line_items, rows, rows[0].id) == rows

        rows = add_row(line_items, rows)
        remaining = delete_row(line_items, rows, rows[0].id)
        assert [r.id for r in remaining] == [rows[1].id]

    @pytest.mark.unit
    def test_delete_unknown_row(self, line_items):
        with pytest.raises(KeyError):
            delete_row(line_items, [], "missing")

    @pytest.mark.unit
    def test_operations_do_not_mutate(self, line_items):
        rows = ensure_min_rows(line_items, [])
        before = list(rows)
        add_row(line_items, rows)
        assert rows == before


class TestCells:
    """Tests for cell updates and formulas."""

    @pytest.mark.unit
    def test_update_recomputes_formula(self, line_items):
        rows = ensure_min_rows(line_items, [])
        row_id = rows[0].id
        rows = update_cell(line_items, rows, row_id, "price", "2.5")
        rows = update_cell(line_items, rows, row_id, "qty", 4)
        assert rows[0].cells["total"] == 10.0

    @pytest.mark.unit
    def test_formula_error_yields_zero(self, line_items):
        rows = ensure_min_rows(line_items, [])
        rows = update_cell(line_items, rows, rows[0].id, "price", "abc")
        assert rows[0].cells["total"] == 0

    @pytest.mark.unit
    def test_other_rows_untouched(self, line_items):
        rows = add_row(line_items, ensure_min_rows(line_items, []))
        updated = update_cell(line_items, rows, rows[1].id, "price", 3)
        assert updated[0] is rows[0]
        assert rows[1].cells["price"] == ""

    @pytest.mark.unit
    def test_unknown_column_or_row(self, line_items):
        rows = ensure_min_rows(line_items, [])
        with pytest.raises(KeyError, match="Unknown column"):
            update_cell(line_items, rows, rows[0].id, "nope", 1)
        with pytest.raises(KeyError, match="Unknown row"):
            update_cell(line_items, rows, "nope", "qty", 1)


class TestTotals:
    """Tests for column totals."""

    @pytest.mark.unit
    def test_totals_number_and_formula(self, line_items):
        rows = [
            TableRow("r1", {"name": "a", "qty": "2", "price": "1.5", "total": 3.0}),
            TableRow("r2", {"name": "b", "qty": 1, "price": "n/a", "total": 0}),
        ]
        assert column_totals(line_items.columns, rows) == {
            "qty": 3.0,
            "price": 1.5,
            "total": 3.0,
        }

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [("12abc", 12.0), (" 3.5", 3.5), ("-2e1", -20.0), (7, 7.0), (".5", 0.5)],
    )
    def test_parse_float(self, value, expected):
        assert parse_float(value) == expected

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["", "abc", None, True, []])
    def test_parse_float_nan(self, value):
        assert math.isnan(parse_float(value))


class TestRowErrors:
    """Tests for cell-level validation."""

    @pytest.mark.unit
    def test_required_and_bounds(self, line_items):
        rows = [
            TableRow("r1", {"name": "", "qty": 0, "price": "", "total": 0}),
            TableRow("r2", {"name": "b", "qty": "x", "price": "", "total": 0}),
        ]
        assert row_errors(line_items, rows) == [
            "Row 1: Item is required",
            "Row 1: Qty must be at least 1",
            "Row 2: Qty must be a number",
        ]

    @pytest.mark.unit
    def test_clean_rows(self, line_items):
        rows = [TableRow("r1", {"name": "a", "qty": 5, "price": 1, "total": 5})]
        assert row_errors(line_items, rows) == []
