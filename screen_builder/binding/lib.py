"""API binding: populate widgets from HTTP calls.

A widget with an ``apiBinding`` fetches options, a value or table rows from
an HTTP endpoint. ``${field}`` placeholders in the URL, params and body are
filled from the current form values. The response is reduced with the
binding's ``responseMapping`` and written into FormState.

Fetch failures never raise out of ``apply_binding``: they are recorded as a
fetch error on FormState, which dependency resolution never sees.

Example:
    >>> client = BindingClient()
    >>> state = FormState(config)
    >>> unsubscribe = bind_form(state, client)
"""

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from screen_builder.config import EnvVar, get_environment
from screen_builder.dependency import UNSET, stringify
from screen_builder.schema import (
    ApiConfig,
    HttpMethod,
    ResponseMapping,
    SelectOption,
    Widget,
)
from screen_builder.state import FormChange, FormState
from screen_builder.table import TableRow, new_row_id, rows_to_value

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"Content-Type": "application/json"}


class BindingError(Exception):
    """Error while fetching or extracting bound data."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


# =============================================================================
# Templates
# =============================================================================

_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def substitute_template(template: str, values: Mapping[str, Any] | None) -> str:
    """Replace ``${field}`` placeholders with form values.

    Placeholders naming a field without a value are left as they are.

    Example:
        >>> substitute_template("/api/cities?country=${country}", {"country": "NZ"})
        '/api/cities?country=NZ'
    """
    if not values:
        return template

    def replace(match: re.Match[str]) -> str:
        value = values.get(match.group(1), UNSET)
        return match.group(0) if value is UNSET else stringify(value)

    return _PLACEHOLDER.sub(replace, template)


def substitute_in_object(obj: Any, values: Mapping[str, Any] | None) -> Any:
    """Apply ``substitute_template`` to every string inside dicts and lists."""
    if isinstance(obj, str):
        return substitute_template(obj, values)
    if isinstance(obj, Mapping):
        return {key: substitute_in_object(item, values) for key, item in obj.items()}
    if isinstance(obj, list):
        return [substitute_in_object(item, values) for item in obj]
    return obj


# =============================================================================
# Extraction
# =============================================================================


def get_value_by_path(obj: Any, path: str) -> Any:
    """Look up a dot-separated path. Missing keys give None.

    Numeric segments index into lists.

    Example:
        >>> get_value_by_path({"data": {"items": [{"id": 7}]}}, "data.items.0.id")
        7
    """
    if obj is None or not path:
        return None
    result = obj
    for key in path.split("."):
        if result is None:
            return None
        if isinstance(result, Mapping):
            result = result.get(key)
        elif isinstance(result, list) and key.lstrip("-").isdigit():
            index = int(key)
            result = result[index] if -len(result) <= index < len(result) else None
        else:
            return None
    return result


@dataclass(frozen=True)
class OptionsResult:
    options: list[SelectOption] = field(default_factory=list)


@dataclass(frozen=True)
class ValueResult:
    value: Any = None


@dataclass(frozen=True)
class RowsResult:
    rows: list[TableRow] = field(default_factory=list)


ExtractResult = OptionsResult | ValueResult | RowsResult


def _as_list(value: Any, path: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise BindingError(f"Expected a list at '{path}', got {type(value).__name__}")
    return value


def extract(raw: Any, mapping: ResponseMapping | None) -> ExtractResult:
    """Reduce a raw response according to a response mapping.

    The first configured mapping wins, in the order options, value,
    tableData. Without a mapping the whole response is the value.

    Raises:
        BindingError: If a mapped path does not hold a list where one is
            expected.
    """
    if mapping is None:
        return ValueResult(raw)

    if mapping.options is not None and mapping.options.path:
        source = mapping.options
        options = []
        for item in _as_list(get_value_by_path(raw, source.path), source.path):
            value = get_value_by_path(item, source.value_field)
            label = get_value_by_path(item, source.label_field)
            options.append(
                SelectOption(
                    value=value if isinstance(value, (str, int, float)) else stringify(value),
                    label="" if label is None else str(label),
                )
            )
        return OptionsResult(options)

    if mapping.value is not None and mapping.value.path:
        return ValueResult(get_value_by_path(raw, mapping.value.path))

    if mapping.table_data is not None and mapping.table_data.path:
        source = mapping.table_data
        rows = []
        for item in _as_list(get_value_by_path(raw, source.path), source.path):
            row_id = get_value_by_path(item, "id")
            cells = {
                column_id: get_value_by_path(item, data_field)
                for column_id, data_field in source.columns.items()
            }
            rows.append(TableRow(id=str(row_id) if row_id else new_row_id(), cells=cells))
        return RowsResult(rows)

    return ValueResult(raw)


# =============================================================================
# Client
# =============================================================================


class BindingClient:
    """HTTP client executing widget API bindings.

    Attributes:
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize binding client.

        Args:
            timeout: Request timeout in seconds. Defaults to the
                     API_BINDING_TIMEOUT env var.
            transport: Optional httpx transport (e.g. MockTransport in tests).
        """
        self.timeout = (
            timeout if timeout is not None else get_environment(EnvVar.API_BINDING_TIMEOUT)
        )
        self._client = httpx.Client(timeout=self.timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "BindingClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def fetch(self, config: ApiConfig, form_values: Mapping[str, Any] | None = None) -> Any:
        """Execute a binding's HTTP call and return the decoded response.

        A configured mock response is returned without any request.

        Raises:
            BindingError: On a transport failure or a non-2xx status.
        """
        if config.use_mock and config.mock_response is not None:
            logger.debug("Using mock response for %s", config.url)
            return config.mock_response

        url = substitute_template(config.url, form_values)
        params = substitute_in_object(config.params, form_values) if config.params else None
        body = substitute_in_object(config.body, form_values) if config.body else None

        try:
            response = self._client.request(
                HttpMethod(config.method).value,
                url,
                headers=config.headers or DEFAULT_HEADERS,
                params=params,
                json=body,
            )
        except httpx.TimeoutException as e:
            raise BindingError(f"Request to {url} timed out: {e}") from e
        except httpx.RequestError as e:
            raise BindingError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            raise BindingError(
                f"{url} returned {response.status_code}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        try:
            return response.json()
        except ValueError:
            return response.text


# =============================================================================
# Form Integration
# =============================================================================


def apply_binding(state: FormState, widget: Widget, client: BindingClient) -> bool:
    """Fetch a widget's bound data and write it into form state.

    Options replace the widget's options, values and rows are written to
    the widget's own field. On failure a fetch error is recorded instead.

    Returns:
        bool: True if data was applied.
    """
    binding = widget.api_binding
    if binding is None or binding.api_config is None:
        return False
    config = binding.api_config

    try:
        raw = client.fetch(config, state.values)
        result = extract(raw, config.response_mapping)
    except BindingError as e:
        state.set_fetch_error(widget.id, str(e))
        return False

    state.clear_fetch_error(widget.id)
    if isinstance(result, OptionsResult):
        state.set_options(widget.id, result.options)
    elif widget.holds_value and widget.field:
        if isinstance(result, RowsResult):
            state.set(widget.field, rows_to_value(result.rows))
        else:
            state.set(widget.field, result.value)
    logger.debug("Applied binding for widget %s", widget.id)
    return True


def bound_widgets(state: FormState) -> list[Widget]:
    """Widgets of a form that declare an API binding."""
    return [
        w
        for w in state.widgets
        if w.api_binding is not None and w.api_binding.api_config is not None
    ]


def bind_form(state: FormState, client: BindingClient) -> Callable[[], None]:
    """Load bindings marked loadOnRender and refresh on trigger changes.

    Returns:
        A function that stops refreshing.
    """
    widgets = bound_widgets(state)
    for widget in widgets:
        if widget.api_binding.load_on_render:
            apply_binding(state, widget, client)

    def on_change(change: FormChange) -> None:
        for widget in widgets:
            if change.field in widget.api_binding.refresh_triggers:
                apply_binding(state, widget, client)

    return state.subscribe(on_change)


__all__ = [
    "BindingClient",
    "BindingError",
    "OptionsResult",
    "ValueResult",
    "RowsResult",
    "ExtractResult",
    "substitute_template",
    "substitute_in_object",
    "get_value_by_path",
    "extract",
    "apply_binding",
    "bound_widgets",
    "bind_form",
]
