"""Unit tests for API binding."""

import json

import httpx
import pytest

from screen_builder.binding import (
    BindingClient,
    BindingError,
    OptionsResult,
    RowsResult,
    ValueResult,
    apply_binding,
    bind_form,
    extract,
    get_value_by_path,
    substitute_in_object,
    substitute_template,
)
from screen_builder.schema import ApiConfig, ResponseMapping, Widget
from screen_builder.state import FormState

CITIES = {
    "data": {
        "cities": [
            {"code": "AKL", "name": "Auckland"},
            {"code": "WLG", "name": "Wellington"},
        ]
    }
}


def _client(handler) -> BindingClient:
    return BindingClient(timeout=1, transport=httpx.MockTransport(handler))


def _city_widget(**binding) -> Widget:
    return Widget.model_validate(
        {
            "id": "w-city",
            "type": "select",
            "field": "city",
            "label": "City",
            "apiBinding": {
                "apiConfig": {
                    "url": "https://api.test/cities",
                    "params": {"country": "${country}"},
                    "responseMapping": {
                        "options": {
                            "path": "data.cities",
                            "valueField": "code",
                            "labelField": "name",
                        }
                    },
                },
                **binding,
            },
        }
    )


def _country_widget() -> Widget:
    return Widget.model_validate(
        {"id": "w-country", "type": "select", "field": "country", "label": "Country"}
    )


class TestTemplates:
    """Tests for ${field} substitution."""

    @pytest.mark.unit
    def test_substitutes_known_fields(self):
        url = substitute_template("/quotes/${quoteId}/lines/${line}", {"quoteId": "Q1", "line": 2})
        assert url == "/quotes/Q1/lines/2"

    @pytest.mark.unit
    def test_unknown_placeholder_left_in_place(self):
        assert substitute_template("/a/${missing}", {"other": 1}) == "/a/${missing}"
        assert substitute_template("/a/${missing}", None) == "/a/${missing}"

    @pytest.mark.unit
    def test_nested_objects(self):
        body = {"filter": {"country": "${country}", "tags": ["${tag}", 3]}, "limit": 10}
        result = substitute_in_object(body, {"country": "NZ", "tag": "vip"})
        assert result == {"filter": {"country": "NZ", "tags": ["vip", 3]}, "limit": 10}


class TestExtract:
    """Tests for response mappings."""

    @pytest.mark.unit
    def test_value_by_path(self):
        assert get_value_by_path(CITIES, "data.cities.1.code") == "WLG"
        assert get_value_by_path(CITIES, "data.nothing.here") is None
        assert get_value_by_path(CITIES, "") is None
        assert get_value_by_path(None, "data") is None

    @pytest.mark.unit
    def test_options(self):
        mapping = ResponseMapping.model_validate(
            {"options": {"path": "data.cities", "valueField": "code", "labelField": "name"}}
        )
        result = extract(CITIES, mapping)
        assert isinstance(result, OptionsResult)
        assert [(o.value, o.label) for o in result.options] == [
            ("AKL", "Auckland"),
            ("WLG", "Wellington"),
        ]

    @pytest.mark.unit
    def test_options_win_over_value(self):
        mapping = ResponseMapping.model_validate(
            {
                "options": {"path": "data.cities", "valueField": "code", "labelField": "name"},
                "value": {"path": "data.cities.0.code"},
            }
        )
        assert isinstance(extract(CITIES, mapping), OptionsResult)

    @pytest.mark.unit
    def test_value(self):
        mapping = ResponseMapping.model_validate({"value": {"path": "premium.amount"}})
        assert extract({"premium": {"amount": 125.5}}, mapping) == ValueResult(125.5)

    @pytest.mark.unit
    def test_table_rows(self):
        mapping = ResponseMapping.model_validate(
            {"tableData": {"path": "items", "columns": {"desc": "description", "qty": "count"}}}
        )
        raw = {"items": [{"id": 7, "description": "Cover", "count": 2}, {"description": "Fee"}]}
        result = extract(raw, mapping)
        assert isinstance(result, RowsResult)
        assert result.rows[0].id == "7"
        assert result.rows[0].cells == {"desc": "Cover", "qty": 2}
        assert result.rows[1].id.startswith("row-")
        assert result.rows[1].cells == {"desc": "Fee", "qty": None}

    @pytest.mark.unit
    def test_no_mapping_returns_raw(self):
        assert extract([1, 2], None) == ValueResult([1, 2])

    @pytest.mark.unit
    def test_non_list_options_rejected(self):
        mapping = ResponseMapping.model_validate(
            {"options": {"path": "data", "valueField": "code", "labelField": "name"}}
        )
        with pytest.raises(BindingError, match="Expected a list"):
            extract(CITIES, mapping)


class TestBindingClient:
    """Tests for the HTTP client."""

    @pytest.mark.unit
    def test_mock_response_skips_network(self):
        def handler(request):
            raise AssertionError("no request expected")

        config = ApiConfig(url="https://api.test/x", use_mock=True, mock_response={"ok": True})
        with _client(handler) as client:
            assert client.fetch(config) == {"ok": True}

    @pytest.mark.unit
    def test_get_with_substituted_params(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json=CITIES)

        config = ApiConfig(
            url="https://api.test/${region}/cities", params={"country": "${country}"}
        )
        with _client(handler) as client:
            assert client.fetch(config, {"region": "apac", "country": "NZ"}) == CITIES

        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/apac/cities"
        assert request.url.params["country"] == "NZ"
        assert request.headers["content-type"] == "application/json"

    @pytest.mark.unit
    def test_post_body(self):
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"premium": 10})

        config = ApiConfig(url="https://api.test/rate", method="POST", body={"age": "${age}"})
        with _client(handler) as client:
            client.fetch(config, {"age": 42})
        assert seen == [{"age": "42"}]

    @pytest.mark.unit
    def test_error_status(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        with _client(handler) as client:
            with pytest.raises(BindingError) as exc_info:
                client.fetch(ApiConfig(url="https://api.test/x"))
        assert exc_info.value.status_code == 503
        assert exc_info.value.response_body == "maintenance"

    @pytest.mark.unit
    def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with _client(handler) as client:
            with pytest.raises(BindingError, match="failed"):
                client.fetch(ApiConfig(url="https://api.test/x"))

    @pytest.mark.unit
    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with _client(handler) as client:
            with pytest.raises(BindingError, match="timed out"):
                client.fetch(ApiConfig(url="https://api.test/x"))

    @pytest.mark.unit
    def test_timeout_from_environment(self, monkeypatch):
        monkeypatch.setenv("API_BINDING_TIMEOUT", "3")
        client = BindingClient()
        assert client.timeout == 3
        client.close()


class TestFormIntegration:
    """Tests for writing binding results into form state."""

    @pytest.mark.unit
    def test_options_applied(self):
        state = FormState([_country_widget(), _city_widget()], initial_values={"country": "NZ"})
        widget = state.widgets[1]
        with _client(lambda request: httpx.Response(200, json=CITIES)) as client:
            assert apply_binding(state, widget, client) is True
        assert [o.value for o in state.options_for(widget)] == ["AKL", "WLG"]

    @pytest.mark.unit
    def test_value_applied(self):
        widget = Widget.model_validate(
            {
                "id": "w-premium",
                "type": "number",
                "field": "premium",
                "apiBinding": {
                    "apiConfig": {
                        "url": "https://api.test/premium",
                        "responseMapping": {"value": {"path": "amount"}},
                    }
                },
            }
        )
        state = FormState([widget])
        with _client(lambda request: httpx.Response(200, json={"amount": 99})) as client:
            apply_binding(state, widget, client)
        assert state.get("premium") == 99

    @pytest.mark.unit
    def test_failure_recorded_then_cleared(self):
        """A failed fetch leaves values alone and records the error."""
        state = FormState([_country_widget(), _city_widget()])
        widget = state.widgets[1]
        before = state.values

        with _client(lambda request: httpx.Response(500, text="boom")) as client:
            assert apply_binding(state, widget, client) is False
        assert "500" in state.fetch_error("w-city")
        assert state.values == before
        assert state.state_of("w-city").visible is True

        with _client(lambda request: httpx.Response(200, json=CITIES)) as client:
            apply_binding(state, widget, client)
        assert state.fetch_error("w-city") is None

    @pytest.mark.unit
    def test_widget_without_binding(self):
        state = FormState([_country_widget()])
        with _client(lambda request: httpx.Response(200)) as client:
            assert apply_binding(state, state.widgets[0], client) is False

    @pytest.mark.unit
    def test_bind_form_loads_and_refreshes(self):
        """Bindings load on render and refresh when a trigger field changes."""
        countries = []

        def handler(request):
            countries.append(request.url.params["country"])
            return httpx.Response(200, json=CITIES)

        state = FormState(
            [_country_widget(), _city_widget(loadOnRender=True, refreshTriggers=["country"])],
            initial_values={"country": "NZ"},
        )
        with _client(handler) as client:
            stop = bind_form(state, client)
            state.set("country", "AU")
            state.set("city", "AKL")
            stop()
            state.set("country", "FJ")

        assert countries == ["NZ", "AU"]
