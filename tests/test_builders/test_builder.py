"""Tests for the JSON:API request builder."""

from __future__ import annotations

import asyncio
import inspect
import json
import logging

import httpx
import pytest

from monthlycloud.builders import BaseBuilder, Builder
from monthlycloud.exceptions import ConfigError, NotFoundError, ResponseDecodeError, ServerError
from monthlycloud.models import ClientConfig

API_URL = "https://api.test/api/"


@pytest.fixture
def builder() -> Builder:
    return Builder()


# ---------------------------------------------------------------------------
# URL composition
# ---------------------------------------------------------------------------


class TestBuildUrl:
    def test_endpoint_and_id(self, builder: Builder) -> None:
        builder.endpoint("properties").id(1)
        assert builder.build_url().endswith("properties/1")

    def test_api_url_joined_with_single_slash(self) -> None:
        assert Builder("", API_URL).endpoint("properties").id(5).build_url() == (
            "https://api.test/api/properties/5"
        )
        assert Builder("", "https://api.test/api").endpoint("/properties").build_url() == (
            "https://api.test/api/properties"
        )

    def test_trailing_slash_endpoint_with_id(self, builder: Builder) -> None:
        assert builder.endpoint("properties/").id(3).build_url() == "properties/3"

    def test_no_query_string_without_parameters(self, builder: Builder) -> None:
        assert builder.endpoint("properties").build_url() == "properties"

    def test_filter(self, builder: Builder) -> None:
        builder.endpoint("properties").filter("query", "test")
        assert "filter%5Bquery%5D=test" in builder.build_url()

    def test_filter_last_write_wins(self, builder: Builder) -> None:
        builder.endpoint("properties").filter("query", "old").filter("query", "new")
        url = builder.build_url()
        assert "filter%5Bquery%5D=new" in url
        assert "old" not in url

    def test_filter_mapping(self, builder: Builder) -> None:
        builder.endpoint("properties").filter({"city": "Oslo", "rooms": 3})
        url = builder.build_url()
        assert "filter%5Bcity%5D=Oslo" in url
        assert "filter%5Brooms%5D=3" in url

    def test_filter_values_form_encoded(self, builder: Builder) -> None:
        builder.endpoint("properties").filter("query", "sea view")
        assert "filter%5Bquery%5D=sea+view" in builder.build_url()

    def test_filter_bool_and_list_values(self, builder: Builder) -> None:
        builder.endpoint("properties").filter("active", True).filter("draft", False)
        builder.filter("ids", [1, 2])
        url = builder.build_url()
        assert "filter%5Bactive%5D=1" in url
        assert "filter%5Bdraft%5D=0" in url
        assert "filter%5Bids%5D=1%2C2" in url

    def test_empty_filter_omitted(self, builder: Builder) -> None:
        builder.endpoint("properties").filter("query", None).filter("city", "")
        assert builder.build_url() == "properties"

    def test_with_string(self, builder: Builder) -> None:
        builder.endpoint("properties").id(1).with_("comments")
        assert "?include=comments" in builder.build_url()

    def test_with_string_and_list_are_equivalent(self) -> None:
        a = Builder().endpoint("properties").with_("comments").build_url()
        b = Builder().endpoint("properties").with_(["comments"]).build_url()
        assert a == b

    def test_multiple_with(self, builder: Builder) -> None:
        builder.endpoint("properties").id(1).with_(["comments", "images"])
        assert "?include=comments%2Cimages" in builder.build_url()

    def test_include_alias(self, builder: Builder) -> None:
        builder.endpoint("properties").include("images")
        assert builder.get_include() == ["images"]

    def test_page_size(self, builder: Builder) -> None:
        builder.endpoint("properties").page_size(200)
        assert "page%5Bsize%5D=200" in builder.build_url()

    def test_limit_alias(self, builder: Builder) -> None:
        builder.endpoint("properties").limit(200)
        assert "page%5Bsize%5D=200" in builder.build_url()

    def test_page_number(self, builder: Builder) -> None:
        builder.endpoint("properties").set_current_page(2)
        assert "page%5Bnumber%5D=2" in builder.build_url()

    def test_page_number_and_size(self, builder: Builder) -> None:
        builder.endpoint("properties").page_size(200).set_current_page(2)
        url = builder.build_url()
        assert "page%5Bsize%5D=200" in url
        assert "page%5Bnumber%5D=2" in url

    def test_sort(self, builder: Builder) -> None:
        builder.endpoint("properties").sort("-id")
        assert "?sort=-id" in builder.build_url()

    def test_parameter_order_is_fixed(self, builder: Builder) -> None:
        builder.endpoint("properties").sort("-id").set_current_page(2).page_size(10)
        builder.filter("city", "Oslo").with_("images")
        assert builder.build_url() == (
            "properties?include=images&filter%5Bcity%5D=Oslo"
            "&page%5Bsize%5D=10&page%5Bnumber%5D=2&sort=-id"
        )

    def test_fields_are_not_serialized(self, builder: Builder, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="monthlycloud"):
            builder.endpoint("properties").fields(["name", "price"])
        assert builder.get_fields() == ["name", "price"]
        assert "fields" not in builder.build_url()
        assert "name,price" in caplog.text


# ---------------------------------------------------------------------------
# State reset
# ---------------------------------------------------------------------------


class TestFlushing:
    def test_endpoint_resets_request_state(self, builder: Builder) -> None:
        builder.endpoint("properties").with_("comments").filter("query", "test")
        builder.id(4).sort("-id").fields("name").page_size(5).set_current_page(3)

        builder.endpoint("properties")

        url = builder.build_url()
        assert "filter%5Bquery%5D=test" not in url
        assert "include=comments" not in url
        assert url == "properties"
        assert builder.get_id() is None
        assert builder.get_fields() == []
        assert builder.get_page_size() is None
        assert builder.get_current_page() is None

    def test_endpoint_keeps_connection_state(self, dict_cache) -> None:
        builder = Builder("token", API_URL, cache=dict_cache)
        builder.read_only(True).use_cache(True).cache_ttl(90)

        builder.endpoint("properties").endpoint("contents")

        assert builder.get_access_token() == "token"
        assert builder.get_api_url() == API_URL
        assert builder.is_read_only() is True
        assert builder.is_cache_enabled() is True
        assert builder.get_cache() is dict_cache
        assert builder.get_cache_ttl() == 90

    def test_endpoint_clears_last_response(self, mock_api) -> None:
        transport, _ = mock_api()
        builder = Builder("", API_URL, client=transport)

        builder.endpoint("properties").get()
        assert builder.get_response() is not None

        builder.endpoint("contents")
        assert builder.get_response() is None


# ---------------------------------------------------------------------------
# Missing base URL
# ---------------------------------------------------------------------------


class TestMissingApiUrl:
    def test_get(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("tok", client=transport).endpoint("properties")

        with pytest.raises(ConfigError, match="api url"):
            builder.get()
        assert handler.requests == []

    def test_find_and_first(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("tok", client=transport)

        with pytest.raises(ConfigError):
            builder.endpoint("properties").find(1)
        with pytest.raises(ConfigError):
            builder.endpoint("properties").first()
        assert handler.requests == []

    def test_post_and_patch(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("tok", client=transport)

        with pytest.raises(ConfigError, match="api url"):
            builder.endpoint("properties").post({"a": 1})
        with pytest.raises(ConfigError, match="api url"):
            builder.endpoint("properties").patch(1, {"a": 1})
        assert handler.requests == []

    def test_post_async_fails_before_awaiting(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("tok", client=transport)

        with pytest.raises(ConfigError, match="api url"):
            builder.endpoint("properties").post_async({"a": 1})
        assert handler.requests == []

    def test_read_only_write_needs_no_url(self) -> None:
        assert Builder().read_only().endpoint("properties").post({"a": 1}) == {}

    def test_base_builder_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            BaseBuilder()


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


class TestReads:
    def test_find(self, mock_api) -> None:
        transport, handler = mock_api({"data": []})
        builder = Builder("secret", API_URL, client=transport)

        response = builder.endpoint("properties").find(1)

        assert "data" in response
        assert str(handler.last.url) == "https://api.test/api/properties/1"
        assert handler.last.method == "GET"

    def test_headers(self, mock_api) -> None:
        transport, handler = mock_api()
        Builder("secret", API_URL, client=transport).endpoint("properties").get()

        assert handler.last.headers["accept"] == "application/json"
        assert handler.last.headers["authorization"] == "Bearer secret"

    def test_get_with_fields(self, mock_api) -> None:
        transport, _ = mock_api()
        builder = Builder("", API_URL, client=transport)
        builder.endpoint("properties").get(["name"])
        assert builder.get_fields() == ["name"]

    def test_first(self, mock_api) -> None:
        transport, _ = mock_api({"data": [{"exists": True}, {"exists": False}]})
        first = Builder("", API_URL, client=transport).endpoint("properties").first()
        assert first == {"exists": True}

    def test_first_empty(self, mock_api) -> None:
        transport, _ = mock_api({"data": []})
        assert Builder("", API_URL, client=transport).endpoint("properties").first() is None

    def test_first_without_data_key(self, mock_api) -> None:
        transport, _ = mock_api({"meta": {}})
        assert Builder("", API_URL, client=transport).endpoint("properties").first() is None

    def test_exists(self, mock_api) -> None:
        transport, _ = mock_api({"data": [{"exists": True}]})
        assert Builder("", API_URL, client=transport).endpoint("properties").exists() is True

    def test_not_exists(self, mock_api) -> None:
        transport, _ = mock_api({"data": []})
        assert Builder("", API_URL, client=transport).endpoint("properties").exists() is False

    def test_first_or_fail_returns_item(self, mock_api) -> None:
        transport, _ = mock_api({"data": [{"id": 7}]})
        builder = Builder("", API_URL, client=transport)
        assert builder.endpoint("properties").first_or_fail() == {"id": 7}

    def test_first_or_fail_raises_not_found(self, mock_api) -> None:
        transport, _ = mock_api({"data": []})
        builder = Builder("", API_URL, client=transport).endpoint("properties")
        with pytest.raises(NotFoundError, match="properties"):
            builder.first_or_fail()

    def test_http_404_raises_not_found(self, mock_api) -> None:
        transport, _ = mock_api(httpx.Response(404, json={"message": "No such property"}))
        builder = Builder("", API_URL, client=transport)
        with pytest.raises(NotFoundError, match="No such property"):
            builder.endpoint("properties").find(999)

    def test_invalid_json_raises_decode_error(self, mock_api) -> None:
        transport, _ = mock_api(httpx.Response(200, text="<html>oops</html>"))
        builder = Builder("", API_URL, client=transport)
        with pytest.raises(ResponseDecodeError):
            builder.endpoint("properties").get()

    def test_get_response_holds_last_response(self, mock_api) -> None:
        transport, _ = mock_api()
        builder = Builder("", API_URL, client=transport)
        assert builder.get_response() is None
        builder.endpoint("properties").get()
        assert builder.get_response().status_code == 200


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


class TestWrites:
    def test_post(self, mock_api) -> None:
        transport, handler = mock_api(httpx.Response(201, json={"data": {"id": 9}}))
        builder = Builder("secret", API_URL, client=transport)

        response = builder.endpoint("properties").post({"name": "Villa"})

        assert response == {"data": {"id": 9}}
        assert handler.last.method == "POST"
        assert str(handler.last.url) == "https://api.test/api/properties"
        assert json.loads(handler.last.content) == {"name": "Villa"}
        assert handler.last.headers["authorization"] == "Bearer secret"

    def test_patch(self, mock_api) -> None:
        transport, handler = mock_api({"data": {"id": 3}})
        builder = Builder("", API_URL, client=transport)

        builder.endpoint("properties").patch(3, {"name": "Cabin"})

        assert handler.last.method == "PATCH"
        assert str(handler.last.url) == "https://api.test/api/properties/3"
        assert json.loads(handler.last.content) == {"name": "Cabin"}

    def test_post_empty_response_body(self, mock_api) -> None:
        transport, _ = mock_api(httpx.Response(204))
        assert Builder("", API_URL, client=transport).endpoint("properties").post({}) == {}

    def test_post_server_error_propagates(self, mock_api) -> None:
        transport, _ = mock_api(httpx.Response(500, json={"message": "boom"}))
        with pytest.raises(ServerError):
            Builder("", API_URL, client=transport).endpoint("properties").post({"a": 1})

    def test_read_only_post(self, mock_api, caplog: pytest.LogCaptureFixture) -> None:
        transport, handler = mock_api()
        builder = Builder("", API_URL, client=transport).read_only(True)

        with caplog.at_level(logging.WARNING, logger="monthlycloud"):
            assert builder.endpoint("properties").post({"test": 1}) == {}

        assert handler.requests == []
        assert "Read-only" in caplog.text

    def test_read_only_patch(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("", API_URL, client=transport).read_only()
        assert builder.endpoint("properties").patch(1, {"test": 1}) == {}
        assert handler.requests == []

    def test_post_async(self, mock_api) -> None:
        transport, handler = mock_api({"data": []})
        builder = Builder("", API_URL, client=transport)

        pending = builder.endpoint("properties").post_async({"test": 1})

        assert inspect.isawaitable(pending)
        assert asyncio.run(pending) == {"data": []}
        assert handler.last.method == "POST"
        assert json.loads(handler.last.content) == {"test": 1}

    def test_post_async_captures_url_at_call_time(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("", API_URL, client=transport)

        pending = builder.endpoint("properties").post_async({"test": 1})
        builder.endpoint("contents")
        asyncio.run(pending)

        assert handler.last.url.path == "/api/properties"

    def test_read_only_post_async(self, mock_api) -> None:
        transport, handler = mock_api()
        builder = Builder("", API_URL, client=transport).read_only(True)

        assert asyncio.run(builder.endpoint("properties").post_async({"test": 1})) == {}
        assert handler.requests == []


# ---------------------------------------------------------------------------
# Connection settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_set_api_url(self, builder: Builder) -> None:
        builder.set_api_url("http://new-url.test")
        assert builder.get_api_url() == "http://new-url.test"

    def test_access_token(self, builder: Builder) -> None:
        assert builder.access_token("abc").get_access_token() == "abc"

    def test_cache_ttl(self, builder: Builder) -> None:
        builder.cache_ttl(90)
        assert builder.get_cache_ttl() == 90
        builder.set_cache_ttl(80)
        assert builder.get_cache_ttl() == 80

    def test_default_cache_ttl(self, builder: Builder) -> None:
        assert builder.get_cache_ttl() == 60

    def test_from_config(self, mock_api, dict_cache) -> None:
        transport, _ = mock_api()
        config = ClientConfig(
            access_token="tok",
            api_url=API_URL,
            read_only=True,
            use_cache=True,
            cache_ttl=120,
        )

        builder = Builder.from_config(config, client=transport, cache=dict_cache)

        assert builder.get_access_token() == "tok"
        assert builder.get_api_url() == API_URL
        assert builder.is_read_only() is True
        assert builder.is_cache_enabled() is True
        assert builder.get_cache_ttl() == 120
        assert builder.get_client() is transport

    def test_from_config_without_cache(self, mock_api) -> None:
        transport, _ = mock_api()
        builder = Builder.from_config(ClientConfig(), client=transport)
        assert builder.get_cache() is None
        assert builder.is_cache_enabled() is False
