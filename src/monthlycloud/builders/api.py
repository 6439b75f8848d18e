"""Fluent request builder for the JSON:API-style Monthly Cloud API.

A :class:`Builder` is created once per session (access token and API URL),
then each request starts with :meth:`Builder.endpoint`, accumulates query
parameters through chained calls and ends with exactly one terminal call
(:meth:`~Builder.get`, :meth:`~Builder.find`, :meth:`~Builder.first`,
:meth:`~Builder.post`, ...).

Query parameters follow JSON:API conventions and are always emitted in
the same order::

    include=a,b & filter[name]=value ... & page[size]=n & page[number]=n & sort=-field

Example::

    builder = Builder("token", "https://api.monthly.cloud/api/")
    properties = (
        builder.endpoint("properties")
        .filter("query", "sea view")
        .with_(["images", "comments"])
        .sort("-id")
        .page_size(20)
        .get()
    )
"""

from __future__ import annotations

import logging
from collections.abc import Coroutine, Iterable, Mapping
from typing import Any, Optional, Union
from urllib.parse import urlencode

from monthlycloud.builders.base import BaseBuilder
from monthlycloud.cache.base import CacheStore
from monthlycloud.client.response import decode_json
from monthlycloud.client.transport import Transport
from monthlycloud.exceptions import ConfigError, NotFoundError
from monthlycloud.models import ClientConfig

logger = logging.getLogger(__name__)


class Builder(BaseBuilder):
    """Request builder for the REST API.

    Args:
        access_token: Bearer credential sent with every call.
        api_url: Base URL the endpoint is appended to.
        client: Optional transport (see :class:`~monthlycloud.builders.base.BaseBuilder`).
        cache: Optional cache store.
    """

    def __init__(
        self,
        access_token: str = "",
        api_url: str = "",
        client: Optional[Transport] = None,
        cache: Optional[CacheStore] = None,
    ) -> None:
        super().__init__(client, cache)
        self._access_token = access_token
        self._api_url = api_url
        self._read_only = False
        self.flush()

    @classmethod
    def _new_from_config(cls, config: ClientConfig) -> Builder:
        return cls(config.access_token, config.api_url).read_only(config.read_only)

    def flush(self) -> Builder:
        """Reset endpoint, id, filters, includes, sort, fields and paging."""
        super().flush()
        self._endpoint: Optional[str] = None
        self._id: Optional[Union[int, str]] = None
        self._filter: dict[str, Any] = {}
        self._include: list[str] = []
        self._sort: Optional[str] = None
        self._fields: list[str] = []
        self._page_size: Optional[int] = None
        self._current_page: Optional[int] = None
        return self

    # ------------------------------------------------------------------ #
    # Query composition
    # ------------------------------------------------------------------ #

    def endpoint(self, endpoint: Optional[str] = None) -> Builder:
        """Start a new request against *endpoint* (e.g. ``"properties"``)."""
        self.flush()
        self._endpoint = endpoint
        return self

    def filter(self, name: Union[str, Mapping[str, Any]], value: Any = None) -> Builder:
        """Add ``filter[name]=value``; a mapping adds several filters at once.

        Setting the same name again replaces the previous value.
        """
        if isinstance(name, Mapping):
            self._filter.update(name)
        else:
            self._filter[name] = value
        return self

    def with_(self, include: Union[str, Iterable[str], None]) -> Builder:
        """Request related resources (``include=a,b``)."""
        if include is None:
            self._include = []
        elif isinstance(include, str):
            self._include = [include]
        else:
            self._include = list(include)
        return self

    include = with_

    def sort(self, sort: Optional[str]) -> Builder:
        """Sort expression; a leading ``-`` sorts descending."""
        self._sort = sort
        return self

    def fields(self, fields: Union[str, Iterable[str], None]) -> Builder:
        """Store a field selection.

        The selection is kept on the builder but is not sent: the query
        string has no sparse-fieldset parameter.
        """
        if fields is None:
            self._fields = []
        elif isinstance(fields, str):
            self._fields = [fields]
        else:
            self._fields = list(fields)
        if self._fields:
            logger.warning(
                "Field selection %s is not sent to the API; full resources are returned",
                ",".join(self._fields),
            )
        return self

    def page_size(self, size: Optional[int]) -> Builder:
        self._page_size = size
        return self

    def limit(self, size: Optional[int]) -> Builder:
        """Alias of :meth:`page_size`."""
        return self.page_size(size)

    def set_current_page(self, page: Optional[int]) -> Builder:
        self._current_page = page
        return self

    def id(self, id: Optional[Union[int, str]]) -> Builder:
        self._id = id
        return self

    def build_url(self) -> str:
        """Compose ``api_url + endpoint [+ /id] [+ ?query]``."""
        url = self._api_url
        if self._endpoint:
            url = _join(url, self._endpoint)
        if self._id is not None and self._id != "":
            url = f"{url.rstrip('/')}/{self._id}"

        query = urlencode(self._query_parameters())
        if query:
            url = f"{url}?{query}"
        return url

    def _query_parameters(self) -> list[tuple[str, str]]:
        params: list[tuple[str, str]] = []
        if self._include:
            params.append(("include", ",".join(self._include)))
        for name, value in self._filter.items():
            encoded = _encode_value(value)
            if encoded != "":
                params.append((f"filter[{name}]", encoded))
        if self._page_size:
            params.append(("page[size]", str(self._page_size)))
        if self._current_page:
            params.append(("page[number]", str(self._current_page)))
        if self._sort:
            params.append(("sort", self._sort))
        return params

    # ------------------------------------------------------------------ #
    # Terminal calls
    # ------------------------------------------------------------------ #

    def get(self, fields: Union[str, Iterable[str], None] = None) -> Any:
        """GET the current URL and return the decoded body."""
        if fields:
            self.fields(fields)
        return self.http_get_request(self.build_url())

    def find(self, id: Union[int, str]) -> Any:
        """GET a single resource by id."""
        self.id(id)
        return self.http_get_request(self.build_url())

    def first(self) -> Optional[Any]:
        """Return the first item of the ``data`` array, or ``None`` if there is none."""
        response = self.get()
        data = response.get("data") if isinstance(response, Mapping) else None
        if isinstance(data, list) and data:
            return data[0]
        return None

    def exists(self) -> bool:
        return self.first() is not None

    def first_or_fail(self) -> Any:
        """Like :meth:`first` but raises :class:`~monthlycloud.exceptions.NotFoundError` when empty."""
        item = self.first()
        if item is None:
            raise NotFoundError(f"Resource not found: {self.build_url()}")
        return item

    def post(self, params: Any) -> Any:
        """POST *params* as JSON.  Returns ``{}`` without a call in read-only mode."""
        url = self.build_url()
        if self._read_only:
            logger.warning("Read-only mode: POST %s was not sent", url)
            return {}
        self.require_base_url()
        self._response = self.get_client().request("POST", url, headers=self._headers(), json_body=params)
        return decode_json(self._response)

    def patch(self, id: Union[int, str], params: Any) -> Any:
        """PATCH resource *id* with *params*.  Returns ``{}`` without a call in read-only mode."""
        self.id(id)
        url = self.build_url()
        if self._read_only:
            logger.warning("Read-only mode: PATCH %s was not sent", url)
            return {}
        self.require_base_url()
        self._response = self.get_client().request("PATCH", url, headers=self._headers(), json_body=params)
        return decode_json(self._response)

    def post_async(self, params: Any) -> Coroutine[Any, Any, Any]:
        """Return an awaitable that POSTs *params* and resolves to the decoded body.

        URL and headers are captured now, so the builder can be reused
        before the result is awaited.
        """
        url = self.build_url()
        if self._read_only:
            logger.warning("Read-only mode: POST %s was not sent", url)
            return _resolved({})

        self.require_base_url()
        client = self.get_client()
        headers = self._headers()

        async def _send() -> Any:
            response = await client.request_async("POST", url, headers=headers, json_body=params)
            return decode_json(response)

        return _send()

    # ------------------------------------------------------------------ #
    # Connection settings
    # ------------------------------------------------------------------ #

    def require_base_url(self) -> None:
        if not self._api_url:
            raise ConfigError("Please set api url.")

    def _headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._access_token}",
        }

    def read_only(self, read_only: bool = True) -> Builder:
        """Suppress :meth:`post`, :meth:`post_async` and :meth:`patch`."""
        self._read_only = bool(read_only)
        return self

    def is_read_only(self) -> bool:
        return self._read_only

    def access_token(self, access_token: str) -> Builder:
        self._access_token = access_token
        return self

    def get_access_token(self) -> str:
        return self._access_token

    def set_api_url(self, api_url: str) -> Builder:
        self._api_url = api_url
        return self

    def get_api_url(self) -> str:
        return self._api_url

    # ------------------------------------------------------------------ #
    # Request state
    # ------------------------------------------------------------------ #

    def get_endpoint(self) -> Optional[str]:
        return self._endpoint

    def get_id(self) -> Optional[Union[int, str]]:
        return self._id

    def get_filter(self) -> dict[str, Any]:
        return dict(self._filter)

    def get_include(self) -> list[str]:
        return list(self._include)

    def get_sort(self) -> Optional[str]:
        return self._sort

    def get_fields(self) -> list[str]:
        return list(self._fields)

    def get_page_size(self) -> Optional[int]:
        return self._page_size

    def get_current_page(self) -> Optional[int]:
        return self._current_page


def _join(base: str, path: str) -> str:
    if not base:
        return path
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


def _encode_value(value: Any) -> str:
    # bool before int: True is an int
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (list, tuple, set)):
        return ",".join(str(v) for v in value)
    return str(value)


async def _resolved(value: Any) -> Any:
    return value
