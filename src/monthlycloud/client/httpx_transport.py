"""Default :class:`~monthlycloud.client.transport.Transport` backed by :mod:`httpx`.

Blocking calls share one lazily created :class:`httpx.Client`; async calls
open a short-lived :class:`httpx.AsyncClient` per request so that the
transport is not bound to a single event loop.  Both paths map failures
the same way:

- any transport error (network, timeout, protocol, proxy) -> :class:`~monthlycloud.exceptions.ConnectionError_`
- 401 / 403 -> :class:`~monthlycloud.exceptions.AuthError`
- 404 -> :class:`~monthlycloud.exceptions.NotFoundError`
- any other status >= 400 -> :class:`~monthlycloud.exceptions.ServerError`

Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from monthlycloud.client.response import error_message
from monthlycloud.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from monthlycloud.models import RequestConfig

logger = logging.getLogger(__name__)

_NETWORK_ERRORS = (httpx.TransportError,)


class HttpxTransport:
    """HTTP transport for the builders.

    Args:
        timeout: Request timeout in seconds.
        verify_ssl: Verify SSL certificates.
        transport: Optional :mod:`httpx` transport for the blocking
            client (e.g. :class:`httpx.MockTransport` in tests).
        async_transport: Optional transport for the async client.  When
            omitted, *transport* is reused if it supports async I/O.

    Example::

        with HttpxTransport(timeout=5) as transport:
            builder = Builder("token", "https://api.example.com/").set_client(transport)
    """

    def __init__(
        self,
        timeout: float = 30,
        verify_ssl: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._verify_ssl = verify_ssl
        self._transport = transport
        if async_transport is None and isinstance(transport, httpx.AsyncBaseTransport):
            async_transport = transport
        self._async_transport = async_transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_config(cls, config: RequestConfig) -> HttpxTransport:
        """Create a transport from :class:`~monthlycloud.models.RequestConfig`."""
        return cls(timeout=config.timeout, verify_ssl=config.verify_ssl)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the shared blocking client, if one was opened."""
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a blocking request.

        Args:
            method: HTTP method (GET, POST, PATCH, ...).
            url: Absolute request URL including the query string.
            headers: Request headers.
            json_body: JSON-serialisable body (sets Content-Type automatically).

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On any other status >= 400.
            ConnectionError_: On any :class:`httpx.TransportError`.
        """
        logger.debug("%s %s", method, url)
        try:
            response = self._get_client().request(**self._request_kwargs(method, url, headers, json_body))
        except _NETWORK_ERRORS as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc
        map_response_error(response)
        return response

    async def request_async(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send a non-blocking request.  Same error mapping as :meth:`request`."""
        logger.debug("%s %s (async)", method, url)
        async with httpx.AsyncClient(
            timeout=self._timeout,
            verify=self._verify_ssl,
            follow_redirects=True,
            transport=self._async_transport,
        ) as client:
            try:
                response = await client.request(**self._request_kwargs(method, url, headers, json_body))
            except _NETWORK_ERRORS as exc:
                raise ConnectionError_(f"Connection failed: {exc}") from exc
        map_response_error(response)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                verify=self._verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    @staticmethod
    def _request_kwargs(
        method: str,
        url: str,
        headers: Optional[dict[str, str]],
        json_body: Any,
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "method": method,
            "url": url,
            "headers": headers or {},
        }
        if json_body is not None:
            kwargs["json"] = json_body
        return kwargs


def map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    full_msg = error_message(response)
    if status in (401, 403):
        raise AuthError(full_msg)
    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)
