"""Transport protocol consumed by the request builders."""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

import httpx


@runtime_checkable
class Transport(Protocol):
    """Sends one HTTP request and returns the raw :class:`httpx.Response`.

    Implementations raise :mod:`monthlycloud.exceptions` errors for
    network failures and error status codes; they never retry.
    """

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        ...

    async def request_async(
        self,
        method: str,
        url: str,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        ...
