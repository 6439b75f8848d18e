"""HTTP transport module for monthlycloud.

The builders talk to the network through the :class:`Transport` protocol.
:class:`HttpxTransport` is the default implementation: it wraps
:class:`httpx.Client` for blocking calls and :class:`httpx.AsyncClient`
for :meth:`~monthlycloud.builders.api.Builder.post_async`, and maps
HTTP/network failures onto :mod:`monthlycloud.exceptions`.

Example::

    from monthlycloud.client import HttpxTransport

    with HttpxTransport(timeout=10) as transport:
        response = transport.request("GET", "https://api.example.com/properties")
"""

from monthlycloud.client.httpx_transport import HttpxTransport
from monthlycloud.client.response import decode_json
from monthlycloud.client.transport import Transport

__all__ = ["HttpxTransport", "Transport", "decode_json"]
