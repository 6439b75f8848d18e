"""Cache port consumed by the request builders."""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """Key/value store supplied by the host application.

    Keys are full request URLs including the query string.  Values are
    decoded JSON bodies.  Implementations decide how (and whether) to
    honour the TTL.
    """

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or ``None`` if absent or expired."""
        ...

    def put(self, key: str, value: Any, ttl: int) -> None:
        """Store *value* for *ttl* seconds."""
        ...

    def forget(self, key: str) -> bool:
        """Remove *key*; return ``True`` if it was present."""
        ...

    def has(self, key: str) -> bool:
        """Return ``True`` if *key* is cached and not expired."""
        ...
