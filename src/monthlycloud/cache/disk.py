"""Disk-based cache store backed by :mod:`diskcache`.

Entries are stored under the full request URL and expire after the TTL
passed to :meth:`DiskCacheStore.put`.  A TTL of ``0`` stores the entry
without expiry.

See Also:
    :class:`~monthlycloud.cache.base.CacheStore` -- the protocol this
    class satisfies.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import diskcache


class DiskCacheStore:
    """Disk-backed :class:`~monthlycloud.cache.base.CacheStore`.

    Args:
        cache_dir: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.

    Example::

        from monthlycloud.cache import DiskCacheStore

        with DiskCacheStore("/tmp/monthlycloud-cache") as store:
            store.put("https://api.example.com/properties", {"data": []}, 60)
            hit = store.get("https://api.example.com/properties")
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._directory = Path(cache_dir) / "responses"
        self._cache = diskcache.Cache(str(self._directory))

    def __enter__(self) -> DiskCacheStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def get(self, key: str) -> Optional[Any]:
        """Look up a cached body by URL."""
        return self._cache.get(key)

    def put(self, key: str, value: Any, ttl: int) -> None:
        """Store a decoded body under *key* for *ttl* seconds."""
        self._cache.set(key, value, expire=ttl or None)

    def forget(self, key: str) -> bool:
        """Remove a single entry; returns ``True`` if it existed."""
        return bool(self._cache.delete(key))

    def has(self, key: str) -> bool:
        """Check for a live (non-expired) entry."""
        return key in self._cache

    def clear(self) -> int:
        """Remove all entries and return how many were removed."""
        return self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``size`` (number of entries) and ``directory``."""
        return {
            "size": len(self._cache),
            "directory": str(self._directory),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
