"""Connection-level state and the cache-wrapped GET shared by both builders.

:class:`BaseBuilder` owns everything that survives a call to
``endpoint()``: the transport, the cache store, the cache switch and the
cache TTL.  Subclasses add their own request-level state and implement
:meth:`BaseBuilder.build_url` and :meth:`BaseBuilder.flush`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar

import httpx

from monthlycloud.cache.base import CacheStore
from monthlycloud.client.httpx_transport import HttpxTransport
from monthlycloud.client.response import decode_json
from monthlycloud.client.transport import Transport
from monthlycloud.exceptions import NotFoundError
from monthlycloud.models import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 60

B = TypeVar("B", bound="BaseBuilder")


class BaseBuilder(ABC):
    """Shared plumbing for :class:`~monthlycloud.builders.api.Builder` and
    :class:`~monthlycloud.builders.storage.StorageBuilder`.

    Args:
        client: Transport used for HTTP calls.  An
            :class:`~monthlycloud.client.HttpxTransport` is created on
            first use when omitted.
        cache: Cache store consulted around GET calls once caching is
            switched on with :meth:`use_cache`.
    """

    def __init__(
        self,
        client: Optional[Transport] = None,
        cache: Optional[CacheStore] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._use_cache = False
        self._cache_ttl = DEFAULT_CACHE_TTL
        self._response: Optional[httpx.Response] = None

    @classmethod
    def from_config(
        cls: type[B],
        config: ClientConfig,
        client: Optional[Transport] = None,
        cache: Optional[CacheStore] = None,
    ) -> B:
        """Create a builder from a resolved :class:`~monthlycloud.models.ClientConfig`.

        When ``config.use_cache`` is set and no *cache* is given, a
        :class:`~monthlycloud.cache.DiskCacheStore` in the user cache
        directory is used.
        """
        builder = cls._new_from_config(config)
        builder.set_client(client or HttpxTransport.from_config(config.request))
        if cache is None and config.use_cache:
            from monthlycloud.cache.disk import DiskCacheStore
            from monthlycloud.config import get_cache_dir

            cache = DiskCacheStore(get_cache_dir())
        if cache is not None:
            builder.set_cache(cache)
        return builder.use_cache(config.use_cache).cache_ttl(config.cache_ttl)

    @classmethod
    @abstractmethod
    def _new_from_config(cls: type[B], config: ClientConfig) -> B:
        """Create an instance from *config*; transport and cache are attached by :meth:`from_config`."""
        ...

    # ------------------------------------------------------------------ #
    # Request lifecycle
    # ------------------------------------------------------------------ #

    def flush(self: B) -> B:
        """Reset request-level state.  Called by ``endpoint()``."""
        self._response = None
        return self

    @abstractmethod
    def build_url(self) -> str:
        ...

    @abstractmethod
    def require_base_url(self) -> None:
        """Raise :class:`~monthlycloud.exceptions.ConfigError` if no base URL is set."""
        ...

    def http_get_request(self, url: str) -> Any:
        """GET *url* and return the decoded JSON body.

        With caching enabled the cache is asked first, keyed by *url*; on
        a miss the decoded body is stored for :meth:`get_cache_ttl`
        seconds.

        Raises:
            ConfigError: If no base URL is set.
            ResponseDecodeError: If the body is not valid JSON.
        """
        self.require_base_url()
        cache = self._cache if self.is_cache_enabled() else None
        if cache is not None:
            cached = cache.get(url)
            if cached is not None:
                logger.debug("Cache hit: %s", url)
                return cached
            logger.debug("Cache miss: %s", url)

        self._response = self.get_client().request("GET", url, headers=self._headers())
        data = decode_json(self._response)

        if cache is not None:
            cache.put(url, data, self._cache_ttl)
        return data

    def resource_not_found(self, message: str = "Resource not found") -> None:
        """Raise :class:`~monthlycloud.exceptions.NotFoundError`."""
        raise NotFoundError(message)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def get_client(self) -> Transport:
        if self._client is None:
            self._client = HttpxTransport()
        return self._client

    def set_client(self: B, client: Transport) -> B:
        self._client = client
        return self

    def get_response(self) -> Optional[httpx.Response]:
        """The raw response of the last network call, or ``None``."""
        return self._response

    # ------------------------------------------------------------------ #
    # Cache
    # ------------------------------------------------------------------ #

    def get_cache(self) -> Optional[CacheStore]:
        return self._cache

    def set_cache(self: B, cache: CacheStore) -> B:
        self._cache = cache
        return self

    def use_cache(self: B, enabled: bool = True) -> B:
        """Switch the cache lookaround for GET calls on or off."""
        self._use_cache = bool(enabled)
        return self

    def with_cache(self: B) -> B:
        return self.use_cache(True)

    def without_cache(self: B) -> B:
        return self.use_cache(False)

    def is_cache_enabled(self) -> bool:
        """``True`` when caching is switched on and a store is present."""
        return self._use_cache and self._cache is not None

    def get_cache_ttl(self) -> int:
        return self._cache_ttl

    def cache_ttl(self: B, ttl: int) -> B:
        self._cache_ttl = int(ttl)
        return self

    def set_cache_ttl(self: B, ttl: int) -> B:
        """Alias of :meth:`cache_ttl`."""
        return self.cache_ttl(ttl)
