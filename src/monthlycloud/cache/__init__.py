"""Response caching for monthlycloud.

The builders only depend on the :class:`CacheStore` protocol -- a plain
``get``/``put``/``forget``/``has`` contract keyed by full request URLs.
:class:`DiskCacheStore` is the default implementation, persisting
decoded response bodies with :mod:`diskcache`.

Caching is switched on per builder with
:meth:`~monthlycloud.builders.base.BaseBuilder.use_cache` or through the
``use_cache`` field of :class:`~monthlycloud.models.ClientConfig`.
"""

from monthlycloud.cache.base import CacheStore
from monthlycloud.cache.disk import DiskCacheStore

__all__ = ["CacheStore", "DiskCacheStore"]
