"""monthlycloud -- fluent request builders for the Monthly Cloud API.

Two builders cover the two HTTP surfaces:

* :class:`~monthlycloud.builders.api.Builder` composes JSON:API-style
  queries (``include``, ``filter[...]``, ``page[...]``, ``sort``) against
  the REST API and performs GET/POST/PATCH calls.
* :class:`~monthlycloud.builders.storage.StorageBuilder` composes
  locale/tenant-scoped paths for the static content storage.

Both can wrap GET calls with a pluggable cache
(:class:`~monthlycloud.cache.CacheStore`).

Typical usage::

    from monthlycloud import Builder

    builder = Builder("token", "https://api.monthly.cloud/api/")
    first = builder.endpoint("properties").filter("city", "Oslo").first()

Modules:
    builders: The request builders.
    cache: Cache port and the diskcache-backed default store.
    client: httpx transport and response decoding.
    models: Pydantic configuration models.
    config: XDG-aware configuration resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.3.0"

from monthlycloud.builders import Builder, PublicStorageBuilder, StorageBuilder  # noqa: E402
from monthlycloud.exceptions import MonthlyCloudError, NotFoundError  # noqa: E402

__all__ = [
    "Builder",
    "MonthlyCloudError",
    "NotFoundError",
    "PublicStorageBuilder",
    "StorageBuilder",
    "__version__",
]
