"""Path builder for the locale- and tenant-partitioned static content storage.

Storage files are pre-rendered JSON documents addressed purely by path,
so there are no filters, sorting or paging.  A URL is composed as::

    <storage_url>[/websites/<id> | /marketplaces/<id>]/<endpoint>/<id or locale>.<extension>

An endpoint starting with ``/`` is taken as absolute under the storage
root and skips the tenant prefix.

Example::

    storage = StorageBuilder("https://storage.monthly.cloud", locale="en")
    routes = storage.website(12).get_routes()            # /websites/12/routes/en.json
    item = storage.listing(3).get_listing_item(7)        # /websites/12/listings/3/items/7.json
"""

from __future__ import annotations

from typing import Any, Optional, Union

from monthlycloud.builders.base import BaseBuilder
from monthlycloud.cache.base import CacheStore
from monthlycloud.client.transport import Transport
from monthlycloud.exceptions import ConfigError
from monthlycloud.models import ClientConfig

Identifier = Union[int, str]


class StorageBuilder(BaseBuilder):
    """Request builder for the static content storage API.

    Args:
        storage_url: Storage root; trailing slashes are ignored.
        locale: Locale used as file name when no id is set.
        client: Optional transport.
        cache: Optional cache store.
    """

    def __init__(
        self,
        storage_url: str = "",
        locale: str = "en",
        client: Optional[Transport] = None,
        cache: Optional[CacheStore] = None,
    ) -> None:
        super().__init__(client, cache)
        self._storage_url = storage_url
        self._locale: Optional[str] = locale
        self._extension = "json"
        self._website_id: Optional[Identifier] = None
        self._marketplace_id: Optional[Identifier] = None
        self._listing_id: Optional[Identifier] = None
        self.flush()

    @classmethod
    def _new_from_config(cls, config: ClientConfig) -> StorageBuilder:
        return cls(config.storage_url, locale=config.locale)

    def flush(self) -> StorageBuilder:
        """Reset endpoint and id.  Tenant ids and locale are kept."""
        super().flush()
        self._endpoint: Optional[str] = None
        self._id: Optional[Identifier] = None
        return self

    def endpoint(self, endpoint: Optional[str] = None) -> StorageBuilder:
        """Start a new request against *endpoint* (e.g. ``"menus"``, ``"contents/"``)."""
        self.flush()
        self._endpoint = endpoint
        return self

    def build_url(self) -> str:
        url = self.get_storage_url()
        endpoint = self._endpoint or ""
        if not endpoint.startswith("/"):
            url += self._tenant_prefix()

        endpoint = endpoint.strip("/")
        if endpoint:
            url += f"/{endpoint}"

        if _is_set(self._id):
            name = str(self._id)
        elif self._locale:
            name = self._locale
        else:
            raise ConfigError("Please set locale or id.")
        return f"{url}/{name}.{self._extension}"

    def require_base_url(self) -> None:
        if not self.get_storage_url():
            raise ConfigError("Please set storage url.")

    def _tenant_prefix(self) -> str:
        if _is_set(self._website_id):
            return f"/websites/{self._website_id}"
        if _is_set(self._marketplace_id):
            return f"/marketplaces/{self._marketplace_id}"
        return ""

    # ------------------------------------------------------------------ #
    # Terminal calls
    # ------------------------------------------------------------------ #

    def get(self) -> Any:
        return self.http_get_request(self.build_url())

    def find(self, id: Identifier) -> Any:
        self.id(id)
        return self.http_get_request(self.build_url())

    # ------------------------------------------------------------------ #
    # Finders
    # ------------------------------------------------------------------ #

    def get_routes(self, locale: Optional[str] = None) -> Any:
        """Route table for *locale* (defaults to the builder's locale)."""
        self.endpoint("routes")
        if locale:
            self.locale(locale)
        return self.get()

    def find_content(self, content_id: Identifier) -> Any:
        return self.endpoint("contents").find(content_id)

    def find_menu(self, menu_id: Identifier) -> Any:
        return self.endpoint("menus").find(menu_id)

    def get_listing_item(self, item_id: Identifier) -> Any:
        """Item of the listing set with :meth:`listing`.

        Raises:
            ConfigError: If no listing id was set.
        """
        listing_id = self._require(self._listing_id, "listing")
        return self.endpoint(f"listings/{listing_id}/items").find(item_id)

    def get_location(self, location_id: Identifier) -> Any:
        """Location of the listing set with :meth:`listing`.

        Raises:
            ConfigError: If no listing id was set.
        """
        listing_id = self._require(self._listing_id, "listing")
        return self.endpoint(f"listings/{listing_id}/locations").find(location_id)

    def find_profile(self, profile_id: Identifier) -> Any:
        """Profile of the marketplace set with :meth:`marketplace`.

        Raises:
            ConfigError: If no marketplace id was set.
        """
        marketplace_id = self._require(self._marketplace_id, "marketplace")
        return self.endpoint(f"/marketplaces/{marketplace_id}/profiles").find(profile_id)

    @staticmethod
    def _require(value: Optional[Identifier], name: str) -> Identifier:
        if not _is_set(value):
            raise ConfigError(f"Please set {name} id.")
        return value

    # ------------------------------------------------------------------ #
    # Setters / getters
    # ------------------------------------------------------------------ #

    def id(self, id: Optional[Identifier]) -> StorageBuilder:
        self._id = id
        return self

    def get_id(self) -> Optional[Identifier]:
        return self._id

    def get_endpoint(self) -> Optional[str]:
        return self._endpoint

    def locale(self, locale: Optional[str]) -> StorageBuilder:
        self._locale = locale
        return self

    def get_locale(self) -> Optional[str]:
        return self._locale

    def extension(self, extension: str) -> StorageBuilder:
        self._extension = extension.lstrip(".")
        return self

    def get_extension(self) -> str:
        return self._extension

    def website(self, website_id: Optional[Identifier]) -> StorageBuilder:
        self._website_id = website_id
        return self

    def get_website(self) -> Optional[Identifier]:
        return self._website_id

    def marketplace(self, marketplace_id: Optional[Identifier]) -> StorageBuilder:
        self._marketplace_id = marketplace_id
        return self

    def get_marketplace(self) -> Optional[Identifier]:
        return self._marketplace_id

    def listing(self, listing_id: Optional[Identifier]) -> StorageBuilder:
        self._listing_id = listing_id
        return self

    def get_listing(self) -> Optional[Identifier]:
        return self._listing_id

    def set_storage_url(self, storage_url: str) -> StorageBuilder:
        self._storage_url = storage_url
        return self

    def get_storage_url(self) -> str:
        """Storage root without trailing ``/``."""
        return self._storage_url.rstrip("/")


class PublicStorageBuilder(StorageBuilder):
    """:class:`StorageBuilder` bound to the public storage root.

    Same path rules; :meth:`from_config` reads ``public_storage_url``
    instead of ``storage_url``.
    """

    @classmethod
    def _new_from_config(cls, config: ClientConfig) -> PublicStorageBuilder:
        return cls(config.public_storage_url, locale=config.locale)


def _is_set(value: Optional[Identifier]) -> bool:
    return value is not None and value != ""
