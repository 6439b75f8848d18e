"""Fluent request builders.

:class:`Builder` targets the JSON:API-style REST API; :class:`StorageBuilder`
and :class:`PublicStorageBuilder` target the static content storage.
"""

from monthlycloud.builders.api import Builder
from monthlycloud.builders.base import BaseBuilder
from monthlycloud.builders.storage import PublicStorageBuilder, StorageBuilder

__all__ = ["BaseBuilder", "Builder", "PublicStorageBuilder", "StorageBuilder"]
