"""Pydantic models shared across monthlycloud modules.

These are the configuration shapes serialised as JSON in the user's config
directory (``config.json``) or a project-local ``monthlycloud.json`` and
consumed by :meth:`~monthlycloud.builders.base.BaseBuilder.from_config`:

* :class:`RequestConfig` -- transport settings handed to :mod:`httpx`.
* :class:`ClientConfig` -- connection-level settings for both builders.

All models use Pydantic v2.  Unknown keys are ignored so that older
clients can read config files written by newer ones.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class ClientConfig(BaseModel):
    """Connection-level settings shared by the API and storage builders.

    Loaded and saved by :func:`~monthlycloud.config.load_config` and
    :func:`~monthlycloud.config.save_config`; see
    :func:`~monthlycloud.config.resolve_config` for the precedence chain.

    Example::

        ClientConfig(
            access_token="tok123",
            api_url="https://api.monthly.cloud/api/",
            storage_url="https://storage.monthly.cloud",
            use_cache=True,
            cache_ttl=120,
        )
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str = Field(default="", description="Bearer credential for the API")
    access_token_source: Optional[str] = Field(
        default=None,
        description="Credential source for the token: env:VAR or file:/path",
    )
    api_url: str = Field(default="", description="Base URL for the request builder")
    storage_url: str = Field(default="", description="Base URL for the storage builder")
    public_storage_url: str = Field(
        default="", description="Base URL for the public storage builder"
    )
    locale: str = Field(default="en", description="Default locale for storage paths")
    cache_ttl: int = Field(default=60, ge=0, description="Cache TTL in seconds")
    use_cache: bool = Field(default=False, description="Wrap GET calls with the cache")
    read_only: bool = Field(default=False, description="Suppress mutating calls")
    request: RequestConfig = Field(default_factory=RequestConfig)
