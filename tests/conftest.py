"""Shared test fixtures for monthlycloud.

Provides an in-memory cache store, an httpx-backed transport whose
requests are answered by a recording handler, and an isolated config
environment.  These fixtures are discovered by pytest automatically.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

from monthlycloud.client import HttpxTransport
from monthlycloud.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Reset the global OutputManager and the CLI log handler after every test.

    Both hold Rich consoles bound to the streams that were active when the
    CLI callback ran; under CliRunner those streams are closed afterwards.
    """
    yield
    reset_output()
    logger = logging.getLogger("monthlycloud")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Cache store double
# ---------------------------------------------------------------------------


class DictCache:
    """In-memory cache store that records the TTL of every ``put``."""

    def __init__(self) -> None:
        self.store: dict[str, Any] = {}
        self.ttls: dict[str, int] = {}

    def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    def put(self, key: str, value: Any, ttl: int) -> None:
        self.store[key] = value
        self.ttls[key] = ttl

    def forget(self, key: str) -> bool:
        self.ttls.pop(key, None)
        return self.store.pop(key, None) is not None

    def has(self, key: str) -> bool:
        return key in self.store


@pytest.fixture
def dict_cache() -> DictCache:
    return DictCache()


# ---------------------------------------------------------------------------
# Transport double
# ---------------------------------------------------------------------------


class RecordingHandler:
    """``httpx.MockTransport`` handler that replays queued responses.

    Each queued item is either an :class:`httpx.Response` or a JSON body
    (answered with 200).  Once the queue is empty, ``{"data": []}`` is
    returned.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, json={"data": []})
        item = self.responses.pop(0)
        if isinstance(item, httpx.Response):
            return item
        return httpx.Response(200, json=item)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def mock_api() -> Callable[..., tuple[HttpxTransport, RecordingHandler]]:
    """Factory returning ``(transport, handler)`` answering with the given responses."""

    def _factory(*responses: Any) -> tuple[HttpxTransport, RecordingHandler]:
        handler = RecordingHandler(*responses)
        return HttpxTransport(transport=httpx.MockTransport(handler)), handler

    return _factory


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG base directories at ``tmp_path``, clears every
    ``MONTHLYCLOUD_*`` variable and changes the working directory to
    ``tmp_path``.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setattr("monthlycloud.config._is_xdg_platform", lambda: True)

    for var in [
        "MONTHLYCLOUD_ACCESS_TOKEN",
        "MONTHLYCLOUD_API_URL",
        "MONTHLYCLOUD_STORAGE_URL",
        "MONTHLYCLOUD_PUBLIC_STORAGE_URL",
        "MONTHLYCLOUD_LOCALE",
        "MONTHLYCLOUD_CACHE_TTL",
        "MONTHLYCLOUD_USE_CACHE",
        "MONTHLYCLOUD_READ_ONLY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path
