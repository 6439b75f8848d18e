"""JSON decoding of API responses."""

from __future__ import annotations

import json
from typing import Any

import httpx

from monthlycloud.exceptions import ResponseDecodeError


def decode_json(response: httpx.Response) -> Any:
    """Decode a response body as JSON.

    An empty body decodes to an empty ``dict`` so that write calls
    answered with ``204 No Content`` still return a mapping.

    Raises:
        ResponseDecodeError: If the body is present but not valid JSON.
    """
    if not response.content:
        return {}
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        snippet = response.text[:200] if response.text else ""
        raise ResponseDecodeError(
            f"Invalid JSON in HTTP {response.status_code} response: {exc}; "
            f"body starts with {snippet!r}"
        ) from exc


def error_message(response: httpx.Response) -> str:
    """Build ``HTTP <status>: <detail>`` from an error response body.

    Understands JSON:API ``errors`` arrays as well as flat ``message`` /
    ``error`` / ``detail`` keys, falling back to the first 200 characters
    of the raw text.
    """
    status = response.status_code
    try:
        detail = response.json()
        if isinstance(detail, dict):
            errors = detail.get("errors")
            if isinstance(errors, list) and errors and isinstance(errors[0], dict):
                msg = errors[0].get("detail") or errors[0].get("title") or ""
            else:
                msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except (json.JSONDecodeError, UnicodeDecodeError):
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    return f"{prefix}: {msg}" if msg else prefix
