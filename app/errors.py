"""Error types and error-parsing utilities for the Affinity integration."""

import json
from typing import Any

import httpx


class ConfigurationError(Exception):
    """Required configuration (e.g. the API token) is missing."""


def parse_affinity_error(response_text: str) -> str:
    """Extract a readable message from an Affinity API error response.

    Affinity v2 returns JSON like {"errors": [{"code": "not-found", "message": "..."}]}.
    Returns "code: message" pairs joined by "; " when parseable, raw text otherwise.
    """
    try:
        body = json.loads(response_text)
        errors = body.get("errors") or []
        parts = []
        for err in errors:
            code = err.get("code", "")
            msg = err.get("message", "")
            if msg:
                parts.append(f"{code}: {msg}" if code else msg)
        if parts:
            return "; ".join(parts)
    except (ValueError, AttributeError):
        pass
    return response_text


def response_data(response: httpx.Response) -> Any:
    """Response body as JSON when possible, text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text


def describe_upstream_error(exc: Exception) -> tuple[int, Any]:
    """Map an exception from an outbound call to a (status, data) pair."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code, response_data(exc.response)
    return 500, str(exc) or exc.__class__.__name__
