"""Normalization of inbound Affinity webhook payloads.

Affinity delivers the same event in several shapes: a JSON object, a JSON
string, form fields, or an envelope with the real payload under "body" (or
"data"). Everything here is pure and never raises on bad input.
"""

import json
import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from app.ev import safe_num

logger = logging.getLogger(__name__)


class EnvelopeKind(str, Enum):
    DIRECT = "direct"
    BODY = "body"   # {"type": ..., "body": {...}}
    DATA = "data"   # {"data": {...}}


class InboundEvent(BaseModel):
    """Canonical view of one webhook delivery."""
    envelope: EnvelopeKind
    list_entry_id: str
    list_id: int | None
    payload: dict[str, Any]


def coerce_object(value: Any) -> dict[str, Any]:
    """Return value as a dict, parsing JSON strings/bytes; {} when impossible."""
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError:
            logger.debug("Webhook body is not valid utf-8, treating as empty")
            return {}
    if isinstance(value, str):
        if not value.strip():
            return {}
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.debug("Webhook body is not JSON, treating as empty")
            return {}
        if isinstance(parsed, str):
            # JSON-encoded twice
            return coerce_object(parsed)
        return parsed if isinstance(parsed, dict) else {}
    return {}


def _unwrap(outer: dict[str, Any]) -> tuple[EnvelopeKind, dict[str, Any]]:
    for kind, key in ((EnvelopeKind.BODY, "body"), (EnvelopeKind.DATA, "data")):
        candidate = coerce_object(outer.get(key))
        if candidate:
            return kind, candidate
    return EnvelopeKind.DIRECT, outer


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def _nested(obj: dict[str, Any], parent: str, key: str) -> Any:
    return coerce_object(obj.get(parent)).get(key)


def _as_int(value: Any) -> int | None:
    number = safe_num(value)
    if isinstance(number, int):
        return number
    return None


def normalize_event(raw: Any, default_list_id: int) -> InboundEvent:
    """Extract list entry id and list id from any supported payload shape.

    Args:
        raw: Parsed dict, JSON string/bytes, or None
        default_list_id: List id assumed when the payload names none

    Returns:
        InboundEvent; list_entry_id is "" when no integer identifier was found
    """
    outer = coerce_object(raw)
    envelope, payload = _unwrap(outer)

    entry_id = _first_present(
        payload.get("list_entry_id"),
        payload.get("listEntryId"),
        _nested(payload, "data", "list_entry_id"),
    )
    # ids are positive integers; anything else must not reach a URL path
    entry_number = _as_int(entry_id)

    list_id = _first_present(
        _nested(payload, "field", "list_id"),
        payload.get("list_id"),
        _nested(outer, "field", "list_id"),
    )

    return InboundEvent(
        envelope=envelope,
        list_entry_id=str(entry_number) if entry_number is not None and entry_number > 0 else "",
        list_id=default_list_id if list_id is None else _as_int(list_id),
        payload=payload,
    )
