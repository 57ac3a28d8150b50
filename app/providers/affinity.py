"""Affinity API v2 client for list entry field values."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import httpx
from fastapi import Depends
from pydantic import BaseModel

from app.config import Settings, get_settings
from app.errors import ConfigurationError, parse_affinity_error, response_data
from app.ev import safe_num
from app.retry import retry_until_present

logger = logging.getLogger(__name__)


class WriteResult(BaseModel):
    """Outcome of a field write. Non-2xx responses are reported, not raised."""
    ok: bool
    status: int
    data: Any = None


class AffinityClient:
    """Reads and writes field values of entries in a single Affinity list."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        list_id: int,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.http = http
        self.list_id = list_id
        self.sleep = sleep

    def _fields_path(self, list_entry_id: str) -> str:
        return f"/lists/{self.list_id}/list-entries/{list_entry_id}/fields"

    async def read_fields(self, list_entry_id: str) -> dict[str, Any]:
        """Map field id -> value.data for one list entry.

        Uses the per-entry endpoint: the bulk list-entries endpoint can report
        null for fields that are set on the underlying entity.
        """
        fields: dict[str, Any] = {}
        url: str | None = self._fields_path(list_entry_id)

        while url:
            response = await self.http.get(url)
            response.raise_for_status()
            body = response.json() or {}

            for field in body.get("data") or []:
                value = field.get("value") or {}
                fields[str(field.get("id"))] = value.get("data")

            url = (body.get("pagination") or {}).get("nextUrl")

        return fields

    async def write_field(self, list_entry_id: str, field_id: str, value: int) -> WriteResult:
        """Set a number field on a list entry."""
        response = await self.http.post(
            f"{self._fields_path(list_entry_id)}/{field_id}",
            json={"value": {"type": "number", "data": value}},
        )

        if response.is_success:
            return WriteResult(ok=True, status=response.status_code, data=response_data(response))

        logger.warning(
            f"Affinity write of {field_id} on entry {list_entry_id} failed "
            f"({response.status_code}): {parse_affinity_error(response.text)}"
        )
        return WriteResult(ok=False, status=response.status_code, data=response_data(response))

    async def verify_field(
        self,
        list_entry_id: str,
        field_id: str,
        max_attempts: int = 4,
        base_delay_ms: int = 200,
    ) -> float | None:
        """Re-read a field until it is non-null or attempts run out.

        Affinity reads are eventually consistent, so a read straight after a
        write may still return null. None after the last attempt is a result,
        not an error.
        """
        async def read_once() -> float | None:
            fields = await self.read_fields(list_entry_id)
            return safe_num(fields.get(field_id))

        persisted = await retry_until_present(
            read_once,
            max_attempts=max_attempts,
            base_delay=base_delay_ms / 1000,
            sleep=self.sleep,
        )
        if persisted is None:
            logger.warning(
                f"Field {field_id} on entry {list_entry_id} still empty after {max_attempts} reads"
            )
        return persisted


def build_http_client(settings: Settings, **kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.affinity_api_url,
        headers={
            "Authorization": f"Bearer {settings.affinity_v2_token}",
            "Content-Type": "application/json",
        },
        timeout=settings.http_timeout,
        **kwargs,
    )


async def get_affinity_client(
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[AffinityClient]:
    """FastAPI dependency yielding a client bound to the configured list."""
    if not settings.affinity_v2_token:
        raise ConfigurationError("Missing AFFINITY_V2_TOKEN")

    async with build_http_client(settings) as http:
        yield AffinityClient(http, settings.affinity_list_id)
