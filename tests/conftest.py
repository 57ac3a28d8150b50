import json
import re
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import Settings, get_settings
from app.main import app
from app.providers.affinity import AffinityClient, build_http_client, get_affinity_client

LIST_ID = 300305
FID_MIN = "field-5140816"
FID_MAX = "field-5140817"
FID_P = "field-5150465"
FID_EV = "field-5305096"

_FIELDS_PATH = re.compile(r"/lists/(\d+)/list-entries/([^/]+)/fields(?:/([^/]+))?$")


class FakeAffinity:
    """In-memory stand-in for the Affinity v2 list entry field endpoints."""

    def __init__(self):
        self.fields: dict[str, dict[str, Any]] = {}
        self.requests: list[httpx.Request] = []
        self.writes: list[dict] = []
        self.write_status = 200
        self.read_status = 200
        self.stale_reads = 0  # reads after a write that still see the old EV
        self._pending_stale = 0
        self.page_size: int | None = None

    def set_entry(self, list_entry_id: str, **fields: Any) -> None:
        self.fields[list_entry_id] = dict(fields)

    def _page(self, request: httpx.Request, entry: dict[str, Any]) -> dict:
        items = [{"id": fid, "value": {"type": "number", "data": value}} for fid, value in entry.items()]
        if self.page_size is None:
            return {"data": items, "pagination": {"prevUrl": None, "nextUrl": None}}

        offset = int(request.url.params.get("offset", 0))
        chunk = items[offset:offset + self.page_size]
        next_url = None
        if offset + self.page_size < len(items):
            next_url = str(request.url.copy_set_param("offset", offset + self.page_size))
        return {"data": chunk, "pagination": {"prevUrl": None, "nextUrl": next_url}}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = _FIELDS_PATH.search(request.url.path)
        if not match:
            return httpx.Response(404, json={"errors": [{"code": "not-found", "message": "Not found"}]})

        _, list_entry_id, field_id = match.groups()
        entry = self.fields.get(list_entry_id)
        if entry is None:
            return httpx.Response(
                404, json={"errors": [{"code": "not-found", "message": "List entry not found"}]}
            )

        if request.method == "GET":
            if self.read_status != 200:
                return httpx.Response(self.read_status, json={"errors": [{"code": "server", "message": "boom"}]})
            visible = dict(entry)
            if self._pending_stale > 0:
                self._pending_stale -= 1
                visible[FID_EV] = None
            return httpx.Response(200, json=self._page(request, visible))

        payload = json.loads(request.content)
        self.writes.append(payload)
        if self.write_status != 200:
            return httpx.Response(
                self.write_status,
                json={"errors": [{"code": "validation", "message": "Invalid value"}]},
            )
        entry[field_id] = payload["value"]["data"]
        self._pending_stale = self.stale_reads
        return httpx.Response(200, json={"success": True})


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, affinity_v2_token="test-token")


@pytest.fixture
def fake_affinity() -> FakeAffinity:
    return FakeAffinity()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return sleep


@pytest.fixture
def client(settings, fake_affinity, fake_sleep):
    async def affinity_client_override():
        async with build_http_client(settings, transport=httpx.MockTransport(fake_affinity.handler)) as http:
            yield AffinityClient(http, settings.affinity_list_id, sleep=fake_sleep)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_affinity_client] = affinity_client_override
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
