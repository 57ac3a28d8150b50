"""Affinity webhook endpoint - recomputes the expected value (EV) field of a list entry."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Path, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from app.config import Settings, get_settings
from app.errors import describe_upstream_error
from app.ev import compute_ev, safe_num
from app.payload import normalize_event
from app.providers.affinity import AffinityClient, get_affinity_client

router = APIRouter()
logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class SkippedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    skipped: bool = True
    reason: str
    payload: dict[str, Any] | None = None
    event_list_id: int | None = Field(None, alias="eventListId")


class SyncSuccess(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    list_entry_id: str = Field(alias="listEntryId")
    min: int | float | None
    max: int | float | None
    p: int | float | None
    ev: int
    persisted: int | float | None


class SyncFailure(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = False
    step: str
    status: int
    data: Any = None
    list_entry_id: str = Field(alias="listEntryId")
    min: int | float | None
    max: int | float | None
    p: int | float | None
    ev: int


class UpstreamError(BaseModel):
    status: int
    data: Any = None


class ErrorResponse(BaseModel):
    ok: bool = False
    error: UpstreamError


def _respond(model: BaseModel, exclude: set[str] | None = None) -> JSONResponse:
    # 200 even for failures: Affinity treats non-2xx as a failed delivery
    content = model.model_dump(mode="json", by_alias=True, exclude=exclude)
    return JSONResponse(status_code=200, content=content)


def _error_response(exc: Exception) -> JSONResponse:
    status, data = describe_upstream_error(exc)
    return _respond(ErrorResponse(error=UpstreamError(status=status, data=data)))


async def _read_body(request: Request) -> Any:
    """Raw webhook body: form fields as a dict, anything else as bytes."""
    content_type = request.headers.get("content-type", "")
    if FORM_CONTENT_TYPE in content_type.lower():
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return await request.body()


async def sync_entry(client: AffinityClient, settings: Settings, list_entry_id: str) -> SyncSuccess | SyncFailure:
    """Read min/max/likelihood, write EV, then confirm the write is visible."""
    fields = await client.read_fields(list_entry_id)
    min_value = safe_num(fields.get(settings.affinity_field_min))
    max_value = safe_num(fields.get(settings.affinity_field_max))
    p = safe_num(fields.get(settings.affinity_field_probability))

    ev = compute_ev(min_value, max_value, p, zero_as_missing=settings.zero_as_missing)
    logger.info(f"Entry {list_entry_id}: min={min_value} max={max_value} p={p} -> ev={ev}")

    write = await client.write_field(list_entry_id, settings.affinity_field_ev, ev)
    if not write.ok:
        return SyncFailure(
            step="post_ev",
            status=write.status,
            data=write.data,
            list_entry_id=list_entry_id,
            min=min_value,
            max=max_value,
            p=p,
            ev=ev,
        )

    persisted = await client.verify_field(
        list_entry_id,
        settings.affinity_field_ev,
        max_attempts=settings.verify_max_attempts,
        base_delay_ms=settings.verify_base_delay_ms,
    )

    return SyncSuccess(
        list_entry_id=list_entry_id,
        min=min_value,
        max=max_value,
        p=p,
        ev=ev,
        persisted=persisted,
    )


@router.post("/affinity-ev")
async def affinity_ev_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    client: AffinityClient = Depends(get_affinity_client),
):
    """Handle an Affinity field-change webhook for the target list."""
    try:
        event = normalize_event(await _read_body(request), settings.affinity_list_id)

        if not event.list_entry_id:
            logger.info("Skipping webhook without list entry id")
            return _respond(
                SkippedResponse(reason="no_list_entry_id", payload=event.payload),
                exclude={"event_list_id"},
            )

        if event.list_id != settings.affinity_list_id:
            logger.info(f"Skipping entry {event.list_entry_id} from list {event.list_id}")
            return _respond(
                SkippedResponse(reason="different_list", event_list_id=event.list_id),
                exclude={"payload"},
            )

        return _respond(await sync_entry(client, settings, event.list_entry_id))

    except Exception as e:
        logger.error(f"EV webhook failed: {e}")
        return _error_response(e)


@router.post("/affinity-ev/entries/{list_entry_id}")
async def recompute_entry(
    list_entry_id: int = Path(..., gt=0),
    settings: Settings = Depends(get_settings),
    client: AffinityClient = Depends(get_affinity_client),
):
    """Recompute EV for one list entry of the target list (manual trigger)."""
    try:
        return _respond(await sync_entry(client, settings, str(list_entry_id)))
    except Exception as e:
        logger.error(f"EV recompute for entry {list_entry_id} failed: {e}")
        return _error_response(e)
