from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.config import Settings, get_settings


router = APIRouter(tags=["health"])

_startup_time = datetime.now(timezone.utc)

VERSION = "0.1.0"


class EndpointInfo(BaseModel):
    path: str
    description: str
    provider: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float
    endpoints: list[EndpointInfo]


class IntegrationStatus(BaseModel):
    connected: bool
    status: str
    last_check: str | None = None


class AffinityStatus(IntegrationStatus):
    list_id: int
    ev_field: str


class IntegrationsResponse(BaseModel):
    affinity: AffinityStatus


ENDPOINTS = [
    EndpointInfo(path="/health", description="Service status and API directory"),
    EndpointInfo(path="/health/integrations", description="Integration configuration status"),
    EndpointInfo(path="/webhooks/affinity-ev", description="List entry EV webhook", provider="Affinity"),
    EndpointInfo(
        path="/webhooks/affinity-ev/entries/{list_entry_id}",
        description="Recompute EV for one list entry",
        provider="Affinity",
    ),
]


def _check_affinity(settings: Settings) -> AffinityStatus:
    if not settings.affinity_v2_token:
        return AffinityStatus(
            connected=False,
            status="api token not configured",
            list_id=settings.affinity_list_id,
            ev_field=settings.affinity_field_ev,
        )
    return AffinityStatus(
        connected=True,
        status="ok",
        last_check=datetime.now(timezone.utc).isoformat(),
        list_id=settings.affinity_list_id,
        ev_field=settings.affinity_field_ev,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check():
    uptime = (datetime.now(timezone.utc) - _startup_time).total_seconds()

    return HealthResponse(
        status="ok",
        version=VERSION,
        uptime_seconds=round(uptime, 2),
        endpoints=ENDPOINTS,
    )


@router.get("/health/integrations", response_model=IntegrationsResponse)
async def get_integrations(settings: Settings = Depends(get_settings)):
    return IntegrationsResponse(affinity=_check_affinity(settings))
