"""Affinity EV updater - FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.config import settings
from app.errors import ConfigurationError
from app.routers import health, webhooks

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Affinity EV Updater",
    description="Webhook that keeps the expected value field of Affinity list entries in sync",
    version=health.VERSION,
)


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error: {exc}")
    return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})


# Routers
app.include_router(health.router)
app.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
