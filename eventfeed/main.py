"""FastAPI entrypoint for the event feed service.

Exposes a health check and the events router. Endpoints are async and use
Pydantic models; feed logic lives in the services modules. A failed store
query anywhere in a request turns into a 500 carrying the store's message.
"""
from __future__ import annotations

import os
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventfeed.routers.events import router as events_router
from eventfeed.services.event_store import StoreError
from eventfeed.utils.logger import logger

APP_NAME = os.getenv("APP_NAME", "zuitzerland-eventfeed")

app = FastAPI(title="Zuitzerland Event Feed", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOW_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store query failed", extra={"path": request.url.path, "table": exc.table})
    return JSONResponse(status_code=500, content={"detail": str(exc), "table": exc.table})


@app.get("/health")
async def health() -> dict:
    """Liveness check; does not touch Supabase."""
    return {
        "status": "ok",
        "app": APP_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(events_router, prefix="/events", tags=["events"])
