# ==============================================================================
# HTTP Routes
# ==============================================================================
"""
Analytics API endpoints and the two dashboard entry pages.

- POST /api/analytics: record one event
- GET /api/analytics: raw session collection
- GET /api/analytics/stats: statistics report
- GET / and GET /dashboard: static HTML pages
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse

from sitepulse.core.models import EventPayload, Identity
from sitepulse.services.analytics import AnalyticsService
from sitepulse.utils.config import Settings

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> AnalyticsService:
    return request.app.state.service


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def client_ip(request: Request, trust_proxy: bool = False) -> str:
    """
    Resolve the caller IP.

    Proxy headers are only honored when the server runs behind a trusted
    reverse proxy, since clients can set them freely.
    """
    if trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()
    return request.client.host if request.client else ""


async def read_payload(request: Request) -> EventPayload:
    """Decode the request body; anything that is not a JSON object is an empty payload."""
    body = await request.body()
    try:
        data = json.loads(body) if body else {}
    except ValueError:
        logger.warning("Ignoring malformed JSON body from %s", client_ip(request))
        data = {}
    return EventPayload.from_raw(data)


# ==============================================================================
# API
# ==============================================================================


@router.post("/api/analytics")
async def record_event(request: Request):
    settings = get_app_settings(request)
    identity = Identity(
        ip=client_ip(request, settings.server.trust_proxy),
        user_agent=request.headers.get("User-Agent", ""),
    )
    try:
        payload = await read_payload(request)
        await run_in_threadpool(get_service(request).record_event, payload, identity)
    except Exception:
        logger.exception("Failed to process analytics event")
        return JSONResponse({"error": "Failed to save data"}, status_code=500)
    return {"success": True}


@router.get("/api/analytics")
def list_sessions(request: Request):
    try:
        sessions = get_service(request).list_sessions()
    except Exception:
        logger.exception("Failed to read analytics data")
        return JSONResponse({"error": "Failed to read data"}, status_code=500)
    return [s.to_record() for s in sessions]


@router.get("/api/analytics/stats")
def get_stats(request: Request):
    try:
        report = get_service(request).get_stats()
    except Exception:
        logger.exception("Failed to compute statistics")
        return JSONResponse({"error": "Failed to compute statistics"}, status_code=500)
    return report.to_dict()


# ==============================================================================
# Pages
# ==============================================================================


def _page(request: Request, name: str) -> FileResponse:
    path = get_app_settings(request).server.static_dir_path / name
    if not path.is_file():
        raise HTTPException(status_code=404, detail=f"{name} not found")
    return FileResponse(path)


@router.get("/")
def index(request: Request):
    return _page(request, "index.html")


@router.get("/dashboard")
def dashboard(request: Request):
    return _page(request, "dashboard.html")
