from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Any, Optional

from .core.config import settings
from .core.logging import get_logger, log_error, setup_logging
from .events import TouchEvent
from .ingest.errors import IngestError, InvalidSchema
from .ingest.gatekeeper import Gatekeeper
from .insights.aggregator import compute_insights
from .insights.heatmap import cluster
from .store import EventStore, RedisStore

setup_logging(
    level="DEBUG" if settings.debug else "INFO",
    json_logs=settings.environment == "production",
)
logger = get_logger(__name__)

app = FastAPI(title="TouchHeat API", version="0.1.0")

# snippets post from customer pages on arbitrary origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Redis is only contacted on first use
_store = RedisStore.from_url(settings.redis_url)


def get_store() -> EventStore:
    return _store


TEST_EVENT_URL = "https://test.touchheat.app/test-page"


class SampleEventRequest(BaseModel):
    url: Optional[str] = None


def _project_or_404(store: EventStore, project_id: str):
    project = store.lookup_project(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found or access denied")
    return project


@app.exception_handler(IngestError)
async def ingest_error_handler(request: Request, exc: IngestError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # an unparseable snippet body is a schema error like any other
    if request.url.path != settings.ingest_path:
        return await request_validation_exception_handler(request, exc)
    details = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    return JSONResponse(status_code=InvalidSchema.status_code, content=InvalidSchema(details).to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_error(logger, "Unhandled exception", error=exc,
              extra={"path": request.url.path, "method": request.method})
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/health")
def health(store: EventStore = Depends(get_store)):
    ping = getattr(store, "ping", None)
    return {"ok": True, "service": "touchheat-api", "redis": bool(ping()) if ping else False}


@app.post(settings.ingest_path)
def ingest(request: Request, payload: Any = Body(...), store: EventStore = Depends(get_store)):
    """
    Accept one snippet batch: {"project_id": uuid, "events": [...]}.
    The Origin header, when present, is what the domain allowlist checks.
    """
    return Gatekeeper(store).ingest(payload, origin=request.headers.get("origin"))


@app.get("/api/insights")
def insights(
    project_id: str = Query(..., description="project to analyse"),
    url: Optional[str] = Query(None, description="restrict to one page url"),
    store: EventStore = Depends(get_store),
):
    _project_or_404(store, project_id)
    events = store.fetch_events(project_id, url)
    return {"insights": compute_insights(events)}


@app.get("/api/heatmap")
def heatmap(
    project_id: str = Query(...),
    url: Optional[str] = Query(None),
    store: EventStore = Depends(get_store),
):
    _project_or_404(store, project_id)
    events = store.fetch_events(project_id, url)
    result = cluster(events, bucket_size=settings.heatmap_bucket_size)
    return {"heatmap": result["points"], "maxCount": result["maxCount"]}


@app.post("/api/projects/{project_id}/test")
def send_test_event(
    project_id: str,
    body: Optional[SampleEventRequest] = None,
    store: EventStore = Depends(get_store),
):
    """Write one canned tap so a dashboard can confirm the pipeline end to end."""
    _project_or_404(store, project_id)
    url = body.url if body and body.url else TEST_EVENT_URL
    event = TouchEvent(
        x=200, y=400, viewport_w=375, viewport_h=667,
        thumb_zone="center", mis_tap=False, pressure=None,
        selector="#test-button", url=url,
    )
    rows = store.persist_events(project_id, [event])
    return {"success": True, "message": "Test event created successfully", "event": rows[0]}
