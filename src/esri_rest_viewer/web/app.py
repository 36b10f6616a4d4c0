"""
FastAPI application serving the ArcGIS REST viewer.

Endpoints:
- /          view any ArcGIS REST URL (``?url=...``), HTML or ``f=json``
- /healthz   liveness probe

Domain errors are mapped to HTTP status codes here and nowhere else:
a URL without an ``/arcgis/rest`` anchor is the client's fault (400),
an unreachable server or a malformed layer list is the upstream
service's (502).
"""

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from esri_rest_viewer.core.config import get_settings
from esri_rest_viewer.core.errors import (
    LayerGraphError,
    MalformedUrlError,
    ServiceRequestError,
)

from .html import render_error
from .routes import viewer

logger = logging.getLogger(__name__)
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
    title="ArcGIS REST Viewer",
    description="Browse ArcGIS Server REST resources as HTML",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)


@app.middleware("http")
async def log_request_timing(request: Request, call_next):
    """Log slow requests; most of the time is the upstream fetch."""
    start = time.perf_counter()
    response = await call_next(request)
    elapsed = time.perf_counter() - start
    if elapsed > get_settings().slow_request_seconds:
        logger.info(
            "%s %s → %d (%.2fs)",
            request.method,
            request.url,
            response.status_code,
            elapsed,
        )
    return response


app.include_router(viewer.router)


def _error_response(request: Request, status_code: int, exc: Exception):
    logger.warning("%s: %s", type(exc).__name__, exc)
    url = request.query_params.get("url", "")
    if viewer.wants_json(request.query_params.get("f")):
        return JSONResponse(
            status_code=status_code,
            content={"error": {"type": type(exc).__name__, "message": str(exc)}},
        )
    return HTMLResponse(
        render_error(viewer.base_url(request), url, str(exc)),
        status_code=status_code,
    )


@app.exception_handler(MalformedUrlError)
async def malformed_url_handler(request: Request, exc: MalformedUrlError):
    return _error_response(request, 400, exc)


@app.exception_handler(ServiceRequestError)
async def service_request_handler(request: Request, exc: ServiceRequestError):
    return _error_response(request, 502, exc)


@app.exception_handler(LayerGraphError)
async def layer_graph_handler(request: Request, exc: LayerGraphError):
    return _error_response(request, 502, exc)


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}
