from __future__ import annotations

import logging
import os
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import settings
from favorites.errors import FavoritesError
from ops.structured_logger import setup_logging
from utils.request_context import reset_request_id, set_request_id

from app.routers.favorites import router as favorites_router
from app.routers.health import router as health_router
from app.routers.places import router as places_router
from app.routers.shares import public_router as share_view_router
from app.routers.shares import router as shares_router
from app.routers.stations import router as stations_router

setup_logging()

app = FastAPI(title="Metro Favorites API", version="1.0.0")
log = logging.getLogger("metrofav.api")


def _get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get("x-request-id") or ""


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    token = set_request_id(rid)
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)
    response.headers["X-Request-Id"] = rid
    return response


@app.exception_handler(FavoritesError)
async def favorites_error_handler(request: Request, exc: FavoritesError):
    rid = _get_request_id(request)
    log.info(
        "favorites_outcome",
        extra={
            "extra": {
                "event": "favorites_outcome",
                "code": exc.code,
                "status_code": exc.status_code,
                "context": exc.context,
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    # Outcomes become short-lived status text on the client, never fatal errors.
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.code,
            "message": exc.message,
            "dismiss_after_s": settings.FEEDBACK_DISMISS_S,
            "request_id": rid,
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    rid = _get_request_id(request)
    log.warning(
        "http_exception",
        extra={
            "extra": {
                "event": "http_exception",
                "status_code": exc.status_code,
                "detail": exc.detail,
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = _get_request_id(request)
    log.warning(
        "validation_error",
        extra={
            "extra": {
                "event": "validation_error",
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors(), "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _get_request_id(request)
    log.error(
        "internal_unhandled_exception",
        extra={
            "extra": {
                "event": "internal_unhandled_exception",
                "error_type": type(exc).__name__,
                "message": str(exc),
                "path": request.url.path,
                "method": request.method,
                "request_id": rid,
            }
        },
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "internal_unhandled_exception", "request_id": rid, "revision": os.getenv("K_REVISION") or ""},
    )


# The map client calls the API from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ALLOW_ORIGINS.split(",") if o.strip()],
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["health"])
app.include_router(stations_router, prefix="/api", tags=["stations"])
app.include_router(favorites_router, prefix="/api", tags=["favorites"])
app.include_router(shares_router, prefix="/api", tags=["shares"])
app.include_router(places_router, prefix="/api", tags=["places"])
app.include_router(share_view_router, tags=["share-view"])
