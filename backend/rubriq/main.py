"""FastAPI application for rubric matching, essay scoring and feedback."""

import logging
import os
import time
from uuid import uuid4

from fastapi import FastAPI
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from sqlalchemy import text
from sqlmodel import Session

from rubriq import db
from rubriq.routers.essays import router as essays_router
from rubriq.routers.feedback import router as feedback_router
from rubriq.routers.rubrics import router as rubrics_router
from rubriq.settings import settings
from rubriq.storage import ensure_dir

logger = logging.getLogger(__name__)

_PUBLIC_PATHS = {
    "/health",
    "/health/deep",
    "/docs",
    "/openapi.json",
    "/redoc",
    "/favicon.ico",
}


def resolve_cors_origins() -> list[str]:
    configured_cors_origins = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if not configured_cors_origins:
        return settings.cors_origin_list
    return [origin.strip() for origin in configured_cors_origins.split(",") if origin.strip()]


def _openai_configured() -> bool:
    return bool(os.getenv("OPENAI_API_KEY", "").strip())


def _openai_mock() -> bool:
    return os.getenv("OPENAI_MOCK", "").strip() == "1"


def _feedback_mode() -> str:
    """Which path POST /feedback will take: mock, openai or heuristic."""
    if _openai_mock():
        return "mock"
    return "openai" if _openai_configured() else "heuristic"


def _api_key_rejection(request: Request) -> JSONResponse | None:
    if request.method == "OPTIONS" or request.url.path in _PUBLIC_PATHS:
        return None
    expected_api_key = os.getenv("BACKEND_API_KEY", "").strip()
    if expected_api_key and request.headers.get("X-API-Key", "") != expected_api_key:
        return JSONResponse(status_code=401, content={"detail": "Unauthorized"})
    return None


app = FastAPI(title=settings.app_name, version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=resolve_cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def enforce_api_key(request: Request, call_next):
    rejection = _api_key_rejection(request)
    if rejection is not None:
        logger.info("request rejected", extra={"stage": "api_key", "path": request.url.path})
        return rejection

    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request complete",
        extra={
            "stage": "http",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "elapsed_ms": int((time.perf_counter() - started) * 1000),
        },
    )
    return response


app.include_router(rubrics_router)
app.include_router(essays_router)
app.include_router(feedback_router)


@app.on_event("startup")
def on_startup() -> None:
    ensure_dir(settings.data_path)
    db.create_db_and_tables()
    logger.info("rubriq started", extra={"stage": "startup", "data_dir": str(settings.data_path), "feedback_mode": _feedback_mode()})


@app.get("/health", tags=["meta"])
def health() -> dict[str, bool | str]:
    return {"ok": True, "openai_configured": _openai_configured(), "feedback_mode": _feedback_mode()}


@app.get("/health/deep", tags=["meta"])
def deep_health() -> dict[str, bool | str]:
    data_dir = settings.data_path

    try:
        ensure_dir(data_dir)
        probe_path = data_dir / f".health_probe_{uuid4().hex}"
        probe_path.write_text("ok", encoding="utf-8")
        probe_path.unlink(missing_ok=True)
        storage_writable = True
    except OSError:
        storage_writable = False

    try:
        with Session(db.engine) as session:
            session.execute(text("SELECT 1"))
        db_ok = True
    except Exception:
        logger.exception("database probe failed", extra={"stage": "health_deep"})
        db_ok = False

    return {
        "ok": True,
        "openai_configured": _openai_configured(),
        "openai_mock": _openai_mock(),
        "feedback_mode": _feedback_mode(),
        "ocr_provider": settings.ocr_provider,
        "storage_writable": storage_writable,
        "data_dir": str(data_dir),
        "db_ok": db_ok,
    }


@app.options("/{path:path}", include_in_schema=False)
async def preflight(path: str) -> Response:
    del path
    return Response(status_code=204)
