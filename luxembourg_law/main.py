"""luxembourg_law.main

FastAPI entrypoint for the Luxembourg Law Service.

- GET  /api/v1/health         database probe (ok | stale | degraded | error)
- GET  /version               server and dataset version
- GET  /api/v1/tools          tool definitions
- POST /api/v1/tools/{name}   run a tool with JSON arguments
- GET  /api/v1/updates        last scheduled freshness check
"""

from __future__ import annotations

import platform
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from luxembourg_law.config.settings import settings
from luxembourg_law.core.scheduler import get_scheduler, shutdown_scheduler
from luxembourg_law.repository.db import get_db_session
from luxembourg_law.tools.metadata import days_since, read_build_metadata
from luxembourg_law.tools.registry import TOOLS, call_tool, tool_names
from luxembourg_law.tools.sources import table_counts
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)

SERVER_NAME = "luxembourg-legal-citations"
CAPABILITIES = ["statutes", "eu_cross_references"]
STARTED_AT = time.monotonic()


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: Optional[dict[str, Any]] = None
    timestamp: str
    request_id: str


class DatabaseProbe(BaseModel):
    status: str
    schema_version: str = "unknown"
    tier: str = "unknown"
    built_at: str = "unknown"
    days_old: int = -1
    counts: dict[str, int] = {
        "legal_documents": 0,
        "legal_provisions": 0,
        "eu_documents": 0,
        "eu_references": 0,
    }


@asynccontextmanager
async def lifespan(_: FastAPI):
    await get_scheduler()
    yield
    await shutdown_scheduler()


app = FastAPI(
    title="Luxembourg Law Service",
    version=settings.service_version,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def _error_response(
    request: Request,
    *,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    payload = ErrorResponse(
        error=error,
        message=message,
        details=details,
        timestamp=datetime.now(timezone.utc).isoformat(),
        request_id=getattr(request.state, "request_id", ""),
    ).model_dump()
    return JSONResponse(status_code=status_code, content=payload)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    # Allow raising HTTPException(detail={...}) with our standard schema.
    if isinstance(exc.detail, dict) and "error" in exc.detail and "message" in exc.detail:
        return _error_response(
            request,
            status_code=exc.status_code,
            error=str(exc.detail.get("error")),
            message=str(exc.detail.get("message")),
            details=exc.detail.get("details"),
        )

    return _error_response(
        request,
        status_code=exc.status_code,
        error="HTTPException",
        message=str(exc.detail),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        request,
        status_code=400,
        error="ValidationError",
        message="Request validation failed",
        details={"errors": exc.errors()},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error_response(
        request,
        status_code=400,
        error="InvalidInput",
        message=str(exc),
    )


def probe_database(db: Session) -> DatabaseProbe:
    """Build freshness and record counts of the connected database."""
    try:
        db.execute(select(1))
    except SQLAlchemyError as e:
        logger.error(f"Database probe failed: {e}")
        return DatabaseProbe(status="error")

    build = read_build_metadata(db)
    counts = table_counts(db)
    built_at = build.get("built_at")
    days_old = days_since(built_at)

    if days_old is None:
        status = "degraded"
    elif days_old > settings.staleness_threshold_days:
        status = "stale"
    else:
        status = "ok"

    if counts["legal_documents"] == 0 or counts["legal_provisions"] == 0:
        status = "degraded"

    return DatabaseProbe(
        status=status,
        schema_version=build.get("schema_version", "unknown"),
        tier=build.get("tier", "unknown"),
        built_at=built_at or "unknown",
        days_old=-1 if days_old is None else days_old,
        counts=counts,
    )


@app.get("/api/v1/health")
def health(db: Session = Depends(get_db_session)):
    probe = probe_database(db)
    return {
        "status": probe.status,
        "server": SERVER_NAME,
        "version": settings.service_version,
        "uptime_seconds": int(time.monotonic() - STARTED_AT),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": {
            "schema_version": probe.schema_version,
            "tier": probe.tier,
            "built_at": probe.built_at,
            "days_old": probe.days_old,
            "counts": probe.counts,
        },
        "data_freshness": {
            "max_age_days": settings.staleness_threshold_days,
            "is_stale": probe.status == "stale",
        },
        "capabilities": CAPABILITIES,
    }


@app.get("/version")
def version(db: Session = Depends(get_db_session)):
    probe = probe_database(db)
    return {
        "name": SERVER_NAME,
        "version": settings.service_version,
        "python_version": platform.python_version(),
        "transport": ["stdio", "http"],
        "capabilities": CAPABILITIES,
        "tier": probe.tier,
        "source_schema_version": probe.schema_version,
    }


@app.get("/api/v1/tools")
def list_tools():
    return {"tools": TOOLS}


@app.post("/api/v1/tools/{name}")
def run_tool(
    name: str,
    arguments: Optional[dict[str, Any]] = Body(default=None),
    db: Session = Depends(get_db_session),
):
    if name not in tool_names():
        raise HTTPException(
            status_code=404,
            detail={
                "error": "NotFound",
                "message": f"Unknown tool: {name}",
                "details": {"available_tools": tool_names()},
            },
        )

    started = time.perf_counter()
    result = call_tool(db, name, arguments or {})
    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info(f"Tool {name} completed in {elapsed_ms:.1f}ms")
    return result


@app.get("/api/v1/updates")
async def updates():
    scheduler = await get_scheduler()
    summary = scheduler.last_summary
    return {
        "enabled": scheduler.config.enable_update_checks,
        "schedule": scheduler.config.update_check_schedule,
        "jobs": scheduler.get_jobs(),
        "last_check": summary.model_dump() if summary else None,
        "has_changes": summary.has_changes if summary else None,
    }


def main() -> None:
    import uvicorn

    uvicorn.run(
        "luxembourg_law.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
