"""
Main Application - FastAPI application setup.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse
from prometheus_client import generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from mdrg.api.auth_routes import router as auth_router
from mdrg.api.client_routes import router as client_router
from mdrg.api.status_routes import router as status_router
from mdrg.config import settings
from mdrg.db.migration_runner import run_migrations
from mdrg.db.session import close_engine
from mdrg.observability import get_logger, log_context, metrics, setup_logging, setup_tracing
from mdrg.observability.tracing import instrument_fastapi

# Setup logging before anything else
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    logger.info(
        "application_starting",
        service=settings.api_title,
        version=settings.api_version,
        tracing_enabled=settings.tracing_enabled,
        metrics_enabled=settings.metrics_enabled,
    )

    if settings.run_migrations_on_startup:
        await asyncio.to_thread(run_migrations)

    yield

    logger.info("application_shutting_down")
    await close_engine()
    logger.info("database_engine_closed")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    lifespan=lifespan,
)


# ============================================================================
# Error envelope
# ============================================================================


def error_response(
    status_code: int,
    message: str,
    error: object | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Render the uniform failure envelope."""
    content: dict[str, object] = {"success": False, "message": message}
    if error is not None:
        content["error"] = error
    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Every HTTP error uses the envelope."""
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Missing or invalid fields are a 400 listing each offending field."""
    sanitized_errors = []
    for error in exc.errors():
        sanitized = {
            "type": error.get("type"),
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            sanitized["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        sanitized_errors.append(sanitized)

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        errors=sanitized_errors,
    )

    fields = ", ".join(
        e["loc"][-1]
        for e in sanitized_errors
        if len(e["loc"]) > 1 and e["loc"][0] == "body" and e["type"] != "json_invalid"
    )
    message = f"Invalid or missing fields: {fields}." if fields else "Invalid request."
    return error_response(400, message, error=sanitized_errors)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unexpected failures are a 500; the cause is only exposed when configured."""
    metrics.record_error(type(exc).__name__, request.url.path)
    logger.error(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    return error_response(
        500,
        "Internal server error.",
        error=str(exc) if settings.expose_error_details else None,
    )


# Setup tracing
setup_tracing()
instrument_fastapi(app)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Label used when no route template matches (404s, 405s)
UNMATCHED_ROUTE = "unmatched"


def _route_template(request: Request) -> str:
    """Metric label for a request: the matched route's path template."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", UNMATCHED_ROUTE)
    return UNMATCHED_ROUTE


# Request logging middleware
@app.middleware("http")
async def logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log all HTTP requests with timing."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    path = request.url.path
    endpoint = _route_template(request)
    method = request.method

    structlog.contextvars.clear_contextvars()
    with log_context(request_id=request_id):
        logger.info("request_started", method=method, path=path)

        if settings.metrics_enabled:
            metrics.http_requests_in_progress.labels(endpoint=endpoint, method=method).inc()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            if settings.metrics_enabled:
                metrics.record_http_request(endpoint, method, response.status_code, duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration_seconds=duration,
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            duration = time.time() - start_time
            if settings.metrics_enabled:
                metrics.record_http_request(endpoint, method, 500, duration)

            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration_seconds=duration,
                exc_info=True,
            )
            raise
        finally:
            if settings.metrics_enabled:
                metrics.http_requests_in_progress.labels(endpoint=endpoint, method=method).dec()


# Register routes
app.include_router(auth_router)
app.include_router(client_router)
app.include_router(status_router)


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return PlainTextResponse(generate_latest())


def _resolve_static(path: str) -> Path | None:
    """Map a request path to a file inside the static directory, if any."""
    static_root = Path(settings.static_dir).resolve()
    if not static_root.is_dir():
        return None

    candidate = (static_root / path).resolve()
    if candidate.is_file() and candidate.is_relative_to(static_root):
        return candidate

    index = static_root / "index.html"
    return index if index.is_file() else None


# Must stay the last route: everything not matched above lands here.
@app.get("/{full_path:path}", include_in_schema=False)
async def frontend(full_path: str) -> Response:
    """Serve the web frontend; unknown /api paths are JSON 404s."""
    if full_path == "api" or full_path.startswith("api/"):
        return error_response(404, "API endpoint not found.")

    target = _resolve_static(full_path)
    if target is None:
        return error_response(404, "Not found.")
    return FileResponse(target)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mdrg.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )
