"""FastAPI application entry point."""

import logging
import sqlite3
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from api.logging import RequestLog, log_request
from api.models.responses import ErrorCodes, ErrorResponse
from api.routes import auth_router, events_router, health_router, statuses_router, zoho_router
from core import config
from core.database import connection, init_schema
from core.errors import CalendarError, UpstreamUnavailable
from core.zoho_client import close_http_client

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup: make sure the local store exists
    config.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    with connection() as conn:
        init_schema(conn)

    yield

    # Shutdown: release pooled connections to Zoho
    await close_http_client()


app = FastAPI(
    title="Booking Calendar API",
    description="Event-booking calendar over Zoho CRM deals and locally stored events",
    version=config.API_VERSION,
    debug=config.API_DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["*"],
)
app.add_middleware(
    SessionMiddleware,
    secret_key=config.SESSION_SECRET,
    https_only=config.SESSION_COOKIE_SECURE,
    max_age=config.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
)


def get_client_ip(request: Request) -> str:
    """Extract client IP from request, handling proxies."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Record every request in the api_requests table."""
    start_time = time.time()
    response = await call_next(request)

    request_log = RequestLog(
        endpoint=request.url.path,
        method=request.method,
        client_ip=get_client_ip(request),
        status_code=response.status_code,
        error_code=getattr(request.state, "error_code", None),
        error_message=getattr(request.state, "error_message", None),
        processing_time_ms=int((time.time() - start_time) * 1000),
        events_returned=getattr(request.state, "events_returned", None),
    )
    try:
        log_request(request_log)
    except sqlite3.Error as exc:
        # Don't fail the request if logging fails
        logger.warning("Could not write request log: %s", exc)
    return response


@app.exception_handler(CalendarError)
async def calendar_error_handler(request: Request, exc: CalendarError):
    """Render domain errors in the standard error envelope."""
    request.state.error_code = exc.error_code
    request.state.error_message = exc.detail
    error = exc.error_code
    if isinstance(exc, UpstreamUnavailable):
        logger.error("Upstream failure on %s: %s", request.url.path, exc.payload or exc.detail)
        if exc.payload is not None:
            error = exc.payload
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            code=exc.status_code,
            message=exc.detail,
            error=error,
        ).model_dump(),
    )


# Global exception handler for unexpected errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with standard error format."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            code=500,
            message="Internal server error",
            error=ErrorCodes.INTERNAL_ERROR,
        ).model_dump(),
    )


# Include routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(zoho_router)
app.include_router(events_router)
app.include_router(statuses_router)


# Entry point for uvicorn
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host=config.API_HOST,
        port=config.API_PORT,
        reload=config.API_DEBUG,
    )
