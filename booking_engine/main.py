"""FastAPI application entry point."""
import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

from booking_engine.core.config import settings
from booking_engine.core.rate_limit import limiter
from booking_engine.core.structured_logging import build_log_context
from booking_engine.db.session import engine
from booking_engine.services.errors import SchedulingError

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Booking Engine API",
    description="Contractor scheduling and booking engine",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Actor-Id", "X-Actor-Role", REQUEST_ID_HEADER],
    expose_headers=[REQUEST_ID_HEADER],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Propagate or assign X-Request-ID."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# ============================================================================
# Error Handling
# ============================================================================

@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError):
    """Map typed scheduling errors to HTTP with the failing rule."""
    context = build_log_context(
        request_id=getattr(request.state, "request_id", None),
        route=request.url.path,
        method=request.method,
    )
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, extra=context)
    else:
        logger.info("Request rejected: %s (%s)", type(exc).__name__, exc.reason, extra=context)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__, "reason": exc.reason},
    )


# ============================================================================
# Routers
# ============================================================================

from booking_engine.routers import analytics, appointments, availability, schedules  # noqa: E402

app.include_router(schedules.router, prefix="/schedules", tags=["schedules"])
app.include_router(availability.router, prefix="/availability", tags=["availability"])
app.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
app.include_router(analytics.router, prefix="/analytics", tags=["analytics"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
