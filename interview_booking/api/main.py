"""
FastAPI Application

HTTP API for interviewer availability, slot booking and reschedule negotiation.
"""

import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from interview_booking import __version__
from interview_booking.api import bookings, reschedule, slots
from interview_booking.config import get_config
from interview_booking.utils.exceptions import (
    ActorNotAllowedError,
    AlreadyClaimedError,
    BookingError,
    IllegalTransitionError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from interview_booking.utils.limiter import limiter
from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)
config = get_config()

# Create FastAPI app
app = FastAPI(
    title="Interview Booking API",
    description="Interviewer availability, slot booking and reschedule negotiation",
    version=__version__,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS middleware: with allow_credentials=True, origins cannot be "*" (must be explicit).
_cors_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
if config.server.frontend_url:
    _cors_origins.append(config.server.frontend_url.rstrip("/"))
# Extra origins from env (comma-separated)
_extra_origins = os.getenv("CORS_ORIGINS", "")
if _extra_origins:
    for o in _extra_origins.split(","):
        o = o.strip().rstrip("/")
        if o and o not in _cors_origins:
            _cors_origins.append(o)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def status_for(exc: BookingError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (AlreadyClaimedError, IllegalTransitionError)):
        return 409
    if isinstance(exc, ActorNotAllowedError):
        return 403
    if isinstance(exc, ValidationError):
        return 422
    if isinstance(exc, StoreUnavailableError):
        return 503
    return 400


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    code = status_for(exc)
    if code >= 500:
        logger.error(f"[API] {exc.kind} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"[API] {exc.kind} on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=code, content=exc.to_dict())


@app.on_event("startup")
async def startup_store():
    """Ensure MongoDB indexes exist when Mongo backs the store."""
    if config.store.backend != "mongo":
        logger.info("[API] Store backend: memory")
        return
    from interview_booking.db.mongo import ensure_indexes, get_database

    try:
        db = get_database(config)
        ensure_indexes(db)
        logger.info(f"[API] MongoDB database in use: {db.name}; indexes ensured")
    except Exception as e:
        logger.warning(f"[API] Index creation skipped or partial: {e}")


@app.get("/health")
async def health():
    """Liveness check: returns 200 if the process is running."""
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    """Readiness check: returns 200 if the app can serve traffic (e.g. DB reachable)."""
    if config.store.backend != "mongo":
        return {"status": "ready"}
    from interview_booking.db.mongo import get_database

    try:
        db = get_database(config)
        db.client.admin.command("ping")
        return {"status": "ready"}
    except Exception as e:
        logger.warning(f"[API] Readiness check failed: {e}")
        raise HTTPException(status_code=503, detail="Service not ready")


app.include_router(slots.router, prefix="/api")
app.include_router(bookings.router, prefix="/api")
app.include_router(reschedule.router, prefix="/api")
