"""
HotelOps - Main FastAPI Application
"""
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

import logging

import httpx

from hotelops.config import settings
from hotelops.errors import (
    BillingValidationError,
    BookingValidationError,
    GatewayError,
    GatewayResponseError,
    RecordNotFound,
    RefundPermissionError,
    RoomUnavailableError,
)
from hotelops.services.cache import QueryCache
from hotelops.services.realtime import RealtimeManager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)
from hotelops.api.v1 import (
    auth, rooms, room_types, guests, guest_documents, reservations, availability, pricing, dashboard, exports,
    invoices, payments, reports,
)

# Rate limiter instance (shared with route-level decorators)
limiter = Limiter(key_func=get_remote_address, default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting up %s...", settings.APP_NAME)
    app.state.http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    app.state.query_cache = QueryCache(
        default_ttl=settings.QUERY_CACHE_TTL_SECONDS, maxsize=settings.QUERY_CACHE_MAX_ENTRIES,
    )
    app.state.realtime = None
    if settings.REALTIME_ENABLED:
        app.state.realtime = RealtimeManager.for_cache(app.state.query_cache)
        app.state.realtime.start()
        logger.info("Realtime subscriptions started for %s", ", ".join(settings.REALTIME_TABLES))
    yield
    # Shutdown
    logger.info("Shutting down...")
    if app.state.realtime is not None:
        await app.state.realtime.stop()
    await app.state.http_client.aclose()


app = FastAPI(
    title="HotelOps API",
    description="Hotel operations: rooms, reservations, guests and front desk",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan
)

# Attach limiter to app state (required by slowapi)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Trusted Host Middleware: reject requests with spoofed Host headers
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept"],
)


# Security headers middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response: Response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
    return response


# ============== Error mapping ==============

@app.exception_handler(BookingValidationError)
async def booking_validation_handler(request: Request, exc: BookingValidationError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


@app.exception_handler(BillingValidationError)
async def billing_validation_handler(request: Request, exc: BillingValidationError):
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content={"detail": str(exc)})


@app.exception_handler(RefundPermissionError)
async def refund_permission_handler(request: Request, exc: RefundPermissionError):
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(RoomUnavailableError)
async def room_unavailable_handler(request: Request, exc: RoomUnavailableError):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    if isinstance(exc, RecordNotFound):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, GatewayResponseError) or exc.status_code is None:
        status_code = status.HTTP_502_BAD_GATEWAY
    else:
        status_code = exc.status_code
    logger.warning(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code, "details": exc.details},
    )


# Include routers
app.include_router(auth.router, prefix="/api/v1/auth", tags=["Authentication"])
app.include_router(rooms.router, prefix="/api/v1/rooms", tags=["Rooms"])
app.include_router(room_types.router, prefix="/api/v1/room-types", tags=["Room Types"])
app.include_router(guests.router, prefix="/api/v1/guests", tags=["Guests"])
app.include_router(guest_documents.router, prefix="/api/v1", tags=["Guest Documents"])
app.include_router(reservations.router, prefix="/api/v1/reservations", tags=["Reservations"])
app.include_router(availability.router, prefix="/api/v1/availability", tags=["Availability"])
app.include_router(pricing.router, prefix="/api/v1/pricing", tags=["Pricing"])
app.include_router(dashboard.router, prefix="/api/v1/dashboard", tags=["Dashboard"])
app.include_router(exports.router, prefix="/api/v1/exports", tags=["Exports"])
app.include_router(invoices.router, prefix="/api/v1/invoices", tags=["Billing"])
app.include_router(payments.router, prefix="/api/v1/payments", tags=["Billing"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["Financial Reports"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}
