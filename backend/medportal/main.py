"""
MedPortal Backend — cash-pay medical supply ordering.

ARCHITECTURE:
- FastAPI Backend: catalog, orders, checkout links, Stripe payments
- SQL database (SQLite by default): source of truth for stock and status
- Stripe: card payments, confirmed only through signed webhooks
- Email / SMS: payment links and confirmations (best-effort)
- Partner pharmacy: simulated FHIR MedicationRequest submission

MONEY MODEL:
- Order totals are integer cents, computed once at creation
- An order becomes PAID only from a verified Stripe webhook, exactly once
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

from medportal.api.routes import (
    analytics,
    auth,
    notifications,
    orders,
    patients,
    payments,
    pharmacy,
    products,
    users,
)
from medportal.agent.stock_monitor import start_stock_monitor, stop_stock_monitor
from medportal.core.config import settings
from medportal.core.rate_limiter import RateLimitMiddleware
from medportal.db.init_db import init_db

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    1. Initialize database tables (and ADMIN_EMAILS accounts)
    2. Start the low-stock monitor

    Shutdown:
    1. Stop the low-stock monitor
    """
    try:
        logger.info("Initializing database...")
        init_db()
        logger.info("Database initialized")

        if settings.LOW_STOCK_SCAN_INTERVAL_SECONDS > 0:
            start_stock_monitor()
        else:
            logger.warning("Low stock monitor disabled (LOW_STOCK_SCAN_INTERVAL_SECONDS=0)")
    except Exception:
        logger.exception("Startup error")

    yield

    try:
        stop_stock_monitor()
    except Exception:
        logger.exception("Shutdown error")


app = FastAPI(
    title="MedPortal API",
    description="Medical supply orders, Stripe checkout and pharmacy hand-off.",
    version="0.1.0",
    lifespan=lifespan,
)

# SECURITY: Trust only specific hosts
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# SECURITY: Restrict CORS to specific methods and headers (not wildcards)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "Accept",
        "Origin",
    ],
    max_age=600,
    expose_headers=["Content-Type", "Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
)

# SECURITY: Rate limiting to prevent brute force and DoS attacks
app.add_middleware(RateLimitMiddleware)


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(products.router, prefix="/products", tags=["products"])
app.include_router(orders.router, prefix="/orders", tags=["orders"])
app.include_router(payments.router, prefix="/payments", tags=["payments"])
app.include_router(patients.router, prefix="/patients", tags=["patients"])
app.include_router(users.router, prefix="/users", tags=["users"])
app.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
app.include_router(pharmacy.router, prefix="/pharmacy", tags=["pharmacy"])
app.include_router(notifications.router, prefix="/notifications", tags=["notifications"])


@app.get("/health")
def health():
    return {"status": "ok", "stripe_configured": bool(settings.STRIPE_SECRET_KEY)}
