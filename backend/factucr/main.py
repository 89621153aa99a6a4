import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from factucr.config import settings
from factucr.database import engine
from factucr.middleware.tenant import TenantMiddleware
from factucr.middleware.rate_limit import RateLimitMiddleware
from factucr.middleware.security import (
    SecurityHeadersMiddleware,
    HTTPSRedirectMiddleware,
)
from factucr.middleware.exceptions import register_exception_handlers
from factucr.routers import activity, company, customers, health, invoices, products, reports
from factucr.utils.redis_client import close_redis

logger = logging.getLogger("factucr.lifespan")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("FactuCR starting (environment=%s)", settings.environment)
    yield
    await close_redis()
    await engine.dispose()
    logger.info("FactuCR stopped")


app = FastAPI(
    title="FactuCR",
    description="Multi-tenant invoicing with Costa Rica electronic invoice export",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)

# HTTPS redirect (production only)
app.add_middleware(
    HTTPSRedirectMiddleware, force_https=settings.environment == "production"
)

if settings.rate_limit_enabled:
    app.add_middleware(
        RateLimitMiddleware,
        default_limit=settings.rate_limit_per_minute,
        authenticated_limit=settings.rate_limit_authenticated_per_minute,
        default_window=60,
        exempt_paths=["/health", "/health/ready", "/docs", "/openapi.json"],
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Tenant context from the JWT
app.add_middleware(TenantMiddleware)

# ── Routers ──────────────────────────────────────────────────
# Public (no tenant context needed)
app.include_router(health.router)

# Tenant-scoped (require tenant_schema in JWT)
app.include_router(company.router, prefix="/api/company", tags=["company"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["invoices"])
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
app.include_router(activity.router, prefix="/api/activity", tags=["activity"])
