"""
Restaurant Reservations - FastAPI Backend Application
"""

from contextlib import asynccontextmanager
import logging
import sys

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
import structlog

from app.config import settings
from app.database import SessionLocal
from app.api import audit, auth, customer_auth, reservations, schedules, tables
from app.utils.exceptions import register_exception_handlers

VERSION = "1.0.0"

# Configure structured logging
logging.basicConfig(format="%(message)s", stream=sys.stdout, level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(
        "Starting Reservations API",
        version=VERSION,
        enforce_status_transitions=settings.enforce_status_transitions,
    )
    yield
    logger.info("Shutting down Reservations API")


# Create FastAPI application
app = FastAPI(
    title="Restaurant Reservations",
    description="Table reservations, operating hours and audit trail for a restaurant",
    version=VERSION,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": VERSION}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


# Include API routers
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(customer_auth.router, prefix="/clientes/auth", tags=["Customer Authentication"])
app.include_router(reservations.router, prefix="/reservas", tags=["Reservations"])
app.include_router(reservations.staff_router, prefix="/staff/reservas", tags=["Staff Reservations"])
app.include_router(reservations.customer_router, prefix="/cliente/reservas", tags=["Customer Reservations"])
app.include_router(schedules.router, prefix="/horarios", tags=["Operating Hours"])
app.include_router(tables.router, prefix="/mesas", tags=["Tables"])
app.include_router(audit.router, prefix="/historial", tags=["Audit Log"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
