"""Sweet Narcisse API: FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from narcisse.core.config import settings
from narcisse.core.exceptions import register_exception_handlers
from narcisse.core.metrics import set_boat_capacity
from narcisse.db.base import engine, session_scope
from narcisse.middleware.audit import AuditMiddleware
from narcisse.middleware.metrics import MetricsMiddleware
from narcisse.repositories.boat import BoatRepository
from narcisse.schemas.common import HealthResponse

# Public routes (booking widget, marketing site, payment providers)
from narcisse.routers.auth import router as auth_router
from narcisse.routers.availability import router as availability_router
from narcisse.routers.bookings import qr_router as booking_qr_router
from narcisse.routers.bookings import router as bookings_router
from narcisse.routers.cms import router as cms_router
from narcisse.routers.contact import router as contact_router
from narcisse.routers.metrics import router as metrics_router
from narcisse.routers.payments import router as payments_router

# Back-office routes
from narcisse.routers.admin.accounting import router as admin_accounting_router
from narcisse.routers.admin.boats import router as admin_boats_router
from narcisse.routers.admin.bookings import router as admin_bookings_router
from narcisse.routers.admin.cms import router as admin_cms_router
from narcisse.routers.admin.contacts import router as admin_contacts_router
from narcisse.routers.admin.employees import router as admin_employees_router
from narcisse.routers.admin.files import router as admin_files_router
from narcisse.routers.admin.hours import router as admin_hours_router
from narcisse.routers.admin.payments import router as admin_payments_router

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("fitz").setLevel(logging.WARNING)


async def _publish_boat_capacity() -> None:
    """Seed the boat_capacity gauge; a missing schema only costs the gauge."""
    try:
        async with session_scope() as session:
            for boat in await BoatRepository(session).list_all():
                set_boat_capacity(boat.name, boat.capacity)
    except SQLAlchemyError as exc:
        logger.warning("Boat capacity gauge not initialised: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await _publish_boat_capacity()
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        openapi_url="/api/openapi.json",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, settings.public_base_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Audit + request metrics ---
    app.add_middleware(AuditMiddleware, enabled=settings.audit_enabled)
    app.add_middleware(MetricsMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- Public API (/api/*) ---
    app.include_router(availability_router)
    app.include_router(bookings_router)
    app.include_router(booking_qr_router)
    app.include_router(payments_router)
    app.include_router(cms_router)
    app.include_router(contact_router)
    app.include_router(auth_router)
    app.include_router(metrics_router)

    # --- Back-office API (/api/admin/*) ---
    for admin_router in (
        admin_bookings_router,
        admin_payments_router,
        admin_boats_router,
        admin_accounting_router,
        admin_cms_router,
        admin_employees_router,
        admin_files_router,
        admin_hours_router,
        admin_contacts_router,
    ):
        app.include_router(admin_router, prefix="/api/admin")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env)

    return app


app = create_app()
