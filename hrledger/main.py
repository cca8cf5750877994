"""
HR Ledger — Application entry point.

This is the **only** file that assembles the app.  Business rules live in
`services/`; `api/` only maps them onto HTTP.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hrledger.api.v1.api import api_router
from hrledger.api.v1.endpoints.auth import limiter
from hrledger.core.config import settings
from hrledger.core.exceptions import register_exception_handlers
from hrledger.db.base import Base
from hrledger.db.session import async_session_factory, engine

# Ensure all models are imported so metadata.create_all can see them
from hrledger.models.attendance import Attendance  # noqa: F401
from hrledger.models.leave_request import LeaveRequest  # noqa: F401
from hrledger.models.notification import Notification  # noqa: F401
from hrledger.models.user import User  # noqa: F401
from hrledger.services.directory import Directory

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def seed_admin() -> None:
    """Create the first admin account unless that email is already registered."""
    async with async_session_factory() as session:
        directory = Directory(session)
        if await directory.get_by_email(settings.FIRST_ADMIN_EMAIL) is not None:
            return
        result = await directory.create_user(
            email=settings.FIRST_ADMIN_EMAIL,
            password=settings.FIRST_ADMIN_PASSWORD,
            full_name="System Administrator",
            role="admin",
        )
        if result:
            logger.info(
                "Default admin created: %s (password: <redacted>)",
                settings.FIRST_ADMIN_EMAIL,
            )


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    await seed_admin()

    logger.info("HR Ledger v%s started", settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Attendance, leave and notification ledgers",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiting (login / refresh)
    application.state.limiter = limiter

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    # Mount API v1
    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
