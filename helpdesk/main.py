"""
HelpDesk Service - Main Application
===================================

Internal helpdesk ticketing: users file tickets, technicians work them
under an SLA, administrators manage reference data.

Modules:
- Tickets: Lifecycle, timeline, internal comments, dashboard, SLA monitor
- Admin: Users, categories, SLA targets, settings

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities, value objects and policies
- Infrastructure: Database, Slack, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

# Configuration
from helpdesk.config import settings

# Infrastructure
from helpdesk.infrastructure.database import (
    init_database, close_database, create_tables,
    get_engine, get_session_context
)

# Admin module
from helpdesk.admin.domain import NotificationSettings
from helpdesk.admin.infrastructure import SQLAlchemySettingsRepository
from helpdesk.admin.interfaces import (
    auth_router, users_router, categories_router,
    sla_config_router, settings_router
)

# Tickets module
from helpdesk.tickets.application import SLAMonitorService
from helpdesk.tickets.infrastructure import (
    SlackClient, SlackTicketNotifier, SLAScheduler,
    SQLAlchemyTicketRepository
)
from helpdesk.tickets.interfaces import router as tickets_router, dashboard_router

# Shared
from helpdesk.shared.api.middleware import (
    CorrelationIDMiddleware,
    LoggingMiddleware,
    register_exception_handlers
)
from helpdesk.shared.infrastructure.logging import setup_logging, get_logger, log_latency

logger = get_logger(__name__)


async def run_sla_monitor(app: FastAPI) -> int:
    """
    One SLA sweep on its own session.

    Notification toggles are read fresh on every run so changes saved from
    the settings screen apply without a restart.
    """
    async with get_session_context() as session:
        stored = await SQLAlchemySettingsRepository(session).get(NotificationSettings.KEY)
        notifier = SlackTicketNotifier(
            app.state.slack_client,
            NotificationSettings(**stored) if stored else NotificationSettings()
        )
        with log_latency(logger, "sla_monitor_run"):
            return await app.state.sla_monitor.run_once(
                SQLAlchemyTicketRepository(session), notifier
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database
    3. Create database tables
    4. Create Slack client
    5. Start SLA monitor scheduler

    SHUTDOWN:
    1. Stop SLA monitor scheduler
    2. Close Slack client
    3. Close database connections
    """
    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting HelpDesk Service", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()

    # Create tables (for development - use migrations in production)
    # If the database is unreachable the server still starts and
    # database-backed endpoints answer 503
    logger.info("Creating database tables")
    try:
        await create_tables()
    except (SQLAlchemyError, OSError) as e:
        logger.warning(
            "Database not available - running in degraded mode",
            extra={"error": str(e)}
        )

    app.state.slack_client = SlackClient()
    if not app.state.slack_client.is_configured:
        logger.info("Slack webhook not configured - notifications disabled")

    app.state.sla_monitor = SLAMonitorService()
    app.state.sla_scheduler = None
    if settings.sla_monitor_interval > 0:
        scheduler = SLAScheduler(interval_seconds=settings.sla_monitor_interval)
        await scheduler.start(lambda: run_sla_monitor(app))
        app.state.sla_scheduler = scheduler
    else:
        logger.info("SLA monitor disabled")

    logger.info("HelpDesk Service started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down HelpDesk Service")

    if app.state.sla_scheduler:
        await app.state.sla_scheduler.stop()

    await app.state.slack_client.close()
    await close_database()

    logger.info("HelpDesk Service shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="HelpDesk API",
    description="""
    ## Internal Helpdesk Ticketing

    Users file tickets, technicians work them under an SLA, administrators
    manage users, categories, SLA targets and settings.

    ---

    ### 🎫 Tickets

    - `GET /tickets`, `POST /tickets` - List (role-filtered) and create
    - `GET/PUT/DELETE /tickets/{id}` - Detail, guarded update, delete
    - `POST /tickets/{id}/start` - Start work on an assigned ticket
    - `GET/POST /tickets/{id}/timeline` - Timeline and comments
    - `GET/POST /tickets/{id}/internal-comments` - Staff-only notes
    - `GET /dashboard` - Aggregated figures

    **Rules:**
    - A ticket leaves `open` only once it has an assignee
    - Every status, assignment and priority change is logged on the timeline
    - `sla_deadline = created_at + category.sla_hours`, fixed at creation
    - SLA status: `overdue` past the deadline, `near_deadline` within 2 hours

    ---

    ### 🛠️ Administration

    - `POST /auth/login`, `GET /users/me/capabilities`
    - `/users`, `/categories`, `/sla-config`, `/settings/general`, `/settings/notifications`

    The acting user is named by the `X-User-Id` header.

    ---
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
app.add_middleware(LoggingMiddleware)
app.add_middleware(CorrelationIDMiddleware)
register_exception_handlers(app)

# === Include Module Routers ===
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(tickets_router)
app.include_router(dashboard_router)
app.include_router(categories_router)
app.include_router(sla_config_router)
app.include_router(settings_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service status",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "database": "connected",
                        "sla_monitor": "running",
                        "slack": "configured"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """
    Health check endpoint for load balancers and orchestrators.

    Reports database connectivity, the SLA monitor state and whether
    Slack notifications are configured. A failed database check marks the
    service degraded.
    """
    checks = {}

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except (SQLAlchemyError, OSError, RuntimeError) as e:
        checks["database"] = f"error: {type(e).__name__}"

    scheduler = getattr(request.app.state, "sla_scheduler", None)
    checks["sla_monitor"] = "running" if scheduler and scheduler.is_running else "stopped"

    slack_client = getattr(request.app.state, "slack_client", None)
    checks["slack"] = "configured" if slack_client and slack_client.is_configured else "not_configured"

    return {
        "status": "healthy" if checks["database"] == "connected" else "degraded",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"], responses={
    200: {
        "description": "API information",
        "content": {
            "application/json": {
                "example": {
                    "service": "HelpDesk Service",
                    "version": "1.0.0",
                    "architecture": "Clean Architecture / Modular Monolith",
                    "docs": "/docs",
                    "health": "/health"
                }
            }
        }
    }
})
async def root():
    """Root endpoint with API information."""
    return {
        "service": "HelpDesk Service",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": {
            "tickets": {
                "prefix": "/tickets",
                "endpoints": [
                    "GET /tickets - List tickets",
                    "POST /tickets - Create ticket",
                    "GET /tickets/{id} - Ticket detail",
                    "PUT /tickets/{id} - Update status, priority, assignee",
                    "GET /dashboard - Dashboard figures"
                ]
            },
            "admin": {
                "prefix": "/users, /categories, /sla-config, /settings",
                "endpoints": [
                    "POST /auth/login - Log in",
                    "GET /users/me/capabilities - Caller capabilities",
                    "GET /categories - Active categories",
                    "GET /sla-config - SLA targets"
                ]
            }
        }
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "helpdesk.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level="info"
    )
