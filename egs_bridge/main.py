"""
EGS Bridge - Placement Portal Backend

FastAPI backend with:
- MongoDB for students, officers, drives, notifications and reminder logs
- JWT authentication for students and placement officers
- Daily reminder scheduler (registration deadlines, drive day)

Run: uvicorn egs_bridge.main:app --reload
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from egs_bridge import __version__
from egs_bridge.api.routes import api_router
from egs_bridge.core.config import get_settings
from egs_bridge.core.errors import register_exception_handlers
from egs_bridge.core.logging import setup_logging
from egs_bridge.db.mongodb import init_mongo_indexes, test_mongo_connection
from egs_bridge.services.reminder_service import ReminderService
from egs_bridge.services.scheduler import ReminderScheduler

settings = get_settings()
setup_logging(settings.log_level)

# Create FastAPI app
app = FastAPI(
    title="EGS Bridge",
    description="""
    Placement portal connecting students with campus placement drives.

    ## Features
    - **Authentication**: JWT-based auth for students and placement officers
    - **Drives**: Create, browse, and register for placement drives
    - **Notifications**: In-app notifications with optional email delivery
    - **Reminders**: Automatic deadline and drive-day reminders, manual triggers, delivery stats
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API routes
app.include_router(api_router, prefix="/api")


def run_daily_reminders():
    ReminderService().run_daily_reminders()


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create MongoDB indexes, then start the reminder scheduler."""
    try:
        init_mongo_indexes()
    except Exception as e:
        # Without the reminder_logs unique index, reminders could be sent twice
        logger.error(f"MongoDB index initialization failed, reminder scheduler not started: {e}")
        return

    if settings.scheduler_enabled:
        scheduler = ReminderScheduler(
            run_daily_reminders,
            run_at=settings.reminder_time,
            timezone=settings.reminder_timezone,
            poll_seconds=settings.scheduler_poll_seconds
        )
        scheduler.start()
        app.state.reminder_scheduler = scheduler


@app.on_event("shutdown")
async def shutdown_event():
    scheduler = getattr(app.state, "reminder_scheduler", None)
    if scheduler is not None:
        scheduler.stop()


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "EGS Bridge", "version": __version__}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    scheduler = getattr(app.state, "reminder_scheduler", None)
    next_run = scheduler.next_run if scheduler is not None else None

    return {
        "status": "healthy",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
        "scheduler": "running" if scheduler is not None and scheduler.is_running else "stopped",
        "next_reminder_run": next_run.isoformat() if next_run else None,
    }
