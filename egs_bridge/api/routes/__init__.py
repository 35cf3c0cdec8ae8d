"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from egs_bridge.api.routes.auth_routes import router as auth_router
from egs_bridge.api.routes.student_routes import router as student_router
from egs_bridge.api.routes.drive_routes import router as drive_router
from egs_bridge.api.routes.notification_routes import router as notification_router
from egs_bridge.api.routes.reminder_routes import router as reminder_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(student_router)
api_router.include_router(drive_router)
api_router.include_router(notification_router)
api_router.include_router(reminder_router)
