"""
Notification Routes

GET /notifications - My notifications
GET /notifications/stats - My notification counters
PUT /notifications/read-all - Mark all as read
PUT /notifications/{notification_id}/read - Mark one as read
DELETE /notifications/{notification_id} - Delete one
POST /notifications - Send a manual notification (officer)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from egs_bridge.api.deps import get_notification_service
from egs_bridge.core.auth import get_current_officer, get_current_student
from egs_bridge.schemas.schemas import (
    MessageResponse, NotificationCreate, NotificationListResponse,
    NotificationResponse, NotificationStatsResponse
)
from egs_bridge.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    read: Optional[bool] = None,
    student: dict = Depends(get_current_student),
    notifications: NotificationService = Depends(get_notification_service)
):
    """Newest first. `read` filters on read state; unread_count is always the full count."""
    return notifications.list_for_student(student["user_id"], limit=limit, read=read)


@router.get("/stats", response_model=NotificationStatsResponse)
async def notification_stats(
    student: dict = Depends(get_current_student),
    notifications: NotificationService = Depends(get_notification_service)
):
    return notifications.stats_for_student(student["user_id"])


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_read(
    student: dict = Depends(get_current_student),
    notifications: NotificationService = Depends(get_notification_service)
):
    count = notifications.mark_all_as_read(student["user_id"])
    return MessageResponse(message=f"{count} notifications marked as read")


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    student: dict = Depends(get_current_student),
    notifications: NotificationService = Depends(get_notification_service)
):
    return notifications.mark_as_read(student["user_id"], notification_id)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: str,
    student: dict = Depends(get_current_student),
    notifications: NotificationService = Depends(get_notification_service)
):
    notifications.delete(student["user_id"], notification_id)
    return MessageResponse(message="Notification deleted successfully")


@router.post("", response_model=NotificationResponse, status_code=201)
async def create_notification(
    data: NotificationCreate,
    officer: dict = Depends(get_current_officer),
    notifications: NotificationService = Depends(get_notification_service)
):
    """Send a notification to one student."""
    return notifications.create_manual(
        data.student_id,
        data.title,
        data.message,
        notification_type=data.type,
        priority=data.priority,
        drive_id=data.drive_id
    )
