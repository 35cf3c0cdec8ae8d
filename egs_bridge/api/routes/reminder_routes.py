"""
Reminder Routes

POST /reminders/trigger - Send one reminder type for one drive now (officer)
GET /reminders/drive/{drive_id} - Reminder history of a drive (officer)
GET /reminders/me - My reminder history (student)
GET /reminders/stats - Delivery statistics per reminder type (officer)
POST /reminders/resend-failed - Retry failed reminder emails of the last week (officer)
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from egs_bridge.api.deps import get_reminder_service
from egs_bridge.core.auth import get_current_officer, get_current_student
from egs_bridge.schemas.schemas import (
    DriveReminderHistoryResponse, ReminderLogResponse, ReminderStatsResponse,
    ReminderTriggerResponse, ResendFailedResponse, ReminderType, TriggerReminderRequest
)
from egs_bridge.services.reminder_service import ReminderService
from egs_bridge.utils.datetime_utils import to_naive_utc

router = APIRouter(prefix="/reminders", tags=["Reminders"])


@router.post("/trigger", response_model=ReminderTriggerResponse)
def trigger_reminder(
    request: TriggerReminderRequest,
    officer: dict = Depends(get_current_officer),
    reminders: ReminderService = Depends(get_reminder_service)
):
    """
    Manually send a reminder for a drive.

    Body: {"reminder_type": "POSTED" | "24_HOURS_BEFORE" | "DEADLINE_TODAY" | "DRIVE_DAY", "drive_id": "..."}

    Students who already received this reminder type for the drive are
    skipped. Emails go out concurrently; per-recipient results are
    returned in email_results.
    """
    return reminders.trigger(request.drive_id, ReminderType(request.reminder_type))


@router.get("/drive/{drive_id}", response_model=DriveReminderHistoryResponse)
async def drive_reminder_history(
    drive_id: str,
    officer: dict = Depends(get_current_officer),
    reminders: ReminderService = Depends(get_reminder_service)
):
    return reminders.history_for_drive(drive_id)


@router.get("/me", response_model=List[ReminderLogResponse])
async def my_reminders(
    student: dict = Depends(get_current_student),
    reminders: ReminderService = Depends(get_reminder_service)
):
    return reminders.history_for_student(student["user_id"])


@router.get("/stats", response_model=ReminderStatsResponse)
async def reminder_stats(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    officer: dict = Depends(get_current_officer),
    reminders: ReminderService = Depends(get_reminder_service)
):
    """Totals, success/failure counts and success rate per reminder type."""
    return reminders.stats(
        to_naive_utc(start_date) if start_date else None,
        to_naive_utc(end_date) if end_date else None
    )


@router.post("/resend-failed", response_model=ResendFailedResponse)
def resend_failed(
    officer: dict = Depends(get_current_officer),
    reminders: ReminderService = Depends(get_reminder_service)
):
    return reminders.resend_failed()
