"""
Reminder Service

Orchestrates reminder delivery for placement drives:

    eligibility filter -> dedup log claim -> in-app notification
    -> email attempt -> log outcome

Entry points:
- run_daily_reminders(): the three time-window passes run by the scheduler
    24_HOURS_BEFORE  registration deadline falls tomorrow
    DEADLINE_TODAY   registration deadline falls today
    DRIVE_DAY        drive date falls today
- announce_drive(): POSTED reminders, sent synchronously when a drive is created
- trigger(): officer-initiated "send now" for one drive and one reminder type
- resend_failed(): retry emails of FAILED logs from the last few days

Delivery is isolated per student: any error while delivering to one
student is logged and the loop moves on. Log status follows the email
outcome: FAILED when an email was attempted and the dispatcher raised,
SENT otherwise.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import List, Optional
from zoneinfo import ZoneInfo

from loguru import logger
from pymongo.collection import Collection
from pymongo.database import Database

from egs_bridge.core.config import Settings, get_settings
from egs_bridge.core.errors import EmailDeliveryError, NotFoundError
from egs_bridge.db.mongodb import get_collection, COLLECTIONS
from egs_bridge.schemas.schemas import Channel, DriveStatus, ReminderStatus, ReminderType
from egs_bridge.services.eligibility import EligibilityFilter
from egs_bridge.services.email_service import EmailDispatcher, get_email_dispatcher
from egs_bridge.services.mongo_service import to_object_id
from egs_bridge.services.notification_service import NotificationService
from egs_bridge.services.reminder_log_service import ReminderLogService
from egs_bridge.services.reminder_messages import build_reminder_message, build_retry_message
from egs_bridge.utils.datetime_utils import local_date, local_day_window, naive_utc_now

# (reminder type, drive date field, day offset from today)
DAILY_PASSES = [
    (ReminderType.hours_24_before, "registration_deadline", 1),
    (ReminderType.deadline_today, "registration_deadline", 0),
    (ReminderType.drive_day, "drive_date", 0),
]


class ReminderService:
    """
    Sends reminders for drives and keeps the reminder log.
    """

    def __init__(
        self,
        db: Optional[Database] = None,
        email_dispatcher: Optional[EmailDispatcher] = None,
        settings: Optional[Settings] = None,
        max_workers: int = 8
    ):
        self.settings = settings or get_settings()
        self.zone = ZoneInfo(self.settings.reminder_timezone)
        self.drives: Collection = get_collection(COLLECTIONS["drives"], db)
        self.students: Collection = get_collection(COLLECTIONS["students"], db)
        self.eligibility = EligibilityFilter(db)
        self.reminder_logs = ReminderLogService(db)
        self.notifications = NotificationService(db, self.settings)
        self.email = email_dispatcher or get_email_dispatcher()
        self.max_workers = max_workers

    # ------------------------------------------------------------
    # Per-student delivery
    # ------------------------------------------------------------

    def _deliver(self, drive: dict, student: dict, reminder_type: ReminderType) -> Optional[dict]:
        """
        Deliver one reminder to one student. Never raises.

        Returns:
            None when the reminder was already logged, otherwise an outcome dict:
            {"student_id", "email", "notified", "email_status", "error"}
        """
        outcome = {
            "student_id": str(student["_id"]),
            "email": student.get("email"),
            "notified": False,
            "email_status": None,
            "error": None,
        }
        log_id = None
        try:
            log_id = self.reminder_logs.record_sent(
                drive["_id"], student["_id"], reminder_type, [Channel.in_app]
            )
            if log_id is None:
                return None

            content = build_reminder_message(reminder_type, drive, student, self.zone)
            attempt_email = self.email.is_configured and bool(student.get("email"))
            channels = [Channel.in_app, Channel.email] if attempt_email else [Channel.in_app]

            self.notifications.emit(
                student["_id"],
                content.notification_type,
                content.title,
                content.message,
                priority=content.priority,
                drive_id=drive["_id"],
                sent_via=channels,
            )
            outcome["notified"] = True

            status = ReminderStatus.sent
            delivered = [Channel.in_app]
            if attempt_email:
                try:
                    self.email.send(student["email"], content.subject, content.body)
                    outcome["email_status"] = "success"
                    delivered.append(Channel.email)
                except Exception as e:
                    error = e.message if isinstance(e, EmailDeliveryError) else str(e)
                    logger.warning(f"Email for {reminder_type.value} reminder failed ({student['email']}): {error}")
                    outcome["email_status"] = "failed"
                    outcome["error"] = error
                    status = ReminderStatus.failed

            self.reminder_logs.finalize(log_id, status, delivered)
        except Exception as e:
            logger.exception(
                f"Failed to deliver {ReminderType(reminder_type).value} reminder "
                f"for drive {drive.get('_id')} to student {student.get('_id')}"
            )
            outcome["error"] = str(e)
            if log_id and not outcome["notified"]:
                self._release_claim(log_id)
        return outcome

    def _release_claim(self, log_id: str):
        try:
            self.reminder_logs.release(log_id)
        except Exception:
            logger.exception(f"Could not release reminder log {log_id}")

    def send_reminders(
        self,
        drive: dict,
        reminder_type: ReminderType,
        concurrent: bool = False
    ) -> dict:
        """
        Send one reminder type for one drive to every eligible student
        that has not received it yet.

        Args:
            drive: Drive document
            reminder_type: Which reminder to send
            concurrent: Deliver (and email) students in parallel worker threads

        Returns:
            {"students_notified", "skipped", "errors", "email_results"}
        """
        reminder_type = ReminderType(reminder_type)
        recipients = self.eligibility.eligible_recipients(drive, reminder_type)

        if concurrent and len(recipients) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                outcomes = list(pool.map(lambda s: self._deliver(drive, s, reminder_type), recipients))
        else:
            outcomes = [self._deliver(drive, student, reminder_type) for student in recipients]

        delivered = [o for o in outcomes if o is not None]
        result = {
            "students_notified": sum(1 for o in delivered if o["notified"]),
            "skipped": len(outcomes) - len(delivered),
            "errors": sum(1 for o in delivered if not o["notified"]),
            "email_results": [
                {"email": o["email"], "status": o["email_status"], "error": o["error"]}
                for o in delivered if o["email_status"]
            ],
        }
        logger.info(
            f"{reminder_type.value} reminders for {drive.get('company_name')} ({drive['_id']}): "
            f"{result['students_notified']} notified, {result['skipped']} already sent, {result['errors']} errors"
        )
        return result

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    def announce_drive(self, drive: dict) -> dict:
        """POSTED reminders for a freshly created drive."""
        return self.send_reminders(drive, ReminderType.posted, concurrent=True)

    def find_active_drives_between(self, field: str, start: datetime, end: datetime) -> List[dict]:
        return list(self.drives.find({
            field: {"$gte": start, "$lt": end},
            "status": DriveStatus.active.value,
        }))

    def run_daily_reminders(self, now: Optional[datetime] = None) -> dict:
        """
        The daily scheduler pass.

        Drive lookups that fail abort the whole run; a failure while
        processing one drive is logged and the remaining drives continue.

        Returns:
            {reminder type: {"drives": n, "students_notified": n}}
        """
        today = local_date(now, self.zone)
        logger.info(f"Running daily reminders for {today.isoformat()} ({self.zone.key})")

        summary = {}
        for reminder_type, field, offset in DAILY_PASSES:
            start, end = local_day_window(today + timedelta(days=offset), self.zone)
            drives = self.find_active_drives_between(field, start, end)

            notified = 0
            for drive in drives:
                try:
                    notified += self.send_reminders(drive, reminder_type)["students_notified"]
                except Exception:
                    logger.exception(f"{reminder_type.value} pass failed for drive {drive.get('_id')}")

            summary[reminder_type.value] = {"drives": len(drives), "students_notified": notified}

        logger.info(f"Daily reminders completed: {summary}")
        return summary

    def trigger(self, drive_id: str, reminder_type: ReminderType) -> dict:
        """Officer-initiated reminders for one drive; emails go out as a concurrent batch."""
        drive = self.drives.find_one({"_id": to_object_id(drive_id, "Placement drive")})
        if not drive:
            raise NotFoundError("Placement drive not found")

        result = self.send_reminders(drive, reminder_type, concurrent=True)
        return {
            "message": f"Reminders triggered for {result['students_notified']} students",
            "students_notified": result["students_notified"],
            "email_results": result["email_results"],
        }

    def resend_failed(self, days: Optional[int] = None) -> dict:
        """Retry the email of every FAILED reminder from the last `days` days."""
        days = days or self.settings.failed_reminder_window_days
        failed = self.reminder_logs.failed_since(naive_utc_now() - timedelta(days=days))

        results = []
        for log in failed:
            student = self.students.find_one({"_id": log["student_id"]}, {"name": 1, "email": 1})
            item = {
                "reminder_id": str(log["_id"]),
                "student": (student or {}).get("email") or "Unknown",
                "status": "skipped",
                "error": None,
            }
            if not student or not student.get("email") or not self.email.is_configured:
                results.append(item)
                continue

            drive = self.drives.find_one({"_id": log["drive_id"]}, {"company_name": 1, "job_title": 1})
            subject, body = build_retry_message(drive, student)
            try:
                self.email.send(student["email"], subject, body)
            except Exception as e:
                item["status"] = "resend_failed"
                item["error"] = e.message if isinstance(e, EmailDeliveryError) else str(e)
            else:
                self.reminder_logs.mark_resent(log["_id"])
                item["status"] = "resend_success"
            results.append(item)

        logger.info(f"Resent failed reminders: {len(failed)} processed")
        return {
            "message": f"Processed {len(failed)} failed reminders",
            "results": results,
        }

    def history_for_drive(self, drive_id: str) -> dict:
        if not self.drives.find_one({"_id": to_object_id(drive_id, "Placement drive")}, {"_id": 1}):
            raise NotFoundError("Placement drive not found")
        return self.reminder_logs.history_for_drive(drive_id)

    def history_for_student(self, student_id: str) -> List[dict]:
        return self.reminder_logs.history_for_student(student_id)

    def stats(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        return self.reminder_logs.stats(start, end)
