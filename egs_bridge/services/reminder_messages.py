"""
Reminder message templates.

One builder per reminder type; each returns the in-app notification
fields and the email subject/body for a single student.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from egs_bridge.schemas.schemas import NotificationType, Priority, ReminderType

SIGNATURE = "Best regards,\nPlacement Cell"


@dataclass(frozen=True)
class ReminderMessage:
    notification_type: NotificationType
    priority: Priority
    title: str
    message: str
    subject: str
    body: str


def format_date(value: datetime, zone: ZoneInfo) -> str:
    """Stored naive-UTC datetime as a local calendar date, e.g. 21 Oct 2026."""
    if value is None:
        return "TBA"
    return value.replace(tzinfo=timezone.utc).astimezone(zone).strftime("%d %b %Y")


def _venue_line(drive: dict, online_hint: str) -> str:
    if drive.get("mode") == "Offline":
        return f"Venue: {drive.get('venue')}"
    return online_hint


def _posted(drive: dict, student: dict, zone: ZoneInfo) -> ReminderMessage:
    company = drive["company_name"]
    deadline = format_date(drive.get("registration_deadline"), zone)
    return ReminderMessage(
        notification_type=NotificationType.job_posted,
        priority=Priority.high,
        title=f"New Placement Drive: {company}",
        message=f"A new placement drive for {company} has been posted. Registration deadline: {deadline}",
        subject=f"New Placement Drive: {company}",
        body=(
            f"Dear {student.get('name')},\n\n"
            f"A new placement drive for {company} has been posted.\n"
            f"Position: {drive.get('job_title')}\n"
            f"Registration Deadline: {deadline}\n"
            f"Drive Date: {format_date(drive.get('drive_date'), zone)}\n\n"
            f"Login to EGS Bridge for more details.\n\n{SIGNATURE}"
        ),
    )


def _deadline_tomorrow(drive: dict, student: dict, zone: ZoneInfo) -> ReminderMessage:
    company = drive["company_name"]
    return ReminderMessage(
        notification_type=NotificationType.deadline_reminder,
        priority=Priority.urgent,
        title=f"Deadline Tomorrow: {company}",
        message=f"Registration for {company} closes tomorrow! Don't miss this opportunity.",
        subject=f"Registration Closes Tomorrow: {company}",
        body=(
            f"Dear {student.get('name')},\n\n"
            f"This is a reminder that registration for {company} closes tomorrow.\n\n"
            f"Drive Details:\n"
            f"Company: {company}\n"
            f"Position: {drive.get('job_title')}\n"
            f"Registration Link: {drive.get('registration_link')}\n\n{SIGNATURE}"
        ),
    )


def _deadline_today(drive: dict, student: dict, zone: ZoneInfo) -> ReminderMessage:
    company = drive["company_name"]
    return ReminderMessage(
        notification_type=NotificationType.deadline_reminder,
        priority=Priority.urgent,
        title=f"Deadline Today: {company}",
        message=f"Today is the last day to register for {company}! Register now.",
        subject=f"Last Day to Register: {company}",
        body=(
            f"Dear {student.get('name')},\n\n"
            f"Registration for {company} closes today.\n\n"
            f"Drive Details:\n"
            f"Company: {company}\n"
            f"Position: {drive.get('job_title')}\n"
            f"Registration Link: {drive.get('registration_link')}\n\n{SIGNATURE}"
        ),
    )


def _drive_day(drive: dict, student: dict, zone: ZoneInfo) -> ReminderMessage:
    company = drive["company_name"]
    drive_time = drive.get("drive_time")
    mode = drive.get("mode")
    return ReminderMessage(
        notification_type=NotificationType.drive_day,
        priority=Priority.high,
        title=f"Drive Today: {company}",
        message=(
            f"Today is your {company} drive at {drive_time}. Mode: {mode}. "
            f"{_venue_line(drive, 'Check your email for online link')}"
        ),
        subject=f"Drive Today: {company}",
        body=(
            f"Dear {student.get('name')},\n\n"
            f"Your {company} placement drive is scheduled for today at {drive_time}.\n\n"
            f"Mode: {mode}\n"
            f"{_venue_line(drive, 'The online link will be shared 30 minutes before the drive')}\n\n"
            f"All the best!\nPlacement Cell"
        ),
    )


BUILDERS = {
    ReminderType.posted: _posted,
    ReminderType.hours_24_before: _deadline_tomorrow,
    ReminderType.deadline_today: _deadline_today,
    ReminderType.drive_day: _drive_day,
}


def build_reminder_message(reminder_type: ReminderType, drive: dict, student: dict, zone: ZoneInfo) -> ReminderMessage:
    return BUILDERS[ReminderType(reminder_type)](drive, student, zone)


def build_retry_message(drive: dict, student: dict) -> tuple:
    """Subject and body used when re-sending a failed reminder email."""
    company = drive.get("company_name") if drive else "your placement drive"
    return (
        f"Reminder: {company}",
        f"Dear {student.get('name')},\n\nThis is a reminder about the {company} drive.\n\n{SIGNATURE}",
    )
