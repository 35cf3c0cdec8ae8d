"""
Service dependencies for route injection.

Every service is built per request from the injected Database, so tests
swap the store by overriding get_db (and the mailer by overriding
get_email_dispatcher).
"""

from fastapi import Depends
from pymongo.database import Database

from egs_bridge.db.mongodb import get_db
from egs_bridge.services.account_service import OfficerService, StudentService
from egs_bridge.services.drive_service import DriveService
from egs_bridge.services.email_service import EmailDispatcher, get_email_dispatcher
from egs_bridge.services.notification_service import NotificationService
from egs_bridge.services.reminder_service import ReminderService


def get_reminder_service(
    db: Database = Depends(get_db),
    email_dispatcher: EmailDispatcher = Depends(get_email_dispatcher)
) -> ReminderService:
    return ReminderService(db, email_dispatcher=email_dispatcher)


def get_drive_service(
    db: Database = Depends(get_db),
    reminder_service: ReminderService = Depends(get_reminder_service)
) -> DriveService:
    return DriveService(db, reminder_service=reminder_service)


def get_student_service(db: Database = Depends(get_db)) -> StudentService:
    return StudentService(db)


def get_officer_service(db: Database = Depends(get_db)) -> OfficerService:
    return OfficerService(db)


def get_notification_service(db: Database = Depends(get_db)) -> NotificationService:
    return NotificationService(db)
