import threading
from datetime import datetime, timedelta

import mongomock
import pytest

from egs_bridge.core.config import Settings
from egs_bridge.core.errors import EmailDeliveryError
from egs_bridge.db.mongodb import init_mongo_indexes
from egs_bridge.services.reminder_service import ReminderService

# 04:00 UTC = 09:30 in Asia/Kolkata, so "today" is 18 Oct and "tomorrow" 19 Oct locally
NOW = datetime(2026, 10, 18, 4, 0)
TOMORROW_NOON_IST = datetime(2026, 10, 19, 6, 30)
TODAY_NOON_IST = datetime(2026, 10, 18, 6, 30)


class FakeEmailDispatcher:
    """Records sent mail; addresses in `failing` raise like a broken SMTP server."""

    def __init__(self, configured=True, failing=()):
        self.is_configured = configured
        self.failing = set(failing)
        self.sent = []
        self._lock = threading.Lock()

    def send(self, to_address, subject, body):
        if to_address in self.failing:
            raise EmailDeliveryError(f"Failed to send email to {to_address}: connection refused")
        with self._lock:
            self.sent.append({"to": to_address, "subject": subject, "body": body})
        return True


@pytest.fixture
def db():
    database = mongomock.MongoClient()["egs_bridge_test"]
    init_mongo_indexes(database)
    return database


@pytest.fixture
def settings():
    return Settings(_env_file=None, smtp_user="", reminder_timezone="Asia/Kolkata")


@pytest.fixture
def mailer():
    return FakeEmailDispatcher()


@pytest.fixture
def reminder_service(db, mailer, settings):
    # single worker: mongomock is not safe for concurrent writers
    return ReminderService(db, email_dispatcher=mailer, settings=settings, max_workers=1)


@pytest.fixture
def make_student(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        doc = {
            "register_number": f"REG{n:05d}",
            "name": f"Student {n}",
            "email": f"student{n}@college.edu",
            "password_hash": "x",
            "department": "CSE",
            "cgpa": 8.0,
            "skills": [],
            "is_placed": False,
            "placed_company": None,
            "placed_package": None,
            "registered_drives": [],
            "notifications": [],
            "created_at": NOW,
            "updated_at": NOW,
        }
        doc.update(overrides)
        doc["_id"] = db.students.insert_one(doc).inserted_id
        return doc

    return _make


@pytest.fixture
def make_drive(db):
    def _make(**overrides):
        doc = {
            "company_name": "Acme Corp",
            "job_title": "Software Engineer",
            "job_description": "Build things",
            "eligible_departments": ["CSE"],
            "eligibility_criteria": {"min_cgpa": 7.0, "required_skills": [], "backlog_allowed": False},
            "registration_link": "https://acme.example.com/apply",
            "registration_deadline": TOMORROW_NOON_IST,
            "drive_date": TOMORROW_NOON_IST + timedelta(days=5),
            "drive_time": "10:00 AM",
            "mode": "Offline",
            "venue": "Main Auditorium",
            "registered_students": [],
            "status": "Active",
            "created_at": NOW,
            "updated_at": NOW,
        }
        doc.update(overrides)
        doc["_id"] = db.drives.insert_one(doc).inserted_id
        return doc

    return _make
