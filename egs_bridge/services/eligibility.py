"""
Eligibility Filter

Decides which students a reminder for a drive goes to.

Base criteria (drive announcement):
    department in drive.eligible_departments
    AND cgpa >= drive.eligibility_criteria.min_cgpa (default 0)
    AND not placed

Variants per reminder type:
- POSTED:                    base criteria
- 24_HOURS_BEFORE / DEADLINE_TODAY: base criteria AND not yet registered
- DRIVE_DAY:                 registered students only, base criteria ignored

The Mongo query and the in-memory predicate express the same rule;
the query is what the reminder passes use, the predicate is used for
registration checks and to keep the two honest in tests.
"""

from typing import List, Optional

from pymongo.collection import Collection
from pymongo.database import Database

from egs_bridge.db.mongodb import get_collection, COLLECTIONS
from egs_bridge.schemas.schemas import ReminderType


def min_cgpa(drive: dict) -> float:
    """Minimum CGPA of a drive; missing or null means no cutoff."""
    criteria = drive.get("eligibility_criteria") or {}
    return criteria.get("min_cgpa") or 0


def base_criteria_query(drive: dict) -> dict:
    return {
        "department": {"$in": list(drive.get("eligible_departments") or [])},
        "cgpa": {"$gte": min_cgpa(drive)},
        "is_placed": False,
    }


def recipient_query(drive: dict, reminder_type: ReminderType) -> dict:
    """MongoDB filter over the students collection for one reminder type."""
    reminder_type = ReminderType(reminder_type)
    registered = list(drive.get("registered_students") or [])

    if reminder_type == ReminderType.drive_day:
        return {"_id": {"$in": registered}}

    query = base_criteria_query(drive)
    if reminder_type in (ReminderType.hours_24_before, ReminderType.deadline_today):
        query["_id"] = {"$nin": registered}
    return query


def meets_base_criteria(drive: dict, student: dict) -> bool:
    return (
        student.get("department") in (drive.get("eligible_departments") or [])
        and (student.get("cgpa") or 0) >= min_cgpa(drive)
        and not student.get("is_placed", False)
    )


def is_recipient(drive: dict, student: dict, reminder_type: ReminderType) -> bool:
    """In-memory twin of recipient_query."""
    reminder_type = ReminderType(reminder_type)
    registered = student.get("_id") in (drive.get("registered_students") or [])

    if reminder_type == ReminderType.drive_day:
        return registered
    if reminder_type == ReminderType.posted:
        return meets_base_criteria(drive, student)
    return meets_base_criteria(drive, student) and not registered


class EligibilityFilter:
    """Read-only lookup of reminder recipients for a drive."""

    def __init__(self, db: Optional[Database] = None):
        self.students: Collection = get_collection(COLLECTIONS["students"], db)

    def eligible_recipients(
        self,
        drive: dict,
        reminder_type: ReminderType = ReminderType.posted
    ) -> List[dict]:
        """Student documents (without password hash) that should receive this reminder."""
        cursor = self.students.find(
            recipient_query(drive, reminder_type),
            {"password_hash": 0}
        ).sort("register_number", 1)
        return list(cursor)
