"""
Reminder Log Service - the deduplication log.

One document per (drive, student, reminder type):
{
    "drive_id": ObjectId,
    "student_id": ObjectId,
    "reminder_type": "24_HOURS_BEFORE",
    "sent_at": datetime,
    "sent_via": ["IN_APP", "EMAIL"],
    "status": "SENT" | "FAILED"
}

The unique compound index created in init_mongo_indexes turns
record_sent into an atomic insert-if-absent: a second insert for the
same triple raises DuplicateKeyError, which means "already sent".
"""

from datetime import datetime
from typing import List, Optional, Union
from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from egs_bridge.db.mongodb import get_collection, COLLECTIONS
from egs_bridge.schemas.schemas import Channel, ReminderStatus, ReminderType
from egs_bridge.services.mongo_service import serialize_doc, to_object_id
from egs_bridge.utils.datetime_utils import naive_utc_now

IdLike = Union[str, ObjectId]

STUDENT_FIELDS = {"name": 1, "register_number": 1, "department": 1, "email": 1}
DRIVE_FIELDS = {"company_name": 1, "job_title": 1, "drive_date": 1}


def _key(drive_id: IdLike, student_id: IdLike, reminder_type: ReminderType) -> dict:
    return {
        "drive_id": to_object_id(drive_id, "Drive"),
        "student_id": to_object_id(student_id, "Student"),
        "reminder_type": ReminderType(reminder_type).value,
    }


class ReminderLogService:
    """
    Handles reminder_logs storage and reporting.
    """

    def __init__(self, db: Optional[Database] = None):
        self.collection: Collection = get_collection(COLLECTIONS["reminder_logs"], db)
        self.students: Collection = get_collection(COLLECTIONS["students"], db)
        self.drives: Collection = get_collection(COLLECTIONS["drives"], db)

    # ------------------------------------------------------------
    # Deduplication
    # ------------------------------------------------------------

    def has_been_sent(self, drive_id: IdLike, student_id: IdLike, reminder_type: ReminderType) -> bool:
        return self.collection.find_one(_key(drive_id, student_id, reminder_type), {"_id": 1}) is not None

    def record_sent(
        self,
        drive_id: IdLike,
        student_id: IdLike,
        reminder_type: ReminderType,
        channels: List[Channel],
        status: ReminderStatus = ReminderStatus.sent
    ) -> Optional[str]:
        """
        Insert the log entry unless one already exists for the triple.

        Returns:
            The new log id, or None when the reminder was already logged
        """
        doc = {
            **_key(drive_id, student_id, reminder_type),
            "sent_at": naive_utc_now(),
            "sent_via": [Channel(c).value for c in channels],
            "status": ReminderStatus(status).value,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            return None
        return str(result.inserted_id)

    def finalize(self, log_id: IdLike, status: ReminderStatus, channels: List[Channel]) -> bool:
        """Set the outcome of a delivery recorded earlier by record_sent."""
        result = self.collection.update_one(
            {"_id": to_object_id(log_id, "Reminder log")},
            {"$set": {
                "status": ReminderStatus(status).value,
                "sent_via": [Channel(c).value for c in channels],
            }}
        )
        return result.matched_count > 0

    def release(self, log_id: IdLike) -> bool:
        """Drop a log entry whose delivery never happened, so the next run retries it."""
        result = self.collection.delete_one({"_id": to_object_id(log_id, "Reminder log")})
        return result.deleted_count > 0

    def mark_resent(self, log_id: IdLike) -> bool:
        """FAILED -> SENT after a successful email retry."""
        result = self.collection.update_one(
            {"_id": to_object_id(log_id, "Reminder log"), "status": ReminderStatus.failed.value},
            {
                "$set": {"status": ReminderStatus.sent.value, "resent_at": naive_utc_now()},
                "$push": {"sent_via": Channel.email_retry.value},
            }
        )
        return result.modified_count > 0

    def failed_since(self, since: datetime) -> List[dict]:
        """Raw FAILED log documents sent at or after `since`."""
        return list(self.collection.find({
            "status": ReminderStatus.failed.value,
            "sent_at": {"$gte": since},
        }).sort("sent_at", DESCENDING))

    # ------------------------------------------------------------
    # History
    # ------------------------------------------------------------

    def _attach(self, logs: List[dict], with_student: bool = False, with_drive: bool = False) -> List[dict]:
        """Embed a few student / drive fields into each log (manual populate)."""
        students, drives = {}, {}
        if with_student:
            ids = list({log["student_id"] for log in logs})
            students = {s["_id"]: s for s in self.students.find({"_id": {"$in": ids}}, STUDENT_FIELDS)}
        if with_drive:
            ids = list({log["drive_id"] for log in logs})
            drives = {d["_id"]: d for d in self.drives.find({"_id": {"$in": ids}}, DRIVE_FIELDS)}

        out = []
        for log in logs:
            item = serialize_doc(log)
            if with_student:
                item["student"] = serialize_doc(students.get(log["student_id"]))
            if with_drive:
                item["drive"] = serialize_doc(drives.get(log["drive_id"]))
            out.append(item)
        return out

    def history_for_drive(self, drive_id: IdLike) -> dict:
        """All reminders of a drive, newest first, with a per-type summary."""
        oid = to_object_id(drive_id, "Drive")
        logs = list(self.collection.find({"drive_id": oid}).sort("sent_at", DESCENDING))

        summary = self.collection.aggregate([
            {"$match": {"drive_id": oid}},
            {"$group": {
                "_id": "$reminder_type",
                "count": {"$sum": 1},
                "students": {"$addToSet": "$student_id"},
            }},
        ])

        return {
            "reminders": self._attach(logs, with_student=True),
            "summary": sorted(
                [
                    {
                        "reminder_type": row["_id"],
                        "count": row["count"],
                        "students": [str(s) for s in row["students"]],
                    }
                    for row in summary
                ],
                key=lambda row: row["reminder_type"]
            ),
            "total": len(logs),
        }

    def history_for_student(self, student_id: IdLike) -> List[dict]:
        logs = list(
            self.collection.find({"student_id": to_object_id(student_id, "Student")})
            .sort("sent_at", DESCENDING)
        )
        return self._attach(logs, with_drive=True)

    def stats(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """
        Per reminder type: total, success, failed, success_rate and the
        number of distinct drives, over an optional sent_at range.
        """
        match = {}
        if start or end:
            match["sent_at"] = {}
            if start:
                match["sent_at"]["$gte"] = start
            if end:
                match["sent_at"]["$lte"] = end

        rows = self.collection.aggregate([
            {"$match": match},
            {"$group": {
                "_id": {"type": "$reminder_type", "status": "$status"},
                "count": {"$sum": 1},
                "drives": {"$addToSet": "$drive_id"},
            }},
        ])

        per_type = {}
        for row in rows:
            reminder_type = row["_id"]["type"]
            entry = per_type.setdefault(
                reminder_type,
                {"type": reminder_type, "total": 0, "success": 0, "failed": 0, "drives": set()}
            )
            entry["total"] += row["count"]
            if row["_id"]["status"] == ReminderStatus.sent.value:
                entry["success"] += row["count"]
            elif row["_id"]["status"] == ReminderStatus.failed.value:
                entry["failed"] += row["count"]
            entry["drives"].update(row["drives"])

        stats = []
        for entry in per_type.values():
            drives = entry.pop("drives")
            entry["unique_drives"] = len(drives)
            entry["success_rate"] = round(entry["success"] / entry["total"] * 100, 2) if entry["total"] else 0.0
            stats.append(entry)
        stats.sort(key=lambda e: e["total"], reverse=True)

        recent = list(self.collection.find(match).sort("sent_at", DESCENDING).limit(10))

        return {
            "stats": stats,
            "recent_reminders": self._attach(recent, with_student=True, with_drive=True),
            "total": self.collection.count_documents(match),
        }

    def delete_for_student(self, student_id: IdLike) -> int:
        result = self.collection.delete_many({"student_id": to_object_id(student_id, "Student")})
        return result.deleted_count

    def delete_for_drive(self, drive_id: IdLike) -> int:
        result = self.collection.delete_many({"drive_id": to_object_id(drive_id, "Drive")})
        return result.deleted_count

