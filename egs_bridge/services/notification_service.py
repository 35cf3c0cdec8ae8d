"""
Notification Service

emit() is the notification emitter used by reminders, drive
registration and placement updates: it stores the notification and
pushes its id onto the student's notification list. Everything else
here backs the student-facing notification routes.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database

from egs_bridge.core.config import Settings, get_settings
from egs_bridge.core.errors import NotFoundError
from egs_bridge.db.mongodb import get_collection, COLLECTIONS
from egs_bridge.schemas.schemas import Channel, NotificationType, Priority
from egs_bridge.services.mongo_service import serialize_doc, serialize_docs, to_object_id
from egs_bridge.utils.datetime_utils import local_date, local_day_window, naive_utc_now

IdLike = Union[str, ObjectId]


class NotificationService:
    """
    Handles in-app notifications.
    """

    def __init__(self, db: Optional[Database] = None, settings: Optional[Settings] = None):
        self.collection: Collection = get_collection(COLLECTIONS["notifications"], db)
        self.students: Collection = get_collection(COLLECTIONS["students"], db)
        self.zone = ZoneInfo((settings or get_settings()).reminder_timezone)

    def emit(
        self,
        student_id: IdLike,
        notification_type: NotificationType,
        title: str,
        message: str,
        priority: Priority = Priority.medium,
        drive_id: Optional[IdLike] = None,
        sent_via: Optional[List[Channel]] = None
    ) -> str:
        """
        Create a notification and link it to the student.

        sent_via always contains IN_APP; callers add EMAIL when they
        are about to attempt an email for the same event.

        Returns:
            Notification id as string
        """
        channels = [Channel(c).value for c in (sent_via or [Channel.in_app])]
        if Channel.in_app.value not in channels:
            channels.insert(0, Channel.in_app.value)

        student_oid = to_object_id(student_id, "Student")
        doc = {
            "student_id": student_oid,
            "drive_id": to_object_id(drive_id, "Drive") if drive_id else None,
            "type": NotificationType(notification_type).value,
            "title": title,
            "message": message,
            "is_read": False,
            "priority": Priority(priority).value,
            "sent_via": channels,
            "created_at": naive_utc_now(),
        }
        result = self.collection.insert_one(doc)

        self.students.update_one(
            {"_id": student_oid},
            {"$push": {"notifications": result.inserted_id}}
        )
        return str(result.inserted_id)

    def create_manual(
        self,
        student_id: str,
        title: str,
        message: str,
        notification_type: NotificationType = NotificationType.status_update,
        priority: Priority = Priority.medium,
        drive_id: Optional[str] = None
    ) -> dict:
        """Officer-authored notification; the student must exist."""
        student_oid = to_object_id(student_id, "Student")
        if not self.students.find_one({"_id": student_oid}, {"_id": 1}):
            raise NotFoundError("Student not found")

        notification_id = self.emit(
            student_oid, notification_type, title, message,
            priority=priority, drive_id=drive_id
        )
        return self.get(notification_id)

    def get(self, notification_id: IdLike) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(notification_id, "Notification")})
        if not doc:
            raise NotFoundError("Notification not found")
        return serialize_doc(doc)

    def list_for_student(self, student_id: IdLike, limit: int = 50, read: Optional[bool] = None) -> dict:
        student_oid = to_object_id(student_id, "Student")
        query = {"student_id": student_oid}
        if read is not None:
            query["is_read"] = read

        notifications = serialize_docs(
            self.collection.find(query).sort("created_at", DESCENDING).limit(limit)
        )
        unread_count = self.collection.count_documents({"student_id": student_oid, "is_read": False})

        return {
            "notifications": notifications,
            "unread_count": unread_count,
            "total": len(notifications),
        }

    def mark_as_read(self, student_id: IdLike, notification_id: IdLike) -> dict:
        query = {
            "_id": to_object_id(notification_id, "Notification"),
            "student_id": to_object_id(student_id, "Student"),
        }
        result = self.collection.update_one(query, {"$set": {"is_read": True}})
        if result.matched_count == 0:
            raise NotFoundError("Notification not found")
        return serialize_doc(self.collection.find_one(query))

    def mark_all_as_read(self, student_id: IdLike) -> int:
        result = self.collection.update_many(
            {"student_id": to_object_id(student_id, "Student"), "is_read": False},
            {"$set": {"is_read": True}}
        )
        return result.modified_count

    def delete(self, student_id: IdLike, notification_id: IdLike) -> None:
        """Delete a student's notification and unlink it from the student."""
        student_oid = to_object_id(student_id, "Student")
        notification_oid = to_object_id(notification_id, "Notification")

        result = self.collection.delete_one({"_id": notification_oid, "student_id": student_oid})
        if result.deleted_count == 0:
            raise NotFoundError("Notification not found")

        self.students.update_one(
            {"_id": student_oid},
            {"$pull": {"notifications": notification_oid}}
        )

    def stats_for_student(self, student_id: IdLike, now: Optional[datetime] = None) -> dict:
        """Last 30 days grouped by type/read, plus today's and urgent-unread counts."""
        student_oid = to_object_id(student_id, "Student")
        now = now or naive_utc_now()
        # "today" is the local calendar day the reminder passes use
        start_of_day, _ = local_day_window(local_date(now, self.zone), self.zone)

        rows = self.collection.aggregate([
            {"$match": {"student_id": student_oid, "created_at": {"$gte": now - timedelta(days=30)}}},
            {"$group": {"_id": {"type": "$type", "read": "$is_read"}, "count": {"$sum": 1}}},
        ])
        stats = [
            {"type": row["_id"]["type"], "is_read": row["_id"]["read"], "count": row["count"]}
            for row in rows
        ]

        return {
            "stats": sorted(stats, key=lambda s: (s["type"], s["is_read"])),
            "today_count": self.collection.count_documents(
                {"student_id": student_oid, "created_at": {"$gte": start_of_day}}
            ),
            "urgent_count": self.collection.count_documents(
                {"student_id": student_oid, "priority": Priority.urgent.value, "is_read": False}
            ),
            "total": self.collection.count_documents({"student_id": student_oid}),
        }

    def delete_for_drive(self, drive_id: IdLike) -> int:
        """Remove a drive's notifications and unlink them from their students."""
        drive_oid = to_object_id(drive_id, "Drive")
        ids = [doc["_id"] for doc in self.collection.find({"drive_id": drive_oid}, {"_id": 1})]
        if not ids:
            return 0
        self.students.update_many(
            {"notifications": {"$in": ids}},
            {"$pullAll": {"notifications": ids}}
        )
        return self.collection.delete_many({"_id": {"$in": ids}}).deleted_count

    def delete_for_student(self, student_id: IdLike) -> int:
        result = self.collection.delete_many({"student_id": to_object_id(student_id, "Student")})
        return result.deleted_count
