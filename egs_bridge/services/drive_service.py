"""
Drive Service - placement drive CRUD, student registration and statistics.

Creating a drive immediately announces it (POSTED reminder) to every
student meeting the base eligibility criteria.
"""

import re
from typing import List, Optional

from loguru import logger
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database

from egs_bridge.core.errors import BusinessLogicError, ConflictError, NotFoundError
from egs_bridge.db.mongodb import get_collection, COLLECTIONS
from egs_bridge.schemas.schemas import DriveCreate, DriveStatus, DriveUpdate, NotificationType, Priority
from egs_bridge.services.eligibility import min_cgpa
from egs_bridge.services.mongo_service import serialize_doc, serialize_docs, to_object_id
from egs_bridge.services.notification_service import NotificationService
from egs_bridge.services.reminder_log_service import ReminderLogService
from egs_bridge.services.reminder_service import ReminderService
from egs_bridge.utils.datetime_utils import naive_utc_now

RECENTLY_PLACED_FIELDS = {"name": 1, "department": 1, "placed_company": 1, "placed_package": 1}


class DriveService:
    """
    Handles the drives collection.
    """

    def __init__(self, db: Optional[Database] = None, reminder_service: Optional[ReminderService] = None):
        self.collection: Collection = get_collection(COLLECTIONS["drives"], db)
        self.students: Collection = get_collection(COLLECTIONS["students"], db)
        self.notifications = NotificationService(db)
        self.reminder_logs = ReminderLogService(db)
        self.reminders = reminder_service or ReminderService(db)

    def _find(self, drive_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(drive_id, "Placement drive")})
        if not doc:
            raise NotFoundError("Placement drive not found")
        return doc

    def create(self, data: DriveCreate, officer_id: Optional[str] = None) -> dict:
        """
        Insert an Active drive and announce it to eligible students.

        Returns:
            {"drive", "eligible_students", "students_notified"}
        """
        now = naive_utc_now()
        doc = data.model_dump(mode="python")
        doc["eligible_departments"] = [d.value for d in data.eligible_departments]
        doc["mode"] = data.mode.value
        doc.update({
            "posted_by": to_object_id(officer_id, "Officer") if officer_id else None,
            "registered_students": [],
            "status": DriveStatus.active.value,
            "created_at": now,
            "updated_at": now,
        })
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info(f"Drive created: {doc['company_name']} - {doc['job_title']} ({result.inserted_id})")

        announcement = self.reminders.announce_drive(doc)
        return {
            "drive": serialize_doc(doc),
            "eligible_students": announcement["students_notified"] + announcement["skipped"] + announcement["errors"],
            "students_notified": announcement["students_notified"],
        }

    def list_drives(
        self,
        department: Optional[str] = None,
        status: Optional[str] = None,
        company: Optional[str] = None,
        mode: Optional[str] = None,
        student: Optional[dict] = None
    ) -> List[dict]:
        """
        Filtered listing. Passing `student` restricts the result to Active
        drives still open for registration that the student is eligible
        for, and adds is_registered / can_register flags.
        """
        query = {}
        if department:
            query["eligible_departments"] = department
        if status:
            query["status"] = status
        if company:
            query["company_name"] = {"$regex": re.escape(company), "$options": "i"}
        if mode:
            query["mode"] = mode

        now = naive_utc_now()
        if student is not None:
            query["status"] = DriveStatus.active.value
            query["registration_deadline"] = {"$gte": now}
            query["eligible_departments"] = student.get("department")

        drives = list(self.collection.find(query).sort("registration_deadline", ASCENDING))
        if student is None:
            return serialize_docs(drives)

        student_oid = to_object_id(student["user_id"], "Student")
        cgpa = student.get("cgpa") or 0
        out = []
        for drive in drives:
            if min_cgpa(drive) > cgpa:
                continue
            item = serialize_doc(drive)
            item["is_registered"] = student_oid in (drive.get("registered_students") or [])
            item["can_register"] = drive["registration_deadline"] > now
            out.append(item)
        return out

    def get(self, drive_id: str) -> dict:
        return serialize_doc(self._find(drive_id))

    def update(self, drive_id: str, data: DriveUpdate) -> dict:
        """Partial update; only provided fields change."""
        updates = data.model_dump(exclude_unset=True, mode="python")
        if not updates:
            raise BusinessLogicError("No fields to update")
        if updates.get("eligible_departments") is not None:
            updates["eligible_departments"] = [d.value for d in updates["eligible_departments"]]
        for key in ("mode", "status"):
            if key in updates and updates[key] is not None:
                updates[key] = getattr(updates[key], "value", updates[key])
        updates["updated_at"] = naive_utc_now()

        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(drive_id, "Placement drive")},
            {"$set": updates},
            return_document=ReturnDocument.AFTER
        )
        if not doc:
            raise NotFoundError("Placement drive not found")
        return serialize_doc(doc)

    def delete(self, drive_id: str) -> None:
        """Delete a drive with its notifications, reminder logs and student registrations."""
        drive = self._find(drive_id)
        oid = drive["_id"]

        self.notifications.delete_for_drive(oid)
        self.reminder_logs.delete_for_drive(oid)
        self.students.update_many({"registered_drives": oid}, {"$pull": {"registered_drives": oid}})
        self.collection.delete_one({"_id": oid})
        logger.info(f"Drive {drive_id} deleted")

    def register(self, drive_id: str, student: dict) -> dict:
        """
        Register a student for a drive.

        Raises:
            NotFoundError: drive missing
            BusinessLogicError: closed, deadline passed, or not eligible
            ConflictError: already registered
        """
        drive = self._find(drive_id)
        student_oid = to_object_id(student["user_id"], "Student")

        if drive.get("status") != DriveStatus.active.value:
            raise BusinessLogicError("Registration is closed for this drive", error_code="REGISTRATION_CLOSED")
        if drive["registration_deadline"] < naive_utc_now():
            raise BusinessLogicError("Registration deadline has passed", error_code="DEADLINE_PASSED")
        if student.get("department") not in (drive.get("eligible_departments") or []):
            raise BusinessLogicError("Your department is not eligible for this drive", error_code="NOT_ELIGIBLE")
        if (student.get("cgpa") or 0) < min_cgpa(drive):
            raise BusinessLogicError("You do not meet the minimum CGPA requirement", error_code="NOT_ELIGIBLE")

        # $ne guard makes the check-and-append atomic against double submits
        result = self.collection.update_one(
            {"_id": drive["_id"], "registered_students": {"$ne": student_oid}},
            {"$push": {"registered_students": student_oid}, "$set": {"updated_at": naive_utc_now()}}
        )
        if result.modified_count == 0:
            raise ConflictError("You are already registered for this drive", error_code="ALREADY_REGISTERED")

        self.students.update_one({"_id": student_oid}, {"$addToSet": {"registered_drives": drive["_id"]}})

        drive_date = drive["drive_date"].strftime("%d %b %Y")
        self.notifications.emit(
            student_oid,
            NotificationType.status_update,
            f"Registration Successful: {drive['company_name']}",
            f"You have successfully registered for {drive['company_name']} drive. Drive date: {drive_date}",
            priority=Priority.medium,
            drive_id=drive["_id"],
        )
        logger.info(f"Student {student['user_id']} registered for drive {drive_id}")
        return {"message": "Successfully registered for the placement drive", "success": True}

    def statistics(self) -> dict:
        now = naive_utc_now()
        total_students = self.students.count_documents({})
        placed_students = self.students.count_documents({"is_placed": True})

        upcoming = (
            self.collection.find({"drive_date": {"$gte": now}, "status": DriveStatus.active.value})
            .sort("drive_date", ASCENDING)
            .limit(5)
        )
        recently_placed = (
            self.students.find({"is_placed": True}, RECENTLY_PLACED_FIELDS)
            .sort("updated_at", DESCENDING)
            .limit(5)
        )
        by_department = self.students.aggregate([
            {"$group": {"_id": "$department", "count": {"$sum": 1}}},
        ])

        return {
            "total_drives": self.collection.count_documents({}),
            "active_drives": self.collection.count_documents({"status": DriveStatus.active.value}),
            "completed_drives": self.collection.count_documents({"status": DriveStatus.completed.value}),
            "total_students": total_students,
            "placed_students": placed_students,
            "placement_rate": round(placed_students / total_students * 100, 2) if total_students else 0.0,
            "students_by_department": {row["_id"]: row["count"] for row in by_department},
            "upcoming_drives": serialize_docs(upcoming),
            "recently_placed": serialize_docs(recently_placed),
        }
