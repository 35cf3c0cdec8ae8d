"""
Account Services - students and placement officers.

Students self-register and log in with their register number;
placement officers are provisioned by scripts/create_officer.py and
log in with their email.
"""

import re
from typing import List, Optional

from loguru import logger
from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from egs_bridge.core.auth import create_access_token, hash_password, verify_password
from egs_bridge.core.errors import (
    AuthenticationError, BusinessLogicError, ConflictError, NotFoundError, PermissionDeniedError
)
from egs_bridge.db.mongodb import get_collection, COLLECTIONS
from egs_bridge.schemas.schemas import (
    DriveStatus, NotificationType, Priority, StudentRegisterRequest, StudentUpdate, UserRole
)
from egs_bridge.services.mongo_service import serialize_doc, serialize_docs, to_object_id
from egs_bridge.services.notification_service import NotificationService
from egs_bridge.services.reminder_log_service import ReminderLogService
from egs_bridge.utils.datetime_utils import naive_utc_now

PUBLIC_PLACED_FIELDS = {"name": 1, "department": 1, "placed_company": 1, "placed_package": 1}
REGISTERED_DRIVE_FIELDS = {
    "company_name": 1, "job_title": 1, "drive_date": 1, "drive_time": 1, "mode": 1, "status": 1
}


def _token_response(doc: dict, role: UserRole) -> dict:
    token = create_access_token({"sub": str(doc["_id"]), "role": role.value})
    user = serialize_doc(doc)
    user["role"] = role.value
    return {"access_token": token, "token_type": "bearer", "user": user}


class StudentService:
    """
    Student accounts, profiles and placement status.
    """

    def __init__(self, db: Optional[Database] = None):
        self.collection: Collection = get_collection(COLLECTIONS["students"], db)
        self.drives: Collection = get_collection(COLLECTIONS["drives"], db)
        self.notifications = NotificationService(db)
        self.reminder_logs = ReminderLogService(db)

    # ------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------

    def register(self, data: StudentRegisterRequest) -> dict:
        """Create a student account and return a login token for it."""
        register_number = data.register_number.upper()
        email = data.email.lower()

        if self.collection.find_one({"$or": [{"register_number": register_number}, {"email": email}]}):
            raise ConflictError("Student with this register number or email already exists")

        now = naive_utc_now()
        doc = {
            "register_number": register_number,
            "name": data.name,
            "email": email,
            "password_hash": hash_password(data.password),
            "department": data.department.value,
            "cgpa": data.cgpa,
            "skills": data.skills,
            "phone": data.phone,
            "is_placed": False,
            "placed_company": None,
            "placed_package": None,
            "registered_drives": [],
            "notifications": [],
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Student with this register number or email already exists")

        doc["_id"] = result.inserted_id
        logger.info(f"Student registered: {register_number}")
        return _token_response(doc, UserRole.student)

    def authenticate(self, register_number: str, password: str) -> dict:
        doc = self.collection.find_one({"register_number": register_number.strip().upper()})
        if not doc or not verify_password(password, doc["password_hash"]):
            raise AuthenticationError("Invalid register number or password")
        return _token_response(doc, UserRole.student)

    # ------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------

    def get(self, student_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(student_id, "Student")}, {"password_hash": 0})
        if not doc:
            raise NotFoundError("Student not found")
        return serialize_doc(doc)

    def update_profile(self, student_id: str, data: StudentUpdate) -> dict:
        """Only name, email, phone, cgpa and skills are editable by the student."""
        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise BusinessLogicError("No fields to update")
        if "email" in updates and updates["email"]:
            updates["email"] = updates["email"].lower()
        updates["updated_at"] = naive_utc_now()

        try:
            result = self.collection.update_one(
                {"_id": to_object_id(student_id, "Student")},
                {"$set": updates}
            )
        except DuplicateKeyError:
            raise ConflictError("Email is already in use")
        if result.matched_count == 0:
            raise NotFoundError("Student not found")
        return self.get(student_id)

    def registered_drives(self, student_id: str) -> List[dict]:
        cursor = self.drives.find(
            {
                "registered_students": to_object_id(student_id, "Student"),
                "status": {"$in": [DriveStatus.active.value, DriveStatus.completed.value]},
            },
            REGISTERED_DRIVE_FIELDS
        ).sort("drive_date", ASCENDING)
        return serialize_docs(cursor)

    def statistics(self, student_id: str) -> dict:
        student = self.collection.find_one({"_id": to_object_id(student_id, "Student")})
        if not student:
            raise NotFoundError("Student not found")

        now = naive_utc_now()
        eligible = {
            "eligible_departments": student["department"],
            "eligibility_criteria.min_cgpa": {"$lte": student.get("cgpa") or 0},
        }

        return {
            "total_drives": self.drives.count_documents({**eligible, "status": DriveStatus.active.value}),
            "registered_drives": self.drives.count_documents({"registered_students": student["_id"]}),
            "upcoming_drives": self.drives.count_documents({
                "registered_students": student["_id"],
                "drive_date": {"$gte": now},
                "status": DriveStatus.active.value,
            }),
            "missed_deadlines": self.drives.count_documents({
                **eligible,
                "registration_deadline": {"$lt": now},
                "registered_students": {"$ne": student["_id"]},
            }),
            "placement_status": "Placed" if student.get("is_placed") else "Not Placed",
            "placed_company": student.get("placed_company"),
            "placed_package": student.get("placed_package"),
        }

    # ------------------------------------------------------------
    # Officer operations
    # ------------------------------------------------------------

    def mark_placed(self, student_id: str, company: str, package: Optional[float] = None) -> dict:
        oid = to_object_id(student_id, "Student")
        result = self.collection.update_one(
            {"_id": oid},
            {"$set": {
                "is_placed": True,
                "placed_company": company,
                "placed_package": package,
                "updated_at": naive_utc_now(),
            }}
        )
        if result.matched_count == 0:
            raise NotFoundError("Student not found")

        package_text = f" with package ₹{package} LPA" if package else ""
        self.notifications.emit(
            oid,
            NotificationType.status_update,
            "Congratulations! You're Placed!",
            f"You have been placed at {company}{package_text}.",
            priority=Priority.high,
        )
        logger.info(f"Student {student_id} marked as placed at {company}")
        return self.get(student_id)

    def list_all(
        self,
        department: Optional[str] = None,
        is_placed: Optional[bool] = None,
        search: Optional[str] = None
    ) -> List[dict]:
        query = {}
        if department:
            query["department"] = department
        if is_placed is not None:
            query["is_placed"] = is_placed
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"register_number": pattern}, {"email": pattern}]

        return serialize_docs(self.collection.find(query, {"password_hash": 0}).sort("name", ASCENDING))

    def placed(self, limit: int = 5) -> List[dict]:
        cursor = (
            self.collection.find({"is_placed": True}, PUBLIC_PLACED_FIELDS)
            .sort("updated_at", DESCENDING)
            .limit(limit)
        )
        return serialize_docs(cursor)

    def delete(self, student_id: str) -> None:
        """Delete a student along with their registrations, notifications and reminder logs."""
        oid = to_object_id(student_id, "Student")
        if not self.collection.find_one({"_id": oid}, {"_id": 1}):
            raise NotFoundError("Student not found")

        self.drives.update_many({"registered_students": oid}, {"$pull": {"registered_students": oid}})
        self.notifications.delete_for_student(oid)
        self.reminder_logs.delete_for_student(oid)
        self.collection.delete_one({"_id": oid})
        logger.info(f"Student {student_id} deleted")


class OfficerService:
    """
    Placement officer accounts.
    """

    def __init__(self, db: Optional[Database] = None):
        self.collection: Collection = get_collection(COLLECTIONS["officers"], db)

    def create(self, name: str, email: str, password: str, department: Optional[str] = None) -> dict:
        email = email.strip().lower()
        doc = {
            "name": name,
            "email": email,
            "password_hash": hash_password(password),
            "department": department,
            "is_active": True,
            "created_at": naive_utc_now(),
        }
        try:
            result = self.collection.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Officer with this email already exists")
        doc["_id"] = result.inserted_id
        logger.info(f"Placement officer created: {email}")
        return serialize_doc(doc)

    def authenticate(self, email: str, password: str) -> dict:
        doc = self.collection.find_one({"email": email.strip().lower()})
        if not doc or not verify_password(password, doc["password_hash"]):
            raise AuthenticationError("Invalid credentials")
        if not doc.get("is_active", True):
            raise PermissionDeniedError("Account is deactivated", error_code="ACCOUNT_DEACTIVATED")
        return _token_response(doc, UserRole.placement_officer)

    def get(self, officer_id: str) -> dict:
        doc = self.collection.find_one({"_id": to_object_id(officer_id, "Officer")}, {"password_hash": 0})
        if not doc:
            raise NotFoundError("Officer not found")
        return serialize_doc(doc)
