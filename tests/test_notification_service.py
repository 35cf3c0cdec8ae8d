from datetime import datetime

import pytest
from bson import ObjectId

from egs_bridge.core.errors import NotFoundError
from egs_bridge.schemas.schemas import Channel, NotificationType, Priority
from egs_bridge.services.notification_service import NotificationService
from tests.conftest import NOW


def test_emit_links_notification_to_student(db, make_student):
    student = make_student()
    notifications = NotificationService(db)

    notification_id = notifications.emit(
        student["_id"], NotificationType.deadline_reminder, "Deadline", "Soon", priority=Priority.urgent
    )

    doc = db.notifications.find_one({"_id": ObjectId(notification_id)})
    assert doc["type"] == "DEADLINE_REMINDER"
    assert doc["priority"] == "URGENT"
    assert doc["sent_via"] == ["IN_APP"]
    assert doc["is_read"] is False
    assert db.students.find_one({"_id": student["_id"]})["notifications"] == [ObjectId(notification_id)]


def test_emit_always_includes_in_app(db, make_student):
    student = make_student()
    notification_id = NotificationService(db).emit(
        student["_id"], NotificationType.drive_day, "Drive", "Today", sent_via=[Channel.email]
    )
    assert db.notifications.find_one({"_id": ObjectId(notification_id)})["sent_via"] == ["IN_APP", "EMAIL"]


def test_list_and_read_flow(db, make_student):
    student = make_student()
    notifications = NotificationService(db)
    first = notifications.emit(student["_id"], NotificationType.job_posted, "One", "1")
    notifications.emit(student["_id"], NotificationType.job_posted, "Two", "2")

    listing = notifications.list_for_student(student["_id"])
    assert listing["total"] == 2
    assert listing["unread_count"] == 2

    read = notifications.mark_as_read(student["_id"], first)
    assert read["is_read"] is True
    assert notifications.list_for_student(student["_id"], read=False)["total"] == 1

    assert notifications.mark_all_as_read(student["_id"]) == 1
    assert notifications.list_for_student(student["_id"])["unread_count"] == 0


def test_students_cannot_touch_each_others_notifications(db, make_student):
    owner, other = make_student(), make_student()
    notifications = NotificationService(db)
    notification_id = notifications.emit(owner["_id"], NotificationType.job_posted, "Mine", "mine")

    with pytest.raises(NotFoundError):
        notifications.mark_as_read(other["_id"], notification_id)
    with pytest.raises(NotFoundError):
        notifications.delete(other["_id"], notification_id)


def test_delete_unlinks_from_student(db, make_student):
    student = make_student()
    notifications = NotificationService(db)
    notification_id = notifications.emit(student["_id"], NotificationType.job_posted, "One", "1")

    notifications.delete(student["_id"], notification_id)

    assert db.notifications.count_documents({}) == 0
    assert db.students.find_one({"_id": student["_id"]})["notifications"] == []


def test_stats_counts_urgent_unread(db, make_student):
    student = make_student()
    notifications = NotificationService(db)
    notifications.emit(student["_id"], NotificationType.deadline_reminder, "A", "a", priority=Priority.urgent)
    notifications.emit(student["_id"], NotificationType.job_posted, "B", "b", priority=Priority.high)

    stats = notifications.stats_for_student(student["_id"])

    assert stats["total"] == 2
    assert stats["today_count"] == 2
    assert stats["urgent_count"] == 1
    assert {s["type"] for s in stats["stats"]} == {"DEADLINE_REMINDER", "JOB_POSTED"}


def test_today_count_uses_local_calendar_day(db, settings, make_student):
    student = make_student()
    notifications = NotificationService(db, settings)
    after_local_midnight = notifications.emit(student["_id"], NotificationType.job_posted, "A", "a")
    before_local_midnight = notifications.emit(student["_id"], NotificationType.job_posted, "B", "b")
    # 01:30 IST on 18 Oct and 23:30 IST on 17 Oct; both are 17 Oct in UTC
    db.notifications.update_one({"_id": ObjectId(after_local_midnight)}, {"$set": {"created_at": datetime(2026, 10, 17, 20, 0)}})
    db.notifications.update_one({"_id": ObjectId(before_local_midnight)}, {"$set": {"created_at": datetime(2026, 10, 17, 18, 0)}})

    stats = notifications.stats_for_student(student["_id"], now=NOW)

    assert stats["total"] == 2
    assert stats["today_count"] == 1


def test_manual_notification_requires_existing_student(db):
    with pytest.raises(NotFoundError):
        NotificationService(db).create_manual(str(ObjectId()), "Hi", "there")


def test_delete_for_drive_cascades(db, make_student, make_drive):
    student = make_student()
    drive = make_drive()
    notifications = NotificationService(db)
    notifications.emit(student["_id"], NotificationType.job_posted, "Drive", "d", drive_id=drive["_id"])
    keep = notifications.emit(student["_id"], NotificationType.status_update, "Other", "o")

    assert notifications.delete_for_drive(drive["_id"]) == 1
    assert db.students.find_one({"_id": student["_id"]})["notifications"] == [ObjectId(keep)]
