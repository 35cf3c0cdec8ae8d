from datetime import timedelta

from bson import ObjectId

from egs_bridge.schemas.schemas import Channel, ReminderStatus, ReminderType
from egs_bridge.services.reminder_log_service import ReminderLogService
from egs_bridge.utils.datetime_utils import naive_utc_now


def test_record_sent_is_insert_if_absent(db):
    logs = ReminderLogService(db)
    drive_id, student_id = ObjectId(), ObjectId()

    first = logs.record_sent(drive_id, student_id, ReminderType.hours_24_before, [Channel.in_app])
    second = logs.record_sent(drive_id, student_id, ReminderType.hours_24_before, [Channel.in_app])

    assert first is not None
    assert second is None
    assert db.reminder_logs.count_documents({}) == 1
    assert logs.has_been_sent(drive_id, student_id, ReminderType.hours_24_before)


def test_dedup_key_includes_reminder_type(db):
    logs = ReminderLogService(db)
    drive_id, student_id = ObjectId(), ObjectId()

    assert logs.record_sent(drive_id, student_id, ReminderType.hours_24_before, [Channel.in_app])
    assert logs.record_sent(drive_id, student_id, ReminderType.deadline_today, [Channel.in_app])
    assert not logs.has_been_sent(drive_id, student_id, ReminderType.drive_day)


def test_finalize_and_release(db):
    logs = ReminderLogService(db)
    drive_id, student_id = ObjectId(), ObjectId()
    log_id = logs.record_sent(drive_id, student_id, ReminderType.drive_day, [Channel.in_app])

    assert logs.finalize(log_id, ReminderStatus.failed, [Channel.in_app])
    doc = db.reminder_logs.find_one({"_id": ObjectId(log_id)})
    assert doc["status"] == "FAILED"
    assert doc["reminder_type"] == "DRIVE_DAY"

    assert logs.release(log_id)
    assert not logs.has_been_sent(drive_id, student_id, ReminderType.drive_day)


def test_mark_resent_only_touches_failed_logs(db):
    logs = ReminderLogService(db)
    failed_id = logs.record_sent(ObjectId(), ObjectId(), ReminderType.posted, [Channel.in_app], ReminderStatus.failed)
    sent_id = logs.record_sent(ObjectId(), ObjectId(), ReminderType.posted, [Channel.in_app])

    assert logs.mark_resent(failed_id)
    assert not logs.mark_resent(sent_id)

    doc = db.reminder_logs.find_one({"_id": ObjectId(failed_id)})
    assert doc["status"] == "SENT"
    assert doc["sent_via"] == ["IN_APP", "EMAIL_RETRY"]
    assert "resent_at" in doc


def test_failed_since_respects_window(db):
    logs = ReminderLogService(db)
    recent = logs.record_sent(ObjectId(), ObjectId(), ReminderType.posted, [Channel.in_app], ReminderStatus.failed)
    old = logs.record_sent(ObjectId(), ObjectId(), ReminderType.posted, [Channel.in_app], ReminderStatus.failed)
    db.reminder_logs.update_one(
        {"_id": ObjectId(old)},
        {"$set": {"sent_at": naive_utc_now() - timedelta(days=10)}}
    )

    failed = logs.failed_since(naive_utc_now() - timedelta(days=7))

    assert [str(log["_id"]) for log in failed] == [recent]


def test_stats_per_reminder_type(db, make_student, make_drive):
    logs = ReminderLogService(db)
    student_a, student_b = make_student(), make_student()
    drive_1, drive_2 = make_drive(), make_drive(company_name="Globex")

    logs.record_sent(drive_1["_id"], student_a["_id"], ReminderType.hours_24_before, [Channel.in_app])
    logs.record_sent(drive_1["_id"], student_b["_id"], ReminderType.hours_24_before, [Channel.in_app], ReminderStatus.failed)
    logs.record_sent(drive_2["_id"], student_a["_id"], ReminderType.hours_24_before, [Channel.in_app])
    logs.record_sent(drive_1["_id"], student_a["_id"], ReminderType.drive_day, [Channel.in_app])

    stats = logs.stats()

    assert stats["total"] == 4
    first = stats["stats"][0]
    assert first["type"] == "24_HOURS_BEFORE"
    assert first["total"] == 3
    assert first["success"] == 2
    assert first["failed"] == 1
    assert first["success_rate"] == 66.67
    assert first["unique_drives"] == 2
    assert len(stats["recent_reminders"]) == 4
    assert stats["recent_reminders"][0]["student"]["name"].startswith("Student")


def test_history_for_drive_summarises_per_type(db, make_student, make_drive):
    logs = ReminderLogService(db)
    student_a, student_b = make_student(), make_student()
    drive = make_drive()
    logs.record_sent(drive["_id"], student_a["_id"], ReminderType.posted, [Channel.in_app])
    logs.record_sent(drive["_id"], student_b["_id"], ReminderType.posted, [Channel.in_app])
    logs.record_sent(drive["_id"], student_a["_id"], ReminderType.drive_day, [Channel.in_app])

    history = logs.history_for_drive(str(drive["_id"]))

    assert history["total"] == 3
    summary = {row["reminder_type"]: row for row in history["summary"]}
    assert summary["POSTED"]["count"] == 2
    assert set(summary["POSTED"]["students"]) == {str(student_a["_id"]), str(student_b["_id"])}
    assert summary["DRIVE_DAY"]["count"] == 1
    assert all(item["drive_id"] == str(drive["_id"]) for item in history["reminders"])
