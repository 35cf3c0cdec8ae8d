from datetime import timedelta
from unittest.mock import patch

import pytest
from bson import ObjectId

from egs_bridge.core.errors import NotFoundError
from egs_bridge.schemas.schemas import ReminderType
from egs_bridge.services.reminder_service import ReminderService
from tests.conftest import NOW, TODAY_NOON_IST, TOMORROW_NOON_IST, FakeEmailDispatcher


def _logs_for(db, student, reminder_type):
    return list(db.reminder_logs.find({"student_id": student["_id"], "reminder_type": reminder_type}))


def test_deadline_tomorrow_reaches_only_eligible_students(db, reminder_service, make_student, make_drive):
    eligible = make_student(department="CSE", cgpa=8.0)
    wrong_department = make_student(department="ECE", cgpa=9.0)
    make_drive(eligible_departments=["CSE"], eligibility_criteria={"min_cgpa": 7.0})

    summary = reminder_service.run_daily_reminders(now=NOW)

    assert summary["24_HOURS_BEFORE"] == {"drives": 1, "students_notified": 1}
    notification = db.notifications.find_one({"student_id": eligible["_id"]})
    assert notification["priority"] == "URGENT"
    assert notification["type"] == "DEADLINE_REMINDER"
    assert len(_logs_for(db, eligible, "24_HOURS_BEFORE")) == 1
    assert db.notifications.count_documents({"student_id": wrong_department["_id"]}) == 0


def test_rerunning_the_pass_sends_nothing_new(db, reminder_service, mailer, make_student, make_drive):
    make_student()
    make_drive()

    reminder_service.run_daily_reminders(now=NOW)
    second = reminder_service.run_daily_reminders(now=NOW + timedelta(hours=2))

    assert second["24_HOURS_BEFORE"]["students_notified"] == 0
    assert db.notifications.count_documents({}) == 1
    assert db.reminder_logs.count_documents({}) == 1
    assert len(mailer.sent) == 1


def test_existing_log_blocks_the_reminder(db, reminder_service, make_student, make_drive):
    student = make_student()
    drive = make_drive()
    reminder_service.reminder_logs.record_sent(drive["_id"], student["_id"], ReminderType.hours_24_before, ["IN_APP"])

    result = reminder_service.send_reminders(drive, ReminderType.hours_24_before)

    assert result["students_notified"] == 0
    assert result["skipped"] == 1
    assert db.notifications.count_documents({}) == 0


def test_drive_day_overrides_eligibility_for_registered(db, reminder_service, make_student, make_drive):
    registered_low_cgpa = make_student(cgpa=2.0)
    eligible_unregistered = make_student(cgpa=9.0)
    make_drive(
        registration_deadline=TODAY_NOON_IST - timedelta(days=3),
        drive_date=TODAY_NOON_IST,
        registered_students=[registered_low_cgpa["_id"]],
    )

    summary = reminder_service.run_daily_reminders(now=NOW)

    assert summary["DRIVE_DAY"] == {"drives": 1, "students_notified": 1}
    assert db.notifications.find_one({"student_id": registered_low_cgpa["_id"]})["type"] == "DRIVE_DAY"
    assert db.notifications.count_documents({"student_id": eligible_unregistered["_id"]}) == 0


def test_email_failure_is_logged_and_next_student_still_served(db, settings, make_student, make_drive):
    student_a = make_student(register_number="REG00001", email="a@college.edu")
    student_b = make_student(register_number="REG00002", email="b@college.edu")
    mailer = FakeEmailDispatcher(failing={"a@college.edu"})
    service = ReminderService(db, email_dispatcher=mailer, settings=settings, max_workers=1)
    make_drive()

    summary = service.run_daily_reminders(now=NOW)

    assert summary["24_HOURS_BEFORE"]["students_notified"] == 2
    assert db.notifications.count_documents({"student_id": student_a["_id"]}) == 1
    log_a = _logs_for(db, student_a, "24_HOURS_BEFORE")[0]
    assert log_a["status"] == "FAILED"
    assert log_a["sent_via"] == ["IN_APP"]
    log_b = _logs_for(db, student_b, "24_HOURS_BEFORE")[0]
    assert log_b["status"] == "SENT"
    assert log_b["sent_via"] == ["IN_APP", "EMAIL"]
    assert [m["to"] for m in mailer.sent] == ["b@college.edu"]


def test_unexpected_dispatcher_error_marks_log_failed(db, settings, make_student, make_drive):
    class BrokenMailer(FakeEmailDispatcher):
        def send(self, to_address, subject, body):
            raise OSError("network unreachable")

    student = make_student(email="a@college.edu")
    service = ReminderService(db, email_dispatcher=BrokenMailer(), settings=settings, max_workers=1)
    make_drive()

    summary = service.run_daily_reminders(now=NOW)

    assert summary["24_HOURS_BEFORE"]["students_notified"] == 1
    log = _logs_for(db, student, "24_HOURS_BEFORE")[0]
    assert log["status"] == "FAILED"
    assert log["sent_via"] == ["IN_APP"]


def test_no_email_when_transport_not_configured(db, settings, make_student, make_drive):
    student = make_student()
    mailer = FakeEmailDispatcher(configured=False)
    service = ReminderService(db, email_dispatcher=mailer, settings=settings, max_workers=1)
    make_drive()

    service.run_daily_reminders(now=NOW)

    assert mailer.sent == []
    log = _logs_for(db, student, "24_HOURS_BEFORE")[0]
    assert log["status"] == "SENT"
    assert log["sent_via"] == ["IN_APP"]


def test_notification_failure_releases_the_claim(db, reminder_service, make_student, make_drive):
    student_a = make_student()
    student_b = make_student()
    drive = make_drive()
    original_emit = reminder_service.notifications.emit

    def flaky_emit(student_id, *args, **kwargs):
        if student_id == student_a["_id"]:
            raise RuntimeError("write failed")
        return original_emit(student_id, *args, **kwargs)

    with patch.object(reminder_service.notifications, "emit", side_effect=flaky_emit):
        result = reminder_service.send_reminders(drive, ReminderType.hours_24_before)

    assert result["students_notified"] == 1
    assert result["errors"] == 1
    assert _logs_for(db, student_a, "24_HOURS_BEFORE") == []
    assert len(_logs_for(db, student_b, "24_HOURS_BEFORE")) == 1

    # next run picks the student up again
    retry = reminder_service.send_reminders(drive, ReminderType.hours_24_before)
    assert retry["students_notified"] == 1
    assert retry["skipped"] == 1


def test_failing_drive_does_not_stop_the_pass(db, reminder_service, make_student, make_drive):
    make_student()
    broken = make_drive(company_name="Broken")
    make_drive(company_name="Working")
    original = reminder_service.send_reminders

    def send(drive, reminder_type, concurrent=False):
        if drive["_id"] == broken["_id"]:
            raise RuntimeError("boom")
        return original(drive, reminder_type, concurrent)

    with patch.object(reminder_service, "send_reminders", side_effect=send):
        summary = reminder_service.run_daily_reminders(now=NOW)

    assert summary["24_HOURS_BEFORE"] == {"drives": 2, "students_notified": 1}


def test_drive_lookup_failure_aborts_the_run(reminder_service):
    with patch.object(reminder_service, "find_active_drives_between", side_effect=RuntimeError("db down")):
        with pytest.raises(RuntimeError):
            reminder_service.run_daily_reminders(now=NOW)


def test_inactive_and_out_of_window_drives_are_ignored(db, reminder_service, make_student, make_drive):
    make_student()
    make_drive(status="Closed")
    make_drive(registration_deadline=TOMORROW_NOON_IST + timedelta(days=1))

    summary = reminder_service.run_daily_reminders(now=NOW)

    assert all(counts["drives"] == 0 for counts in summary.values())
    assert db.notifications.count_documents({}) == 0


def test_deadline_today_pass(db, reminder_service, mailer, make_student, make_drive):
    student = make_student()
    make_drive(registration_deadline=TODAY_NOON_IST, drive_date=TODAY_NOON_IST + timedelta(days=2))

    summary = reminder_service.run_daily_reminders(now=NOW)

    assert summary["DEADLINE_TODAY"]["students_notified"] == 1
    assert summary["24_HOURS_BEFORE"]["students_notified"] == 0
    assert len(_logs_for(db, student, "DEADLINE_TODAY")) == 1
    assert mailer.sent[0]["subject"].startswith("Last Day to Register")


def test_local_midnight_boundary(db, reminder_service, make_student, make_drive):
    make_student()
    # 23:30 IST on 19 Oct is still "tomorrow" locally though it is 18:00 UTC
    make_drive(registration_deadline=TOMORROW_NOON_IST + timedelta(hours=11, minutes=30))

    summary = reminder_service.run_daily_reminders(now=NOW)

    assert summary["24_HOURS_BEFORE"]["students_notified"] == 1


def test_trigger_and_unknown_drive(db, reminder_service, mailer, make_student, make_drive):
    make_student(email="x@college.edu")
    drive = make_drive()

    result = reminder_service.trigger(str(drive["_id"]), ReminderType.posted)

    assert result["students_notified"] == 1
    assert result["email_results"] == [{"email": "x@college.edu", "status": "success", "error": None}]
    assert db.notifications.find_one()["type"] == "JOB_POSTED"

    with pytest.raises(NotFoundError):
        reminder_service.trigger(str(ObjectId()), ReminderType.posted)


def test_resend_failed_retries_email(db, settings, make_student, make_drive):
    student = make_student(email="flaky@college.edu")
    mailer = FakeEmailDispatcher(failing={"flaky@college.edu"})
    service = ReminderService(db, email_dispatcher=mailer, settings=settings, max_workers=1)
    make_drive()
    service.run_daily_reminders(now=NOW)
    assert _logs_for(db, student, "24_HOURS_BEFORE")[0]["status"] == "FAILED"

    mailer.failing.clear()
    result = service.resend_failed()

    assert [r["status"] for r in result["results"]] == ["resend_success"]
    log = _logs_for(db, student, "24_HOURS_BEFORE")[0]
    assert log["status"] == "SENT"
    assert log["sent_via"][-1] == "EMAIL_RETRY"
    assert service.resend_failed()["results"] == []
