#!/usr/bin/env python3
"""
Run the daily reminder pass once, outside the scheduler.

Usage: python scripts/run_reminders.py
"""
import sys
sys.path.insert(0, '.')

from egs_bridge.core.config import get_settings
from egs_bridge.core.logging import setup_logging
from egs_bridge.db.mongodb import init_mongo_indexes
from egs_bridge.services.reminder_service import ReminderService


def main():
    setup_logging(get_settings().log_level)
    init_mongo_indexes()
    summary = ReminderService().run_daily_reminders()

    print("=" * 50)
    for reminder_type, counts in summary.items():
        print(f"{reminder_type:<18} drives: {counts['drives']:<4} notified: {counts['students_notified']}")
    print("=" * 50)


if __name__ == "__main__":
    main()
