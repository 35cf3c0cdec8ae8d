#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify MongoDB is reachable and see how email is configured.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from egs_bridge.core.config import get_settings
from egs_bridge.db.mongodb import test_mongo_connection


def main():
    settings = get_settings()
    print("=" * 50)
    print("EGS BRIDGE - CONNECTION CHECK")
    print("=" * 50)

    # MongoDB
    print("\n[1] Testing MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    # SMTP (not contacted, only reported)
    print("\n[2] Email...")
    if settings.email_configured:
        print(f"    SMTP: {settings.smtp_user} @ {settings.smtp_host}:{settings.smtp_port}")
    else:
        print("    ⚠️  SMTP_USER not set: reminders go out in-app only")

    # Scheduler
    print("\n[3] Reminder scheduler...")
    state = "enabled" if settings.scheduler_enabled else "disabled"
    print(f"    {state}, daily at {settings.reminder_time} ({settings.reminder_timezone})")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
