"""
EGS Bridge - Placement Management Backend
Placement drives, student registrations and deadline reminders.

Architecture:
- MongoDB: All documents (students, officers, drives, notifications, reminder logs)
- FastAPI: REST API consumed by the single-page client
- schedule: Daily reminder job running in a background thread
"""

__version__ = "1.0.0"
