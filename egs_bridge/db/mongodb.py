"""
MongoDB Connection Utility

MongoDB stores every entity of the placement portal:
- students / officers: accounts and profiles
- drives: placement events with their registered students
- notifications: in-app notifications per student
- reminder_logs: one entry per (drive, student, reminder type) sent

The unique compound index on reminder_logs is what makes reminder
delivery idempotent, so init_mongo_indexes must run before the scheduler.
"""
from loguru import logger
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from egs_bridge.core.config import get_settings

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, tz_aware=False)
    return _client


def get_mongo_db() -> Database:
    """Get the portal database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_db() -> Database:
    """
    Dependency for FastAPI route injection.
    Usage:
        @app.get("/drives")
        def list_drives(db: Database = Depends(get_db)):
            ...
    """
    return get_mongo_db()


def get_collection(name: str, db: Database = None) -> Collection:
    """Get a specific collection, from the given database or the default one."""
    if db is None:
        db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning(f"MongoDB connection failed: {e}")
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "officers": "officers",
    "drives": "drives",
    "notifications": "notifications",
    "reminder_logs": "reminder_logs"
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for uniqueness and query performance.
    Call this once during app startup.
    """
    if db is None:
        db = get_mongo_db()

    students = db[COLLECTIONS["students"]]
    students.create_index("register_number", unique=True)
    students.create_index("email", unique=True)
    students.create_index("department")
    students.create_index("is_placed")

    db[COLLECTIONS["officers"]].create_index("email", unique=True)

    drives = db[COLLECTIONS["drives"]]
    drives.create_index("registration_deadline")
    drives.create_index("drive_date")
    drives.create_index("eligible_departments")

    db[COLLECTIONS["notifications"]].create_index([
        ("student_id", ASCENDING),
        ("created_at", DESCENDING)
    ])

    # Dedup key: inserting a second log for the same triple fails
    reminder_logs = db[COLLECTIONS["reminder_logs"]]
    reminder_logs.create_index([
        ("drive_id", ASCENDING),
        ("student_id", ASCENDING),
        ("reminder_type", ASCENDING)
    ], unique=True)
    reminder_logs.create_index("sent_at")

    logger.info("MongoDB indexes created successfully")
