"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Annotated, Optional, List, Literal, Union
from datetime import datetime
from enum import Enum

from egs_bridge.utils.datetime_utils import to_naive_utc


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    placement_officer = "placement_officer"


class Department(str, Enum):
    cse = "CSE"
    ece = "ECE"
    eee = "EEE"
    mech = "MECH"
    civil = "CIVIL"
    it = "IT"


class DriveMode(str, Enum):
    online = "Online"
    offline = "Offline"
    hybrid = "Hybrid"


class DriveStatus(str, Enum):
    active = "Active"
    closed = "Closed"
    completed = "Completed"


class NotificationType(str, Enum):
    job_posted = "JOB_POSTED"
    deadline_reminder = "DEADLINE_REMINDER"
    drive_day = "DRIVE_DAY"
    status_update = "STATUS_UPDATE"


class Priority(str, Enum):
    low = "LOW"
    medium = "MEDIUM"
    high = "HIGH"
    urgent = "URGENT"


class ReminderType(str, Enum):
    posted = "POSTED"
    hours_24_before = "24_HOURS_BEFORE"
    deadline_today = "DEADLINE_TODAY"
    drive_day = "DRIVE_DAY"


class ReminderStatus(str, Enum):
    sent = "SENT"
    failed = "FAILED"


class Channel(str, Enum):
    in_app = "IN_APP"
    email = "EMAIL"
    email_retry = "EMAIL_RETRY"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class StudentRegisterRequest(BaseModel):
    register_number: str = Field(..., min_length=5, max_length=30)
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)
    department: Department
    cgpa: float = Field(0, ge=0, le=10)
    skills: List[str] = []
    phone: Optional[str] = None

    @field_validator("register_number", "name")
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

class StudentLoginRequest(BaseModel):
    register_number: str
    password: str

class OfficerLoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class StudentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    cgpa: Optional[float] = Field(None, ge=0, le=10)
    skills: Optional[Union[List[str], str]] = None

    @field_validator("skills")
    def split_skills(cls, v):
        # The client sends either a list or "python, sql, react"
        if isinstance(v, str):
            return [skill.strip() for skill in v.split(",") if skill.strip()]
        return v

class StudentResponse(BaseModel):
    id: str
    register_number: str
    name: str
    email: str
    department: str
    cgpa: float = 0
    skills: List[str] = []
    phone: Optional[str] = None
    year_of_passing: Optional[int] = None
    is_placed: bool = False
    placed_company: Optional[str] = None
    placed_package: Optional[float] = None
    registered_drives: List[str] = []
    created_at: datetime

class MarkPlacedRequest(BaseModel):
    student_id: str
    company: str = Field(..., min_length=1)
    package: Optional[float] = Field(None, ge=0)

class PlacedStudentResponse(BaseModel):
    id: str
    name: str
    department: str
    placed_company: Optional[str] = None
    placed_package: Optional[float] = None

class StudentStatisticsResponse(BaseModel):
    total_drives: int
    registered_drives: int
    upcoming_drives: int
    missed_deadlines: int
    placement_status: str
    placed_company: Optional[str] = None
    placed_package: Optional[float] = None


# ============================================================
# DRIVE SCHEMAS
# ============================================================

class EligibilityCriteria(BaseModel):
    min_cgpa: float = Field(0, ge=0, le=10)
    required_skills: List[str] = []
    backlog_allowed: bool = False
    year_of_passing: Optional[int] = Field(None, ge=2000, le=2100)

class DriveCreate(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    job_title: str = Field(..., min_length=1, max_length=200)
    job_description: str = Field(..., min_length=1)
    eligible_departments: List[Department] = Field(..., min_length=1)
    eligibility_criteria: EligibilityCriteria = EligibilityCriteria()
    registration_link: str = Field(..., pattern=r"^https?://\S+$")
    registration_deadline: datetime
    drive_date: datetime
    drive_time: str = Field(..., min_length=1)
    mode: DriveMode = DriveMode.offline
    venue: str = "College Placement Cell"

    @field_validator("company_name", "job_title", "job_description")
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("registration_deadline", "drive_date")
    def normalise_datetimes(cls, v: datetime) -> datetime:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def deadline_before_drive(self):
        if self.registration_deadline >= self.drive_date:
            raise ValueError("Registration deadline must be before the drive date")
        return self

class DriveUpdate(BaseModel):
    company_name: Optional[str] = None
    job_title: Optional[str] = None
    job_description: Optional[str] = None
    eligible_departments: Optional[List[Department]] = None
    eligibility_criteria: Optional[EligibilityCriteria] = None
    registration_link: Optional[str] = None
    registration_deadline: Optional[datetime] = None
    drive_date: Optional[datetime] = None
    drive_time: Optional[str] = None
    mode: Optional[DriveMode] = None
    venue: Optional[str] = None
    status: Optional[DriveStatus] = None

    @field_validator("registration_deadline", "drive_date")
    def normalise_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v) if v is not None else v

class DriveResponse(BaseModel):
    id: str
    company_name: str
    job_title: str
    job_description: str
    eligible_departments: List[str]
    eligibility_criteria: EligibilityCriteria
    registration_link: str
    registration_deadline: datetime
    drive_date: datetime
    drive_time: str
    mode: str
    venue: Optional[str] = None
    posted_by: Optional[str] = None
    registered_students: List[str] = []
    status: str
    created_at: datetime
    is_registered: Optional[bool] = None
    can_register: Optional[bool] = None

class DriveCreateResponse(BaseModel):
    drive: DriveResponse
    eligible_students: int
    students_notified: int

class DriveStatisticsResponse(BaseModel):
    total_drives: int
    active_drives: int
    completed_drives: int
    total_students: int
    placed_students: int
    placement_rate: float
    students_by_department: dict
    upcoming_drives: List[DriveResponse]
    recently_placed: List[PlacedStudentResponse]


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationCreate(BaseModel):
    student_id: str
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.status_update
    priority: Priority = Priority.medium
    drive_id: Optional[str] = None

class NotificationResponse(BaseModel):
    id: str
    student_id: str
    drive_id: Optional[str] = None
    type: str
    title: str
    message: str
    is_read: bool = False
    priority: str
    sent_via: List[str] = []
    created_at: datetime

class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse]
    unread_count: int
    total: int

class NotificationStatsResponse(BaseModel):
    stats: List[dict]
    today_count: int
    urgent_count: int
    total: int


# ============================================================
# REMINDER SCHEMAS
# ============================================================

class PostedReminderTrigger(BaseModel):
    reminder_type: Literal["POSTED"]
    drive_id: str

class DeadlineTomorrowReminderTrigger(BaseModel):
    reminder_type: Literal["24_HOURS_BEFORE"]
    drive_id: str

class DeadlineTodayReminderTrigger(BaseModel):
    reminder_type: Literal["DEADLINE_TODAY"]
    drive_id: str

class DriveDayReminderTrigger(BaseModel):
    reminder_type: Literal["DRIVE_DAY"]
    drive_id: str

TriggerReminderRequest = Annotated[
    Union[
        PostedReminderTrigger,
        DeadlineTomorrowReminderTrigger,
        DeadlineTodayReminderTrigger,
        DriveDayReminderTrigger,
    ],
    Field(discriminator="reminder_type"),
]

class EmailResult(BaseModel):
    email: str
    status: Literal["success", "failed"]
    error: Optional[str] = None

class ReminderTriggerResponse(BaseModel):
    message: str
    students_notified: int
    email_results: List[EmailResult] = []

class ReminderLogResponse(BaseModel):
    id: str
    drive_id: str
    student_id: str
    reminder_type: str
    sent_at: datetime
    sent_via: List[str] = []
    status: str
    student: Optional[dict] = None
    drive: Optional[dict] = None

class ReminderTypeSummary(BaseModel):
    reminder_type: str
    count: int
    students: List[str] = []

class DriveReminderHistoryResponse(BaseModel):
    reminders: List[ReminderLogResponse]
    summary: List[ReminderTypeSummary]
    total: int

class ReminderTypeStats(BaseModel):
    type: str
    total: int
    success: int
    failed: int
    success_rate: float
    unique_drives: int

class ReminderStatsResponse(BaseModel):
    stats: List[ReminderTypeStats]
    recent_reminders: List[ReminderLogResponse]
    total: int

class ResendResult(BaseModel):
    reminder_id: str
    student: str
    status: Literal["resend_success", "resend_failed", "skipped"]
    error: Optional[str] = None

class ResendFailedResponse(BaseModel):
    message: str
    results: List[ResendResult]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    detail: str
    error_code: Optional[str] = None
