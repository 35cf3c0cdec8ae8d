"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Update profile
GET /students/registered-drives - Drives I registered for
GET /students/statistics - My dashboard counters
GET /students/placed - Recently placed students (public)
GET /students/all - All students (officer)
POST /students/mark-placed - Mark a student as placed (officer)
DELETE /students/{student_id} - Delete a student (officer)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from egs_bridge.api.deps import get_student_service
from egs_bridge.core.auth import get_current_officer, get_current_student
from egs_bridge.schemas.schemas import (
    Department, MarkPlacedRequest, MessageResponse, PlacedStudentResponse,
    StudentResponse, StudentStatisticsResponse, StudentUpdate
)
from egs_bridge.services.account_service import StudentService

router = APIRouter(prefix="/students", tags=["Students"])


@router.get("/profile", response_model=StudentResponse)
async def get_profile(
    student: dict = Depends(get_current_student),
    students: StudentService = Depends(get_student_service)
):
    """Get current student's profile."""
    return students.get(student["user_id"])


@router.put("/profile", response_model=StudentResponse)
async def update_profile(
    data: StudentUpdate,
    student: dict = Depends(get_current_student),
    students: StudentService = Depends(get_student_service)
):
    """
    Update student profile. Only provided fields are updated.

    Skills may be sent as a list or as a comma-separated string.
    """
    return students.update_profile(student["user_id"], data)


@router.get("/registered-drives")
async def registered_drives(
    student: dict = Depends(get_current_student),
    students: StudentService = Depends(get_student_service)
):
    """Active and completed drives the student registered for, soonest first."""
    return students.registered_drives(student["user_id"])


@router.get("/statistics", response_model=StudentStatisticsResponse)
async def statistics(
    student: dict = Depends(get_current_student),
    students: StudentService = Depends(get_student_service)
):
    return students.statistics(student["user_id"])


@router.get("/placed", response_model=List[PlacedStudentResponse])
async def placed_students(
    limit: int = Query(5, ge=1, le=50),
    students: StudentService = Depends(get_student_service)
):
    """Recently placed students, for the public home page."""
    return students.placed(limit)


@router.get("/all", response_model=List[StudentResponse])
async def all_students(
    department: Optional[Department] = None,
    is_placed: Optional[bool] = None,
    search: Optional[str] = Query(None, description="Matches name, register number or email"),
    officer: dict = Depends(get_current_officer),
    students: StudentService = Depends(get_student_service)
):
    return students.list_all(
        department=department.value if department else None,
        is_placed=is_placed,
        search=search
    )


@router.post("/mark-placed", response_model=StudentResponse)
async def mark_placed(
    data: MarkPlacedRequest,
    officer: dict = Depends(get_current_officer),
    students: StudentService = Depends(get_student_service)
):
    """Mark a student as placed. The student gets a HIGH priority notification."""
    return students.mark_placed(data.student_id, data.company, data.package)


@router.delete("/{student_id}", response_model=MessageResponse)
async def delete_student(
    student_id: str,
    officer: dict = Depends(get_current_officer),
    students: StudentService = Depends(get_student_service)
):
    """Delete a student with their registrations, notifications and reminder logs."""
    students.delete(student_id)
    return MessageResponse(message="Student deleted successfully")
