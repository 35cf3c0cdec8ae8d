"""
Placement Drive Routes

POST /drives - Create a drive and announce it (officer)
GET /drives - List drives (students see only what they can register for)
GET /drives/statistics - Portal-wide statistics (officer)
GET /drives/{drive_id} - Get a drive
PUT /drives/{drive_id} - Update a drive (officer)
DELETE /drives/{drive_id} - Delete a drive (officer)
POST /drives/{drive_id}/register - Register for a drive (student)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from egs_bridge.api.deps import get_drive_service
from egs_bridge.core.auth import get_current_officer, get_current_student, get_current_user
from egs_bridge.schemas.schemas import (
    Department, DriveCreate, DriveCreateResponse, DriveMode, DriveResponse,
    DriveStatisticsResponse, DriveStatus, DriveUpdate, MessageResponse
)
from egs_bridge.services.drive_service import DriveService

router = APIRouter(prefix="/drives", tags=["Placement Drives"])


@router.post("", response_model=DriveCreateResponse, status_code=201)
def create_drive(
    data: DriveCreate,
    officer: dict = Depends(get_current_officer),
    drives: DriveService = Depends(get_drive_service)
):
    """
    Create a placement drive.

    Every eligible, unplaced student is notified right away
    (in-app, plus email when SMTP is configured).
    """
    return drives.create(data, officer_id=officer["user_id"])


@router.get("", response_model=List[DriveResponse])
async def list_drives(
    department: Optional[Department] = None,
    status: Optional[DriveStatus] = None,
    company: Optional[str] = None,
    mode: Optional[DriveMode] = None,
    user: dict = Depends(get_current_user),
    drives: DriveService = Depends(get_drive_service)
):
    """
    List drives, soonest registration deadline first.

    Students only get Active drives they are eligible for and can still
    register to, with is_registered / can_register flags.
    """
    return drives.list_drives(
        department=department.value if department else None,
        status=status.value if status else None,
        company=company,
        mode=mode.value if mode else None,
        student=user if user["role"] == "student" else None
    )


@router.get("/statistics", response_model=DriveStatisticsResponse)
async def drive_statistics(
    officer: dict = Depends(get_current_officer),
    drives: DriveService = Depends(get_drive_service)
):
    return drives.statistics()


@router.get("/{drive_id}", response_model=DriveResponse)
async def get_drive(
    drive_id: str,
    user: dict = Depends(get_current_user),
    drives: DriveService = Depends(get_drive_service)
):
    return drives.get(drive_id)


@router.put("/{drive_id}", response_model=DriveResponse)
async def update_drive(
    drive_id: str,
    data: DriveUpdate,
    officer: dict = Depends(get_current_officer),
    drives: DriveService = Depends(get_drive_service)
):
    """Update a drive. Only provided fields are updated."""
    return drives.update(drive_id, data)


@router.delete("/{drive_id}", response_model=MessageResponse)
async def delete_drive(
    drive_id: str,
    officer: dict = Depends(get_current_officer),
    drives: DriveService = Depends(get_drive_service)
):
    """Delete a drive together with its notifications and reminder logs."""
    drives.delete(drive_id)
    return MessageResponse(message="Placement drive deleted successfully")


@router.post("/{drive_id}/register", response_model=MessageResponse)
async def register_for_drive(
    drive_id: str,
    student: dict = Depends(get_current_student),
    drives: DriveService = Depends(get_drive_service)
):
    """Register the current student. Fails if closed, past deadline, ineligible or already registered."""
    return drives.register(drive_id, student)
