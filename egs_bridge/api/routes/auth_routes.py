"""
Authentication Routes

POST /auth/register/student - Register a student account
POST /auth/login/student - Student login (register number + password)
POST /auth/login/officer - Placement officer login (email + password)
GET /auth/profile - Get current user info
"""

from fastapi import APIRouter, Depends

from egs_bridge.api.deps import get_officer_service, get_student_service
from egs_bridge.core.auth import get_current_user
from egs_bridge.schemas.schemas import (
    OfficerLoginRequest, StudentLoginRequest, StudentRegisterRequest, TokenResponse
)
from egs_bridge.services.account_service import OfficerService, StudentService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register/student", response_model=TokenResponse, status_code=201)
async def register_student(
    request: StudentRegisterRequest,
    students: StudentService = Depends(get_student_service)
):
    """
    Register a new student account.

    Register number and email must be unique. The response already
    carries an access token, no separate login needed.
    """
    return students.register(request)


@router.post("/login/student", response_model=TokenResponse)
async def login_student(
    request: StudentLoginRequest,
    students: StudentService = Depends(get_student_service)
):
    """
    Login with register number and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    return students.authenticate(request.register_number, request.password)


@router.post("/login/officer", response_model=TokenResponse)
async def login_officer(
    request: OfficerLoginRequest,
    officers: OfficerService = Depends(get_officer_service)
):
    """Placement officer login. Deactivated accounts get 403."""
    return officers.authenticate(request.email, request.password)


@router.get("/profile")
async def get_profile(
    user: dict = Depends(get_current_user),
    students: StudentService = Depends(get_student_service),
    officers: OfficerService = Depends(get_officer_service)
):
    """Get current user's account, without the password hash."""
    if user["role"] == "student":
        profile = students.get(user["user_id"])
    else:
        profile = officers.get(user["user_id"])
    profile["role"] = user["role"]
    return profile
