"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes (student / placement officer)
"""

from datetime import timedelta
from typing import Optional
from bson import ObjectId
from bson.errors import InvalidId
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pymongo.database import Database

from egs_bridge.core.config import get_settings
from egs_bridge.db.mongodb import get_db, COLLECTIONS
from egs_bridge.utils.datetime_utils import naive_utc_now

settings = get_settings()

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor
bearer_scheme = HTTPBearer()

ROLE_COLLECTIONS = {
    "student": COLLECTIONS["students"],
    "placement_officer": COLLECTIONS["officers"],
}


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = naive_utc_now() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Database = Depends(get_db)
) -> dict:
    """
    FastAPI dependency - Get current authenticated principal.

    Usage:
        @app.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Please authenticate",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(credentials.credentials)
    if not payload:
        raise credentials_exception

    role = payload.get("role")
    collection_name = ROLE_COLLECTIONS.get(role)
    if not collection_name or not payload.get("sub"):
        raise credentials_exception

    try:
        user_id = ObjectId(payload["sub"])
    except InvalidId:
        raise credentials_exception

    account = db[collection_name].find_one({"_id": user_id}, {"password_hash": 0})
    if not account:
        raise credentials_exception

    if role == "placement_officer" and not account.get("is_active", True):
        raise HTTPException(status_code=403, detail="Account is deactivated")

    return {
        "user_id": str(account["_id"]),
        "role": role,
        "name": account.get("name"),
        "email": account.get("email"),
        "department": account.get("department"),
        "cgpa": account.get("cgpa"),
    }


async def get_current_student(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require student role."""
    if user["role"] != "student":
        raise HTTPException(status_code=403, detail="Access denied. Students only.")
    return user


async def get_current_officer(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require placement officer role."""
    if user["role"] != "placement_officer":
        raise HTTPException(status_code=403, detail="Access denied. Placement officers only.")
    return user
