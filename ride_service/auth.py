"""
Authentication
==============

Password hashing, bearer token issuance and the FastAPI dependencies that
resolve the calling user. Ride endpoints trust the identity resolved here.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from ride_service.config import Settings
from ride_service.dependencies import get_settings, get_user_repository
from ride_service.models import UserRole
from ride_service.repository import UserRepository

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(user_id: str, settings: Settings, expires_minutes: Optional[int] = None) -> str:
    """Signed token whose subject is the user id"""
    minutes = settings.jwt_expire_minutes if expires_minutes is None else expires_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> Optional[str]:
    """User id carried by a valid token, None when invalid or expired"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


def public_user(user_doc: dict) -> dict:
    """User document without the password hash"""
    return {k: v for k, v in user_doc.items() if k not in ("passwordHash", "_id")}


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    users: UserRepository = Depends(get_user_repository),
) -> dict:
    """Resolve the bearer token to an active user document"""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required"
        )

    user_id = decode_access_token(credentials.credentials, settings)
    if not user_id:
        logger.warning("Rejected invalid or expired access token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token"
        )

    user = await users.find_by_id(user_id)
    if not user or not user.get("isActive", True):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )

    return user


async def require_rider(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != UserRole.RIDER.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Rider account required."
        )
    return user


async def require_driver(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != UserRole.DRIVER.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Driver account required."
        )
    return user
