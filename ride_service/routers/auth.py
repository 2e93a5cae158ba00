"""
Auth Endpoints
==============

Registration, login and profile management.
"""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from ride_service.auth import (
    create_access_token, get_current_user, hash_password, public_user,
    verify_password,
)
from ride_service.config import Settings
from ride_service.dependencies import get_settings, get_user_repository
from ride_service.errors import DuplicateUser, RideServiceError
from ride_service.models import ProfileUpdate, UserCreate, UserLogin
from ride_service.repository import UserRepository
from ride_service.responses import envelope, server_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: UserCreate,
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
):
    """Register a new rider or driver account"""
    try:
        if await users.find_by_email(request.email):
            raise DuplicateUser("User with this email already exists")
        if await users.find_by_phone(request.phone):
            raise DuplicateUser("User with this phone number already exists")

        now = datetime.now(timezone.utc)
        user_doc = {
            "userId": uuid.uuid4().hex,
            "name": request.name,
            "email": request.email,
            "phone": request.phone,
            "passwordHash": hash_password(request.password),
            "role": request.role,
            "address": request.address.model_dump() if request.address else {},
            "profilePicture": None,
            "isActive": True,
            "createdAt": now,
            "updatedAt": now,
        }
        await users.insert(user_doc)

        token = create_access_token(user_doc["userId"], settings)

        return envelope(
            "User registered successfully",
            {"user": public_user(user_doc), "token": token},
            status_code=status.HTTP_201_CREATED,
        )

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Registration failed", e)


@router.post("/login")
async def login(
    request: UserLogin,
    users: UserRepository = Depends(get_user_repository),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for an access token"""
    try:
        user = await users.find_by_email(request.email)
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

        if not user.get("isActive", True):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated. Please contact support."
            )

        if not verify_password(request.password, user["passwordHash"]):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)

        token = create_access_token(user["userId"], settings)
        logger.info(f"User {user['userId']} logged in")

        return envelope("Login successful", {"user": public_user(user), "token": token})

    except HTTPException:
        raise
    except Exception as e:
        return server_error("Login failed", e)


@router.post("/logout")
async def logout(user: dict = Depends(get_current_user)):
    """Tokens are stateless; the client discards its token"""
    return envelope("Logged out successfully")


@router.get("/profile")
async def get_profile(user: dict = Depends(get_current_user)):
    return envelope("Profile retrieved successfully", {"user": public_user(user)})


@router.put("/profile")
async def update_profile(
    request: ProfileUpdate,
    user: dict = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repository),
):
    """Update name, phone, address or profile picture"""
    try:
        user_id = user["userId"]

        if request.phone and request.phone != user.get("phone"):
            existing = await users.find_by_phone(request.phone)
            if existing and existing["userId"] != user_id:
                raise DuplicateUser("Phone number is already registered with another account")

        fields = {}
        if request.name:
            fields["name"] = request.name
        if request.phone:
            fields["phone"] = request.phone
        if request.profilePicture:
            fields["profilePicture"] = request.profilePicture
        if request.address:
            fields["address"] = {
                **(user.get("address") or {}),
                **request.address.model_dump(exclude_none=True),
            }
        fields["updatedAt"] = datetime.now(timezone.utc)

        updated = await users.update_profile(user_id, fields)

        return envelope("Profile updated successfully", {"user": public_user(updated or user)})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to update profile", e)
