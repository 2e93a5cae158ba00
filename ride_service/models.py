"""
Pydantic Models for the Ride Booking Service
============================================

Ride documents, fare quotes, lifecycle commands and API request/response
models.
"""

import math
from datetime import datetime
from enum import Enum
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, computed_field, validator


# ============================================
# ENUMS
# ============================================

class RideCategory(str, Enum):
    """Ride category with its fixed fare multiplier"""
    ECONOMY = "economy"
    PREMIUM = "premium"
    LUXURY = "luxury"

    @property
    def multiplier(self) -> float:
        return CATEGORY_MULTIPLIERS[self]


CATEGORY_MULTIPLIERS = {
    RideCategory.ECONOMY: 1.0,
    RideCategory.PREMIUM: 1.5,
    RideCategory.LUXURY: 2.0,
}


class RideStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


ACTIVE_STATUSES = frozenset({RideStatus.PENDING, RideStatus.ACCEPTED, RideStatus.STARTED})
TERMINAL_STATUSES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})


class HistoryAction(str, Enum):
    CREATED = "created"
    ACCEPTED = "accepted"
    STARTED = "started"
    DESTINATION_UPDATED = "destination_updated"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CancelledBy(str, Enum):
    USER = "user"
    DRIVER = "driver"
    SYSTEM = "system"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"
    UPI = "upi"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class UserRole(str, Enum):
    RIDER = "rider"
    DRIVER = "driver"
    ADMIN = "admin"


# ============================================
# LOCATION MODELS
# ============================================

class GeoPoint(BaseModel):
    """GPS coordinates"""
    latitude: float = Field(..., ge=-90, le=90, description="Latitude (-90 to 90)")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude (-180 to 180)")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "latitude": 19.0760,
                "longitude": 72.8777
            }
        }


class Location(BaseModel):
    """Address with its coordinates"""
    address: str = Field(..., min_length=1, description="Human readable address")
    coordinates: GeoPoint

    @validator("address")
    def address_must_not_be_blank(cls, v):
        if not v.strip():
            raise ValueError("Address is required")
        return v.strip()

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "address": "Bandra West, Mumbai",
                "coordinates": {"latitude": 19.0760, "longitude": 72.8777}
            }
        }


# ============================================
# FARE MODELS
# ============================================

class FareQuote(BaseModel):
    """Fare breakdown for a pickup/drop pair"""
    baseFare: float = Field(..., description="Fare before GST, minimum fare applied")
    gst: float = Field(..., description="18% GST on the base fare")
    totalFare: float
    distanceKm: float
    farePerKm: float
    rideCategory: RideCategory
    estimatedMinutes: int

    class Config:
        json_schema_extra = {
            "example": {
                "baseFare": 85.55,
                "gst": 15.40,
                "totalFare": 100.95,
                "distanceKm": 2.37,
                "farePerKm": 15.0,
                "rideCategory": "economy",
                "estimatedMinutes": 5
            }
        }


class FareEstimate(FareQuote):
    """Quote returned by the estimate endpoint"""
    pickup: str
    drop: str


class Fare(BaseModel):
    """Fare stored on a ride"""
    baseFare: float
    gst: float
    totalFare: float
    currency: str = "INR"


# ============================================
# RIDE MODELS
# ============================================

class HistoryEntry(BaseModel):
    """One record of the ride audit trail"""
    action: HistoryAction
    timestamp: datetime
    details: str = ""

    class Config:
        frozen = True


class RideRating(BaseModel):
    userRating: Optional[int] = Field(None, ge=1, le=5)
    driverRating: Optional[int] = Field(None, ge=1, le=5)


class Ride(BaseModel):
    """Ride aggregate as stored in the rides collection"""
    rideId: str
    riderId: str
    driverId: Optional[str] = None
    status: RideStatus = RideStatus.PENDING
    rideCategory: RideCategory = RideCategory.ECONOMY
    pickupLocation: Location
    dropLocation: Location
    originalDropLocation: Location
    distanceKm: float = Field(..., ge=0)
    estimatedDuration: Optional[int] = None
    fare: Fare
    paymentStatus: PaymentStatus = PaymentStatus.PENDING
    paymentMethod: PaymentMethod = PaymentMethod.CASH
    rideStartTime: Optional[datetime] = None
    rideEndTime: Optional[datetime] = None
    cancellationReason: Optional[str] = None
    cancelledBy: Optional[CancelledBy] = None
    rating: RideRating = Field(default_factory=RideRating)
    history: List[HistoryEntry] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=500)
    createdAt: datetime
    updatedAt: datetime

    @computed_field
    @property
    def actualDuration(self) -> Optional[int]:
        """Minutes between start and end, when both are known"""
        if self.rideStartTime and self.rideEndTime:
            return math.ceil((self.rideEndTime - self.rideStartTime).total_seconds() / 60)
        return None

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


# ============================================
# LIFECYCLE COMMANDS
# ============================================

class CreateRide(BaseModel):
    rider_id: str
    pickup: Location
    drop: Location
    category: RideCategory = RideCategory.ECONOMY
    notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH

    class Config:
        frozen = True


class CancelRide(BaseModel):
    requested_by: str
    reason: Optional[str] = None

    class Config:
        frozen = True


class UpdateDestination(BaseModel):
    requested_by: str
    drop: Location

    class Config:
        frozen = True


class AcceptRide(BaseModel):
    driver_id: str

    class Config:
        frozen = True


class StartRide(BaseModel):
    driver_id: str

    class Config:
        frozen = True


class CompleteRide(BaseModel):
    driver_id: str

    class Config:
        frozen = True


# ============================================
# RIDE REQUEST MODELS
# ============================================

class BookRideRequest(BaseModel):
    """Request model for booking a ride"""
    pickupLocation: Location
    dropLocation: Location
    rideType: RideCategory = RideCategory.ECONOMY
    paymentMethod: PaymentMethod = PaymentMethod.CASH
    notes: Optional[str] = Field(None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "pickupLocation": {
                    "address": "Bandra West, Mumbai",
                    "coordinates": {"latitude": 19.0760, "longitude": 72.8777}
                },
                "dropLocation": {
                    "address": "Andheri East, Mumbai",
                    "coordinates": {"latitude": 19.0896, "longitude": 72.8656}
                },
                "rideType": "economy"
            }
        }


class UpdateDestinationRequest(BaseModel):
    """Request model for changing the drop location"""
    dropLocation: Location


class CancelRideRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


# ============================================
# RESPONSE MODELS
# ============================================

class ApiResponse(BaseModel):
    """Envelope shared by every endpoint"""
    success: bool
    message: str
    data: Optional[Any] = None
    errors: Optional[List[Any]] = None


class Pagination(BaseModel):
    currentPage: int
    totalPages: int
    totalRides: int
    hasNextPage: bool
    hasPrevPage: bool

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        total_pages = math.ceil(total / limit) if limit else 0
        return cls(
            currentPage=page,
            totalPages=total_pages,
            totalRides=total,
            hasNextPage=page < total_pages,
            hasPrevPage=page > 1,
        )


class HealthResponse(BaseModel):
    """Health check response"""
    status: Literal["healthy", "unhealthy"]
    service: str
    mongodb_status: str
    uptime_seconds: float

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "service": "Ride Booking API",
                "mongodb_status": "connected",
                "uptime_seconds": 3600.5
            }
        }


# ============================================
# USER MODELS
# ============================================

class Address(BaseModel):
    street: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=50)
    state: Optional[str] = Field(None, max_length=50)
    zipCode: Optional[str] = Field(None, pattern=r"^[0-9]{6}$")


class UserCreate(BaseModel):
    """Request model for registration"""
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    phone: str = Field(..., pattern=r"^[0-9]{10}$", description="10-digit phone number")
    password: str = Field(..., min_length=6)
    role: Literal["rider", "driver"] = "rider"
    address: Optional[Address] = None

    @validator("name")
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be between 2 and 50 characters")
        return v

    @validator("email")
    def normalize_email(cls, v):
        return v.lower()

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Test User",
                "email": "test@example.com",
                "phone": "9876543210",
                "password": "password123"
            }
        }


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @validator("email")
    def normalize_email(cls, v):
        return v.lower()


class ProfileUpdate(BaseModel):
    """Request model for updating the caller's profile"""
    name: Optional[str] = Field(None, min_length=2, max_length=50)
    phone: Optional[str] = Field(None, pattern=r"^[0-9]{10}$")
    address: Optional[Address] = None
    profilePicture: Optional[str] = None
