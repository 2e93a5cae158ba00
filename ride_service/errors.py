"""
Domain Errors
=============

Conditions raised by the fare estimator, the lifecycle manager and the
repositories. The HTTP layer maps each one to a status code.
"""

from typing import Optional


class RideServiceError(Exception):
    """Base class for ride service errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(RideServiceError):
    """Malformed location or category input"""


class RideNotFound(RideServiceError):
    """Ride id does not resolve within the caller's visible scope"""

    def __init__(self, message: str = "Ride not found"):
        super().__init__(message)


class RideNotModifiable(RideServiceError):
    """Ride status or ownership disallows the requested command"""

    def __init__(self, message: str = "Ride not found or cannot be modified"):
        super().__init__(message)


class ActiveRideConflict(RideServiceError):
    """Rider already has a pending, accepted or started ride"""

    def __init__(
        self,
        active_ride_id: Optional[str] = None,
        message: str = "You already have an active ride. Please complete or cancel it first.",
    ):
        super().__init__(message)
        self.active_ride_id = active_ride_id


class DuplicateUser(RideServiceError):
    """Email or phone number already registered"""
