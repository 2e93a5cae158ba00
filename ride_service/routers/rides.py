"""
Ride Endpoints
==============

Fare estimates, booking, status, destination changes, cancellation and
history for riders, plus the accept/start/complete transitions driven by
driver clients.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from ride_service.auth import get_current_user, require_driver, require_rider
from ride_service.dependencies import (
    get_estimator, get_lifecycle_manager, get_ride_repository,
)
from ride_service.errors import (
    ActiveRideConflict, RideNotFound, RideNotModifiable, RideServiceError,
)
from ride_service.fare import FareEstimator
from ride_service.lifecycle import RideLifecycleManager
from ride_service.models import (
    AcceptRide, BookRideRequest, CancelRide, CancelRideRequest, CompleteRide,
    CreateRide, FareEstimate, FareQuote, GeoPoint, Location, Pagination, Ride,
    RideCategory, RideStatus, StartRide, UpdateDestination, UpdateDestinationRequest,
)
from ride_service.repository import RideRepository
from ride_service.responses import envelope, server_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rides", tags=["Rides"])


def _fare_breakdown(quote: FareQuote, pickup: Location, drop: Location) -> FareEstimate:
    return FareEstimate(**quote.model_dump(), pickup=pickup.address, drop=drop.address)


def _ride_fare_breakdown(manager: RideLifecycleManager, ride: Ride) -> dict:
    """Current quote for a ride, shaped like the estimate endpoint"""
    quote = manager.requote(ride)
    return _fare_breakdown(quote, ride.pickupLocation, ride.dropLocation).model_dump(mode="json")


# ============================================
# RIDER ENDPOINTS
# ============================================

@router.get("/estimate")
async def estimate_fare(
    fromLat: float = Query(..., ge=-90, le=90),
    fromLng: float = Query(..., ge=-180, le=180),
    toLat: float = Query(..., ge=-90, le=90),
    toLng: float = Query(..., ge=-180, le=180),
    fromAddress: str = Query(..., min_length=1, pattern=r"\S"),
    toAddress: str = Query(..., min_length=1, pattern=r"\S"),
    rideType: RideCategory = RideCategory.ECONOMY,
    user: dict = Depends(get_current_user),
    estimator: FareEstimator = Depends(get_estimator),
):
    """Estimate the fare before booking"""
    try:
        pickup = Location(address=fromAddress, coordinates=GeoPoint(latitude=fromLat, longitude=fromLng))
        drop = Location(address=toAddress, coordinates=GeoPoint(latitude=toLat, longitude=toLng))

        quote = estimator.quote(pickup, drop, rideType)
        estimate = _fare_breakdown(quote, pickup, drop)

        return envelope("Fare estimated successfully", estimate.model_dump(mode="json"))

    except Exception as e:
        return server_error("Failed to estimate fare", e)


@router.post("/book", status_code=status.HTTP_201_CREATED)
async def book_ride(
    request: BookRideRequest,
    user: dict = Depends(require_rider),
    rides: RideRepository = Depends(get_ride_repository),
    manager: RideLifecycleManager = Depends(get_lifecycle_manager),
):
    """Book a ride; a rider may only have one active ride"""
    try:
        rider_id = user["userId"]

        active = await rides.find_active_by_rider(rider_id)
        if active:
            logger.warning(f"Rider {rider_id} already has active ride {active.rideId}")
            raise ActiveRideConflict(active.rideId)

        transition = manager.create(CreateRide(
            rider_id=rider_id,
            pickup=request.pickupLocation,
            drop=request.dropLocation,
            category=request.rideType,
            notes=request.notes,
            payment_method=request.paymentMethod,
        ))
        ride = await rides.insert(transition.ride)

        # Driver matching is handled outside this service
        return envelope(
            "Ride booked successfully. Looking for nearby drivers...",
            {
                "ride": ride.model_dump(mode="json"),
                "fareBreakdown": _ride_fare_breakdown(manager, ride),
            },
            status_code=status.HTTP_201_CREATED,
        )

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to book ride", e)


@router.get("/history")
async def ride_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    ride_status: Optional[RideStatus] = Query(None, alias="status"),
    user: dict = Depends(require_rider),
    rides: RideRepository = Depends(get_ride_repository),
):
    """Past and current rides of the caller, newest first"""
    try:
        items, total = await rides.list_by_rider(user["userId"], page=page, limit=limit, status=ride_status)

        return envelope("Ride history retrieved successfully", {
            "rides": [ride.model_dump(mode="json") for ride in items],
            "pagination": Pagination.build(page, limit, total).model_dump(),
        })

    except Exception as e:
        return server_error("Failed to get ride history", e)


@router.get("/active")
async def active_ride(
    user: dict = Depends(require_rider),
    rides: RideRepository = Depends(get_ride_repository),
):
    """The caller's current pending, accepted or started ride"""
    try:
        ride = await rides.find_active_by_rider(user["userId"])
        if not ride:
            raise RideNotFound("No active ride found")

        return envelope("Active ride retrieved successfully", {"ride": ride.model_dump(mode="json")})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to get active ride", e)


@router.get("/{ride_id}/status")
async def get_ride_status(
    ride_id: str,
    user: dict = Depends(get_current_user),
    rides: RideRepository = Depends(get_ride_repository),
):
    """Current state of a ride owned by, or assigned to, the caller"""
    try:
        ride = await rides.find_by_id(ride_id, user["userId"])
        if not ride:
            raise RideNotFound()

        return envelope("Ride status retrieved successfully", {"ride": ride.model_dump(mode="json")})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to get ride status", e)


@router.put("/{ride_id}/update-destination")
async def update_destination(
    ride_id: str,
    request: UpdateDestinationRequest,
    user: dict = Depends(require_rider),
    rides: RideRepository = Depends(get_ride_repository),
    manager: RideLifecycleManager = Depends(get_lifecycle_manager),
):
    """Change the drop location of an accepted or started ride"""
    try:
        ride = await rides.find_by_id(ride_id, user["userId"])
        if not ride:
            raise RideNotModifiable("Active ride not found or cannot be modified")

        transition = manager.apply(ride, UpdateDestination(
            requested_by=user["userId"],
            drop=request.dropLocation,
        ))
        updated = await rides.save_transition(ride, transition)

        return envelope("Destination updated successfully", {
            "ride": updated.model_dump(mode="json"),
            "fareBreakdown": _ride_fare_breakdown(manager, updated),
        })

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to update destination", e)


@router.post("/{ride_id}/cancel")
async def cancel_ride(
    ride_id: str,
    request: Optional[CancelRideRequest] = None,
    user: dict = Depends(require_rider),
    rides: RideRepository = Depends(get_ride_repository),
    manager: RideLifecycleManager = Depends(get_lifecycle_manager),
):
    """Cancel a pending or accepted ride"""
    try:
        ride = await rides.find_by_id(ride_id, user["userId"])
        if not ride:
            raise RideNotModifiable("Ride not found or cannot be cancelled")

        transition = manager.apply(ride, CancelRide(
            requested_by=user["userId"],
            reason=request.reason if request else None,
        ))
        updated = await rides.save_transition(ride, transition)

        # Notifying the assigned driver is handled outside this service
        return envelope("Ride cancelled successfully", {"ride": updated.model_dump(mode="json")})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to cancel ride", e)


# ============================================
# DRIVER ENDPOINTS
# ============================================

async def _driver_transition(ride_id: str, command, scope: Optional[str], rides, manager):
    ride = await rides.find_by_id(ride_id, scope)
    if not ride:
        raise RideNotFound()

    transition = manager.apply(ride, command)
    return await rides.save_transition(ride, transition)


@router.post("/{ride_id}/accept")
async def accept_ride(
    ride_id: str,
    user: dict = Depends(require_driver),
    rides: RideRepository = Depends(get_ride_repository),
    manager: RideLifecycleManager = Depends(get_lifecycle_manager),
):
    """Assign the calling driver to a pending ride"""
    try:
        ride = await _driver_transition(ride_id, AcceptRide(driver_id=user["userId"]), None, rides, manager)
        return envelope("Ride accepted successfully", {"ride": ride.model_dump(mode="json")})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to accept ride", e)


@router.post("/{ride_id}/start")
async def start_ride(
    ride_id: str,
    user: dict = Depends(require_driver),
    rides: RideRepository = Depends(get_ride_repository),
    manager: RideLifecycleManager = Depends(get_lifecycle_manager),
):
    """Start an accepted ride assigned to the calling driver"""
    try:
        driver_id = user["userId"]
        ride = await _driver_transition(ride_id, StartRide(driver_id=driver_id), driver_id, rides, manager)
        return envelope("Ride started successfully", {"ride": ride.model_dump(mode="json")})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to start ride", e)


@router.post("/{ride_id}/complete")
async def complete_ride(
    ride_id: str,
    user: dict = Depends(require_driver),
    rides: RideRepository = Depends(get_ride_repository),
    manager: RideLifecycleManager = Depends(get_lifecycle_manager),
):
    """Complete a started ride assigned to the calling driver"""
    try:
        driver_id = user["userId"]
        ride = await _driver_transition(ride_id, CompleteRide(driver_id=driver_id), driver_id, rides, manager)
        return envelope("Ride completed successfully", {"ride": ride.model_dump(mode="json")})

    except RideServiceError:
        raise
    except Exception as e:
        return server_error("Failed to complete ride", e)
