"""
Ride Lifecycle Manager
======================

State machine over ride status. Each command takes the full before-state
and returns the full after-state plus the single history entry it wrote.
A rejected command raises RideNotModifiable and leaves the input ride
untouched.

    pending --accept--> accepted --start--> started --complete--> completed
    pending/accepted --cancel--> cancelled
    accepted/started --update destination--> (same status)
"""

import uuid
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional

from ride_service.errors import RideNotModifiable
from ride_service.fare import FareEstimator
from ride_service.models import (
    AcceptRide, CancelledBy, CancelRide, CompleteRide, CreateRide, Fare,
    FareQuote, HistoryAction, HistoryEntry, Ride, RideStatus, StartRide,
    UpdateDestination,
)

CANCELLABLE_STATUSES = frozenset({RideStatus.PENDING, RideStatus.ACCEPTED})
DESTINATION_EDITABLE_STATUSES = frozenset({RideStatus.ACCEPTED, RideStatus.STARTED})

# Driver-side transitions: command -> (required status, new status, history action)
DRIVER_TRANSITIONS = {
    AcceptRide: (RideStatus.PENDING, RideStatus.ACCEPTED, HistoryAction.ACCEPTED),
    StartRide: (RideStatus.ACCEPTED, RideStatus.STARTED, HistoryAction.STARTED),
    CompleteRide: (RideStatus.STARTED, RideStatus.COMPLETED, HistoryAction.COMPLETED),
}

DEFAULT_CANCELLATION_REASON = "Cancelled by user"


class Transition(NamedTuple):
    """After-state of a ride and the history entry appended to it"""
    ride: Ride
    entry: HistoryEntry


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RideLifecycleManager:
    """Applies lifecycle commands to ride values"""

    def __init__(self, estimator: FareEstimator, clock: Optional[Callable[[], datetime]] = None):
        self.estimator = estimator
        self.clock = clock or _utcnow
        self._handlers = {
            CancelRide: self._cancel,
            UpdateDestination: self._update_destination,
            AcceptRide: self._driver_transition,
            StartRide: self._driver_transition,
            CompleteRide: self._driver_transition,
        }

    def create(self, command: CreateRide) -> Transition:
        """
        Build a new pending ride seeded by a fresh quote

        The caller must already have checked that the rider has no active
        ride; this manager only sees one ride at a time.
        """
        now = self.clock()
        quote = self.estimator.quote(command.pickup, command.drop, command.category)
        entry = HistoryEntry(
            action=HistoryAction.CREATED,
            timestamp=now,
            details="Ride request created",
        )

        ride = Ride(
            rideId=uuid.uuid4().hex,
            riderId=command.rider_id,
            status=RideStatus.PENDING,
            rideCategory=command.category,
            pickupLocation=command.pickup,
            dropLocation=command.drop,
            originalDropLocation=command.drop,
            distanceKm=quote.distanceKm,
            estimatedDuration=quote.estimatedMinutes,
            fare=_fare_from_quote(quote),
            paymentMethod=command.payment_method,
            notes=command.notes,
            history=[entry],
            createdAt=now,
            updatedAt=now,
        )
        return Transition(ride, entry)

    def apply(self, ride: Ride, command) -> Transition:
        """Apply a command to an existing ride"""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported ride command: {type(command).__name__}")

        if ride.status.is_terminal:
            raise RideNotModifiable(f"Ride is already {ride.status.value}")

        return handler(ride, command)

    def requote(self, ride: Ride) -> FareQuote:
        """Fresh quote for the ride's current pickup, drop and category"""
        return self.estimator.quote(ride.pickupLocation, ride.dropLocation, ride.rideCategory)

    # ============================================
    # COMMAND HANDLERS
    # ============================================

    def _cancel(self, ride: Ride, command: CancelRide) -> Transition:
        if ride.riderId != command.requested_by:
            raise RideNotModifiable("Ride not found or cannot be cancelled")
        if ride.status not in CANCELLABLE_STATUSES:
            raise RideNotModifiable("Ride not found or cannot be cancelled")

        reason = command.reason or DEFAULT_CANCELLATION_REASON
        now = self.clock()
        entry = HistoryEntry(action=HistoryAction.CANCELLED, timestamp=now, details=reason)

        updated = ride.model_copy(deep=True, update={
            "status": RideStatus.CANCELLED,
            "cancellationReason": reason,
            "cancelledBy": CancelledBy.USER,
            "history": [*ride.history, entry],
            "updatedAt": now,
        })
        return Transition(updated, entry)

    def _update_destination(self, ride: Ride, command: UpdateDestination) -> Transition:
        if ride.riderId != command.requested_by:
            raise RideNotModifiable("Active ride not found or cannot be modified")
        if ride.status not in DESTINATION_EDITABLE_STATUSES:
            raise RideNotModifiable("Active ride not found or cannot be modified")

        quote = self.estimator.quote(ride.pickupLocation, command.drop, ride.rideCategory)
        now = self.clock()
        entry = HistoryEntry(
            action=HistoryAction.DESTINATION_UPDATED,
            timestamp=now,
            details=f"Destination updated to {command.drop.address}",
        )

        updated = ride.model_copy(deep=True, update={
            "dropLocation": command.drop,
            "distanceKm": quote.distanceKm,
            "estimatedDuration": quote.estimatedMinutes,
            "fare": _fare_from_quote(quote, currency=ride.fare.currency),
            "history": [*ride.history, entry],
            "updatedAt": now,
        })
        return Transition(updated, entry)

    def _driver_transition(self, ride: Ride, command) -> Transition:
        required, target, action = DRIVER_TRANSITIONS[type(command)]
        if ride.status != required:
            raise RideNotModifiable(
                f"Cannot move ride from {ride.status.value} to {target.value}"
            )

        changes = {}
        if isinstance(command, AcceptRide):
            changes["driverId"] = command.driver_id
        elif ride.driverId != command.driver_id:
            raise RideNotModifiable("Ride is assigned to another driver")

        now = self.clock()
        if target == RideStatus.STARTED:
            changes["rideStartTime"] = now
        elif target == RideStatus.COMPLETED:
            changes["rideEndTime"] = now

        entry = HistoryEntry(
            action=action,
            timestamp=now,
            details=f"Ride status changed to {target.value}",
        )
        changes.update({
            "status": target,
            "history": [*ride.history, entry],
            "updatedAt": now,
        })
        return Transition(ride.model_copy(deep=True, update=changes), entry)


def _fare_from_quote(quote: FareQuote, currency: str = "INR") -> Fare:
    return Fare(
        baseFare=quote.baseFare,
        gst=quote.gst,
        totalFare=quote.totalFare,
        currency=currency,
    )
