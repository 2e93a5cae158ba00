"""
Ride and User Repositories
==========================

MongoDB persistence for ride aggregates and user accounts.

Every lifecycle transition is written with a single find_one_and_update
filtered on the ride's before-state, so concurrent writers cannot both
apply a transition to the same ride.
"""

import logging
from typing import List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from ride_service.errors import ActiveRideConflict, DuplicateUser, RideNotModifiable
from ride_service.lifecycle import Transition
from ride_service.models import ACTIVE_STATUSES, Ride, RideStatus

logger = logging.getLogger(__name__)

ACTIVE_STATUS_VALUES = [s.value for s in RideStatus if s in ACTIVE_STATUSES]


def ride_to_document(ride: Ride) -> dict:
    """Serialize a ride for storage, including the isActive index key"""
    doc = ride.model_dump(exclude={"actualDuration"})
    doc["isActive"] = ride.is_active
    return doc


def ride_from_document(doc: dict) -> Ride:
    """Build a ride from a stored document"""
    doc = dict(doc)
    doc.pop("_id", None)
    doc.pop("isActive", None)
    return Ride(**doc)


class RideRepository:
    """Reads and writes ride documents"""

    def __init__(self, collection):
        self.collection = collection

    async def insert(self, ride: Ride) -> Ride:
        """
        Insert a newly created ride

        Raises ActiveRideConflict when the one-active-ride index rejects
        the insert (a concurrent booking by the same rider won).
        """
        try:
            await self.collection.insert_one(ride_to_document(ride))
        except DuplicateKeyError:
            existing = await self.find_active_by_rider(ride.riderId)
            logger.warning(f"Concurrent booking rejected for rider {ride.riderId}")
            raise ActiveRideConflict(existing.rideId if existing else None)

        logger.info(f"Created ride {ride.rideId} for rider {ride.riderId}")
        return ride

    async def find_by_id(self, ride_id: str, user_id: Optional[str] = None) -> Optional[Ride]:
        """
        Find a ride by id

        When user_id is given the ride must belong to that rider or be
        assigned to that driver.
        """
        query = {"rideId": ride_id}
        if user_id is not None:
            query["$or"] = [{"riderId": user_id}, {"driverId": user_id}]

        doc = await self.collection.find_one(query)
        return ride_from_document(doc) if doc else None

    async def find_active_by_rider(self, rider_id: str) -> Optional[Ride]:
        """Most recent pending, accepted or started ride of a rider"""
        doc = await self.collection.find_one(
            {"riderId": rider_id, "status": {"$in": ACTIVE_STATUS_VALUES}},
            sort=[("createdAt", DESCENDING)],
        )
        return ride_from_document(doc) if doc else None

    async def list_by_rider(
        self,
        rider_id: str,
        page: int = 1,
        limit: int = 10,
        status: Optional[RideStatus] = None,
    ) -> Tuple[List[Ride], int]:
        """Page of a rider's rides, newest first, and the total match count"""
        query = {"riderId": rider_id}
        if status is not None:
            query["status"] = RideStatus(status).value

        skip = (page - 1) * limit
        cursor = self.collection.find(query).sort("createdAt", DESCENDING).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        total = await self.collection.count_documents(query)

        return [ride_from_document(doc) for doc in docs], total

    async def save_transition(self, before: Ride, transition: Transition) -> Ride:
        """
        Persist a lifecycle transition atomically

        The update only matches while the stored ride still has the
        before-state status and history length.
        """
        before_doc = ride_to_document(before)
        after_doc = ride_to_document(transition.ride)

        changes = {
            key: value
            for key, value in after_doc.items()
            if key != "history" and before_doc.get(key) != value
        }
        changes["isActive"] = after_doc["isActive"]
        changes["updatedAt"] = after_doc["updatedAt"]

        result = await self.collection.find_one_and_update(
            {
                "rideId": before.rideId,
                "status": before.status.value,
                "history": {"$size": len(before.history)},
            },
            {
                "$set": changes,
                "$push": {"history": transition.entry.model_dump()},
            },
            return_document=ReturnDocument.AFTER,
        )

        if result is None:
            logger.warning(f"Transition on ride {before.rideId} lost to a concurrent update")
            raise RideNotModifiable("Ride was modified concurrently or cannot be modified")

        logger.info(f"Ride {before.rideId}: {transition.entry.action.value}")
        return ride_from_document(result)


class UserRepository:
    """Reads and writes user account documents"""

    def __init__(self, collection):
        self.collection = collection

    async def insert(self, user_doc: dict) -> dict:
        try:
            await self.collection.insert_one(dict(user_doc))
        except DuplicateKeyError:
            raise DuplicateUser("User with this email or phone number already exists")

        logger.info(f"Registered user {user_doc['userId']}")
        return user_doc

    async def find_by_email(self, email: str) -> Optional[dict]:
        return await self._find_one({"email": email.lower()})

    async def find_by_phone(self, phone: str) -> Optional[dict]:
        return await self._find_one({"phone": phone})

    async def find_by_id(self, user_id: str) -> Optional[dict]:
        return await self._find_one({"userId": user_id})

    async def update_profile(self, user_id: str, fields: dict) -> Optional[dict]:
        """Apply profile field updates and return the updated user"""
        try:
            result = await self.collection.find_one_and_update(
                {"userId": user_id},
                {"$set": fields},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            raise DuplicateUser("Phone number is already registered with another account")

        if result:
            result.pop("_id", None)
        return result

    async def _find_one(self, query: dict) -> Optional[dict]:
        doc = await self.collection.find_one(query)
        if doc:
            doc.pop("_id", None)
        return doc
