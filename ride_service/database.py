"""
MongoDB Connection Management
==============================

Handles the connection to the ride booking database and the indexes the
repositories rely on.
"""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from ride_service.config import Settings

logger = logging.getLogger(__name__)

RIDES_COLLECTION = "rides"
USERS_COLLECTION = "users"

# One active ride per rider: repositories keep isActive in sync with status
RIDE_INDEXES = [
    IndexModel([("rideId", ASCENDING)], name="rideId_unique", unique=True),
    IndexModel([("riderId", ASCENDING), ("createdAt", DESCENDING)], name="rider_created"),
    IndexModel([("driverId", ASCENDING), ("status", ASCENDING)], name="driver_status"),
    IndexModel([("status", ASCENDING), ("createdAt", DESCENDING)], name="status_created"),
    IndexModel(
        [("riderId", ASCENDING)],
        name="one_active_ride_per_rider",
        unique=True,
        partialFilterExpression={"isActive": True},
    ),
]

USER_INDEXES = [
    IndexModel([("userId", ASCENDING)], name="userId_unique", unique=True),
    IndexModel([("email", ASCENDING)], name="email_unique", unique=True),
    IndexModel([("phone", ASCENDING)], name="phone_unique", unique=True),
]


class DatabaseManager:
    """Manages the MongoDB connection for the ride booking service"""

    def __init__(self, settings: Settings):
        """
        Initialize database manager

        Args:
            settings: service settings carrying the URI and database name
        """
        if not settings.mongo_uri.startswith(("mongodb://", "mongodb+srv://")):
            raise ValueError(f"Invalid MongoDB URI: {settings.mongo_uri}")

        self.mongo_uri = settings.mongo_uri
        self.db_name = settings.db_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.db = None

    async def connect(self):
        """Establish connection to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(
                self.mongo_uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=5000,
                socketTimeoutMS=10000,
                retryWrites=True,
                tz_aware=True,
                w="majority"  # Write concern for durability
            )

            # Verify connection
            await self.client.admin.command('ping')
            self.db = self.client[self.db_name]

            logger.info(f"Connected to MongoDB database {self.db_name}")

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    async def disconnect(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def ensure_indexes(self):
        """Create the ride and user indexes if missing"""
        await self.get_rides_collection().create_indexes(RIDE_INDEXES)
        await self.get_users_collection().create_indexes(USER_INDEXES)
        logger.info("MongoDB indexes ensured")

    async def health_check(self) -> dict:
        """
        Check MongoDB health

        Returns:
            dict: Health check information
        """
        try:
            if self.client is None:
                raise RuntimeError("Database not connected")
            await self.client.admin.command('ping')
            return {"status": "connected", "database": self.db_name}

        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return {
                "status": "disconnected",
                "database": self.db_name,
                "error": str(e)
            }

    def get_rides_collection(self):
        """Get rides collection"""
        if self.db is None:
            raise RuntimeError("Database not connected")
        return self.db[RIDES_COLLECTION]

    def get_users_collection(self):
        """Get users collection"""
        if self.db is None:
            raise RuntimeError("Database not connected")
        return self.db[USERS_COLLECTION]
