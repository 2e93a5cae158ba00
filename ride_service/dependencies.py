"""
Shared service instances and FastAPI dependency providers.
"""

from ride_service.config import Settings, settings
from ride_service.database import DatabaseManager
from ride_service.fare import FareEstimator
from ride_service.lifecycle import RideLifecycleManager
from ride_service.repository import RideRepository, UserRepository

# Database manager
db_manager = DatabaseManager(settings)

estimator = FareEstimator(fare_per_km=settings.fare_per_km)
lifecycle_manager = RideLifecycleManager(estimator)


def get_settings() -> Settings:
    return settings


def get_estimator() -> FareEstimator:
    return estimator


def get_lifecycle_manager() -> RideLifecycleManager:
    return lifecycle_manager


def get_ride_repository() -> RideRepository:
    return RideRepository(db_manager.get_rides_collection())


def get_user_repository() -> UserRepository:
    return UserRepository(db_manager.get_users_collection())
