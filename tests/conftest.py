"""
Shared fixtures for unit tests.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from ride_service.api import app
from ride_service.auth import get_current_user
from ride_service.dependencies import (
    get_estimator, get_lifecycle_manager, get_ride_repository, get_user_repository,
)
from ride_service.fare import FareEstimator
from ride_service.lifecycle import RideLifecycleManager
from ride_service.models import CreateRide, GeoPoint, Location, RideCategory
from ride_service.repository import RideRepository, UserRepository

T0 = datetime(2024, 12, 2, 10, 30, tzinfo=timezone.utc)


class FakeClock:
    """Clock advancing one minute per call"""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(minutes=1)
        return current


@pytest.fixture
def bandra():
    return Location(address="Bandra West, Mumbai", coordinates=GeoPoint(latitude=19.0760, longitude=72.8777))


@pytest.fixture
def andheri():
    return Location(address="Andheri East, Mumbai", coordinates=GeoPoint(latitude=19.0896, longitude=72.8656))


@pytest.fixture
def powai():
    return Location(address="Powai, Mumbai", coordinates=GeoPoint(latitude=19.1176, longitude=72.9060))


@pytest.fixture
def estimator():
    return FareEstimator(fare_per_km=15.0)


@pytest.fixture
def manager(estimator):
    return RideLifecycleManager(estimator, clock=FakeClock())


@pytest.fixture
def pending_ride(manager, bandra, andheri):
    """Freshly booked economy ride for rider-1"""
    command = CreateRide(rider_id="rider-1", pickup=bandra, drop=andheri, category=RideCategory.ECONOMY)
    return manager.create(command).ride


@pytest.fixture
def rider_user():
    return {
        "userId": "rider-1",
        "name": "Test Rider",
        "email": "rider@example.com",
        "phone": "9876543210",
        "role": "rider",
        "address": {},
        "isActive": True,
        "createdAt": T0,
    }


@pytest.fixture
def driver_user():
    return {
        "userId": "driver-1",
        "name": "Test Driver",
        "email": "driver@example.com",
        "phone": "9123456780",
        "role": "driver",
        "address": {},
        "isActive": True,
        "createdAt": T0,
    }


@pytest.fixture
def ride_repo():
    return AsyncMock(spec=RideRepository)


@pytest.fixture
def user_repo():
    return AsyncMock(spec=UserRepository)


@pytest.fixture
def api_client(ride_repo, user_repo, estimator, manager):
    """TestClient with repositories replaced by mocks; lifespan is not run"""
    app.dependency_overrides[get_ride_repository] = lambda: ride_repo
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_estimator] = lambda: estimator
    app.dependency_overrides[get_lifecycle_manager] = lambda: manager
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_user(api_client):
    """Authenticate subsequent requests as the given user document"""
    def _login(user: dict):
        app.dependency_overrides[get_current_user] = lambda: user
        return api_client
    return _login
