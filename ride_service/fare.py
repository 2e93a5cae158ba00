"""
Fare Estimation
===============

Great-circle distance and fare breakdown for a pickup/drop pair.

Pure functions over validated inputs: no I/O, no shared state. The per-km
rate is fixed for the lifetime of an estimator instance.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

from ride_service.errors import ValidationFailure
from ride_service.models import FareQuote, GeoPoint, Location, RideCategory

EARTH_RADIUS_KM = 6371.0
BASE_FARE = 50.0
MINIMUM_FARE = 80.0
GST_RATE = 0.18
AVERAGE_SPEED_KMH = 30.0
DEFAULT_FARE_PER_KM = 15.0


def round_half_up(value: float, places: int = 2) -> float:
    """Round half away from zero on the decimal representation of value"""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def validate_coordinates(latitude: float, longitude: float) -> bool:
    """Check latitude/longitude ranges"""
    return (
        isinstance(latitude, (int, float))
        and isinstance(longitude, (int, float))
        and -90 <= latitude <= 90
        and -180 <= longitude <= 180
    )


def haversine_km(a: GeoPoint, b: GeoPoint) -> float:
    """Unrounded great-circle distance in kilometers"""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lon = math.radians(b.longitude - a.longitude)

    h = (math.sin(d_lat / 2) ** 2 +
         math.cos(math.radians(a.latitude)) * math.cos(math.radians(b.latitude)) *
         math.sin(d_lon / 2) ** 2)

    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


class FareEstimator:
    """Computes distances and fare quotes at a fixed per-km rate"""

    def __init__(self, fare_per_km: float = DEFAULT_FARE_PER_KM):
        if fare_per_km < 0:
            raise ValueError(f"fare_per_km must be non-negative, got {fare_per_km}")
        self.fare_per_km = fare_per_km

    def distance_km(self, a: GeoPoint, b: GeoPoint) -> float:
        """Haversine distance rounded to 2 decimal places"""
        for point in (a, b):
            if not validate_coordinates(point.latitude, point.longitude):
                raise ValidationFailure(f"Invalid coordinates: {point.latitude}, {point.longitude}")
        return round_half_up(haversine_km(a, b))

    @staticmethod
    def estimated_minutes(distance_km: float) -> int:
        """Trip duration at the average city speed"""
        return math.ceil(distance_km / AVERAGE_SPEED_KMH * 60)

    def fare_for_distance(self, distance_km: float, category: RideCategory) -> FareQuote:
        """
        Fare breakdown for an already known distance

        baseFare, gst and totalFare are rounded independently, so
        baseFare + gst can differ from totalFare by 0.01.
        """
        if distance_km < 0:
            raise ValidationFailure(f"Distance must be non-negative, got {distance_km}")
        try:
            category = RideCategory(category)
        except ValueError:
            raise ValidationFailure(f"Unknown ride category: {category}")

        raw = BASE_FARE + distance_km * self.fare_per_km * category.multiplier
        adjusted = max(raw, MINIMUM_FARE)
        gst = adjusted * GST_RATE
        total = adjusted + gst

        return FareQuote(
            baseFare=round_half_up(adjusted),
            gst=round_half_up(gst),
            totalFare=round_half_up(total),
            distanceKm=distance_km,
            farePerKm=self.fare_per_km,
            rideCategory=category,
            estimatedMinutes=self.estimated_minutes(distance_km),
        )

    def quote(
        self,
        pickup: Location,
        drop: Location,
        category: RideCategory = RideCategory.ECONOMY,
    ) -> FareQuote:
        """Fare quote between two locations"""
        distance = self.distance_km(pickup.coordinates, drop.coordinates)
        return self.fare_for_distance(distance, category)
