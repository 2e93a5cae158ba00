"""
Unit Tests for Fare Estimation
==============================
"""

import math

import pytest

from ride_service.errors import ValidationFailure
from ride_service.fare import (
    FareEstimator, MINIMUM_FARE, round_half_up, validate_coordinates,
)
from ride_service.models import GeoPoint, RideCategory


POINTS = [
    GeoPoint(latitude=19.0760, longitude=72.8777),
    GeoPoint(latitude=28.6139, longitude=77.2090),
    GeoPoint(latitude=-33.8688, longitude=151.2093),
    GeoPoint(latitude=51.5074, longitude=-0.1278),
    GeoPoint(latitude=0.0, longitude=0.0),
]


class TestDistance:
    """Haversine distance"""

    def test_mumbai_pair(self, estimator, bandra, andheri):
        """Bandra West to Andheri East is about 1.98 km"""
        distance = estimator.distance_km(bandra.coordinates, andheri.coordinates)
        assert distance == pytest.approx(1.98, abs=0.05)

    @pytest.mark.parametrize("a", POINTS)
    @pytest.mark.parametrize("b", POINTS)
    def test_symmetric(self, estimator, a, b):
        assert estimator.distance_km(a, b) == estimator.distance_km(b, a)

    @pytest.mark.parametrize("point", POINTS)
    def test_same_point_is_zero(self, estimator, point):
        assert estimator.distance_km(point, point) == 0

    def test_rounded_to_two_places(self, estimator):
        distance = estimator.distance_km(POINTS[0], POINTS[1])
        assert distance == round(distance, 2)

    def test_one_degree_of_latitude(self, estimator):
        """One degree along a meridian is R * pi / 180"""
        d = estimator.distance_km(GeoPoint(latitude=0, longitude=0), GeoPoint(latitude=1, longitude=0))
        assert d == pytest.approx(6371 * math.pi / 180, abs=0.01)

    def test_out_of_range_point_rejected(self, estimator):
        """Points that bypassed model validation are still rejected"""
        bad = GeoPoint.model_construct(latitude=120.0, longitude=72.87)
        with pytest.raises(ValidationFailure):
            estimator.distance_km(POINTS[0], bad)


class TestFareForDistance:
    """Fare breakdown for a known distance"""

    def test_economy_scenario(self, estimator):
        """2.37 km economy: 50 + 2.37 * 15 = 85.55, GST 15.40, total 100.95"""
        quote = estimator.fare_for_distance(2.37, RideCategory.ECONOMY)
        assert quote.baseFare == pytest.approx(85.55, abs=0.01)
        assert quote.gst == pytest.approx(15.40, abs=0.01)
        assert quote.totalFare == pytest.approx(100.95, abs=0.05)
        assert quote.estimatedMinutes == 5
        assert quote.farePerKm == 15.0
        assert quote.rideCategory == RideCategory.ECONOMY

    def test_minimum_fare_applies(self, estimator):
        quote = estimator.fare_for_distance(0.5, RideCategory.ECONOMY)
        assert quote.baseFare == MINIMUM_FARE
        assert quote.gst == 14.40
        assert quote.totalFare == 94.40

    def test_zero_distance(self, estimator):
        quote = estimator.fare_for_distance(0.0, RideCategory.LUXURY)
        assert quote.baseFare == MINIMUM_FARE
        assert quote.estimatedMinutes == 0

    @pytest.mark.parametrize("category", list(RideCategory))
    @pytest.mark.parametrize("distance", [0.0, 0.4, 1.98, 2.37, 7.5, 33.33, 120.0])
    def test_adjusted_never_below_minimum(self, estimator, category, distance):
        quote = estimator.fare_for_distance(distance, category)
        assert quote.baseFare >= MINIMUM_FARE
        assert abs(quote.totalFare - (quote.baseFare + quote.gst)) <= 0.01 + 1e-9

    def test_independent_rounding_is_preserved(self):
        """
        adjusted 100.0049 -> 100.00, gst 18.000882 -> 18.00,
        total 118.005782 -> 118.01: the parts do not add up to the total
        """
        estimator = FareEstimator(fare_per_km=5.00049)
        quote = estimator.fare_for_distance(10.0, RideCategory.ECONOMY)
        assert quote.baseFare == 100.00
        assert quote.gst == 18.00
        assert quote.totalFare == 118.01
        assert round(quote.baseFare + quote.gst, 2) == 118.00

    @pytest.mark.parametrize("category", list(RideCategory))
    def test_monotonic_in_distance(self, estimator, category):
        totals = [estimator.fare_for_distance(d / 4, category).totalFare for d in range(0, 200)]
        assert totals == sorted(totals)

    @pytest.mark.parametrize("distance", [0.0, 1.0, 2.37, 10.0, 55.5])
    def test_category_ordering(self, estimator, distance):
        economy = estimator.fare_for_distance(distance, RideCategory.ECONOMY).totalFare
        premium = estimator.fare_for_distance(distance, RideCategory.PREMIUM).totalFare
        luxury = estimator.fare_for_distance(distance, RideCategory.LUXURY).totalFare
        assert luxury >= premium >= economy

    def test_injected_rate(self):
        quote = FareEstimator(fare_per_km=20.0).fare_for_distance(10.0, RideCategory.ECONOMY)
        assert quote.baseFare == 250.00
        assert quote.farePerKm == 20.0

    def test_invalid_inputs(self, estimator):
        with pytest.raises(ValidationFailure):
            estimator.fare_for_distance(-1.0, RideCategory.ECONOMY)
        with pytest.raises(ValidationFailure):
            estimator.fare_for_distance(1.0, "scooter")

    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            FareEstimator(fare_per_km=-1)

    def test_estimated_minutes_rounds_up(self):
        assert FareEstimator.estimated_minutes(1.98) == 4
        assert FareEstimator.estimated_minutes(15.0) == 30
        assert FareEstimator.estimated_minutes(15.01) == 31


class TestQuote:
    """Quotes between locations"""

    def test_quote_mumbai_pair(self, estimator, bandra, andheri):
        """1.98 km is under the minimum fare"""
        quote = estimator.quote(bandra, andheri, RideCategory.ECONOMY)
        assert quote.distanceKm == pytest.approx(1.98, abs=0.05)
        assert quote.baseFare == 80.00
        assert quote.gst == 14.40
        assert quote.totalFare == 94.40
        assert quote.estimatedMinutes == 4

    def test_quote_matches_fare_for_distance(self, estimator, bandra, powai):
        quote = estimator.quote(bandra, powai, RideCategory.PREMIUM)
        expected = estimator.fare_for_distance(quote.distanceKm, RideCategory.PREMIUM)
        assert quote == expected

    def test_default_category_is_economy(self, estimator, bandra, powai):
        assert estimator.quote(bandra, powai).rideCategory == RideCategory.ECONOMY


class TestHelpers:

    @pytest.mark.parametrize("value,expected", [
        (85.55, 85.55),
        (15.399, 15.40),
        (100.949, 100.95),
        (2.675, 2.68),
        (-2.675, -2.68),
        (1.004, 1.00),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("lat,lon,valid", [
        (19.07, 72.87, True),
        (90, 180, True),
        (-90, -180, True),
        (90.1, 0, False),
        (0, -180.5, False),
        ("19", 72, False),
    ])
    def test_validate_coordinates(self, lat, lon, valid):
        assert validate_coordinates(lat, lon) is valid
