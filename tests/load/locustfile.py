"""
Load Testing with Locust
=========================

This file defines load test scenarios for the ride booking API.

Usage:
    locust -f tests/load/locustfile.py --host http://localhost:3000

    # Test with 1000 riders
    locust -f tests/load/locustfile.py --host http://localhost:3000 \
        --users 1000 --spawn-rate 10 --run-time 60s --headless
"""

import random
import uuid

from locust import HttpUser, between, events, task


# Mumbai bounding box
LATS = [18.95 + random.random() * 0.25 for _ in range(100)]
LONS = [72.80 + random.random() * 0.15 for _ in range(100)]
RIDE_TYPES = ["economy", "premium", "luxury"]


def random_location(label):
    return {
        "address": f"{label} {random.randint(1, 999)}, Mumbai",
        "coordinates": {"latitude": random.choice(LATS), "longitude": random.choice(LONS)}
    }


class RiderUser(HttpUser):
    """Simulates a rider estimating, booking and cancelling rides"""

    wait_time = between(0.5, 2.0)

    def on_start(self):
        """Register a throwaway rider account"""
        suffix = uuid.uuid4().hex[:12]
        response = self.client.post("/auth/register", json={
            "name": "Load Rider",
            "email": f"load-{suffix}@example.com",
            "phone": str(uuid.uuid4().int)[:10],
            "password": "password123",
        }, name="POST /auth/register")
        token = response.json()["data"]["token"] if response.status_code == 201 else ""
        self.headers = {"Authorization": f"Bearer {token}"}
        self.active_ride_id = None

    @task(5)
    def estimate(self):
        """Fare estimate (50% weight)"""
        pickup, drop = random_location("Pickup"), random_location("Drop")
        with self.client.get(
            "/rides/estimate",
            params={
                "fromLat": pickup["coordinates"]["latitude"],
                "fromLng": pickup["coordinates"]["longitude"],
                "toLat": drop["coordinates"]["latitude"],
                "toLng": drop["coordinates"]["longitude"],
                "fromAddress": pickup["address"],
                "toAddress": drop["address"],
                "rideType": random.choice(RIDE_TYPES),
            },
            headers=self.headers,
            catch_response=True,
            name="GET /rides/estimate"
        ) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Failed: {response.status_code}")

    @task(2)
    def book_ride(self):
        """Book a ride (20% weight); 409 is expected while one is active"""
        with self.client.post(
            "/rides/book",
            json={
                "pickupLocation": random_location("Pickup"),
                "dropLocation": random_location("Drop"),
                "rideType": random.choice(RIDE_TYPES),
            },
            headers=self.headers,
            catch_response=True,
            name="POST /rides/book"
        ) as response:
            if response.status_code == 201:
                self.active_ride_id = response.json()["data"]["ride"]["rideId"]
                response.success()
            elif response.status_code == 409:
                response.success()
            else:
                response.failure(f"Failed: {response.status_code}")

    @task(2)
    def cancel_ride(self):
        """Cancel the active ride (20% weight)"""
        if not self.active_ride_id:
            return
        with self.client.post(
            f"/rides/{self.active_ride_id}/cancel",
            json={"reason": "Load test"},
            headers=self.headers,
            catch_response=True,
            name="POST /rides/{id}/cancel"
        ) as response:
            if response.status_code in (200, 404):
                self.active_ride_id = None
                response.success()
            else:
                response.failure(f"Failed: {response.status_code}")

    @task(1)
    def history(self):
        """Ride history (10% weight)"""
        with self.client.get(
            "/rides/history?limit=20",
            headers=self.headers,
            catch_response=True,
            name="GET /rides/history"
        ) as response:
            if response.status_code == 200:
                response.success()
            else:
                response.failure(f"Failed: {response.status_code}")


# Custom statistics tracking
request_latencies = []


@events.request.add_listener
def on_request(request_type, name, response_time, response_length, exception, **kwargs):
    """Track request latencies for percentile reporting"""
    if exception is None:
        request_latencies.append(response_time)


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Print latency percentiles at test end"""
    if request_latencies:
        request_latencies.sort()
        count = len(request_latencies)

        print("\n" + "=" * 60)
        print("LATENCY PERCENTILES")
        print("=" * 60)
        for label, fraction in (("P50", 0.50), ("P95", 0.95), ("P99", 0.99)):
            print(f"{label}: {request_latencies[min(int(count * fraction), count - 1)]:.2f} ms")
        print(f"Max: {request_latencies[-1]:.2f} ms")
        print("=" * 60 + "\n")
