"""
Load Testing Package
====================

Load tests for the ride booking API.

Run load tests:
    locust -f tests/load/locustfile.py --host http://localhost:3000
"""
