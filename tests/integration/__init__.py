"""
Integration Tests Package
==========================

Integration tests require the service to be running:
- MongoDB on localhost:27017
- Ride Booking API on localhost:3000

To run integration tests:
    pytest tests/integration/ -v -m integration
"""
