"""
Ride Booking Service
====================

FastAPI backend for booking and tracking rides:
- api.py: application factory, envelope handlers, health endpoints
- routers/: auth and ride endpoints
- fare.py: fare estimation (haversine distance, GST, duration)
- lifecycle.py: ride state machine and history
- models.py: Pydantic data models
- database.py / repository.py: MongoDB access
"""

__version__ = "1.0.0"
__author__ = "Ride Booking Team"
