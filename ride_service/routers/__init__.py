"""HTTP routers for the ride booking API."""
