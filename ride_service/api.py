"""
Ride Booking API Service
========================

FastAPI application for ride booking: authentication, fare estimates and
the ride lifecycle.

Run: uvicorn ride_service.api:app --host 0.0.0.0 --port 3000
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ride_service import __version__
from ride_service.config import Settings, settings
from ride_service.dependencies import db_manager
from ride_service.errors import (
    ActiveRideConflict, DuplicateUser, RideNotFound, RideNotModifiable,
    ValidationFailure,
)
from ride_service.models import HealthResponse
from ride_service.responses import error, server_error
from ride_service.routers import auth, rides

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

SERVICE_NAME = "Ride Booking API"
started_at = time.time()


def check_jwt_secret(config: Settings) -> bool:
    """Warn when tokens would be signed with the built-in secret outside development"""
    if config.uses_default_jwt_secret and not config.is_development:
        logger.warning("JWT_SECRET is not set; tokens are signed with the default secret")
        return False
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for startup/shutdown"""
    # Startup
    logger.info(f"Starting {SERVICE_NAME} (fare per km: {settings.fare_per_km})...")
    check_jwt_secret(settings)
    await db_manager.connect()
    await db_manager.ensure_indexes()
    yield
    # Shutdown
    logger.info(f"Shutting down {SERVICE_NAME}...")
    await db_manager.disconnect()


app = FastAPI(
    title=SERVICE_NAME,
    version=__version__,
    description="Ride booking, fare estimation and ride lifecycle management",
    lifespan=lifespan
)

app.include_router(auth.router)
app.include_router(rides.router)


# ============================================
# ERROR HANDLERS
# ============================================

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error("Validation failed", status.HTTP_400_BAD_REQUEST, errors=jsonable_encoder(exc.errors()))


@app.exception_handler(ValidationFailure)
async def validation_failure_handler(request: Request, exc: ValidationFailure):
    return error(exc.message, status.HTTP_400_BAD_REQUEST)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    response = error(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RideNotFound)
async def ride_not_found_handler(request: Request, exc: RideNotFound):
    return error(exc.message, status.HTTP_404_NOT_FOUND)


@app.exception_handler(RideNotModifiable)
async def ride_not_modifiable_handler(request: Request, exc: RideNotModifiable):
    return error(exc.message, status.HTTP_404_NOT_FOUND)


@app.exception_handler(ActiveRideConflict)
async def active_ride_conflict_handler(request: Request, exc: ActiveRideConflict):
    return error(exc.message, status.HTTP_409_CONFLICT, data={"activeRideId": exc.active_ride_id})


@app.exception_handler(DuplicateUser)
async def duplicate_user_handler(request: Request, exc: DuplicateUser):
    return error(exc.message, status.HTTP_409_CONFLICT)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    return server_error("Something went wrong", exc)


# ============================================
# HEALTH CHECK ENDPOINTS
# ============================================

@app.get("/")
async def root():
    """Service information"""
    return {
        "service": SERVICE_NAME,
        "version": __version__,
        "endpoints": {
            "auth": "/auth",
            "rides": "/rides",
            "health": "/health"
        }
    }


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint"""
    try:
        health_info = await db_manager.health_check()

        return HealthResponse(
            status="healthy" if health_info["status"] == "connected" else "unhealthy",
            service=SERVICE_NAME,
            mongodb_status=health_info["status"],
            uptime_seconds=time.time() - started_at
        )

    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "service": SERVICE_NAME,
                "error": str(e)
            }
        )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3000)
