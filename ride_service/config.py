"""
Service Configuration
=====================

Settings are read from the environment once at startup and passed to the
components that need them.
"""

import os
from typing import Optional


DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_FARE_PER_KM = 15.0
DEFAULT_JWT_SECRET = "change-me"


class Settings:
    """Runtime settings for the ride booking service"""

    def __init__(
        self,
        mongo_uri: str = DEFAULT_MONGO_URI,
        db_name: str = "ride_booking",
        fare_per_km: float = DEFAULT_FARE_PER_KM,
        jwt_secret: str = DEFAULT_JWT_SECRET,
        jwt_expire_minutes: int = 60 * 24 * 7,
        app_env: str = "production",
        log_level: str = "INFO",
    ):
        self.mongo_uri = mongo_uri
        self.db_name = db_name
        self.fare_per_km = fare_per_km
        self.jwt_secret = jwt_secret
        self.jwt_expire_minutes = jwt_expire_minutes
        self.app_env = app_env
        self.log_level = log_level

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def uses_default_jwt_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables"""
        return cls(
            mongo_uri=os.getenv("MONGO_URI", DEFAULT_MONGO_URI),
            db_name=os.getenv("MONGO_DB_NAME", "ride_booking"),
            fare_per_km=_float_env("FARE_PER_KM", DEFAULT_FARE_PER_KM),
            jwt_secret=os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET),
            jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24 * 7))),
            app_env=os.getenv("APP_ENV", "production"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def _float_env(name: str, default: float) -> float:
    """Parse a float variable, falling back to the default when unset or invalid"""
    raw: Optional[str] = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


settings = Settings.from_env()
