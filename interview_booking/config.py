"""
Configuration Management

Centralized configuration management using environment variables
with proper validation and type safety.
"""

import os
from functools import lru_cache
from typing import Optional
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from interview_booking.utils.time_rules import ADVANCE_NOTICE_MINUTES, MIN_SESSION_MINUTES


# Load environment variables from .env in the project root (resolve to absolute path)
_project_root = Path(__file__).resolve().parent.parent
_env_path = _project_root / ".env"
if _env_path.exists():
    load_dotenv(dotenv_path=str(_env_path))
else:
    # Also load from current working directory so "python backend_server.py" picks up .env
    load_dotenv()


STORE_BACKENDS = ("memory", "mongo")


@dataclass
class StoreConfig:
    """Which backing store holds slots and requests"""
    backend: str = "memory"


@dataclass
class MongoConfig:
    """MongoDB configuration"""
    uri: Optional[str] = None
    db_name: str = "interview_booking"
    server_selection_timeout_ms: int = 5000


@dataclass
class BookingRulesConfig:
    """Business-time rules applied to bookings and reschedules"""
    min_session_minutes: int = MIN_SESSION_MINUTES
    advance_notice_minutes: int = ADVANCE_NOTICE_MINUTES


@dataclass
class ApiKeyConfig:
    """Service credential for system-only endpoints (SHA-256 hash of the key)"""
    key_hash: Optional[str] = None


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 8000
    frontend_url: str = ""
    rate_limit_enabled: bool = True
    # slowapi limit string applied to the booking endpoint (per client IP)
    booking_rate_limit: str = "30/minute"


@dataclass
class Config:
    """Main application configuration"""

    store: StoreConfig = field(default_factory=StoreConfig)
    mongo: MongoConfig = field(default_factory=MongoConfig)
    rules: BookingRulesConfig = field(default_factory=BookingRulesConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    api_key: ApiKeyConfig = field(default_factory=ApiKeyConfig)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Configured Config instance

        Raises:
            ValueError: If required environment variables are missing or invalid
        """
        backend = os.getenv("STORE_BACKEND", "memory").strip().lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(
                f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)} (got '{backend}')"
            )

        # MongoDB is only required when it backs the store
        mongodb_uri = os.getenv("MONGODB_URI")
        if backend == "mongo" and not mongodb_uri:
            raise ValueError("MONGODB_URI environment variable is required when STORE_BACKEND=mongo")

        min_session = int(os.getenv("MIN_SESSION_MINUTES", str(MIN_SESSION_MINUTES)))
        advance_notice = int(os.getenv("ADVANCE_NOTICE_MINUTES", str(ADVANCE_NOTICE_MINUTES)))
        if min_session < 1:
            raise ValueError("MIN_SESSION_MINUTES must be at least 1")
        if advance_notice < 0:
            raise ValueError("ADVANCE_NOTICE_MINUTES cannot be negative")

        return cls(
            store=StoreConfig(backend=backend),
            mongo=MongoConfig(
                uri=mongodb_uri,
                db_name=os.getenv("MONGODB_DB_NAME") or "interview_booking",
                server_selection_timeout_ms=int(os.getenv("MONGODB_TIMEOUT_MS", "5000")),
            ),
            rules=BookingRulesConfig(
                min_session_minutes=min_session,
                advance_notice_minutes=advance_notice,
            ),
            server=ServerConfig(
                host=os.getenv("SERVER_HOST", "0.0.0.0"),
                port=int(os.getenv("SERVER_PORT", "8000")),
                frontend_url=os.getenv("FRONTEND_URL", ""),
                rate_limit_enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
                booking_rate_limit=os.getenv("BOOKING_RATE_LIMIT", "30/minute"),
            ),
            api_key=ApiKeyConfig(key_hash=os.getenv("SERVICE_API_KEY_HASH") or None),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            LOG_FORMAT=os.getenv(
                "LOG_FORMAT",
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            ),
        )


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get configuration from environment variables.

    Returns:
        Configuration instance
    """
    return Config.from_env()
