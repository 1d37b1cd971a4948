from functools import lru_cache

from interview_booking.config import Config, get_config
from interview_booking.db.store import (
    InMemoryRequestStore,
    InMemorySlotStore,
    MongoRequestStore,
    MongoSlotStore,
)
from interview_booking.services.events import EventDispatcher
from interview_booking.services.scheduling_service import SchedulingService
from interview_booking.utils.logger import get_logger

logger = get_logger(__name__)


def build_scheduling_service(config: Config) -> SchedulingService:
    """Wire the engine over the configured store backend."""
    events = EventDispatcher()
    if config.store.backend == "mongo":
        from interview_booking.db.mongo import get_database

        db = get_database(config)
        logger.info(f"[Container] Using MongoDB store: {db.name}")
        return SchedulingService(
            config,
            MongoSlotStore(db["slots"], db["slot_calendars"]),
            MongoRequestStore(db["interview_requests"]),
            events,
        )

    logger.info("[Container] Using in-memory store")
    return SchedulingService(config, InMemorySlotStore(), InMemoryRequestStore(), events)


@lru_cache(maxsize=1)
def get_scheduling_service() -> SchedulingService:
    """Process-wide service instance; FastAPI routes depend on this."""
    return build_scheduling_service(get_config())
