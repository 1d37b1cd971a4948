import hashlib
import os

SERVICE_KEY = "test-service-key"

# Must be set before the package reads its configuration
os.environ["STORE_BACKEND"] = "memory"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SERVICE_API_KEY_HASH"] = hashlib.sha256(SERVICE_KEY.encode()).hexdigest()

from datetime import date, datetime, time

import pytest

from interview_booking.config import Config
from interview_booking.db.store import InMemoryRequestStore, InMemorySlotStore
from interview_booking.services.events import EventDispatcher, RecordingHandler
from interview_booking.services.scheduling_service import SchedulingService

NOW = datetime(2024, 6, 9, 10, 0)
INTERVIEWER = "int-1"
CANDIDATE_A = "cand-a"
CANDIDATE_B = "cand-b"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def service(config, recorder):
    events = EventDispatcher()
    events.subscribe(recorder)
    return SchedulingService(config, InMemorySlotStore(), InMemoryRequestStore(), events)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def slot(service, now):
    return service.publish_slot(INTERVIEWER, date(2024, 6, 10), time(9, 0), time(9, 45), now)


@pytest.fixture
def booked_request(service, slot, now):
    return service.book_slot(CANDIDATE_A, slot.id, "50.00", now)


@pytest.fixture
def approved_request(service, booked_request, now):
    return service.approve_request(booked_request.id, INTERVIEWER, now)


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def client(service, clock):
    from fastapi.testclient import TestClient

    from interview_booking.api.main import app
    from interview_booking.services.container import get_scheduling_service
    from interview_booking.utils.auth_dependencies import get_now

    app.dependency_overrides[get_scheduling_service] = lambda: service
    app.dependency_overrides[get_now] = clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
