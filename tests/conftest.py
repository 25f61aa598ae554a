"""Pytest fixtures: fakeredis stands in for the shared store, timers are driven by hand."""
from datetime import datetime, timedelta, timezone

import fakeredis
import pytest

from revealday import create_app
from revealday.client.timers import IntervalTimer
from revealday.config import Config
from revealday.services.rate_limiter import RateLimiter
from revealday.services.token_codec import TokenCodec
from revealday.services.vote_ledger import VoteLedger
from revealday.services.vote_service import VoteService

SECRET = "test-signing-secret-with-enough-length-0123456789"


class FakeStoreConfig(Config):
    APP_ENV = "testing"
    TESTING = True
    LOG_LEVEL = "DEBUG"
    JWT_SECRET_KEY = SECRET
    REDIS_URL = "redis://fake-store:6379/0"
    MAIL_SUPPRESS_SEND = True
    MAIL_DEFAULT_SENDER = "noreply@example.com"
    FEEDBACK_RECIPIENT = "team@example.com"


@pytest.fixture
def redis_client():
    """A fresh in-memory store per test."""
    client = fakeredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def app(redis_client):
    return create_app(FakeStoreConfig, redis_client=redis_client)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions["reveal_services"]


@pytest.fixture
def codec():
    return TokenCodec(SECRET)


@pytest.fixture
def ledger(redis_client):
    return VoteLedger(redis_client)


@pytest.fixture
def vote_service(redis_client, ledger):
    limiter = RateLimiter(redis_client, {"vote": (10_000, 60)})
    return VoteService(ledger, limiter)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def future_iso(hours: float = 2, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now + timedelta(hours=hours)).isoformat()


def owner_payload(**overrides) -> dict:
    data = {
        "motherName": "Mina",
        "fatherName": "Joon",
        "babyName": "Sky",
        "gender": "girl",
        "animationType": "confetti",
        "countdownTime": 5,
        "scheduledAt": future_iso(2),
    }
    data.update(overrides)
    return data


def create_reservation(client, ip: str = "10.0.0.1", **overrides) -> dict:
    """Helper: POST /reservations and return the response JSON."""
    resp = client.post(
        "/reservations",
        json=owner_payload(**overrides),
        headers={"X-Forwarded-For": ip},
    )
    assert resp.status_code == 201, resp.get_data(as_text=True)
    return resp.get_json()


class ManualTimer(IntervalTimer):
    """Interval timer that only ticks when the test says so."""

    def __init__(self, interval, on_tick):
        super().__init__(interval, on_tick)
        self._running = False
        self.starts = 0

    @property
    def running(self):
        return self._running

    def start(self):
        if not self._running:
            self.starts += 1
        self._running = True

    def stop(self):
        self._running = False

    def tick(self):
        if self._running:
            self.on_tick()


class TimerRegistry:
    def __init__(self):
        self.timers = []

    def __call__(self, interval, on_tick):
        timer = ManualTimer(interval, on_tick)
        self.timers.append(timer)
        return timer

    def by_interval(self, interval):
        return next(t for t in self.timers if t.interval == interval)


class FakeClock:
    def __init__(self, start: datetime):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


@pytest.fixture
def timers():
    return TimerRegistry()


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 20, 1, 0, tzinfo=timezone.utc))
