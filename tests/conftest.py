"""Pytest configuration and fixtures."""

import pytest
from cookiekeep.models import Cookie
from cookiekeep.persistence import MemoryPersistence
from cookiekeep.store import PersistentCookieStore

NOW = 1_700_000_000_000
HOUR = 3_600_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, now: int = NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def persistence():
    return MemoryPersistence()


@pytest.fixture
def store(persistence, clock):
    s = PersistentCookieStore(persistence, clock=clock)
    yield s
    s.close()


@pytest.fixture
def sid_cookie():
    """The session id cookie used across scenarios."""
    return Cookie(
        name="sid",
        value="abc",
        domain="example.com",
        path="/",
        expires_at=NOW + HOUR,
        secure=True,
        http_only=True,
    )
