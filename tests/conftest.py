"""Shared fixtures: controllable clock, seeded state, fake upstream responses."""
import random
from datetime import datetime, timedelta, timezone

import pytest
import requests

from bullion_desk.core.cache import MarketState
from bullion_desk.core.http_client import reset_api_health

T0 = datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: datetime = T0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class FakeResponse:
    def __init__(self, payload=None, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)


class FakeUpstream:
    """Stand-in for resilient_get: routes by URL substring, records calls."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def __call__(self, url, timeout=None, **kwargs):
        self.calls.append((url, kwargs))
        for fragment, result in self.routes.items():
            if fragment in url:
                if isinstance(result, Exception):
                    raise result
                return result
        raise requests.exceptions.ConnectionError(f"no route for {url}")

    def count(self, fragment: str) -> int:
        return sum(1 for url, _ in self.calls if fragment in url)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def state(clock):
    return MarketState(clock=clock, rng=random.Random(42))


@pytest.fixture(autouse=True)
def _clean_api_health():
    reset_api_health()
    yield
    reset_api_health()
