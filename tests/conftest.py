# tests/conftest.py

import threading
import time

import pytest

from terrascan.errors import ElevationFetchError


class FakeElevationClient:
    """Stands in for the HTTP lookup. Records every request it receives."""

    def __init__(self, elevation=None, fail=None, delay=0.0):
        self.elevation = elevation or (lambda lat, lng: 0.0)
        self.fail = fail
        self.delay = delay
        self.calls = []
        self.inflight = 0
        self.max_inflight = 0
        self._lock = threading.Lock()

    def lookup(self, locations):
        with self._lock:
            self.calls.append(list(locations))
            self.inflight += 1
            self.max_inflight = max(self.max_inflight, self.inflight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail is not None and self.fail(locations):
                raise ElevationFetchError("Elevation API status 503")
            out = []
            for loc in locations:
                elev = self.elevation(loc["latitude"], loc["longitude"])
                if elev is not None:
                    out.append({"latitude": loc["latitude"], "longitude": loc["longitude"], "elevation": elev})
            return out
        finally:
            with self._lock:
                self.inflight -= 1

    @property
    def requested(self):
        return sum(len(c) for c in self.calls)


@pytest.fixture
def make_client():
    return FakeElevationClient


@pytest.fixture
def flat_client():
    return FakeElevationClient()
