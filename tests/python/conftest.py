"""pytest configuration for PredictionIO SDK tests."""

import io
import json
import urllib.error
from datetime import datetime, timezone

import pytest

from predictionio import Connection, EventClient

FIXED_TIME = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class FakeHTTPResponse:
    """Stands in for the object returned by urllib.request.urlopen."""

    def __init__(self, status=200, body=b"", headers=None):
        self.status = status
        self._body = body
        self.headers = headers or {"Content-Type": "application/json"}

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False


class FakeOpener:
    """
    Replaces urllib.request.urlopen.

    Outcomes queued with ``queue`` are consumed in order: responses are
    returned, exceptions are raised. Once the queue is empty every call
    gets ``default``.
    """

    def __init__(self):
        self.requests = []
        self.outcomes = []
        self.default = FakeHTTPResponse(201, b'{"eventId": "e1"}')

    def queue(self, *outcomes):
        self.outcomes.extend(outcomes)

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def last(self):
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.data.decode("utf-8"))


def http_error(status, body=b""):
    """An HTTPError as raised by urlopen for an error status."""
    return urllib.error.HTTPError(
        "http://localhost", status, "error", {}, io.BytesIO(body)
    )


def connection_error(reason="connection refused"):
    return urllib.error.URLError(reason)


@pytest.fixture
def opener():
    """Fake transport recording every request."""
    return FakeOpener()


@pytest.fixture
def clock():
    """Clock frozen at FIXED_TIME."""
    return lambda: FIXED_TIME


@pytest.fixture
def connection(opener):
    """Connection to a fake server without retry delays."""
    conn = Connection("http://localhost:7070", retry_delay=0, opener=opener)
    yield conn
    conn.close()


@pytest.fixture
def event_client(connection, clock):
    """EventClient with a fixed clock over the fake connection."""
    return EventClient("test-key", connection=connection, clock=clock)
