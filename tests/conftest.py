"""
Root conftest.py: sys.path and shared fixtures.

The relay is never contacted: RelayApiClient gets a FakeSession that answers
from a per-route queue of canned requests.Response objects.
"""

import json
import os
import sys
from urllib.parse import urlsplit

import pytest
import requests

# Add project root to sys.path so 'relay_dashboard' and 'shared' are importable
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from relay_dashboard.api_client import RelayApiClient  # noqa: E402
from relay_dashboard.controller import DashboardController  # noqa: E402

RELAY_URL = "http://relay.test"

_NO_BODY = object()

SAMPLE_STATS = {"total": 10, "successful": 7, "failed": 2, "pending": 1}

SAMPLE_MESSAGES = [
    {
        "id": 1,
        "direction": "order",
        "status": "failed",
        "patient_id": "P100",
        "message_type": "ORM^O01",
        "timestamp": "2024-03-05T14:30:00Z",
    },
    {
        "id": 2,
        "direction": "report",
        "status": "failed",
        "patient_id": "P200",
        "message_type": "ORU^R01",
        "timestamp": "2024-03-05T15:00:00Z",
    },
    {
        "id": 3,
        "direction": "order",
        "status": "pending",
        "message_type": "ORM^O01",
    },
]


def make_response(status: int = 200, json_body=_NO_BODY, text: str = "") -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.encoding = "utf-8"
    if json_body is not _NO_BODY:
        resp._content = json.dumps(json_body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = text.encode("utf-8")
    return resp


class FakeSession:
    """
    Stand-in for requests.Session.

    Each (method, path) holds a queue of responses or exceptions; the last
    entry keeps answering once the queue is down to one.
    """

    def __init__(self):
        self.routes = {}
        self.calls = []
        self.closed = False

    def add(self, method: str, path: str, *answers):
        self.routes.setdefault((method.upper(), path), []).extend(answers)
        return self

    def set(self, method: str, path: str, *answers):
        self.routes[(method.upper(), path)] = list(answers)
        return self

    def request(self, method, url, **kwargs):
        path = urlsplit(url).path
        self.calls.append({"method": method.upper(), "path": path, **kwargs})
        queue = self.routes.get((method.upper(), path))
        if not queue:
            raise requests.ConnectionError(f"connection refused: {method} {path}")
        answer = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

    def count(self, method: str, path: str) -> int:
        return sum(1 for call in self.calls if call["method"] == method.upper() and call["path"] == path)

    def paths(self):
        return [call["path"] for call in self.calls]

    def close(self):
        self.closed = True


def serve_relay(session: FakeSession, stats=None, messages=None, health=None) -> FakeSession:
    """Register a healthy relay answering all three read endpoints."""
    session.set("GET", "/api/stats", make_response(200, SAMPLE_STATS if stats is None else stats))
    session.set("GET", "/api/messages", make_response(200, SAMPLE_MESSAGES if messages is None else messages))
    session.set("GET", "/api/health", make_response(200, {"status": "healthy"} if health is None else health))
    return session


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return RelayApiClient(RELAY_URL, session=session)


@pytest.fixture
def controller(client):
    ctrl = DashboardController(client, refresh_interval=60)
    yield ctrl
    ctrl.stop()


@pytest.fixture
def sample_messages():
    from relay_dashboard.models import Message

    return [Message.model_validate(item) for item in SAMPLE_MESSAGES]
