import json

import numpy as np
import pytest
from requests.exceptions import ConnectionError

from salo.api.gateway import Gateway
from salo.config import reset_settings
from salo.notify import RecordingNotifier
from salo.session import SessionStore


class FakeResponse:
    def __init__(self, status_code=200, body=None, content=None, headers=None):
        self.status_code = status_code
        self._body = body
        if content is not None:
            self.content = content
        elif body is not None:
            self.content = json.dumps(body).encode()
        else:
            self.content = b""
        self.headers = headers or {"Content-Type": "application/json"}

    def json(self):
        if self._body is None:
            return json.loads(self.content.decode() or "x")
        return self._body


class FakeHttp:
    """Stands in for requests.Session: records calls, answers by route."""

    def __init__(self):
        self.calls = []
        self.routes = {}

    def add(self, method, path, *responses):
        self.routes.setdefault((method, path), []).extend(responses)

    def request(self, method, url, headers=None, json=None, params=None, timeout=None):
        path = url.split("/api", 1)[1]
        self.calls.append({
            "method": method, "path": path, "headers": headers,
            "json": json, "params": params, "timeout": timeout,
        })
        queue = self.routes.get((method, path))
        if not queue:
            raise AssertionError(f"unexpected request {method} {path}")
        resp = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(resp, Exception):
            raise resp
        return resp

    def count(self, method, path=None):
        return sum(
            1 for c in self.calls
            if c["method"] == method and (path is None or c["path"] == path)
        )


def ok(data, message=None):
    return FakeResponse(200, {"success": True, "data": data, "message": message})


def fail(status, message):
    return FakeResponse(status, {"success": False, "message": message})


def offline():
    return ConnectionError("connection refused")


@pytest.fixture(autouse=True)
def settings_env(monkeypatch, tmp_path):
    monkeypatch.setenv("API_BASE_URL", "http://test.local/api")
    monkeypatch.setenv("SESSION_FILE", str(tmp_path / "session.json"))
    monkeypatch.setenv("REPORT_DIR", str(tmp_path / "reports"))
    monkeypatch.delenv("HTTP_RETRY_ATTEMPTS", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def store(tmp_path):
    s = SessionStore(tmp_path / "session.json")
    s.set_token("tok-1", {"email": "admin@salo.gg", "role": "owner"})
    return s


@pytest.fixture
def http():
    return FakeHttp()


@pytest.fixture
def redirects():
    return []


@pytest.fixture
def gateway(http, store, redirects):
    return Gateway(
        base_url="http://test.local/api",
        session_store=store,
        http=http,
        on_unauthorized=lambda: redirects.append("login"),
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def solo_event():
    return {
        "_id": "ev-solo",
        "eventName": "FIFA Night",
        "category": "single-battle",
        "startDateTime": "2026-10-10T18:00:00Z",
        "endDateTime": "2026-10-10T22:00:00Z",
        "status": "not_started",
        "totalSpots": 16,
        "registeredEmails": [
            {"email": "a@x.com", "verified": True},
            {"email": "b@x.com", "verified": False},
        ],
    }


@pytest.fixture
def team_event():
    return {
        "_id": "ev-team",
        "eventName": "Valorant Cup",
        "category": "team-battle",
        "startDateTime": "2026-10-12T18:00:00Z",
        "endDateTime": "2026-10-12T23:00:00Z",
        "status": "in_progress",
        "referee": "ref@salo.gg",
        "numberOfTeams": 4,
        "participationPerTeam": 5,
    }


@pytest.fixture
def teams_payload():
    return [
        {
            "_id": "tm-1",
            "teamName": "Night Owls",
            "teamLeaderEmail": "lead@x.com",
            "memberEmails": [
                {"email": "m1@x.com", "verified": True},
                {"email": "m2@x.com", "verified": False},
            ],
            "eventRegistrations": [{"eventId": "ev-team"}],
        },
        {
            "_id": "tm-2",
            "teamName": "Benchwarmers",
            "teamLeaderEmail": "solo-lead@x.com",
            "memberEmails": [{"email": "m3@x.com", "verified": True}],
            "eventRegistrations": [],
        },
    ]
