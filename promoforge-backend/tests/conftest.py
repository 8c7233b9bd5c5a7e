# promoforge-backend/tests/conftest.py

import json
import os
import sys

import pytest

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shotstack import RawResponse, parse_body  # noqa: E402

VALID_KEY = "abcd1234efgh5678ijkl"


class FakeShotstackClient:
    """Replays canned (status_code, body) pairs and records every call."""

    host = "https://api.shotstack.io/stage"

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def call(self, path, method="GET", json_body=None):
        self.calls.append((method, path, json_body))
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {path}")
        status_code, body = self.responses.pop(0)
        text = body if isinstance(body, str) else json.dumps(body)
        return RawResponse(status_code, parse_body(text))

    @property
    def gets(self):
        return [call for call in self.calls if call[0] == "GET"]


class FakeResponse:
    def __init__(self, status_code=200, text="", content=b"", json_data=None):
        self.status_code = status_code
        self.text = text if json_data is None else json.dumps(json_data)
        self.content = content
        self._json = json_data

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        return self._json if self._json is not None else json.loads(self.text)


class FakeSession:
    """Stands in for requests.Session; every verb answers with the next queued response."""

    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.calls = []

    def _next(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)

    def request(self, method, url, **kwargs):
        return self._next(method, url, **kwargs)

    def put(self, url, **kwargs):
        return self._next("PUT", url, **kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)


def status_body(status, url=None, error=None, render_id="render-1"):
    return {"success": True, "message": "OK", "response": {"id": render_id, "status": status, "url": url, "error": error}}


def submitted_body(render_id="render-1"):
    return {"success": True, "message": "Created", "response": {"id": render_id, "message": "Render Successfully Queued"}}


@pytest.fixture
def shotstack_env(monkeypatch):
    monkeypatch.setenv("SHOTSTACK_API_KEY", VALID_KEY)
    monkeypatch.delenv("SHOTSTACK_HOST", raising=False)
    monkeypatch.setenv("SHOTSTACK_API_ENV", "stage")
