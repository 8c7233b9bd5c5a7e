# promoforge-backend/tests/test_routes.py

import pytest
from fastapi.testclient import TestClient

import config
from dependencies import get_render_service
from main import app
from services import RenderService
from conftest import FakeShotstackClient, VALID_KEY, status_body, submitted_body

VIDEO_URL = "https://cdn.shotstack.io/render-1.mp4"
SPEC = {
    "title": "Acme Notes",
    "description": "Notes that write themselves.",
    "duration": 12,
    "images": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"],
    "themeColor": "#112233",
}


@pytest.fixture
def fake_shotstack():
    """Installs a fake-backed RenderService; tests queue responses on it."""
    fake = FakeShotstackClient([])
    app.dependency_overrides[get_render_service] = lambda: RenderService(fake, interval=0, max_attempts=3)
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def test_render_forwards_edit_and_returns_job_id(client, fake_shotstack):
    fake_shotstack.responses = [(201, submitted_body("job-42"))]
    edit = {"timeline": {"tracks": [{"clips": []}]}, "output": {"format": "mp4", "resolution": "sd"}}

    resp = client.post("/render", json=edit)

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "jobId": "job-42"}
    assert fake_shotstack.calls == [("POST", "/render", edit)]


def test_render_passes_provider_rejection_through(client, fake_shotstack):
    fake_shotstack.responses = [(400, "Bad Request: output.resolution is invalid")]

    resp = client.post("/render", json={"timeline": {}, "output": {"resolution": "8k"}})

    assert resp.status_code == 400
    assert resp.json() == {"ok": False, "status": 400, "errorFromProvider": "Bad Request: output.resolution is invalid"}


def test_render_requires_timeline_and_output(client, fake_shotstack):
    resp = client.post("/render", json={"timeline": {}})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Validation failed"
    assert fake_shotstack.calls == []


def test_render_without_job_id_is_bad_gateway(client, fake_shotstack):
    fake_shotstack.responses = [(200, {"success": True})]
    resp = client.post("/render", json={"timeline": {}, "output": {}})
    assert resp.status_code == 502
    assert resp.json()["error"] == "no id returned"
    assert "status" not in resp.json()


def test_generate_builds_timeline_and_queues(client, fake_shotstack):
    fake_shotstack.responses = [(201, submitted_body("job-7"))]

    resp = client.post("/generate", json=SPEC)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "renderId": "job-7", "message": "Render queued successfully"}
    _, _, payload = fake_shotstack.calls[0]
    image_track = payload["timeline"]["tracks"][-1]
    assert [clip["asset"]["src"] for clip in image_track["clips"]] == SPEC["images"]


@pytest.mark.parametrize("change", [
    {"images": []},
    {"images": ["not-a-url"]},
    {"themeColor": "blue"},
    {"duration": 2},
    {"musicVolume": 1.5},
    {"title": ""},
])
def test_generate_rejects_invalid_spec(client, fake_shotstack, change):
    resp = client.post("/generate", json={**SPEC, **change})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["details"]
    assert fake_shotstack.calls == []


def test_slideshow_submits(client, fake_shotstack):
    fake_shotstack.responses = [(201, submitted_body("job-9"))]
    resp = client.post("/slideshow", json={"shots": [{"imageUrl": "https://cdn.example.com/a.png", "caption": "Hi"}]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "provider": "shotstack", "renderId": "job-9"}


def test_status_normalizes_payload(client, fake_shotstack):
    fake_shotstack.responses = [(200, status_body("rendering"))]
    resp = client.get("/status/render-1")
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["status"] == "rendering"
    assert "10-30s" in body["hint"]

    fake_shotstack.responses = [(200, status_body("done", url=VIDEO_URL))]
    body = client.get("/status/render-1").json()
    assert body["status"] == "done"
    assert body["url"] == VIDEO_URL


def test_status_error_mapping(client, fake_shotstack):
    assert client.get("/status/bad.id").status_code == 400
    assert fake_shotstack.calls == []

    fake_shotstack.responses = [(404, {"message": "Not Found"})]
    assert client.get("/status/missing-id").status_code == 404

    fake_shotstack.responses = [(500, "Internal Server Error")]
    resp = client.get("/status/render-1")
    assert resp.status_code == 502
    assert resp.json()["status"] == 500

    fake_shotstack.responses = [(200, status_body("done"))]
    assert client.get("/status/render-1").status_code == 502


def test_wait_polls_until_done(client, fake_shotstack):
    fake_shotstack.responses = [(200, status_body("queued")), (200, status_body("done", url=VIDEO_URL))]
    resp = client.get("/status/render-1/wait")
    assert resp.status_code == 200
    assert resp.json()["url"] == VIDEO_URL


def test_wait_timeout_is_distinct_from_failure(client, fake_shotstack):
    fake_shotstack.responses = [(200, status_body("rendering"))] * 3
    resp = client.get("/status/render-1/wait")
    assert resp.status_code == 504
    assert resp.json()["renderId"] == "render-1"
    assert "may still complete" in resp.json()["error"]

    fake_shotstack.responses = [(200, status_body("failed", error="bad asset"))]
    resp = client.get("/status/render-1/wait")
    assert resp.status_code == 200
    assert resp.json()["status"] == "failed"
    assert resp.json()["error"] == "bad asset"


def test_health_reports_masked_key(client, shotstack_env):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "host": "https://api.shotstack.io/stage", "keyMasked": "abcd...ijkl"}
    assert VALID_KEY not in resp.text


def test_health_fails_when_misconfigured(client, monkeypatch):
    monkeypatch.setenv("SHOTSTACK_API_KEY", "tiny")
    resp = client.get("/health")
    assert resp.status_code == 500
    assert resp.json()["ok"] is False


def test_render_routes_report_missing_config(monkeypatch):
    monkeypatch.delenv("SHOTSTACK_API_KEY", raising=False)
    with TestClient(app) as client:
        resp = client.get("/status/render-1")
    assert resp.status_code == 500
    assert resp.json()["error"] == "SHOTSTACK_API_KEY is not set"


def test_transport_details_hidden_unless_verbose(client, fake_shotstack, monkeypatch):
    from errors import TransportError

    def broken(*args, **kwargs):
        raise TransportError("Could not reach the rendering service", details="getaddrinfo failed")

    fake_shotstack.call = broken
    resp = client.get("/status/render-1")
    assert resp.status_code == 502
    assert "details" not in resp.json()

    monkeypatch.setattr(config, "VERBOSE_ERRORS", True)
    resp = client.get("/status/render-1")
    assert resp.json()["details"] == "getaddrinfo failed"


def test_unexpected_errors_are_sanitized_unless_verbose(monkeypatch):
    def broken_service():
        raise RuntimeError("secret internals at /srv/promoforge")

    app.dependency_overrides[get_render_service] = broken_service
    try:
        client = TestClient(app, raise_server_exceptions=False)
        resp = client.get("/status/render-1")
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Internal server error"}
        assert "secret internals" not in resp.text

        monkeypatch.setattr(config, "VERBOSE_ERRORS", True)
        resp = client.get("/status/render-1")
        assert resp.status_code == 500
        assert "Traceback" in resp.json()["details"]
        assert "secret internals" in resp.json()["details"]
    finally:
        app.dependency_overrides.clear()
