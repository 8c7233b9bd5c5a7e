# promoforge-backend/tests/test_services.py

import threading

import pytest

from errors import (
    ConfigError,
    InconsistentUpstreamError,
    RenderTimeoutError,
    SubmissionError,
    UnknownRenderError,
    UpstreamError,
)
from models import RenderStatus, WorkflowState
from services import RenderService
from conftest import FakeShotstackClient, status_body, submitted_body

EDIT = {"timeline": {"tracks": []}, "output": {"format": "mp4", "resolution": "hd"}}
VIDEO_URL = "https://cdn.shotstack.io/render-1.mp4"


def make_service(responses, max_attempts=30):
    client = FakeShotstackClient(responses)
    return RenderService(client, interval=0, max_attempts=max_attempts), client


def test_run_reaches_done_after_exactly_four_polls():
    """
    queued -> rendering -> rendering -> done: four status reads, then nothing more.
    """
    service, client = make_service([
        (201, submitted_body()),
        (200, status_body("queued")),
        (200, status_body("rendering")),
        (200, status_body("rendering")),
        (200, status_body("done", url=VIDEO_URL)),
    ])

    outcome = service.run(EDIT)

    assert outcome.state == WorkflowState.DONE
    assert outcome.url == VIDEO_URL
    assert outcome.render_id == "render-1"
    assert outcome.attempts == 4
    assert len(client.gets) == 4
    assert client.calls[0] == ("POST", "/render", EDIT)
    assert all(path == "/render/render-1" for _, path, _ in client.gets)


def test_never_terminal_times_out_instead_of_failing():
    service, client = make_service([(200, status_body("queued"))] * 5, max_attempts=5)

    outcome = service.poll("render-1")

    assert outcome.state == WorkflowState.TIMED_OUT
    assert outcome.state != WorkflowState.FAILED
    assert outcome.attempts == 5
    assert len(client.gets) == 5
    with pytest.raises(RenderTimeoutError):
        outcome.raise_for_state()


def test_failed_render_carries_upstream_error():
    service, _ = make_service([
        (200, status_body("fetching")),
        (200, status_body("failed", error="Asset could not be fetched")),
    ])
    outcome = service.poll("render-1")
    assert outcome.state == WorkflowState.FAILED
    assert outcome.error == "Asset could not be fetched"


def test_submission_without_id_never_polls():
    service, client = make_service([(201, {"success": True, "response": {}})])

    outcome = service.run(EDIT)

    assert outcome.state == WorkflowState.SUBMISSION_FAILED
    assert outcome.error == "no id returned"
    assert client.gets == []


def test_submission_rejected_reports_status_and_body_verbatim():
    body = '{"success":false,"message":"Bad Request","response":{"error":"tracks.0.clips must be an array"}}'
    service, client = make_service([(400, body)])

    outcome = service.run(EDIT)

    assert outcome.state == WorkflowState.SUBMISSION_FAILED
    assert outcome.status_code == 400
    assert outcome.error == body
    assert client.gets == []


def test_submit_raises_for_callers_that_want_exceptions():
    service, _ = make_service([(401, {"message": "Forbidden"})])
    with pytest.raises(UpstreamError) as info:
        service.submit(EDIT)
    assert info.value.status_code == 401
    assert "Forbidden" in info.value.message

    service, _ = make_service([(201, "not json")])
    with pytest.raises(SubmissionError):
        service.submit(EDIT)


def test_unknown_id_stops_polling_immediately():
    service, client = make_service([(404, {"message": "Not Found"}), (200, status_body("done", url=VIDEO_URL))])

    outcome = service.poll("render-404")

    assert outcome.state == WorkflowState.UNKNOWN_ID
    assert outcome.status_code == 404
    assert len(client.gets) == 1


def test_upstream_error_during_poll_is_not_retried():
    service, client = make_service([
        (200, status_body("queued")),
        (503, "Service Unavailable"),
        (200, status_body("done", url=VIDEO_URL)),
    ])

    outcome = service.poll("render-1")

    assert outcome.state == WorkflowState.UPSTREAM_ERROR
    assert outcome.status_code == 503
    assert len(client.gets) == 2


def test_done_without_url_fails_loudly():
    service, _ = make_service([(200, status_body("done"))])
    with pytest.raises(InconsistentUpstreamError):
        service.fetch_status("render-1")

    service, _ = make_service([(200, status_body("done"))])
    outcome = service.poll("render-1")
    assert outcome.state == WorkflowState.UPSTREAM_ERROR
    assert outcome.url is None


def test_fetch_status_maps_payload():
    service, _ = make_service([(200, status_body("saving"))])
    job = service.fetch_status("render-1")
    assert job.status == RenderStatus.SAVING
    assert not job.status.is_terminal

    service, _ = make_service([(200, status_body("exploded"))])
    with pytest.raises(InconsistentUpstreamError):
        service.fetch_status("render-1")

    service, _ = make_service([(404, "")])
    with pytest.raises(UnknownRenderError):
        service.fetch_status("render-1")


def test_rendering_surfaces_hint_to_progress_callback():
    seen = []
    service, _ = make_service([
        (200, status_body("queued")),
        (200, status_body("rendering")),
        (200, status_body("done", url=VIDEO_URL)),
    ])

    service.poll("render-1", on_progress=lambda job, attempt, hint: seen.append((job.status, attempt, hint)))

    assert seen[0] == (RenderStatus.QUEUED, 1, None)
    assert seen[1][0] == RenderStatus.RENDERING
    assert "10-30s" in seen[1][2]


def test_cancel_token_stops_between_polls():
    cancel = threading.Event()
    service, client = make_service([(200, status_body("rendering"))] * 3)

    outcome = service.poll("render-1", on_progress=lambda *args: cancel.set(), cancel=cancel)

    assert outcome.state == WorkflowState.CANCELLED
    assert len(client.gets) == 1
    # Not an error: the render keeps going upstream.
    assert outcome.raise_for_state() is outcome


def test_polling_resumes_with_same_id():
    service, _ = make_service([(200, status_body("rendering"))] * 2, max_attempts=2)
    assert service.poll("render-1").state == WorkflowState.TIMED_OUT

    service.client.responses = [(200, status_body("done", url=VIDEO_URL))]
    outcome = service.poll("render-1")
    assert outcome.state == WorkflowState.DONE
    assert outcome.url == VIDEO_URL


def test_zero_attempts_is_rejected_before_any_request():
    client = FakeShotstackClient([])
    with pytest.raises(ConfigError):
        RenderService(client, interval=0, max_attempts=0)
    assert client.calls == []
