"""
Service classes for the PromoForge backend.
Contains the RenderService: render submission and the status polling workflow.
"""

import logging
import threading
from typing import Callable, Optional

from config import POLL_INTERVAL_SECONDS, POLL_MAX_ATTEMPTS, RENDERING_HINT
from errors import (
    ConfigError,
    InconsistentUpstreamError,
    SubmissionError,
    UnknownRenderError,
    UpstreamError,
)
from models import RenderJob, RenderOutcome, RenderStatus, WorkflowState
from shotstack import ShotstackClient

ProgressCallback = Callable[[RenderJob, int, Optional[str]], None]


def _describe(body) -> str:
    return body.get("message", default=None) or body.raw or "no body"


class RenderService:
    """
    Submits edits to the rendering service and follows the job to a terminal state.

    Polling is read-only, so poll() can be started again with the same id at any
    time (after a timeout, a restart, or a dropped client).
    """

    def __init__(
        self,
        client: ShotstackClient,
        interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = POLL_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ConfigError(f"max_attempts must be at least 1, got {max_attempts}")
        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts

    def submit(self, edit: dict) -> str:
        """POSTs the edit and returns the job id assigned by the provider."""
        response = self.client.call("/render", method="POST", json_body=edit)
        if not response.ok:
            logging.error(f"❌ Render submission rejected ({response.status_code}): {response.body.raw}")
            raise UpstreamError(
                f"Shotstack {response.status_code}: {_describe(response.body)}",
                status_code=response.status_code,
                body=response.body.raw,
            )

        render_id = response.body.get("response", "id")
        if not render_id:
            logging.error(f"❌ No render id returned: {response.body.raw}")
            raise SubmissionError("no id returned", status_code=response.status_code, body=response.body.raw)

        logging.info(f"🎬 Render {render_id} submitted")
        return str(render_id)

    def fetch_status(self, render_id: str) -> RenderJob:
        """One status read. Every non-2xx answer is raised straight away."""
        response = self.client.call(f"/render/{render_id}")
        if response.status_code == 404:
            raise UnknownRenderError(f"Unknown render id: {render_id}", status_code=404, body=response.body.raw)
        if not response.ok:
            raise UpstreamError(
                f"Shotstack {response.status_code}: {_describe(response.body)}",
                status_code=response.status_code,
                body=response.body.raw,
            )
        if not response.body.is_json:
            raise InconsistentUpstreamError(
                "Rendering service returned a non-JSON status body",
                status_code=response.status_code,
                body=response.body.raw,
            )

        raw_status = response.body.get("response", "status")
        try:
            status = RenderStatus(raw_status)
        except ValueError:
            raise InconsistentUpstreamError(
                f"Unexpected render status {raw_status!r} for {render_id}",
                status_code=response.status_code,
                body=response.body.raw,
            )

        url = response.body.get("response", "url")
        if status == RenderStatus.DONE and not url:
            raise InconsistentUpstreamError(
                f"Render {render_id} reported done without a url",
                status_code=response.status_code,
                body=response.body.raw,
            )

        return RenderJob(id=render_id, status=status, url=url, error=response.body.get("response", "error"))

    def poll(
        self,
        render_id: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RenderOutcome:
        """
        Polls until the job is done or failed, up to max_attempts reads spaced
        interval seconds apart. Setting cancel stops the loop between reads.
        """
        cancel = cancel or threading.Event()
        state = WorkflowState.QUEUED
        hint = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                job = self.fetch_status(render_id)
            except UnknownRenderError as e:
                logging.warning(f"Render {render_id} is unknown to the provider")
                return RenderOutcome(state=WorkflowState.UNKNOWN_ID, render_id=render_id, error=e.message,
                                     status_code=404, attempts=attempt)
            except UpstreamError as e:
                logging.error(f"❌ Status check for {render_id} failed: {e.message}")
                return RenderOutcome(state=WorkflowState.UPSTREAM_ERROR, render_id=render_id, error=e.message,
                                     status_code=e.status_code, attempts=attempt)

            if job.status == RenderStatus.DONE:
                logging.info(f"✅ Render {render_id} done after {attempt} polls: {job.url}")
                return RenderOutcome(state=WorkflowState.DONE, render_id=render_id, url=job.url, attempts=attempt)
            if job.status == RenderStatus.FAILED:
                logging.error(f"❌ Render {render_id} failed: {job.error}")
                return RenderOutcome(state=WorkflowState.FAILED, render_id=render_id, error=job.error,
                                     attempts=attempt)

            if job.status == RenderStatus.RENDERING:
                state, hint = WorkflowState.RENDERING, RENDERING_HINT
            if on_progress is not None:
                on_progress(job, attempt, hint)

            if attempt == self.max_attempts:
                break
            if cancel.wait(self.interval):
                logging.info(f"Stopped polling {render_id}; the render continues on the provider side")
                return RenderOutcome(state=WorkflowState.CANCELLED, render_id=render_id, attempts=attempt, hint=hint)

        logging.warning(f"⏳ Render {render_id} still {state.value} after {self.max_attempts} polls")
        return RenderOutcome(
            state=WorkflowState.TIMED_OUT,
            render_id=render_id,
            error="Video generation is taking longer than expected. Please check back later.",
            attempts=self.max_attempts,
            hint=hint,
        )

    def run(
        self,
        edit: dict,
        on_progress: Optional[ProgressCallback] = None,
        cancel: Optional[threading.Event] = None,
    ) -> RenderOutcome:
        """Submits the edit and polls it to completion."""
        try:
            render_id = self.submit(edit)
        except SubmissionError as e:
            return RenderOutcome(state=WorkflowState.SUBMISSION_FAILED, error=e.message)
        except UpstreamError as e:
            # Provider validation errors are passed on verbatim.
            return RenderOutcome(state=WorkflowState.SUBMISSION_FAILED, error=e.body or e.message,
                                 status_code=e.status_code)
        return self.poll(render_id, on_progress=on_progress, cancel=cancel)
