# models.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from errors import (
    RenderFailedError,
    RenderTimeoutError,
    SubmissionError,
    UnknownRenderError,
    UpstreamError,
)


class RenderStatus(str, Enum):
    """Job statuses reported by the rendering service."""

    QUEUED = "queued"
    FETCHING = "fetching"
    RENDERING = "rendering"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RenderStatus.DONE, RenderStatus.FAILED)


class RenderJob(BaseModel):
    """Snapshot of a render job, built from one status read."""

    id: str
    status: RenderStatus
    url: Optional[str] = None
    error: Optional[str] = None


class WorkflowState(str, Enum):
    SUBMITTING = "submitting"
    QUEUED = "queued"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    SUBMISSION_FAILED = "submission_failed"
    UNKNOWN_ID = "unknown_id"
    UPSTREAM_ERROR = "upstream_error"
    CANCELLED = "cancelled"


class RenderOutcome(BaseModel):
    """Where the submit/poll workflow stopped, and why."""

    state: WorkflowState
    render_id: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None  # upstream HTTP status for submission/poll errors
    attempts: int = 0
    hint: Optional[str] = None

    def raise_for_state(self) -> "RenderOutcome":
        # A torn-down caller is not an error; the render carries on upstream.
        if self.state in (WorkflowState.DONE, WorkflowState.CANCELLED):
            return self
        if self.state == WorkflowState.TIMED_OUT:
            raise RenderTimeoutError(
                f"Render {self.render_id} is taking longer than expected and may still complete. Check back later.",
                render_id=self.render_id,
                attempts=self.attempts,
            )
        if self.state == WorkflowState.FAILED:
            raise RenderFailedError(self.error or "Render failed", body=self.error)
        if self.state == WorkflowState.UNKNOWN_ID:
            raise UnknownRenderError(self.error or "Unknown render id", status_code=self.status_code)
        if self.state == WorkflowState.SUBMISSION_FAILED and self.status_code is None:
            raise SubmissionError(self.error or "Render submission failed")
        raise UpstreamError(self.error or f"Render stopped in state {self.state.value}", status_code=self.status_code, body=self.error)
