"""
Router for render endpoints.
Handles edit submission, status checks and the configuration health check.
"""

import asyncio
import logging
import re
import threading

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from config import RENDERING_HINT, VIDEO_ASPECT, VIDEO_PROVIDER, get_shotstack_config, mask_for_log
from dependencies import get_render_service
from errors import ConfigError, SubmissionError, UpstreamError, ValidationError
from models import RenderStatus, WorkflowState
from schemas import GenerateResponse, RenderRequest, SlideshowRequest, StatusResponse, VideoSpec
from services import RenderService
from timeline import build_slideshow, build_timeline

# Create the router
router = APIRouter(tags=["render"])

RENDER_ID_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")
DISCONNECT_CHECK_SECONDS = 0.5


def _check_render_id(render_id: str):
    if not RENDER_ID_PATTERN.match(render_id):
        raise ValidationError("Malformed render id", details={"id": render_id[:128]})


@router.post("/render")
def submit_render(edit: RenderRequest, service: RenderService = Depends(get_render_service)):
    """Forwards a complete edit (e.g. from the browser editor) to the rendering service."""
    try:
        render_id = service.submit(edit.model_dump())
    except SubmissionError:
        raise
    except UpstreamError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={"ok": False, "status": e.status_code, "errorFromProvider": e.body},
        )
    return {"ok": True, "jobId": render_id}


@router.post("/generate", response_model=GenerateResponse)
def generate_video(spec: VideoSpec, service: RenderService = Depends(get_render_service)):
    """Builds the promo timeline from a VideoSpec and queues the render."""
    edit = build_timeline(spec)
    render_id = service.submit(edit.to_payload())
    logging.info(f"✨ Promo video for '{spec.title}' queued as {render_id}")
    return GenerateResponse(render_id=render_id, message="Render queued successfully")


@router.post("/slideshow")
def generate_slideshow(request: SlideshowRequest, service: RenderService = Depends(get_render_service)):
    edit = build_slideshow(request.shots, request.aspect or VIDEO_ASPECT)
    render_id = service.submit(edit.to_payload())
    return {"success": True, "provider": VIDEO_PROVIDER, "renderId": render_id}


@router.get("/status/{render_id}", response_model=StatusResponse)
def get_render_status(render_id: str, service: RenderService = Depends(get_render_service)):
    """
    Single status read, normalized. Unknown ids answer 404 and provider
    failures 502 through the error handlers.
    """
    _check_render_id(render_id)
    job = service.fetch_status(render_id)
    return StatusResponse(
        status=job.status.value,
        url=job.url,
        error=job.error,
        hint=RENDERING_HINT if job.status == RenderStatus.RENDERING else None,
    )


@router.get("/status/{render_id}/wait", response_model=StatusResponse)
async def wait_for_render(render_id: str, request: Request, service: RenderService = Depends(get_render_service)):
    """
    Polls server-side until the render finishes. Safe to call again with the
    same id after a timeout. Polling stops if the client goes away.
    """
    _check_render_id(render_id)
    cancel = threading.Event()
    poll = asyncio.ensure_future(run_in_threadpool(service.poll, render_id, cancel=cancel))
    try:
        while True:
            done, _ = await asyncio.wait({poll}, timeout=DISCONNECT_CHECK_SECONDS)
            if done:
                break
            if await request.is_disconnected():
                logging.info(f"Client stopped waiting for {render_id}")
                cancel.set()
    finally:
        cancel.set()

    outcome = poll.result()
    if outcome.state == WorkflowState.DONE:
        return StatusResponse(status=RenderStatus.DONE.value, url=outcome.url)
    if outcome.state == WorkflowState.FAILED:
        return StatusResponse(status=RenderStatus.FAILED.value, error=outcome.error)
    if outcome.state == WorkflowState.CANCELLED:
        return StatusResponse(ok=False, status=outcome.state.value, hint=outcome.hint)
    outcome.raise_for_state()


@router.get("/health")
def health():
    """Reports the configured host and masked key, or 500 when misconfigured."""
    try:
        config = get_shotstack_config()
    except ConfigError as e:
        logging.error(f"❌ Shotstack config error: {e.message}")
        return JSONResponse(status_code=500, content={"ok": False, "error": e.message})
    return {"ok": True, "host": config.host, "keyMasked": mask_for_log(config.api_key)}
