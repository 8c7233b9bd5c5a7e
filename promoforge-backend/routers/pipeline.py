"""
Router for the background scrape-to-video pipeline.
"""

import logging

from celery.result import AsyncResult
from fastapi import APIRouter, HTTPException

from schemas import PipelineRequest, PipelineResponse, PipelineStatusResponse
from tasks import celery, generate_promo_task

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.post("", response_model=PipelineResponse)
def start_pipeline(request: PipelineRequest):
    """Sends the job to Celery and immediately returns its task id."""
    try:
        result = generate_promo_task.delay(request.model_dump(mode="json"))
    except Exception as e:
        logging.error(f"Failed to submit task to Celery: {e}")
        raise HTTPException(status_code=500, detail="Failed to start the video pipeline job.")
    logging.info(f"✨ Pipeline job {result.id} submitted for {request.url}")
    return PipelineResponse(task_id=result.id, status="PENDING")


@router.get("/{task_id}", response_model=PipelineStatusResponse)
def get_pipeline_status(task_id: str):
    result = AsyncResult(task_id, app=celery)
    response = PipelineStatusResponse(task_id=task_id, status=result.state)

    if result.state == "FAILURE":
        response.error = str(result.result)
    elif isinstance(result.info, dict):
        # SUCCESS carries the RenderOutcome, PROGRESS the latest poll.
        response.result = result.info
    return response
