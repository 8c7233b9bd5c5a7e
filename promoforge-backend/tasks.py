# tasks.py

import base64
import logging
import re
from urllib.parse import urlparse

import requests
from celery import Celery

from config import (
    BLOB_READ_WRITE_TOKEN,
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    ELEVENLABS_API_KEY,
    PIPELINE_POLL_INTERVAL_SECONDS,
    PIPELINE_POLL_MAX_ATTEMPTS,
    get_shotstack_config,
)
from errors import ValidationError
from models import RenderOutcome
from schemas import PipelineRequest, ScrapeRequest, VideoSpec
from scraper import Scraper
from services import RenderService
from shotstack import ShotstackClient
from storage import BlobStorage, timestamped_key
from timeline import build_timeline
from voiceover import VoiceoverService

celery = Celery('tasks', broker=CELERY_BROKER_URL, backend=CELERY_RESULT_BACKEND)
celery.conf.update(task_track_started=True, result_expires=24 * 3600)
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

_DATA_URI = re.compile(r"^data:(?P<type>[\w/+.-]+);base64,(?P<data>.+)$", re.DOTALL)


def decode_data_uri(uri: str):
    """Returns (bytes, content_type) for a base64 data URI."""
    match = _DATA_URI.match(uri)
    if not match:
        raise ValidationError("Screenshot is not a base64 data URI")
    return base64.b64decode(match.group("data")), match.group("type")


class Pipeline:
    """Collaborators for one scrape-to-video run."""

    def __init__(self, scraper, storage, voiceover, renderer):
        self.scraper = scraper
        self.storage = storage
        self.voiceover = voiceover
        self.renderer = renderer

    def run(self, request: PipelineRequest, on_progress=None, cancel=None) -> RenderOutcome:
        asset = self.scraper.scrape(ScrapeRequest(url=request.url, screenshot_count=request.screenshot_count))

        images = []
        for index, screenshot in enumerate(asset.screenshots):
            content, content_type = decode_data_uri(screenshot)
            images.append(self.storage.put(timestamped_key("uploads", f"{index}-screenshot.jpg"), content, content_type))

        voiceover_url = None
        if request.voice_id:
            voiceover_url = self.voiceover.generate(asset.description, request.voice_id)

        logo = asset.logo if asset.logo and urlparse(asset.logo).scheme in ("http", "https") else None
        spec = VideoSpec(
            title=asset.title or urlparse(asset.url).netloc,
            description=asset.description,
            duration=request.duration,
            images=images,
            logo=logo,
            theme_color=request.theme_color or asset.theme_color,
            music_url=request.music_url,
            music_volume=request.music_volume,
            voiceover_url=voiceover_url,
            aspect_ratio=request.aspect_ratio,
        )
        return self.renderer.run(build_timeline(spec).to_payload(), on_progress=on_progress, cancel=cancel)


def build_pipeline(session: requests.Session) -> Pipeline:
    storage = BlobStorage(BLOB_READ_WRITE_TOKEN, session)
    client = ShotstackClient(get_shotstack_config(), session)
    return Pipeline(
        scraper=Scraper(),
        storage=storage,
        voiceover=VoiceoverService(ELEVENLABS_API_KEY, session, storage),
        renderer=RenderService(client, interval=PIPELINE_POLL_INTERVAL_SECONDS, max_attempts=PIPELINE_POLL_MAX_ATTEMPTS),
    )


@celery.task(bind=True)
def generate_promo_task(self, payload: dict) -> dict:
    """
    Background task: scrape the page, upload screenshots, optionally narrate,
    render and wait for the result. Returns the final RenderOutcome as a dict.
    """
    request = PipelineRequest.model_validate(payload)
    logging.info(f"📝 Worker received pipeline job {self.request.id} for {request.url}")

    def report(job, attempt, hint):
        if not self.request.is_eager:
            self.update_state(state="PROGRESS", meta={
                "renderId": job.id, "status": job.status.value, "attempt": attempt, "hint": hint,
            })

    with requests.Session() as session:
        outcome = build_pipeline(session).run(request, on_progress=report)

    logging.info(f"Pipeline job {self.request.id} finished in state {outcome.state.value}")
    return outcome.model_dump(mode="json")
