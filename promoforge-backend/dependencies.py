# dependencies.py
# FastAPI dependencies handing out the clients created in the app lifespan.

from fastapi import Request

from config import get_shotstack_config
from scraper import Scraper
from services import RenderService
from shotstack import ShotstackClient
from storage import BlobStorage
from voiceover import VoiceoverService


def get_shotstack_client(request: Request) -> ShotstackClient:
    state = request.app.state
    if state.shotstack is None:
        # Raises ConfigError with the precise reason while misconfigured.
        state.shotstack = ShotstackClient(get_shotstack_config(), state.http_session)
    return state.shotstack


def get_render_service(request: Request) -> RenderService:
    return RenderService(get_shotstack_client(request))


def get_storage(request: Request) -> BlobStorage:
    return request.app.state.storage


def get_voiceover_service(request: Request) -> VoiceoverService:
    return request.app.state.voiceover


def get_scraper() -> Scraper:
    return Scraper()
