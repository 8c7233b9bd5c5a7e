"""
Router for media endpoints: page scraping, voiceovers and uploads.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from config import ALLOWED_IMAGE_TYPES, MAX_SCREENSHOTS, MAX_UPLOAD_BYTES
from dependencies import get_scraper, get_storage, get_voiceover_service
from errors import ValidationError
from schemas import ScrapeMultipleRequest, ScrapeRequest, TTSRequest
from scraper import Scraper
from storage import BlobStorage, timestamped_key
from voiceover import VoiceoverService

router = APIRouter(tags=["media"])


def _read_limited(file: UploadFile) -> bytes:
    content = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(content) > MAX_UPLOAD_BYTES:
        raise ValidationError(f"File {file.filename} exceeds 10MB limit")
    return content


@router.post("/scrape")
def scrape(request: ScrapeRequest, scraper: Scraper = Depends(get_scraper)):
    """Scrapes one page for title, description, theme color, logo and screenshots."""
    asset = scraper.scrape(request)
    return {"success": True, "data": asset.model_dump(by_alias=True)}


@router.post("/scrape-multiple")
def scrape_multiple(request: ScrapeMultipleRequest, scraper: Scraper = Depends(get_scraper)):
    assets = scraper.scrape_many(request.urls, request.screenshot_count)
    return {
        "success": True,
        "data": [asset.model_dump(by_alias=True) for asset in assets],
        "count": len(assets),
    }


@router.get("/voices")
def list_voices():
    return {"success": True, "voices": VoiceoverService.voices()}


@router.post("/tts")
def text_to_speech(request: TTSRequest, voiceover: VoiceoverService = Depends(get_voiceover_service)):
    """Generates a voiceover and returns its public URL."""
    audio_url = voiceover.generate(request.text, request.voice_id)
    logging.info(f"TTS audio ready: {audio_url}")
    return {"success": True, "audioUrl": audio_url}


@router.post("/upload-music")
def upload_music(file: UploadFile = File(...), storage: BlobStorage = Depends(get_storage)):
    """Receives a background music track and publishes it."""
    if not (file.content_type or "").startswith("audio/"):
        raise ValidationError("File must be an audio file")
    content = _read_limited(file)

    url = storage.put(timestamped_key("music", file.filename), content, file.content_type)
    return {"success": True, "url": url, "filename": file.filename}


@router.post("/upload-screenshots")
def upload_screenshots(screenshots: List[UploadFile] = File(...), storage: BlobStorage = Depends(get_storage)):
    """Publishes user-provided screenshots so the renderer can fetch them."""
    if len(screenshots) > MAX_SCREENSHOTS:
        raise ValidationError(f"Maximum {MAX_SCREENSHOTS} screenshots allowed")

    # Validate everything before the first upload.
    contents = []
    for file in screenshots:
        if file.content_type not in ALLOWED_IMAGE_TYPES:
            raise ValidationError(f"Invalid file type: {file.content_type}. Allowed: JPEG, PNG, WebP")
        contents.append(_read_limited(file))

    urls = []
    for index, (file, content) in enumerate(zip(screenshots, contents)):
        url = storage.put(timestamped_key("uploads", f"{index}-{file.filename}"), content, file.content_type)
        logging.info(f"[Upload] Screenshot {index + 1}/{len(screenshots)} uploaded: {url}")
        urls.append(url)

    return {"success": True, "data": {"screenshots": urls, "count": len(urls)}}
