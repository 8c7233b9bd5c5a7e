"""
Pydantic models for data validation in the PromoForge backend.
JSON bodies use camelCase keys; snake_case is accepted as well.
"""

from typing import Any, Dict, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config import DEFAULT_THEME_COLOR

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"
AspectRatio = Literal["16:9", "9:16", "1:1"]


def check_http_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"Must be a valid http(s) URL: {value[:100]}")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VideoSpec(CamelModel):
    """Everything the timeline builder needs for one promo video."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    duration: float = Field(default=15, ge=5, le=60)  # seconds
    images: List[str] = Field(min_length=1)
    logo: Optional[str] = None
    theme_color: str = Field(default=DEFAULT_THEME_COLOR, pattern=HEX_COLOR)
    music_url: Optional[str] = None
    music_volume: float = Field(default=0.5, ge=0, le=1)
    voiceover_url: Optional[str] = None
    aspect_ratio: AspectRatio = "16:9"

    @field_validator("images")
    @classmethod
    def _images_are_urls(cls, images):
        return [check_http_url(image) for image in images]

    @field_validator("logo", "music_url", "voiceover_url")
    @classmethod
    def _optional_urls(cls, value):
        return check_http_url(value) if value is not None else None


class Shot(CamelModel):
    image_url: str
    caption: Optional[str] = None

    @field_validator("image_url")
    @classmethod
    def _image_url(cls, value):
        return check_http_url(value)


class SlideshowRequest(CamelModel):
    """Request model for the quick 2-seconds-per-shot slideshow."""
    shots: List[Shot] = Field(min_length=1)
    aspect: Optional[AspectRatio] = None


class RenderRequest(BaseModel):
    """A complete Shotstack edit, forwarded untouched."""

    model_config = ConfigDict(extra="allow")

    timeline: Dict[str, Any]
    output: Dict[str, Any]


class ScrapeRequest(CamelModel):
    url: str
    screenshot_count: int = Field(default=3, ge=1, le=10)
    search_query: Optional[str] = None
    search_selector: Optional[str] = None
    submit_selector: Optional[str] = None
    wait_after_search: int = Field(default=3000, ge=0, le=10000)  # milliseconds

    @field_validator("url")
    @classmethod
    def _url(cls, value):
        return check_http_url(value)


class ScrapeMultipleRequest(CamelModel):
    urls: List[str] = Field(min_length=1, max_length=10)
    screenshot_count: int = Field(default=3, ge=1, le=10)

    @field_validator("urls")
    @classmethod
    def _urls(cls, urls):
        return [check_http_url(url) for url in urls]


class ScrapedAsset(CamelModel):
    """What the scraper pulled out of a page. Screenshots are data URIs."""
    url: str
    title: str
    description: str
    screenshots: List[str]
    logo: Optional[str] = None
    theme_color: str = DEFAULT_THEME_COLOR
    keywords: List[str] = []
    timestamp: str


class TTSRequest(CamelModel):
    text: str = Field(min_length=1, max_length=5000)
    voice_id: Optional[str] = None


class PipelineRequest(CamelModel):
    """Request model for the background scrape-to-video pipeline."""
    url: str
    screenshot_count: int = Field(default=3, ge=1, le=10)
    duration: float = Field(default=15, ge=5, le=60)
    theme_color: Optional[str] = Field(default=None, pattern=HEX_COLOR)
    music_url: Optional[str] = None
    music_volume: float = Field(default=0.5, ge=0, le=1)
    voice_id: Optional[str] = None  # narrate the description when set
    aspect_ratio: AspectRatio = "16:9"

    @field_validator("url")
    @classmethod
    def _url(cls, value):
        return check_http_url(value)

    @field_validator("music_url")
    @classmethod
    def _music_url(cls, value):
        return check_http_url(value) if value is not None else None


class GenerateResponse(CamelModel):
    success: bool = True
    render_id: str
    message: str


class StatusResponse(BaseModel):
    """Normalized render status for pollers."""
    ok: bool = True
    status: str  # queued | fetching | rendering | saving | done | failed
    url: Optional[str] = None
    error: Optional[str] = None
    hint: Optional[str] = None


class PipelineResponse(CamelModel):
    task_id: str
    status: str  # e.g., "PENDING"


class PipelineStatusResponse(CamelModel):
    task_id: str
    status: str  # celery state: PENDING | PROGRESS | SUCCESS | FAILURE
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
