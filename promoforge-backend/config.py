"""
Configuration file for the PromoForge backend.
Contains all global constants and the Shotstack secret accessor.
"""

import os
import re

from errors import ConfigError


def positive_int_env(name: str, default: int) -> int:
    """Reads an integer setting that must be at least 1."""
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigError(f"{name} must be at least 1, got {value}")
    return value


# --- Constants ---
SHOTSTACK_HOSTS = {
    "stage": "https://api.shotstack.io/stage",
    "v1": "https://api.shotstack.io/v1",
}
SHOTSTACK_API_ENV = os.getenv("SHOTSTACK_API_ENV", "stage")
SHOTSTACK_KEY_HEADER = "x-api-key"
SHOTSTACK_MIN_KEY_LENGTH = 16
VIDEO_PROVIDER = "shotstack"
VIDEO_ASPECT = os.getenv("VIDEO_ASPECT", "16:9")

ELEVENLABS_API_URL = os.getenv("ELEVENLABS_API_URL", "https://api.elevenlabs.io/v1")
ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY", "")
ELEVENLABS_MODEL_ID = os.getenv("ELEVENLABS_MODEL_ID", "eleven_monolingual_v1")

BLOB_API_URL = os.getenv("BLOB_API_URL", "https://blob.vercel-storage.com")
BLOB_READ_WRITE_TOKEN = os.getenv("BLOB_READ_WRITE_TOKEN", "")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]
VERBOSE_ERRORS = os.getenv("VERBOSE_ERRORS", "").lower() in ("1", "true", "yes")

# Seconds
REQUEST_TIMEOUT = 30
TTS_TIMEOUT = 60
UPLOAD_TIMEOUT = 60

# --- Polling ---
# Short variant backs the status wait endpoint, long variant the end-to-end pipeline.
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1"))
POLL_MAX_ATTEMPTS = positive_int_env("POLL_MAX_ATTEMPTS", 30)
PIPELINE_POLL_INTERVAL_SECONDS = float(os.getenv("PIPELINE_POLL_INTERVAL_SECONDS", "5"))
PIPELINE_POLL_MAX_ATTEMPTS = positive_int_env("PIPELINE_POLL_MAX_ATTEMPTS", 60)
RENDERING_HINT = "Rendering may take 10-30s"

# --- Uploads ---
MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_SCREENSHOTS = 10
ALLOWED_IMAGE_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]

# --- Scraping ---
SCRAPE_VIEWPORT = {"width": 1920, "height": 1080}
SCRAPE_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SCRAPE_NAV_TIMEOUT_MS = 30000
DEFAULT_THEME_COLOR = "#3B82F6"

# --- Voices ---
DEFAULT_VOICE_ID = "21m00Tcm4TlvDq8ikWAM"
AVAILABLE_VOICES = [
    {"id": "21m00Tcm4TlvDq8ikWAM", "name": "Rachel", "description": "Calm, young female voice"},
    {"id": "AZnzlk1XvdvUeBnXmlld", "name": "Domi", "description": "Strong, confident female voice"},
    {"id": "EXAVITQu4vr4xnSDxMaL", "name": "Bella", "description": "Soft, gentle female voice"},
    {"id": "ErXwobaYiN019PkySvjV", "name": "Antoni", "description": "Well-rounded male voice"},
    {"id": "VR6AewLTigWG4xSOukaG", "name": "Arnold", "description": "Crisp, authoritative male voice"},
    {"id": "pNInz6obpgDQGcFmaJgB", "name": "Adam", "description": "Deep, resonant male voice"},
]

# --------------------------------------------------------------------------
# --- Shotstack Secret Accessor ---
# --------------------------------------------------------------------------

_INVALID_KEY_CHARS = re.compile(r"[\r\n\t\"'`]")


class ShotstackConfig:
    """Validated Shotstack credentials."""

    def __init__(self, api_key: str, host: str):
        self.api_key = api_key
        self.host = host

    def __repr__(self):
        return f"ShotstackConfig(host={self.host!r}, api_key={mask_for_log(self.api_key)!r})"


def get_shotstack_config() -> ShotstackConfig:
    """
    Reads the Shotstack API key and host from the environment.
    Raises ConfigError if the key is missing or cannot be sent as a header value.
    """
    api_key = os.getenv("SHOTSTACK_API_KEY", "").strip()
    env = os.getenv("SHOTSTACK_API_ENV", SHOTSTACK_API_ENV)
    host = os.getenv("SHOTSTACK_HOST") or SHOTSTACK_HOSTS.get(env, SHOTSTACK_HOSTS["stage"])
    host = host.rstrip("/")

    if not api_key:
        raise ConfigError("SHOTSTACK_API_KEY is not set")
    if _INVALID_KEY_CHARS.search(api_key):
        raise ConfigError(f"SHOTSTACK_API_KEY contains invalid characters for {SHOTSTACK_KEY_HEADER} header")
    if len(api_key) < SHOTSTACK_MIN_KEY_LENGTH:
        raise ConfigError("SHOTSTACK_API_KEY appears too short")

    return ShotstackConfig(api_key=api_key, host=host)


def mask_for_log(key) -> str:
    if not key:
        return "(unset)"
    if len(key) <= 8:
        return "***"
    return f"{key[:4]}...{key[-4:]}"
