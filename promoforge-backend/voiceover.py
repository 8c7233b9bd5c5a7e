"""
Text-to-speech narration through the ElevenLabs REST API.
The generated mp3 is re-uploaded to blob storage so the renderer can fetch it.
"""

import logging

import requests

from config import (
    AVAILABLE_VOICES,
    DEFAULT_VOICE_ID,
    ELEVENLABS_API_URL,
    ELEVENLABS_MODEL_ID,
    TTS_TIMEOUT,
    mask_for_log,
)
from errors import ConfigError, TransportError, UpstreamError
from storage import BlobStorage, timestamped_key

PERMISSIONS_MESSAGE = (
    "ElevenLabs API key is missing required permissions. Please create a new API key "
    "with full TTS permissions at https://elevenlabs.io/app/settings/api-keys"
)


class VoiceoverService:
    """Generates voiceovers and publishes them."""

    def __init__(
        self,
        api_key: str,
        session: requests.Session,
        storage: BlobStorage,
        model_id: str = ELEVENLABS_MODEL_ID,
        base_url: str = ELEVENLABS_API_URL,
    ):
        self.api_key = api_key
        self.session = session
        self.storage = storage
        self.model_id = model_id
        self.base_url = base_url.rstrip("/")

    @staticmethod
    def voices():
        return AVAILABLE_VOICES

    def synthesize(self, text: str, voice_id: str = DEFAULT_VOICE_ID) -> bytes:
        if not self.api_key:
            raise ConfigError("ELEVENLABS_API_KEY is not set")

        url = f"{self.base_url}/text-to-speech/{voice_id}"
        headers = {"xi-api-key": self.api_key, "Accept": "audio/mpeg", "Content-Type": "application/json"}
        payload = {"text": text, "model_id": self.model_id}

        logging.info(f"🗣️ Generating voiceover ({len(text)} chars, voice {voice_id}, key {mask_for_log(self.api_key)})")
        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=TTS_TIMEOUT)
        except requests.RequestException as e:
            raise TransportError("Could not reach ElevenLabs", details=str(e))

        if not response.ok:
            if response.status_code == 401 or "missing_permissions" in response.text:
                logging.error(f"❌ ElevenLabs rejected the key ({response.status_code}): {response.text}")
                raise UpstreamError(PERMISSIONS_MESSAGE, status_code=response.status_code, body=response.text)
            logging.error(f"❌ TTS failed: {response.status_code} {response.text}")
            raise UpstreamError(f"Failed to generate voiceover: {response.status_code} {response.text}",
                                status_code=response.status_code, body=response.text)

        return response.content

    def generate(self, text: str, voice_id: str = None) -> str:
        """Synthesizes the text and returns the public URL of the mp3."""
        audio = self.synthesize(text, voice_id or DEFAULT_VOICE_ID)
        return self.storage.put(timestamped_key("voiceovers", "voiceover.mp3"), audio, "audio/mpeg")
