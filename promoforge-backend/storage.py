"""
Public blob storage for uploaded screenshots, music and generated voiceovers.
Talks to the Vercel Blob REST API.
"""

import logging
import time
from urllib.parse import quote

import requests

from config import BLOB_API_URL, UPLOAD_TIMEOUT
from errors import ConfigError, InconsistentUpstreamError, TransportError, UpstreamError
from shotstack import parse_body


def timestamped_key(prefix: str, name: str) -> str:
    """Builds an upload key like 'music/1718000000000-track.mp3'."""
    return f"{prefix}/{int(time.time() * 1000)}-{name}"


class BlobStorage:
    """Uploads bytes and returns their public URL. One-shot, never retried."""

    def __init__(self, token: str, session: requests.Session, base_url: str = BLOB_API_URL):
        self.token = token
        self.session = session
        self.base_url = base_url.rstrip("/")

    def put(self, key: str, content: bytes, content_type: str) -> str:
        if not self.token:
            raise ConfigError("BLOB_READ_WRITE_TOKEN is not set")

        url = f"{self.base_url}/{quote(key)}"
        headers = {
            "authorization": f"Bearer {self.token}",
            "x-api-version": "7",
            "x-content-type": content_type,
            "x-add-random-suffix": "0",
        }
        try:
            response = self.session.put(url, data=content, headers=headers, timeout=UPLOAD_TIMEOUT)
        except requests.RequestException as e:
            logging.error(f"❌ Blob upload of {key} failed: {e}")
            raise TransportError("Could not reach blob storage", details=str(e))

        if not response.ok:
            logging.error(f"❌ Blob upload of {key} rejected ({response.status_code}): {response.text}")
            raise UpstreamError(f"Blob storage {response.status_code}: {response.text}",
                                status_code=response.status_code, body=response.text)

        body = parse_body(response.text)
        blob_url = body.get("url")
        if not blob_url:
            logging.error(f"❌ Blob upload of {key} returned no url: {body.raw}")
            raise InconsistentUpstreamError(f"Blob storage accepted {key} but returned no url",
                                            status_code=response.status_code, body=body.raw)
        logging.info(f"Uploaded {key} ({len(content)} bytes) to {blob_url}")
        return blob_url
