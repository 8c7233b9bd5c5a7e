"""
Thin signed wrapper around the Shotstack Edit API.
"""

import json
import logging
from typing import Any, Optional

import requests

from config import REQUEST_TIMEOUT, SHOTSTACK_KEY_HEADER, ShotstackConfig, mask_for_log
from errors import TransportError


class ParsedBody:
    """A response body that is either decoded JSON or kept as raw text."""

    def __init__(self, raw: str, data: Any = None, is_json: bool = False):
        self.raw = raw
        self.data = data
        self.is_json = is_json

    def get(self, *keys, default=None):
        """Walks nested dict keys of a JSON body, returning default on any miss."""
        node = self.data if self.is_json else None
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    def __repr__(self):
        kind = "json" if self.is_json else "raw"
        return f"ParsedBody({kind}, {self.raw[:80]!r})"


def parse_body(text: Optional[str]) -> ParsedBody:
    raw = text or ""
    if not raw.strip():
        return ParsedBody(raw)
    try:
        return ParsedBody(raw, json.loads(raw), is_json=True)
    except ValueError:
        return ParsedBody(raw)


class RawResponse:
    def __init__(self, status_code: int, body: ParsedBody):
        self.status_code = status_code
        self.body = body

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class ShotstackClient:
    """Handles authenticated calls to the rendering service."""

    def __init__(self, config: ShotstackConfig, session: requests.Session, timeout: float = REQUEST_TIMEOUT):
        self.config = config
        self.session = session
        self.timeout = timeout

    @property
    def host(self) -> str:
        return self.config.host

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.config.host}{path}"

    def call(self, path: str, method: str = "GET", json_body: Any = None) -> RawResponse:
        """
        Sends one request. Non-2xx statuses are returned to the caller untouched;
        only transport failures raise.
        """
        url = self._url(path)
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Cache-Control": "no-store",
            SHOTSTACK_KEY_HEADER: self.config.api_key,
        }
        data = json.dumps(json_body) if json_body is not None else None

        logging.debug(f"Shotstack {method} {url} (key {mask_for_log(self.config.api_key)})")
        try:
            response = self.session.request(method, url, headers=headers, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            logging.error(f"❌ Could not reach Shotstack at {url}: {e}")
            raise TransportError("Could not reach the rendering service", details=str(e))

        return RawResponse(response.status_code, parse_body(response.text))
