"""
Error taxonomy for the PromoForge backend.
Every error carries the HTTP status the API answers with when it escapes a route.
"""


class PromoForgeError(Exception):
    """Base class for all errors raised by this service."""

    http_status = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigError(PromoForgeError):
    """Missing or malformed secret/setting. Fatal for the affected feature."""

    http_status = 500


class ValidationError(PromoForgeError):
    """Malformed client input."""

    http_status = 400


class TransportError(PromoForgeError):
    """The external service could not be reached at all (DNS, connect, timeout)."""

    http_status = 502


class UpstreamError(PromoForgeError):
    """The external service answered with an error status."""

    http_status = 502

    def __init__(self, message: str, status_code=None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UnknownRenderError(UpstreamError):
    http_status = 404


class InconsistentUpstreamError(UpstreamError):
    """The upstream payload contradicts itself, e.g. status done without a url."""


class SubmissionError(UpstreamError):
    """Render submission was accepted but no job id came back."""


class RenderFailedError(UpstreamError):
    """The render reached the failed state on the provider side."""


class RenderTimeoutError(PromoForgeError):
    """Polling gave up. The render may still complete on the provider side."""

    http_status = 504

    def __init__(self, message: str, render_id=None, attempts=None):
        super().__init__(message)
        self.render_id = render_id
        self.attempts = attempts
