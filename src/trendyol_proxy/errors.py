"""Errors raised while translating and forwarding marketplace requests.

Each error kind carries the HTTP status it is reported with, so the
operation boundary can turn any of them into an error envelope.
"""

from typing import Any


class ProxyError(Exception):
    """Base exception for all proxy errors."""

    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ConfigurationError(ProxyError):
    """Raised when settings are invalid at startup."""


class ValidationError(ProxyError):
    """A required field is missing or malformed."""

    status_code = 400


class EncodingError(ProxyError):
    """Credentials could not be encoded for the Basic-Auth header."""


class UpstreamError(ProxyError):
    """The marketplace answered with a non-2xx status."""

    def __init__(self, message: str, upstream_status: int | None = None, endpoint: str | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.endpoint = endpoint


class MethodNotAllowed(ProxyError):
    status_code = 405


class NotFound(ProxyError):
    status_code = 404


class PayloadTooLarge(ProxyError):
    status_code = 413
