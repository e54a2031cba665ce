"""Trendyol request translator: builds, signs and forwards marketplace calls."""

import base64
import json
import ssl
from typing import Any, Mapping
from urllib.parse import urlencode

import httpx

from .config import ENVIRONMENTS, SELF_INTEGRATION, ProxySettings
from .errors import EncodingError, UpstreamError, ValidationError
from .log import get_logger

logger = get_logger(__name__)


def create_ssl_context() -> ssl.SSLContext:
    """TLS context pinned to protocol versions 1.2 through 1.3."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.maximum_version = ssl.TLSVersion.TLSv1_3
    return context


def basic_auth_header(api_key: str, api_secret: str) -> str:
    """Generate Basic auth header value: base64(api_key:api_secret)."""
    try:
        credentials = f"{api_key}:{api_secret}".encode("utf-8")
    except UnicodeEncodeError as e:
        logger.error("Credential encoding failed: %s", e.reason)
        raise EncodingError("API bilgilerinde encoding hatası") from e
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


def client_identifier(seller_id: Any = None) -> str:
    """User-Agent value identifying the integration to the marketplace."""
    return f"{seller_id} - {SELF_INTEGRATION}" if seller_id else SELF_INTEGRATION


def build_url(api_base: str, endpoint: str, params: Mapping[str, Any] | None = None) -> str:
    """Join base and endpoint, appending non-null params in insertion order."""
    url = f"{api_base}{endpoint}"
    if params:
        query = urlencode([(k, _query_value(v)) for k, v in params.items() if v is not None])
        if query:
            url = f"{url}?{query}"
    return url


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _upstream_error_message(response: httpx.Response) -> str:
    message = f"Trendyol API Error: {response.status_code} - {response.reason_phrase}"
    try:
        data = response.json()
    except ValueError:
        text = response.text
        return f"{message} - {text}" if text else f"{message} - Response could not be parsed"

    if isinstance(data, dict) and data.get("message"):
        return f"{message} - {data['message']}"
    if isinstance(data, dict) and data.get("error"):
        return f"{message} - {data['error']}"
    return f"{message} - {json.dumps(data, ensure_ascii=False)}"


class TrendyolClient:
    """Forwards one simplified request to the Trendyol API per call.

    Usage:
        client = TrendyolClient.from_settings(ProxySettings.from_env())
        suppliers = client.request("/suppliers", api_key="...", api_secret="...")
    """

    def __init__(
        self,
        api_base: str = ENVIRONMENTS["stage"]["api_base"],
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ):
        self.api_base = api_base.rstrip("/")
        self._transport = transport
        self._timeout = httpx.Timeout(timeout) if timeout is not None else httpx.Timeout(30.0)
        self._ssl_context = create_ssl_context()

    @classmethod
    def from_settings(cls, settings: ProxySettings, **kwargs: Any) -> "TrendyolClient":
        return cls(settings.api_base, **kwargs)

    def request(
        self,
        endpoint: str,
        *,
        api_key: Any,
        api_secret: Any,
        method: str = "GET",
        seller_id: Any = None,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Call a Trendyol endpoint and return the decoded JSON payload.

        Returns:
            The parsed JSON body, or {"rawResponse": text} when a 2xx body
            is not JSON.

        Raises:
            ValidationError: Credentials are missing or not strings.
            EncodingError: Credentials could not be UTF-8 encoded.
            UpstreamError: The marketplace answered with a non-2xx status.
        """
        if not api_key or not api_secret:
            raise ValidationError("API Key ve API Secret gerekli")
        if not isinstance(api_key, str) or not isinstance(api_secret, str):
            raise ValidationError("API Key ve API Secret string formatında olmalı")

        url = build_url(self.api_base, endpoint, params)
        headers = {
            "Authorization": basic_auth_header(api_key, api_secret),
            "Content-Type": "application/json",
            "User-Agent": client_identifier(seller_id),
        }
        content = json.dumps(body).encode("utf-8") if body is not None else None

        logger.info("Trendyol API URL: %s %s", method, url)
        with httpx.Client(
            verify=self._ssl_context,
            transport=self._transport,
            timeout=self._timeout,
        ) as client:
            response = client.request(method, url, headers=headers, content=content)

        if not response.is_success:
            message = _upstream_error_message(response)
            logger.error("Trendyol API Error Details: %s", message)
            raise UpstreamError(message, upstream_status=response.status_code, endpoint=endpoint)

        try:
            return response.json()
        except ValueError:
            logger.warning("Non-JSON response received from %s", endpoint)
            return {"rawResponse": response.text}
