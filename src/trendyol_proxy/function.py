"""Single-invocation (serverless) entry point for the proxy.

The handler takes an API-Gateway style event and returns a
``{"statusCode", "headers", "body"}`` response dict. Settings and the
client are built once per warm container and reused across invocations.
"""

import base64
import json
from typing import Any

from .client import TrendyolClient
from .config import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, ProxySettings
from .dispatch import dispatch, error_envelope
from .operations import FUNCTION

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
    "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
}

_settings: ProxySettings | None = None
_client: TrendyolClient | None = None


def _default_client() -> tuple[ProxySettings, TrendyolClient]:
    global _settings, _client
    if _client is None:
        _settings = ProxySettings.from_env()
        _client = TrendyolClient.from_settings(_settings)
    return _settings, _client


def operation_name(path: str) -> str:
    """Strip the /api/ and trendyol/ prefixes from the request path."""
    path = path.split("?", 1)[0]
    return path.replace("/api/", "", 1).replace("trendyol/", "", 1).strip("/")


def _response(status: int, payload: dict | None) -> dict:
    headers = dict(CORS_HEADERS)
    if payload is None:
        return {"statusCode": status, "headers": headers, "body": ""}
    headers["Content-Type"] = "application/json"
    return {
        "statusCode": status,
        "headers": headers,
        "body": json.dumps(payload, ensure_ascii=False),
    }


def _parse_body(event: dict) -> Any:
    raw = event.get("body")
    if not raw:
        return {}
    if isinstance(raw, (dict, list)):
        return raw
    if event.get("isBase64Encoded"):
        raw = base64.b64decode(raw).decode("utf-8")
    return json.loads(raw)


def handler(
    event: dict,
    context: Any = None,
    *,
    settings: ProxySettings | None = None,
    client: TrendyolClient | None = None,
) -> dict:
    """Handle one proxied invocation."""
    if client is None or settings is None:
        default_settings, default_client = _default_client()
        settings = settings or default_settings
        client = client or default_client

    method = (event.get("httpMethod") or event.get("method") or "GET").upper()
    if method == "OPTIONS":
        return _response(200, None)

    try:
        body = _parse_body(event)
    except ValueError:
        return _response(400, error_envelope("Geçersiz JSON gövdesi"))

    status, envelope = dispatch(
        operation_name(event.get("path") or event.get("rawPath") or ""),
        method,
        event.get("queryStringParameters") or {},
        body,
        client=client,
        variant=FUNCTION,
        debug=settings.debug,
    )
    return _response(status, envelope)
