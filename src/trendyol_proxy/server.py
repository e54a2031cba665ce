"""Long-running HTTP server exposing the proxy under /api/trendyol/."""

import json
import mimetypes
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, unquote, urlparse

from .client import TrendyolClient
from .config import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, ProxySettings
from .dispatch import dispatch, error_envelope, health
from .errors import PayloadTooLarge, ProxyError, ValidationError
from .log import get_logger
from .operations import SERVER

logger = get_logger(__name__)

API_PREFIX = "/api/"
OPERATION_PREFIX = "/api/trendyol/"

MISSING_APP_HTML = """<!DOCTYPE html>
<html>
<head><title>Trendyol Proxy</title>
<style>
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  display: flex; justify-content: center; align-items: center; height: 100vh; margin: 0; background: #f5f5f5; }
.container { text-align: center; background: white; padding: 40px; border-radius: 8px;
  box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
h1 { color: #f27a1a; }
.details { background: #f5f5f5; padding: 12px; border-radius: 4px; font-family: monospace; }
</style></head>
<body><div class="container">
<h1>Trendyol Proxy</h1>
<p>The API is running, but no frontend build was found.</p>
<div class="details">%s</div>
</div></body></html>"""


def flatten_query(query: str) -> dict[str, str]:
    """Single-valued view of a query string; the first value of a key wins."""
    return {k: v[0] for k, v in parse_qs(query, keep_blank_values=True).items()}


class ProxyRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler for proxy API calls and the static frontend."""

    server: "ProxyServer"
    protocol_version = "HTTP/1.1"

    def do_OPTIONS(self) -> None:
        self.send_response(200)
        self._send_cors_headers()
        self.send_header("Access-Control-Allow-Methods", CORS_ALLOW_METHODS)
        self.send_header("Access-Control-Allow-Headers", CORS_ALLOW_HEADERS)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        self._discard_body()
        if parsed.path.startswith(API_PREFIX) or parsed.path == API_PREFIX.rstrip("/"):
            self._handle_api(parsed.path, flatten_query(parsed.query), None)
        else:
            self._serve_static(parsed.path)

    def do_POST(self) -> None:
        self._handle_body_request()

    def do_PUT(self) -> None:
        self._handle_body_request()

    def do_DELETE(self) -> None:
        self._handle_body_request()

    def _handle_body_request(self) -> None:
        parsed = urlparse(self.path)
        try:
            body = self._read_json_body()
        except ProxyError as e:
            # unread body bytes would corrupt the next request on this connection
            self.close_connection = True
            self._send_json(e.status_code, error_envelope(e.message))
            return
        self._handle_api(parsed.path, flatten_query(parsed.query), body)

    def _handle_api(self, path: str, query: dict, body: Any) -> None:
        if path == "/api/health":
            if self.command == "GET":
                self._send_json(200, health())
            else:
                self._send_json(404, error_envelope("Endpoint not found"))
            return

        if not path.startswith(OPERATION_PREFIX):
            self._send_json(404, error_envelope("Endpoint not found"))
            return

        name = path[len(OPERATION_PREFIX):].strip("/")
        status, envelope = dispatch(
            name,
            self.command,
            query,
            body,
            client=self.server.client,
            variant=SERVER,
            debug=self.server.settings.debug,
        )
        self._send_json(status, envelope)

    def _discard_body(self) -> None:
        """Drop a body sent where none is expected, or close the connection if it can't be read."""
        try:
            self._read_json_body()
        except ProxyError:
            self.close_connection = True

    def _read_json_body(self) -> Any:
        if self.headers.get("Transfer-Encoding"):
            raise ValidationError("Content-Length gerekli")
        try:
            length = int(self.headers.get("Content-Length") or 0)
        except ValueError:
            raise ValidationError("Geçersiz Content-Length") from None
        if length < 0:
            raise ValidationError("Geçersiz Content-Length")
        if length > self.server.settings.max_body_bytes:
            raise PayloadTooLarge("İstek gövdesi çok büyük")
        if length <= 0:
            return {}
        raw = self.rfile.read(length)
        content_type = self.headers.get("Content-Type", "")
        if "application/x-www-form-urlencoded" in content_type:
            return flatten_query(raw.decode("utf-8", errors="replace"))
        try:
            return json.loads(raw)
        except ValueError:
            raise ValidationError("Geçersiz JSON gövdesi") from None

    def _serve_static(self, path: str) -> None:
        root = Path(self.server.settings.static_dir).resolve()
        candidate = (root / unquote(path).lstrip("/")).resolve()
        if root not in candidate.parents or not candidate.is_file():
            candidate = root / "index.html"

        if not candidate.is_file():
            content = (MISSING_APP_HTML % f"{root}/index.html").encode()
            self._send_bytes(404, content, "text/html; charset=utf-8")
            return

        content_type = mimetypes.guess_type(candidate.name)[0] or "application/octet-stream"
        self._send_bytes(200, candidate.read_bytes(), content_type)

    def _send_cors_headers(self) -> None:
        origin = self.headers.get("Origin")
        if origin and origin in self.server.settings.allowed_origins:
            self.send_header("Access-Control-Allow-Origin", origin)
            self.send_header("Access-Control-Allow-Credentials", "true")
            self.send_header("Vary", "Origin")
        elif origin:
            logger.info("CORS blocked origin: %s", origin)

    def _send_json(self, status: int, payload: dict) -> None:
        self._send_bytes(status, json.dumps(payload, ensure_ascii=False).encode("utf-8"), "application/json")

    def _send_bytes(self, status: int, content: bytes, content_type: str) -> None:
        self.send_response(status)
        self._send_cors_headers()
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(content)))
        self.end_headers()
        self.wfile.write(content)

    def log_message(self, format: str, *args: Any) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


class ProxyServer(ThreadingHTTPServer):
    """Threaded server holding the shared, read-only settings and client."""

    daemon_threads = True

    def __init__(self, settings: ProxySettings, client: TrendyolClient):
        super().__init__((settings.host, settings.port), ProxyRequestHandler)
        self.settings = settings
        self.client = client


def create_server(settings: ProxySettings, client: TrendyolClient | None = None) -> ProxyServer:
    """Bind the proxy server. Call serve_forever() on the result to run it."""
    client = client or TrendyolClient.from_settings(settings)
    return ProxyServer(settings, client)


def run_server(settings: ProxySettings) -> None:
    """Start the server and block until interrupted."""
    server = create_server(settings)
    host, port = server.server_address[:2]
    logger.info("Trendyol Proxy Server running on %s:%s", host, port)
    logger.info("Environment: %s (%s)", settings.environment, settings.app_env)
    logger.info("Trendyol API: %s", settings.api_base)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
