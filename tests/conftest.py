import json

import httpx
import pytest

from trendyol_proxy.client import TrendyolClient


class Upstream:
    """Fake marketplace recording every outbound request."""

    def __init__(self, status_code=200, content=b'{"ok": true}', headers=None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {"Content-Type": "application/json"}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, content=self.content, headers=self.headers)

    def reply(self, status_code=200, payload=None, content=None):
        self.status_code = status_code
        self.content = content if content is not None else json.dumps(payload).encode()
        return self

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def client(upstream):
    return TrendyolClient("https://stageapigw.trendyol.com", transport=httpx.MockTransport(upstream))
