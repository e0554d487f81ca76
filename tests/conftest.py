"""Test fixtures and configuration for pytest."""

import asyncio
import json
from typing import Any

import httpx
import pytest

from iplookup.client import IPinfo
from iplookup.services.fetchers.base import BaseFetcher
from iplookup.services.reference_tables import ReferenceTables

GOOGLE_DNS = {
    "ip": "8.8.8.8",
    "hostname": "dns.google",
    "anycast": True,
    "city": "Mountain View",
    "region": "California",
    "country": "US",
    "loc": "38.0088,-122.1175",
    "org": "AS15169 Google LLC",
    "postal": "94043",
    "timezone": "America/Los_Angeles",
}

CLOUDFLARE_V6 = {
    "ip": "2606:4700:4700::1111",
    "city": "San Francisco",
    "region": "California",
    "country": "US",
    "loc": "37.7621,-122.3971",
}


class FakeAPI:
    """In-memory stand-in for the IPinfo HTTP API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.details: dict[str, Any] = {
            "8.8.8.8": GOOGLE_DNS,
            "2606:4700:4700::1111": CLOUDFLARE_V6,
        }
        self.batch_values: dict[str, Any] = {}
        self.failing_keys: set[str] = set()
        self.status_override: int | None = None
        self.requests: list[httpx.Request] = []

    @property
    def batch_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/batch"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.status_override is not None:
            return httpx.Response(self.status_override)

        if request.method == "POST" and request.url.path == "/batch":
            keys = json.loads(request.content)
            if self.failing_keys.intersection(keys):
                return httpx.Response(500)
            body = {k: self.batch_values[k] for k in keys if k in self.batch_values}
            return httpx.Response(200, json=body)

        if request.method == "POST" and request.url.path == "/tools/map":
            return httpx.Response(200, json={"reportUrl": "https://ipinfo.io/tools/map/abc-123"})

        ip = request.url.path.strip("/")
        # Lite and Core endpoints carry a prefix
        for prefix in ("lite/", "lookup/"):
            if ip.startswith(prefix):
                ip = ip[len(prefix) :]
        if ip in ("", "me"):
            ip = "8.8.8.8"
        if ip in self.details:
            return httpx.Response(200, json=self.details[ip])
        return httpx.Response(404, json={"status": 404, "error": {"title": "Wrong ip"}})


class RecordingFetcher(BaseFetcher):
    """Fetcher that answers batch calls from a dict and records every call."""

    def __init__(self, values: dict[str, Any] | None = None, fail_when=None, delay_for=None):
        super().__init__("recording")
        self.values = values or {}
        self.fail_when = fail_when or (lambda chunk: False)
        self.delay_for = delay_for or (lambda chunk: 0)
        self.calls: list[dict[str, Any]] = []
        self._ready = True

    async def get_json(self, url, timeout=None):
        self.calls.append({"method": "GET", "url": url})
        return self.values[url.rsplit("/", 1)[-1]]

    async def post_json(self, url, payload, params=None, timeout=None):
        self.calls.append({"method": "POST", "url": url, "payload": list(payload), "params": params})
        delay = self.delay_for(payload)
        if delay:
            await asyncio.sleep(delay)
        if self.fail_when(payload):
            msg = f"chunk {payload} failed"
            raise RuntimeError(msg)
        return {k: self.values[k] for k in payload if k in self.values}


@pytest.fixture
def fake_api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def transport(fake_api: FakeAPI) -> httpx.MockTransport:
    return httpx.MockTransport(fake_api.handler)


@pytest.fixture
async def client(transport):
    """Initialized standard client talking to the fake API."""
    ipinfo = IPinfo("test-token", transport=transport, api_url="https://ipinfo.io")
    await ipinfo.initialize()
    yield ipinfo
    await ipinfo.shutdown()


@pytest.fixture
async def tables() -> ReferenceTables:
    return await ReferenceTables.load()


@pytest.fixture
def make_fetcher():
    """Factory for fetchers that answer batch calls from a dict."""
    return RecordingFetcher
