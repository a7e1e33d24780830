"""
Root conftest.py for the feed client test suite.
Provides an in-process fake of the feed-retrieval service built on
httpx.MockTransport, plus fast-timing configs for watchdog tests.
"""

import asyncio
import json
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qs

import httpx
import pytest

from feedclient.config import ClientConfig
from feedclient.controller import SyncController
from feedclient.service import FeedServiceClient

SERVICE_URL = "http://feeds.test"


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line(
        "markers",
        "slow_service: Tests that hold fake service responses past a watchdog"
    )


class FakeFeedService:
    """In-memory stand-in for the feed-retrieval service

    Responses can be held on an asyncio.Event (``hold``), turned into error
    responses (``fail``) or transport failures (``fail_network``).
    """

    def __init__(self):
        self.feeds: Dict[str, dict] = {}
        self.requests: List[Tuple[str, str, Optional[str]]] = []
        self.gates: Dict[tuple, asyncio.Event] = {}
        self.failures: Dict[tuple, tuple] = {}
        self.network_failures = set()

    # ----- setup helpers -----------------------------------------------------

    def add_feed(self, url: str, title: str, items=()):
        self.feeds[url] = {"URL": url, "Title": title, "Items": list(items)}

    def hold(self, method: str, path: str, url: Optional[str] = None) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[(method, path, url)] = gate
        return gate

    def fail(self, method: str, path: str, status: int = 400, error: Optional[str] = "boom", url: Optional[str] = None):
        self.failures[(method, path, url)] = (status, error)

    def fail_network(self, method: str, path: str, url: Optional[str] = None):
        self.network_failures.add((method, path, url))

    def requests_for(self, method: str, path: str) -> List[Optional[str]]:
        return [url for m, p, url in self.requests if (m, p) == (method, path)]

    def client(self) -> FeedServiceClient:
        return FeedServiceClient(client=self.http_client())

    def http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=SERVICE_URL, transport=self.transport())

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    # ----- request handling --------------------------------------------------

    def _lookup(self, table, method, path, url):
        for key in ((method, path, url), (method, path, None)):
            if key in table:
                return table[key]
        return None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        method, path = request.method, request.url.path
        if method == "POST":
            url = json.loads(request.content or b"{}").get("url")
        else:
            url = parse_qs(request.url.query.decode()).get("url", [None])[0]
        self.requests.append((method, path, url))

        gate = self._lookup(self.gates, method, path, url)
        if gate is not None:
            await gate.wait()

        if (method, path, url) in self.network_failures or (method, path, None) in self.network_failures:
            raise httpx.ConnectError("connection refused", request=request)

        failure = self._lookup(self.failures, method, path, url)
        if failure is not None:
            status, error = failure
            return httpx.Response(status, json={"error": error} if error else {})

        if (method, path) == ("GET", "/feeds"):
            return httpx.Response(200, json=[{"URL": f["URL"], "Title": f["Title"]} for f in self.feeds.values()])
        if (method, path) == ("POST", "/feeds"):
            if not url:
                return httpx.Response(400, json={"error": "URL parameter is required"})
            feed = self.feeds.setdefault(url, {"URL": url, "Title": f"Feed at {url}", "Items": []})
            return httpx.Response(200, json={"URL": feed["URL"], "Title": feed["Title"]})
        if (method, path) == ("GET", "/feed"):
            if url not in self.feeds:
                return httpx.Response(404, json={"error": "feed not found"})
            return httpx.Response(200, json=self.feeds[url])
        if (method, path) == ("DELETE", "/feed"):
            if self.feeds.pop(url, None) is None:
                return httpx.Response(404, json={"error": "feed not found"})
            return httpx.Response(200, text="")
        return httpx.Response(404, json={"error": "not found"})


@pytest.fixture
def fake_service():
    return FakeFeedService()


@pytest.fixture
def fast_config():
    """Short watchdogs so timeout paths run in milliseconds"""
    return ClientConfig(
        service_url=SERVICE_URL,
        add_timeout=0.05,
        load_timeout=0.05,
        delete_timeout=0.05,
        toast_duration=0.2,
        highlight_duration=0.05,
        exit_transition=0.0,
    )


@pytest.fixture
async def controller(fake_service, fast_config):
    controller = SyncController(fake_service.client(), fast_config, confirm=lambda url: True)
    yield controller
    await controller.shutdown()


async def settle(seconds: float = 0.0):
    """Let pending callbacks and tasks run"""
    await asyncio.sleep(seconds)
    await asyncio.sleep(0)


@pytest.fixture
def wait():
    return settle
