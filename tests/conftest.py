"""Pytest configuration and shared feed fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import httpx
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    # Ensure tests can import `warehouse_feeds` without package installation.
    sys.path.insert(0, project_root_str)

from warehouse_feeds.config import FeedConfig  # noqa: E402

LAYOUT_URL = "https://feeds.example.test/layout.csv"
INVENTORY_URL = "https://feeds.example.test/inventory.csv?gid=2"

LAYOUT_CSV = (
    "LOCATION,X,Y,Z,WIDTH,DEPTH,HEIGHT\n"
    "A1,0,0,0,1,1,1\n"
    "A2,1,0,0,1,1,1\n"
    "B1,0,2,0,1,1,1\n"
)
INVENTORY_CSV = (
    "LOCATION,SKU,QUANTITY\n"
    "A1,WIDGET-100,5\n"
    "A2,GADGET-200,3\n"
)


class FeedServer:
    """In-memory stand-in for the two published feeds."""

    def __init__(self) -> None:
        self.bodies: dict[str, str] = {"/layout.csv": LAYOUT_CSV, "/inventory.csv": INVENTORY_CSV}
        self.status_codes: dict[str, int] = {}
        self.errors: dict[str, type[httpx.TransportError]] = {}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.errors:
            raise self.errors[path]("connection refused", request=request)
        status = self.status_codes.get(path, 200)
        if status != 200:
            return httpx.Response(status, text="unavailable")
        return httpx.Response(200, text=self.bodies[path])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def feed_server() -> FeedServer:
    return FeedServer()


@pytest.fixture
def feed_config() -> FeedConfig:
    return FeedConfig(layout_url=LAYOUT_URL, inventory_url=INVENTORY_URL)


