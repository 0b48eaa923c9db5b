"""Ingest, refresh, and query behavior of the feed coordinator.

HTTP is stubbed with `httpx.MockTransport`; coroutines are driven with
`asyncio.run` so each test owns its event loop.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from warehouse_feeds.coordinator import FeedCoordinator
from warehouse_feeds.scene import HIGHLIGHT_STYLE, SlotScene
from warehouse_feeds.transport import FeedFetchError


def _run(coro):
    return asyncio.run(coro)


async def _ingest_times(feed_server, feed_config, times: int, *, scene=None):
    async with feed_server.client() as client:
        coordinator = FeedCoordinator(feed_config, client=client, scene=scene)
        results = [await coordinator.ingest() for _ in range(times)]
    return coordinator, results


def test_ingest_identical_content_rebuilds_once(feed_server, feed_config) -> None:
    """Re-ingesting unchanged feeds reports `changed: False` and skips the rebuild."""
    coordinator, results = _run(_ingest_times(feed_server, feed_config, 2))

    assert [result["changed"] for result in results] == [True, False]
    assert coordinator.rebuild_count == 1
    assert results[0]["layout_fingerprint"] == results[1]["layout_fingerprint"]
    assert len(feed_server.requests) == 4


def test_ingest_rebuilds_both_structures_when_one_feed_changes(feed_server, feed_config) -> None:
    """An inventory-only change still replaces the whole snapshot."""

    async def scenario():
        async with feed_server.client() as client:
            coordinator = FeedCoordinator(feed_config, client=client)
            await coordinator.ingest()
            first = coordinator.snapshot
            feed_server.bodies["/inventory.csv"] = "LOCATION,SKU,QUANTITY\nB1,SPROCKET-7,1\n"
            result = await coordinator.ingest()
            return coordinator, first, result

    coordinator, first, result = _run(scenario())

    assert result["changed"] is True
    assert coordinator.rebuild_count == 2
    assert coordinator.snapshot is not first
    assert coordinator.model is not first.model
    assert first.model.inventory_by_location["A1"]["SKU"] == "WIDGET-100"
    assert set(coordinator.model.inventory_by_location) == {"B1"}
    assert dict(coordinator.sku_index) == {"sprocket-7": ("B1",)}
    assert coordinator.fingerprints.layout == first.fingerprints.layout


def test_ingest_appends_cache_bust_parameter(feed_server, feed_config) -> None:
    """Every request carries a `t` parameter and keeps existing query params."""
    _run(_ingest_times(feed_server, feed_config, 1))

    by_path = {request.url.path: request for request in feed_server.requests}
    assert "t" in by_path["/layout.csv"].url.params
    assert by_path["/inventory.csv"].url.params["gid"] == "2"
    assert "t" in by_path["/inventory.csv"].url.params
    assert by_path["/layout.csv"].headers["Cache-Control"].startswith("no-cache")


def test_start_failure_is_fatal_and_builds_nothing(feed_server, feed_config) -> None:
    """A failed initial load raises and leaves the model empty."""
    feed_server.status_codes["/inventory.csv"] = 503

    async def scenario():
        async with feed_server.client() as client:
            coordinator = FeedCoordinator(feed_config, client=client)
            with pytest.raises(FeedFetchError, match="HTTP 503"):
                await coordinator.start()
            return coordinator

    coordinator = _run(scenario())
    assert coordinator.model.is_empty
    assert coordinator.rebuild_count == 0
    assert coordinator.fingerprints.layout == ""


def test_refresh_failure_keeps_previous_snapshot(feed_server, feed_config) -> None:
    """Background refresh errors are reported but the old model stays readable."""

    async def scenario():
        async with feed_server.client() as client:
            coordinator = FeedCoordinator(feed_config, client=client)
            await coordinator.start()
            before = coordinator.snapshot
            feed_server.status_codes["/layout.csv"] = 500
            feed_server.bodies["/inventory.csv"] = "LOCATION,SKU\nZ1,NEW\n"
            result = await coordinator.refresh()
            return coordinator, before, result

    coordinator, before, result = _run(scenario())

    assert result["changed"] is False
    assert "HTTP 500" in (result["error"] or "")
    assert coordinator.snapshot is before
    assert coordinator.search("widget") == {"A1"}


def test_get_details_and_describe_slot(feed_server, feed_config) -> None:
    """Known locations return their row; unknown ones return an empty record."""
    coordinator, _ = _run(_ingest_times(feed_server, feed_config, 1))

    assert coordinator.get_details(" A1 ") == {"LOCATION": "A1", "SKU": "WIDGET-100", "QUANTITY": "5"}
    assert coordinator.get_details("B1") == {}
    assert coordinator.describe_slot("A2") == {
        "location": "A2",
        "sku": "GADGET-200",
        "quantity": "3",
        "record": {"LOCATION": "A2", "SKU": "GADGET-200", "QUANTITY": "3"},
    }
    assert coordinator.describe_slot("B1")["quantity"] == "0"


def test_search_highlights_and_clear_search_restores(feed_server, feed_config) -> None:
    """Search highlights matching slots; clearing restores their styles."""
    scene = SlotScene()
    coordinator, _ = _run(_ingest_times(feed_server, feed_config, 1, scene=scene))

    assert coordinator.search("gadget") == {"A2"}
    highlighted = coordinator.highlighted_slots()
    assert [slot.location for slot in highlighted] == ["A2"]
    assert scene.style_of(highlighted[0].slot_id) == HIGHLIGHT_STYLE

    coordinator.clear_search()
    assert coordinator.active_query == ""
    assert coordinator.highlighted_slots() == []

    coordinator.search("a")
    assert coordinator.search("") == set()
    assert coordinator.highlighted_slots() == []


def test_rebuild_reapplies_active_search(feed_server, feed_config) -> None:
    """After a rebuild the active query is resolved against the new model."""

    async def scenario():
        scene = SlotScene()
        async with feed_server.client() as client:
            coordinator = FeedCoordinator(feed_config, client=client, scene=scene)
            await coordinator.ingest()
            coordinator.search("widget")
            feed_server.bodies["/inventory.csv"] = "LOCATION,SKU,QUANTITY\nB1,WIDGET-100,2\n"
            await coordinator.ingest()
            return coordinator

    coordinator = _run(scenario())
    assert coordinator.active_query == "widget"
    assert [slot.location for slot in coordinator.highlighted_slots()] == ["B1"]


def test_start_connection_error_is_fatal(feed_server, feed_config) -> None:
    """Network errors on the initial load surface as `FeedFetchError`."""
    feed_server.errors["/layout.csv"] = httpx.ConnectError

    async def scenario():
        async with feed_server.client() as client:
            coordinator = FeedCoordinator(feed_config, client=client)
            with pytest.raises(FeedFetchError, match="connection refused") as excinfo:
                await coordinator.start()
            return coordinator, excinfo.value

    coordinator, error = _run(scenario())
    assert error.url == feed_config.layout_url
    assert isinstance(error.__cause__, httpx.ConnectError)
    assert coordinator.model.is_empty
    assert coordinator.rebuild_count == 0


def test_refresh_timeout_keeps_previous_snapshot(feed_server, feed_config) -> None:
    """A transport timeout during refresh is reported and the old snapshot stays."""

    async def scenario():
        async with feed_server.client() as client:
            coordinator = FeedCoordinator(feed_config, client=client)
            await coordinator.start()
            before = coordinator.snapshot
            feed_server.errors["/inventory.csv"] = httpx.ReadTimeout
            result = await coordinator.refresh()
            return coordinator, before, result

    coordinator, before, result = _run(scenario())

    assert result["changed"] is False
    assert result["error"] == f"Fetch failed {feed_config.inventory_url}: connection refused"
    assert result["layout_fingerprint"] == before.fingerprints.layout
    assert coordinator.snapshot is before
    assert coordinator.rebuild_count == 1
