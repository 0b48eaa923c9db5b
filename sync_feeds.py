"""Command-line runner for the warehouse feeds.

This script loads the layout and inventory feeds, optionally resolves a
search and a details lookup, and writes a structured JSON report under
`output/` by default. With `--watch` it keeps polling and rewrites the report
whenever either feed changes.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx

from warehouse_feeds import FeedConfig, FeedCoordinator, FeedFetchError, RefreshLoop, SlotScene, load_config
from warehouse_feeds.models import DataIssue, IngestResult

DEFAULT_OUTPUT = Path("output/feed_report.json")
DEFAULT_WATCH_SECONDS = 30.0

logger = logging.getLogger("sync_feeds")


def _issue_to_dict(issue: DataIssue) -> dict[str, str | None]:
    """Serialize a `DataIssue` into a JSON-friendly dictionary."""

    return {
        "code": issue.code,
        "field": issue.field,
        "message": issue.message,
    }


def _collect_geometry_issues(scene: SlotScene) -> list[dict[str, Any]]:
    """Collect defaulted-geometry issues for every slot in the scene."""

    issues: list[dict[str, Any]] = []
    for slot in scene.slots:
        for issue in slot.geometry.issues:
            issues.append(
                {
                    "slot_id": slot.slot_id,
                    "location": slot.location,
                    "issue": _issue_to_dict(issue),
                }
            )
    return issues


def build_report(
    coordinator: FeedCoordinator,
    *,
    search: str | None = None,
    location: str | None = None,
) -> dict[str, Any]:
    """Build a report payload from the coordinator's current snapshot."""

    model = coordinator.model
    scene = coordinator.scene or SlotScene()
    if coordinator.scene is None:
        scene.rebuild(model)

    layout_locations = {slot.location for slot in scene.slots if slot.location}
    report: dict[str, Any] = {
        "metadata": {
            "generated_at_utc": datetime.now(timezone.utc).isoformat(),
            "layout_url": coordinator.config.layout_url,
            "inventory_url": coordinator.config.inventory_url,
            "layout_fingerprint": coordinator.fingerprints.layout,
            "inventory_fingerprint": coordinator.fingerprints.inventory,
            "rebuild_count": coordinator.rebuild_count,
        },
        "summary": {
            "layout_row_count": len(model.layout),
            "inventory_location_count": len(model.inventory_by_location),
            "sku_count": len(coordinator.sku_index),
            "locations_without_inventory": sorted(layout_locations - set(model.inventory_by_location)),
            "inventory_without_layout": sorted(set(model.inventory_by_location) - layout_locations),
        },
        "room_bounds": {
            "xmin": scene.bounds.xmin,
            "xmax": scene.bounds.xmax,
            "ymin": scene.bounds.ymin,
            "ymax": scene.bounds.ymax,
            "zmin": scene.bounds.zmin,
            "zmax": scene.bounds.zmax,
        },
        "data_quality_issues": _collect_geometry_issues(scene),
    }

    if search is not None:
        report["search"] = {
            "query": search,
            "matches": sorted(coordinator.search(search)),
        }
    if location is not None:
        report["details"] = coordinator.describe_slot(location)
    return report


def write_report(report: dict[str, Any], *, output_path: Path) -> None:
    """Write report JSON to disk."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(report, indent=2, sort_keys=True) + "\n", encoding="utf-8")


async def run(
    config: FeedConfig,
    *,
    output_path: Path,
    search: str | None = None,
    location: str | None = None,
    watch: bool = False,
    client: httpx.AsyncClient | None = None,
) -> int:
    """Load the feeds, write the report, and optionally keep polling."""

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=config.http_timeout)

    try:
        coordinator = FeedCoordinator(config, client=client, scene=SlotScene())
        try:
            await coordinator.start()
        except FeedFetchError as exc:
            logger.error("Error: %s", exc)
            return 1

        def emit(_result: IngestResult | None = None) -> None:
            write_report(build_report(coordinator, search=search, location=location), output_path=output_path)
            print(f"Wrote feed report: {output_path}")

        emit()
        if watch:
            interval = config.poll_seconds if config.polling_enabled else DEFAULT_WATCH_SECONDS
            await RefreshLoop(coordinator, interval_seconds=interval, on_change=emit).run()
        return 0
    finally:
        if owns_client:
            await client.aclose()


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments for report generation."""

    parser = argparse.ArgumentParser(description="Load warehouse layout and inventory feeds and emit a JSON report.")
    parser.add_argument("--layout-url", help="Layout feed CSV URL (default: $WAREHOUSE_LAYOUT_URL)")
    parser.add_argument("--inventory-url", help="Inventory feed CSV URL (default: $WAREHOUSE_INVENTORY_URL)")
    parser.add_argument("--search", help="Resolve a SKU or location query and include the matches")
    parser.add_argument("--location", help="Include the details of one location")
    parser.add_argument("--watch", action="store_true", help="Keep polling and rewrite the report on change")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="Output JSON path")
    return parser.parse_args()


def main() -> int:
    """Entrypoint for command-line execution."""

    args = _parse_args()
    try:
        config = load_config(layout_url=args.layout_url, inventory_url=args.inventory_url)
    except ValueError as exc:
        print(f"Configuration error: {exc}")
        return 2

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(
            run(
                config,
                output_path=args.output,
                search=args.search,
                location=args.location,
                watch=args.watch,
            )
        )
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
