"""Owner of the current feed snapshot and the consumer-facing operations."""

from __future__ import annotations

import asyncio
import logging

import httpx

from .config import FeedConfig
from .fingerprint import fingerprint_feeds
from .index import build_model
from .models import DataModel, FeedFingerprints, FeedSnapshot, IngestResult, Record, SkuIndex, SlotDetails
from .parser import detect_key_field
from .scene import SceneSlot, SlotScene
from .search import normalize_query, resolve
from .transport import FeedFetchError, load_feed

logger = logging.getLogger(__name__)


class FeedCoordinator:
    """Fetch both feeds, rebuild derived structures on change, answer queries.

    The model, SKU index, and fingerprints are held in one `FeedSnapshot`
    that is replaced with a single assignment, so readers never observe a
    model from one ingest paired with an index from another.
    """

    def __init__(
        self,
        config: FeedConfig,
        *,
        client: httpx.AsyncClient,
        scene: SlotScene | None = None,
    ) -> None:
        self.config = config
        self.scene = scene
        self._client = client
        self._snapshot = FeedSnapshot()
        self._active_query = ""
        self.rebuild_count = 0

    @property
    def snapshot(self) -> FeedSnapshot:
        return self._snapshot

    @property
    def model(self) -> DataModel:
        return self._snapshot.model

    @property
    def sku_index(self) -> SkuIndex:
        return self._snapshot.sku_index

    @property
    def fingerprints(self) -> FeedFingerprints:
        return self._snapshot.fingerprints

    @property
    def active_query(self) -> str:
        return self._active_query

    async def start(self) -> IngestResult:
        """Run the initial load. Transport failures propagate to the caller."""

        logger.info("Loading feeds")
        result = await self.ingest()
        logger.info(
            "Loaded %d layout rows and %d inventory locations",
            len(self.model.layout),
            len(self.model.inventory_by_location),
        )
        return result

    async def ingest(self) -> IngestResult:
        """Run one fetch and reconcile cycle.

        Both feeds are fetched concurrently and both must succeed. The
        snapshot is only replaced when either fingerprint changed.
        """

        layout_rows, inventory_rows = await asyncio.gather(
            load_feed(self._client, self.config.layout_url),
            load_feed(self._client, self.config.inventory_url),
        )
        fingerprints = fingerprint_feeds(layout_rows, inventory_rows)

        if not fingerprints.differs_from(self._snapshot.fingerprints):
            logger.debug("Feeds unchanged (layout=%s, inventory=%s)", fingerprints.layout, fingerprints.inventory)
            return self._result(changed=False)

        model, sku_index = build_model(layout_rows, inventory_rows)
        self._snapshot = FeedSnapshot(model=model, sku_index=sku_index, fingerprints=fingerprints)
        self.rebuild_count += 1
        logger.info("Feeds changed; rebuilt model (layout=%s, inventory=%s)", fingerprints.layout, fingerprints.inventory)

        self._notify_rebuilt()
        return self._result(changed=True)

    async def refresh(self) -> IngestResult:
        """Run one background cycle, keeping the previous snapshot on failure."""

        try:
            return await self.ingest()
        except FeedFetchError as exc:
            logger.warning("Auto-refresh error: %s", exc)
            return self._result(changed=False, error=str(exc))

    def search(self, query: str | None) -> set[str]:
        """Resolve `query` against the current snapshot and highlight matches.

        An empty query clears highlighting and returns an empty set.
        """

        self._active_query = normalize_query(query)
        if not self._active_query:
            self.clear_search()
            return set()

        snapshot = self._snapshot
        matches = resolve(self._active_query, snapshot.model, snapshot.sku_index)
        if self.scene is not None:
            self.scene.highlight(matches)
        logger.debug("Search %r matched %d location(s)", self._active_query, len(matches))
        return matches

    def clear_search(self) -> None:
        """Forget the active query and restore original slot styles."""

        self._active_query = ""
        if self.scene is not None:
            self.scene.clear_highlights()

    def get_details(self, location: str) -> Record:
        """Return the inventory row for `location`, or an empty record."""

        row = self._snapshot.model.inventory_by_location.get(location.strip())
        return dict(row) if row is not None else {}

    def describe_slot(self, location: str) -> SlotDetails:
        """Summarize a location the way the details panel presents it."""

        record = self.get_details(location)
        key_field = detect_key_field(record) or "SKU"
        return {
            "location": location.strip(),
            "sku": record.get(key_field, ""),
            "quantity": record.get("QUANTITY") or "0",
            "record": record,
        }

    def highlighted_slots(self) -> list[SceneSlot]:
        """Return currently highlighted scene slots (empty without a scene)."""

        return self.scene.highlighted() if self.scene is not None else []

    def _notify_rebuilt(self) -> None:
        """Redraw the scene and re-apply an active search after a rebuild."""

        if self.scene is None:
            return
        self.scene.rebuild(self._snapshot.model)
        if self._active_query:
            self.search(self._active_query)

    def _result(self, *, changed: bool, error: str | None = None) -> IngestResult:
        fingerprints = self._snapshot.fingerprints
        return {
            "changed": changed,
            "layout_fingerprint": fingerprints.layout,
            "inventory_fingerprint": fingerprints.inventory,
            "error": error,
        }
