"""Timer-driven background refresh gated on host visibility."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable

from .coordinator import FeedCoordinator
from .models import IngestResult

logger = logging.getLogger(__name__)


class RefreshLoop:
    """Re-run the coordinator's refresh cycle on a fixed interval.

    Ticks do nothing while the host is hidden or while a previous cycle is
    still outstanding. Becoming visible again triggers one cycle right away.
    """

    def __init__(
        self,
        coordinator: FeedCoordinator,
        *,
        interval_seconds: float,
        visible: bool = True,
        on_change: Callable[[IngestResult], None] | None = None,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got: {interval_seconds}")
        self.coordinator = coordinator
        self.interval_seconds = interval_seconds
        self.on_change = on_change
        self._visible = visible
        self._in_flight = False
        self._edge_pending = False
        self._stop = asyncio.Event()

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def tick(self) -> IngestResult | None:
        """Run one refresh cycle unless hidden or already running.

        A visibility edge recorded while the cycle ran triggers one more
        cycle before returning; the last result is returned.
        """

        if not self._visible:
            return None
        if self._in_flight:
            logger.debug("Skipping refresh tick; previous cycle still running")
            return None

        self._in_flight = True
        try:
            result = await self.coordinator.refresh()
            while self._edge_pending and self._visible:
                self._edge_pending = False
                result = await self.coordinator.refresh()
            return result
        finally:
            self._in_flight = False
            self._edge_pending = False

    async def set_visible(self, visible: bool) -> IngestResult | None:
        """Record a visibility change; a hidden-to-visible edge refreshes at once.

        When a cycle is already running the edge is deferred: the running
        `tick` repeats the cycle once it finishes, and this call returns None.
        """

        was_visible = self._visible
        self._visible = visible
        if visible and not was_visible:
            if self._in_flight:
                self._edge_pending = True
                return None
            return await self.tick()
        return None

    def stop(self) -> None:
        """Ask `run` to return after the current wait."""

        self._stop.set()

    async def run(self) -> None:
        """Tick every `interval_seconds` until `stop` is called."""

        logger.info("Auto-refresh every %.1fs", self.interval_seconds)
        while not self._stop.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval_seconds)
            if self._stop.is_set():
                break
            result = await self.tick()
            if result is not None and result["changed"] and self.on_change is not None:
                self.on_change(result)
