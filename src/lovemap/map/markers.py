"""Marker & cluster lifecycle for the memory map.

Every pass rebuilds the marker set from the current record list:
1. Detach all markers and cluster bubbles from the previous pass
2. Build one Marker per valid, distinct record
3. Hand the markers to the clusterer, which decides what gets drawn

The layer owns its surface's marker set exclusively. A missing surface or
clusterer turns a pass into a no-op so the previous pins stay on screen.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

from lovemap.map.visuals import PinVisual, cluster_visual, pin_visual
from lovemap.models import LatLng, MemoryRecord

if TYPE_CHECKING:
    from lovemap.map.base import ClusterAlgorithm, MapSurface, MarkerHandle

logger = logging.getLogger(__name__)

# Reports the id of the memory whose pin was clicked
MarkerClickHandler = Callable[[str], None]


class Marker:
    """One pin bound to one record. Attach/detach are idempotent."""

    def __init__(
        self,
        record: MemoryRecord,
        visual: PinVisual,
        on_click: Callable[[MemoryRecord], None] | None = None,
    ) -> None:
        self.record = record
        self.visual = visual
        self._on_click = on_click
        self._handle: MarkerHandle | None = None

    def __repr__(self) -> str:
        return f"Marker({self.record.id!r}, attached={self.attached})"

    @property
    def position(self) -> LatLng:
        return self.record.position

    @property
    def attached(self) -> bool:
        return self._handle is not None

    def attach(self, surface: MapSurface) -> None:
        if self._handle is not None:
            return
        self._handle = surface.attach(
            self.visual,
            self.position,
            on_click=self.click,
        )

    def detach(self) -> None:
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        handle.detach()

    def click(self) -> None:
        if self._on_click:
            self._on_click(self.record)


class MarkerLayer:
    """Keeps the on-screen pins in step with the filtered record list."""

    def __init__(self, on_marker_click: MarkerClickHandler | None = None) -> None:
        self._on_marker_click = on_marker_click
        self._surface: MapSurface | None = None
        self._clusterer: ClusterAlgorithm | None = None
        self._markers: list[Marker] = []

    @property
    def markers(self) -> list[Marker]:
        return list(self._markers)

    @property
    def attached_count(self) -> int:
        return sum(1 for m in self._markers if m.attached)

    # ── Lifecycle pass ───────────────────────────────────────

    def sync(
        self,
        records: Iterable[MemoryRecord],
        surface: MapSurface | None,
        clusterer: ClusterAlgorithm | None,
    ) -> bool:
        """Rebuild pins for ``records``. Returns False when the pass was skipped."""
        if surface is None or clusterer is None:
            logger.debug(
                "Map not ready (surface=%s, clusterer=%s), keeping %d markers",
                surface is not None,
                clusterer is not None,
                len(self._markers),
            )
            return False

        if self._surface is not None and (
            surface is not self._surface or clusterer is not self._clusterer
        ):
            logger.info("Map surface replaced, tearing down previous markers")
            self.teardown()

        self._surface = surface
        self._clusterer = clusterer

        # Detach before attach
        self._detach_all()

        markers = [
            Marker(record, pin_visual(record), on_click=self._handle_click)
            for record in _distinct_valid(records)
        ]
        self._markers = markers

        clusterer.set_renderer(lambda count, position: cluster_visual(count))
        clusterer.add_markers(markers)

        logger.info("Marker pass: %d markers (%d drawn as pins)", len(markers), self.attached_count)
        return True

    def teardown(self) -> int:
        """Detach everything from the current surface. Returns the number of pins detached."""
        detached = self._detach_all()
        self._markers = []
        self._surface = None
        self._clusterer = None
        if detached:
            logger.info("Marker teardown: detached %d pins", detached)
        return detached

    # ── Internal ─────────────────────────────────────────────

    def _detach_all(self) -> int:
        detached = self.attached_count
        if self._clusterer is not None:
            self._clusterer.clear_markers()
        for marker in self._markers:
            marker.detach()
        return detached

    def _handle_click(self, record: MemoryRecord) -> None:
        logger.debug("Marker clicked: %s", record.id)
        if not self._on_marker_click:
            return
        try:
            self._on_marker_click(record.id)
        except Exception:
            logger.exception("Marker click handler failed for %s", record.id)


def _distinct_valid(records: Iterable[MemoryRecord]) -> list[MemoryRecord]:
    """Drop records with unusable coordinates and repeated ids (first one wins)."""
    seen: set[str] = set()
    result: list[MemoryRecord] = []
    for record in records:
        if record.id in seen:
            logger.warning("Duplicate memory id %s in marker input, skipping", record.id)
            continue
        if not record.position.is_valid():
            logger.warning(
                "Memory %s has invalid coordinates (%s, %s), skipping",
                record.id,
                record.lat,
                record.lng,
            )
            continue
        seen.add(record.id)
        result.append(record)
    return result
