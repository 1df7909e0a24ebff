"""LoveMap hub — wires the map core together the way the UI drives it.

Responsibilities:
1. Record list + author filter → marker lifecycle pass
2. Surface lifecycle — attach builds the clusterer and flight controller, detach tears down
3. Map click → place resolution, discarding results for superseded pins
4. Navigate intent → camera flight → detail-open signal
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from lovemap.camera.flight import FlightCompleteHandler, FlightController
from lovemap.config import LoveMapConfig
from lovemap.map.clustering import RadiusClusterer
from lovemap.map.markers import MarkerClickHandler, MarkerLayer
from lovemap.models import USER_IDS, Bounds, MemoryRecord
from lovemap.places.base import PlaceResolutionRequest

if TYPE_CHECKING:
    from lovemap.map.base import ClusterAlgorithm, MapClick, MapSurface
    from lovemap.places.base import PlaceResolutionResult
    from lovemap.places.resolver import PlaceResolver

logger = logging.getLogger(__name__)

DETAIL_ZOOM = 16


class LoveMap:
    """Core hub — owns the marker layer, the live surface and the flight controller."""

    def __init__(
        self,
        config: LoveMapConfig,
        resolver: PlaceResolver,
        *,
        on_marker_click: MarkerClickHandler | None = None,
        on_flight_complete: FlightCompleteHandler | None = None,
    ) -> None:
        self.config = config
        self._resolver = resolver
        self._on_marker_click = on_marker_click
        self._on_flight_complete = on_flight_complete
        self.markers = MarkerLayer(on_marker_click=self._marker_clicked)
        self._surface: MapSurface | None = None
        self._clusterer: ClusterAlgorithm | None = None
        self._flight: FlightController | None = None
        self._records: list[MemoryRecord] = []
        self._filter: str | None = None
        self._pending_pin = 0

    @property
    def flight(self) -> FlightController | None:
        return self._flight

    @property
    def clusterer(self) -> ClusterAlgorithm | None:
        return self._clusterer

    # ── Surface lifecycle ────────────────────────────────────

    def attach_surface(self, surface: MapSurface, clusterer: ClusterAlgorithm | None = None) -> None:
        """Take ownership of a surface once it is ready, then draw the current records."""
        if self._surface is not None:
            self.detach_surface()
        self._surface = surface
        self._clusterer = clusterer or RadiusClusterer(
            surface,
            radius=self.config.clustering.radius,
            max_zoom=self.config.clustering.max_zoom,
        )
        self._flight = FlightController(
            surface, self.config.flight, on_complete=self._flight_completed
        )
        logger.info("Map surface attached")
        self._render()

    def detach_surface(self) -> int:
        """Release the surface: stop flights and detach every pin. Returns pins detached."""
        if self._flight is not None:
            self._flight.close()
        detached = self.markers.teardown()
        self._surface = None
        self._clusterer = None
        self._flight = None
        logger.info("Map surface detached")
        return detached

    def on_zoom_changed(self) -> None:
        on_zoom = getattr(self._clusterer, "on_zoom_changed", None)
        if callable(on_zoom):
            on_zoom()

    # ── Records & filter ─────────────────────────────────────

    @property
    def author_filter(self) -> str | None:
        return self._filter

    @property
    def visible_records(self) -> list[MemoryRecord]:
        if self._filter is None:
            return list(self._records)
        return [r for r in self._records if r.added_by == self._filter]

    def set_filter(self, added_by: str | None) -> None:
        if added_by is not None and added_by not in USER_IDS:
            logger.warning("Unknown author filter %r, ignoring", added_by)
            return
        self._filter = added_by
        self._render()

    def refresh(self, records: Iterable[MemoryRecord]) -> None:
        self._records = list(records)
        self._render()

    def _render(self) -> None:
        self.markers.sync(self.visible_records, self._surface, self._clusterer)

    # ── Map clicks ───────────────────────────────────────────

    async def handle_map_click(
        self, click: MapClick, known_name: str | None = None
    ) -> PlaceResolutionResult | None:
        """Resolve a name for a new pin. None if a newer click replaced this pin meanwhile."""
        self._pending_pin += 1
        token = self._pending_pin

        result = await self._resolver.resolve(
            PlaceResolutionRequest(click.position, click.place_id, known_name)
        )
        if token != self._pending_pin:
            logger.debug("Discarding stale place name %r for pin #%d", result.name, token)
            return None
        return result

    def cancel_pending_pin(self) -> None:
        self._pending_pin += 1

    # ── Navigation ───────────────────────────────────────────

    def navigate_to(
        self, record: MemoryRecord, zoom: float | None = None, *, dramatic: bool = True
    ) -> bool:
        if self._flight is None:
            logger.warning("Cannot navigate to %s: no map surface", record.id)
            return False
        return self._flight.fly_to(
            record.position,
            DETAIL_ZOOM if zoom is None else zoom,
            record=record,
            dramatic=dramatic,
        )

    def show_all(self, records: Iterable[MemoryRecord] | None = None) -> bool:
        """Fit the camera around the given records (default: the visible ones)."""
        if self._flight is None:
            logger.warning("Cannot fit bounds: no map surface")
            return False
        targets = self.visible_records if records is None else list(records)
        bounds = Bounds.from_points(r.position for r in targets if r.position.is_valid())
        return self._flight.fit_bounds(bounds)

    # ── Upward events ────────────────────────────────────────

    def _marker_clicked(self, memory_id: str) -> None:
        if self._on_marker_click:
            self._on_marker_click(memory_id)

    def _flight_completed(self, record: MemoryRecord | None) -> None:
        if self._on_flight_complete:
            self._on_flight_complete(record)
