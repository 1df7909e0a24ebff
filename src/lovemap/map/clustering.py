"""Radius clustering in Web Mercator pixel space.

Markers closer than ``radius`` screen pixels at the current zoom collapse into
one cluster bubble. Above ``max_zoom`` nothing is clustered. The surface owner
calls ``on_zoom_changed()`` whenever the zoom level moves.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from functools import lru_cache
from typing import TYPE_CHECKING

from lovemap.map.base import Cluster, ClusterRenderer
from lovemap.models import LatLng, Padding

if TYPE_CHECKING:
    from pyproj import Transformer

    from lovemap.map.base import MapSurface, MarkerHandle
    from lovemap.map.markers import Marker

logger = logging.getLogger(__name__)

TILE_SIZE = 256
MERCATOR_EXTENT = 20037508.342789244  # meters, half the EPSG:3857 world width
MAX_MERCATOR_LAT = 85.05112878


@lru_cache(maxsize=1)
def _to_mercator() -> Transformer:
    from pyproj import Transformer

    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


def world_pixel(position: LatLng, zoom: float) -> tuple[float, float]:
    """EPSG:4326 -> global pixel coordinates at ``zoom`` (origin top-left)."""
    lat = max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, position.lat))
    x, y = _to_mercator().transform(position.lng, lat)
    world = TILE_SIZE * (2 ** zoom)
    px = (x + MERCATOR_EXTENT) / (2 * MERCATOR_EXTENT) * world
    py = (MERCATOR_EXTENT - y) / (2 * MERCATOR_EXTENT) * world
    return px, py


def group_markers(markers: list[Marker], zoom: float, radius: float) -> list[Cluster]:
    """Greedy grouping: each unassigned marker seeds a group of its unassigned neighbours.

    Deterministic for a given input order, so re-running on the same list and
    zoom yields the same groups.
    """
    pixels = [world_pixel(m.position, zoom) for m in markers]
    assigned = [False] * len(markers)
    groups: list[Cluster] = []

    for i, marker in enumerate(markers):
        if assigned[i]:
            continue
        assigned[i] = True
        members = [marker]
        sx, sy = pixels[i]
        for j in range(i + 1, len(markers)):
            if assigned[j]:
                continue
            dx, dy = pixels[j][0] - sx, pixels[j][1] - sy
            if math.hypot(dx, dy) <= radius:
                assigned[j] = True
                members.append(markers[j])

        center = LatLng(
            sum(m.position.lat for m in members) / len(members),
            sum(m.position.lng for m in members) / len(members),
        )
        groups.append(Cluster(position=center, markers=members))
    return groups


class RadiusClusterer:
    """Clusterer that draws singletons as pins and groups as rendered bubbles."""

    def __init__(
        self,
        surface: MapSurface,
        *,
        radius: int = 100,
        max_zoom: int = 16,
        renderer: ClusterRenderer | None = None,
    ) -> None:
        self._surface = surface
        self.radius = radius
        self.max_zoom = max_zoom
        self._renderer = renderer
        self._markers: list[Marker] = []
        self._clusters: list[Cluster] = []
        self._cluster_handles: list[MarkerHandle] = []

    @property
    def clusters(self) -> list[Cluster]:
        """Multi-member clusters drawn by the last render."""
        return list(self._clusters)

    def set_renderer(self, renderer: ClusterRenderer) -> None:
        self._renderer = renderer

    def add_markers(self, markers: Iterable[Marker]) -> None:
        self._markers.extend(markers)
        self.render()

    def clear_markers(self) -> None:
        self._detach_clusters()
        for marker in self._markers:
            marker.detach()
        self._markers = []

    def on_zoom_changed(self) -> None:
        self.render()

    def render(self) -> None:
        zoom = self._surface.get_zoom()
        self._detach_clusters()

        if zoom > self.max_zoom:
            groups = [Cluster(position=m.position, markers=[m]) for m in self._markers]
        else:
            groups = group_markers(self._markers, zoom, self.radius)

        # Absorbed pins come off before anything new goes on
        for group in groups:
            if group.count > 1:
                for marker in group.markers:
                    marker.detach()

        for group in groups:
            if group.count == 1:
                group.markers[0].attach(self._surface)
                continue
            visual = self._renderer(group.count, group.position) if self._renderer else group.count
            handle = self._surface.attach(
                visual,
                group.position,
                on_click=lambda cluster=group: self._zoom_into(cluster),
                z_index=getattr(visual, "z_index", 0),
            )
            self._clusters.append(group)
            self._cluster_handles.append(handle)

        logger.debug(
            "Clustered %d markers into %d clusters at zoom %.1f",
            len(self._markers),
            len(self._clusters),
            zoom,
        )

    def _detach_clusters(self) -> None:
        for handle in self._cluster_handles:
            handle.detach()
        self._cluster_handles = []
        self._clusters = []

    def _zoom_into(self, cluster: Cluster) -> None:
        bounds = cluster.bounds
        if bounds is None:
            return
        logger.debug("Cluster of %d clicked, fitting bounds", cluster.count)
        self._surface.fit_bounds(bounds, Padding())
