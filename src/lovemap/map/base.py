"""Map surface / clustering protocols and shared types."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from lovemap.models import Bounds, LatLng, Padding

if TYPE_CHECKING:
    from lovemap.map.markers import Marker

ClickCallback = Callable[[], None]


@dataclass(frozen=True)
class MapClick:
    """A click on the map surface."""

    position: LatLng
    place_id: str | None = None


@dataclass(eq=False)
class Cluster:
    """Aggregate of markers for one clustering pass at one zoom level."""

    position: LatLng
    markers: list[Marker] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.markers)

    @property
    def bounds(self) -> Bounds | None:
        return Bounds.from_points(m.position for m in self.markers)


# Cluster render callback: (count, position) -> visual
ClusterRenderer = Callable[[int, LatLng], Any]


@runtime_checkable
class MarkerHandle(Protocol):
    """Native handle for one visual attached to a surface."""

    def detach(self) -> None:
        """Remove the visual from the surface."""
        ...


@runtime_checkable
class MapSurface(Protocol):
    """Protocol that every map rendering backend must implement."""

    def pan_to(self, center: LatLng) -> None: ...

    def set_zoom(self, zoom: float) -> None: ...

    def get_zoom(self) -> float: ...

    def fit_bounds(self, bounds: Bounds, padding: Padding) -> None: ...

    def attach(
        self,
        visual: Any,
        position: LatLng,
        *,
        on_click: ClickCallback | None = None,
        z_index: int = 0,
    ) -> MarkerHandle:
        """Place a visual at a position and return its handle."""
        ...


@runtime_checkable
class ClusterAlgorithm(Protocol):
    """Narrow wrapper around a marker clustering implementation."""

    def set_renderer(self, renderer: ClusterRenderer) -> None: ...

    def add_markers(self, markers: Iterable[Marker]) -> None: ...

    def clear_markers(self) -> None:
        """Detach every marker and cluster visual this clusterer put on the surface."""
        ...
