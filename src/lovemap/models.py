"""Shared value types: memory records, coordinates, bounds, users."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal, get_args

MemoryType = Literal["love", "food", "travel", "adventure"]
UserId = Literal["melo", "may"]

MEMORY_TYPES: tuple[str, ...] = get_args(MemoryType)
USER_IDS: tuple[str, ...] = get_args(UserId)


@dataclass(frozen=True)
class UserInfo:
    id: str
    name: str
    color: str
    initial: str


USERS: dict[str, UserInfo] = {
    "melo": UserInfo(id="melo", name="Melo", color="#6366f1", initial="M"),
    "may": UserInfo(id="may", name="May", color="#f472b6", initial="Y"),
}


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float

    def is_valid(self) -> bool:
        """Finite and within the WGS84 lat/lng ranges."""
        return (
            math.isfinite(self.lat)
            and math.isfinite(self.lng)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lng <= 180.0
        )


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lat/lng rectangle (south-west, north-east corners)."""

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_points(cls, points: Iterable[LatLng]) -> Bounds | None:
        """Smallest rectangle containing every point. None for an empty input."""
        pts = list(points)
        if not pts:
            return None
        return cls(
            south=min(p.lat for p in pts),
            west=min(p.lng for p in pts),
            north=max(p.lat for p in pts),
            east=max(p.lng for p in pts),
        )

    @property
    def center(self) -> LatLng:
        return LatLng((self.south + self.north) / 2, (self.west + self.east) / 2)


@dataclass(frozen=True)
class Padding:
    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0


@dataclass(frozen=True)
class MemoryRecord:
    """A geotagged memory as handed to the map core. Immutable for a render pass."""

    id: str
    lat: float
    lng: float
    type: str
    date: str
    memo: str
    added_by: str
    name: str | None = None
    cover_photo_url: str | None = None
    photos: tuple[str, ...] = field(default_factory=tuple)
    created_at: str = ""
    updated_at: str = ""

    @property
    def position(self) -> LatLng:
        return LatLng(self.lat, self.lng)
