"""Places service protocol and shared types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol, runtime_checkable

from lovemap.models import LatLng


class PlacesServiceError(RuntimeError):
    """The place search / geocoding service failed or returned an error status."""


class Provenance(str, Enum):
    """Which cascade stage produced a resolved name."""

    EXACT_MATCH = "exact-match"
    NEARBY_SEARCH = "nearby-search"
    GEOCODE_FALLBACK = "geocode-fallback"
    NONE_FOUND = "none-found"


@dataclass(frozen=True)
class PlaceResolutionRequest:
    position: LatLng
    place_id: str | None = None
    known_name: str | None = None


@dataclass(frozen=True)
class PlaceResolutionResult:
    name: str
    provenance: Provenance


@dataclass
class PlaceDetails:
    name: str | None = None
    formatted_address: str | None = None


@dataclass
class PlaceCandidate:
    """One proximity-search hit."""

    name: str
    position: LatLng
    types: list[str] = field(default_factory=list)
    place_id: str | None = None


@dataclass
class AddressComponent:
    long_name: str
    short_name: str = ""
    types: list[str] = field(default_factory=list)


@dataclass
class GeocodeResult:
    formatted_address: str = ""
    types: list[str] = field(default_factory=list)
    address_components: list[AddressComponent] = field(default_factory=list)


@runtime_checkable
class PlacesService(Protocol):
    """Protocol that place search backends must implement.

    Implementations raise PlacesServiceError (or any exception) on failure and
    return None / [] when the service simply has nothing.
    """

    async def place_details(self, place_id: str, fields: list[str]) -> PlaceDetails | None: ...

    async def nearby_search(self, center: LatLng, radius: float) -> list[PlaceCandidate]: ...

    async def reverse_geocode(self, center: LatLng) -> list[GeocodeResult]: ...
