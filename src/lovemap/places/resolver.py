"""Place resolution cascade.

Resolves a clicked coordinate to a display name. Stages run in strict order
and the first one that produces a name wins:

1. Known name      — caller already has it (e.g. picked from search)
2. Place details   — the click landed on a place with an id
3. Nearby search   — closest meaningful place within a few tens of meters
4. Reverse geocode — establishment, then street, then neighbourhood, then address
5. Placeholder     — always succeeds

Every stage swallows service failures and falls through; ``resolve`` never
raises. It also never debounces: callers with overlapping requests discard
stale results themselves.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from lovemap.places.base import (
    GeocodeResult,
    PlaceCandidate,
    PlaceResolutionRequest,
    PlaceResolutionResult,
    Provenance,
)

if TYPE_CHECKING:
    from lovemap.places.base import PlacesService

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "Unknown Place"
DETAIL_FIELDS = ["name", "formatted_address"]

# Administrative / infrastructure categories that never make a good pin name
EXCLUDED_TYPES = frozenset({
    "locality",
    "political",
    "country",
    "administrative_area_level_1",
    "administrative_area_level_2",
    "administrative_area_level_3",
    "administrative_area_level_4",
    "administrative_area_level_5",
    "sublocality",
    "sublocality_level_1",
    "postal_code",
    "transit_station",
    "bus_station",
    "train_station",
    "subway_station",
    "light_rail_station",
    "parking",
    "route",
})

POI_TYPES = frozenset({
    "point_of_interest",
    "establishment",
    "tourist_attraction",
    "amusement_park",
    "aquarium",
    "art_gallery",
    "bakery",
    "bar",
    "cafe",
    "church",
    "lodging",
    "museum",
    "night_club",
    "park",
    "restaurant",
    "shopping_mall",
    "stadium",
    "store",
    "zoo",
})

GEOCODE_PLACE_TYPES = frozenset({"point_of_interest", "establishment", "premise"})
NEIGHBORHOOD_TYPES = frozenset({
    "neighborhood",
    "sublocality",
    "sublocality_level_1",
    "sublocality_level_2",
})


class PlaceResolver:
    """Runs the cascade against a PlacesService."""

    def __init__(self, service: PlacesService, *, nearby_radius: float = 50.0) -> None:
        self._service = service
        self.nearby_radius = nearby_radius

    async def resolve(self, request: PlaceResolutionRequest) -> PlaceResolutionResult:
        if request.known_name:
            return PlaceResolutionResult(request.known_name, Provenance.EXACT_MATCH)

        for stage in (self._from_place_id, self._from_nearby, self._from_geocode):
            result = await stage(request)
            if result is not None:
                logger.info(
                    "Resolved (%.5f, %.5f) -> %r via %s",
                    request.position.lat,
                    request.position.lng,
                    result.name,
                    result.provenance.value,
                )
                return result

        logger.info(
            "No place name for (%.5f, %.5f), using placeholder",
            request.position.lat,
            request.position.lng,
        )
        return PlaceResolutionResult(PLACEHOLDER_NAME, Provenance.NONE_FOUND)

    # ── Stages ───────────────────────────────────────────────

    async def _from_place_id(self, request: PlaceResolutionRequest) -> PlaceResolutionResult | None:
        if not request.place_id:
            return None
        try:
            details = await self._service.place_details(request.place_id, DETAIL_FIELDS)
        except Exception as e:
            logger.warning("Place details failed for %s: %s", request.place_id, e)
            return None
        if details is None or not details.name:
            return None
        return PlaceResolutionResult(details.name, Provenance.EXACT_MATCH)

    async def _from_nearby(self, request: PlaceResolutionRequest) -> PlaceResolutionResult | None:
        try:
            candidates = await self._service.nearby_search(request.position, self.nearby_radius)
        except Exception as e:
            logger.warning("Nearby search failed: %s", e)
            return None
        best = pick_nearby(candidates, request.position.lat, request.position.lng)
        if best is None:
            return None
        return PlaceResolutionResult(best.name, Provenance.NEARBY_SEARCH)

    async def _from_geocode(self, request: PlaceResolutionRequest) -> PlaceResolutionResult | None:
        try:
            results = await self._service.reverse_geocode(request.position)
        except Exception as e:
            logger.warning("Reverse geocode failed: %s", e)
            return None
        name = pick_geocode_name(results)
        if not name:
            return None
        return PlaceResolutionResult(name, Provenance.GEOCODE_FALLBACK)


def pick_nearby(candidates: list[PlaceCandidate], lat: float, lng: float) -> PlaceCandidate | None:
    """Nearest POI-like candidate, else nearest remaining valid one.

    Distance is planar in degrees; fine at a radius of tens of meters.
    """
    valid = [
        c for c in candidates
        if c.name and not EXCLUDED_TYPES.intersection(c.types)
    ]
    if not valid:
        return None
    valid.sort(key=lambda c: math.hypot(c.position.lat - lat, c.position.lng - lng))
    for candidate in valid:
        if POI_TYPES.intersection(candidate.types):
            return candidate
    return valid[0]


def _first_segment(address: str) -> str:
    return address.split(",")[0].strip()


def _component(results: list[GeocodeResult], wanted: frozenset[str]) -> str | None:
    for result in results:
        for comp in result.address_components:
            if comp.long_name and wanted.intersection(comp.types):
                return comp.long_name
    return None


def pick_geocode_name(results: list[GeocodeResult]) -> str | None:
    """Establishment address, else street, else neighbourhood, else top address."""
    if not results:
        return None

    for result in results:
        if GEOCODE_PLACE_TYPES.intersection(result.types) and result.formatted_address:
            name = _first_segment(result.formatted_address)
            if name:
                return name

    route = _component(results, frozenset({"route"}))
    if route:
        return route

    neighborhood = _component(results, NEIGHBORHOOD_TYPES)
    if neighborhood:
        return neighborhood

    return _first_segment(results[0].formatted_address) or None
