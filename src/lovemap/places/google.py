"""Google Maps web-service backend for the places cascade.

Uses the JSON endpoints for Place Details, Nearby Search and Geocoding over
a shared aiohttp session. One request per call, no retries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import aiohttp

from lovemap.models import LatLng
from lovemap.places.base import (
    AddressComponent,
    GeocodeResult,
    PlaceCandidate,
    PlaceDetails,
    PlacesServiceError,
)

if TYPE_CHECKING:
    from lovemap.config import PlacesConfig

logger = logging.getLogger(__name__)


class GooglePlacesClient:
    """PlacesService implementation backed by the Google Maps web services."""

    def __init__(
        self,
        config: PlacesConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> GooglePlacesClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    # ── PlacesService ─────────────────────────────────────────

    async def place_details(self, place_id: str, fields: list[str]) -> PlaceDetails | None:
        endpoint = "place/details/json"
        data = await self._get_json(endpoint, {"place_id": place_id, "fields": ",".join(fields)})
        return _decode(endpoint, _parse_details, data)

    async def nearby_search(self, center: LatLng, radius: float) -> list[PlaceCandidate]:
        endpoint = "place/nearbysearch/json"
        data = await self._get_json(
            endpoint,
            {"location": f"{center.lat},{center.lng}", "radius": str(int(radius))},
        )
        return _decode(endpoint, _parse_nearby, data)

    async def reverse_geocode(self, center: LatLng) -> list[GeocodeResult]:
        endpoint = "geocode/json"
        data = await self._get_json(endpoint, {"latlng": f"{center.lat},{center.lng}"})
        return _decode(endpoint, _parse_geocode, data)

    # ── HTTP ─────────────────────────────────────────────────

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout)
            )
            self._owns_session = True
        return self._session

    async def _get_json(self, endpoint: str, params: dict[str, str]) -> dict[str, Any]:
        """GET an endpoint and return the payload. ZERO_RESULTS yields an empty payload."""
        if not self._config.api_key:
            raise PlacesServiceError("Google Maps API key not configured")

        url = f"{self._config.base_url.rstrip('/')}/{endpoint}"
        query = {**params, "key": self._config.api_key, "language": self._config.language}
        logger.debug("GET %s %s", endpoint, params)

        try:
            async with self._get_session().get(url, params=query) as resp:
                if resp.status != 200:
                    raise PlacesServiceError(f"{endpoint}: HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PlacesServiceError(f"{endpoint}: {e!r}") from e
        except ValueError as e:  # body is not JSON
            raise PlacesServiceError(f"{endpoint}: invalid JSON body") from e

        if not isinstance(data, dict):
            raise PlacesServiceError(f"{endpoint}: expected a JSON object, got {type(data).__name__}")

        status = data.get("status", "")
        if status == "ZERO_RESULTS":
            return {}
        if status != "OK":
            message = data.get("error_message", "")
            raise PlacesServiceError(f"{endpoint}: {status} {message}".strip())
        return data


# ── Payload parsing ──────────────────────────────────────────

T = TypeVar("T")


def _decode(endpoint: str, parse: Callable[[dict[str, Any]], T], data: dict[str, Any]) -> T:
    try:
        return parse(data)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PlacesServiceError(f"{endpoint}: malformed payload ({e!r})") from e


def _parse_details(data: dict[str, Any]) -> PlaceDetails | None:
    result = data.get("result")
    if not result:
        return None
    return PlaceDetails(
        name=result.get("name"),
        formatted_address=result.get("formatted_address"),
    )


def _parse_nearby(data: dict[str, Any]) -> list[PlaceCandidate]:
    candidates = []
    for item in data.get("results", []):
        location = item.get("geometry", {}).get("location")
        if not location:
            continue
        candidates.append(
            PlaceCandidate(
                name=item.get("name", ""),
                position=LatLng(float(location["lat"]), float(location["lng"])),
                types=list(item.get("types", [])),
                place_id=item.get("place_id"),
            )
        )
    return candidates


def _parse_geocode(data: dict[str, Any]) -> list[GeocodeResult]:
    return [
        GeocodeResult(
            formatted_address=item.get("formatted_address", ""),
            types=list(item.get("types", [])),
            address_components=[
                AddressComponent(
                    long_name=comp.get("long_name", ""),
                    short_name=comp.get("short_name", ""),
                    types=list(comp.get("types", [])),
                )
                for comp in item.get("address_components", [])
            ],
        )
        for item in data.get("results", [])
    ]
