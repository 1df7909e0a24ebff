"""Tests for the LoveMap hub."""

from __future__ import annotations

import asyncio

import pytest

from conftest import ScriptedPlaces
from lovemap.camera.flight import FlightState
from lovemap.config import FlightConfig, LoveMapConfig
from lovemap.core import DETAIL_ZOOM, LoveMap
from lovemap.map.base import MapClick
from lovemap.models import LatLng
from lovemap.places.base import PlaceCandidate, Provenance
from lovemap.places.resolver import PlaceResolver

FAST = FlightConfig(
    duration=0.02,
    dramatic_duration=0.04,
    max_steps=2,
    zoom_lead=0.005,
    settle_delay=0.005,
    bounds_settle_delay=0.01,
)


class GatedPlaces(ScriptedPlaces):
    """First nearby search blocks until released; later ones answer at once."""

    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()
        self._first = True

    async def nearby_search(self, center, radius):
        self.calls.append(("nearby", center, radius))
        if self._first:
            self._first = False
            await self.gate.wait()
            return [PlaceCandidate("Old Spot", center, ["cafe"])]
        return [PlaceCandidate("New Spot", center, ["cafe"])]


@pytest.fixture
def config(tmp_path) -> LoveMapConfig:
    return LoveMapConfig(flight=FAST, memory_dir=tmp_path / "memories")


@pytest.fixture
def events() -> dict:
    return {"clicked": [], "arrived": []}


@pytest.fixture
def hub(config, events) -> LoveMap:
    places = ScriptedPlaces(nearby=[PlaceCandidate("Cafe", LatLng(1.0, 1.0), ["cafe"])])
    return LoveMap(
        config,
        PlaceResolver(places),
        on_marker_click=events["clicked"].append,
        on_flight_complete=events["arrived"].append,
    )


class TestRendering:
    def test_records_wait_for_surface(self, hub, make_surface, make_record):
        hub.refresh([make_record(lat=10.0, lng=10.0)])
        assert hub.markers.markers == []

        surface = make_surface(zoom=18)
        hub.attach_surface(surface)
        assert len(surface.pins) == 1

    def test_author_filter(self, hub, make_surface, make_record):
        surface = make_surface(zoom=18)
        hub.attach_surface(surface)
        hub.refresh([
            make_record(lat=10.0, lng=10.0, added_by="melo"),
            make_record(lat=20.0, lng=20.0, added_by="may"),
            make_record(lat=30.0, lng=30.0, added_by="may"),
        ])
        assert len(surface.pins) == 3

        hub.set_filter("may")
        assert len(surface.pins) == 2
        assert {m.record.added_by for m in hub.markers.markers} == {"may"}

        hub.set_filter(None)
        assert len(surface.pins) == 3

    def test_unknown_filter_ignored(self, hub):
        hub.set_filter("stranger")
        assert hub.author_filter is None

    def test_detach_surface_tears_down(self, hub, make_surface, make_record):
        surface = make_surface(zoom=18)
        hub.attach_surface(surface)
        hub.refresh([make_record(lat=float(i), lng=float(i)) for i in range(4)])

        assert hub.detach_surface() == 4
        assert len(surface.detach_calls) == 4
        assert surface.attached == []
        assert hub.flight is None

    def test_zoom_change_forwarded_to_clusterer(self, hub, make_surface, make_record):
        surface = make_surface(zoom=12)
        hub.attach_surface(surface)
        hub.refresh([make_record(lat=10.0 + i * 0.0001, lng=10.0) for i in range(3)])
        assert len(surface.bubbles) == 1

        surface.zoom = 19
        hub.on_zoom_changed()
        assert len(surface.pins) == 3

    def test_marker_click_forwarded(self, hub, events, make_surface, make_record):
        surface = make_surface(zoom=18)
        hub.attach_surface(surface)
        hub.refresh([make_record(id="m1")])
        surface.pins[0].click()
        assert events["clicked"] == ["m1"]


class TestMapClicks:
    @pytest.mark.asyncio
    async def test_resolves_name(self, hub):
        result = await hub.handle_map_click(MapClick(LatLng(1.0, 1.0)))
        assert result.name == "Cafe"
        assert result.provenance is Provenance.NEARBY_SEARCH

    @pytest.mark.asyncio
    async def test_known_name_passed_through(self, hub):
        result = await hub.handle_map_click(MapClick(LatLng(1.0, 1.0)), known_name="Home")
        assert result.name == "Home"
        assert result.provenance is Provenance.EXACT_MATCH

    @pytest.mark.asyncio
    async def test_stale_resolution_discarded(self, config):
        places = GatedPlaces()
        hub = LoveMap(config, PlaceResolver(places))

        first = asyncio.create_task(hub.handle_map_click(MapClick(LatLng(1.0, 1.0))))
        await asyncio.sleep(0)  # first click is now waiting on the service
        second = await hub.handle_map_click(MapClick(LatLng(2.0, 2.0)))
        places.gate.set()

        assert await first is None
        assert second.name == "New Spot"

    @pytest.mark.asyncio
    async def test_cancelled_pin_discarded(self, config):
        places = GatedPlaces()
        hub = LoveMap(config, PlaceResolver(places))

        task = asyncio.create_task(hub.handle_map_click(MapClick(LatLng(1.0, 1.0))))
        await asyncio.sleep(0)
        hub.cancel_pending_pin()
        places.gate.set()
        assert await task is None


class TestNavigation:
    def test_needs_surface(self, hub, make_record):
        assert hub.navigate_to(make_record()) is False
        assert hub.show_all() is False

    @pytest.mark.asyncio
    async def test_navigate_emits_record_on_arrival(self, hub, events, make_surface, make_record):
        surface = make_surface(zoom=12)
        hub.attach_surface(surface)
        record = make_record()

        assert hub.navigate_to(record) is True
        await asyncio.sleep(0.3)

        assert events["arrived"] == [record]
        assert surface.commands_named("set_zoom")[-1][1] == pytest.approx(DETAIL_ZOOM)

    @pytest.mark.asyncio
    async def test_show_all_fits_visible_records(self, hub, events, make_surface, make_record):
        surface = make_surface(zoom=18)
        hub.attach_surface(surface)
        hub.refresh([
            make_record(lat=10.0, lng=20.0),
            make_record(lat=-5.0, lng=40.0),
        ])

        assert hub.show_all() is True
        (_, bounds, _), = surface.commands_named("fit_bounds")
        assert (bounds.south, bounds.west, bounds.north, bounds.east) == (-5.0, 20.0, 10.0, 40.0)

        await asyncio.sleep(0.3)
        assert events["arrived"] == [None]

    def test_navigate_outside_event_loop_is_refused(self, hub, make_surface, make_record):
        surface = make_surface(zoom=12)
        hub.attach_surface(surface)

        assert hub.navigate_to(make_record()) is False
        assert surface.commands == []
        assert hub.flight.state is FlightState.IDLE

    def test_show_all_with_nothing_visible(self, hub, make_surface):
        hub.attach_surface(make_surface())
        assert hub.show_all() is False

    @pytest.mark.asyncio
    async def test_detach_cancels_flight(self, hub, events, make_surface, make_record):
        hub.attach_surface(make_surface(zoom=3))
        hub.navigate_to(make_record())
        hub.detach_surface()
        await asyncio.sleep(0.3)
        assert events["arrived"] == []
