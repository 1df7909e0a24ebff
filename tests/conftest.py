"""Shared fakes: a recording map surface and a scripted places service."""

from __future__ import annotations

import pytest

from lovemap.map.visuals import ClusterVisual, PinVisual
from lovemap.models import MemoryRecord


class FakeHandle:
    def __init__(self, surface, visual, position, on_click, z_index):
        self.surface = surface
        self.visual = visual
        self.position = position
        self.on_click = on_click
        self.z_index = z_index
        self.detached = False

    def detach(self):
        self.surface.detach_calls.append(self)
        self.surface.events.append(("detach", self))
        self.detached = True

    def click(self):
        self.on_click()


class RecordingSurface:
    """In-memory map surface that records every command it receives."""

    def __init__(self, zoom: float = 12.0):
        self.zoom = zoom
        self.handles: list[FakeHandle] = []
        self.detach_calls: list[FakeHandle] = []
        self.events: list[tuple] = []
        self.commands: list[tuple] = []

    def pan_to(self, center):
        self.commands.append(("pan_to", center))

    def set_zoom(self, zoom):
        self.zoom = zoom
        self.commands.append(("set_zoom", zoom))

    def get_zoom(self):
        return self.zoom

    def fit_bounds(self, bounds, padding):
        self.commands.append(("fit_bounds", bounds, padding))

    def attach(self, visual, position, *, on_click=None, z_index=0):
        handle = FakeHandle(self, visual, position, on_click, z_index)
        self.handles.append(handle)
        self.events.append(("attach", handle))
        return handle

    @property
    def attached(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.detached]

    @property
    def pins(self) -> list[FakeHandle]:
        return [h for h in self.attached if isinstance(h.visual, PinVisual)]

    @property
    def bubbles(self) -> list[FakeHandle]:
        return [h for h in self.attached if isinstance(h.visual, ClusterVisual)]

    def commands_named(self, name: str) -> list[tuple]:
        return [c for c in self.commands if c[0] == name]


class ScriptedPlaces:
    """PlacesService whose answers (or exceptions) are set per test."""

    def __init__(self, details=None, nearby=None, geocode=None):
        self.details = details
        self.nearby = nearby if nearby is not None else []
        self.geocode = geocode if geocode is not None else []
        self.calls: list[tuple] = []

    @staticmethod
    def _answer(value):
        if isinstance(value, BaseException):
            raise value
        return value

    async def place_details(self, place_id, fields):
        self.calls.append(("details", place_id, tuple(fields)))
        return self._answer(self.details)

    async def nearby_search(self, center, radius):
        self.calls.append(("nearby", center, radius))
        return self._answer(self.nearby)

    async def reverse_geocode(self, center):
        self.calls.append(("geocode", center))
        return self._answer(self.geocode)


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def make_surface():
    return RecordingSurface


@pytest.fixture
def make_record():
    counter = {"n": 0}

    def _make(lat=37.7749, lng=-122.4194, **kwargs) -> MemoryRecord:
        counter["n"] += 1
        fields = {
            "id": f"mem-{counter['n']}",
            "type": "love",
            "date": "2024-02-14",
            "memo": "",
            "added_by": "melo",
            "name": f"Place {counter['n']}",
        }
        fields.update(kwargs)
        return MemoryRecord(lat=lat, lng=lng, **fields)

    return _make
