"""Cancelable camera flights over a map surface.

Two kinds of target:
- point:  pan now, then step the zoom toward the target level on timers
- bounds: one fit-bounds call, then wait for the surface animation to settle

The live target is a generation counter. Every timer captures the generation
it was scheduled under and does nothing if a newer target has been issued
since, so only the latest target can ever report completion.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from lovemap.config import FlightConfig
from lovemap.models import Bounds, LatLng, MemoryRecord, Padding

if TYPE_CHECKING:
    from lovemap.map.base import MapSurface

logger = logging.getLogger(__name__)

# Called once per completed flight with the record to reveal (or None)
FlightCompleteHandler = Callable[[MemoryRecord | None], None]


class FlightState(str, Enum):
    IDLE = "idle"
    ANIMATING = "animating"


@dataclass(frozen=True)
class CameraTarget:
    center: LatLng | None = None
    zoom: float | None = None
    bounds: Bounds | None = None
    record: MemoryRecord | None = None


class FlightController:
    """Drives one camera flight at a time; a new target supersedes the old one."""

    def __init__(
        self,
        surface: MapSurface,
        config: FlightConfig | None = None,
        *,
        on_complete: FlightCompleteHandler | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._surface = surface
        self._config = config or FlightConfig()
        self._on_complete = on_complete
        self._loop = loop
        self._generation = 0
        self._target: CameraTarget | None = None
        self._timer: asyncio.TimerHandle | None = None

    @property
    def state(self) -> FlightState:
        return FlightState.ANIMATING if self._target is not None else FlightState.IDLE

    @property
    def target(self) -> CameraTarget | None:
        return self._target

    def padding(self) -> Padding:
        """Uniform padding plus extra on the side hidden behind persistent UI."""
        base = self._config.padding
        sides = {"top": base, "right": base, "bottom": base, "left": base}
        sides[self._config.occluded_side] += self._config.chrome_padding
        return Padding(**sides)

    # ── Targets ──────────────────────────────────────────────

    def fly_to(
        self,
        center: LatLng | None,
        zoom: float | None,
        *,
        record: MemoryRecord | None = None,
        dramatic: bool = False,
    ) -> bool:
        """Pan to ``center`` and step the zoom to ``zoom``. False if the target was rejected."""
        if center is None or zoom is None or not center.is_valid() or not math.isfinite(zoom):
            logger.warning("Ignoring flight with missing or invalid target: %s @ %s", center, zoom)
            return False

        if not self._bind_loop():
            return False

        token = self._arm(CameraTarget(center=center, zoom=zoom, record=record))

        start = self._surface.get_zoom()
        delta = zoom - start
        steps = max(1, min(self._config.max_steps, math.ceil(abs(delta))))
        duration = self._config.dramatic_duration if dramatic else self._config.duration
        # The zoom lead is part of the flight; the last step lands at `duration`
        lead = min(self._config.zoom_lead, duration)
        interval = (duration - lead) / steps

        logger.info(
            "Flight #%d to (%.5f, %.5f) zoom %.1f -> %.1f in %d steps",
            token, center.lat, center.lng, start, zoom, steps,
        )
        self._surface.pan_to(center)
        self._schedule(
            lead + interval, self._zoom_step, token, start, delta, 1, steps, interval
        )
        return True

    def fit_bounds(self, bounds: Bounds | None, *, record: MemoryRecord | None = None) -> bool:
        """Fit the viewport to ``bounds``. False if the target was rejected."""
        if bounds is None:
            logger.warning("Ignoring bounds flight without bounds")
            return False
        if not self._bind_loop():
            return False

        token = self._arm(CameraTarget(bounds=bounds, record=record))
        logger.info("Flight #%d fitting bounds %s", token, bounds)
        self._surface.fit_bounds(bounds, self.padding())
        self._schedule(self._config.bounds_settle_delay, self._complete, token)
        return True

    def cancel(self) -> None:
        """Drop the live target without completing it."""
        self._generation += 1
        self._clear_timer()
        self._target = None

    close = cancel

    # ── Step chain ───────────────────────────────────────────

    def _arm(self, target: CameraTarget) -> int:
        # The generation bump must happen before any new timer exists
        self._generation += 1
        self._clear_timer()
        self._target = target
        return self._generation

    def _is_live(self, token: int) -> bool:
        if token != self._generation:
            logger.debug("Stale flight step #%d ignored (live=#%d)", token, self._generation)
            return False
        return True

    def _zoom_step(
        self, token: int, start: float, delta: float, step: int, steps: int, interval: float
    ) -> None:
        if not self._is_live(token):
            return
        self._surface.set_zoom(start + delta * step / steps)
        if step >= steps:
            self._schedule(self._config.settle_delay, self._complete, token)
        else:
            self._schedule(
                interval, self._zoom_step, token, start, delta, step + 1, steps, interval
            )

    def _complete(self, token: int) -> None:
        if not self._is_live(token):
            return
        target = self._target
        self._target = None
        self._timer = None
        record = target.record if target else None
        logger.info("Flight #%d complete%s", token, f" at {record.id}" if record else "")
        if not self._on_complete:
            return
        try:
            self._on_complete(record)
        except Exception:
            logger.exception("Flight completion handler failed")

    def _bind_loop(self) -> bool:
        if self._loop is not None:
            return True
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Ignoring flight: no event loop to run it on")
            return False
        return True

    def _schedule(self, delay: float, callback: Callable[..., None], *args: Any) -> None:
        self._timer = self._loop.call_later(delay, callback, *args)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
