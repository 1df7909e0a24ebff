"""Configuration loading from environment variables and lovemap.toml."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_DEFAULT_MEMORY_DIR = Path.home() / ".lovemap" / "memories"
_CONFIG_FILENAME = "lovemap.toml"

OCCLUDED_SIDES = ("top", "right", "bottom", "left")

logger = logging.getLogger(__name__)


@dataclass
class PlacesConfig:
    """Place search / geocoding service configuration."""

    api_key: str = ""
    base_url: str = "https://maps.googleapis.com/maps/api"
    nearby_radius: float = 50.0  # meters
    timeout: float = 10.0
    language: str = "en"


@dataclass
class ClusteringConfig:
    """Marker clustering configuration."""

    radius: int = 100  # pixels
    max_zoom: int = 16


@dataclass
class FlightConfig:
    """Camera flight timing and padding (seconds / pixels)."""

    duration: float = 1.2
    dramatic_duration: float = 2.5
    max_steps: int = 8
    zoom_lead: float = 0.15
    settle_delay: float = 0.3
    bounds_settle_delay: float = 1.0
    padding: int = 60
    chrome_padding: int = 140
    occluded_side: str = "bottom"

    def __post_init__(self) -> None:
        side = str(self.occluded_side).strip().lower()
        if side not in OCCLUDED_SIDES:
            logger.warning(
                "Unknown occluded_side %r (expected one of %s), using \"bottom\"",
                self.occluded_side, ", ".join(OCCLUDED_SIDES),
            )
            side = "bottom"
        self.occluded_side = side


@dataclass
class LoveMapConfig:
    """Top-level LoveMap configuration."""

    places: PlacesConfig = field(default_factory=PlacesConfig)
    clustering: ClusteringConfig = field(default_factory=ClusteringConfig)
    flight: FlightConfig = field(default_factory=FlightConfig)
    memory_dir: Path = _DEFAULT_MEMORY_DIR
    log_level: str = "INFO"


def load_config(config_path: Path | None = None) -> LoveMapConfig:
    """Load configuration from environment variables and optional lovemap.toml.

    Priority: environment variables > lovemap.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.lovemap/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".lovemap" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    places_data = file_data.get("places", {})
    clustering_data = file_data.get("clustering", {})
    flight_data = file_data.get("flight", {})
    defaults = FlightConfig()

    config = LoveMapConfig(
        places=PlacesConfig(
            api_key=os.getenv("GOOGLE_MAPS_API_KEY", places_data.get("api_key", "")),
            base_url=places_data.get("base_url", PlacesConfig.base_url),
            nearby_radius=float(
                os.getenv("LOVEMAP_NEARBY_RADIUS", places_data.get("nearby_radius", 50.0))
            ),
            timeout=float(os.getenv("LOVEMAP_PLACES_TIMEOUT", places_data.get("timeout", 10.0))),
            language=places_data.get("language", "en"),
        ),
        clustering=ClusteringConfig(
            radius=int(clustering_data.get("radius", 100)),
            max_zoom=int(clustering_data.get("max_zoom", 16)),
        ),
        flight=FlightConfig(
            **{
                name: type(getattr(defaults, name))(flight_data[name])
                for name in (
                    "duration",
                    "dramatic_duration",
                    "max_steps",
                    "zoom_lead",
                    "settle_delay",
                    "bounds_settle_delay",
                    "padding",
                    "chrome_padding",
                    "occluded_side",
                )
                if name in flight_data
            }
        ),
        memory_dir=Path(
            os.getenv("LOVEMAP_MEMORY_DIR", file_data.get("memory_dir", str(_DEFAULT_MEMORY_DIR)))
        ).expanduser(),
        log_level=os.getenv("LOVEMAP_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
    return config
