"""Visual descriptors for memory pins and cluster bubbles.

The surface decides how to draw these; the core only decides what they say.
"""

from __future__ import annotations

from dataclasses import dataclass

from lovemap.models import USERS, MemoryRecord

PIN_COLORS = {
    "love": "#ec4899",  # pink
    "food": "#f97316",  # orange
    "travel": "#3b82f6",  # blue
    "adventure": "#22c55e",  # green
}

PIN_ICONS = {
    "love": "heart",
    "food": "utensils",
    "travel": "plane",
    "adventure": "mountain",
}

_FALLBACK_COLOR = "#6b7280"
_FALLBACK_ICON = "map-pin"

CLUSTER_COUNT_CAP = 99
CLUSTER_MIN_SIZE = 38
CLUSTER_MAX_SIZE = 56
CLUSTER_Z_BASE = 1000


@dataclass(frozen=True)
class Badge:
    label: str
    color: str


@dataclass(frozen=True)
class PinVisual:
    color: str
    icon: str
    title: str
    badge: Badge | None = None
    size: int = 36


@dataclass(frozen=True)
class ClusterVisual:
    label: str
    size: int
    font_size: int
    z_index: int


def pin_visual(record: MemoryRecord) -> PinVisual:
    """Category picks color and icon, author picks the badge."""
    user = USERS.get(record.added_by)
    return PinVisual(
        color=PIN_COLORS.get(record.type, _FALLBACK_COLOR),
        icon=PIN_ICONS.get(record.type, _FALLBACK_ICON),
        title=record.name or "",
        badge=Badge(label=user.initial, color=user.color) if user else None,
    )


def cluster_label(count: int) -> str:
    return f"{CLUSTER_COUNT_CAP}+" if count > CLUSTER_COUNT_CAP else str(count)


def cluster_visual(count: int) -> ClusterVisual:
    """Bubble grows 2px per member, capped."""
    return ClusterVisual(
        label=cluster_label(count),
        size=min(CLUSTER_MAX_SIZE, CLUSTER_MIN_SIZE + count * 2),
        font_size=13 if count > CLUSTER_COUNT_CAP else 15,
        z_index=CLUSTER_Z_BASE + count,
    )
