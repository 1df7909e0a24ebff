"""Upcoming anniversaries of past memories (feeds the "navigate to memory" banner)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from lovemap.models import MemoryRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Anniversary:
    record: MemoryRecord
    days_until: int
    years_ago: int
    anniversary_date: date


def _on_year(original: date, year: int) -> date:
    try:
        return original.replace(year=year)
    except ValueError:  # Feb 29 outside a leap year
        return original.replace(year=year, day=28)


def upcoming_anniversaries(
    records: Iterable[MemoryRecord],
    today: date | None = None,
    days_ahead: int = 30,
) -> list[Anniversary]:
    """Anniversaries falling within ``days_ahead`` days of ``today``, soonest first."""
    today = today or date.today()
    upcoming: list[Anniversary] = []

    for record in records:
        try:
            original = date.fromisoformat(record.date[:10])
        except ValueError:
            logger.debug("Memory %s has no usable date: %r", record.id, record.date)
            continue

        anniversary = _on_year(original, today.year)
        if anniversary < today:
            anniversary = _on_year(original, today.year + 1)

        years_ago = anniversary.year - original.year
        days_until = (anniversary - today).days
        if years_ago > 0 and 0 <= days_until <= days_ahead:
            upcoming.append(Anniversary(record, days_until, years_ago, anniversary))

    upcoming.sort(key=lambda a: a.days_until)
    return upcoming
