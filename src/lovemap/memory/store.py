"""Local memory store — one markdown file per memory.

Markdown files are the source of truth. Structured fields live in YAML
frontmatter, the memo is the body. An in-memory index (built once at startup,
updated on every write) avoids rescanning the directory.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path

import frontmatter

from lovemap.models import MEMORY_TYPES, USER_IDS, MemoryRecord

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "type", "date", "memo", "cover_photo_url", "photos"})


class MemoryStore:
    """Read/write access to the memories directory."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._index: dict[str, MemoryRecord] = {}
        self.root.mkdir(parents=True, exist_ok=True)
        self._build_index()

    # ── Index ────────────────────────────────────────────────

    def _build_index(self) -> None:
        """Scan root once, load every parseable memory file."""
        self._index.clear()
        for md_file in sorted(self.root.glob("*.md")):
            record = self._load(md_file)
            if record is not None:
                self._index[record.id] = record
        logger.debug("Indexed %d memories from %s", len(self._index), self.root)

    def _path(self, memory_id: str) -> Path:
        return self.root / f"{memory_id}.md"

    def _load(self, path: Path) -> MemoryRecord | None:
        try:
            post = frontmatter.load(str(path))
        except Exception as e:
            logger.warning("Skipping unreadable memory file %s: %s", path.name, e)
            return None
        meta = post.metadata
        try:
            return MemoryRecord(
                id=str(meta.get("id", path.stem)),
                lat=float(meta["lat"]),
                lng=float(meta["lng"]),
                type=str(meta.get("type", "love")),
                date=str(meta.get("date", "")),
                memo=post.content,
                added_by=str(meta.get("added_by", "")),
                name=meta.get("name"),
                cover_photo_url=meta.get("cover_photo_url"),
                photos=tuple(meta.get("photos") or ()),
                created_at=str(meta.get("created_at", "")),
                updated_at=str(meta.get("updated_at", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed memory file %s: %s", path.name, e)
            return None

    def _write(self, record: MemoryRecord) -> None:
        post = frontmatter.Post(
            record.memo,
            id=record.id,
            name=record.name,
            type=record.type,
            date=record.date,
            lat=record.lat,
            lng=record.lng,
            added_by=record.added_by,
            cover_photo_url=record.cover_photo_url,
            photos=list(record.photos),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
        self._path(record.id).write_text(frontmatter.dumps(post) + "\n", encoding="utf-8")
        self._index[record.id] = record

    # ── CRUD ─────────────────────────────────────────────────

    def list(self, added_by: str | None = None) -> list[MemoryRecord]:
        """All memories, newest first, optionally only those added by one user."""
        records = [
            r for r in self._index.values()
            if added_by is None or r.added_by == added_by
        ]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def get(self, memory_id: str) -> MemoryRecord:
        try:
            return self._index[memory_id]
        except KeyError:
            raise KeyError(f"Memory not found: {memory_id}") from None

    def create(
        self,
        *,
        lat: float,
        lng: float,
        type: str,
        added_by: str,
        memo: str = "",
        name: str | None = None,
        date: str | None = None,
        cover_photo_url: str | None = None,
        photos: list[str] | None = None,
    ) -> MemoryRecord:
        _check_type(type)
        if added_by not in USER_IDS:
            raise ValueError(f"Unknown user '{added_by}'. Expected one of {list(USER_IDS)}")

        ts = datetime.now().isoformat(timespec="seconds")
        record = MemoryRecord(
            id=str(uuid.uuid4()),
            lat=float(lat),
            lng=float(lng),
            type=type,
            date=date or _today(),
            memo=memo,
            added_by=added_by,
            name=name,
            cover_photo_url=cover_photo_url,
            photos=tuple(photos or ()),
            created_at=ts,
            updated_at=ts,
        )
        self._write(record)
        logger.info("Created memory %s (%s) by %s", record.id, record.name, added_by)
        return record

    def update(self, memory_id: str, **changes) -> MemoryRecord:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if "type" in changes:
            _check_type(changes["type"])
        if "photos" in changes:
            changes["photos"] = tuple(changes["photos"] or ())

        record = replace(
            self.get(memory_id),
            **changes,
            updated_at=datetime.now().isoformat(timespec="seconds"),
        )
        self._write(record)
        return record

    def delete(self, memory_id: str) -> bool:
        path = self._path(memory_id)
        existed = self._index.pop(memory_id, None) is not None
        if path.exists():
            path.unlink()
            existed = True
        if existed:
            logger.info("Deleted memory %s", memory_id)
        return existed


def _check_type(type: str) -> None:
    if type not in MEMORY_TYPES:
        raise ValueError(f"Unknown memory type '{type}'. Expected one of {list(MEMORY_TYPES)}")


def _today() -> str:
    return date.today().isoformat()
