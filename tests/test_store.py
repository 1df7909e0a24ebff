"""Tests for the markdown-backed memory store."""

from __future__ import annotations

from pathlib import Path

import frontmatter
import pytest

from lovemap.memory.store import MemoryStore


@pytest.fixture
def store(tmp_path: Path) -> MemoryStore:
    return MemoryStore(tmp_path / "memories")


def _add(store: MemoryStore, **kwargs):
    fields = {"lat": 37.7749, "lng": -122.4194, "type": "love", "added_by": "melo"}
    fields.update(kwargs)
    return store.create(**fields)


class TestCreate:
    def test_creates_directory(self, store: MemoryStore):
        assert store.root.is_dir()

    def test_writes_frontmatter_file(self, store: MemoryStore):
        record = _add(store, name="Golden Gate", memo="First date!", date="2023-06-01")

        post = frontmatter.load(str(store.root / f"{record.id}.md"))
        assert post["name"] == "Golden Gate"
        assert post["lat"] == pytest.approx(37.7749)
        assert post["added_by"] == "melo"
        assert post.content == "First date!"

    def test_defaults(self, store: MemoryStore):
        record = _add(store)
        assert record.date  # today
        assert record.created_at == record.updated_at
        assert record.photos == ()

    def test_rejects_unknown_type(self, store: MemoryStore):
        with pytest.raises(ValueError, match="Unknown memory type"):
            _add(store, type="work")

    def test_rejects_unknown_user(self, store: MemoryStore):
        with pytest.raises(ValueError, match="Unknown user"):
            _add(store, added_by="stranger")


class TestReadBack:
    def test_index_rebuilt_from_disk(self, store: MemoryStore):
        record = _add(store, name="Cafe", photos=["a.jpg", "b.jpg"], cover_photo_url="c.jpg")

        reopened = MemoryStore(store.root)
        loaded = reopened.get(record.id)
        assert loaded == record

    def test_malformed_file_skipped(self, store: MemoryStore):
        _add(store)
        (store.root / "broken.md").write_text("---\nname: no coords\n---\n", encoding="utf-8")

        reopened = MemoryStore(store.root)
        assert len(reopened.list()) == 1

    def test_get_missing(self, store: MemoryStore):
        with pytest.raises(KeyError):
            store.get("nope")


class TestList:
    def test_filter_by_author(self, store: MemoryStore):
        _add(store, added_by="melo")
        _add(store, added_by="may")
        _add(store, added_by="may")

        assert len(store.list()) == 3
        assert {r.added_by for r in store.list(added_by="may")} == {"may"}
        assert len(store.list(added_by="may")) == 2

    def test_newest_first(self, store: MemoryStore):
        older = _add(store, name="older")
        newer = _add(store, name="newer")
        # Both land in the same second; pin the timestamps on disk
        for r, ts in ((older, "2024-01-01T00:00:00"), (newer, "2024-06-01T00:00:00")):
            path = store.root / f"{r.id}.md"
            post = frontmatter.load(str(path))
            post["created_at"] = ts
            path.write_text(frontmatter.dumps(post), encoding="utf-8")

        reopened = MemoryStore(store.root)
        assert [r.name for r in reopened.list()] == ["newer", "older"]


class TestUpdateDelete:
    def test_update_fields(self, store: MemoryStore):
        record = _add(store, name="Old")
        updated = store.update(record.id, name="New", type="food", photos=["x.jpg"])

        assert updated.name == "New"
        assert updated.type == "food"
        assert updated.photos == ("x.jpg",)
        assert updated.lat == record.lat
        assert MemoryStore(store.root).get(record.id).name == "New"

    def test_update_rejects_coordinates(self, store: MemoryStore):
        record = _add(store)
        with pytest.raises(ValueError, match="Cannot update"):
            store.update(record.id, lat=0.0)

    def test_update_rejects_bad_type(self, store: MemoryStore):
        record = _add(store)
        with pytest.raises(ValueError):
            store.update(record.id, type="work")

    def test_delete(self, store: MemoryStore):
        record = _add(store)
        assert store.delete(record.id) is True
        assert not (store.root / f"{record.id}.md").exists()
        assert store.list() == []
        assert store.delete(record.id) is False
