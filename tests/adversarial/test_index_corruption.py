"""Adversarial tests — index tampering, store drift, hostile coordinates.

The index promises availability: a rebuild must fail loudly rather than
produce a repository that silently lacks artifacts.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from repocache.core.cache_index import CorruptIndexError
from repocache.core.cache_manager import CacheManager
from repocache.models.coordinates import ArtifactCoordinate, InvalidCoordinateError


@pytest.fixture
def populated(cache_root: Path, lib_a, lib_b, remote_repo) -> CacheManager:
    manager = CacheManager(cache_root)
    assert manager.populate({lib_a, lib_b}, [remote_repo]).ok
    return manager


class TestIndexTampering:
    def test_five_field_line_fails_rebuild(self, populated: CacheManager):
        with open(populated.index.path, "a", encoding="utf-8") as f:
            f.write("org.example:truncated:jar::1.0\n")
        with pytest.raises(CorruptIndexError):
            populated.rebuild()

    def test_deleted_store_file_fails_rebuild(self, populated: CacheManager, lib_b):
        entry = next(e for e in populated.entries() if e.coordinate == lib_b)
        populated.index.resolve_path(entry).unlink()
        with pytest.raises(CorruptIndexError, match=lib_b.name):
            populated.rebuild()

    def test_failed_rebuild_leaves_no_temp_repository(
        self, populated: CacheManager, lib_a, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        (tmp_path / "tmp").mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path / "tmp"))
        entry = next(e for e in populated.entries() if e.coordinate == lib_a)
        populated.index.resolve_path(entry).unlink()
        with pytest.raises(CorruptIndexError):
            populated.rebuild()
        assert list((tmp_path / "tmp").iterdir()) == []

    def test_missing_index_fails_rebuild(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        (tmp_path / "tmp").mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path / "tmp"))
        manager = CacheManager(tmp_path / "wrong-root")
        with pytest.raises(CorruptIndexError, match="cache.properties"):
            manager.rebuild()
        assert list((tmp_path / "tmp").iterdir()) == []

    def test_deleted_index_fails_rebuild(self, populated: CacheManager):
        populated.index.path.unlink()
        with pytest.raises(CorruptIndexError):
            populated.rebuild()

    def test_deleted_store_file_fails_populate(self, populated: CacheManager, lib_a):
        entry = next(e for e in populated.entries() if e.coordinate == lib_a)
        populated.index.resolve_path(entry).unlink()
        with pytest.raises(CorruptIndexError, match=lib_a.name):
            populated.populate({lib_a}, [])

    def test_duplicate_key_is_corrupt(self, populated: CacheManager):
        first_line = populated.index.path.read_text(encoding="utf-8").splitlines()[0]
        with open(populated.index.path, "a", encoding="utf-8") as f:
            f.write(first_line + "\n")
        with pytest.raises(CorruptIndexError, match="duplicate"):
            populated.entries()

    @pytest.mark.parametrize(
        "path",
        ["../outside.jar", "repocache/../../etc/passwd", "/etc/passwd"],
    )
    def test_escaping_path_is_corrupt(self, populated: CacheManager, path: str):
        with open(populated.index.path, "a", encoding="utf-8") as f:
            f.write(f"org.evil:x:jar::1.0:{path}\n")
        with pytest.raises(CorruptIndexError, match="escapes"):
            populated.rebuild()

    def test_half_written_last_line_fails_rebuild(self, populated: CacheManager):
        first, second = populated.index.path.read_text(encoding="utf-8").splitlines()
        populated.index.path.write_text(f"{first}\n{second[:20]}", encoding="utf-8")
        with pytest.raises(CorruptIndexError):
            populated.rebuild()


class TestHostileCoordinates:
    @pytest.mark.parametrize(
        "key",
        [
            "org.example:../../escape:jar::1.0",
            "org.example:lib:jar::..",
            "org.example:lib:jar:a/b:1.0",
            "org.example:lib\\evil:jar::1.0",
        ],
    )
    def test_path_segments_rejected(self, key: str):
        with pytest.raises(InvalidCoordinateError):
            ArtifactCoordinate.parse(key)

    def test_hostile_coordinate_never_reaches_index(
        self, populated: CacheManager, remote_repo
    ):
        before = populated.index.path.read_bytes()
        with pytest.raises(InvalidCoordinateError):
            populated.populate(["org.example:../../x:jar::1.0"], [remote_repo])
        assert populated.index.path.read_bytes() == before
