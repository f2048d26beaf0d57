"""Tests for the local draft caches."""

from __future__ import annotations

import stat
import typing as typ

import pytest

from sb_sites.cache import FileCache, MemoryCache

if typ.TYPE_CHECKING:
    from pathlib import Path


def test_memory_cache_copies_values() -> None:
    cache = MemoryCache({"sb:1": {"slug": "a"}})
    value = cache.get("sb:1")
    value["slug"] = "changed"
    assert cache.get("sb:1") == {"slug": "a"}
    cache.delete("sb:1")
    assert "sb:1" not in cache
    assert cache.get("sb:1") is None


def test_file_cache_survives_new_instance(tmp_path: Path) -> None:
    FileCache(tmp_path).set("sb:42", {"slug": "studio", "draft": None})
    reopened = FileCache(tmp_path)
    assert reopened.get("sb:42") == {"slug": "studio", "draft": None}


def test_file_cache_restricts_permissions(tmp_path: Path) -> None:
    cache = FileCache(tmp_path / "nested")
    cache.set("sb:revert:42", True)
    path = cache.path_for("sb:revert:42")
    assert path.parent == tmp_path / "nested"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert list(path.parent.glob(".sb-cache-*")) == []


def test_file_cache_reports_corrupt_entries_as_missing(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    cache = FileCache(tmp_path)
    cache.path_for("sb:1").write_text("{not json", encoding="utf-8")
    assert cache.get("sb:1") is None
    assert "unreadable" in caplog.text


def test_file_cache_write_failure_raises_and_cleans_up(tmp_path: Path) -> None:
    cache = FileCache(tmp_path)
    with pytest.raises(TypeError):
        cache.set("sb:1", {"bad": object()})
    assert list(tmp_path.iterdir()) == []


def test_file_cache_delete_is_idempotent(tmp_path: Path) -> None:
    cache = FileCache(tmp_path)
    cache.delete("sb:missing")
    cache.set("sb:1", 1)
    cache.delete("sb:1")
    assert cache.get("sb:1") is None
