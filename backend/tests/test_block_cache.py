"""Tests for the on-disk block cache."""

from __future__ import annotations

from pathlib import Path

from statement_parser.block_cache import BlockCache


def test_put_then_get(tmp_path: Path) -> None:
    cache = BlockCache(tmp_path / "cache")
    blocks = [{"Id": "b1", "BlockType": "PAGE"}]

    path = cache.put("job/1", blocks)

    assert path.parent == tmp_path / "cache"
    assert "job" not in path.name
    assert cache.get("job/1") == blocks
    assert cache.get("job/2") is None


def test_malformed_entries_are_ignored(tmp_path: Path) -> None:
    cache = BlockCache(tmp_path)
    cache.put("job-1", [])
    path = cache.put("job-2", [])
    path.write_text('{"Blocks": []}', encoding="utf-8")
    cache.put("job-3", []).write_text("not json", encoding="utf-8")

    assert cache.get("job-1") == []
    assert cache.get("job-2") is None
    assert cache.get("job-3") is None
