"""On-disk cache of raw analysis blocks, addressed by a hash of the cache key."""
from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class BlockCache:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}.json"

    def get(self, key: str) -> list[dict[str, Any]] | None:
        path = self._path_for(key)
        if not path.is_file():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", path, exc)
            return None
        if not isinstance(payload, list):
            logger.warning("Ignoring malformed cache entry %s", path)
            return None
        logger.debug("Cache hit for %s (%s blocks)", key, len(payload))
        return payload

    def put(self, key: str, blocks: list[dict[str, Any]]) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path_for(key)
        path.write_text(json.dumps(blocks, ensure_ascii=False), encoding="utf-8")
        logger.debug("Cached %s blocks for %s at %s", len(blocks), key, path)
        return path


__all__ = ["BlockCache"]
