"""Persistent source URL -> image URL mapping."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

import orjson

logger = logging.getLogger("preview_resolver")


class CacheStore:
    """JSON file holding the resolved preview image for each source URL."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def load(self) -> Dict[str, str]:
        """Read the persisted mapping; a missing or corrupt file yields ``{}``."""
        if not self.path.exists():
            logger.info("No cache at %s, starting empty", self.path)
            return {}
        try:
            data = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.warning("Failed to load cache %s, starting fresh: %s", self.path, exc)
            return {}

        if not isinstance(data, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in data.items()
        ):
            logger.warning("Cache %s is not a URL mapping, starting fresh", self.path)
            return {}

        logger.info("Loaded %d cached thumbnails", len(data))
        return data

    @staticmethod
    def get(mapping: Mapping[str, str], url: str) -> Optional[str]:
        return mapping.get(url)

    def persist(self, mapping: Mapping[str, str]) -> Path:
        """Overwrite the cache file with ``mapping`` in full."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_bytes(orjson.dumps(dict(mapping), option=orjson.OPT_INDENT_2))
        logger.debug("Wrote %d entries to %s", len(mapping), self.path)
        return self.path
