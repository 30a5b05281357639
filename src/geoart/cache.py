"""On-disk JSON cache for lookup results and raw map data.

Entries are plain JSON files named ``<key>.<type>.json`` in the cache
directory. Reads and writes never raise: a broken entry is treated as a miss
and a failed write is logged and reported through the return value.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Callable
from enum import Enum
from pathlib import Path
from typing import Any


__all__ = [
    "CacheType",
    "cache_get",
    "cache_key",
    "cache_set",
    "clear_cache",
    "get_cache_dir",
    "get_cache_stats",
]


logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^\w.\-]+")


class CacheType(Enum):
    """Kinds of cached data, each kept under its own filename suffix."""

    COORDS = "coords"  # (lat, lon) from a place-name lookup
    PLACE = "place"  # {"city", "country"} from a reverse lookup
    OVERPASS = "overpass"  # raw Overpass JSON payload

    @property
    def suffix(self) -> str:
        return f".{self.value}.json"


def _decode_coords(data: Any) -> Any:
    # JSON has no tuples
    if isinstance(data, list) and len(data) == 2:
        return (float(data[0]), float(data[1]))
    return data


_DECODERS: dict[CacheType, Callable[[Any], Any]] = {
    CacheType.COORDS: _decode_coords,
}


def get_cache_dir() -> Path:
    """Return the cache directory from ``GEOART_CACHE_DIR``, creating it if needed."""
    cache_path = Path(os.environ.get("GEOART_CACHE_DIR", ".cache"))
    cache_path.mkdir(parents=True, exist_ok=True)
    return cache_path


def cache_key(prefix: str, *parts: object) -> str:
    """Join a prefix and key parts into a filename-safe cache key.

    Strings are lower-cased; anything outside letters, digits, ``.`` and ``-``
    collapses to a single underscore.
    """
    pieces = [prefix, *(str(part).lower() for part in parts)]
    return "_".join(_UNSAFE_KEY_CHARS.sub("_", piece) for piece in pieces)


def _entry_path(key: str, cache_type: CacheType) -> Path:
    return get_cache_dir() / f"{_UNSAFE_KEY_CHARS.sub('_', key)}{cache_type.suffix}"


def cache_get(key: str, cache_type: CacheType) -> Any | None:
    """Return the cached value for a key, or None on a miss or a broken entry."""
    path = _entry_path(key, cache_type)
    if not path.is_file():
        logger.debug("Cache miss", extra={"key": key, "type": cache_type.value})
        return None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Cache read error for %s: %s", key, e)
        return None

    logger.debug("Cache hit", extra={"key": key, "type": cache_type.value})
    decode = _DECODERS.get(cache_type)
    return decode(data) if decode else data


def cache_set(key: str, value: Any, cache_type: CacheType) -> bool:
    """Store a JSON-serializable value.

    Returns:
        True if the entry was written, False otherwise.
    """
    try:
        text = json.dumps(list(value) if isinstance(value, tuple) else value)
    except (TypeError, ValueError) as e:
        logger.warning("Cache value for %s is not JSON serializable: %s", key, e)
        return False

    path = _entry_path(key, cache_type)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        logger.warning("Cache write error for %s: %s", key, e)
        return False

    logger.debug("Cache write", extra={"key": key, "type": cache_type.value})
    return True


def get_cache_stats() -> dict[str, Any]:
    """Summarize the cache directory.

    Returns:
        Dict with ``total_files``, ``total_size_bytes``, ``total_size_mb`` and
        ``by_type`` (``files``, ``size_bytes``, ``size_mb`` per cache type).
    """
    cache_dir = get_cache_dir()
    by_type: dict[str, dict[str, Any]] = {}

    for cache_type in CacheType:
        sizes = [path.stat().st_size for path in cache_dir.glob(f"*{cache_type.suffix}")]
        by_type[cache_type.value] = {
            "files": len(sizes),
            "size_bytes": sum(sizes),
            "size_mb": round(sum(sizes) / (1024 * 1024), 2),
        }

    total_bytes = sum(entry["size_bytes"] for entry in by_type.values())
    return {
        "total_files": sum(entry["files"] for entry in by_type.values()),
        "total_size_bytes": total_bytes,
        "total_size_mb": round(total_bytes / (1024 * 1024), 2),
        "by_type": by_type,
    }


def clear_cache(cache_type: CacheType | None = None) -> int:
    """Delete cache entries of one type, or of every type.

    Returns:
        Number of files deleted.
    """
    cache_dir = get_cache_dir()
    types = [cache_type] if cache_type is not None else list(CacheType)
    deleted = 0

    for ct in types:
        for path in cache_dir.glob(f"*{ct.suffix}"):
            try:
                path.unlink()
            except OSError as e:
                logger.warning("Failed to delete %s: %s", path, e)
                continue
            deleted += 1

    logger.info("Cleared %d cache files", deleted)
    return deleted
