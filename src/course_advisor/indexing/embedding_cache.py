"""
Embedding Cache Module - Content-addressed store of computed embeddings.
========================================================================

Maps a SHA256 fingerprint of chunk text to the vector the provider returned
for it, so identical text is never sent to the provider twice:
- Entries are written once and never mutated
- The cache is persisted to a JSON file after new entries are added
- Only an explicit clear() removes entries
"""

import json
from pathlib import Path
from typing import Any, Optional

from course_advisor.shared.config import get_settings
from course_advisor.shared.logging import get_logger
from course_advisor.shared.utils import compute_hash, load_json, save_json

logger = get_logger(__name__)


class EmbeddingCache:
    """
    Persistent fingerprint → vector cache.

    Example:
        >>> cache = EmbeddingCache(cache_file=Path("data/cache/embeddings.json"))
        >>> cache.put("Algebra I", [0.1, 0.2])
        >>> cache.get("Algebra I")
        [0.1, 0.2]
    """

    def __init__(
        self,
        cache_file: Optional[Path] = None,
        persist: Optional[bool] = None,
    ):
        """
        Initialize the cache, loading persisted entries if present.

        Args:
            cache_file: JSON file backing the cache (default from config)
            persist: Whether to read and write the file (default from config)
        """
        settings = get_settings()

        self.cache_file = (
            Path(cache_file)
            if cache_file is not None
            else settings.resolve_path(settings.cache.embeddings_file)
        )
        self.persist = persist if persist is not None else settings.cache.persist

        self._entries: dict[str, list[float]] = {}
        self.hits = 0
        self.misses = 0

        if self.persist:
            self._load()

    # ─────────────────────────────────────────────────────────────────────────
    # Lookup
    # ─────────────────────────────────────────────────────────────────────────

    @staticmethod
    def fingerprint(text: str, task_type: Optional[str] = None) -> str:
        """Deterministic cache key for text embedded under task_type."""
        if task_type is None:
            return compute_hash(text)
        return compute_hash(f"{task_type}\n{text}")

    def get(self, text: str, task_type: Optional[str] = None) -> Optional[list[float]]:
        """Return a copy of the cached vector for text, or None."""
        vector = self._entries.get(self.fingerprint(text, task_type))
        if vector is None:
            self.misses += 1
            return None
        self.hits += 1
        return list(vector)

    def put(self, text: str, vector: list[float], task_type: Optional[str] = None) -> bool:
        """
        Store a vector for text if none is cached yet.

        Returns:
            True if a new entry was added
        """
        key = self.fingerprint(text, task_type)
        if key in self._entries:
            return False
        self._entries[key] = list(vector)
        return True

    def __contains__(self, text: str) -> bool:
        return self.fingerprint(text) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    # ─────────────────────────────────────────────────────────────────────────
    # Persistence
    # ─────────────────────────────────────────────────────────────────────────

    def _load(self) -> None:
        """Load entries from the cache file."""
        if not self.cache_file.exists():
            return

        try:
            data = load_json(self.cache_file)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable embedding cache {self.cache_file}: {e}")
            return

        entries = data.get("entries", {}) if isinstance(data, dict) else {}
        self._entries = {
            key: [float(x) for x in vector]
            for key, vector in entries.items()
            if isinstance(vector, list) and vector
        }
        logger.info(f"Loaded {len(self._entries)} cached embeddings from {self.cache_file}")

    def save(self) -> None:
        """Write all entries to the cache file."""
        if not self.persist:
            return
        save_json(self.cache_file, {"entries": self._entries}, indent=None)
        logger.debug(f"Persisted {len(self._entries)} cached embeddings")

    def clear(self) -> int:
        """
        Remove every entry and the persisted file.

        Returns:
            Number of entries removed
        """
        cleared = len(self._entries)
        self._entries.clear()
        self.hits = 0
        self.misses = 0

        if self.persist and self.cache_file.exists():
            self.cache_file.unlink()

        logger.info(f"Cleared {cleared} cached embeddings")
        return cleared

    def stats(self) -> dict[str, Any]:
        """Cache size and hit/miss counters."""
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "file": str(self.cache_file) if self.persist else None,
        }
