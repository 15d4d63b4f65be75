"""Metadata cache for the last spec written to ``_internal/openapi.json``.

The cache is a single JSON file (``_internal/.api-cache.json``) holding the
SHA-256 hash of the cached spec bytes, when it was saved, and where it came
from. Comparing a freshly fetched spec's hash against it decides whether
the client needs to be regenerated.

A missing, unreadable, or malformed cache file is treated as "no cache":
the next fetch simply regenerates.

See Also:
    :class:`~clientforge.models.CacheMetadata` -- the Pydantic model that
    validates the file.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from clientforge.config import _atomic_write
from clientforge.models import CacheMetadata


class SpecCache:
    """Read and write the spec cache metadata file.

    Args:
        cache_path: Location of ``.api-cache.json``.

    Example::

        from clientforge.cache import SpecCache

        cache = SpecCache(paths.cache)
        if cache.has_changed(new_hash):
            ...  # regenerate
        cache.save(CacheMetadata(hash=new_hash, timestamp=now_ms, endpoint=url))
    """

    def __init__(self, cache_path: str | Path) -> None:
        self._path = Path(cache_path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[CacheMetadata]:
        """Return the stored metadata, or ``None`` when absent or corrupt."""
        try:
            raw = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None
        try:
            return CacheMetadata.model_validate_json(raw)
        except PydanticValidationError:
            return None

    def save(self, metadata: CacheMetadata) -> None:
        """Atomically replace the metadata file."""
        _atomic_write(self._path, metadata.model_dump_json(indent=2) + "\n")

    def record(self, hash: str, endpoint: str) -> CacheMetadata:
        """Save metadata for *hash* stamped with the current time."""
        metadata = CacheMetadata(
            hash=hash, timestamp=int(time.time() * 1000), endpoint=endpoint
        )
        self.save(metadata)
        return metadata

    def has_changed(self, hash: str, force: bool = False) -> bool:
        """Whether *hash* differs from the cached one.

        Always ``True`` when *force* is set or no valid cache exists.
        """
        if force:
            return True
        metadata = self.load()
        return metadata is None or metadata.hash != hash

    def clear(self) -> None:
        """Delete the metadata file if it exists."""
        self._path.unlink(missing_ok=True)

    def stats(self) -> dict[str, Any]:
        """Return cache details for display.

        Returns:
            ``{"cached": False}`` without valid metadata, otherwise
            ``cached``, ``hash``, ``endpoint``, ``timestamp`` (epoch ms) and
            ``age_seconds``.
        """
        metadata = self.load()
        if metadata is None:
            return {"cached": False}
        return {
            "cached": True,
            "hash": metadata.hash,
            "endpoint": metadata.endpoint,
            "timestamp": metadata.timestamp,
            "age_seconds": max(0.0, time.time() - metadata.timestamp / 1000),
        }
