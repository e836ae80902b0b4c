"""
CacheRegistry - process-wide memo of successful loads.

The registry provides:
- O(1) lookup by request key
- A single store per successful attempt
- Bulk invalidation when the release changes (no per-key eviction)

Keys are the requested package identifiers joined in request order.
They are not sorted or deduplicated, so ["a", "b"] and ["b", "a"] are
separate entries. The release is not part of the key; the whole registry
is flushed instead when the release changes.
"""

from typing import Any, Optional, Sequence


KEY_SEPARATOR = ","

LoadResult = dict[str, Any]


def cache_key(packages: Sequence[str]) -> str:
    """Build the cache key for a request, preserving order."""
    return KEY_SEPARATOR.join(packages)


class CacheRegistry:
    """
    Mapping from cache key to LoadResult, scoped to one release.

    Usage:
        cache = CacheRegistry()
        if cache.release != release:
            cache.invalidate_all(release)
        result = cache.lookup(key)
        ...
        cache.store(key, result)
        cache.record_release(release)
    """

    def __init__(self) -> None:
        self._entries: dict[str, LoadResult] = {}
        self._release: Optional[str] = None

    @property
    def release(self) -> Optional[str]:
        """Release recorded at the last invalidation or successful load."""
        return self._release

    def lookup(self, key: str) -> Optional[LoadResult]:
        """Return the cached result for key, or None."""
        return self._entries.get(key)

    def store(self, key: str, result: LoadResult) -> None:
        """Commit the result of a successful attempt."""
        self._entries[key] = result

    def record_release(self, release: str) -> None:
        self._release = release

    def invalidate_all(self, new_release: str) -> None:
        """Drop every entry and record new_release."""
        self._entries.clear()
        self._release = new_release

    def keys(self) -> list[str]:
        return list(self._entries.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CacheRegistry(release={self._release!r}, entries={len(self._entries)})"
