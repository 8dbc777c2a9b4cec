"""In-memory two-tier icon cache."""

from __future__ import annotations

from tabicons.themes.models import FallbackIcon, RenderedIcon

CacheKey = tuple[str, str]


def cache_key(file_name: str, language_id: str | None = None) -> CacheKey:
    return file_name.lower(), language_id or ""


class IconCache:
    """Caches rendered icons and theme-relative asset paths per file.

    Every entry belongs to one lookup table generation. ``invalidate`` clears
    both tiers and moves to a new generation; writes stamped with an older
    generation are dropped so a resolution that started under a previous
    theme can never repopulate the cache.
    """

    def __init__(self, *, cache_negative: bool = False) -> None:
        self._results: dict[CacheKey, RenderedIcon] = {}
        self._paths: dict[CacheKey, str] = {}
        self._generation = 0
        self._cache_negative = cache_negative
        self._hits = 0
        self._misses = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def cache_negative(self) -> bool:
        return self._cache_negative

    def get_result(self, key: CacheKey) -> RenderedIcon | None:
        icon = self._results.get(key)
        if icon is None:
            self._misses += 1
        else:
            self._hits += 1
        return icon

    def peek_result(self, key: CacheKey) -> RenderedIcon | None:
        """Return a cached icon without touching hit/miss counters."""
        return self._results.get(key)

    def get_path(self, key: CacheKey) -> str | None:
        return self._paths.get(key)

    def store_result(self, key: CacheKey, icon: RenderedIcon, *, generation: int) -> bool:
        if generation != self._generation:
            return False
        if isinstance(icon, FallbackIcon) and not self._cache_negative:
            return False
        self._results[key] = icon
        return True

    def store_path(self, key: CacheKey, icon_path: str, *, generation: int) -> bool:
        if generation != self._generation:
            return False
        self._paths[key] = icon_path
        return True

    def invalidate(self, generation: int | None = None) -> None:
        """Clear both tiers and start a new generation."""
        self._results = {}
        self._paths = {}
        self._generation = self._generation + 1 if generation is None else generation

    def stats(self) -> dict[str, int]:
        return {
            "results": len(self._results),
            "paths": len(self._paths),
            "hits": self._hits,
            "misses": self._misses,
            "generation": self._generation,
        }

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, key: object) -> bool:
        return key in self._results
