"""Icon lookup service: owns the active lookup table and both cache tiers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Iterable, Mapping

from PySide6.QtCore import QObject, Signal

from tabicons.errors import ErrorCode, IconEngineError
from tabicons.icons.cache import CacheKey, IconCache, cache_key
from tabicons.icons.renderer import AssetReader, asset_path_for, render_asset, render_icon
from tabicons.icons.resolver import resolve_icon_id
from tabicons.themes.compiler import compile_lookup_table
from tabicons.themes.constants import DEFAULT_PRELOAD_BATCH_SIZE
from tabicons.themes.loader import IconThemeLoader
from tabicons.themes.models import FALLBACK_ICON, FallbackIcon, LookupTable, RenderedIcon
from tabicons.themes.registry import IconThemeRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PreloadReport:
    total: int = 0
    resolved: int = 0
    cached: int = 0
    fallbacks: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)
    skipped: bool = False


class TabIconManager(QObject):
    """Resolves and caches file icons for the active icon theme.

    The lookup table is an immutable value; a rebuild compiles a new one and
    publishes it with a single reference swap, clearing the cache in the same
    step. ``ready`` is emitted after every completed (re)build.
    """

    ready = Signal(str)

    def __init__(
        self,
        loader: IconThemeLoader,
        *,
        theme_id: str = "",
        cache_negative: bool = False,
        batch_size: int = DEFAULT_PRELOAD_BATCH_SIZE,
        reader: AssetReader | None = None,
    ) -> None:
        super().__init__()
        self._loader = loader
        self._theme_id = theme_id
        self._batch_size = max(1, batch_size)
        self._reader = reader or AssetReader()
        self._cache = IconCache(cache_negative=cache_negative)
        self._table: LookupTable | None = None
        self._generation = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._init_task: asyncio.Task | None = None
        self._rebuild_task: asyncio.Task | None = None
        self._rebuild_lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None
        self._is_preloading = False

    @classmethod
    def from_settings(
        cls,
        settings,
        registry: IconThemeRegistry,
        *,
        reader: AssetReader | None = None,
    ) -> TabIconManager:
        loader = IconThemeLoader(registry, fallback_theme_id=settings.fallback_icon_theme_id)
        return cls(
            loader,
            theme_id=settings.icon_theme_id,
            cache_negative=settings.cache_negative_results,
            batch_size=settings.preload_batch_size,
            reader=reader,
        )

    @property
    def theme_id(self) -> str:
        return self._theme_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def table(self) -> LookupTable | None:
        return self._table

    @property
    def cache(self) -> IconCache:
        return self._cache

    @property
    def is_preloading(self) -> bool:
        return self._is_preloading

    # -- lifecycle --

    def initialize(self) -> asyncio.Task:
        """Start the first build, or return the one already in flight."""
        if self._init_task is None:
            self._loop = asyncio.get_running_loop()
            self._init_task = self._loop.create_task(self._initial_build())
        return self._init_task

    async def wait_for_init(self) -> None:
        if self._init_task is not None:
            await self._init_task

    def attach(self, theme_service) -> None:
        """Rebuild whenever the service announces an icon theme change."""
        theme_service.icon_theme_changed.connect(self._on_icon_theme_changed)

    def pending_rebuild(self) -> asyncio.Task | None:
        return self._rebuild_task

    async def change_theme(self, theme_id: str) -> LookupTable:
        self._theme_id = theme_id
        return await self.rebuild(force=True)

    async def rebuild(self, *, force: bool = False) -> LookupTable:
        """Load and compile the active theme, then publish it.

        Without ``force`` an existing table for the same theme id is reused.
        """
        async with self._lock():
            theme_id = self._theme_id
            current = self._table
            if current is not None and not force and current.requested_theme_id == theme_id:
                logger.debug("icon table already built for theme %r", theme_id)
                return current

            descriptor = await self._loader.load(theme_id)
            generation = self._generation + 1
            table = compile_lookup_table(
                descriptor, requested_theme_id=theme_id, generation=generation
            )
            self._cache.invalidate(generation)
            self._generation = generation
            self._table = table

        logger.info(
            "icon table built: theme=%s requested=%s keys=%d generation=%d",
            descriptor.theme_id or "-",
            theme_id or "-",
            len(table),
            generation,
        )
        self.ready.emit(descriptor.theme_id)
        return table

    def invalidate(self) -> None:
        """Drop every cached icon and asset path for the current table.

        The generation is kept: the table is unchanged, so a lookup already
        in flight may still store its (current) result afterwards.
        """
        self._cache.invalidate(self._generation)

    # -- lookups --

    async def get_or_resolve(self, file_name: str, language_id: str | None = None) -> RenderedIcon:
        """Return the icon for a file. Never raises; failures yield the fallback glyph."""
        key = cache_key(file_name, language_id)
        if not self._is_stale():
            cached = self._cache.get_result(key)
            if cached is not None:
                return cached
        try:
            return await self._resolve(key, file_name, language_id)
        except Exception:
            logger.exception("error getting icon for %s", file_name)
            return FALLBACK_ICON

    def get_cached_icon(self, file_name: str, language_id: str | None = None) -> RenderedIcon | None:
        return self._cache.peek_result(cache_key(file_name, language_id))

    async def preload(
        self,
        file_names: Iterable[str],
        concurrency_limit: int | None = None,
        *,
        language_ids: Mapping[str, str] | None = None,
        force: bool = False,
    ) -> PreloadReport:
        """Warm the cache in sequential batches of ``concurrency_limit`` files.

        A file that fails is logged and counted; it never stops the preload.
        """
        if self._is_preloading and not force:
            return PreloadReport(skipped=True)

        limit = max(1, concurrency_limit or self._batch_size)
        names = list(dict.fromkeys(name for name in file_names if name))
        languages = language_ids or {}
        report = PreloadReport(total=len(names))

        self._is_preloading = True
        try:
            await self._current_table()
            for start in range(0, len(names), limit):
                batch = names[start:start + limit]
                await asyncio.gather(
                    *(
                        self._preload_one(name, languages.get(name), report, force=force)
                        for name in batch
                    )
                )
        finally:
            self._is_preloading = False

        logger.info(
            "preloaded %d icons: resolved=%d cached=%d fallback=%d failed=%d",
            report.total,
            report.resolved,
            report.cached,
            report.fallbacks,
            len(report.failures),
        )
        return report

    # -- internals --

    async def _initial_build(self) -> None:
        table = await self.rebuild(force=False)
        logger.info(
            "icon map initialized: theme=%s size=%d",
            table.descriptor.theme_id or "-",
            len(table),
        )

    def _is_stale(self) -> bool:
        table = self._table
        return table is not None and table.requested_theme_id != self._theme_id

    async def _current_table(self) -> LookupTable:
        if self._table is None:
            await self.initialize()
        elif self._is_stale():
            # Requested theme differs from the published table.
            self._loop = asyncio.get_running_loop()
            await self.rebuild()
        return self._table

    async def _resolve(self, key: CacheKey, file_name: str, language_id: str | None) -> RenderedIcon:
        table = await self._current_table()
        generation = table.generation
        descriptor = table.descriptor

        icon_path = self._cache.get_path(key)
        if icon_path is None:
            icon_id = resolve_icon_id(table, file_name, language_id)
            if icon_id is None:
                IconEngineError(
                    ErrorCode.NO_MATCH,
                    theme_id=descriptor.theme_id,
                    details={"file": file_name},
                ).log(logger)
                return FALLBACK_ICON
            icon_path = asset_path_for(icon_id, descriptor)
            if icon_path is None:
                icon = await render_icon(icon_id, descriptor, self._reader)
                self._cache.store_result(key, icon, generation=generation)
                return icon
            self._cache.store_path(key, icon_path, generation=generation)

        icon = await render_asset(icon_path, descriptor, self._reader)
        self._cache.store_result(key, icon, generation=generation)
        return icon

    async def _preload_one(
        self,
        file_name: str,
        language_id: str | None,
        report: PreloadReport,
        *,
        force: bool,
    ) -> None:
        key = cache_key(file_name, language_id)
        if not force and key in self._cache:
            report.cached += 1
            return
        try:
            icon = await self._resolve(key, file_name, language_id)
        except Exception as exc:
            logger.exception("error preloading icon for %s", file_name)
            report.failures.append((file_name, str(exc) or exc.__class__.__name__))
            return
        if isinstance(icon, FallbackIcon):
            report.fallbacks += 1
        else:
            report.resolved += 1

    def _lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._rebuild_lock is None or self._lock_loop is not loop:
            self._rebuild_lock = asyncio.Lock()
            self._lock_loop = loop
        return self._rebuild_lock

    def _on_icon_theme_changed(self, theme_id: str) -> None:
        logger.info("icon theme changed to %r, rebuilding map", theme_id)
        loop = self._loop
        if loop is None or loop.is_closed():
            # Not initialized yet; the first build picks up the new id.
            self._theme_id = theme_id
            return
        self._rebuild_task = loop.create_task(self.change_theme(theme_id))
