"""Tests for TabIconManager caching, rebuild and preload behavior."""

from __future__ import annotations

import asyncio
import base64
from pathlib import Path
from types import SimpleNamespace

from conftest import CountingReader, write_extension
from tabicons.icons.manager import TabIconManager
from tabicons.themes.loader import IconThemeLoader
from tabicons.themes.models import FALLBACK_ICON, FontGlyph, ImageDataUri
from tabicons.themes.registry import IconThemeRegistry
from tabicons.themes.service import IconThemeService

X_SVG = b"<svg id='x'/>"
Y_SVG = b"<svg id='y'/>"


class CountingLoader(IconThemeLoader):
    def __init__(self, registry: IconThemeRegistry) -> None:
        super().__init__(registry, fallback_theme_id="missing-fallback")
        self.loads: list[str | None] = []

    async def load(self, theme_id):
        self.loads.append(theme_id)
        await asyncio.sleep(0)
        return await super().load(theme_id)


def _registry(tmp_path: Path) -> tuple[IconThemeRegistry, Path]:
    user_root = tmp_path / "extensions"
    ext_dir = write_extension(
        user_root,
        "pack",
        {
            "t1": {
                "iconDefinitions": {"iconX": {"iconPath": "./x.svg"}},
                "fileExtensions": {"ts": "iconX"},
            },
            "t2": {
                "iconDefinitions": {"iconY": {"iconPath": "./y.svg"}},
                "fileExtensions": {"ts": "iconY"},
            },
            "glyphs": {
                "iconDefinitions": {"g": {"fontCharacter": "\\E001", "fontColor": "#ffffff"}},
                "fileNames": {"license": "g"},
            },
        },
    )
    (ext_dir / "icons" / "x.svg").write_bytes(X_SVG)
    (ext_dir / "icons" / "y.svg").write_bytes(Y_SVG)
    registry = IconThemeRegistry(builtin_root=tmp_path / "builtin", user_root=user_root)
    registry.reload()
    return registry, ext_dir


def _manager(
    tmp_path: Path, theme_id: str = "t1", reader: CountingReader | None = None, **kwargs
) -> tuple[TabIconManager, CountingLoader, Path]:
    registry, ext_dir = _registry(tmp_path)
    loader = CountingLoader(registry)
    manager = TabIconManager(loader, theme_id=theme_id, reader=reader or CountingReader(), **kwargs)
    return manager, loader, ext_dir


def _payload(icon) -> bytes:
    assert isinstance(icon, ImageDataUri)
    return base64.b64decode(icon.base64_payload)


def test_initialize_is_single_flight(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)

    async def scenario():
        first = manager.initialize()
        second = manager.initialize()
        icons = await asyncio.gather(
            manager.get_or_resolve("a.ts"),
            manager.get_or_resolve("b.ts"),
            manager.get_or_resolve("c.ts"),
        )
        await manager.wait_for_init()
        return first, second, icons

    first, second, icons = asyncio.run(scenario())

    assert first is second
    assert loader.loads == ["t1"]
    assert all(_payload(icon) == X_SVG for icon in icons)


def test_lookup_without_explicit_initialize_builds_once(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)

    async def scenario():
        return await asyncio.gather(*(manager.get_or_resolve(f"{n}.ts") for n in range(4)))

    asyncio.run(scenario())

    assert loader.loads == ["t1"]
    assert manager.generation == 1


def test_second_lookup_is_cached_without_disk_reads(tmp_path: Path) -> None:
    reader = CountingReader()
    manager, _, _ = _manager(tmp_path, reader=reader)

    async def scenario():
        first = await manager.get_or_resolve("App.ts")
        reads_after_first = len(reader.read_calls)
        second = await manager.get_or_resolve("app.ts")
        return first, second, reads_after_first

    first, second, reads_after_first = asyncio.run(scenario())

    assert first is second
    assert reads_after_first == 1
    assert len(reader.read_calls) == 1
    assert manager.get_cached_icon("APP.TS") is first


def test_font_glyph_resolution_touches_no_files(tmp_path: Path) -> None:
    reader = CountingReader()
    manager, _, _ = _manager(tmp_path, theme_id="glyphs", reader=reader)

    icon = asyncio.run(manager.get_or_resolve("LICENSE"))

    assert icon == FontGlyph(character="\\E001", color="#ffffff")
    assert reader.read_calls == []
    assert reader.exists_calls == []


def test_theme_switch_invalidates_cached_results(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)
    ready: list[str] = []
    manager.ready.connect(lambda theme_id: ready.append(theme_id))

    async def scenario():
        before = await manager.get_or_resolve("app.ts")
        await manager.change_theme("t2")
        after = await manager.get_or_resolve("app.ts")
        return before, after

    before, after = asyncio.run(scenario())

    assert _payload(before) == X_SVG
    assert _payload(after) == Y_SVG
    assert loader.loads == ["t1", "t2"]
    assert ready == ["t1", "t2"]
    assert manager.generation == 2


def test_rebuild_skips_same_theme_unless_forced(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)

    async def scenario():
        first = await manager.rebuild()
        again = await manager.rebuild()
        forced = await manager.rebuild(force=True)
        return first, again, forced

    first, again, forced = asyncio.run(scenario())

    assert first is again
    assert forced is not first
    assert loader.loads == ["t1", "t1"]


def test_service_theme_change_triggers_rebuild(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)
    settings = SimpleNamespace(icon_theme_id="t1")
    service = IconThemeService(settings, loader.registry)
    manager.attach(service)

    async def scenario():
        before = await manager.get_or_resolve("app.ts")
        service.set_icon_theme("t2")
        pending = manager.pending_rebuild()
        assert pending is not None
        await pending
        after = await manager.get_or_resolve("app.ts")
        return before, after

    before, after = asyncio.run(scenario())

    assert _payload(before) == X_SVG
    assert _payload(after) == Y_SVG
    assert manager.theme_id == "t2"


def test_theme_change_before_initialize_is_picked_up(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)
    service = IconThemeService(SimpleNamespace(icon_theme_id="t1"), loader.registry)
    manager.attach(service)

    service.set_icon_theme("t2", persist=False)
    icon = asyncio.run(manager.get_or_resolve("app.ts"))

    assert _payload(icon) == Y_SVG
    assert loader.loads == ["t2"]


def test_in_flight_result_from_old_theme_is_not_cached(tmp_path: Path) -> None:
    class _GatedReader(CountingReader):
        def __init__(self) -> None:
            super().__init__()
            self.entered = asyncio.Event()
            self.release = asyncio.Event()

        async def read_bytes(self, path: str) -> bytes:
            self.entered.set()
            await self.release.wait()
            return await super().read_bytes(path)

    async def scenario():
        reader = _GatedReader()
        manager, _, _ = _manager(tmp_path, reader=reader)
        stale_task = asyncio.create_task(manager.get_or_resolve("app.ts"))
        await reader.entered.wait()
        await manager.change_theme("t2")
        reader.release.set()
        stale = await stale_task
        cached_after_swap = manager.get_cached_icon("app.ts")
        fresh = await manager.get_or_resolve("app.ts")
        return stale, cached_after_swap, fresh

    stale, cached_after_swap, fresh = asyncio.run(scenario())

    assert _payload(stale) == X_SVG
    assert cached_after_swap is None
    assert _payload(fresh) == Y_SVG


def test_unresolvable_file_falls_back_and_is_not_cached(tmp_path: Path) -> None:
    manager, _, _ = _manager(tmp_path, theme_id="not-installed")

    async def scenario():
        icon = await manager.get_or_resolve("README")
        return icon, manager.get_cached_icon("README")

    icon, cached = asyncio.run(scenario())

    assert icon is FALLBACK_ICON
    assert cached is None
    assert manager.table is not None
    assert manager.table.descriptor.is_empty


def test_negative_results_cached_when_enabled(tmp_path: Path) -> None:
    manager, _, _ = _manager(tmp_path, theme_id="not-installed", cache_negative=True)

    async def scenario():
        await manager.get_or_resolve("README")
        return manager.get_cached_icon("README")

    assert asyncio.run(scenario()) is FALLBACK_ICON


def test_path_cache_skips_resolution_after_missing_asset(tmp_path: Path) -> None:
    manager, _, ext_dir = _manager(tmp_path)
    (ext_dir / "icons" / "x.svg").unlink()

    async def scenario():
        missing = await manager.get_or_resolve("app.ts")
        cached_path = manager.cache.get_path(("app.ts", ""))
        (ext_dir / "icons" / "x.svg").write_bytes(X_SVG)
        restored = await manager.get_or_resolve("app.ts")
        return missing, cached_path, restored

    missing, cached_path, restored = asyncio.run(scenario())

    assert missing is FALLBACK_ICON
    assert cached_path == "./x.svg"
    assert _payload(restored) == X_SVG


def test_preload_survives_missing_asset(tmp_path: Path) -> None:
    user_root = tmp_path / "extensions"
    names = [f"file{n}.txt" for n in range(1, 8)]
    definitions = {f"icon{n}": {"iconPath": f"./icon{n}.svg"} for n in range(1, 8)}
    ext_dir = write_extension(
        user_root,
        "pack",
        {
            "seven": {
                "iconDefinitions": definitions,
                "fileNames": {name: f"icon{n}" for n, name in enumerate(names, start=1)},
            }
        },
    )
    for n in range(1, 8):
        if n != 3:
            (ext_dir / "icons" / f"icon{n}.svg").write_bytes(X_SVG)
    registry = IconThemeRegistry(builtin_root=tmp_path / "builtin", user_root=user_root)
    registry.reload()
    manager = TabIconManager(IconThemeLoader(registry), theme_id="seven")

    report = asyncio.run(manager.preload(set(names), concurrency_limit=5))

    assert report.total == 7
    assert report.resolved == 6
    assert report.fallbacks == 1
    assert report.failures == []
    assert len(manager.cache) == 6
    assert manager.get_cached_icon("file3.txt") is None
    assert manager.is_preloading is False


def test_preload_logs_and_skips_item_failures(tmp_path: Path, monkeypatch) -> None:
    manager, _, _ = _manager(tmp_path)
    original_resolve = manager._resolve

    async def flaky_resolve(key, file_name, language_id):
        if file_name == "b.ts":
            raise RuntimeError("boom")
        return await original_resolve(key, file_name, language_id)

    monkeypatch.setattr(manager, "_resolve", flaky_resolve)

    report = asyncio.run(manager.preload(["a.ts", "b.ts", "c.ts"], concurrency_limit=2))

    assert report.resolved == 2
    assert report.failures == [("b.ts", "boom")]
    assert manager.get_cached_icon("c.ts") is not None
    assert asyncio.run(manager.get_or_resolve("b.ts")) is FALLBACK_ICON


def test_preload_bounds_concurrency(tmp_path: Path) -> None:
    class _PeakReader(CountingReader):
        def __init__(self) -> None:
            super().__init__()
            self.active = 0
            self.peak = 0

        async def exists(self, path: str) -> bool:
            self.active += 1
            self.peak = max(self.peak, self.active)
            try:
                await asyncio.sleep(0.01)
                return await super().exists(path)
            finally:
                self.active -= 1

    reader = _PeakReader()
    manager, _, _ = _manager(tmp_path, reader=reader)
    names = [f"f{n}.ts" for n in range(12)]

    report = asyncio.run(manager.preload(names, concurrency_limit=5))

    assert report.resolved == 12
    assert 1 <= reader.peak <= 5


def test_preload_skips_already_cached_and_concurrent_runs(tmp_path: Path) -> None:
    manager, _, _ = _manager(tmp_path)

    async def scenario():
        await manager.get_or_resolve("a.ts")
        first = asyncio.create_task(manager.preload(["a.ts", "b.ts"]))
        await asyncio.sleep(0)
        second = await manager.preload(["c.ts"])
        return await first, second

    first, second = asyncio.run(scenario())

    assert first.cached == 1
    assert first.resolved == 1
    assert second.skipped is True


def test_from_settings_uses_configured_values(tmp_path: Path) -> None:
    registry, _ = _registry(tmp_path)
    settings = SimpleNamespace(
        icon_theme_id="t2",
        fallback_icon_theme_id="t1",
        cache_negative_results=True,
        preload_batch_size=3,
    )

    manager = TabIconManager.from_settings(settings, registry)

    assert manager.theme_id == "t2"
    assert manager.cache.cache_negative is True
    assert manager._batch_size == 3


def _add_unparsable_theme(tmp_path: Path, registry: IconThemeRegistry) -> None:
    ext_dir = write_extension(tmp_path / "extensions", "broken", {"bad": {}})
    (ext_dir / "icons" / "bad.json").write_text("[" * 100_000, encoding="utf-8")
    registry.reload()


def test_forced_switch_to_unparsable_theme_publishes_empty_table(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)
    _add_unparsable_theme(tmp_path, loader.registry)
    ready: list[str] = []
    manager.ready.connect(lambda theme_id: ready.append(theme_id))

    async def scenario():
        before = await manager.get_or_resolve("a.ts")
        table = await manager.change_theme("bad")
        after = await manager.get_or_resolve("a.ts")
        return before, table, after

    before, table, after = asyncio.run(scenario())

    assert _payload(before) == X_SVG
    assert table is manager.table
    assert table.requested_theme_id == "bad"
    assert table.descriptor.is_empty
    assert after is FALLBACK_ICON
    assert ready == ["t1", "bad"]


def test_preload_with_unparsable_theme_returns_report(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path, theme_id="bad")
    _add_unparsable_theme(tmp_path, loader.registry)

    report = asyncio.run(manager.preload(["a.ts", "b.ts"]))

    assert report.total == 2
    assert report.fallbacks == 2
    assert report.failures == []


def test_theme_change_between_event_loops_rebuilds(tmp_path: Path) -> None:
    manager, loader, _ = _manager(tmp_path)
    service = IconThemeService(SimpleNamespace(icon_theme_id="t1"), loader.registry)
    manager.attach(service)

    before = asyncio.run(manager.get_or_resolve("app.ts"))
    service.set_icon_theme("t2", persist=False)
    after = asyncio.run(manager.get_or_resolve("app.ts"))
    report = asyncio.run(manager.preload(["app.ts", "other.ts"]))

    assert _payload(before) == X_SVG
    assert _payload(after) == Y_SVG
    assert manager.table.requested_theme_id == "t2"
    assert loader.loads == ["t1", "t2"]
    assert report.cached == 1
    assert report.resolved == 1


def test_manual_invalidate_keeps_generation_and_recaches(tmp_path: Path) -> None:
    reader = CountingReader()
    manager, _, _ = _manager(tmp_path, reader=reader)

    async def scenario():
        await manager.get_or_resolve("a.ts")
        manager.invalidate()
        cleared = manager.get_cached_icon("a.ts")
        again = await manager.get_or_resolve("a.ts")
        return cleared, again

    cleared, again = asyncio.run(scenario())

    assert cleared is None
    assert manager.cache.generation == manager.generation == 1
    assert manager.get_cached_icon("a.ts") is again
    assert len(reader.read_calls) == 2
