"""Command-line bootstrap: resolve icons for file names against the active theme."""

from __future__ import annotations

import argparse
import asyncio
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from PySide6.QtCore import QCoreApplication

from tabicons.config.settings import AppSettings
from tabicons.icons.manager import TabIconManager
from tabicons.runtime_paths import builtin_themes_root, is_frozen, package_root
from tabicons.themes.models import FallbackIcon, FontGlyph, ImageDataUri, RenderedIcon
from tabicons.themes.registry import IconThemeRegistry
from tabicons.themes.service import IconThemeService


def _configure_logger(settings: AppSettings, *, verbose: bool = False) -> logging.Logger:
    logger = logging.getLogger("tabicons")
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    log_dir = settings.app_data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / "tabicons.log",
        maxBytes=512_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
    logger.addHandler(console)
    logger.propagate = False
    return logger


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabicons",
        description="Show which icon the active icon theme assigns to each file name.",
    )
    parser.add_argument("files", nargs="*", help="file names to resolve")
    parser.add_argument("--theme", help="icon theme id to use instead of the configured one")
    parser.add_argument("--language", help="language id applied to every file")
    parser.add_argument(
        "--extensions-dir",
        type=Path,
        help="scan this extensions directory instead of the configured one",
    )
    parser.add_argument("--list-themes", action="store_true", help="list installed icon themes")
    parser.add_argument("-v", "--verbose", action="store_true", help="log to stderr")
    return parser


def describe_icon(icon: RenderedIcon) -> str:
    if isinstance(icon, ImageDataUri):
        return f"image {icon.mime_type} ({len(icon.base64_payload)} base64 chars)"
    if isinstance(icon, FontGlyph):
        text = f"glyph U+{icon.hex_code} {icon.color}"
        return f"{text} font={icon.font_id}" if icon.font_id else text
    if isinstance(icon, FallbackIcon):
        return f"fallback U+{icon.hex_code}"
    return repr(icon)


async def _resolve_all(
    manager: TabIconManager, files: list[str], language_id: str | None
) -> list[tuple[str, RenderedIcon]]:
    await manager.initialize()
    await manager.preload(files, language_ids={name: language_id for name in files if language_id})
    return [(name, await manager.get_or_resolve(name, language_id)) for name in files]


def run_app(argv: list[str] | None = None) -> int:
    """Initialize the icon engine and print one line per requested file."""
    args = _build_parser().parse_args(sys.argv[1:] if argv is None else argv)
    app = QCoreApplication.instance() or QCoreApplication([sys.argv[0]])
    app.setApplicationName("TabIcons")
    app.setOrganizationName("TabIcons")

    settings = AppSettings()
    logger = _configure_logger(settings, verbose=args.verbose)
    logger.info("startup mode frozen=%s package_root=%s", is_frozen(), package_root())

    builtin_themes = builtin_themes_root()
    if not builtin_themes.exists():
        logger.warning("builtin icon theme root missing at %s", builtin_themes)

    registry = IconThemeRegistry(builtin_root=builtin_themes, user_root=settings.extensions_dir)
    theme_service = IconThemeService(settings, registry)
    if args.extensions_dir is not None:
        theme_service.set_extensions_dir(args.extensions_dir.expanduser())
    logger.info("scanning icon themes in %s", theme_service.extensions_dir)
    errors = theme_service.reload_themes()
    if errors:
        logger.warning("icon theme load warnings: %s", " | ".join(errors[:6]))

    if args.list_themes:
        active = theme_service.active_icon_theme_id
        for summary in theme_service.available_themes():
            marker = "*" if summary.theme_id == active else " "
            print(f"{marker} {summary.theme_id}\t{summary.label}\t{summary.extension_id}")
        return 0

    manager = TabIconManager.from_settings(settings, registry)
    manager.attach(theme_service)
    if args.theme is not None:
        ok, message = theme_service.set_icon_theme(args.theme, persist=False)
        (logger.info if ok else logger.warning)("%s", message)

    results = asyncio.run(_resolve_all(manager, list(args.files), args.language))
    for name, icon in results:
        print(f"{name}\t{describe_icon(icon)}")
    return 0
