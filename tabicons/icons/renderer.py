"""Conversion of resolved icon definitions into renderer-ready values."""

from __future__ import annotations

import asyncio
import base64
import logging
import os
from pathlib import Path

from tabicons.errors import ErrorCode, IconEngineError, classify_exception
from tabicons.themes.constants import DEFAULT_FONT_COLOR, RASTER_MIME_TYPE, SVG_MIME_TYPE
from tabicons.themes.models import (
    FALLBACK_ICON,
    FontGlyph,
    IconThemeDescriptor,
    ImageDataUri,
    RenderedIcon,
)

logger = logging.getLogger(__name__)


class AssetReader:
    """Filesystem access for icon assets, run off the event loop thread."""

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(os.path.isfile, path)

    async def read_bytes(self, path: str) -> bytes:
        return await asyncio.to_thread(Path(path).read_bytes)


_DEFAULT_READER = AssetReader()


def asset_path_for(icon_id: str | None, descriptor: IconThemeDescriptor) -> str | None:
    """Return the theme-relative asset path of an image definition."""
    if not icon_id:
        return None
    definition = descriptor.icon_definitions.get(icon_id)
    if definition is None or definition.is_font:
        return None
    return definition.icon_path or None


def mime_type_for(asset_path: str) -> str:
    return SVG_MIME_TYPE if asset_path.lower().endswith(".svg") else RASTER_MIME_TYPE


def asset_candidates(icon_path: str, root_dir: Path) -> list[str]:
    """Absolute paths to probe for an asset, resolve-style first."""
    normalized = icon_path.replace("/", os.sep) if os.sep != "/" else icon_path
    joined = os.path.join(str(root_dir), normalized)
    resolved = os.path.abspath(joined)
    return list(dict.fromkeys((resolved, joined)))


async def render_icon(
    icon_id: str | None,
    descriptor: IconThemeDescriptor,
    reader: AssetReader | None = None,
) -> RenderedIcon:
    """Render an icon-definition id. Never raises."""
    if not icon_id:
        return FALLBACK_ICON
    definition = descriptor.icon_definitions.get(icon_id)
    if definition is None:
        # Dangling id in the theme document.
        logger.warning(
            "%s",
            IconEngineError(
                ErrorCode.NO_MATCH,
                message=f"Icon definition {icon_id!r} is missing from theme",
                theme_id=descriptor.theme_id,
            ),
        )
        return FALLBACK_ICON
    if definition.is_font:
        return FontGlyph(
            character=definition.font_character,
            color=definition.font_color or DEFAULT_FONT_COLOR,
            font_id=definition.font_id,
        )
    if not definition.icon_path:
        logger.debug("icon definition %r has neither font character nor path", icon_id)
        return FALLBACK_ICON
    return await render_asset(definition.icon_path, descriptor, reader)


async def render_asset(
    icon_path: str,
    descriptor: IconThemeDescriptor,
    reader: AssetReader | None = None,
) -> RenderedIcon:
    """Read a theme-relative asset and encode it as a data URI. Never raises."""
    reader = reader or _DEFAULT_READER
    if descriptor.root_dir is None or not icon_path:
        return FALLBACK_ICON

    candidates = asset_candidates(icon_path, descriptor.root_dir)
    for candidate in candidates:
        try:
            if not await reader.exists(candidate):
                continue
            payload = await reader.read_bytes(candidate)
        except OSError as exc:
            classify_exception(exc, Path(candidate), theme_id=descriptor.theme_id).log(logger)
            return FALLBACK_ICON
        return ImageDataUri(
            mime_type=mime_type_for(icon_path),
            base64_payload=base64.b64encode(payload).decode("ascii"),
        )

    IconEngineError(
        ErrorCode.ASSET_UNREADABLE,
        path=Path(candidates[0]),
        theme_id=descriptor.theme_id,
        details={"icon_path": icon_path},
    ).log(logger)
    return FALLBACK_ICON
