"""Extension manifest and icon theme document parsing."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Mapping

from tabicons.errors import ErrorCode, IconEngineError
from tabicons.themes.constants import DEFAULT_ICON_THEME_ID, EXTENSION_MANIFEST_NAME
from tabicons.themes.models import (
    IconDefinition,
    IconThemeContribution,
    IconThemeDescriptor,
    IconThemeError,
)

if TYPE_CHECKING:
    from tabicons.themes.registry import IconThemeRegistry

logger = logging.getLogger(__name__)

_MAX_MANIFEST_BYTES = 512 * 1024
_MAX_DESCRIPTOR_BYTES = 4 * 1024 * 1024
_MAX_THEME_ID_LEN = 128
_MAPPING_SECTIONS = ("fileNames", "fileExtensions", "languageIds")


def parse_extension_manifest(
    extension_dir: Path, *, is_builtin: bool = False
) -> list[IconThemeContribution]:
    """Return the icon themes an extension directory contributes."""
    data = _load_json(extension_dir / EXTENSION_MANIFEST_NAME, max_bytes=_MAX_MANIFEST_BYTES)

    publisher = data.get("publisher")
    name = data.get("name")
    if isinstance(publisher, str) and isinstance(name, str) and publisher and name:
        extension_id = f"{publisher}.{name}"
    elif isinstance(name, str) and name:
        extension_id = name
    else:
        extension_id = extension_dir.name

    contributes = data.get("contributes")
    if not isinstance(contributes, dict):
        return []
    entries = contributes.get("iconThemes")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise IconThemeError(
            f"{extension_dir}: contributes.iconThemes must be a list"
        )

    contributions: list[IconThemeContribution] = []
    for entry in entries:
        if not isinstance(entry, dict):
            raise IconThemeError(f"{extension_dir}: iconThemes entries must be objects")
        theme_id = entry.get("id")
        rel_path = entry.get("path")
        if not isinstance(theme_id, str) or not theme_id.strip():
            raise IconThemeError(f"{extension_dir}: icon theme entry is missing 'id'")
        if len(theme_id) > _MAX_THEME_ID_LEN:
            raise IconThemeError(f"{extension_dir}: icon theme id {theme_id[:32]!r}... is too long")
        if not isinstance(rel_path, str) or not rel_path.strip():
            raise IconThemeError(f"{extension_dir}: icon theme {theme_id!r} is missing 'path'")
        label = entry.get("label")
        contributions.append(
            IconThemeContribution(
                theme_id=theme_id.strip(),
                label=label.strip() if isinstance(label, str) and label.strip() else theme_id,
                extension_id=extension_id,
                extension_root=extension_dir,
                descriptor_path=extension_dir / rel_path,
                is_builtin=is_builtin,
            )
        )
    return contributions


def load_icon_theme_descriptor(contribution: IconThemeContribution) -> IconThemeDescriptor:
    """Read and parse an icon theme document.

    Missing sections default to empty maps and entries of the wrong type are
    dropped; only unreadable or non-object documents are rejected.
    """
    path = contribution.descriptor_path
    data = _load_json(path, max_bytes=_MAX_DESCRIPTOR_BYTES)

    sections: dict[str, dict[str, str]] = {}
    for section in _MAPPING_SECTIONS:
        sections[section] = _string_map(data.get(section), section=section, path=path)

    return IconThemeDescriptor(
        theme_id=contribution.theme_id,
        root_dir=path.parent,
        file_names=sections["fileNames"],
        file_extensions=sections["fileExtensions"],
        language_ids=sections["languageIds"],
        icon_definitions=_parse_icon_definitions(data.get("iconDefinitions"), path=path),
    )


class IconThemeLoader:
    """Locates a theme through the registry and loads it without ever failing."""

    def __init__(
        self,
        registry: IconThemeRegistry,
        fallback_theme_id: str = DEFAULT_ICON_THEME_ID,
    ) -> None:
        self._registry = registry
        self._fallback_theme_id = fallback_theme_id

    @property
    def registry(self) -> IconThemeRegistry:
        return self._registry

    @property
    def fallback_theme_id(self) -> str:
        return self._fallback_theme_id

    async def load(self, theme_id: str | None) -> IconThemeDescriptor:
        requested = (theme_id or "").strip()
        if not requested:
            logger.info("no icon theme configured; file icons disabled")
            return IconThemeDescriptor.empty()

        contribution = self._registry.find(requested)
        if contribution is None and self._fallback_theme_id != requested:
            logger.info(
                "icon theme %r not found, trying fallback %r",
                requested,
                self._fallback_theme_id,
            )
            contribution = self._registry.find(self._fallback_theme_id)
        if contribution is None:
            IconEngineError(
                ErrorCode.THEME_NOT_FOUND,
                theme_id=requested,
                details={"fallback": self._fallback_theme_id},
            ).log(logger)
            return IconThemeDescriptor.empty(requested)

        logger.info(
            "loading icon theme %s from %s", contribution.theme_id, contribution.extension_id
        )
        try:
            return await asyncio.to_thread(load_icon_theme_descriptor, contribution)
        except IconThemeError as exc:
            IconEngineError(
                ErrorCode.DESCRIPTOR_MALFORMED,
                path=contribution.descriptor_path,
                theme_id=contribution.theme_id,
                details={"reason": str(exc)},
            ).log(logger)
            return IconThemeDescriptor.empty(requested)


def _parse_icon_definitions(raw: object, *, path: Path) -> dict[str, IconDefinition]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.debug("%s: iconDefinitions is not an object; ignoring", path)
        return {}

    definitions: dict[str, IconDefinition] = {}
    for icon_id, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        icon_path = entry.get("iconPath") or entry.get("path") or ""
        definitions[icon_id] = IconDefinition(
            icon_path=icon_path if isinstance(icon_path, str) else "",
            font_character=_optional_str(entry, "fontCharacter"),
            font_color=_optional_str(entry, "fontColor"),
            font_id=_optional_str(entry, "fontId"),
        )
    return definitions


def _string_map(raw: object, *, section: str, path: Path) -> dict[str, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        logger.debug("%s: %s is not an object; ignoring", path, section)
        return {}
    return {
        key: value
        for key, value in raw.items()
        if isinstance(value, str) and value
    }


def _optional_str(entry: Mapping[str, object], key: str) -> str:
    value = entry.get(key)
    return value if isinstance(value, str) else ""


def _load_json(path: Path, *, max_bytes: int) -> Mapping[str, object]:
    content = _read_text_limited(path, max_bytes=max_bytes)
    try:
        data = json.loads(content)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError, oversized integer literals and excessive nesting.
        raise IconThemeError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise IconThemeError(f"Expected JSON object in {path}")
    return data


def _read_text_limited(path: Path, *, max_bytes: int) -> str:
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise IconThemeError(f"Unable to stat {path}: {exc}") from exc
    if size > max_bytes:
        raise IconThemeError(f"{path}: file exceeds max size ({max_bytes} bytes)")
    try:
        return path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise IconThemeError(f"Unable to read {path}: {exc}") from exc
