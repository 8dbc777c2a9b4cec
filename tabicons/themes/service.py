"""Active icon theme selection and change notification."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QObject, Signal

from tabicons.themes.models import IconThemeSummary
from tabicons.themes.registry import IconThemeRegistry


class IconThemeService(QObject):
    """Tracks the configured icon theme and announces changes."""

    icon_theme_changed = Signal(str)

    def __init__(self, settings, registry: IconThemeRegistry) -> None:
        super().__init__()
        self._settings = settings
        self._registry = registry

    @property
    def registry(self) -> IconThemeRegistry:
        return self._registry

    @property
    def active_icon_theme_id(self) -> str:
        return self._settings.icon_theme_id

    @property
    def extensions_dir(self) -> Path | None:
        return self._registry.user_root

    def set_extensions_dir(self, path: Path | None) -> None:
        self._registry.set_user_root(path)

    def reload_themes(self) -> list[str]:
        self._registry.reload()
        return self._registry.load_errors()

    def available_themes(self) -> list[IconThemeSummary]:
        return self._registry.list_themes()

    def set_icon_theme(self, theme_id: str, *, persist: bool = True) -> tuple[bool, str]:
        """Select an icon theme and notify listeners.

        Re-selecting the current theme still emits, so listeners can force a
        rebuild when the theme's file changed on disk.
        """
        cleaned = (theme_id or "").strip()
        contribution = self._registry.find(cleaned) if cleaned else None
        if persist:
            self._settings.icon_theme_id = cleaned
        self.icon_theme_changed.emit(cleaned)
        if not cleaned:
            return True, "File icons disabled."
        if contribution is None:
            return False, f"Icon theme not found: {cleaned}; using fallback."
        return True, f"Applied icon theme: {contribution.label}"
