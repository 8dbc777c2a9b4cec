"""Application settings via QSettings."""

from __future__ import annotations

from pathlib import Path

from PySide6.QtCore import QSettings

from tabicons.runtime_paths import app_data_root, default_extensions_dir
from tabicons.themes.constants import (
    DEFAULT_ICON_THEME_ID,
    DEFAULT_PRELOAD_BATCH_SIZE,
    MAX_PRELOAD_BATCH_SIZE,
)


class AppSettings:
    """Wraps QSettings for persistent icon engine configuration."""

    def __init__(self, qsettings: QSettings | None = None) -> None:
        self._qs = qsettings if qsettings is not None else QSettings("TabIcons", "TabIcons")

    # -- icon theme --

    @property
    def icon_theme_id(self) -> str:
        # An explicitly blank value disables file icons.
        raw = self._qs.value("icons/theme_id", DEFAULT_ICON_THEME_ID, type=str)
        return (raw or "").strip()

    @icon_theme_id.setter
    def icon_theme_id(self, value: str) -> None:
        self._qs.setValue("icons/theme_id", (value or "").strip())

    @property
    def fallback_icon_theme_id(self) -> str:
        raw = self._qs.value("icons/fallback_theme_id", DEFAULT_ICON_THEME_ID, type=str)
        value = (raw or "").strip()
        return value or DEFAULT_ICON_THEME_ID

    @fallback_icon_theme_id.setter
    def fallback_icon_theme_id(self, value: str) -> None:
        cleaned = (value or "").strip() or DEFAULT_ICON_THEME_ID
        self._qs.setValue("icons/fallback_theme_id", cleaned)

    # -- extensions --

    @property
    def extensions_dir(self) -> Path:
        default = str(default_extensions_dir())
        raw = self._qs.value("icons/extensions_dir", default, type=str)
        value = (raw or "").strip()
        return Path(value or default).expanduser()

    @extensions_dir.setter
    def extensions_dir(self, value: str | Path) -> None:
        self._qs.setValue("icons/extensions_dir", str(value))

    # -- cache --

    @property
    def preload_batch_size(self) -> int:
        raw = self._qs.value("icons/preload_batch_size", DEFAULT_PRELOAD_BATCH_SIZE, type=int)
        return self._clamp_batch_size(raw)

    @preload_batch_size.setter
    def preload_batch_size(self, value: int) -> None:
        self._qs.setValue("icons/preload_batch_size", self._clamp_batch_size(value))

    @property
    def cache_negative_results(self) -> bool:
        return self._qs.value("icons/cache_negative_results", False, type=bool)

    @cache_negative_results.setter
    def cache_negative_results(self, value: bool) -> None:
        self._qs.setValue("icons/cache_negative_results", bool(value))

    # -- helpers --

    @property
    def app_data_dir(self) -> Path:
        path = app_data_root()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @staticmethod
    def _clamp_batch_size(value: object) -> int:
        try:
            size = int(value)
        except (TypeError, ValueError):
            return DEFAULT_PRELOAD_BATCH_SIZE
        return min(max(size, 1), MAX_PRELOAD_BATCH_SIZE)
