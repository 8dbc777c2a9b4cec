"""Installed icon theme discovery and registry."""

from __future__ import annotations

from pathlib import Path

from tabicons.themes.constants import EXTENSION_MANIFEST_NAME
from tabicons.themes.loader import parse_extension_manifest
from tabicons.themes.models import IconThemeContribution, IconThemeError, IconThemeSummary

_MAX_EXTENSION_DIR_CANDIDATES = 512


class IconThemeRegistry:
    """Indexes icon themes contributed by builtin and user extension directories."""

    def __init__(self, builtin_root: Path, user_root: Path | None = None) -> None:
        self._builtin_root = builtin_root
        self._user_root = user_root
        self._themes: dict[str, IconThemeContribution] = {}
        self._load_errors: list[str] = []

    @property
    def builtin_root(self) -> Path:
        return self._builtin_root

    @property
    def user_root(self) -> Path | None:
        return self._user_root

    def set_user_root(self, path: Path | None) -> None:
        self._user_root = path

    def reload(self) -> None:
        themes: dict[str, IconThemeContribution] = {}
        self._load_errors = []
        self._load_from_root(themes, self._builtin_root, is_builtin=True, can_override=False)
        if self._user_root is not None:
            self._load_from_root(themes, self._user_root, is_builtin=False, can_override=True)
        self._themes = themes

    def find(self, theme_id: str) -> IconThemeContribution | None:
        return self._themes.get(theme_id)

    def list_themes(self) -> list[IconThemeSummary]:
        rows = [
            IconThemeSummary(
                theme_id=item.theme_id,
                label=item.label,
                extension_id=item.extension_id,
                is_builtin=item.is_builtin,
                descriptor_path=item.descriptor_path,
            )
            for item in self._themes.values()
        ]
        return sorted(rows, key=lambda row: (0 if row.is_builtin else 1, row.label.lower()))

    def load_errors(self) -> list[str]:
        return list(self._load_errors)

    def _load_from_root(
        self,
        themes: dict[str, IconThemeContribution],
        root: Path,
        *,
        is_builtin: bool,
        can_override: bool,
    ) -> None:
        if not root.exists():
            return
        try:
            all_dirs = sorted(path for path in root.iterdir() if path.is_dir())
        except OSError as exc:
            self._load_errors.append(f"Failed to list extensions in {root}: {exc}")
            return

        candidates: list[Path] = []
        for path in all_dirs:
            if path.is_symlink():
                self._load_errors.append(f"Skipping symlink extension directory: {path}")
                continue
            if not (path / EXTENSION_MANIFEST_NAME).is_file():
                continue
            candidates.append(path)
        if len(candidates) > _MAX_EXTENSION_DIR_CANDIDATES:
            self._load_errors.append(
                f"Extension directory limit exceeded in {root}; "
                f"only first {_MAX_EXTENSION_DIR_CANDIDATES} folders were scanned."
            )
            candidates = candidates[:_MAX_EXTENSION_DIR_CANDIDATES]

        for extension_dir in candidates:
            try:
                contributions = parse_extension_manifest(extension_dir, is_builtin=is_builtin)
            except IconThemeError as exc:
                self._load_errors.append(str(exc))
                continue

            for contribution in contributions:
                theme_id = contribution.theme_id
                existing = themes.get(theme_id)
                if existing is not None and not can_override:
                    self._load_errors.append(
                        f"Duplicate builtin icon theme id {theme_id!r} at {extension_dir}; skipping."
                    )
                    continue
                if existing is not None and can_override:
                    self._load_errors.append(
                        f"Icon theme {theme_id!r} from {contribution.extension_id} "
                        f"overrides {existing.extension_id}."
                    )
                themes[theme_id] = contribution
