"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tabicons.icons.renderer import AssetReader

SVG_BYTES = b'<svg xmlns="http://www.w3.org/2000/svg" width="16" height="16"/>'


class CountingReader(AssetReader):
    """AssetReader that records every filesystem call."""

    def __init__(self) -> None:
        self.exists_calls: list[str] = []
        self.read_calls: list[str] = []

    async def exists(self, path: str) -> bool:
        self.exists_calls.append(path)
        return await super().exists(path)

    async def read_bytes(self, path: str) -> bytes:
        self.read_calls.append(path)
        return await super().read_bytes(path)


def write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def write_extension(
    root: Path,
    dir_name: str,
    themes: dict[str, dict[str, object]],
    *,
    publisher: str = "tests",
) -> Path:
    """Write an extension directory contributing one icon theme per entry."""
    extension_dir = root / dir_name
    entries = []
    for theme_id, document in themes.items():
        rel_path = f"./icons/{theme_id}.json"
        entries.append({"id": theme_id, "label": f"{theme_id} label", "path": rel_path})
        write_json(extension_dir / "icons" / f"{theme_id}.json", document)
    write_json(
        extension_dir / "package.json",
        {
            "name": dir_name,
            "publisher": publisher,
            "contributes": {"iconThemes": entries},
        },
    )
    return extension_dir


@pytest.fixture
def counting_reader() -> CountingReader:
    return CountingReader()


@pytest.fixture
def builtin_root(tmp_path: Path) -> Path:
    root = tmp_path / "builtin"
    root.mkdir()
    return root


@pytest.fixture
def user_root(tmp_path: Path) -> Path:
    root = tmp_path / "extensions"
    root.mkdir()
    return root
