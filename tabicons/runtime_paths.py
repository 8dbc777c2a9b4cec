"""Where tabicons finds its bundled themes, user extensions and data dir."""

from __future__ import annotations

import os
from pathlib import Path
import sys


def is_frozen() -> bool:
    """Return True when running from a PyInstaller bundle."""
    return bool(getattr(sys, "frozen", False))


def package_root() -> Path:
    """Directory holding the `tabicons` package resources.

    Frozen builds unpack into ``sys._MEIPASS``; the package directory is
    preferred there, with the bundle root itself as the fallback.
    """
    here = Path(__file__).resolve().parent
    if not is_frozen():
        return here
    meipass = getattr(sys, "_MEIPASS", None)
    if not meipass:
        return here
    bundle = Path(meipass)
    candidate = bundle / "tabicons"
    return candidate if candidate.exists() else bundle


def builtin_themes_root() -> Path:
    return package_root() / "themes" / "builtin"


def default_extensions_dir() -> Path:
    """VS Code's extension directory, honouring ``VSCODE_EXTENSIONS``."""
    override = os.environ.get("VSCODE_EXTENSIONS", "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home() / ".vscode" / "extensions"


def app_data_root() -> Path:
    """Per-user directory for logs; not created here."""
    base = os.environ.get("APPDATA") or os.environ.get("XDG_CONFIG_HOME")
    return Path(base or Path.home() / ".config") / "tabicons"
