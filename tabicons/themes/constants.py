"""Icon theme constants."""

from __future__ import annotations

DEFAULT_ICON_THEME_ID = "vs-seti"
EXTENSION_MANIFEST_NAME = "package.json"

FALLBACK_FONT_CHARACTER = "\\E023"
FALLBACK_FONT_COLOR = "#d4d7d6"
DEFAULT_FONT_COLOR = "#cccccc"

DEFAULT_PRELOAD_BATCH_SIZE = 5
MAX_PRELOAD_BATCH_SIZE = 64

SVG_MIME_TYPE = "image/svg+xml"
RASTER_MIME_TYPE = "image/png"

# Probed in order for names ending in "ignore": exact name, language, extension.
IGNORE_FILE_NAME = ".gitignore"
IGNORE_LANGUAGE_ID = "ignore"
IGNORE_EXTENSION = "ignore"

SPECIAL_IGNORE_FILES: tuple[str, ...] = (
    ".vscodeignore",
    ".gitignore",
    ".npmignore",
    ".dockerignore",
)

EXTENSION_LANGUAGE_MAP: dict[str, str] = {
    "js": "javascript",
    "ts": "typescript",
    "jsx": "javascriptreact",
    "tsx": "typescriptreact",
    "json": "json",
    "md": "markdown",
    "py": "python",
    "html": "html",
    "css": "css",
}

SCRIPT_FAMILY_CANDIDATES: dict[str, tuple[tuple[str, str], ...]] = {
    "js": (("lang", "javascript"), ("ext", "js")),
    "ts": (("lang", "typescript"), ("ext", "ts")),
    "jsx": (("lang", "javascriptreact"), ("ext", "jsx")),
    "tsx": (("lang", "typescriptreact"), ("ext", "tsx")),
}

DEFAULT_FILE_ICON_IDS: tuple[str, ...] = ("_file", "file")
