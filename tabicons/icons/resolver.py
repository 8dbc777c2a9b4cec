"""File name to icon-definition id resolution.

Resolution runs an ordered list of strategies against a compiled
``LookupTable``; the first strategy returning an id wins. Strategies are
ordered most specific first:

1. exact file name
2. compound extension (everything after the first dot)
3. simple extension (everything after the last dot)
4. explicit language id
5. ``*ignore`` dotfile heuristic
6. language inferred from the extension
7. script family probe (js/ts/jsx/tsx)
8. the theme's generic file icon
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from tabicons.themes.constants import (
    DEFAULT_FILE_ICON_IDS,
    EXTENSION_LANGUAGE_MAP,
    IGNORE_EXTENSION,
    IGNORE_FILE_NAME,
    IGNORE_LANGUAGE_ID,
    SCRIPT_FAMILY_CANDIDATES,
)
from tabicons.themes.models import LookupKey, LookupTable

ResolverStrategy = Callable[[LookupTable, str, Optional[str]], Optional[str]]


def split_extensions(file_name: str) -> tuple[str, str]:
    """Return ``(compound, simple)`` extensions of a lowercased file name.

    The compound extension is only set when the name has more than one dot.
    """
    last_dot = file_name.rfind(".")
    simple = file_name[last_dot + 1:] if last_dot >= 0 else ""
    first_dot = file_name.find(".")
    compound = file_name[first_dot + 1:] if 0 <= first_dot != last_dot else ""
    return compound, simple


def match_file_name(table: LookupTable, file_name: str, language_id: str | None) -> str | None:
    return table.get(LookupKey.name(file_name))


def match_compound_extension(
    table: LookupTable, file_name: str, language_id: str | None
) -> str | None:
    compound, _ = split_extensions(file_name)
    if not compound:
        return None
    return table.get(LookupKey.extension(compound))


def match_simple_extension(
    table: LookupTable, file_name: str, language_id: str | None
) -> str | None:
    _, simple = split_extensions(file_name)
    if not simple:
        return None
    return table.get(LookupKey.extension(simple))


def match_language_id(table: LookupTable, file_name: str, language_id: str | None) -> str | None:
    if not language_id:
        return None
    return table.get(LookupKey.language(language_id))


def match_ignore_file(table: LookupTable, file_name: str, language_id: str | None) -> str | None:
    if not file_name.endswith("ignore"):
        return None
    for key in (
        LookupKey.name(IGNORE_FILE_NAME),
        LookupKey.language(IGNORE_LANGUAGE_ID),
        LookupKey.extension(IGNORE_EXTENSION),
    ):
        icon_id = table.get(key)
        if icon_id:
            return icon_id
    return None


def infer_language_id(file_name: str) -> str | None:
    _, simple = split_extensions(file_name.lower())
    return EXTENSION_LANGUAGE_MAP.get(simple)


def match_inferred_language(
    table: LookupTable, file_name: str, language_id: str | None
) -> str | None:
    if language_id:
        return None
    inferred = infer_language_id(file_name)
    if not inferred:
        return None
    return table.get(LookupKey.language(inferred))


def match_script_family(table: LookupTable, file_name: str, language_id: str | None) -> str | None:
    _, simple = split_extensions(file_name)
    candidates = SCRIPT_FAMILY_CANDIDATES.get(simple)
    if not candidates:
        return None
    for kind, value in candidates:
        key = LookupKey.language(value) if kind == "lang" else LookupKey.extension(value)
        icon_id = table.get(key)
        if icon_id:
            return icon_id
    return None


def match_default_file_icon(
    table: LookupTable, file_name: str, language_id: str | None
) -> str | None:
    definitions = table.descriptor.icon_definitions
    for icon_id in DEFAULT_FILE_ICON_IDS:
        if icon_id in definitions:
            return icon_id
    for icon_id in definitions:
        lowered = icon_id.lower()
        if "file" in lowered and "folder" not in lowered:
            return icon_id
    return None


RESOLVER_STRATEGIES: tuple[ResolverStrategy, ...] = (
    match_file_name,
    match_compound_extension,
    match_simple_extension,
    match_language_id,
    match_ignore_file,
    match_inferred_language,
    match_script_family,
    match_default_file_icon,
)


def resolve_icon_id(
    table: LookupTable,
    file_name: str,
    language_id: str | None = None,
    strategies: Sequence[ResolverStrategy] = RESOLVER_STRATEGIES,
) -> str | None:
    """Return the icon-definition id for a file, or ``None`` when nothing matches."""
    lowered = file_name.lower()
    for strategy in strategies:
        icon_id = strategy(table, lowered, language_id)
        if icon_id:
            return icon_id
    return None
