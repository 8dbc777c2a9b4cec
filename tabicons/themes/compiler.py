"""Lookup table compilation."""

from __future__ import annotations

import logging
from typing import Mapping

from tabicons.themes.constants import SPECIAL_IGNORE_FILES
from tabicons.themes.models import IconThemeDescriptor, LookupTable

logger = logging.getLogger(__name__)


def compile_lookup_table(
    descriptor: IconThemeDescriptor,
    *,
    requested_theme_id: str | None = None,
    generation: int = 0,
) -> LookupTable:
    """Compile a descriptor into a new case-insensitive lookup table."""
    table = LookupTable(
        requested_theme_id=descriptor.theme_id if requested_theme_id is None else requested_theme_id,
        descriptor=descriptor,
        names=_lowercase_keys(descriptor.file_names),
        extensions=_lowercase_keys(descriptor.file_extensions),
        languages=_lowercase_keys(descriptor.language_ids),
        generation=generation,
    )
    for file_name in SPECIAL_IGNORE_FILES:
        icon_id = table.names.get(file_name)
        if icon_id:
            logger.debug("special file mapped: %s -> %s", file_name, icon_id)
    return table


def _lowercase_keys(source: Mapping[str, str]) -> dict[str, str]:
    # Last spelling wins when a theme lists the same key in several cases.
    return {key.lower(): icon_id for key, icon_id in source.items()}
