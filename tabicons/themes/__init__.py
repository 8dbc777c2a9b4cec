"""Icon theme framework exports."""

from tabicons.themes.constants import DEFAULT_ICON_THEME_ID
from tabicons.themes.models import (
    IconThemeContribution,
    IconThemeDescriptor,
    IconThemeError,
    IconThemeSummary,
)
from tabicons.themes.registry import IconThemeRegistry
from tabicons.themes.service import IconThemeService

__all__ = [
    "DEFAULT_ICON_THEME_ID",
    "IconThemeContribution",
    "IconThemeDescriptor",
    "IconThemeError",
    "IconThemeSummary",
    "IconThemeRegistry",
    "IconThemeService",
]
