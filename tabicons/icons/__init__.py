"""Icon resolution, rendering and caching."""

from tabicons.icons.cache import IconCache
from tabicons.icons.manager import PreloadReport, TabIconManager
from tabicons.icons.renderer import AssetReader
from tabicons.icons.resolver import RESOLVER_STRATEGIES, resolve_icon_id

__all__ = [
    "AssetReader",
    "IconCache",
    "PreloadReport",
    "RESOLVER_STRATEGIES",
    "TabIconManager",
    "resolve_icon_id",
]
