"""Degradation codes for the icon engine.

Nothing here is raised to callers of the public lookup API: loaders and
renderers build an ``IconEngineError``, log it, and fall back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import logging
from pathlib import Path
from typing import Any


class ErrorCode(Enum):
    THEME_NOT_FOUND = "theme-not-found"
    DESCRIPTOR_MALFORMED = "descriptor-malformed"
    ASSET_UNREADABLE = "asset-unreadable"
    FILE_NOT_FOUND = "file-not-found"
    FILE_ACCESS_DENIED = "file-access-denied"
    NO_MATCH = "no-match"
    OPERATION_FAILED = "operation-failed"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.THEME_NOT_FOUND: "Icon theme is not installed",
    ErrorCode.DESCRIPTOR_MALFORMED: "Icon theme document could not be parsed",
    ErrorCode.ASSET_UNREADABLE: "Icon asset could not be read",
    ErrorCode.FILE_NOT_FOUND: "Icon asset is missing on disk",
    ErrorCode.FILE_ACCESS_DENIED: "Icon asset is not readable by this user",
    ErrorCode.NO_MATCH: "No icon matches this file",
    ErrorCode.OPERATION_FAILED: "Icon resolution failed",
}

# A file without an icon is routine; everything else means a broken theme.
LOG_LEVELS: dict[ErrorCode, int] = {
    ErrorCode.NO_MATCH: logging.DEBUG,
    ErrorCode.OPERATION_FAILED: logging.ERROR,
}


@dataclass
class IconEngineError(Exception):
    """A degradation with enough context to find the offending theme file."""

    code: ErrorCode
    message: str = ""
    path: Path | None = None
    theme_id: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.message = self.message or ERROR_MESSAGES[self.code]

    @property
    def level(self) -> int:
        return LOG_LEVELS.get(self.code, logging.WARNING)

    def __str__(self) -> str:
        context = [f"theme={self.theme_id}"] if self.theme_id else []
        if self.path is not None:
            context.append(f"path={self.path}")
        context.extend(f"{key}={value}" for key, value in self.details.items())
        text = f"[{self.code.name}] {self.message}"
        return f"{text} ({', '.join(context)})" if context else text

    def log(self, logger: logging.Logger) -> None:
        logger.log(self.level, "%s", self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "path": None if self.path is None else str(self.path),
            "theme_id": self.theme_id,
            "details": dict(self.details),
        }


def classify_exception(
    exc: Exception, path: Path | None = None, *, theme_id: str = ""
) -> IconEngineError:
    """Map an I/O or parsing exception to the matching degradation code."""
    if isinstance(exc, IconEngineError):
        return exc
    if isinstance(exc, FileNotFoundError):
        code = ErrorCode.FILE_NOT_FOUND
    elif isinstance(exc, PermissionError):
        code = ErrorCode.FILE_ACCESS_DENIED
    elif isinstance(exc, OSError):
        code = ErrorCode.ASSET_UNREADABLE
    elif isinstance(exc, ValueError):
        code = ErrorCode.DESCRIPTOR_MALFORMED
    else:
        return IconEngineError(
            ErrorCode.OPERATION_FAILED,
            message=f"{type(exc).__name__}: {exc}",
            path=path,
            theme_id=theme_id,
        )
    return IconEngineError(code, path=path, theme_id=theme_id, details={"reason": str(exc)})
