"""Icon theme and rendered icon models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Union

from tabicons.themes.constants import FALLBACK_FONT_CHARACTER, FALLBACK_FONT_COLOR


class IconThemeError(ValueError):
    """Raised when an extension manifest or icon theme file fails validation."""


def _frozen_map(value: Mapping) -> Mapping:
    if isinstance(value, MappingProxyType):
        return value
    return MappingProxyType(dict(value))


@dataclass(frozen=True, slots=True)
class IconDefinition:
    """One entry of a theme's iconDefinitions section."""

    icon_path: str = ""
    font_character: str = ""
    font_color: str = ""
    font_id: str = ""

    @property
    def is_font(self) -> bool:
        return bool(self.font_character)


@dataclass(frozen=True, slots=True)
class IconThemeDescriptor:
    """A parsed icon theme document. Replaced wholesale, never mutated."""

    theme_id: str
    root_dir: Path | None = None
    file_names: Mapping[str, str] = field(default_factory=dict)
    file_extensions: Mapping[str, str] = field(default_factory=dict)
    language_ids: Mapping[str, str] = field(default_factory=dict)
    icon_definitions: Mapping[str, IconDefinition] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "file_names", _frozen_map(self.file_names))
        object.__setattr__(self, "file_extensions", _frozen_map(self.file_extensions))
        object.__setattr__(self, "language_ids", _frozen_map(self.language_ids))
        object.__setattr__(self, "icon_definitions", _frozen_map(self.icon_definitions))

    @classmethod
    def empty(cls, theme_id: str = "") -> IconThemeDescriptor:
        return cls(theme_id=theme_id)

    @property
    def is_empty(self) -> bool:
        return not (
            self.file_names or self.file_extensions or self.language_ids or self.icon_definitions
        )


@dataclass(frozen=True, slots=True)
class IconThemeContribution:
    """An icon theme declared by an installed extension."""

    theme_id: str
    label: str
    extension_id: str
    extension_root: Path
    descriptor_path: Path
    is_builtin: bool = False


class LookupKind(Enum):
    NAME = "name"
    EXTENSION = "ext"
    LANGUAGE = "lang"


@dataclass(frozen=True, slots=True)
class LookupKey:
    """A discriminated lookup key; the value is always lowercased."""

    kind: LookupKind
    value: str

    @classmethod
    def name(cls, value: str) -> LookupKey:
        return cls(LookupKind.NAME, value.lower())

    @classmethod
    def extension(cls, value: str) -> LookupKey:
        return cls(LookupKind.EXTENSION, value.lower())

    @classmethod
    def language(cls, value: str) -> LookupKey:
        return cls(LookupKind.LANGUAGE, value.lower())


@dataclass(frozen=True, slots=True)
class LookupTable:
    """Compiled, case-insensitive lookup tables for one descriptor."""

    requested_theme_id: str
    descriptor: IconThemeDescriptor
    names: Mapping[str, str] = field(default_factory=dict)
    extensions: Mapping[str, str] = field(default_factory=dict)
    languages: Mapping[str, str] = field(default_factory=dict)
    generation: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", _frozen_map(self.names))
        object.__setattr__(self, "extensions", _frozen_map(self.extensions))
        object.__setattr__(self, "languages", _frozen_map(self.languages))

    def get(self, key: LookupKey) -> str | None:
        if key.kind is LookupKind.NAME:
            return self.names.get(key.value)
        if key.kind is LookupKind.EXTENSION:
            return self.extensions.get(key.value)
        return self.languages.get(key.value)

    def __len__(self) -> int:
        return len(self.names) + len(self.extensions) + len(self.languages)


def glyph_hex_code(character: str) -> str:
    """Return the hex code point of a font character for CSS/HTML escapes."""
    if character.startswith("\\"):
        return character[1:].upper()
    if len(character) == 1:
        return f"{ord(character):X}"
    return character.upper()


@dataclass(frozen=True, slots=True)
class ImageDataUri:
    """An image asset encoded for inline embedding."""

    mime_type: str
    base64_payload: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_payload}"


@dataclass(frozen=True, slots=True)
class FontGlyph:
    """A glyph from the theme's icon font."""

    character: str
    color: str
    font_id: str = ""

    @property
    def hex_code(self) -> str:
        return glyph_hex_code(self.character)


@dataclass(frozen=True, slots=True)
class FallbackIcon:
    """Generic file glyph used when nothing resolves."""

    character: str = FALLBACK_FONT_CHARACTER
    color: str = FALLBACK_FONT_COLOR

    @property
    def hex_code(self) -> str:
        return glyph_hex_code(self.character)


FALLBACK_ICON = FallbackIcon()

RenderedIcon = Union[ImageDataUri, FontGlyph, FallbackIcon]


@dataclass(frozen=True, slots=True)
class IconThemeSummary:
    """Display-ready icon theme metadata."""

    theme_id: str
    label: str
    extension_id: str
    is_builtin: bool
    descriptor_path: Path
