"""Shared styles, looked up by id.

Features only hold a style id (``Feature.style_ref``); the StyleSheet is the
single owner of Style values. Colors use the KML ``aabbggrr`` hex form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Iterator

from geotree.config import settings

_HEX_RE = re.compile(r"^[0-9a-f]+$")


def normalize_color(text: str | None) -> str | None:
    """Normalize a KML color to 8 lowercase hex digits (aabbggrr).

    A 6-digit value is taken as opaque. Returns None for anything else.
    """
    if not text:
        return None
    value = text.strip().lstrip("#").lower()
    if not _HEX_RE.match(value):
        return None
    if len(value) == 6:
        return "ff" + value
    if len(value) == 8:
        return value
    return None


def kml_color_from_hex(text: str | None) -> str | None:
    """Convert an HTML-style "#rrggbb" / "#aarrggbb" color to KML aabbggrr."""
    if not text:
        return None
    value = text.strip().lstrip("#").lower()
    if not _HEX_RE.match(value) or len(value) not in (6, 8):
        return None
    if len(value) == 6:
        value = "ff" + value
    aa, rr, gg, bb = value[0:2], value[2:4], value[4:6], value[6:8]
    return aa + bb + gg + rr


@dataclass(frozen=True)
class Style:
    """Line and fill attributes for line strings and polygons.

    Attributes:
        line_color: KML aabbggrr outline color, or None if unset.
        line_width: Outline width in pixels, or None if unset.
        fill_color: KML aabbggrr polygon fill color, or None if unset.

    Colors are normalized to lowercase 8-digit hex on construction; a value
    normalize_color() rejects becomes None.
    """

    line_color: str | None = None
    line_width: float | None = None
    fill_color: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "line_color", normalize_color(self.line_color))
        object.__setattr__(self, "fill_color", normalize_color(self.fill_color))

    def with_defaults(self, default: Style) -> Style:
        """Fill every unset attribute from default."""
        return replace(
            self,
            line_color=self.line_color if self.line_color is not None else default.line_color,
            line_width=self.line_width if self.line_width is not None else default.line_width,
            fill_color=self.fill_color if self.fill_color is not None else default.fill_color,
        )


def default_style() -> Style:
    """The style used for dangling or missing references."""
    return Style(
        line_color=settings.default_line_color,
        line_width=settings.default_line_width,
        fill_color=settings.default_fill_color,
    )


class StyleSheet:
    """Mapping from style id to Style, owned by a document."""

    def __init__(self, styles: dict[str, Style] | None = None) -> None:
        self._styles: dict[str, Style] = dict(styles or {})
        self._generated: dict[Style, str] = {}
        self._next_id = 1

    def add(self, style: Style) -> str:
        """Insert style under a freshly generated id and return the id.

        Adding a style equal to one previously added through add() returns
        the existing id as long as that entry is still present and unchanged.
        Generated ids are never handed out twice.
        """
        existing = self._generated.get(style)
        if existing is not None and self._styles.get(existing) == style:
            return existing
        style_id = self._fresh_id()
        self._styles[style_id] = style
        self._generated[style] = style_id
        return style_id

    def put(self, style_id: str, style: Style) -> None:
        """Insert or replace the entry for style_id."""
        self._styles[style_id] = style

    def get(self, style_id: str | None) -> Style | None:
        if style_id is None:
            return None
        return self._styles.get(style_id)

    def resolve(self, style_id: str | None) -> Style:
        """Look up style_id, falling back to the default style.

        Unset attributes of a found style are filled from the default too.
        """
        fallback = default_style()
        style = self.get(style_id)
        if style is None:
            return fallback
        return style.with_defaults(fallback)

    def remove(self, style_id: str) -> Style | None:
        """Remove an entry. Features referencing it are left dangling."""
        return self._styles.pop(style_id, None)

    def items(self):
        return self._styles.items()

    def copy(self) -> StyleSheet:
        sheet = StyleSheet(self._styles)
        sheet._generated = dict(self._generated)
        sheet._next_id = self._next_id
        return sheet

    def _fresh_id(self) -> str:
        while True:
            style_id = f"{settings.style_id_prefix}{self._next_id}"
            self._next_id += 1
            if style_id not in self._styles:
                return style_id

    def __contains__(self, style_id: object) -> bool:
        return style_id in self._styles

    def __iter__(self) -> Iterator[str]:
        return iter(self._styles)

    def __len__(self) -> int:
        return len(self._styles)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StyleSheet):
            return NotImplemented
        return self._styles == other._styles

    def __repr__(self) -> str:
        return f"StyleSheet({self._styles!r})"
