"""Build features from externally drawn shapes (markers, polylines, polygons).

This is a best-effort import: an unsupported source object becomes an
UNKNOWN feature with a diagnostic name instead of raising. Colors on the
shapes are HTML hex strings ("#rrggbb" or "#aarrggbb") and are converted to
a fresh KML style in the target StyleSheet.
"""

from __future__ import annotations

from typing import Any, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from geotree.feature import Feature, FeatureKind
from geotree.geometry import Coordinate, LineString, Point, Polygon
from geotree.style import Style, StyleSheet, kml_color_from_hex

Position = Union[tuple[float, float], tuple[float, float, float]]


class MarkerShape(BaseModel):
    """A draggable marker. position is (lng, lat[, alt])."""

    title: str | None = None
    snippet: str | None = None
    position: Position
    enabled: bool = True


class PolylineShape(BaseModel):
    """A stroked path."""

    points: list[Position] = Field(default_factory=list)
    color: str = "#101010"
    width: float = 5.0
    enabled: bool = True


class PolygonShape(BaseModel):
    """A filled, stroked area with optional holes."""

    title: str | None = None
    snippet: str | None = None
    points: list[Position] = Field(default_factory=list)
    holes: list[list[Position]] = Field(default_factory=list)
    fill_color: str = "#20101010"
    stroke_color: str = "#101010"
    stroke_width: float = 5.0
    enabled: bool = True


class FolderShape(BaseModel):
    """A grouping of shapes. items may contain objects of any type."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str | None = None
    description: str | None = None
    items: list[Any] = Field(default_factory=list)
    enabled: bool = True


def _coords(points: list[Position]) -> list[Coordinate]:
    return [Coordinate(*p) for p in points]


def from_overlay_like(source: Any, stylesheet: StyleSheet) -> Feature:
    """Convert a drawn shape into a Feature.

    MarkerShape -> Point, PolylineShape -> LineString, PolygonShape -> Polygon,
    FolderShape -> Folder (recursively, unsupported items skipped). Lines and
    polygons get a style added to stylesheet. Anything else yields an
    UNKNOWN feature named after the source type.
    """
    if isinstance(source, FolderShape):
        folder = Feature.folder(
            name=source.name,
            description=source.description,
            visible=source.enabled,
        )
        for item in source.items:
            child = from_overlay_like(item, stylesheet)
            if child.kind == FeatureKind.UNKNOWN:
                logger.debug(f"Skipping unsupported folder item: {child.name}")
                continue
            folder.add_child(child)
        return folder

    if isinstance(source, MarkerShape):
        return Feature.placemark(
            Point(Coordinate(*source.position)),
            name=source.title,
            description=source.snippet,
            visible=source.enabled,
        )

    if isinstance(source, PolylineShape):
        style = Style(line_color=kml_color_from_hex(source.color), line_width=source.width)
        return Feature.placemark(
            LineString(_coords(source.points)),
            name=f"LineString - {len(source.points)} points",
            visible=source.enabled,
            style_ref=stylesheet.add(style),
        )

    if isinstance(source, PolygonShape):
        style = Style(
            line_color=kml_color_from_hex(source.stroke_color),
            line_width=source.stroke_width,
            fill_color=kml_color_from_hex(source.fill_color),
        )
        return Feature.placemark(
            Polygon(_coords(source.points), [_coords(h) for h in source.holes]),
            name=source.title,
            description=source.snippet,
            visible=source.enabled,
            style_ref=stylesheet.add(style),
        )

    return Feature.unknown(name=f"Unknown object - {type(source).__name__}")
