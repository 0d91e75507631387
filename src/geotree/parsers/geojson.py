"""Parse GeoJSON (RFC 7946) into a feature tree using stdlib json.

Handles FeatureCollection (nested collections become sub-folders), Feature,
and bare Point/LineString/Polygon/MultiPoint/MultiLineString/MultiPolygon/
GeometryCollection geometries. Coordinates are already in [lng, lat] order.
GeoJSON carries no styles, so every parsed feature has style_ref None.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from geotree.errors import CoordinateParseError, MalformedDocumentError, UnsupportedGeometryError
from geotree.feature import Feature, FeatureKind
from geotree.geometry import Coordinate, Geometry, LineString, MultiGeometry, Point, Polygon

GEOMETRY_TYPES = frozenset({
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "GeometryCollection",
})

# Properties mapped onto Feature fields rather than extended_data
_RESERVED_PROPERTIES = ("name", "description")


def parse_geojson(geojson_string: str | bytes) -> Feature:
    """Parse a GeoJSON string into a feature tree rooted at a folder.

    A FeatureCollection becomes the root folder itself. A single Feature or
    bare geometry is wrapped in a new root folder.

    Raises:
        MalformedDocumentError: If the content is not JSON or its top-level
            type is not a GeoJSON object type.
    """
    try:
        data = json.loads(geojson_string)
    except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
        raise MalformedDocumentError(f"Invalid GeoJSON: {e}") from e

    feature = feature_from_geojson(data)
    if feature.is_folder:
        return feature
    return Feature.folder(children=[feature])


def feature_from_geojson(data: Any) -> Feature:
    """Convert a decoded GeoJSON object to the matching Feature.

    FeatureCollection -> folder, Feature -> placemark, geometry -> placemark
    without properties.

    Raises:
        MalformedDocumentError: If data is not an object of a known type.
    """
    if not isinstance(data, dict):
        raise MalformedDocumentError("GeoJSON root must be an object")

    geojson_type = data.get("type")
    if geojson_type == "FeatureCollection":
        return _parse_collection(data)
    if geojson_type == "Feature":
        return _parse_feature(data)
    if geojson_type in GEOMETRY_TYPES:
        try:
            return Feature.placemark(geometry_from_geojson(data))
        except UnsupportedGeometryError as e:
            logger.warning(f"GeoJSON {geojson_type}: {e}")
            return Feature.unknown()
    raise MalformedDocumentError(f"Unsupported GeoJSON type: {geojson_type!r}")


def _as_string(value: Any) -> str:
    """Property values are kept as strings; non-strings as their JSON text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _apply_members(raw: dict, feature: Feature) -> None:
    """Copy id, visible/open foreign members and properties onto feature."""
    raw_id = raw.get("id")
    if raw_id is not None:
        feature.feature_id = raw_id if isinstance(raw_id, str) else str(raw_id)

    if isinstance(raw.get("visible"), bool):
        feature.visible = raw["visible"]
    if feature.is_folder and isinstance(raw.get("open"), bool):
        feature.open = raw["open"]

    properties = raw.get("properties")
    if not isinstance(properties, dict):
        return
    for key in _RESERVED_PROPERTIES:
        value = properties.get(key)
        if value is not None:
            setattr(feature, key, _as_string(value))
    for key, value in properties.items():
        if key in _RESERVED_PROPERTIES or value is None:
            continue
        feature.set_extended_data(key, _as_string(value))


def _parse_collection(data: dict) -> Feature:
    folder = Feature(kind=FeatureKind.FOLDER)
    _apply_members(data, folder)

    raw_features = data.get("features")
    if not isinstance(raw_features, list):
        raw_features = []
    for idx, raw in enumerate(raw_features):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object entry {idx} in FeatureCollection")
            continue
        raw_type = raw.get("type")
        if raw_type == "FeatureCollection":
            folder.add_child(_parse_collection(raw))
        elif raw_type == "Feature":
            folder.add_child(_parse_feature(raw))
        else:
            logger.warning(f"Skipping entry {idx} of type {raw_type!r} in FeatureCollection")
    return folder


def _parse_feature(raw: dict) -> Feature:
    """Parse a single GeoJSON Feature dict.

    A missing or unconvertible geometry yields an UNKNOWN feature that still
    carries the id and properties.
    """
    feature = Feature(kind=FeatureKind.UNKNOWN)
    _apply_members(raw, feature)

    geometry = raw.get("geometry")
    try:
        if not isinstance(geometry, dict):
            raise UnsupportedGeometryError("Feature has no geometry")
        feature.geometry = geometry_from_geojson(geometry)
    except UnsupportedGeometryError as e:
        logger.warning(f"Feature {feature.name!r}: {e}")
        return feature

    feature.kind = FeatureKind(feature.geometry.geometry_type)
    feature.refresh_bounding_box()
    return feature


def _position(raw: Any) -> Coordinate:
    """Convert a [lng, lat(, alt)] position.

    Raises:
        CoordinateParseError: If raw is not a list of at least two numbers.
    """
    if not isinstance(raw, (list, tuple)) or len(raw) < 2:
        raise CoordinateParseError(f"Expected [lng, lat(, alt)], got {raw!r}")
    values = raw[:3]
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise CoordinateParseError(f"Non-numeric position {raw!r}")
    return Coordinate(*(float(v) for v in values))


def _positions(raw: Any) -> list[Coordinate]:
    """Convert a list of positions, dropping the ones that do not parse."""
    if not isinstance(raw, list):
        raise UnsupportedGeometryError(f"Expected a list of positions, got {type(raw).__name__}")
    coords = []
    for item in raw:
        try:
            coords.append(_position(item))
        except CoordinateParseError as e:
            logger.debug(f"Dropping position: {e}")
    return coords


def _rings(raw: Any) -> list[list[Coordinate]]:
    if not isinstance(raw, list):
        raise UnsupportedGeometryError(f"Expected a list of rings, got {type(raw).__name__}")
    return [_positions(ring) for ring in raw]


def _polygon(raw: Any) -> Polygon:
    rings = _rings(raw)
    if not rings:
        return Polygon()
    return Polygon(rings[0], rings[1:])


def _list_of(raw: Any, what: str) -> list:
    if not isinstance(raw, list):
        raise UnsupportedGeometryError(f"Expected a list of {what}, got {type(raw).__name__}")
    return raw


def geometry_from_geojson(geom: dict) -> Geometry:
    """Convert a GeoJSON geometry object.

    Multi* types and GeometryCollection become a MultiGeometry.

    Raises:
        UnsupportedGeometryError: On an unknown type or malformed coordinates.
    """
    geom_type = geom.get("type")
    coordinates = geom.get("coordinates")

    if geom_type == "Point":
        try:
            return Point(_position(coordinates))
        except CoordinateParseError as e:
            raise UnsupportedGeometryError(str(e)) from e
    if geom_type == "LineString":
        return LineString(_positions(coordinates))
    if geom_type == "Polygon":
        return _polygon(coordinates)
    if geom_type == "MultiPoint":
        return MultiGeometry([Point(c) for c in _positions(coordinates)])
    if geom_type == "MultiLineString":
        return MultiGeometry([LineString(_positions(line)) for line in _list_of(coordinates, "lines")])
    if geom_type == "MultiPolygon":
        return MultiGeometry([_polygon(p) for p in _list_of(coordinates, "polygons")])
    if geom_type == "GeometryCollection":
        items = []
        for item in _list_of(geom.get("geometries"), "geometries"):
            if not isinstance(item, dict):
                raise UnsupportedGeometryError("GeometryCollection member is not an object")
            items.append(geometry_from_geojson(item))
        return MultiGeometry(items)
    raise UnsupportedGeometryError(f"Unsupported geometry type: {geom_type!r}")
