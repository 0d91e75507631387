"""Export a feature tree to a GeoJSON dict (RFC 7946 layout).

Folders become FeatureCollections (nested for sub-folders), placemarks
become Features, MultiGeometry becomes a GeometryCollection. Positions are
written [lng, lat]; altitude is dropped. Styles are not representable and
are not written. Extended data keyed "name" or "description" is not written
either, since those properties are read back as the feature's own fields.
"""

from __future__ import annotations

import json
from typing import Iterable

from loguru import logger

from geotree.config import settings
from geotree.errors import UnsupportedGeometryError
from geotree.feature import GEOMETRY_KINDS, Feature
from geotree.geometry import Coordinate, Geometry, LineString, MultiGeometry, Point, Polygon

CRS84 = "urn:ogc:def:crs:OGC:1.3:CRS84"

# Properties that map onto Feature fields rather than extended_data
_RESERVED_PROPERTIES = ("name", "description")


def export_geojson(feature: Feature) -> dict:
    """Export a feature tree to a GeoJSON dict.

    Args:
        feature: Root feature; a folder yields a FeatureCollection, a
            placemark a Feature.

    Returns:
        GeoJSON dict with a root "crs" member naming CRS84.

    Raises:
        UnsupportedGeometryError: If the root is a ground overlay or UNKNOWN.
    """
    result = _feature_to_geojson(feature)
    if result is None:
        raise UnsupportedGeometryError(f"Cannot export a {feature.kind.value} feature as GeoJSON")
    result["crs"] = {"type": "name", "properties": {"name": CRS84}}
    return result


def dumps_geojson(feature: Feature, indent: int | None = None) -> str:
    """export_geojson() serialized to a JSON string."""
    if indent is None:
        indent = settings.geojson_indent
    return json.dumps(export_geojson(feature), indent=indent, ensure_ascii=False)


def _properties(feature: Feature) -> dict:
    properties: dict = {}
    if feature.name is not None:
        properties["name"] = feature.name
    if feature.description is not None:
        properties["description"] = feature.description
    for key, value in feature.extended_data.items():
        if key in _RESERVED_PROPERTIES:
            logger.debug(f"Extended data {key!r} not exported: reserved property name")
            continue
        properties[key] = str(value)
    return properties


def _feature_to_geojson(feature: Feature) -> dict | None:
    """Convert a Feature to a GeoJSON Feature/FeatureCollection dict."""
    result: dict
    if feature.is_folder:
        result = {"type": "FeatureCollection"}
        if feature.feature_id is not None:
            result["id"] = feature.feature_id
        features = []
        for child in feature.children:
            gj = _feature_to_geojson(child)
            if gj is not None:
                features.append(gj)
        result["features"] = features
    elif feature.kind in GEOMETRY_KINDS and feature.geometry is not None:
        result = {"type": "Feature"}
        if feature.feature_id is not None:
            result["id"] = feature.feature_id
        result["geometry"] = export_geometry(feature.geometry)
    else:
        logger.warning(f"Skipping {feature.kind.value} feature {feature.name!r} on GeoJSON export")
        return None

    result["properties"] = _properties(feature)
    if not feature.visible:
        result["visible"] = False
    if feature.is_folder and not feature.open:
        result["open"] = False
    return result


def _position(coord: Coordinate) -> list[float]:
    return [float(coord.lng), float(coord.lat)]


def _positions(coords: Iterable[Coordinate]) -> list[list[float]]:
    return [_position(c) for c in coords]


def export_geometry(geometry: Geometry) -> dict:
    """Convert a geometry to a standalone GeoJSON geometry dict."""
    if isinstance(geometry, Point):
        return {"type": "Point", "coordinates": _position(geometry.coordinate)}
    if isinstance(geometry, LineString):
        return {"type": "LineString", "coordinates": _positions(geometry.coordinates)}
    if isinstance(geometry, Polygon):
        rings = [_positions(geometry.outer)] + [_positions(h) for h in geometry.holes]
        return {"type": "Polygon", "coordinates": rings}
    if isinstance(geometry, MultiGeometry):
        return {
            "type": "GeometryCollection",
            "geometries": [export_geometry(g) for g in geometry.geometries],
        }
    raise UnsupportedGeometryError(f"Unsupported geometry: {type(geometry).__name__}")
