"""Parse KML XML into a Document (feature tree + StyleSheet).

Uses xml.etree.ElementTree and matches elements by local name, so documents
with or without the KML namespace are handled the same way.

Handles Document/Folder hierarchies, Placemark with Point, LineString,
Polygon (outer and inner boundaries) or MultiGeometry, GroundOverlay,
shared Style elements referenced by styleUrl, and ExtendedData.
KML coordinate format: "lng,lat[,alt] lng,lat[,alt] ..." (longitude first).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterator

from loguru import logger

from geotree.document import Document
from geotree.errors import CoordinateParseError, MalformedDocumentError, UnsupportedGeometryError
from geotree.feature import Feature, FeatureKind, GroundOverlay
from geotree.geometry import (
    BoundingBox,
    Coordinate,
    Geometry,
    LineString,
    MultiGeometry,
    Point,
    Polygon,
)
from geotree.style import Style, StyleSheet, normalize_color

_CONTAINER_TAGS = ("Document", "Folder")
_GEOMETRY_TAGS = ("Point", "LineString", "Polygon", "MultiGeometry")


def parse_kml(kml_string: str | bytes) -> Document:
    """Parse a KML XML string into a Document.

    Args:
        kml_string: Raw KML XML content.

    Returns:
        Document whose root is a folder and whose styles hold every Style
        element that carries an id.

    Raises:
        MalformedDocumentError: If the content is not well-formed XML.
    """
    try:
        root = ET.fromstring(kml_string)
    except ET.ParseError as e:
        raise MalformedDocumentError(f"Invalid KML: {e}") from e

    # Styles may be referenced before they are defined, so collect them first
    styles = _collect_styles(root)

    folder = Feature(kind=FeatureKind.FOLDER)
    container = _root_container(root)
    if container is not None:
        _parse_container(container, folder, styles)
    else:
        # Bare Placemark or GroundOverlay root
        _parse_child_feature(root, folder, styles)

    return Document(root=folder, styles=styles, source_format="kml")


def _local(tag: str) -> str:
    """Strip the namespace from an element tag."""
    if "}" in tag:
        return tag.rsplit("}", 1)[1]
    return tag


def _children(elem: ET.Element, name: str) -> Iterator[ET.Element]:
    for child in elem:
        if _local(child.tag) == name:
            yield child


def _find_child(elem: ET.Element, name: str) -> ET.Element | None:
    return next(_children(elem, name), None)


def _find_descendant(elem: ET.Element, name: str) -> ET.Element | None:
    for node in elem.iter():
        if node is not elem and _local(node.tag) == name:
            return node
    return None


def _text(elem: ET.Element | None) -> str:
    if elem is None or not elem.text:
        return ""
    return elem.text.strip()


def _raw_text(elem: ET.Element | None) -> str:
    """Element text exactly as written, for names, descriptions and values."""
    if elem is None or not elem.text:
        return ""
    return elem.text


def _parse_bool(text: str) -> bool:
    return text.strip().lower() not in ("0", "false")


def _parse_float(text: str, default: float | None = None) -> float | None:
    try:
        return float(text)
    except ValueError:
        return default


def _root_container(root: ET.Element) -> ET.Element | None:
    """Pick the element whose content becomes the root folder.

    A kml element wrapping a single Document or Folder yields that element;
    a kml element holding features directly is itself the container.
    """
    tag = _local(root.tag)
    if tag in _CONTAINER_TAGS:
        return root
    if tag != "kml":
        return None
    containers = [c for c in root if _local(c.tag) in _CONTAINER_TAGS]
    others = [c for c in root if _local(c.tag) in ("Placemark", "GroundOverlay")]
    if len(containers) == 1 and not others:
        return containers[0]
    return root


# ---------------------------------------------------------------------------
# Styles
# ---------------------------------------------------------------------------

def _collect_styles(root: ET.Element) -> StyleSheet:
    styles = StyleSheet()
    for elem in root.iter():
        if _local(elem.tag) != "Style":
            continue
        style_id = elem.get("id")
        if style_id:
            styles.put(style_id, _parse_style(elem))
    return styles


def _parse_style(style_elem: ET.Element) -> Style:
    """Read LineStyle/color, LineStyle/width and PolyStyle/color."""
    line_color = line_width = fill_color = None

    line_style = _find_child(style_elem, "LineStyle")
    if line_style is not None:
        line_color = normalize_color(_text(_find_child(line_style, "color")))
        width = _text(_find_child(line_style, "width"))
        if width:
            line_width = _parse_float(width)

    poly_style = _find_child(style_elem, "PolyStyle")
    if poly_style is not None:
        fill_color = normalize_color(_text(_find_child(poly_style, "color")))

    return Style(line_color=line_color, line_width=line_width, fill_color=fill_color)


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

def _read_common(elem: ET.Element, feature: Feature, styles: StyleSheet) -> list[ET.Element]:
    """Apply the elements shared by all features, in document order.

    Sets id, name, description, visibility, open (folders only), styleUrl
    and ExtendedData. Text values are kept exactly as written.
    An inline Style without an id is added to styles and referenced unless
    a styleUrl is present. Returns the children that were not consumed.
    """
    feature.feature_id = elem.get("id")
    inline_ref = None
    rest = []
    for component in elem:
        tag = _local(component.tag)
        if tag == "name":
            feature.name = _raw_text(component)
        elif tag == "description":
            feature.description = _raw_text(component)
        elif tag == "visibility":
            feature.visible = _parse_bool(_text(component))
        elif tag == "open":
            if feature.is_folder:
                feature.open = _parse_bool(_text(component))
        elif tag == "styleUrl":
            url = _text(component)
            if url.startswith("#"):
                url = url[1:]
            feature.style_ref = url or None
        elif tag == "ExtendedData":
            _parse_extended_data(component, feature)
        elif tag == "Style":
            if not component.get("id"):
                inline_ref = styles.add(_parse_style(component))
        else:
            rest.append(component)
    if feature.style_ref is None and inline_ref is not None:
        feature.style_ref = inline_ref
    return rest


def _parse_extended_data(elem: ET.Element, feature: Feature) -> None:
    for data in _children(elem, "Data"):
        name = data.get("name")
        if name:
            feature.set_extended_data(name, _raw_text(_find_child(data, "value")))
    for schema_data in _children(elem, "SchemaData"):
        for simple in _children(schema_data, "SimpleData"):
            name = simple.get("name")
            if name:
                feature.set_extended_data(name, _raw_text(simple))


def _parse_container(elem: ET.Element, folder: Feature, styles: StyleSheet) -> None:
    """Fill folder from a Document/Folder element, recursing into sub-folders."""
    for child in _read_common(elem, folder, styles):
        _parse_child_feature(child, folder, styles)


def _parse_child_feature(child: ET.Element, folder: Feature, styles: StyleSheet) -> None:
    tag = _local(child.tag)
    if tag in _CONTAINER_TAGS:
        sub = Feature(kind=FeatureKind.FOLDER)
        folder.add_child(sub)
        _parse_container(child, sub, styles)
        folder.update_bounding_box_with(sub.bounding_box)
    elif tag == "Placemark":
        feature = _parse_placemark(child, styles)
        if feature is not None:
            folder.add_child(feature)
    elif tag == "GroundOverlay":
        folder.add_child(_parse_ground_overlay(child, styles))


def _parse_placemark(pm: ET.Element, styles: StyleSheet) -> Feature | None:
    """Parse a Placemark. Only the first geometry element is kept.

    Returns None when the placemark has no recognized geometry. A geometry
    that cannot be converted yields an UNKNOWN feature.
    """
    feature = Feature(kind=FeatureKind.UNKNOWN)
    geometry_elem = None
    for component in _read_common(pm, feature, styles):
        if _local(component.tag) not in _GEOMETRY_TAGS:
            continue
        if geometry_elem is None:
            geometry_elem = component
        else:
            logger.debug(f"Placemark {feature.name!r}: ignoring extra {_local(component.tag)}")

    if geometry_elem is None:
        logger.debug(f"Placemark {feature.name!r} has no supported geometry, skipped")
        return None

    try:
        geometry = _parse_geometry(geometry_elem)
    except UnsupportedGeometryError as e:
        logger.warning(f"Placemark {feature.name!r}: {e}")
        feature.refresh_bounding_box()
        return feature

    feature.kind = FeatureKind(geometry.geometry_type)
    feature.geometry = geometry
    feature.refresh_bounding_box()
    return feature


def _parse_ground_overlay(elem: ET.Element, styles: StyleSheet) -> Feature:
    overlay = GroundOverlay()
    feature = Feature(kind=FeatureKind.GROUND_OVERLAY, ground_overlay=overlay)
    for component in _read_common(elem, feature, styles):
        tag = _local(component.tag)
        if tag == "color":
            overlay.color = normalize_color(_text(component))
        elif tag == "Icon":
            overlay.icon_href = _text(_find_child(component, "href")) or None
        elif tag == "LatLonBox":
            values = {}
            for side in ("north", "south", "east", "west"):
                values[side] = _parse_float(_text(_find_child(component, side)))
            if None not in values.values():
                overlay.lat_lon_box = BoundingBox(**values)
            else:
                logger.warning(f"GroundOverlay {feature.name!r}: incomplete LatLonBox")
            rotation = _text(_find_child(component, "rotation"))
            if rotation:
                overlay.rotation = _parse_float(rotation, 0.0)
    feature.refresh_bounding_box()
    return feature


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

def _parse_geometry(elem: ET.Element) -> Geometry:
    """Convert a geometry element.

    Raises:
        UnsupportedGeometryError: If the element cannot be converted.
    """
    tag = _local(elem.tag)
    if tag == "Point":
        coords = _parse_coordinates_elem(_find_descendant(elem, "coordinates"))
        if not coords:
            raise UnsupportedGeometryError("Point has no valid coordinate")
        return Point(coords[0])
    if tag == "LineString":
        return LineString(_parse_coordinates_elem(_find_descendant(elem, "coordinates")))
    if tag == "Polygon":
        return _parse_polygon(elem)
    if tag == "MultiGeometry":
        return MultiGeometry([
            _parse_geometry(child) for child in elem if _local(child.tag) in _GEOMETRY_TAGS
        ])
    raise UnsupportedGeometryError(f"Unsupported geometry element: {tag}")


def _parse_polygon(polygon_elem: ET.Element) -> Polygon:
    """Parse polygon rings (outer boundary + inner boundaries)."""
    outer: list[Coordinate] = []
    outer_elem = _find_child(polygon_elem, "outerBoundaryIs")
    if outer_elem is not None:
        outer = _parse_ring(outer_elem)

    holes = [_parse_ring(inner) for inner in _children(polygon_elem, "innerBoundaryIs")]
    return Polygon(outer, holes)


def _parse_ring(boundary: ET.Element) -> list[Coordinate]:
    ring = _find_child(boundary, "LinearRing")
    if ring is None:
        return []
    return _parse_coordinates_elem(_find_child(ring, "coordinates"))


def _parse_coordinates_elem(elem: ET.Element | None) -> list[Coordinate]:
    if elem is None or not elem.text:
        return []
    return parse_coordinate_string(elem.text)


def parse_coordinate_tuple(token: str) -> Coordinate:
    """Parse one 'lng,lat[,alt]' tuple.

    Raises:
        CoordinateParseError: If fewer than two parts or a part is not numeric.
    """
    parts = token.split(",")
    if len(parts) < 2:
        raise CoordinateParseError(f"Expected lng,lat[,alt], got {token!r}")
    try:
        lng = float(parts[0])
        lat = float(parts[1])
        alt = float(parts[2]) if len(parts) >= 3 and parts[2] else 0.0
    except ValueError as e:
        raise CoordinateParseError(f"Non-numeric coordinate {token!r}") from e
    return Coordinate(lng, lat, alt)


def parse_coordinate_string(coord_str: str) -> list[Coordinate]:
    """Parse KML coordinate string: 'lng,lat,alt lng,lat,alt ...'

    Tuples that fail to parse are dropped; the rest are kept.
    """
    coords = []
    for token in coord_str.split():
        try:
            coords.append(parse_coordinate_tuple(token))
        except CoordinateParseError as e:
            logger.debug(f"Dropping coordinate tuple: {e}")
    return coords
