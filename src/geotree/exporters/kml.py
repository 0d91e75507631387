"""Export a feature tree and its StyleSheet to a KML XML string.

Uses xml.etree.ElementTree. KML coordinates are written "lng,lat,alt"
(longitude first). Shared styles are written once, at the end of the root
Document element.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Iterable

from loguru import logger

from geotree.config import settings
from geotree.feature import GEOMETRY_KINDS, Feature, FeatureKind
from geotree.geometry import Coordinate, Geometry, LineString, MultiGeometry, Point, Polygon
from geotree.style import Style, StyleSheet


def export_kml(root: Feature, styles: StyleSheet | None = None) -> str:
    """Export a feature tree to a KML XML string.

    Args:
        root: Root feature. A folder becomes the Document element; any other
            feature is wrapped in an otherwise empty Document.
        styles: StyleSheet whose entries are written after the features.

    Returns:
        KML XML string.
    """
    kml = ET.Element("kml")
    kml.set("xmlns", settings.kml_namespace)

    if root.is_folder:
        doc = _write_folder(kml, root, tag="Document")
    else:
        doc = ET.SubElement(kml, "Document")
        _write_feature(doc, root)

    if styles is not None:
        for style_id, style in styles.items():
            _write_style(doc, style_id, style)

    ET.indent(kml, space=settings.kml_indent)
    return ET.tostring(kml, encoding="unicode", xml_declaration=True)


def _write_feature(parent: ET.Element, feature: Feature) -> None:
    if feature.is_folder:
        _write_folder(parent, feature, tag="Folder")
    elif feature.kind in GEOMETRY_KINDS:
        _write_placemark(parent, feature)
    elif feature.kind == FeatureKind.GROUND_OVERLAY:
        _write_ground_overlay(parent, feature)
    else:
        logger.warning(f"Skipping {feature.kind.value} feature {feature.name!r} on KML export")


def _write_common(elem: ET.Element, feature: Feature) -> None:
    """Write id, name, description, visibility, open, styleUrl, ExtendedData."""
    if feature.feature_id is not None:
        elem.set("id", feature.feature_id)
    if feature.name is not None:
        ET.SubElement(elem, "name").text = feature.name
    if feature.description is not None:
        ET.SubElement(elem, "description").text = feature.description
    # visibility and open default to 1; only the exceptions are written
    if not feature.visible:
        ET.SubElement(elem, "visibility").text = "0"
    if feature.is_folder and not feature.open:
        ET.SubElement(elem, "open").text = "0"
    if feature.style_ref is not None:
        ET.SubElement(elem, "styleUrl").text = f"#{feature.style_ref}"
    if feature.extended_data:
        extended = ET.SubElement(elem, "ExtendedData")
        for name, value in feature.extended_data.items():
            data = ET.SubElement(extended, "Data", name=name)
            ET.SubElement(data, "value").text = value


def _write_folder(parent: ET.Element, folder: Feature, tag: str) -> ET.Element:
    elem = ET.SubElement(parent, tag)
    _write_common(elem, folder)
    for child in folder.children:
        _write_feature(elem, child)
    return elem


def _write_placemark(parent: ET.Element, feature: Feature) -> None:
    pm = ET.SubElement(parent, "Placemark")
    _write_common(pm, feature)
    if feature.geometry is not None:
        _write_geometry(pm, feature.geometry)


def _write_ground_overlay(parent: ET.Element, feature: Feature) -> None:
    elem = ET.SubElement(parent, "GroundOverlay")
    _write_common(elem, feature)
    overlay = feature.ground_overlay
    if overlay is None:
        return
    if overlay.color is not None:
        ET.SubElement(elem, "color").text = overlay.color
    if overlay.icon_href is not None:
        icon = ET.SubElement(elem, "Icon")
        ET.SubElement(icon, "href").text = overlay.icon_href
    if overlay.lat_lon_box is not None:
        box = ET.SubElement(elem, "LatLonBox")
        ET.SubElement(box, "north").text = _num(overlay.lat_lon_box.north)
        ET.SubElement(box, "south").text = _num(overlay.lat_lon_box.south)
        ET.SubElement(box, "east").text = _num(overlay.lat_lon_box.east)
        ET.SubElement(box, "west").text = _num(overlay.lat_lon_box.west)
        if overlay.rotation:
            ET.SubElement(box, "rotation").text = _num(overlay.rotation)


def _write_style(doc: ET.Element, style_id: str, style: Style) -> None:
    """Write a shared Style element (LineStyle + PolyStyle)."""
    style_elem = ET.SubElement(doc, "Style", id=style_id)

    if style.line_color is not None or style.line_width is not None:
        line_style = ET.SubElement(style_elem, "LineStyle")
        if style.line_color is not None:
            ET.SubElement(line_style, "color").text = style.line_color
        if style.line_width is not None:
            ET.SubElement(line_style, "width").text = _num(style.line_width)

    if style.fill_color is not None:
        poly_style = ET.SubElement(style_elem, "PolyStyle")
        ET.SubElement(poly_style, "color").text = style.fill_color


def _num(value: float) -> str:
    # repr of a float round-trips exactly
    return str(float(value))


def _coords_to_string(coords: Iterable[Coordinate]) -> str:
    return " ".join(f"{_num(c.lng)},{_num(c.lat)},{_num(c.alt)}" for c in coords)


def _write_coordinates(parent: ET.Element, coords: Iterable[Coordinate]) -> None:
    ET.SubElement(parent, "coordinates").text = _coords_to_string(coords)


def _write_ring(polygon: ET.Element, boundary_tag: str, ring: list[Coordinate]) -> None:
    boundary = ET.SubElement(polygon, boundary_tag)
    linear_ring = ET.SubElement(boundary, "LinearRing")
    _write_coordinates(linear_ring, ring)


def _write_geometry(parent: ET.Element, geometry: Geometry) -> None:
    if isinstance(geometry, Point):
        point = ET.SubElement(parent, "Point")
        _write_coordinates(point, [geometry.coordinate])
    elif isinstance(geometry, LineString):
        line = ET.SubElement(parent, "LineString")
        _write_coordinates(line, geometry.coordinates)
    elif isinstance(geometry, Polygon):
        polygon = ET.SubElement(parent, "Polygon")
        _write_ring(polygon, "outerBoundaryIs", geometry.outer)
        for hole in geometry.holes:
            _write_ring(polygon, "innerBoundaryIs", hole)
    elif isinstance(geometry, MultiGeometry):
        multi = ET.SubElement(parent, "MultiGeometry")
        for item in geometry.geometries:
            _write_geometry(multi, item)
