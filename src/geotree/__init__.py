"""Geographic feature trees with KML and GeoJSON import/export.

Folders, placemarks (Point, LineString, Polygon, MultiGeometry) and ground
overlays, with shared styles referenced by id and cached bounding boxes.
All parsers use only Python stdlib (xml.etree.ElementTree, json).
"""

from geotree.document import Document
from geotree.feature import Feature, FeatureKind, GroundOverlay, VisualBuilder, build_visuals
from geotree.geometry import BoundingBox, Coordinate, LineString, MultiGeometry, Point, Polygon
from geotree.manager import DocumentManager
from geotree.style import Style, StyleSheet

__all__ = [
    "BoundingBox",
    "Coordinate",
    "Document",
    "DocumentManager",
    "Feature",
    "FeatureKind",
    "GroundOverlay",
    "LineString",
    "MultiGeometry",
    "Point",
    "Polygon",
    "Style",
    "StyleSheet",
    "VisualBuilder",
    "build_visuals",
]
