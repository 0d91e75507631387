"""Format parsers: text in, feature tree out."""

from geotree.parsers.geojson import feature_from_geojson, geometry_from_geojson, parse_geojson
from geotree.parsers.kml import parse_kml

__all__ = ["feature_from_geojson", "geometry_from_geojson", "parse_geojson", "parse_kml"]
