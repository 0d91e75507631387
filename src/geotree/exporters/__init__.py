"""Format exporters: feature tree in, text out."""

from geotree.exporters.geojson import dumps_geojson, export_geojson, export_geometry
from geotree.exporters.kml import export_kml

__all__ = ["dumps_geojson", "export_geojson", "export_geometry", "export_kml"]
