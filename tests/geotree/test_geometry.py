"""Tests for geometry value types and bounding boxes."""

import pytest
from geotree.geometry import (
    BoundingBox,
    Coordinate,
    LineString,
    MultiGeometry,
    Point,
    Polygon,
    union_boxes,
)


class TestCoordinate:
    """Coordinate defaults and value semantics."""

    def test_altitude_defaults_to_zero(self):
        c = Coordinate(2.3, 48.8)
        assert c.alt == 0.0
        assert c == (2.3, 48.8, 0.0)

    def test_fields_are_lng_lat_alt(self):
        c = Coordinate(-122.4, 37.7, 12.0)
        assert c.lng == -122.4
        assert c.lat == 37.7
        assert c.alt == 12.0


class TestBoundingBox:
    """BoundingBox construction and union."""

    def test_from_coordinates(self):
        box = BoundingBox.from_coordinates([Coordinate(1, 2), Coordinate(-3, 5), Coordinate(4, -1)])
        assert box == BoundingBox(north=5, east=4, south=-1, west=-3)

    def test_from_no_coordinates_is_none(self):
        assert BoundingBox.from_coordinates([]) is None

    def test_union(self):
        a = BoundingBox(north=1, east=1, south=0, west=0)
        b = BoundingBox(north=3, east=0.5, south=-2, west=0.2)
        assert a.union(b) == BoundingBox(north=3, east=1, south=-2, west=0)

    def test_union_with_none_is_identity(self):
        a = BoundingBox(north=1, east=1, south=0, west=0)
        assert a.union(None) is a

    def test_union_boxes_skips_none(self):
        a = BoundingBox(north=1, east=1, south=0, west=0)
        assert union_boxes([None, a, None]) == a
        assert union_boxes([None, None]) is None
        assert union_boxes([]) is None

    def test_contains(self):
        box = BoundingBox(north=10, east=10, south=0, west=0)
        assert box.contains(Coordinate(5, 5))
        assert not box.contains(Coordinate(11, 5))

    def test_as_geojson_bbox(self):
        box = BoundingBox(north=4, east=3, south=2, west=1)
        assert box.as_geojson_bbox() == [1, 2, 3, 4]


class TestGeometryBoundingBoxes:
    """Per-geometry extent rules."""

    def test_point(self):
        box = Point(Coordinate(2.3, 48.8)).bounding_box()
        assert box == BoundingBox(north=48.8, east=2.3, south=48.8, west=2.3)

    def test_empty_linestring_has_no_box(self):
        assert LineString().bounding_box() is None

    def test_polygon_uses_outer_ring_only(self):
        polygon = Polygon(
            [Coordinate(0, 0), Coordinate(10, 0), Coordinate(10, 10), Coordinate(0, 0)],
            [[Coordinate(2, 2), Coordinate(3, 2), Coordinate(3, 3)]],
        )
        assert polygon.bounding_box() == BoundingBox(north=10, east=10, south=0, west=0)

    def test_polygon_with_empty_outer_ring_has_no_box(self):
        polygon = Polygon([], [[Coordinate(2, 2), Coordinate(3, 3)]])
        assert polygon.bounding_box() is None

    def test_multigeometry_unions_members(self):
        multi = MultiGeometry([
            Point(Coordinate(1, 1)),
            MultiGeometry([LineString([Coordinate(-5, 2), Coordinate(0, 8)])]),
        ])
        assert multi.bounding_box() == BoundingBox(north=8, east=1, south=1, west=-5)

    def test_iter_coordinates_includes_holes(self):
        polygon = Polygon([Coordinate(0, 0)], [[Coordinate(1, 1)]])
        assert list(polygon.iter_coordinates()) == [Coordinate(0, 0), Coordinate(1, 1)]


class TestGeometryCopy:
    """copy() is deep and structurally equal."""

    def test_linestring_copy_is_independent(self):
        line = LineString([Coordinate(0, 0), Coordinate(1, 1)])
        clone = line.copy()
        assert clone == line
        clone.coordinates.append(Coordinate(2, 2))
        assert len(line.coordinates) == 2

    def test_polygon_copy_copies_holes(self):
        polygon = Polygon([Coordinate(0, 0)], [[Coordinate(1, 1)]])
        clone = polygon.copy()
        assert clone == polygon
        clone.holes[0].append(Coordinate(2, 2))
        assert polygon.holes == [[Coordinate(1, 1)]]

    def test_multigeometry_copy_is_recursive(self):
        inner = Point(Coordinate(1, 1))
        multi = MultiGeometry([MultiGeometry([inner])])
        clone = multi.copy()
        assert clone == multi
        clone.geometries[0].geometries[0].coordinate = Coordinate(9, 9)
        assert inner.coordinate == Coordinate(1, 1)

    @pytest.mark.parametrize("geometry", [
        Point(Coordinate(1, 2, 3)),
        LineString([Coordinate(1, 2)]),
        Polygon([Coordinate(1, 2)]),
        MultiGeometry([Point(Coordinate(1, 2))]),
    ])
    def test_copy_is_new_object(self, geometry):
        clone = geometry.copy()
        assert clone == geometry
        assert clone is not geometry
