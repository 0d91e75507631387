"""Geometry value types: Point, LineString, Polygon, MultiGeometry.

All coordinates are stored in GeoJSON order: (lng, lat, alt), with alt
defaulting to 0.0 when the source data omits it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, NamedTuple, Union


class Coordinate(NamedTuple):
    """A single position. Immutable, so sequences of them copy by value."""

    lng: float
    lat: float
    alt: float = 0.0


@dataclass(frozen=True)
class BoundingBox:
    """Minimal lng/lat rectangle covering a set of coordinates."""

    north: float
    east: float
    south: float
    west: float

    @classmethod
    def from_coordinates(cls, coords: Iterable[Coordinate]) -> BoundingBox | None:
        """Bounding box of coords, or None if there are none."""
        north = east = south = west = None
        for c in coords:
            if north is None:
                north = south = c.lat
                east = west = c.lng
                continue
            north = max(north, c.lat)
            south = min(south, c.lat)
            east = max(east, c.lng)
            west = min(west, c.lng)
        if north is None:
            return None
        return cls(north=north, east=east, south=south, west=west)

    def union(self, other: BoundingBox | None) -> BoundingBox:
        """Smallest box covering both self and other (None means empty)."""
        if other is None:
            return self
        return BoundingBox(
            north=max(self.north, other.north),
            east=max(self.east, other.east),
            south=min(self.south, other.south),
            west=min(self.west, other.west),
        )

    def contains(self, coord: Coordinate) -> bool:
        return self.west <= coord.lng <= self.east and self.south <= coord.lat <= self.north

    def as_geojson_bbox(self) -> list[float]:
        """[west, south, east, north] as used by the GeoJSON bbox member."""
        return [self.west, self.south, self.east, self.north]


def union_boxes(boxes: Iterable[BoundingBox | None]) -> BoundingBox | None:
    """Union of all non-None boxes; None if every box is None."""
    result = None
    for box in boxes:
        if box is None:
            continue
        result = box if result is None else result.union(box)
    return result


@dataclass
class Point:
    coordinate: Coordinate

    geometry_type = "Point"

    def iter_coordinates(self) -> Iterator[Coordinate]:
        yield self.coordinate

    def bounding_box(self) -> BoundingBox | None:
        return BoundingBox.from_coordinates([self.coordinate])

    def copy(self) -> Point:
        return Point(self.coordinate)


@dataclass
class LineString:
    coordinates: list[Coordinate] = field(default_factory=list)

    geometry_type = "LineString"

    def iter_coordinates(self) -> Iterator[Coordinate]:
        yield from self.coordinates

    def bounding_box(self) -> BoundingBox | None:
        return BoundingBox.from_coordinates(self.coordinates)

    def copy(self) -> LineString:
        return LineString(list(self.coordinates))


@dataclass
class Polygon:
    """A polygon with an outer ring and optional holes.

    Ring closure is not enforced. Only the outer ring contributes to the
    bounding box, so a polygon with an empty outer ring has none.
    """

    outer: list[Coordinate] = field(default_factory=list)
    holes: list[list[Coordinate]] = field(default_factory=list)

    geometry_type = "Polygon"

    def iter_coordinates(self) -> Iterator[Coordinate]:
        yield from self.outer
        for hole in self.holes:
            yield from hole

    def bounding_box(self) -> BoundingBox | None:
        return BoundingBox.from_coordinates(self.outer)

    def copy(self) -> Polygon:
        return Polygon(list(self.outer), [list(hole) for hole in self.holes])


@dataclass
class MultiGeometry:
    """An ordered collection of geometries, possibly nested."""

    geometries: list[Geometry] = field(default_factory=list)

    geometry_type = "MultiGeometry"

    def iter_coordinates(self) -> Iterator[Coordinate]:
        for geometry in self.geometries:
            yield from geometry.iter_coordinates()

    def bounding_box(self) -> BoundingBox | None:
        return union_boxes(g.bounding_box() for g in self.geometries)

    def copy(self) -> MultiGeometry:
        return MultiGeometry([g.copy() for g in self.geometries])


Geometry = Union[Point, LineString, Polygon, MultiGeometry]
