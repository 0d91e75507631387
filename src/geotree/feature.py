"""Feature tree: folders, placemarks and ground overlays.

A Feature is either a folder (owns ``children``), a placemark (owns a
``geometry``), a ground overlay (owns a ``ground_overlay`` payload) or
UNKNOWN. Each node caches its bounding box: adding a child extends the
folder's box, removing a child recomputes it from the remaining children.
Direct geometry edits must be followed by refresh_bounding_box() on the
nodes whose extent may have changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterator, Protocol

from geotree.errors import ChildIndexError, InvalidTreeOperationError, NotAFolderError
from geotree.geometry import BoundingBox, Coordinate, Geometry, Point, union_boxes
from geotree.style import Style, StyleSheet, normalize_color


class FeatureKind(str, Enum):
    """Feature type tag. Geometry kinds share the name of their geometry."""

    FOLDER = "Folder"
    POINT = "Point"
    LINE_STRING = "LineString"
    POLYGON = "Polygon"
    MULTI_GEOMETRY = "MultiGeometry"
    GROUND_OVERLAY = "GroundOverlay"
    UNKNOWN = "Unknown"


GEOMETRY_KINDS = frozenset({
    FeatureKind.POINT,
    FeatureKind.LINE_STRING,
    FeatureKind.POLYGON,
    FeatureKind.MULTI_GEOMETRY,
})


def kind_for_geometry(geometry: Geometry) -> FeatureKind:
    return FeatureKind(geometry.geometry_type)


@dataclass
class GroundOverlay:
    """An image draped over a lat/lng box.

    Attributes:
        icon_href: Image location, as written in the document.
        color: KML aabbggrr tint, or None.
        lat_lon_box: Extent covered by the image.
        rotation: Rotation in degrees, counter-clockwise.
    """

    icon_href: str | None = None
    color: str | None = None
    lat_lon_box: BoundingBox | None = None
    rotation: float = 0.0

    def __post_init__(self) -> None:
        if self.color is not None:
            self.color = normalize_color(self.color)

    def copy(self) -> GroundOverlay:
        return replace(self)


@dataclass
class Feature:
    """A node of the feature tree.

    Attributes:
        kind: Which payload is populated (children, geometry, ground_overlay).
        feature_id: Optional document identifier, preserved as-is.
        name: Display name.
        description: Display text.
        visible: KML visibility, default True.
        open: Whether a folder is expanded, default True. Always True on
            other kinds.
        children: Owned child features (folders only).
        geometry: Owned geometry (geometry kinds only).
        ground_overlay: Ground overlay payload (GROUND_OVERLAY only).
        style_ref: Id into the document StyleSheet. Never an owned Style.
        extended_data: Name/value metadata, values always strings.
        bounding_box: Cached extent of this subtree; None if no coordinates.
    """

    kind: FeatureKind = FeatureKind.UNKNOWN
    feature_id: str | None = None
    name: str | None = None
    description: str | None = None
    visible: bool = True
    open: bool = True
    children: list[Feature] | None = None
    geometry: Geometry | None = None
    ground_overlay: GroundOverlay | None = None
    style_ref: str | None = None
    extended_data: dict[str, str] = field(default_factory=dict)
    bounding_box: BoundingBox | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.kind == FeatureKind.FOLDER and self.children is None:
            self.children = []
        if self.kind != FeatureKind.FOLDER:
            # open only applies to folders
            self.open = True
        if self.bounding_box is None:
            self.bounding_box = self._own_bounding_box()

    # -- construction -------------------------------------------------------

    @classmethod
    def folder(cls, name: str | None = None, children: list[Feature] | None = None,
               **kwargs: Any) -> Feature:
        """Create a folder, adding children one by one."""
        folder = cls(kind=FeatureKind.FOLDER, name=name, children=[], **kwargs)
        for child in children or []:
            folder.add_child(child)
        return folder

    @classmethod
    def placemark(cls, geometry: Geometry, name: str | None = None, **kwargs: Any) -> Feature:
        """Create a placemark whose kind follows its geometry."""
        return cls(kind=kind_for_geometry(geometry), geometry=geometry, name=name, **kwargs)

    @classmethod
    def overlay(cls, ground_overlay: GroundOverlay, name: str | None = None,
                **kwargs: Any) -> Feature:
        return cls(kind=FeatureKind.GROUND_OVERLAY, ground_overlay=ground_overlay,
                   name=name, **kwargs)

    @classmethod
    def unknown(cls, name: str | None = None, **kwargs: Any) -> Feature:
        return cls(kind=FeatureKind.UNKNOWN, name=name, **kwargs)

    @property
    def is_folder(self) -> bool:
        return self.kind == FeatureKind.FOLDER

    # -- tree mutation ------------------------------------------------------

    def add_child(self, child: Feature) -> None:
        """Append child to this folder and extend the bounding box.

        Raises:
            NotAFolderError: If this feature is not a folder.
        """
        if not self.is_folder:
            raise NotAFolderError(f"Cannot add a child to a {self.kind.value} feature")
        self.children.append(child)
        self.update_bounding_box_with(child.bounding_box)

    def remove_child(self, index: int) -> Feature:
        """Remove and return the child at index, recomputing the bounding box.

        The box is rebuilt from the remaining children's cached boxes, since
        the removed child may have held the only extremal coordinate.

        Raises:
            NotAFolderError: If this feature is not a folder.
            ChildIndexError: If index is not in range(len(children)).
        """
        if not self.is_folder:
            raise NotAFolderError(f"Cannot remove a child from a {self.kind.value} feature")
        if not 0 <= index < len(self.children):
            raise ChildIndexError(
                f"Child index {index} out of range for folder with {len(self.children)} children"
            )
        removed = self.children.pop(index)
        self.bounding_box = union_boxes(c.bounding_box for c in self.children)
        return removed

    def update_bounding_box_with(self, box: BoundingBox | None) -> None:
        """Extend the cached box to cover box (None is empty)."""
        if box is None:
            return
        self.bounding_box = box if self.bounding_box is None else self.bounding_box.union(box)

    def move_to(self, coordinate: Coordinate) -> None:
        """Move a Point feature, as when its marker is dragged.

        Ancestor boxes are not updated; call refresh_bounding_box() on the
        root afterwards if they are needed.
        """
        if self.kind != FeatureKind.POINT or not isinstance(self.geometry, Point):
            raise InvalidTreeOperationError(f"Cannot move a {self.kind.value} feature")
        self.geometry.coordinate = coordinate
        self.bounding_box = self.geometry.bounding_box()

    def set_extended_data(self, name: str, value: Any) -> None:
        """Set name to value (stored as a string), replacing any previous value."""
        self.extended_data[name] = value if isinstance(value, str) else str(value)

    # -- bounding boxes -----------------------------------------------------

    def compute_bounding_box(self) -> BoundingBox | None:
        """Extent of this subtree recomputed from geometry, ignoring caches."""
        if self.is_folder:
            return union_boxes(c.compute_bounding_box() for c in self.children)
        return self._leaf_bounding_box()

    def refresh_bounding_box(self) -> BoundingBox | None:
        """Recompute and store the cached boxes of this whole subtree."""
        if self.is_folder:
            self.bounding_box = union_boxes(c.refresh_bounding_box() for c in self.children)
        else:
            self.bounding_box = self._leaf_bounding_box()
        return self.bounding_box

    def _own_bounding_box(self) -> BoundingBox | None:
        if self.is_folder:
            return union_boxes(c.bounding_box for c in self.children)
        return self._leaf_bounding_box()

    def _leaf_bounding_box(self) -> BoundingBox | None:
        if self.kind in GEOMETRY_KINDS and self.geometry is not None:
            return self.geometry.bounding_box()
        if self.kind == FeatureKind.GROUND_OVERLAY and self.ground_overlay is not None:
            return self.ground_overlay.lat_lon_box
        return None

    # -- copying and traversal ----------------------------------------------

    def deep_clone(self) -> Feature:
        """Recursive copy. style_ref is copied by value (same shared StyleSheet)."""
        return replace(
            self,
            children=[c.deep_clone() for c in self.children] if self.children is not None else None,
            geometry=self.geometry.copy() if self.geometry is not None else None,
            ground_overlay=self.ground_overlay.copy() if self.ground_overlay is not None else None,
            extended_data=dict(self.extended_data),
            bounding_box=self.bounding_box,
        )

    def walk(self, include_hidden: bool = True) -> Iterator[Feature]:
        """Yield this feature then its descendants, folders before their children.

        With include_hidden=False, invisible features and their subtrees are
        not yielded.
        """
        if not include_hidden and not self.visible:
            return
        yield self
        if self.is_folder:
            for child in self.children:
                yield from child.walk(include_hidden)


class VisualBuilder(Protocol):
    """Builds a renderable object for one feature, given a style resolver."""

    def __call__(self, feature: Feature, resolve: Callable[[str | None], Style]) -> Any: ...


def build_visuals(root: Feature, styles: StyleSheet, builder: VisualBuilder,
                  include_hidden: bool = False) -> list[Any]:
    """Invoke builder on every feature of root in walk order.

    Results are returned in the same order so callers can stack them with
    folders below their children. None results are dropped.
    """
    visuals = []
    for feature in root.walk(include_hidden=include_hidden):
        visual = builder(feature, styles.resolve)
        if visual is not None:
            visuals.append(visual)
    return visuals
