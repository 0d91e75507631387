"""Exception hierarchy for the feature tree and its codecs.

Document-level failures (MalformedDocumentError) abort a parse. Element and
coordinate failures (UnsupportedGeometryError, CoordinateParseError) are
raised inside the codecs and recovered locally so sibling features keep
processing.
"""

from __future__ import annotations


class GeoTreeError(Exception):
    """Base class for all geotree errors."""


class MalformedDocumentError(GeoTreeError, ValueError):
    """Raised when a KML or GeoJSON document cannot be parsed at all."""


class UnsupportedGeometryError(GeoTreeError, ValueError):
    """Raised when a geometry is recognized but cannot be converted."""


class CoordinateParseError(GeoTreeError, ValueError):
    """Raised when a single coordinate tuple is not numeric."""


class InvalidTreeOperationError(GeoTreeError):
    """Raised when a tree mutation is not valid for the target feature."""


class NotAFolderError(InvalidTreeOperationError):
    """Raised when a child operation targets a feature that is not a folder."""


class ChildIndexError(InvalidTreeOperationError, IndexError):
    """Raised when remove_child is given an index outside the children."""


class UnsupportedFormatError(GeoTreeError, ValueError):
    """Raised when an import/export format name is not known."""
