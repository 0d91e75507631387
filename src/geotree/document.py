"""Document: a feature tree root together with the styles it references."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from geotree.feature import Feature, FeatureKind
from geotree.style import StyleSheet


def _new_document_id() -> str:
    return f"doc-{uuid.uuid4().hex[:8]}"


@dataclass
class Document:
    """A root folder and its StyleSheet.

    Attributes:
        root: Root folder of the feature tree.
        styles: Styles referenced by style_ref ids in the tree.
        document_id: Registry identifier.
        source_format: Format the document was parsed from ("kml", "geojson"),
            or "" if built in memory.
        created_at: ISO8601 creation timestamp.
        updated_at: ISO8601 last-update timestamp.
    """

    root: Feature = field(default_factory=lambda: Feature(kind=FeatureKind.FOLDER))
    styles: StyleSheet = field(default_factory=StyleSheet)
    document_id: str = field(default_factory=_new_document_id)
    source_format: str = ""
    created_at: str = ""
    updated_at: str = ""

    @property
    def name(self) -> str | None:
        return self.root.name
