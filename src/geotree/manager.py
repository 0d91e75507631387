"""DocumentManager: registry of loaded feature documents.

Manages the lifecycle of Document objects: add, remove, get, list, import
from text or file, export to a format. File I/O happens here, outside the
codecs, which only see materialized text.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger

from geotree.document import Document
from geotree.errors import UnsupportedFormatError

FORMATS = ("kml", "geojson")

_EXTENSION_FORMATS = {
    ".kml": "kml",
    ".geojson": "geojson",
    ".json": "geojson",
}


def detect_format(path: str | os.PathLike) -> str:
    """Format name for a file path, from its extension (default "geojson")."""
    ext = os.path.splitext(str(path))[1].lower()
    return _EXTENSION_FORMATS.get(ext, "geojson")


def parse_document(content: str | bytes, format: str) -> Document:
    """Parse content in the given format into a Document."""
    if format == "kml":
        from geotree.parsers.kml import parse_kml
        return parse_kml(content)
    elif format == "geojson":
        from geotree.parsers.geojson import parse_geojson
        return Document(root=parse_geojson(content), source_format="geojson")
    else:
        raise UnsupportedFormatError(f"Unsupported import format: {format}")


def serialize_document(document: Document, format: str) -> str:
    """Serialize a Document in the given format."""
    if format == "kml":
        from geotree.exporters.kml import export_kml
        return export_kml(document.root, document.styles)
    elif format == "geojson":
        from geotree.exporters.geojson import dumps_geojson
        return dumps_geojson(document.root)
    else:
        raise UnsupportedFormatError(f"Unsupported export format: {format}")


class DocumentManager:
    """Registry of loaded documents."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    def add_document(self, document: Document) -> str:
        """Add a document to the registry.

        Returns:
            The document_id of the added document.
        """
        self._documents[document.document_id] = document
        return document.document_id

    def remove_document(self, document_id: str) -> bool:
        """Remove a document from the registry.

        Returns:
            True if the document was removed, False if it didn't exist.
        """
        if document_id in self._documents:
            del self._documents[document_id]
            return True
        return False

    def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    def list_documents(self) -> list[Document]:
        return list(self._documents.values())

    def import_text(self, content: str | bytes, format: str) -> Document:
        """Parse content into a new registered document.

        Raises:
            UnsupportedFormatError: If format is not "kml" or "geojson".
            MalformedDocumentError: If the content cannot be parsed.
        """
        document = parse_document(content, format)
        now = datetime.now(timezone.utc).isoformat()
        document.created_at = now
        document.updated_at = now
        self.add_document(document)
        logger.info(f"Imported {format} document {document.document_id} ({document.name!r})")
        return document

    def import_file(self, path: str | os.PathLike, format: str = "auto") -> Document:
        """Import a file into a new document.

        Args:
            path: Path to the file to import.
            format: "kml", "geojson", or "auto" to detect from the extension.
        """
        if format == "auto":
            format = detect_format(path)
        content = Path(path).read_bytes()
        return self.import_text(content, format)

    def export_document(self, document_id: str, format: str) -> str:
        """Export a document to a string in the given format.

        Raises:
            KeyError: If the document_id is not found.
            UnsupportedFormatError: If the format is not supported.
        """
        document = self._documents.get(document_id)
        if document is None:
            raise KeyError(f"Document not found: {document_id}")
        return serialize_document(document, format)

    def export_file(self, document_id: str, path: str | os.PathLike,
                    format: str = "auto") -> Path:
        """Export a document to a file and return its path."""
        if format == "auto":
            format = detect_format(path)
        content = self.export_document(document_id, format)
        target = Path(path)
        target.write_text(content, encoding="utf-8")
        logger.info(f"Exported document {document_id} as {format} to {target}")
        return target
