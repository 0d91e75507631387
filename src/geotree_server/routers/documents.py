"""Document endpoints: convert, import, list, export and delete feature documents.

Bodies are raw KML or GeoJSON text; conversion and export responses carry
the serialized document with the matching media type.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel

from geotree.document import Document
from geotree.errors import GeoTreeError, MalformedDocumentError, UnsupportedFormatError
from geotree.manager import DocumentManager, parse_document, serialize_document

router = APIRouter(prefix="/api/documents", tags=["documents"])

_MEDIA_TYPES = {
    "kml": "application/vnd.google-earth.kml+xml",
    "geojson": "application/geo+json",
}

_manager = DocumentManager()


def get_manager() -> DocumentManager:
    """Dependency returning the process-wide document registry."""
    return _manager


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class DocumentSummary(BaseModel):
    """A registered document."""
    id: str
    name: Optional[str]
    source_format: str
    feature_count: int
    style_count: int
    bbox: Optional[list[float]]  # [west, south, east, north]
    created_at: str


class BoundingBoxResponse(BaseModel):
    id: str
    bbox: Optional[list[float]]


def _summary(document: Document) -> DocumentSummary:
    box = document.root.bounding_box
    return DocumentSummary(
        id=document.document_id,
        name=document.name,
        source_format=document.source_format,
        # The root folder itself is not counted
        feature_count=sum(1 for _ in document.root.walk()) - 1,
        style_count=len(document.styles),
        bbox=box.as_geojson_bbox() if box is not None else None,
        created_at=document.created_at,
    )


def _check_format(format: str) -> None:
    if format not in _MEDIA_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported format: {format}")


def _get_or_404(manager: DocumentManager, document_id: str) -> Document:
    document = manager.get_document(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    return document


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/convert")
async def convert_document(
    request: Request,
    source: str = Query(..., description="Input format: kml or geojson"),
    target: str = Query(..., description="Output format: kml or geojson"),
):
    """Convert a request body from one format to the other without storing it."""
    _check_format(source)
    _check_format(target)
    body = await request.body()
    try:
        document = parse_document(body, source)
        content = serialize_document(document, target)
    except MalformedDocumentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except GeoTreeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(f"Converted {len(body)} bytes from {source} to {target}")
    return Response(content=content, media_type=_MEDIA_TYPES[target])


@router.post("", response_model=DocumentSummary)
async def import_document(
    request: Request,
    format: str = Query("kml", description="Input format: kml or geojson"),
    manager: DocumentManager = Depends(get_manager),
):
    """Parse the request body and register it as a new document."""
    _check_format(format)
    body = await request.body()
    try:
        document = manager.import_text(body, format)
    except MalformedDocumentError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UnsupportedFormatError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _summary(document)


@router.get("", response_model=list[DocumentSummary])
async def list_documents(manager: DocumentManager = Depends(get_manager)):
    """List all registered documents."""
    return [_summary(d) for d in manager.list_documents()]


@router.get("/{document_id}")
async def export_document(
    document_id: str,
    format: str = Query("kml", description="Output format: kml or geojson"),
    manager: DocumentManager = Depends(get_manager),
):
    """Serialize a registered document."""
    _check_format(format)
    _get_or_404(manager, document_id)
    try:
        content = manager.export_document(document_id, format)
    except GeoTreeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(content=content, media_type=_MEDIA_TYPES[format])


@router.get("/{document_id}/bbox", response_model=BoundingBoxResponse)
async def document_bbox(document_id: str, manager: DocumentManager = Depends(get_manager)):
    """Bounding box of a document as [west, south, east, north], or null."""
    document = _get_or_404(manager, document_id)
    box = document.root.bounding_box
    return BoundingBoxResponse(
        id=document_id,
        bbox=box.as_geojson_bbox() if box is not None else None,
    )


@router.delete("/{document_id}")
async def delete_document(document_id: str, manager: DocumentManager = Depends(get_manager)):
    """Remove a document from the registry."""
    if not manager.remove_document(document_id):
        raise HTTPException(status_code=404, detail=f"Document not found: {document_id}")
    logger.info(f"Removed document {document_id}")
    return {"removed": True, "id": document_id}
