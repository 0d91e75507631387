"""API routers."""

from geotree_server.routers.documents import router as documents_router

__all__ = ["documents_router"]
