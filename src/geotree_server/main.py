"""geotree HTTP service: KML/GeoJSON conversion and document registry."""

from __future__ import annotations

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from geotree.config import settings
from geotree_server.routers import documents_router

VERSION = "0.1.0"


def configure_logging(level: str | None = None) -> None:
    """Route loguru output to stderr at the configured level."""
    logger.remove()
    logger.add(sys.stderr, level=(level or settings.log_level).upper())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()
    logger.info(f"geotree v{VERSION} starting on {settings.host}:{settings.port}")
    yield
    logger.info("geotree shutting down")


app = FastAPI(
    title="geotree",
    description="Geographic feature trees with KML and GeoJSON conversion",
    version=VERSION,
    lifespan=lifespan,
)

app.include_router(documents_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "operational", "version": VERSION}


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("geotree_server.main:app", host=settings.host, port=settings.port)
