"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

load_dotenv()

from .middleware import register_error_handlers
from .routes import graph, open_file
from ..services.config import get_config

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to log the served documents."""
    config = get_config()
    logger.info("Serving graph document %s", config.graph_document_path)
    if config.tags_document_path is not None:
        logger.info("Serving tag document %s", config.tags_document_path)
    if not config.graph_document_path.exists():
        logger.warning("Graph document not found yet: %s", config.graph_document_path)
    yield


app = FastAPI(
    title="Note Graph Viewer API",
    description="Serves note graph documents and opens clicked notes",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

app.include_router(graph.router, tags=["graph"])
app.include_router(open_file.router, tags=["open"])


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


static_dir = get_config().static_dir
if static_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    logger.info(f"Serving static files from: {static_dir}")
else:
    logger.warning(f"Static directory not found at: {static_dir}")


__all__ = ["app"]
