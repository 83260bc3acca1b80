"""Graph document routes: the payload consumed by graph views, plus refresh signalling."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import APIRouter

from ...models.graph import DocumentVersion, GraphDocument, TagDescriptor
from ...services.config import get_config
from ...services.graph_builder import build
from ...services.loader import load_graph_document, load_tag_document

logger = logging.getLogger(__name__)

router = APIRouter()


class DocumentVersionCounter:
    """In-memory version of the served graph document; bumped on refresh."""

    def __init__(self) -> None:
        self.version = 0

    def bump(self) -> int:
        self.version += 1
        return self.version


document_version = DocumentVersionCounter()


@router.get("/api/graph", response_model=GraphDocument)
async def get_graph_document() -> GraphDocument:
    """Serve the validated graph document."""
    document = load_graph_document(get_config().graph_document_path)
    # Reject documents that could never form a snapshot (duplicate note paths).
    build(document.notes, document.links, expand_tags=False)
    return document


@router.get("/api/tags", response_model=List[TagDescriptor])
async def get_tags() -> List[TagDescriptor]:
    """Serve the tag document, or the distinct tags carried by the notes when none is configured."""
    config = get_config()
    if config.tags_document_path is not None:
        return load_tag_document(config.tags_document_path)
    document = load_graph_document(config.graph_document_path)
    names = sorted({name for note in document.notes for name in note.tags})
    return [TagDescriptor(name=name) for name in names]


@router.get("/api/config")
async def get_view_config() -> Dict[str, Any]:
    """Active view configuration profile."""
    return get_config().view_config().model_dump()


@router.get("/api/graph/version", response_model=DocumentVersion)
async def get_document_version() -> DocumentVersion:
    return DocumentVersion(version=document_version.version)


@router.post("/api/refresh", response_model=DocumentVersion)
async def refresh_document() -> DocumentVersion:
    """Signal that a new graph document is available."""
    version = document_version.bump()
    logger.info("Graph document refreshed (version %d)", version)
    return DocumentVersion(version=version)
