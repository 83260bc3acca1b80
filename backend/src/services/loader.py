"""Loading and validation of graph and tag documents."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Union

import httpx
from pydantic import TypeAdapter, ValidationError

from ..models.graph import GraphDocument, TagDescriptor

logger = logging.getLogger(__name__)

DocumentSource = Union[str, Path, bytes, dict, list]

_TAG_LIST = TypeAdapter(List[TagDescriptor])


class DataLoadError(Exception):
    """Raised when a graph or tag document is missing or malformed."""

    def __init__(self, error: str, message: str, *, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.error = error
        self.message = message
        self.source = source


def _read_payload(source: DocumentSource) -> Any:
    if isinstance(source, (dict, list)):
        return source
    if isinstance(source, bytes):
        label = "<bytes>"
        text = source.decode("utf-8", errors="strict")
    else:
        path = Path(source)
        label = str(path)
        if not path.is_file():
            raise DataLoadError("document_not_found", f"Document not found: {path}", source=label)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DataLoadError(
                "document_unreadable", f"Cannot read {path}: {exc}", source=label
            ) from exc
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DataLoadError(
            "invalid_json", f"Invalid JSON in {label}: {exc.msg} (line {exc.lineno})", source=label
        ) from exc


def load_graph_document(source: DocumentSource) -> GraphDocument:
    """
    Load a graph document from a file path, raw bytes, or an already-parsed dict.

    Raises DataLoadError when the document is missing, not JSON, or does not match
    the ``{notes: [...], links: [...]}`` shape.
    """
    try:
        payload = _read_payload(source)
    except UnicodeDecodeError as exc:
        raise DataLoadError("invalid_encoding", f"Document is not UTF-8: {exc}") from exc
    try:
        return GraphDocument.model_validate(payload)
    except ValidationError as exc:
        raise DataLoadError(
            "invalid_document", f"Graph document failed validation: {exc.error_count()} errors"
        ) from exc


def load_tag_document(source: DocumentSource) -> List[TagDescriptor]:
    """Load the optional tag document (a JSON array of ``{name}`` objects)."""
    try:
        payload = _read_payload(source)
    except UnicodeDecodeError as exc:
        raise DataLoadError("invalid_encoding", f"Document is not UTF-8: {exc}") from exc
    try:
        return _TAG_LIST.validate_python(payload)
    except ValidationError as exc:
        raise DataLoadError(
            "invalid_document", f"Tag document failed validation: {exc.error_count()} errors"
        ) from exc


class DocumentFetcher:
    """
    Fetches the graph and tag documents from the viewer server.

    Fetching happens once per (re)load, never inside the layout step loop.
    """

    FETCH_TIMEOUT = 10.0

    def __init__(
        self,
        url: str = "http://127.0.0.1:3000",
        *,
        with_tags: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.with_tags = with_tags
        self._transport = transport

    async def _get_json(self, client: httpx.AsyncClient, route: str) -> Any:
        try:
            response = await client.get(f"{self.url}{route}")
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise DataLoadError(
                "fetch_failed",
                f"HTTP {exc.response.status_code} fetching {route}",
                source=route,
            ) from exc
        except httpx.HTTPError as exc:
            raise DataLoadError("fetch_failed", f"Error fetching {route}: {exc}", source=route) from exc
        except ValueError as exc:
            raise DataLoadError("invalid_json", f"Invalid JSON from {route}", source=route) from exc

    async def __call__(self) -> tuple[GraphDocument, Optional[List[TagDescriptor]]]:
        async with httpx.AsyncClient(timeout=self.FETCH_TIMEOUT, transport=self._transport) as client:
            document = load_graph_document(await self._get_json(client, "/api/graph"))
            tags = None
            if self.with_tags:
                tags = load_tag_document(await self._get_json(client, "/api/tags"))
        logger.info("Fetched graph document: %d notes, %d links", len(document.notes), len(document.links))
        return document, tags


__all__ = ["DataLoadError", "DocumentSource", "load_graph_document", "load_tag_document", "DocumentFetcher"]
