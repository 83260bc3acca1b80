import json
from pathlib import Path

import httpx
import pytest

from backend.src.services.loader import (
    DataLoadError,
    DocumentFetcher,
    load_graph_document,
    load_tag_document,
)

GRAPH_PAYLOAD = {
    "notes": [
        {"path": "a", "title": "A", "lead": "first", "tags": ["proj"], "absPath": "/vault/a.md"},
        {"path": "b", "title": "B"},
    ],
    "links": [{"sourcePath": "a", "targetPath": "b"}],
}


def test_load_graph_document_from_file(tmp_path: Path) -> None:
    path = tmp_path / "graph.json"
    path.write_text(json.dumps(GRAPH_PAYLOAD), encoding="utf-8")

    document = load_graph_document(path)

    assert [note.path for note in document.notes] == ["a", "b"]
    assert document.notes[0].abs_path == "/vault/a.md"
    assert document.links[0].source_path == "a"
    assert document.links[0].target_path == "b"


def test_load_graph_document_accepts_bytes_and_dicts() -> None:
    from_bytes = load_graph_document(json.dumps(GRAPH_PAYLOAD).encode("utf-8"))
    from_dict = load_graph_document(GRAPH_PAYLOAD)

    assert from_bytes == from_dict


def test_missing_document(tmp_path: Path) -> None:
    with pytest.raises(DataLoadError) as excinfo:
        load_graph_document(tmp_path / "nope.json")

    assert excinfo.value.error == "document_not_found"


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "graph.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(DataLoadError) as excinfo:
        load_graph_document(path)

    assert excinfo.value.error == "invalid_json"


def test_invalid_encoding() -> None:
    with pytest.raises(DataLoadError) as excinfo:
        load_graph_document(b"\xff\xfe\x00")

    assert excinfo.value.error == "invalid_encoding"


@pytest.mark.parametrize(
    "payload",
    [
        {"links": []},
        {"notes": [{"title": "no path"}]},
        {"notes": [], "links": [{"sourcePath": "a"}]},
        [],
    ],
)
def test_shape_violations_are_invalid_documents(payload) -> None:
    with pytest.raises(DataLoadError) as excinfo:
        load_graph_document(payload)

    assert excinfo.value.error == "invalid_document"


def test_load_tag_document() -> None:
    tags = load_tag_document(b'[{"name": "proj"}, {"name": "todo", "count": 3}]')

    assert [tag.name for tag in tags] == ["proj", "todo"]

    with pytest.raises(DataLoadError):
        load_tag_document({"name": "proj"})


def _transport(routes):
    def handler(request: httpx.Request) -> httpx.Response:
        status, body = routes.get(request.url.path, (404, {"error": "not_found"}))
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_fetcher_reads_graph_and_tags() -> None:
    fetcher = DocumentFetcher(
        "http://viewer.test/",
        transport=_transport({"/api/graph": (200, GRAPH_PAYLOAD), "/api/tags": (200, [{"name": "proj"}])}),
    )

    document, tags = await fetcher()

    assert len(document.notes) == 2
    assert [tag.name for tag in tags] == ["proj"]


@pytest.mark.asyncio
async def test_fetcher_without_tags() -> None:
    fetcher = DocumentFetcher(
        "http://viewer.test",
        with_tags=False,
        transport=_transport({"/api/graph": (200, GRAPH_PAYLOAD)}),
    )

    _, tags = await fetcher()

    assert tags is None


@pytest.mark.asyncio
async def test_fetcher_maps_http_errors() -> None:
    fetcher = DocumentFetcher("http://viewer.test", transport=_transport({}))

    with pytest.raises(DataLoadError) as excinfo:
        await fetcher()

    assert excinfo.value.error == "fetch_failed"
    assert excinfo.value.source == "/api/graph"


@pytest.mark.asyncio
async def test_fetcher_rejects_non_json() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html></html>")

    fetcher = DocumentFetcher("http://viewer.test", transport=httpx.MockTransport(handler))

    with pytest.raises(DataLoadError) as excinfo:
        await fetcher()

    assert excinfo.value.error == "invalid_json"
