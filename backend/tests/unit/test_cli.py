import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from backend.main import app

runner = CliRunner()


@pytest.fixture
def graph_file(tmp_path: Path) -> Path:
    path = tmp_path / "graph.json"
    path.write_text(
        json.dumps(
            {
                "notes": [
                    {"path": "a.md", "title": "Alpha", "tags": ["proj"]},
                    {"path": "b.md", "title": "Beta", "tags": ["proj"]},
                    {"path": "c.md", "title": "Gamma"},
                ],
                "links": [{"sourcePath": "a.md", "targetPath": "b.md"}],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_inspect_lists_nodes(graph_file: Path) -> None:
    result = runner.invoke(app, ["inspect", str(graph_file)])

    assert result.exit_code == 0
    assert "4 nodes, 3 links" in result.output
    assert "proj" in result.output


def test_inspect_notes_profile_skips_tags(graph_file: Path) -> None:
    result = runner.invoke(app, ["inspect", str(graph_file), "--profile", "notes"])

    assert result.exit_code == 0
    assert "3 nodes, 1 links" in result.output


def test_inspect_missing_document(tmp_path: Path) -> None:
    result = runner.invoke(app, ["inspect", str(tmp_path / "missing.json")])

    assert result.exit_code == 1
    assert "document_not_found" in result.output


def test_settle_reports_step_count(graph_file: Path) -> None:
    result = runner.invoke(app, ["settle", str(graph_file)])

    assert result.exit_code == 0
    assert "settled after 308 steps" in result.output
    assert "Bounding box" in result.output


def test_settle_respects_step_limit(graph_file: Path) -> None:
    result = runner.invoke(app, ["settle", str(graph_file), "--max-steps", "10"])

    assert result.exit_code == 0
    assert "still relaxing after 10 steps" in result.output


def test_unknown_profile_exits(graph_file: Path) -> None:
    result = runner.invoke(app, ["inspect", str(graph_file), "--profile", "sparkles"])

    assert result.exit_code == 1
    assert "Unknown view profile" in result.output
