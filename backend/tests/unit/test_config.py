import json
from pathlib import Path

import pytest

from backend.src.services import config as config_module

ENV_KEYS = (
    "GRAPH_DOCUMENT_PATH",
    "TAGS_DOCUMENT_PATH",
    "STATIC_DIR",
    "OPEN_COMMAND",
    "VIEW_PROFILE",
    "VIEW_CONFIG_PATH",
    "PORT",
)


@pytest.fixture(autouse=True)
def restore_config_cache(monkeypatch):
    """
    Ensure configuration cache is cleared between tests.
    """
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    config_module.reload_config()
    yield
    config_module.get_config.cache_clear()


def test_get_config_defaults() -> None:
    cfg = config_module.reload_config()

    assert cfg.graph_document_path == (config_module.DEFAULT_DATA_DIR / "graph.json").resolve()
    assert cfg.tags_document_path is None
    assert cfg.open_command == "nvr"
    assert cfg.view_profile == "tags"
    assert cfg.port == 3000


def test_get_config_reads_environment(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("GRAPH_DOCUMENT_PATH", str(tmp_path / "graph.json"))
    monkeypatch.setenv("TAGS_DOCUMENT_PATH", str(tmp_path / "tags.json"))
    monkeypatch.setenv("OPEN_COMMAND", "  code --goto  ")
    monkeypatch.setenv("VIEW_PROFILE", "notes")
    monkeypatch.setenv("PORT", "8080")

    cfg = config_module.reload_config()

    assert cfg.graph_document_path == (tmp_path / "graph.json").resolve()
    assert cfg.tags_document_path == (tmp_path / "tags.json").resolve()
    assert cfg.open_command == "code --goto"
    assert cfg.port == 8080
    assert cfg.view_config().graph.expand_tags is False


def test_get_config_is_cached(monkeypatch, tmp_path: Path) -> None:
    first = config_module.get_config()
    monkeypatch.setenv("GRAPH_DOCUMENT_PATH", str(tmp_path / "other.json"))

    assert config_module.get_config() is first
    assert config_module.reload_config().graph_document_path == (tmp_path / "other.json").resolve()


def test_get_config_rejects_unknown_profile(monkeypatch) -> None:
    monkeypatch.setenv("VIEW_PROFILE", "sparkles")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_get_config_rejects_empty_open_command(monkeypatch) -> None:
    monkeypatch.setenv("OPEN_COMMAND", "   ")

    with pytest.raises(ValueError):
        config_module.reload_config()


def test_view_config_applies_file_overrides(monkeypatch, tmp_path: Path) -> None:
    overrides = tmp_path / "view.json"
    overrides.write_text(
        json.dumps({"forces": {"center_force": 0.4}, "zoom": {"default_scale": 1.0}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("VIEW_CONFIG_PATH", str(overrides))

    view = config_module.reload_config().view_config()

    assert view.forces.center_force == 0.4
    assert view.forces.link_force == 0.3
    assert view.zoom.default_scale == 1.0


@pytest.mark.parametrize(
    "content",
    ["{broken", "[1, 2]", json.dumps({"gravity": {"g": 9.8}}), json.dumps({"forces": {"link_force": 4}})],
)
def test_view_config_rejects_bad_overrides(monkeypatch, tmp_path: Path, content: str) -> None:
    overrides = tmp_path / "view.json"
    overrides.write_text(content, encoding="utf-8")
    monkeypatch.setenv("VIEW_CONFIG_PATH", str(overrides))

    cfg = config_module.reload_config()

    with pytest.raises(ValueError):
        cfg.view_config()
