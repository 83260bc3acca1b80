"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import json
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models.view import DEFAULT_PROFILE, PROFILES, ViewConfig, get_profile

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_STATIC_DIR = PROJECT_ROOT / "public"


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    graph_document_path: Path = Field(..., description="Graph document produced by the export tool")
    tags_document_path: Optional[Path] = Field(
        default=None, description="Optional tag document ([{name}, ...])"
    )
    static_dir: Path = Field(
        default=DEFAULT_STATIC_DIR, description="Directory served at / when present"
    )
    open_command: str = Field(
        default="nvr", description="Command run with the clicked file as its last argument"
    )
    view_profile: str = Field(default=DEFAULT_PROFILE, description="Built-in view profile name")
    view_config_path: Optional[Path] = Field(
        default=None, description="Optional JSON file with per-section overrides"
    )
    port: int = Field(default=3000, ge=1, le=65535)

    @field_validator("graph_document_path", "static_dir", mode="before")
    @classmethod
    def _normalize_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            raise ValueError("Path is required")
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("tags_document_path", "view_config_path", mode="before")
    @classmethod
    def _normalize_optional_path(cls, value: str | Path | None) -> Optional[Path]:
        if value is None or value == "":
            return None
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("view_profile")
    @classmethod
    def _known_profile(cls, value: str) -> str:
        if value not in PROFILES:
            raise ValueError(f"Unknown view profile: {value}")
        return value

    @field_validator("open_command")
    @classmethod
    def _non_empty_command(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("OPEN_COMMAND cannot be empty")
        return cleaned

    def view_config(self) -> ViewConfig:
        """The selected profile with any file overrides applied."""
        config = get_profile(self.view_profile)
        if self.view_config_path is None:
            return config
        try:
            overrides = json.loads(self.view_config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"Cannot read view config {self.view_config_path}: {exc}") from exc
        if not isinstance(overrides, dict):
            raise ValueError("View config overrides must be a JSON object")
        return config.merged(overrides)


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    return AppConfig(
        graph_document_path=_read_env("GRAPH_DOCUMENT_PATH", str(DEFAULT_DATA_DIR / "graph.json")),
        tags_document_path=_read_env("TAGS_DOCUMENT_PATH"),
        static_dir=_read_env("STATIC_DIR", str(DEFAULT_STATIC_DIR)),
        open_command=_read_env("OPEN_COMMAND", "nvr"),
        view_profile=_read_env("VIEW_PROFILE", DEFAULT_PROFILE),
        view_config_path=_read_env("VIEW_CONFIG_PATH"),
        port=int(_read_env("PORT", "3000")),
    )


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DATA_DIR", "DEFAULT_STATIC_DIR"]
