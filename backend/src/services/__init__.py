"""Service layer: graph building, layout, interaction and server integrations."""

from .config import AppConfig, get_config, reload_config
from .graph_builder import GraphSnapshot, Link, ModelError, Node, NodeKind, build, build_snapshot
from .interaction import FocusMode, GlyphPart, HighlightState, InteractionController
from .layout import LayoutEngine, LayoutState
from .loader import DataLoadError, DocumentFetcher, load_graph_document, load_tag_document
from .opener import FileOpener, OpenRequester
from .render_sync import LinkLine, NodeGlyph, RenderSync, Scene, ZoomTransform, build_scene
from .view import GraphView

__all__ = [
    "AppConfig",
    "get_config",
    "reload_config",
    "GraphSnapshot",
    "Link",
    "ModelError",
    "Node",
    "NodeKind",
    "build",
    "build_snapshot",
    "FocusMode",
    "GlyphPart",
    "HighlightState",
    "InteractionController",
    "LayoutEngine",
    "LayoutState",
    "DataLoadError",
    "DocumentFetcher",
    "load_graph_document",
    "load_tag_document",
    "FileOpener",
    "OpenRequester",
    "LinkLine",
    "NodeGlyph",
    "RenderSync",
    "Scene",
    "ZoomTransform",
    "build_scene",
    "GraphView",
]
