"""Scene model and the per-step projection of layout positions onto it."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
import logging
from typing import Any, Dict, List, Tuple

from ..models.view import ViewConfig
from .graph_builder import GraphSnapshot, NodeKind
from .layout import LayoutEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ZoomTransform:
    """Scale + translate mapping layout coordinates to screen coordinates."""
    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply(self, point: Tuple[float, float]) -> Tuple[float, float]:
        return point[0] * self.k + self.x, point[1] * self.k + self.y

    def invert(self, point: Tuple[float, float]) -> Tuple[float, float]:
        return (point[0] - self.x) / self.k, (point[1] - self.y) / self.k

    def scaled_about(self, k: float, anchor: Tuple[float, float]) -> "ZoomTransform":
        """New transform with scale ``k`` keeping ``anchor`` (screen) fixed."""
        fixed = self.invert(anchor)
        return ZoomTransform(k=k, x=anchor[0] - fixed[0] * k, y=anchor[1] - fixed[1] * k)

    def translated(self, dx: float, dy: float) -> "ZoomTransform":
        return ZoomTransform(k=self.k, x=self.x + dx, y=self.y + dy)


@dataclass
class NodeGlyph:
    """Visual attributes of one node (circle + label)."""
    path: str
    kind: str
    label: str
    tooltip: str
    radius: float
    base_fill: str
    fill: str
    opacity: float
    label_opacity: float = 0.0
    font_size: float = 0.0
    label_dy: float = 0.0
    transition_ms: int = 0
    x: float = 0.0
    y: float = 0.0


@dataclass
class LinkLine:
    """Visual attributes of one link line."""
    source: str
    target: str
    stroke: str
    opacity: float
    width: float
    transition_ms: int = 0
    x1: float = 0.0
    y1: float = 0.0
    x2: float = 0.0
    y2: float = 0.0


@dataclass
class Scene:
    """Rendered projection of one snapshot: glyphs, lines and the zoom transform."""
    width: float
    height: float
    glyphs: Dict[str, NodeGlyph] = field(default_factory=dict)
    lines: List[LinkLine] = field(default_factory=list)
    transform: ZoomTransform = field(default_factory=ZoomTransform)
    frame: int = 0

    @property
    def viewbox(self) -> Tuple[float, float, float, float]:
        return -self.width / 2, -self.height / 2, self.width, self.height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "viewbox": list(self.viewbox),
            "frame": self.frame,
            "transform": asdict(self.transform),
            "nodes": [asdict(glyph) for glyph in self.glyphs.values()],
            "links": [asdict(line) for line in self.lines],
        }


def build_scene(snapshot: GraphSnapshot, config: ViewConfig) -> Scene:
    """Create neutral glyphs and lines for a freshly built snapshot."""
    node_style = config.node
    scene = Scene(width=config.dimensions.width, height=config.dimensions.height)
    for node in snapshot.nodes:
        radius = config.node_radius(node.connections)
        fill = node_style.tag_fill if node.kind is NodeKind.TAG else node_style.fill
        scene.glyphs[node.path] = NodeGlyph(
            path=node.path,
            kind=node.kind.value,
            label=node.title,
            tooltip=f"{node.title}\nConnections: {node.connections}",
            radius=radius,
            base_fill=fill,
            fill=fill,
            opacity=node_style.highlight_opacity,
            font_size=node_style.font_size,
            label_dy=radius + node_style.text_y_offset,
            transition_ms=node_style.transition_duration,
        )
    for link in snapshot.links:
        scene.lines.append(
            LinkLine(
                source=link.source,
                target=link.target,
                stroke=config.link.stroke,
                opacity=config.link.opacity,
                width=config.link.width,
                transition_ms=node_style.transition_duration,
            )
        )
    return scene


class RenderSync:
    """Copies engine positions into the scene once per layout step."""

    def __init__(self, scene: Scene) -> None:
        self.scene = scene

    def sync(self, engine: LayoutEngine) -> int:
        """
        Write node transforms and link endpoints for the current step.

        Links whose endpoints are no longer simulated are skipped for this frame.
        Returns the number of lines updated.
        """
        glyphs = self.scene.glyphs
        for path, x, y in engine.iter_positions():
            glyph = glyphs.get(path)
            if glyph is not None:
                glyph.x = x
                glyph.y = y

        updated = 0
        for line in self.scene.lines:
            if line.source not in engine or line.target not in engine:
                continue
            line.x1, line.y1 = engine.position(line.source)
            line.x2, line.y2 = engine.position(line.target)
            updated += 1
        self.scene.frame += 1
        return updated

    def apply_radii(self, snapshot: GraphSnapshot, config: ViewConfig) -> Dict[str, float]:
        """Recompute glyph radii after a radius option change; returns path -> radius."""
        radii: Dict[str, float] = {}
        for node in snapshot.nodes:
            glyph = self.scene.glyphs.get(node.path)
            if glyph is None:
                continue
            glyph.radius = config.node_radius(node.connections)
            glyph.label_dy = glyph.radius + config.node.text_y_offset
            radii[node.path] = glyph.radius
        return radii


__all__ = ["ZoomTransform", "NodeGlyph", "LinkLine", "Scene", "build_scene", "RenderSync"]
