"""Pointer interaction state machine: hover focus, drag pinning, zoom and pan.

Two independent axes of state are tracked:

- highlight: ``Neutral`` or ``Focused(path)``, driven by hover over node shapes
- pointer: an optional node drag (which pins the node in the layout engine) or
  background pan

Zoom is a separate transform over the whole scene. Every transition writes the
resulting visual attributes into the :class:`Scene` immediately; the configured
transition duration only tells the renderer how to animate the change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import Any, Callable, Optional, Tuple

from ..models.view import ViewConfig
from .graph_builder import GraphSnapshot, NodeKind
from .layout import LayoutEngine
from .render_sync import Scene, ZoomTransform

logger = logging.getLogger(__name__)

OpenCallback = Callable[[str], Any]
Point = Tuple[float, float]


class FocusMode(str, Enum):
    NEUTRAL = "neutral"
    FOCUSED = "focused"


class GlyphPart(str, Enum):
    """Which part of the view a pointer event hit."""
    SHAPE = "shape"
    LABEL = "label"
    BACKGROUND = "background"


@dataclass(frozen=True)
class HighlightState:
    mode: FocusMode = FocusMode.NEUTRAL
    path: Optional[str] = None

    @classmethod
    def focused(cls, path: str) -> "HighlightState":
        return cls(FocusMode.FOCUSED, path)


NEUTRAL = HighlightState()


@dataclass
class DragState:
    path: str
    origin: Point
    travel: float = 0.0


@dataclass
class PanState:
    last: Point


class InteractionController:
    """Explicit transitions for hover, drag, click, zoom and pan."""

    def __init__(
        self,
        config: ViewConfig,
        snapshot: GraphSnapshot,
        scene: Scene,
        engine: LayoutEngine,
        on_open: Optional[OpenCallback] = None,
    ) -> None:
        self.config = config
        self.engine = engine
        self.on_open = on_open
        self.attach(snapshot, scene)

    def attach(self, snapshot: GraphSnapshot, scene: Scene) -> None:
        """Bind to a new snapshot/scene; all interaction state starts over."""
        self.snapshot = snapshot
        self.scene = scene
        self.state = NEUTRAL
        self.drag: Optional[DragState] = None
        self.pan: Optional[PanState] = None
        self.reset_zoom()
        self._apply_neutral()

    def update_config(self, config: ViewConfig) -> None:
        """Adopt new styling/zoom bounds and repaint the current highlight state."""
        self.config = config
        for glyph in self.scene.glyphs.values():
            is_tag = glyph.kind == NodeKind.TAG.value
            glyph.base_fill = config.node.tag_fill if is_tag else config.node.fill
        self._set_transform(self.scene.transform)
        self._repaint()

    # ------------------------------------------------------------------
    # Hover
    # ------------------------------------------------------------------

    def hover_enter(self, path: str, part: GlyphPart = GlyphPart.SHAPE) -> bool:
        """Pointer entered a node glyph; only the node's shape counts."""
        if part is not GlyphPart.SHAPE or path not in self.snapshot:
            return False
        self.state = HighlightState.focused(path)
        self._apply_focus(path)
        return True

    def hover_leave(self, path: str, part: GlyphPart = GlyphPart.SHAPE) -> bool:
        """Pointer left a node's shape; returns to Neutral if that node was focused."""
        if part is not GlyphPart.SHAPE or self.state.path != path:
            return False
        self.state = NEUTRAL
        self._apply_neutral()
        return True

    # ------------------------------------------------------------------
    # Drag, click and pan
    # ------------------------------------------------------------------

    def pointer_down(
        self,
        point: Point,
        path: Optional[str] = None,
        part: GlyphPart = GlyphPart.SHAPE,
    ) -> bool:
        """
        Start a node drag (shape hit) or a pan (background hit).

        A node drag pins the node at its current layout position and raises
        the engine's energy so the rest of the graph follows.
        """
        if part is GlyphPart.BACKGROUND:
            self.pan = PanState(last=point)
            return True
        if part is not GlyphPart.SHAPE or path is None or path not in self.engine:
            return False
        x, y = self.engine.position(path)
        self.engine.pin(path, x, y)
        target = self.config.simulation.drag_alpha_target
        self.engine.set_alpha_target(target)
        self.engine.reheat(max(self.engine.alpha, target))
        self.drag = DragState(path=path, origin=point)
        return True

    def pointer_move(self, point: Point) -> bool:
        """Move the dragged node's pin to the pointer, or pan the view."""
        if self.drag is not None:
            drag = self.drag
            drag.travel = max(drag.travel, math.dist(drag.origin, point))
            if drag.path in self.engine:
                x, y = self.scene.transform.invert(point)
                self.engine.pin(drag.path, x, y)
            return True
        if self.pan is not None:
            dx = point[0] - self.pan.last[0]
            dy = point[1] - self.pan.last[1]
            self.pan.last = point
            self.pan_by(dx, dy)
            return True
        return False

    def pointer_up(self, point: Point) -> bool:
        """Release the pin (or end the pan); a short press on a node is a click."""
        if self.drag is not None:
            drag = self.drag
            self.drag = None
            drag.travel = max(drag.travel, math.dist(drag.origin, point))
            self.engine.unpin(drag.path)
            self.engine.set_alpha_target(0.0)
            if drag.travel <= self.config.interaction.click_distance:
                self._click(drag.path)
            return True
        if self.pan is not None:
            self.pan = None
            return True
        return False

    def _click(self, path: str) -> None:
        if path not in self.snapshot:
            return
        target = self.snapshot.node(path).open_target
        if target is None:
            return
        logger.info("Open requested for %s", target)
        if self.on_open is not None:
            self.on_open(target)

    # ------------------------------------------------------------------
    # Zoom
    # ------------------------------------------------------------------

    def reset_zoom(self) -> None:
        self._set_transform(ZoomTransform(k=self.config.zoom.default_scale))

    def zoom_by(self, factor: float, anchor: Point = (0.0, 0.0)) -> ZoomTransform:
        """Multiply the scale by ``factor`` around a screen anchor, within bounds."""
        if factor <= 0:
            raise ValueError("Zoom factor must be positive")
        return self.zoom_to(self.scene.transform.k * factor, anchor)

    def zoom_to(self, scale: float, anchor: Point = (0.0, 0.0)) -> ZoomTransform:
        zoom = self.config.zoom
        clamped = min(max(scale, zoom.min_scale), zoom.max_scale)
        self.scene.transform = self.scene.transform.scaled_about(clamped, anchor)
        return self.scene.transform

    def pan_by(self, dx: float, dy: float) -> ZoomTransform:
        self.scene.transform = self.scene.transform.translated(dx, dy)
        return self.scene.transform

    def _set_transform(self, transform: ZoomTransform) -> None:
        zoom = self.config.zoom
        k = min(max(transform.k, zoom.min_scale), zoom.max_scale)
        self.scene.transform = ZoomTransform(k=k, x=transform.x, y=transform.y)

    # ------------------------------------------------------------------
    # Painting
    # ------------------------------------------------------------------

    def _repaint(self) -> None:
        if self.state.mode is FocusMode.FOCUSED and self.state.path in self.snapshot:
            self._apply_focus(self.state.path)
        else:
            self.state = NEUTRAL
            self._apply_neutral()

    def _apply_focus(self, path: str) -> None:
        node_style = self.config.node
        link_style = self.config.link
        lit = self.snapshot.neighbors(path) | {path}
        incident = self.snapshot.incident_links(path)

        for glyph in self.scene.glyphs.values():
            if glyph.path in lit:
                glyph.opacity = node_style.highlight_opacity
                glyph.fill = node_style.highlight_fill
            else:
                glyph.opacity = node_style.dim_opacity
                glyph.fill = glyph.base_fill
            focused = glyph.path == path
            glyph.label_opacity = 1.0 if focused else 0.0
            glyph.font_size = node_style.hover_font_size if focused else node_style.font_size
            glyph.transition_ms = node_style.transition_duration

        for index, line in enumerate(self.scene.lines):
            if index in incident:
                line.opacity = link_style.highlight_opacity
                line.stroke = link_style.highlight_stroke
                line.width = link_style.highlight_width
            else:
                line.opacity = link_style.dim_opacity
                line.stroke = link_style.stroke
                line.width = link_style.width
            line.transition_ms = node_style.transition_duration

    def _apply_neutral(self) -> None:
        node_style = self.config.node
        link_style = self.config.link
        for glyph in self.scene.glyphs.values():
            glyph.opacity = node_style.highlight_opacity
            glyph.fill = glyph.base_fill
            glyph.label_opacity = 0.0
            glyph.font_size = node_style.font_size
            glyph.transition_ms = node_style.transition_duration
        for line in self.scene.lines:
            line.opacity = link_style.opacity
            line.stroke = link_style.stroke
            line.width = link_style.width
            line.transition_ms = node_style.transition_duration


__all__ = [
    "FocusMode",
    "GlyphPart",
    "HighlightState",
    "NEUTRAL",
    "DragState",
    "PanState",
    "InteractionController",
]
