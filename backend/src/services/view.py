"""Graph view host: owns the snapshot, engine, scene and controller and drives the frame loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from ..models.graph import GraphDocument, TagDescriptor
from ..models.view import DEFAULT_PROFILE, ViewConfig, get_profile
from .graph_builder import GraphSnapshot, ModelError, build_snapshot
from .interaction import GlyphPart, InteractionController, OpenCallback, Point
from .layout import LayoutEngine
from .loader import DataLoadError, DocumentSource, load_graph_document, load_tag_document
from .render_sync import RenderSync, Scene, build_scene

logger = logging.getLogger(__name__)

FetchDocuments = Callable[[], Awaitable[Tuple[GraphDocument, Optional[List[TagDescriptor]]]]]


class GraphView:
    """
    Single-threaded host for one interactive graph.

    The layout advances one step per frame inside an asyncio task. Pointer events
    and configuration updates are plain method calls made between steps; any
    call that perturbs the layout wakes a parked (settled) loop.
    """

    def __init__(
        self,
        config: Optional[ViewConfig] = None,
        *,
        fetch: Optional[FetchDocuments] = None,
        on_open: Optional[OpenCallback] = None,
    ) -> None:
        self.config = config or get_profile(DEFAULT_PROFILE)
        self.fetch = fetch
        self.snapshot = GraphSnapshot.empty()
        self.engine = LayoutEngine(self.config.forces, self.config.simulation)
        self.scene = build_scene(self.snapshot, self.config)
        self.render = RenderSync(self.scene)
        self.controller = InteractionController(
            self.config, self.snapshot, self.scene, self.engine, on_open=on_open
        )
        self._task: Optional[asyncio.Task] = None
        self._wake = asyncio.Event()
        self._closed = False

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def load(
        self, document: GraphDocument, tags: Optional[List[TagDescriptor]] = None
    ) -> GraphSnapshot:
        """
        Build and install a new snapshot, reseeding the layout.

        On ModelError the previous snapshot and scene stay in place.
        """
        try:
            snapshot = build_snapshot(document, tags, expand_tags=self.config.graph.expand_tags)
        except ModelError as exc:
            logger.error("Rejected graph snapshot (%s): %s", exc.error, exc.message)
            raise
        self._install(snapshot)
        return snapshot

    def load_source(
        self, graph_source: DocumentSource, tag_source: Optional[DocumentSource] = None
    ) -> GraphSnapshot:
        """Load documents from files/bytes; a DataLoadError clears the view."""
        try:
            document = load_graph_document(graph_source)
            tags = load_tag_document(tag_source) if tag_source is not None else None
        except DataLoadError as exc:
            logger.error("Failed to load graph documents (%s): %s", exc.error, exc.message)
            self.clear()
            raise
        return self.load(document, tags)

    async def refresh(self) -> GraphSnapshot:
        """Handle a refresh signal: fetch the documents once, rebuild and reseed."""
        if self.fetch is None:
            raise RuntimeError("GraphView has no document fetcher configured")
        try:
            document, tags = await self.fetch()
        except DataLoadError as exc:
            logger.error("Failed to fetch graph documents (%s): %s", exc.error, exc.message)
            self.clear()
            raise
        return self.load(document, tags)

    def clear(self) -> None:
        """Show no graph at all."""
        self._install(GraphSnapshot.empty())

    def _install(self, snapshot: GraphSnapshot) -> None:
        restart = self._cancel_loop()
        self.snapshot = snapshot
        self.scene = build_scene(snapshot, self.config)
        radii = {glyph.path: glyph.radius for glyph in self.scene.glyphs.values()}
        self.engine.load(snapshot, radii=radii)
        self.render = RenderSync(self.scene)
        self.controller.attach(snapshot, self.scene)
        self.render.sync(self.engine)
        if restart:
            self._spawn_loop()
        self._wake.set()

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> bool:
        """Advance the layout one step and project it; False when settled."""
        if self._closed or not self.engine.step():
            return False
        self.render.sync(self.engine)
        return True

    async def start(self) -> None:
        """Start the per-frame step loop (no-op when already running)."""
        if self._closed:
            raise RuntimeError("GraphView is closed")
        if not self.running:
            self._spawn_loop()

    async def stop(self) -> None:
        """Stop the step loop and wait until it has exited."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def close(self) -> None:
        """Tear the view down; later events and steps are ignored."""
        await self.stop()
        self._closed = True

    def _spawn_loop(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run())

    def _cancel_loop(self) -> bool:
        if not self.running:
            return False
        self._task.cancel()
        self._task = None
        return True

    async def _run(self) -> None:
        while True:
            if not self.tick():
                self._wake.clear()
                await self._wake.wait()
                continue
            await asyncio.sleep(self.config.simulation.frame_interval)

    def _perturbed(self, handled: bool) -> bool:
        if handled:
            self._wake.set()
        return handled

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def hover_enter(self, path: str, part: GlyphPart = GlyphPart.SHAPE) -> bool:
        return not self._closed and self.controller.hover_enter(path, part)

    def hover_leave(self, path: str, part: GlyphPart = GlyphPart.SHAPE) -> bool:
        return not self._closed and self.controller.hover_leave(path, part)

    def pointer_down(
        self,
        point: Point,
        path: Optional[str] = None,
        part: GlyphPart = GlyphPart.SHAPE,
    ) -> bool:
        if self._closed:
            return False
        return self._perturbed(self.controller.pointer_down(point, path, part))

    def pointer_move(self, point: Point) -> bool:
        if self._closed:
            return False
        return self._perturbed(self.controller.pointer_move(point))

    def pointer_up(self, point: Point) -> bool:
        if self._closed:
            return False
        return self.controller.pointer_up(point)

    def zoom_by(self, factor: float, anchor: Point = (0.0, 0.0)) -> None:
        if not self._closed:
            self.controller.zoom_by(factor, anchor)

    def pan_by(self, dx: float, dy: float) -> None:
        if not self._closed:
            self.controller.pan_by(dx, dy)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, category: str, param: str, value: Any) -> ViewConfig:
        """Change one option; takes effect no later than the next step."""
        return self.replace_config(self.config.update(category, param, value))

    def replace_config(self, config: ViewConfig) -> ViewConfig:
        """
        Swap in a whole new configuration.

        Force or simulation changes reheat the layout; radius changes resize the
        glyphs without restarting it; tag expansion changes apply on the next load.
        """
        previous = self.config
        self.config = config

        if config.forces != previous.forces or config.simulation != previous.simulation:
            self.engine.configure(config.forces, config.simulation)
            logger.info("Force settings changed, layout reheated to alpha=%.3f", self.engine.alpha)
            self._wake.set()

        radius_fields = ("base_radius", "radius_multiplier", "text_y_offset")
        if any(
            getattr(config.node, name) != getattr(previous.node, name) for name in radius_fields
        ):
            self.engine.set_radii(self.render.apply_radii(self.snapshot, config))

        if config.dimensions != previous.dimensions:
            self.scene.width = config.dimensions.width
            self.scene.height = config.dimensions.height

        if config.graph != previous.graph:
            logger.info("Graph settings changed; they apply to the next snapshot")

        self.controller.update_config(config)
        return config

    def frame(self) -> Scene:
        return self.scene


__all__ = ["GraphView", "FetchDocuments"]
