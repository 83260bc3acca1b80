import pytest

from backend.src.models.graph import GraphDocument, RawLink, RawNote
from backend.src.models.view import ViewConfig, get_profile
from backend.src.services.graph_builder import GraphSnapshot, Link, Node, NodeKind, build_snapshot
from backend.src.services.layout import LayoutEngine
from backend.src.services.render_sync import RenderSync, ZoomTransform, build_scene


@pytest.fixture
def snapshot() -> GraphSnapshot:
    document = GraphDocument(
        notes=[
            RawNote(path="a", title="Alpha", tags=["proj"]),
            RawNote(path="b", title="Beta", tags=["proj"]),
            RawNote(path="c", title="Gamma"),
        ],
        links=[RawLink(sourcePath="a", targetPath="b")],
    )
    return build_snapshot(document)


def test_build_scene_sizes_and_colors_glyphs(snapshot) -> None:
    config = get_profile("tags")

    scene = build_scene(snapshot, config)

    assert set(scene.glyphs) == {"a", "b", "c", "proj"}
    a = scene.glyphs["a"]
    assert a.radius == pytest.approx(7 + 2 * 0.5)
    assert a.tooltip == "Alpha\nConnections: 2"
    assert a.fill == config.node.fill
    assert a.label_dy == pytest.approx(a.radius + 30)
    assert scene.glyphs["proj"].fill == config.node.tag_fill
    assert scene.glyphs["c"].radius == pytest.approx(7)
    assert len(scene.lines) == 3
    assert scene.viewbox == (-600, -600, 1200, 1200)


def test_sync_copies_positions_and_link_endpoints(snapshot) -> None:
    engine = LayoutEngine()
    engine.load(snapshot)
    engine.run(5)
    scene = build_scene(snapshot, ViewConfig())

    updated = RenderSync(scene).sync(engine)

    assert updated == 3
    assert scene.frame == 1
    for path, x, y in engine.iter_positions():
        assert (scene.glyphs[path].x, scene.glyphs[path].y) == (x, y)
    line = scene.lines[0]
    assert (line.x1, line.y1) == engine.position(line.source)
    assert (line.x2, line.y2) == engine.position(line.target)


def test_sync_skips_lines_whose_endpoint_is_gone(snapshot) -> None:
    scene = build_scene(snapshot, ViewConfig())
    reduced = GraphSnapshot([Node(path="a", kind=NodeKind.NOTE, title="Alpha")], [Link("a", "a")])
    engine = LayoutEngine()
    engine.load(reduced)

    updated = RenderSync(scene).sync(engine)

    assert updated == 0
    assert scene.lines[0].x2 == 0.0


def test_apply_radii_follows_config(snapshot) -> None:
    scene = build_scene(snapshot, ViewConfig())
    config = ViewConfig().update("node", "radius_multiplier", 2.0)

    radii = RenderSync(scene).apply_radii(snapshot, config)

    assert radii["a"] == pytest.approx(7 + 2 * 2.0)
    assert scene.glyphs["a"].radius == radii["a"]
    assert scene.glyphs["proj"].radius == pytest.approx(7 + 2 * 2.0)


def test_zoom_transform_round_trips_and_keeps_anchor() -> None:
    transform = ZoomTransform(k=2.0, x=10.0, y=-4.0)

    assert transform.apply((3.0, 5.0)) == (16.0, 6.0)
    assert transform.invert((16.0, 6.0)) == (3.0, 5.0)

    zoomed = transform.scaled_about(4.0, (16.0, 6.0))
    assert zoomed.k == 4.0
    assert zoomed.apply((3.0, 5.0)) == pytest.approx((16.0, 6.0))
    assert transform.translated(1.0, 1.0) == ZoomTransform(k=2.0, x=11.0, y=-3.0)


def test_scene_to_dict_is_serializable(snapshot) -> None:
    payload = build_scene(snapshot, ViewConfig()).to_dict()

    assert payload["viewbox"] == [-600, -600, 1200, 1200]
    assert {node["path"] for node in payload["nodes"]} == {"a", "b", "c", "proj"}
    assert payload["transform"] == {"k": 1.0, "x": 0.0, "y": 0.0}
