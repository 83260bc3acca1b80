import numpy as np
import pytest

from backend.src.models.view import ForceSettings, SimulationSettings
from backend.src.services.graph_builder import GraphSnapshot, Link, Node, NodeKind
from backend.src.services.layout import (
    LayoutEngine,
    LayoutState,
    centering_strengths,
    seed_positions,
)


def _snapshot(paths, links=()):
    links = [Link(source, target) for source, target in links]
    nodes = [Node(path=path, kind=NodeKind.NOTE, title=path) for path in paths]
    for node in nodes:
        node.connections = sum(link.source == node.path for link in links) + sum(
            link.target == node.path for link in links
        )
    return GraphSnapshot(nodes, links)


@pytest.fixture
def chain() -> GraphSnapshot:
    return _snapshot(["a", "b", "c", "d"], [("a", "b"), ("c", "a"), ("b", "d")])


def _only(**forces) -> ForceSettings:
    base = {"center_force": 0.0, "repel_force": 0.0, "link_force": 0.0}
    base.update(forces)
    return ForceSettings(**base)


def test_load_seeds_and_first_step_relaxes(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)

    assert engine.state is LayoutState.SEEDED
    assert engine.alpha == pytest.approx(0.5)
    assert np.array_equal(engine.positions, seed_positions(4))

    assert engine.step() is True
    assert engine.state is LayoutState.RELAXING


def test_alpha_decays_monotonically_and_settles(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)

    previous = engine.alpha
    steps = 0
    while engine.step():
        assert engine.alpha < previous
        previous = engine.alpha
        steps += 1
        assert steps <= 400

    assert engine.is_settled
    assert engine.alpha < 0.001
    # 0.5 * 0.98 ** n drops below 0.001 at n = 308
    assert steps == 308


def test_settled_step_leaves_positions_untouched(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)
    engine.run(1000)
    before = engine.positions.copy()

    assert engine.step() is False
    assert np.array_equal(engine.positions, before)


def test_reheat_returns_to_relaxing(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)
    engine.run(1000)

    engine.reheat()

    assert engine.state is LayoutState.RELAXING
    assert engine.alpha == pytest.approx(0.3)
    assert engine.step() is True


def test_configure_applies_new_forces_and_reheats(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)
    engine.run(1000)

    engine.configure(ForceSettings(center_force=0.5))

    assert engine.forces.center_force == 0.5
    assert engine.alpha == pytest.approx(0.3)
    assert not engine.is_settled


def test_pinned_node_stays_exactly_at_pin(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)

    engine.pin("a", 5.0, -7.5)
    for _ in range(20):
        engine.step()

    assert engine.position("a") == (5.0, -7.5)
    assert engine.is_pinned("a")
    assert engine.pinned_paths() == ["a"]

    engine.unpin("a")
    assert not engine.is_pinned("a")


def test_layout_is_deterministic(chain) -> None:
    first = LayoutEngine()
    second = LayoutEngine()
    first.load(chain)
    second.load(chain)

    first.run(50)
    second.run(50)

    assert np.array_equal(first.positions, second.positions)


def test_reload_reseeds_positions(chain) -> None:
    engine = LayoutEngine()
    engine.load(chain)
    engine.pin("a", 100.0, 100.0)
    engine.run(30)

    engine.load(chain)

    assert engine.steps == 0
    assert engine.pinned_paths() == []
    assert np.array_equal(engine.positions, seed_positions(4))


def test_coincident_nodes_stay_finite() -> None:
    engine = LayoutEngine()
    engine.load(_snapshot(["a", "b", "c"]))
    engine.positions[:] = 0.0

    engine.step()

    assert np.isfinite(engine.positions).all()
    assert not np.array_equal(engine.positions[0], engine.positions[1])


def test_centering_strengths_scale_with_degree() -> None:
    strengths = centering_strengths(np.array([0.0, 2.0, 4.0]), 0.2)

    assert strengths == pytest.approx([0.2, 0.3, 0.4])
    assert centering_strengths(np.zeros(3), 0.2) == pytest.approx([0.2, 0.2, 0.2])
    assert centering_strengths(np.array([]), 0.2).size == 0


def test_centering_pulls_toward_origin() -> None:
    engine = LayoutEngine(_only(center_force=0.2))
    engine.load(_snapshot(["a"]))
    engine.positions[0] = (100.0, -50.0)

    engine.step()

    x, y = engine.position("a")
    assert 0 < x < 100.0
    assert -50.0 < y < 0


def test_link_force_pulls_distant_endpoints_together() -> None:
    engine = LayoutEngine(_only(link_force=0.3))
    engine.load(_snapshot(["a", "b"], [("a", "b")]))
    engine.positions[:] = [(-200.0, 0.0), (200.0, 0.0)]

    engine.step()

    ax, _ = engine.position("a")
    bx, _ = engine.position("b")
    assert bx - ax < 400.0


def test_repulsion_pushes_nodes_apart() -> None:
    engine = LayoutEngine(_only(repel_force=-500))
    engine.load(_snapshot(["a", "b"]))
    engine.positions[:] = [(-1.0, 0.0), (1.0, 0.0)]

    engine.step()

    ax, _ = engine.position("a")
    bx, _ = engine.position("b")
    assert ax < -1.0
    assert bx > 1.0


def test_collision_separates_overlapping_nodes() -> None:
    engine = LayoutEngine(_only(), SimulationSettings(collide=True))
    engine.load(_snapshot(["a", "b"]), radii={"a": 10.0, "b": 10.0})
    engine.positions[:] = [(-1.0, 0.0), (1.0, 0.0)]

    engine.step()

    ax, _ = engine.position("a")
    bx, _ = engine.position("b")
    assert bx - ax > 2.0


def test_link_with_missing_endpoint_is_ignored() -> None:
    nodes = [Node(path="a", kind=NodeKind.NOTE, title="a")]
    snapshot = GraphSnapshot(nodes, [Link("a", "ghost")])
    engine = LayoutEngine()
    engine.load(snapshot)

    engine.run(10)

    assert np.isfinite(engine.positions).all()


def test_empty_snapshot_still_settles() -> None:
    engine = LayoutEngine()

    steps = engine.run(1000)

    assert engine.is_settled
    assert steps == 308
    assert engine.bounds() == (0.0, 0.0, 0.0, 0.0)
