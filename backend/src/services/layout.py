"""Force-directed layout engine.

Positions and velocities for every node of the active snapshot live in numpy
arrays owned by :class:`LayoutEngine`. Each call to :meth:`LayoutEngine.step`
advances the simulation by one semi-implicit Euler step:

    v = (v + F * dt) * velocity_retention
    x = x + v * dt

where ``F`` sums the centering, repulsion, link and (optional) collision forces,
each scaled by the energy parameter ``alpha``. Alpha decays geometrically toward
its target; once it drops below ``alpha_min`` the engine is settled and steps
become no-ops until a perturbation reheats it.
"""

from __future__ import annotations

from enum import Enum
import logging
import math
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from ..models.view import ForceSettings, SimulationSettings
from .graph_builder import GraphSnapshot

logger = logging.getLogger(__name__)

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3 - math.sqrt(5))
JIGGLE_SCALE = 1e-6
# Rows per block in the pairwise force loops; bounds memory to BLOCK x N.
BLOCK_SIZE = 512


class LayoutState(str, Enum):
    """Lifecycle of a simulation run."""
    SEEDED = "seeded"
    RELAXING = "relaxing"
    SETTLED = "settled"


def seed_positions(count: int) -> np.ndarray:
    """Phyllotaxis spiral: deterministic, evenly spread starting positions."""
    index = np.arange(count, dtype=float)
    radius = INITIAL_RADIUS * np.sqrt(0.5 + index)
    angle = index * INITIAL_ANGLE
    return np.column_stack((radius * np.cos(angle), radius * np.sin(angle)))


def centering_strengths(connections: np.ndarray, base: float) -> np.ndarray:
    """Per-node centering strength ``base * (1 + degree / max_degree)``."""
    max_degree = connections.max() if connections.size else 0
    if max_degree <= 0:
        return np.full(connections.shape, base, dtype=float)
    return base * (1.0 + connections / max_degree)


class LayoutEngine:
    """Iterative force-directed placement for one graph snapshot at a time."""

    def __init__(
        self,
        forces: Optional[ForceSettings] = None,
        simulation: Optional[SimulationSettings] = None,
    ) -> None:
        self.forces = forces or ForceSettings()
        self.settings = simulation or SimulationSettings()
        self.load(GraphSnapshot.empty())

    # ------------------------------------------------------------------
    # Snapshot lifecycle
    # ------------------------------------------------------------------

    def load(self, snapshot: GraphSnapshot, radii: Optional[Mapping[str, float]] = None) -> None:
        """Replace the simulated graph and reseed every transient parameter."""
        self._paths: List[str] = snapshot.paths
        self._index: Dict[str, int] = {path: i for i, path in enumerate(self._paths)}
        count = len(self._paths)

        self._connections = np.array([node.connections for node in snapshot.nodes], dtype=float)
        self._centering = centering_strengths(self._connections, self.forces.center_force)

        sources = np.array([self._index.get(link.source, -1) for link in snapshot.links], dtype=int)
        targets = np.array([self._index.get(link.target, -1) for link in snapshot.links], dtype=int)
        self._link_source = sources
        self._link_target = targets

        self.positions = seed_positions(count)
        self.velocities = np.zeros((count, 2))
        self._pinned = np.zeros(count, dtype=bool)
        self._pin_xy = np.zeros((count, 2))
        self._radii = np.zeros(count)
        if radii:
            self.set_radii(radii)

        self._rng = np.random.default_rng(self.settings.seed)
        self.alpha = self.settings.alpha_start
        self.alpha_target = 0.0
        self.steps = 0
        self.state = LayoutState.SEEDED

    # ------------------------------------------------------------------
    # Parameters and perturbations
    # ------------------------------------------------------------------

    def configure(
        self,
        forces: Optional[ForceSettings] = None,
        simulation: Optional[SimulationSettings] = None,
    ) -> None:
        """Apply new force/simulation parameters from the next step on, and reheat."""
        if forces is not None:
            self.forces = forces
            self._centering = centering_strengths(self._connections, forces.center_force)
        if simulation is not None:
            self.settings = simulation
        self.reheat()

    def set_radii(self, radii: Mapping[str, float]) -> None:
        """Update node radii used by collision avoidance (no reheat)."""
        for path, radius in radii.items():
            index = self._index.get(path)
            if index is not None:
                self._radii[index] = radius

    def reheat(self, alpha: Optional[float] = None) -> None:
        """Reset the energy parameter and return to Relaxing."""
        self.alpha = self.settings.reheat_alpha if alpha is None else alpha
        if self.state is LayoutState.SETTLED:
            logger.debug("Layout reheated to alpha=%.3f", self.alpha)
            self.state = LayoutState.RELAXING

    def set_alpha_target(self, target: float) -> None:
        self.alpha_target = target

    # ------------------------------------------------------------------
    # Pins
    # ------------------------------------------------------------------

    def pin(self, path: str, x: float, y: float) -> None:
        """Fix a node at (x, y); it keeps exerting forces on the others."""
        index = self._index[path]
        self._pinned[index] = True
        self._pin_xy[index] = (x, y)
        self.positions[index] = (x, y)
        self.velocities[index] = 0.0

    def unpin(self, path: str) -> None:
        index = self._index.get(path)
        if index is not None:
            self._pinned[index] = False

    def is_pinned(self, path: str) -> bool:
        index = self._index.get(path)
        return bool(index is not None and self._pinned[index])

    def pinned_paths(self) -> List[str]:
        return [self._paths[i] for i in np.flatnonzero(self._pinned)]

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def __contains__(self, path: object) -> bool:
        return path in self._index

    @property
    def is_settled(self) -> bool:
        return self.state is LayoutState.SETTLED

    def position(self, path: str) -> Tuple[float, float]:
        x, y = self.positions[self._index[path]]
        return float(x), float(y)

    def iter_positions(self) -> Iterator[Tuple[str, float, float]]:
        for path, (x, y) in zip(self._paths, self.positions):
            yield path, float(x), float(y)

    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of the current positions."""
        if not self._paths:
            return 0.0, 0.0, 0.0, 0.0
        low = self.positions.min(axis=0)
        high = self.positions.max(axis=0)
        return float(low[0]), float(low[1]), float(high[0]), float(high[1])

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def step(self) -> bool:
        """
        Advance one step.

        Returns False without touching any position when the engine is settled.
        """
        if self.state is LayoutState.SETTLED:
            return False

        self.alpha += (self.alpha_target - self.alpha) * (1.0 - self.settings.alpha_decay)
        self.state = LayoutState.RELAXING

        if self._paths:
            force = np.zeros_like(self.positions)
            self._apply_centering(force)
            self._apply_repulsion(force)
            self._apply_links(force)
            if self.settings.collide:
                self._apply_collision(force)
            self._integrate(force)

        self.steps += 1
        if self.alpha < self.settings.alpha_min:
            self.state = LayoutState.SETTLED
            logger.debug("Layout settled after %d steps", self.steps)
        return True

    def run(self, max_steps: int = 1000) -> int:
        """Step until settled or ``max_steps`` is reached; returns steps taken."""
        taken = 0
        while taken < max_steps and self.step():
            taken += 1
        return taken

    def _integrate(self, force: np.ndarray) -> None:
        dt = self.settings.time_step
        self.velocities = (self.velocities + force * dt) * self.settings.velocity_retention
        self.positions = self.positions + self.velocities * dt
        pinned = self._pinned
        if pinned.any():
            self.velocities[pinned] = 0.0
            self.positions[pinned] = self._pin_xy[pinned]

    def _jiggle(self, shape: Tuple[int, ...]) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * JIGGLE_SCALE

    def _apply_centering(self, force: np.ndarray) -> None:
        force -= self.positions * (self._centering * self.alpha)[:, None]

    def _separations(self, rows: slice) -> Tuple[np.ndarray, np.ndarray]:
        """Vectors from each row node to every node, and their squared lengths."""
        delta = self.positions[None, :, :] - self.positions[rows, None, :]
        dist2 = np.einsum("ijk,ijk->ij", delta, delta)
        # Exactly coincident pairs get a tiny seeded offset.
        own = np.arange(rows.start, rows.stop)
        coincident = dist2 == 0.0
        coincident[np.arange(len(own)), own] = False
        if coincident.any():
            delta[coincident] = self._jiggle((int(coincident.sum()), 2))
            dist2 = np.einsum("ijk,ijk->ij", delta, delta)
        return delta, dist2

    def _blocks(self) -> Iterator[slice]:
        count = len(self._paths)
        for start in range(0, count, BLOCK_SIZE):
            yield slice(start, min(start + BLOCK_SIZE, count))

    def _apply_repulsion(self, force: np.ndarray) -> None:
        strength = self.forces.repel_force
        if strength == 0 or len(self._paths) < 2:
            return
        min_dist2 = self.settings.min_distance ** 2
        for rows in self._blocks():
            delta, dist2 = self._separations(rows)
            weight = strength * self.alpha / np.maximum(dist2, min_dist2)
            weight[np.arange(rows.stop - rows.start), np.arange(rows.start, rows.stop)] = 0.0
            force[rows] += np.einsum("ij,ijk->ik", weight, delta)

    def _apply_links(self, force: np.ndarray) -> None:
        if self._link_source.size == 0 or self.forces.link_force == 0:
            return
        valid = (self._link_source >= 0) & (self._link_target >= 0)
        valid &= self._link_source != self._link_target
        sources = self._link_source[valid]
        targets = self._link_target[valid]
        if sources.size == 0:
            return

        count = np.bincount(np.concatenate((sources, targets)), minlength=len(self._paths))
        bias = count[sources] / (count[sources] + count[targets])

        delta = self.positions[targets] - self.positions[sources]
        length = np.hypot(delta[:, 0], delta[:, 1])
        zero = length == 0.0
        if zero.any():
            delta[zero] = self._jiggle((int(zero.sum()), 2))
            length = np.hypot(delta[:, 0], delta[:, 1])

        scale = (length - self.forces.link_distance) / length * self.alpha * self.forces.link_force
        pull = delta * scale[:, None]
        np.add.at(force, targets, -pull * bias[:, None])
        np.add.at(force, sources, pull * (1.0 - bias)[:, None])

    def _apply_collision(self, force: np.ndarray) -> None:
        if len(self._paths) < 2:
            return
        radii = self._radii
        r2 = radii ** 2
        for rows in self._blocks():
            delta, dist2 = self._separations(rows)
            # delta points from the row node to the others; push the row node away.
            dist = np.sqrt(dist2)
            reach = radii[rows, None] + radii[None, :]
            overlap = (dist < reach) & (dist > 0)
            overlap[np.arange(rows.stop - rows.start), np.arange(rows.start, rows.stop)] = False
            if not overlap.any():
                continue
            share = np.divide(
                r2[None, :],
                r2[rows, None] + r2[None, :],
                out=np.full(dist.shape, 0.5),
                where=(r2[rows, None] + r2[None, :]) > 0,
            )
            push = np.where(
                overlap,
                (reach - dist) / np.where(dist > 0, dist, 1.0) * self.settings.collide_strength * share,
                0.0,
            )
            force[rows] -= np.einsum("ij,ijk->ik", push, delta)


__all__ = ["LayoutState", "LayoutEngine", "seed_positions", "centering_strengths"]
