"""Particle field with pointer repulsion, toroidal wrap and proximity links.

Positions are stored as an ``(n, 3)`` array. Only x and y move; z is fixed at
initialisation and only contributes to the linking distance. Particles do not
interact with each other and may overlap.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..config import LabConfig, ParticleConfig
from .engine import Simulation, frozen_copy, register_engine

__all__ = ["Particle", "ParticleSnapshot", "ParticleFieldSimulator", "build_edges"]

logger = logging.getLogger(__name__)

Edge = Tuple[int, int]


@dataclass(frozen=True)
class Particle:
    x: float
    y: float
    vx: float
    vy: float


@dataclass(frozen=True)
class ParticleSnapshot:
    positions: np.ndarray  # (n, 3) copy
    velocities: np.ndarray  # (n, 3) copy
    edges: Tuple[Edge, ...]
    tick: int


def build_edges(positions, max_degree: int, max_distance: float) -> List[Edge]:
    """
    Link nearby particles with a per-particle cap.

    For each ``i`` in index order the particles ``j > i`` are scanned in index
    order and ``(i, j)`` is accepted when their Euclidean distance is below
    ``max_distance``. Scanning for ``i`` stops after ``max_degree`` accepted
    links. The cap only counts links where ``i`` is the lower index, so a
    particle can end up with more links in total; these are the first
    qualifying neighbours, not the nearest ones.

    The scan is O(n^2) per call, which is fine for the tens of particles drawn
    in the background. A spatial index would only pay off for much larger n.

    Parameters
    ----------
    positions
        Array-like of shape ``(n, d)``.
    max_degree
        Maximum number of links started by one particle.
    max_distance
        Strict upper bound on link length.
    """
    pts = np.asarray(positions, dtype=float)
    edges: List[Edge] = []
    if max_degree <= 0 or pts.ndim != 2 or pts.shape[0] < 2:
        return edges

    n = pts.shape[0]
    for i in range(n - 1):
        dist = np.linalg.norm(pts[i + 1:] - pts[i], axis=1)
        near = np.flatnonzero(dist < max_distance)[:max_degree]
        edges.extend((i, i + 1 + int(k)) for k in near)
    return edges


@register_engine
class ParticleFieldSimulator(Simulation):
    """Background particle field reacting to the pointer."""

    key = "particles"

    def __init__(self, cfg: ParticleConfig | None = None, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.cfg = cfg if cfg is not None else ParticleConfig()
        self.reset()

    @classmethod
    def from_config(cls, cfg: LabConfig, rng: Optional[np.random.Generator] = None) -> "ParticleFieldSimulator":
        return cls(cfg.particles, rng=rng)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Redraw every particle uniformly inside the bounding volume."""
        cfg = self.cfg
        n = max(int(cfg.count), 0)

        half_extent = np.array([cfg.bound, cfg.bound, cfg.depth])
        self.positions = self.rng.uniform(-1.0, 1.0, size=(n, 3)) * half_extent

        self.velocities = np.zeros((n, 3))
        self.velocities[:, :2] = self.rng.uniform(-0.5, 0.5, size=(n, 2)) * cfg.speed

        self.tick = 0
        self.edges: List[Edge] = build_edges(self.positions, cfg.max_degree, cfg.max_distance)
        logger.debug("Particle field reset with %d particles", n)

    def step(self, pointer: Optional[Sequence[float]] = None) -> ParticleSnapshot:
        """
        Advance all particles by one tick.

        Parameters
        ----------
        pointer
            Pointer position in normalised coordinates ``[-1, 1]^2`` (y up).
            ``None`` means no pointer over the field, so no repulsion.
        """
        if self.positions.shape[0] == 0:
            logger.warning("Particle field is empty; step skipped")
            return self.get_state()

        cfg = self.cfg
        xy = self.positions[:, :2]

        # Euler integration with unit timestep
        xy += self.velocities[:, :2]

        if pointer is not None:
            self._repel(xy, pointer)

        # Toroidal wrap: leaving through one side re-enters on the other
        over = xy > cfg.bound
        under = xy < -cfg.bound
        xy[over] = -cfg.bound
        xy[under] = cfg.bound

        self.tick += 1
        self.edges = build_edges(self.positions, cfg.max_degree, cfg.max_distance)
        return self.get_state()

    def _repel(self, xy: np.ndarray, pointer: Sequence[float]) -> None:
        """Push particles inside the repulsion radius straight away from the pointer.

        The push is applied to the position only, so it does not persist as drift.
        """
        cfg = self.cfg
        target = np.array([
            pointer[0] * cfg.viewport_width * 0.5,
            pointer[1] * cfg.viewport_height * 0.5,
        ])
        offset = xy - target
        dist = np.hypot(offset[:, 0], offset[:, 1])

        inside = (dist < cfg.repulsion_radius) & (dist > 0)
        if not np.any(inside):
            return
        force = (cfg.repulsion_radius - dist[inside]) / cfg.repulsion_radius * cfg.repulsion_strength
        xy[inside] += offset[inside] / dist[inside, None] * force[:, None]

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def get_state(self) -> ParticleSnapshot:
        return ParticleSnapshot(
            positions=frozen_copy(self.positions),
            velocities=frozen_copy(self.velocities),
            edges=tuple(self.edges),
            tick=self.tick,
        )

    @property
    def particles(self) -> List[Particle]:
        return [
            Particle(float(p[0]), float(p[1]), float(v[0]), float(v[1]))
            for p, v in zip(self.positions, self.velocities)
        ]

    def summary(self):
        return {
            "particles": float(self.positions.shape[0]),
            "edges": float(len(self.edges)),
            "tick": float(self.tick),
        }
