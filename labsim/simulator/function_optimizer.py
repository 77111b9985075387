"""Gradient-descent comparator on a selectable loss landscape."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import Optional, Tuple

import numpy as np

from ..algorithms import UpdateRule, get_optimizer
from ..config import LabConfig, OptimizerConfig
from .engine import Simulation, register_engine
from .objectives import ObjectiveFunction, get_objective

__all__ = ["OptimizerSnapshot", "FunctionOptimizer"]

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class OptimizerSnapshot:
    x: float
    y: float
    loss: float
    iteration: int
    trajectory: Tuple[Point, ...]
    converged: bool
    objective: str
    optimizer: str
    target: Point


@register_engine
class FunctionOptimizer(Simulation):
    """
    Moves one point downhill on an objective with sgd, momentum or adam.

    After every update the point is clamped into ``[-domain, domain]^2`` and
    appended to a trajectory holding the ``history`` most recent points.
    Once the point is within ``tolerance`` of the objective's target the run
    is converged and further `step` calls leave the state untouched until
    `reset` (or a change of objective/optimizer) re-arms it.
    """

    key = "optimizer"

    def __init__(self, cfg: OptimizerConfig | None = None, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.cfg = cfg if cfg is not None else OptimizerConfig()
        self.learning_rate = self.cfg.learning_rate
        self.objective: ObjectiveFunction = get_objective(self.cfg.objective)
        self.rule: UpdateRule = get_optimizer(self.cfg.optimizer)(self.cfg)
        self.reset()

    @classmethod
    def from_config(cls, cfg: LabConfig, rng: Optional[np.random.Generator] = None) -> "FunctionOptimizer":
        return cls(cfg.optimizer, rng=rng)

    # ------------------------------------------------------------------
    # Configuration changes
    # ------------------------------------------------------------------
    def set_objective(self, name: str) -> None:
        """Switch landscape; the run restarts from scratch."""
        self.objective = get_objective(name)
        self.cfg = replace(self.cfg, objective=name)
        self.reset()

    def set_optimizer(self, name: str) -> None:
        """Switch update rule; the run restarts from scratch."""
        rule_cls = get_optimizer(name)
        self.cfg = replace(self.cfg, optimizer=name)
        self.rule = rule_cls(self.cfg)
        self.reset()

    def set_learning_rate(self, learning_rate: float) -> None:
        """Takes effect on the next step; the run continues."""
        self.learning_rate = float(learning_rate)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.point = np.array(self.cfg.start, dtype=float)
        self.rule.reset()
        self.trajectory = deque(maxlen=max(int(self.cfg.history), 0))
        self.iteration = 0
        self.converged = False
        logger.debug("Optimizer reset (%s on %s)", self.rule.name, self.objective.key)

    def step(self) -> OptimizerSnapshot:
        if self.converged:
            return self.get_state()

        grad = self.objective.gradient(*self.point)
        new_point = self.rule.update(self.point, grad, self.learning_rate)
        self.point = np.clip(new_point, -self.cfg.domain, self.cfg.domain)

        self.trajectory.append((float(self.point[0]), float(self.point[1])))
        self.iteration += 1

        if self.objective.distance_to_target(*self.point) < self.cfg.tolerance:
            self.converged = True
            logger.debug(
                "%s converged on %s after %d iterations",
                self.rule.name, self.objective.key, self.iteration,
            )
        return self.get_state()

    def run(self, max_iterations: int) -> OptimizerSnapshot:
        """Step until converged or ``max_iterations`` steps were taken."""
        for _ in range(max_iterations):
            if self.converged:
                break
            self.step()
        return self.get_state()

    @property
    def finished(self) -> bool:
        return self.converged

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def loss(self) -> float:
        return self.objective.value(*self.point)

    def get_state(self) -> OptimizerSnapshot:
        x, y = float(self.point[0]), float(self.point[1])
        return OptimizerSnapshot(
            x=x,
            y=y,
            loss=self.loss,
            iteration=self.iteration,
            trajectory=tuple(self.trajectory),
            converged=self.converged,
            objective=self.objective.key,
            optimizer=self.rule.name,
            target=self.objective.target,
        )

    def summary(self):
        return {
            "loss": self.loss,
            "iteration": float(self.iteration),
            "converged": float(self.converged),
            "distance": self.objective.distance_to_target(*self.point),
        }
