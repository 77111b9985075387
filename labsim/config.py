"""Global configuration definitions.

Every engine reads its tunables from one dataclass defined here, and the
`LabConfig` container bundles all four together with the random seed so that
a whole lab session can be created programmatically or loaded from a YAML
file for batch experiments.
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
import yaml

__all__ = [
    "ParticleConfig",
    "OptimizerConfig",
    "GridWorldConfig",
    "RegressionConfig",
    "LabConfig",
    "make_rng",
]

DEFAULT_YAML_INDENT = 2


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Return a NumPy generator; ``seed=None`` draws fresh OS entropy."""
    return np.random.default_rng(seed)


@dataclass
class ParticleConfig:
    """Tunables of the particle field.

    Attributes
    ----------
    count
        Number of particles (fixed population).
    bound
        Half-extent ``B`` of the square x/y domain; coordinates wrap at ±B.
    depth
        Half-extent of the z coordinate (only used for linking distance).
    speed
        Initial velocity components are uniform in ``[-speed/2, speed/2]``.
    repulsion_radius
        Pointer repulsion radius ``R``.
    repulsion_strength
        Impulse scale ``k`` at zero distance.
    viewport_width, viewport_height
        Size of the visible area; pointer coordinates in ``[-1, 1]`` are scaled
        by half of these.
    max_degree
        Maximum number of links started by one particle.
    max_distance
        Linking distance (3-D Euclidean).
    """

    count: int = 60
    bound: float = 10.0
    depth: float = 5.0
    speed: float = 0.01
    repulsion_radius: float = 3.0
    repulsion_strength: float = 0.02
    viewport_width: float = 20.0
    viewport_height: float = 20.0
    max_degree: int = 3
    max_distance: float = 2.5


@dataclass
class OptimizerConfig:
    """Tunables of the loss-landscape optimizer demo."""

    objective: str = "quadratic"
    optimizer: str = "sgd"
    learning_rate: float = 0.1
    start: Tuple[float, float] = (4.0, 4.0)
    domain: float = 5.0
    history: int = 50
    tolerance: float = 0.01
    momentum: float = 0.9
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8

    def __post_init__(self):
        # YAML hands sequences back as lists
        self.start = (float(self.start[0]), float(self.start[1]))


@dataclass
class GridWorldConfig:
    """Tunables of the Q-learning maze.

    ``show_q_values`` is a display toggle only; it is passed through to the
    snapshot untouched.
    """

    size: int = 8
    learning_rate: float = 0.1
    epsilon: float = 0.3
    discount: float = 0.9
    step_reward: float = -0.1
    goal_reward: float = 10.0
    show_q_values: bool = True


@dataclass
class RegressionConfig:
    """Tunables of the loss-function playground."""

    loss: str = "mse"
    learning_rate: float = 0.1
    n_points: int = 20
    true_weight: float = 0.3
    true_bias: float = 0.5
    noise: float = 0.15
    init_weight: float = 0.5
    init_bias: float = 0.0
    history: int = 50
    huber_delta: float = 0.5


def _section(cls, value):
    if value is None:
        return cls()
    if isinstance(value, cls):
        return value
    return cls(**value)


@dataclass
class LabConfig:
    """Container for all engine configurations of one lab session.

    Attributes
    ----------
    particles, optimizer, gridworld, regression
        Per-engine sections; missing sections in YAML fall back to defaults.
    seed
        Random seed. ``None`` keeps the engines unseeded.
    tag
        Free-form label (e.g. experiment name).
    """

    particles: ParticleConfig = field(default_factory=ParticleConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    gridworld: GridWorldConfig = field(default_factory=GridWorldConfig)
    regression: RegressionConfig = field(default_factory=RegressionConfig)
    seed: Optional[int] = None
    tag: str = ""

    # Automatically filled, not expected to be loaded from file.
    _yaml_path: Optional[Path] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        self.particles = _section(ParticleConfig, self.particles)
        self.optimizer = _section(OptimizerConfig, self.optimizer)
        self.gridworld = _section(GridWorldConfig, self.gridworld)
        self.regression = _section(RegressionConfig, self.regression)

    # ---------------------------------------------------------------------
    # YAML helpers
    # ---------------------------------------------------------------------
    @classmethod
    def from_yaml(cls, path: os.PathLike | str) -> "LabConfig":
        """Load a configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
        cfg = cls(**data)
        cfg._yaml_path = Path(path)
        return cfg

    def to_yaml(self, path: os.PathLike | str) -> None:
        """Save the config to YAML."""
        data = asdict(self)
        data.pop("_yaml_path", None)
        data["optimizer"]["start"] = list(data["optimizer"]["start"])
        with open(path, "w", encoding="utf-8") as fh:
            yaml.safe_dump(data, fh, indent=DEFAULT_YAML_INDENT, sort_keys=False)

    # ------------------------------------------------------------------
    # Random Seed Control
    # ------------------------------------------------------------------
    def make_rng(self) -> np.random.Generator:
        return make_rng(self.seed)

    def set_global_seeds(self) -> None:
        """Seed `random` and `numpy` for code that uses the global generators."""
        if self.seed is None:
            return
        random.seed(self.seed)
        np.random.seed(self.seed)
        os.environ["PYTHONHASHSEED"] = str(self.seed)

    def __str__(self) -> str:  # noqa: DunderStr
        return f"LabConfig(tag={self.tag!r}, seed={self.seed})"
