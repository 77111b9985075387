"""Online gradient descent on a noisy line, reported under a selectable loss."""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from ..algorithms.loss_functions import LossFunction, compute_loss, get_loss, mse_gradient
from ..config import LabConfig, RegressionConfig
from .engine import Simulation, frozen_copy, register_engine

__all__ = ["DataPoint", "RegressionSnapshot", "generate_dataset", "RegressionTrainer"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataPoint:
    input: float
    target: float


@dataclass(frozen=True)
class RegressionSnapshot:
    weight: float
    bias: float
    epoch: int
    loss: float
    loss_history: Tuple[float, ...]
    inputs: np.ndarray
    targets: np.ndarray
    predictions: np.ndarray
    loss_name: str


def generate_dataset(
    n_points: int,
    rng: np.random.Generator,
    true_weight: float = 0.3,
    true_bias: float = 0.5,
    noise: float = 0.15,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Inputs evenly spaced on [0, 1]; targets ``true_bias + true_weight * x``
    plus noise uniform in ``[-noise, noise]``.
    """
    n = max(int(n_points), 0)
    inputs = np.linspace(0.0, 1.0, n)
    targets = true_bias + true_weight * inputs + rng.uniform(-noise, noise, size=n)
    return inputs, targets


@register_engine
class RegressionTrainer(Simulation):
    """
    Fits ``y = weight * x + bias`` by full-batch gradient descent.

    The update always follows the MSE gradient; the selected loss only decides
    the value reported in ``loss`` and ``loss_history``. Switching loss never
    changes the fit.
    """

    key = "regression"

    def __init__(self, cfg: RegressionConfig | None = None, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.cfg = cfg if cfg is not None else RegressionConfig()
        self.learning_rate = self.cfg.learning_rate
        self.loss_fn: LossFunction = get_loss(self.cfg.loss)
        self.reset()

    @classmethod
    def from_config(cls, cfg: LabConfig, rng: Optional[np.random.Generator] = None) -> "RegressionTrainer":
        return cls(cfg.regression, rng=rng)

    # ------------------------------------------------------------------
    # Live tuning
    # ------------------------------------------------------------------
    def set_loss(self, name: str) -> None:
        """Change the reported loss; the fit and its history carry on."""
        self.loss_fn = get_loss(name)

    def set_learning_rate(self, learning_rate: float) -> None:
        self.learning_rate = float(learning_rate)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        cfg = self.cfg
        self.weight = float(cfg.init_weight)
        self.bias = float(cfg.init_bias)
        self.epoch = 0
        self.loss = 0.0
        self.loss_history = deque(maxlen=max(int(cfg.history), 0))
        self.inputs, self.targets = generate_dataset(
            cfg.n_points,
            self.rng,
            true_weight=cfg.true_weight,
            true_bias=cfg.true_bias,
            noise=cfg.noise,
        )
        logger.debug("Regression reset with %d points", self.inputs.size)

    def step(self) -> RegressionSnapshot:
        if self.inputs.size == 0:
            logger.warning("Empty dataset; training step skipped")
            return self.get_state()

        dw, db = mse_gradient(self.weight, self.bias, self.inputs, self.targets)
        self.weight -= self.learning_rate * dw
        self.bias -= self.learning_rate * db

        self.loss = self.current_loss()
        self.loss_history.append(self.loss)
        self.epoch += 1
        return self.get_state()

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def dataset(self) -> List[DataPoint]:
        return [DataPoint(float(x), float(y)) for x, y in zip(self.inputs, self.targets)]

    @property
    def predictions(self) -> np.ndarray:
        return self.weight * self.inputs + self.bias

    def current_loss(self, name: Optional[str] = None) -> float:
        """Loss of the current fit, under ``name`` or the selected loss."""
        key = name if name is not None else self.loss_fn.key
        return compute_loss(key, self.predictions, self.targets, delta=self.cfg.huber_delta)

    def get_state(self) -> RegressionSnapshot:
        return RegressionSnapshot(
            weight=self.weight,
            bias=self.bias,
            epoch=self.epoch,
            loss=self.loss,
            loss_history=tuple(self.loss_history),
            inputs=frozen_copy(self.inputs),
            targets=frozen_copy(self.targets),
            predictions=frozen_copy(self.predictions),
            loss_name=self.loss_fn.key,
        )

    def summary(self):
        return {
            "loss": self.loss,
            "weight": self.weight,
            "bias": self.bias,
            "epoch": float(self.epoch),
        }
