"""First-order update rules for a single 2-D point.

The Adam rule keeps one scalar second moment shared by both coordinates and
applies bias correction by the constant ``(1 - beta)`` rather than ``(1 - beta**t)``,
which under-corrects early iterations.
"""
from __future__ import annotations

import numpy as np

from ..algorithms import UpdateRule, register_optimizer

__all__ = ["sgd", "momentum", "adam"]


@register_optimizer
class sgd(UpdateRule):  # pylint: disable=invalid-name
    """Plain gradient step: ``p -= lr * g``."""

    def reset(self) -> None:
        pass

    def update(self, point: np.ndarray, grad: np.ndarray, learning_rate: float) -> np.ndarray:
        return point - learning_rate * grad


@register_optimizer
class momentum(UpdateRule):  # pylint: disable=invalid-name
    """Heavy-ball momentum: ``v = beta * v - lr * g; p += v``."""

    def reset(self) -> None:
        self.velocity = np.zeros(2)

    def update(self, point: np.ndarray, grad: np.ndarray, learning_rate: float) -> np.ndarray:
        self.velocity = self.cfg.momentum * self.velocity - learning_rate * grad
        return point + self.velocity


@register_optimizer
class adam(UpdateRule):  # pylint: disable=invalid-name
    """Adam with constant bias correction.

    Algorithm (each step):
        m = beta1 * m + (1 - beta1) * g
        v = beta2 * v + (1 - beta2) * |g|^2        # scalar, shared by x and y
        m_hat = m / (1 - beta1)
        v_hat = v / (1 - beta2)
        p -= lr * m_hat / (sqrt(v_hat) + eps)
    """

    def reset(self) -> None:
        self.first_moment = np.zeros(2)
        self.second_moment = 0.0
        self.step_count = 0

    def update(self, point: np.ndarray, grad: np.ndarray, learning_rate: float) -> np.ndarray:
        cfg = self.cfg
        self.step_count += 1

        self.first_moment = cfg.beta1 * self.first_moment + (1.0 - cfg.beta1) * grad
        self.second_moment = cfg.beta2 * self.second_moment + (1.0 - cfg.beta2) * float(np.dot(grad, grad))

        m_hat = self.first_moment / (1.0 - cfg.beta1)
        v_hat = self.second_moment / (1.0 - cfg.beta2)

        return point - learning_rate * m_hat / (np.sqrt(v_hat) + cfg.epsilon)
