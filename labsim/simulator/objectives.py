"""Scalar objective functions of a 2-D point (the loss landscapes)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np

__all__ = [
    "ObjectiveFunction",
    "get_objective",
    "available_objectives",
    "gradient_field",
]

FIELD_SOFTENING = 0.1


@dataclass(frozen=True)
class ObjectiveFunction:
    """A landscape with its analytic gradient and the minimum tracked as target.

    Himmelblau's function has four global minima; only (3, 2) is the target.
    """

    key: str
    name: str
    value_fn: Callable[[float, float], float]
    gradient_fn: Callable[[float, float], Tuple[float, float]]
    target: Tuple[float, float]

    def value(self, x: float, y: float) -> float:
        return float(self.value_fn(x, y))

    def gradient(self, x: float, y: float) -> np.ndarray:
        gx, gy = self.gradient_fn(x, y)
        return np.array([gx, gy], dtype=float)

    def distance_to_target(self, x: float, y: float) -> float:
        return float(np.hypot(x - self.target[0], y - self.target[1]))


_OBJECTIVES: Dict[str, ObjectiveFunction] = {
    "quadratic": ObjectiveFunction(
        key="quadratic",
        name="Quadratic Bowl",
        value_fn=lambda x, y: (x - 2) ** 2 + (y - 2) ** 2,
        gradient_fn=lambda x, y: (2 * (x - 2), 2 * (y - 2)),
        target=(2.0, 2.0),
    ),
    "rosenbrock": ObjectiveFunction(
        key="rosenbrock",
        name="Rosenbrock's Valley",
        value_fn=lambda x, y: (1 - x) ** 2 + 100 * (y - x ** 2) ** 2,
        gradient_fn=lambda x, y: (
            -2 * (1 - x) - 400 * x * (y - x ** 2),
            200 * (y - x ** 2),
        ),
        target=(1.0, 1.0),
    ),
    "himmelblau": ObjectiveFunction(
        key="himmelblau",
        name="Himmelblau's Function",
        value_fn=lambda x, y: (x ** 2 + y - 11) ** 2 + (x + y ** 2 - 7) ** 2,
        gradient_fn=lambda x, y: (
            4 * x * (x ** 2 + y - 11) + 2 * (x + y ** 2 - 7),
            2 * (x ** 2 + y - 11) + 4 * y * (x + y ** 2 - 7),
        ),
        target=(3.0, 2.0),
    ),
}


def get_objective(name: str) -> ObjectiveFunction:
    """Look up an objective by key. Raises KeyError if not found."""
    try:
        return _OBJECTIVES[name]
    except KeyError as exc:
        raise KeyError(
            f"Objective '{name}' not found. Available: {list(_OBJECTIVES)}"
        ) from exc


def available_objectives() -> List[str]:
    return list(_OBJECTIVES)


def gradient_field(
    objective: ObjectiveFunction,
    lo: int = -4,
    hi: int = 4,
    step: int = 1,
) -> Tuple[np.ndarray, np.ndarray]:
    """Descent directions on an integer lattice, for the arrow overlay.

    Each arrow is ``-g / (|g| + 0.1)``: unit length where the slope is steep,
    shrinking to zero at stationary points instead of dividing by zero.

    Returns
    -------
    points
        Array ``(k, 2)`` of lattice points, x-major.
    directions
        Array ``(k, 2)`` of softened descent directions.
    """
    ticks = np.arange(lo, hi + 1, step, dtype=float)
    points = np.array([(x, y) for x in ticks for y in ticks]).reshape(-1, 2)
    directions = np.zeros_like(points)
    for idx, (x, y) in enumerate(points):
        g = objective.gradient(x, y)
        directions[idx] = -g / (np.linalg.norm(g) + FIELD_SOFTENING)
    return points, directions
