"""
Loss functions for the 1-D linear regression playground.

Every loss is averaged over the dataset. Training always descends the MSE
gradient (`mse_gradient`) whatever loss is selected for reporting; the other
losses only change the number shown to the user.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import numpy as np

__all__ = [
    "LossFunction",
    "mse",
    "mae",
    "huber",
    "crossentropy",
    "get_loss",
    "available_losses",
    "compute_loss",
    "mse_gradient",
]

PROBABILITY_CLIP = (0.001, 0.999)
BINARY_THRESHOLD = 0.5


def mse(predicted: np.ndarray, target: np.ndarray, delta: float = 0.5) -> np.ndarray:
    """Per-example squared error."""
    error = target - predicted
    return error * error


def mae(predicted: np.ndarray, target: np.ndarray, delta: float = 0.5) -> np.ndarray:
    """Per-example absolute error."""
    return np.abs(target - predicted)


def huber(predicted: np.ndarray, target: np.ndarray, delta: float = 0.5) -> np.ndarray:
    """
    Per-example Huber loss.

    Quadratic (``0.5 * e^2``) while ``|e| < delta``, linear
    (``delta * |e| - 0.5 * delta^2``) beyond it.
    """
    abs_error = np.abs(target - predicted)
    return np.where(
        abs_error < delta,
        0.5 * abs_error * abs_error,
        delta * abs_error - 0.5 * delta * delta,
    )


def crossentropy(predicted: np.ndarray, target: np.ndarray, delta: float = 0.5) -> np.ndarray:
    """
    Per-example binary cross-entropy surrogate.

    The prediction is clipped into ``[0.001, 0.999]`` and used as a
    probability; the target is binarised (``> 0.5`` is the positive class).
    """
    p = np.clip(predicted, *PROBABILITY_CLIP)
    y = (target > BINARY_THRESHOLD).astype(float)
    return -(y * np.log(p) + (1.0 - y) * np.log(1.0 - p))


@dataclass(frozen=True)
class LossFunction:
    """Loss metadata shown next to the loss curve."""

    key: str
    name: str
    formula: str
    description: str
    per_example: Callable[..., np.ndarray]


_LOSSES: Dict[str, LossFunction] = {
    "mse": LossFunction(
        key="mse",
        name="Mean Squared Error",
        formula="L = (1/n) * sum((y - y_hat)^2)",
        description="Penalizes larger errors more heavily. Good for regression.",
        per_example=mse,
    ),
    "mae": LossFunction(
        key="mae",
        name="Mean Absolute Error",
        formula="L = (1/n) * sum(|y - y_hat|)",
        description="More robust to outliers. Linear penalty for errors.",
        per_example=mae,
    ),
    "huber": LossFunction(
        key="huber",
        name="Huber Loss",
        formula="L = 0.5*(y-y_hat)^2 if |y-y_hat| < delta else delta*|y-y_hat| - 0.5*delta^2",
        description="Combines MSE and MAE. Less sensitive to outliers than MSE.",
        per_example=huber,
    ),
    "crossentropy": LossFunction(
        key="crossentropy",
        name="Binary Cross-Entropy",
        formula="L = -[y*log(y_hat) + (1-y)*log(1-y_hat)]",
        description="Used for classification. Measures probability divergence.",
        per_example=crossentropy,
    ),
}


def get_loss(name: str) -> LossFunction:
    """Look up a loss by key. Raises KeyError if not found."""
    try:
        return _LOSSES[name]
    except KeyError as exc:
        raise KeyError(
            f"Loss '{name}' not found. Available: {list(_LOSSES)}"
        ) from exc


def available_losses() -> List[str]:
    return list(_LOSSES)


def compute_loss(
    name: str,
    predicted: np.ndarray,
    target: np.ndarray,
    delta: float = 0.5,
) -> float:
    """Mean loss over the dataset; an empty dataset has zero loss."""
    loss = get_loss(name)
    predicted = np.asarray(predicted, dtype=float)
    target = np.asarray(target, dtype=float)
    if predicted.size == 0:
        return 0.0
    return float(np.mean(loss.per_example(predicted, target, delta)))


def mse_gradient(
    weight: float,
    bias: float,
    inputs: np.ndarray,
    targets: np.ndarray,
) -> Tuple[float, float]:
    """
    Gradient of the MSE of ``weight * x + bias`` with respect to (weight, bias).

    Returns
    -------
    Tuple[float, float]
        ``(mean(-2 * e * x), mean(-2 * e))`` with ``e = y - y_hat``;
        ``(0.0, 0.0)`` for an empty dataset.
    """
    inputs = np.asarray(inputs, dtype=float)
    targets = np.asarray(targets, dtype=float)
    if inputs.size == 0:
        return 0.0, 0.0
    error = targets - (weight * inputs + bias)
    dw = float(np.mean(-2.0 * error * inputs))
    db = float(np.mean(-2.0 * error))
    return dw, db
