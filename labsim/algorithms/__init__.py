"""
Algorithm module: registry, abstract base class, and public API for optimizer update rules.

This module provides:
- An abstract base class (`UpdateRule`) for all first-order update rules used by
  the function-optimizer engine.
- A registry system for dynamic lookup by name (the name selected in the UI).
- Public API exposure for the update rules and the regression loss functions.

Usage Example:
--------------

from labsim.algorithms import get_optimizer, register_optimizer, UpdateRule

@register_optimizer
class nesterov(UpdateRule):
    def reset(self):
        ...
    def update(self, point, grad, learning_rate):
        return point - learning_rate * grad

rule = get_optimizer("nesterov")(cfg)
new_point = rule.update(point, grad, 0.1)

"""
from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Dict, List, Type

import numpy as np

from ..config import OptimizerConfig

__all__ = [
    "UpdateRule",
    "register_optimizer",
    "get_optimizer",
    "available_optimizers",
    "optimizers",
    "loss_functions",
]

# Update-rule registry: maps optimizer names to classes
_REGISTRY: Dict[str, Type["UpdateRule"]] = {}


class UpdateRule(ABC):
    """
    Abstract interface every optimizer update rule must implement.

    An update rule owns its auxiliary accumulators (velocity, moment estimates)
    and nothing else; the point being optimized is passed in and returned.
    """

    def __init__(self, cfg: OptimizerConfig):
        self.cfg = cfg
        self.reset()

    @abstractmethod
    def reset(self) -> None:
        """Zero all auxiliary accumulators."""

    @abstractmethod
    def update(self, point: np.ndarray, grad: np.ndarray, learning_rate: float) -> np.ndarray:
        """
        Return the next point given the current point and its gradient.
        The result is not clamped; the caller owns the domain.
        """

    @property
    def name(self) -> str:
        """
        Name used in plots/logs (defaults to class name).
        """
        return self.__class__.__name__


# ------------------------------------------------------------------
# Registry helpers
# ------------------------------------------------------------------

def register_optimizer(cls: Type["UpdateRule"]) -> Type["UpdateRule"]:
    """
    Class decorator to auto-register update rules in the global registry.
    Ensures only subclasses of UpdateRule are registered.
    Raises if duplicate or invalid registration is attempted.
    """
    if not inspect.isclass(cls):
        raise TypeError("@register_optimizer can only decorate classes")
    if not issubclass(cls, UpdateRule):
        raise TypeError("Registered class must inherit from UpdateRule")

    key = cls.__name__
    if key in _REGISTRY:
        raise KeyError(f"Optimizer '{key}' is already registered")
    _REGISTRY[key] = cls
    return cls


def get_optimizer(name: str) -> Type["UpdateRule"]:
    """
    Retrieve an update-rule class by name from the registry.
    Raises KeyError if not found.
    """
    try:
        return _REGISTRY[name]
    except KeyError as exc:
        raise KeyError(
            f"Optimizer '{name}' not found in registry. Available: {list(_REGISTRY)}"
        ) from exc


def available_optimizers() -> List[str]:
    return list(_REGISTRY)


# ------------------------------------------------------------------
# Expose key algorithm modules for convenient import
# ------------------------------------------------------------------

from . import optimizers
from . import loss_functions
