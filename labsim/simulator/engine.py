"""Engine base class, registry, and the fixed-rate driver used outside a UI."""
from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type

import numpy as np

from ..config import LabConfig, make_rng

__all__ = [
    "Simulation",
    "SimulationResult",
    "register_engine",
    "get_engine",
    "available_engines",
    "run_once",
    "frozen_copy",
]

logger = logging.getLogger(__name__)

_REGISTRY: Dict[str, Type["Simulation"]] = {}


def frozen_copy(array: np.ndarray) -> np.ndarray:
    """Read-only copy handed out in snapshots."""
    out = array.copy()
    out.setflags(write=False)
    return out


class Simulation(ABC):
    """
    Common (state, step, reset) contract of every lab engine.

    An engine exclusively owns its state. `step` advances it by one tick and
    returns the new snapshot; `get_state` returns a snapshot built from copies,
    so a renderer holding it never observes a later mutation.
    """

    key: str = ""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng if rng is not None else make_rng()

    @classmethod
    @abstractmethod
    def from_config(cls, cfg: LabConfig, rng: Optional[np.random.Generator] = None) -> "Simulation":
        """Build the engine from its section of a `LabConfig`."""

    @abstractmethod
    def step(self, *args, **kwargs):
        """Advance one tick and return the new snapshot."""

    @abstractmethod
    def reset(self) -> None:
        """Restore the initial invariants (zeroed counters, cleared histories)."""

    @abstractmethod
    def get_state(self):
        """Return an immutable snapshot of the current state."""

    @abstractmethod
    def summary(self) -> Dict[str, float]:
        """Headline numbers for logs and batch reports."""

    @property
    def finished(self) -> bool:
        """True once the run reached a terminal state (the driver stops stepping)."""
        return False

    @property
    def name(self) -> str:
        return self.__class__.__name__


# ------------------------------------------------------------------
# Registry helpers
# ------------------------------------------------------------------

def register_engine(cls: Type["Simulation"]) -> Type["Simulation"]:
    """
    Class decorator registering an engine under its ``key``.
    Raises on duplicate keys and on classes that are not Simulation subclasses.
    """
    if not inspect.isclass(cls):
        raise TypeError("@register_engine can only decorate classes")
    if not issubclass(cls, Simulation):
        raise TypeError("Registered class must inherit from Simulation")

    key = cls.key or cls.__name__
    if key in _REGISTRY:
        raise KeyError(f"Engine '{key}' is already registered")
    _REGISTRY[key] = cls
    return cls


def get_engine(name: str) -> Type["Simulation"]:
    """
    Retrieve an engine class by key from the registry.
    Raises KeyError if not found.
    """
    try:
        return _REGISTRY[name]
    except KeyError as exc:
        raise KeyError(
            f"Engine '{name}' not found in registry. Available: {list(_REGISTRY)}"
        ) from exc


def available_engines() -> List[str]:
    return list(_REGISTRY)


# ------------------------------------------------------------------
# Driver
# ------------------------------------------------------------------

@dataclass
class SimulationResult:
    """Container returned by `run_once`."""

    engine_name: str
    seed: Optional[int]
    steps_run: int
    finished: bool
    summary: Dict[str, float]
    final_state: Any


def run_once(
    cfg: LabConfig,
    engine_name: str,
    steps: int,
    on_tick: Optional[Callable[[Any], None]] = None,
    **step_kwargs,
) -> SimulationResult:
    """
    Drive one engine for at most ``steps`` ticks.

    This plays the role of the UI timer: exactly one `step` per tick, state is
    only read between ticks (``on_tick`` receives each snapshot), and the loop
    stops early when the engine reports a terminal state. Extra keyword
    arguments are passed to every `step` call (e.g. ``pointer`` for particles).
    """
    engine_cls = get_engine(engine_name)
    engine = engine_cls.from_config(cfg, rng=cfg.make_rng())

    steps_run = 0
    while steps_run < steps and not engine.finished:
        snapshot = engine.step(**step_kwargs)
        steps_run += 1
        if on_tick is not None:
            on_tick(snapshot)

    summary = engine.summary()
    logger.info("%s finished after %d steps: %s", engine.name, steps_run, summary)
    return SimulationResult(
        engine_name=engine_name,
        seed=cfg.seed,
        steps_run=steps_run,
        finished=engine.finished,
        summary=summary,
        final_state=engine.get_state(),
    )
