"""Simulation engines (particles, function optimizer, grid world, regression) and their driver.

Each engine module registers itself on import so `get_engine` can build it
by key from the CLI or a batch run.
"""
from .engine import Simulation, SimulationResult, available_engines, get_engine, run_once
from . import particles
from . import function_optimizer
from . import gridworld
from . import regression

__all__ = [
    "Simulation",
    "SimulationResult",
    "available_engines",
    "get_engine",
    "run_once",
]
