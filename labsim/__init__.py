"""Interactive numerical simulation engines (particle field, optimizer, Q-learning, regression)."""
from __future__ import annotations

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version(__name__)
except _metadata.PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = ["config", "simulator", "algorithms"]

# Import to register engines and update rules
from . import algorithms
from . import simulator
