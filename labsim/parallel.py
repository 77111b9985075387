"""Parallel execution helpers using a multiprocessing pool."""
from __future__ import annotations

import multiprocessing as mp
from typing import Iterable, List

from .config import LabConfig
from .simulator.engine import SimulationResult, run_once

__all__ = ["run_batch"]


def _worker(args):  # type: ignore
    cfg, engine_name, steps = args
    return run_once(cfg, engine_name, steps)


def run_batch(
    configs: Iterable[LabConfig],
    engine_name: str,
    steps: int,
    processes: int | None = None,
) -> List[SimulationResult]:
    """Run one session per config in parallel; results keep the input order."""

    with mp.Pool(processes=processes) as pool:
        results = pool.map(_worker, [(cfg, engine_name, steps) for cfg in configs])
    return results
