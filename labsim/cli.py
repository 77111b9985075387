"""Command-line interface entry-point.

Usage examples
--------------
Run one session:
    python -m labsim run --engine optimizer --config cfgs/base.yaml --steps 200

Batch (sweep seeds 0..9):
    python -m labsim batch --engine gridworld --config cfgs/base.yaml --seeds 0 9 --steps 5000

List what can be selected:
    python -m labsim list
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List

from .algorithms import available_optimizers
from .algorithms.loss_functions import available_losses
from .config import LabConfig
from .logging_config import setup_logging
from .parallel import run_batch
from .simulator.engine import available_engines, run_once
from .simulator.objectives import available_objectives

SUBCOMMANDS = {"run", "batch", "list"}

# Summary entry reported by `batch` for each engine
HEADLINE = {
    "particles": "edges",
    "optimizer": "iteration",
    "gridworld": "total_reward",
    "regression": "loss",
}

# Engines each `run` override applies to
OVERRIDE_ENGINES = {
    "objective": ("optimizer",),
    "optimizer": ("optimizer",),
    "loss": ("regression",),
    "lr": ("optimizer", "gridworld", "regression"),
    "epsilon": ("gridworld",),
    "pointer": ("particles",),
}


def _parse_args(argv: List[str] | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="labsim", description="Interactive ML lab simulation engines")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log_file", type=str, default=None, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="cmd", required=True)

    # ------------------------------------------------------------------
    # run
    # ------------------------------------------------------------------
    p_run = subparsers.add_parser("run", help="Run a single session")
    p_run.add_argument("--engine", required=True, choices=available_engines(), help="Engine key")
    p_run.add_argument("--config", type=Path, default=None, help="YAML config file (defaults if omitted)")
    p_run.add_argument("--steps", type=int, default=500, help="Maximum number of ticks")
    p_run.add_argument("--seed", type=int, default=None, help="Override the config seed")
    p_run.add_argument("--objective", choices=available_objectives(), default=None, help="Objective (optimizer engine)")
    p_run.add_argument("--optimizer", choices=available_optimizers(), default=None, help="Update rule (optimizer engine)")
    p_run.add_argument("--loss", choices=available_losses(), default=None, help="Reported loss (regression engine)")
    p_run.add_argument("--lr", type=float, default=None, help="Learning rate override (optimizer, gridworld, regression)")
    p_run.add_argument("--epsilon", type=float, default=None, help="Exploration rate (gridworld engine)")
    p_run.add_argument(
        "--pointer",
        type=float,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help="Fixed pointer in [-1, 1] coordinates (particles engine)",
    )
    p_run.add_argument("--plot", type=Path, default=None, help="Save a report plot of the final state (.png)")

    # ------------------------------------------------------------------
    # batch
    # ------------------------------------------------------------------
    p_batch = subparsers.add_parser("batch", help="Run multiple seeds in parallel")
    p_batch.add_argument("--engine", required=True, choices=available_engines(), help="Engine key")
    p_batch.add_argument("--config", type=Path, default=None, help="YAML config file")
    p_batch.add_argument(
        "--seeds",
        nargs=2,
        type=int,
        metavar=("START", "END"),
        help="Inclusive range of seeds to iterate (START END)",
        required=True,
    )
    p_batch.add_argument("--steps", type=int, default=500, help="Maximum number of ticks per session")
    p_batch.add_argument("--processes", type=int, default=None, help="Number of worker processes")

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------
    subparsers.add_parser("list", help="List engines, objectives, optimizers and losses")
    return parser


def _load_config(path: Path | None) -> LabConfig:
    return LabConfig.from_yaml(path) if path is not None else LabConfig()


def _check_overrides(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    for option, engines in OVERRIDE_ENGINES.items():
        if getattr(args, option) is not None and args.engine not in engines:
            parser.error(f"--{option} does not apply to --engine {args.engine} (only: {', '.join(engines)})")


def _apply_overrides(cfg: LabConfig, args: argparse.Namespace) -> None:
    if args.seed is not None:
        cfg.seed = args.seed
    if args.objective is not None:
        cfg.optimizer.objective = args.objective
    if args.optimizer is not None:
        cfg.optimizer.optimizer = args.optimizer
    if args.loss is not None:
        cfg.regression.loss = args.loss
    if args.epsilon is not None:
        cfg.gridworld.epsilon = args.epsilon
    if args.lr is not None:
        getattr(cfg, args.engine).learning_rate = args.lr


def _format_summary(summary) -> str:
    return ", ".join(f"{k}={v:.4g}" for k, v in summary.items())


def main(argv: List[str] | None = None) -> None:  # noqa: D401
    """Main entry point for the command-line interface."""
    parser = _parse_args(argv)
    args = parser.parse_args(argv)

    setup_logging(log_file=args.log_file, verbose=args.verbose)

    if args.cmd == "run":
        _check_overrides(parser, args)
        cfg = _load_config(args.config)
        _apply_overrides(cfg, args)
        step_kwargs = {}
        if args.pointer is not None:
            step_kwargs["pointer"] = tuple(args.pointer)

        result = run_once(cfg, args.engine, args.steps, **step_kwargs)
        status = " (finished)" if result.finished else ""
        print(f"[INFO] {args.engine}: {result.steps_run} steps{status}; {_format_summary(result.summary)}")

        if args.plot is not None:
            from .simulator.visualize import plot_snapshot

            plot_snapshot(result.final_state, save_path=args.plot)
            print(f"[INFO] Plot saved to {args.plot.with_suffix('.png')}")

    elif args.cmd == "batch":
        start_seed, end_seed = args.seeds
        if end_seed < start_seed:
            parser.error(f"--seeds END ({end_seed}) must not be smaller than START ({start_seed})")
        cfgs = []
        for seed in range(start_seed, end_seed + 1):
            c = _load_config(args.config)
            c.seed = seed
            cfgs.append(c)

        results = run_batch(cfgs, args.engine, args.steps, processes=args.processes)
        key = HEADLINE[args.engine]
        mean_value = sum(r.summary[key] for r in results) / len(results)
        print(
            f"Average {key} over seeds {start_seed}..{end_seed}: {mean_value:.4g} (engine={args.engine})"
        )

    elif args.cmd == "list":
        print("engines:    " + ", ".join(available_engines()))
        print("objectives: " + ", ".join(available_objectives()))
        print("optimizers: " + ", ".join(available_optimizers()))
        print("losses:     " + ", ".join(available_losses()))

    else:
        raise ValueError(f"Unknown command: {args.cmd}")


if __name__ == "__main__":
    main()
