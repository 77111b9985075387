"""Visualisation helpers (Matplotlib) for end-of-run reports."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from .function_optimizer import OptimizerSnapshot
from .gridworld import ACTIONS, GridWorldSnapshot
from .objectives import get_objective, gradient_field
from .particles import ParticleSnapshot
from .regression import RegressionSnapshot

__all__ = [
    "plot_particles",
    "plot_trajectory",
    "plot_policy",
    "plot_regression",
    "plot_snapshot",
]


def _finish(fig, save_path: Path | None) -> None:
    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path.with_suffix(".png"), dpi=150, bbox_inches="tight")
    else:
        plt.show()
    plt.close(fig)


def plot_particles(snapshot: ParticleSnapshot, save_path: Path | None = None) -> None:
    """Scatter particle x/y positions with their proximity links."""
    pos = snapshot.positions

    fig, ax = plt.subplots(figsize=(6, 6))
    for i, j in snapshot.edges:
        ax.plot(pos[[i, j], 0], pos[[i, j], 1], color="tab:blue", alpha=0.2, lw=0.8)
    ax.scatter(pos[:, 0], pos[:, 1], s=8, color="tab:blue", alpha=0.7)

    ax.set_aspect("equal")
    ax.set_title(f"Particle field (tick {snapshot.tick}, {len(snapshot.edges)} links)")
    ax.grid(True, ls=":", lw=0.5)
    _finish(fig, save_path)


def plot_trajectory(
    snapshot: OptimizerSnapshot,
    domain: float = 5.0,
    resolution: int = 200,
    save_path: Path | None = None,
) -> None:
    """Contour plot of the objective with descent arrows and the recent trajectory."""
    objective = get_objective(snapshot.objective)
    ticks = np.linspace(-domain, domain, resolution)
    xx, yy = np.meshgrid(ticks, ticks)
    zz = objective.value_fn(xx, yy)

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.contour(xx, yy, np.log1p(zz), levels=20, cmap="Blues", linewidths=0.7)
    points, directions = gradient_field(objective)
    ax.quiver(*points.T, *directions.T, color="tab:gray", alpha=0.6, angles="xy", scale_units="xy", scale=2)

    if snapshot.trajectory:
        path = np.asarray(snapshot.trajectory)
        ax.plot(path[:, 0], path[:, 1], "-o", color="tab:orange", ms=3, lw=1.5, label="path")
    ax.plot(*snapshot.target, "o", color="tab:green", ms=10, alpha=0.6, label="target")
    ax.plot(snapshot.x, snapshot.y, "o", color="tab:red", ms=7, label="current")

    ax.set_xlim(-domain, domain)
    ax.set_ylim(-domain, domain)
    ax.set_title(f"{objective.name} / {snapshot.optimizer} (iter {snapshot.iteration}, loss {snapshot.loss:.4f})")
    ax.legend(loc="lower left")
    _finish(fig, save_path)


def plot_policy(snapshot: GridWorldSnapshot, save_path: Path | None = None) -> None:
    """Maze with the greedy action per open cell, coloured by its Q-value."""
    walls = snapshot.walls
    size = walls.shape[0]
    best_q = snapshot.q_values.max(axis=2) if size else np.zeros((0, 0))
    shown = np.where(walls, np.nan, best_q)

    fig, ax = plt.subplots(figsize=(6, 6))
    ax.imshow(shown, cmap="RdYlGn", vmin=-10, vmax=10)
    ax.imshow(np.where(walls, 1.0, np.nan), cmap="Greys", vmin=0, vmax=1)

    for y in range(size):
        for x in range(size):
            if walls[y, x] or (x, y) == snapshot.goal:
                continue
            _, dx, dy = ACTIONS[int(np.argmax(snapshot.q_values[y, x]))]
            ax.arrow(x - 0.2 * dx, y - 0.2 * dy, 0.3 * dx, 0.3 * dy, head_width=0.15, color="k")

    gx, gy = snapshot.goal
    ax.add_patch(plt.Rectangle((gx - 0.5, gy - 0.5), 1, 1, fill=False, ec="tab:green", lw=2))
    ax.plot(*snapshot.agent, "o", color="tab:blue", ms=12)
    ax.set_title(f"Episode {snapshot.episode}, total reward {snapshot.total_reward:.1f}")
    ax.set_xticks([])
    ax.set_yticks([])
    _finish(fig, save_path)


def plot_regression(snapshot: RegressionSnapshot, save_path: Path | None = None) -> None:
    """Data with the fitted line, next to the recent loss history."""
    fig, (ax_fit, ax_loss) = plt.subplots(1, 2, figsize=(10, 4))

    ax_fit.scatter(snapshot.inputs, snapshot.targets, color="tab:blue", s=20)
    line_x = np.array([0.0, 1.0])
    ax_fit.plot(line_x, snapshot.weight * line_x + snapshot.bias, color="tab:purple", lw=2)
    ax_fit.set_xlim(0, 1)
    ax_fit.set_ylim(0, 1)
    ax_fit.set_title(f"w={snapshot.weight:.3f}, b={snapshot.bias:.3f} (epoch {snapshot.epoch})")
    ax_fit.grid(True, ls=":", lw=0.5)

    _plot_history(ax_loss, snapshot.loss_history, snapshot.loss_name)
    _finish(fig, save_path)


def _plot_history(ax, history: Sequence[float], label: str) -> None:
    ax.plot(np.arange(len(history)), history, color="tab:orange")
    ax.set_xlabel("recent epochs")
    ax.set_ylabel(f"{label} loss")
    ax.grid(True, ls=":", lw=0.5)


def plot_snapshot(snapshot, save_path: Path | None = None) -> None:
    """Dispatch on the snapshot type."""
    if isinstance(snapshot, ParticleSnapshot):
        plot_particles(snapshot, save_path)
    elif isinstance(snapshot, OptimizerSnapshot):
        plot_trajectory(snapshot, save_path=save_path)
    elif isinstance(snapshot, GridWorldSnapshot):
        plot_policy(snapshot, save_path)
    elif isinstance(snapshot, RegressionSnapshot):
        plot_regression(snapshot, save_path)
    else:
        raise TypeError(f"No plot for {type(snapshot).__name__}")
