"""Tabular Q-learning agent in a small walled maze.

Grid coordinates are ``(x, y)`` with y growing downwards, so "up" is
``dy = -1``. Arrays are indexed ``[y, x]``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..config import GridWorldConfig, LabConfig
from .engine import Simulation, frozen_copy, register_engine

__all__ = [
    "ACTIONS",
    "ACTION_NAMES",
    "GridCell",
    "GridWorldSnapshot",
    "GreedyRollout",
    "GridWorldAgent",
    "build_walls",
]

logger = logging.getLogger(__name__)

Cell = Tuple[int, int]

# Order matters: greedy ties go to the first action in this tuple.
ACTIONS: Tuple[Tuple[str, int, int], ...] = (
    ("up", 0, -1),
    ("down", 0, 1),
    ("left", -1, 0),
    ("right", 1, 0),
)
ACTION_NAMES: Tuple[str, ...] = tuple(a[0] for a in ACTIONS)
ARROWS = {"up": "↑", "down": "↓", "left": "←", "right": "→"}

START: Cell = (1, 1)


@dataclass(frozen=True)
class GridCell:
    x: int
    y: int
    is_wall: bool
    is_goal: bool
    q_values: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class GridWorldSnapshot:
    agent: Cell
    episode: int
    steps: int
    total_reward: float
    q_values: np.ndarray  # (size, size, 4), read-only copy
    walls: np.ndarray  # (size, size), read-only copy
    goal: Cell
    last_action: Optional[str]
    last_reward: float
    show_q_values: bool


@dataclass(frozen=True)
class GreedyRollout:
    path: Tuple[Cell, ...]
    reached_goal: bool
    bumped: bool


def build_walls(size: int) -> np.ndarray:
    """
    Fixed maze layout: the outer border plus a vertical segment at ``x = 3``
    (``1 < y < 6``) and a horizontal one at ``y = 4`` (``3 < x < 7``).
    Start and goal cells are always kept open.
    """
    walls = np.zeros((size, size), dtype=bool)
    if size <= 0:
        return walls
    walls[0, :] = walls[-1, :] = True
    walls[:, 0] = walls[:, -1] = True
    for y in range(size):
        for x in range(size):
            if (x == 3 and 1 < y < 6) or (y == 4 and 3 < x < 7):
                walls[y, x] = True
    goal = (size - 2, size - 2)
    for x, y in (START, goal):
        if 0 < x < size - 1 and 0 < y < size - 1:
            walls[y, x] = False
    return walls


@register_engine
class GridWorldAgent(Simulation):
    """
    Epsilon-greedy Q-learning on a fixed maze.

    Each step picks an action, moves (or bumps and stays), receives
    ``step_reward`` or ``goal_reward``, and applies the TD update
    ``Q(s,a) <- (1-alpha) Q(s,a) + alpha (r + gamma max_a' Q(s',a'))``.
    Reaching the goal ends the episode and puts the agent back on the start.
    """

    key = "gridworld"

    def __init__(self, cfg: GridWorldConfig | None = None, rng: Optional[np.random.Generator] = None):
        super().__init__(rng)
        self.cfg = cfg if cfg is not None else GridWorldConfig()
        self.learning_rate = self.cfg.learning_rate
        self.epsilon = self.cfg.epsilon
        self.reset()

    @classmethod
    def from_config(cls, cfg: LabConfig, rng: Optional[np.random.Generator] = None) -> "GridWorldAgent":
        return cls(cfg.gridworld, rng=rng)

    # ------------------------------------------------------------------
    # Live tuning
    # ------------------------------------------------------------------
    def set_learning_rate(self, learning_rate: float) -> None:
        self.learning_rate = float(learning_rate)

    def set_epsilon(self, epsilon: float) -> None:
        self.epsilon = float(epsilon)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Rebuild the grid with zeroed Q-values and restart from the first episode."""
        size = max(int(self.cfg.size), 0)
        self.size = size
        self.walls = build_walls(size)
        self.goal: Cell = (size - 2, size - 2)
        self.q_values = np.zeros((size, size, len(ACTIONS)))

        self.agent: Cell = START
        self.episode = 0
        self.steps = 0
        self.total_reward = 0.0
        self.last_action: Optional[str] = None
        self.last_reward = 0.0
        logger.debug("Grid world reset (%dx%d)", size, size)

    @property
    def is_playable(self) -> bool:
        return self.size >= 3 and self._is_open(*START) and START != self.goal

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def _is_open(self, x: int, y: int) -> bool:
        return self._in_bounds(x, y) and not self.walls[y, x]

    def valid_actions(self, x: int, y: int) -> List[int]:
        """Indices of the actions that neither leave the grid nor hit a wall."""
        return [
            idx for idx, (_, dx, dy) in enumerate(ACTIONS)
            if self._is_open(x + dx, y + dy)
        ]

    def best_action(self, x: int, y: int) -> str:
        """Greedy action at (x, y); ties resolve in up, down, left, right order."""
        return ACTION_NAMES[int(np.argmax(self.q_values[y, x]))]

    def choose_action(self, x: int, y: int) -> Optional[int]:
        """Epsilon-greedy choice; ``None`` when exploring from a cell with no open move."""
        if self.rng.random() < self.epsilon:
            valid = self.valid_actions(x, y)
            if not valid:
                return None
            return valid[int(self.rng.integers(len(valid)))]
        return int(np.argmax(self.q_values[y, x]))

    def step(self) -> GridWorldSnapshot:
        if not self.is_playable:
            logger.warning("Grid of size %d has no playable start; step skipped", self.size)
            return self.get_state()

        x, y = self.agent
        action = self.choose_action(x, y)
        if action is None:
            logger.warning("No open move from %s; step skipped", self.agent)
            return self.get_state()

        _, dx, dy = ACTIONS[action]
        dest: Cell = (x + dx, y + dy)
        if not self._is_open(*dest):
            # Bump: stay put, but the chosen action is still updated
            dest = (x, y)

        reached_goal = dest == self.goal
        cfg = self.cfg
        reward = cfg.goal_reward if reached_goal else cfg.step_reward

        best_next = float(np.max(self.q_values[dest[1], dest[0]]))
        old = self.q_values[y, x, action]
        self.q_values[y, x, action] = (
            (1.0 - self.learning_rate) * old
            + self.learning_rate * (reward + cfg.discount * best_next)
        )

        self.total_reward += reward
        self.last_action = ACTION_NAMES[action]
        self.last_reward = reward

        if reached_goal:
            self.episode += 1
            logger.debug("Episode %d finished in %d steps", self.episode, self.steps + 1)
            self.agent = START
            self.steps = 0
        else:
            self.agent = dest
            self.steps += 1
        return self.get_state()

    def run_episodes(self, n_episodes: int, max_steps_per_episode: int = 1000) -> List[int]:
        """
        Train for ``n_episodes`` episodes.

        Returns the number of steps each episode took; an episode that hits
        ``max_steps_per_episode`` is abandoned (agent stays where it is) and
        recorded with that cap.
        """
        lengths: List[int] = []
        if not self.is_playable:
            logger.warning("Grid of size %d has no playable start; training skipped", self.size)
            return lengths
        for _ in range(n_episodes):
            start_episode = self.episode
            taken = 0
            while self.episode == start_episode and taken < max_steps_per_episode:
                self.step()
                taken += 1
            lengths.append(taken)
        return lengths

    # ------------------------------------------------------------------
    # Policy inspection
    # ------------------------------------------------------------------
    def greedy_policy(self) -> List[List[str]]:
        """Arrow of the greedy action per cell; empty for walls and the goal."""
        policy: List[List[str]] = []
        for y in range(self.size):
            row = []
            for x in range(self.size):
                if self.walls[y, x] or (x, y) == self.goal:
                    row.append("")
                else:
                    row.append(ARROWS[self.best_action(x, y)])
            policy.append(row)
        return policy

    def greedy_path(self, max_steps: Optional[int] = None) -> GreedyRollout:
        """
        Follow the greedy policy from the start without learning.

        Stops at the goal, on the first bump, when a cell repeats, or after
        ``max_steps`` moves (default: number of cells).
        """
        if not self.is_playable:
            return GreedyRollout((START,), reached_goal=False, bumped=False)
        limit = self.size * self.size if max_steps is None else max_steps
        path: List[Cell] = [START]
        seen = {START}
        x, y = START
        for _ in range(limit):
            _, dx, dy = ACTIONS[int(np.argmax(self.q_values[y, x]))]
            nxt = (x + dx, y + dy)
            if not self._is_open(*nxt):
                return GreedyRollout(tuple(path), reached_goal=False, bumped=True)
            path.append(nxt)
            if nxt == self.goal:
                return GreedyRollout(tuple(path), reached_goal=True, bumped=False)
            if nxt in seen:
                break
            seen.add(nxt)
            x, y = nxt
        return GreedyRollout(tuple(path), reached_goal=False, bumped=False)

    def cell(self, x: int, y: int) -> GridCell:
        return GridCell(
            x=x,
            y=y,
            is_wall=bool(self.walls[y, x]),
            is_goal=(x, y) == self.goal,
            q_values={name: float(q) for name, q in zip(ACTION_NAMES, self.q_values[y, x])},
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    def get_state(self) -> GridWorldSnapshot:
        return GridWorldSnapshot(
            agent=self.agent,
            episode=self.episode,
            steps=self.steps,
            total_reward=self.total_reward,
            q_values=frozen_copy(self.q_values),
            walls=frozen_copy(self.walls),
            goal=self.goal,
            last_action=self.last_action,
            last_reward=self.last_reward,
            show_q_values=self.cfg.show_q_values,
        )

    def summary(self):
        return {
            "episodes": float(self.episode),
            "steps": float(self.steps),
            "total_reward": self.total_reward,
        }
