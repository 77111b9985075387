"""Tests for the Q-learning grid world."""
import numpy as np
import pytest

from labsim.config import GridWorldConfig, make_rng
from labsim.simulator.gridworld import ACTION_NAMES, GridWorldAgent, build_walls


def _agent(seed=0, **overrides):
    return GridWorldAgent(GridWorldConfig(**overrides), rng=make_rng(seed))


def test_default_maze_layout():
    walls = build_walls(8)

    assert walls[0, :].all() and walls[-1, :].all()
    assert walls[:, 0].all() and walls[:, -1].all()

    interior = {(x, y) for y in range(1, 7) for x in range(1, 7) if walls[y, x]}
    assert interior == {(3, 2), (3, 3), (3, 4), (3, 5), (4, 4), (5, 4), (6, 4)}
    assert not walls[1, 1]
    assert not walls[6, 6]


def test_small_grid_keeps_start_and_goal_open():
    walls = build_walls(5)
    assert not walls[1, 1]
    assert not walls[3, 3]


def test_reset_state():
    agent = _agent()
    snap = agent.get_state()

    assert snap.agent == (1, 1)
    assert snap.goal == (6, 6)
    assert snap.episode == 0
    assert snap.steps == 0
    assert snap.total_reward == 0.0
    assert snap.q_values.shape == (8, 8, 4)
    assert not snap.q_values.any()


def test_bump_keeps_position_and_updates_q():
    agent = _agent(epsilon=0.0)
    # All Q-values tie, so the greedy choice is "up" into the border
    snap = agent.step()

    assert snap.agent == (1, 1)
    assert snap.last_action == "up"
    assert snap.steps == 1
    assert snap.last_reward == -0.1
    assert np.isclose(snap.total_reward, -0.1)
    # 0.9 * 0 + 0.1 * (-0.1 + 0.9 * 0)
    assert np.isclose(snap.q_values[1, 1, 0], -0.01)


def test_move_updates_q_and_counts_steps():
    agent = _agent(epsilon=0.0)
    agent.q_values[1, 1, 1] = 1.0  # prefer "down"
    agent.q_values[2, 1, 3] = 2.0  # best value of the next cell
    snap = agent.step()

    assert snap.agent == (1, 2)
    assert snap.steps == 1
    assert np.isclose(snap.q_values[1, 1, 1], 0.9 * 1.0 + 0.1 * (-0.1 + 0.9 * 2.0))


def test_reaching_goal_ends_episode():
    agent = _agent(epsilon=0.0)
    agent.agent = (6, 5)
    agent.steps = 7
    agent.q_values[5, 6, 1] = 1.0  # "down" onto the goal
    snap = agent.step()

    assert snap.episode == 1
    assert snap.agent == (1, 1)
    assert snap.steps == 0
    assert snap.last_reward == 10.0
    assert np.isclose(snap.total_reward, 10.0)
    assert np.isclose(snap.q_values[5, 6, 1], 0.9 * 1.0 + 0.1 * 10.0)


@pytest.mark.parametrize(
    "q, expected",
    [
        ([0.0, 0.0, 0.0, 0.0], "up"),
        ([0.0, 1.0, 1.0, 0.0], "down"),
        ([-1.0, -1.0, 0.5, 0.5], "left"),
        ([-1.0, -2.0, -3.0, 0.0], "right"),
    ],
)
def test_best_action_tie_break(q, expected):
    agent = _agent()
    agent.q_values[2, 2] = q
    assert agent.best_action(2, 2) == expected


def test_exploration_never_picks_blocked_moves():
    agent = _agent(seed=3, epsilon=1.0)
    for _ in range(500):
        before = agent.agent
        episode = agent.episode
        snap = agent.step()
        assert snap.agent != before or snap.episode > episode


def test_agent_never_stands_on_a_wall():
    agent = _agent(seed=4, epsilon=0.5)
    for _ in range(3000):
        x, y = agent.step().agent
        assert 0 <= x < 8 and 0 <= y < 8
        assert not agent.walls[y, x]


def test_valid_actions_at_start():
    agent = _agent()
    assert [ACTION_NAMES[a] for a in agent.valid_actions(1, 1)] == ["down", "right"]


def test_learning_finds_a_greedy_path():
    agent = _agent(seed=0, learning_rate=0.5, epsilon=0.1)
    lengths = agent.run_episodes(300, max_steps_per_episode=2000)

    assert len(lengths) == 300
    assert np.mean(lengths[-20:]) < np.mean(lengths[:20])

    rollout = agent.greedy_path()
    assert rollout.reached_goal
    assert not rollout.bumped
    assert rollout.path[0] == (1, 1)
    assert rollout.path[-1] == (6, 6)
    assert len(rollout.path) - 1 >= 10  # Manhattan distance


def test_greedy_policy_grid():
    agent = _agent()
    policy = agent.greedy_policy()

    assert len(policy) == 8 and all(len(row) == 8 for row in policy)
    assert policy[0][0] == ""  # wall
    assert policy[6][6] == ""  # goal
    assert policy[1][1] == "↑"  # untrained tie


def test_greedy_path_stops_on_bump():
    rollout = _agent().greedy_path()
    assert rollout.bumped
    assert rollout.path == ((1, 1),)


def test_total_reward_accumulates_across_episodes_until_reset():
    agent = _agent(seed=1, learning_rate=0.5, epsilon=0.1)
    agent.run_episodes(5, max_steps_per_episode=5000)
    assert agent.episode > 0
    assert agent.total_reward != 0.0

    agent.reset()
    snap = agent.get_state()
    assert snap.episode == 0
    assert snap.total_reward == 0.0
    assert not snap.q_values.any()


def test_live_tuning_does_not_reset():
    agent = _agent(seed=2)
    for _ in range(10):
        agent.step()
    agent.set_epsilon(0.0)
    agent.set_learning_rate(0.9)
    assert agent.q_values.any()
    assert agent.epsilon == 0.0


@pytest.mark.parametrize("size", [0, 1, 2])
def test_unplayable_grid_is_a_noop(size):
    agent = _agent(size=size)
    snap = agent.step()
    assert snap.steps == 0
    assert snap.episode == 0
    assert agent.run_episodes(3) == []

    rollout = agent.greedy_path()
    assert rollout.path == ((1, 1),)
    assert not rollout.reached_goal
    assert not rollout.bumped


def test_cell_view():
    agent = _agent()
    agent.q_values[1, 2, 3] = 0.25
    cell = agent.cell(2, 1)

    assert not cell.is_wall
    assert not cell.is_goal
    assert cell.q_values["right"] == 0.25
    assert agent.cell(6, 6).is_goal
    assert agent.cell(3, 3).is_wall
