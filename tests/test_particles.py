"""Tests for the particle field and the proximity graph."""
import numpy as np
import pytest

from labsim.config import ParticleConfig, make_rng
from labsim.simulator.particles import ParticleFieldSimulator, build_edges


def _single_particle(x, y, vx=0.0, vy=0.0, **overrides):
    cfg = ParticleConfig(count=1, **overrides)
    sim = ParticleFieldSimulator(cfg, rng=make_rng(0))
    sim.positions = np.array([[x, y, 0.0]])
    sim.velocities = np.array([[vx, vy, 0.0]])
    return sim


def test_coordinates_stay_inside_bounds():
    cfg = ParticleConfig(count=80, speed=4.0)  # fast enough to wrap constantly
    sim = ParticleFieldSimulator(cfg, rng=make_rng(1))
    pointer_rng = np.random.default_rng(2)
    for _ in range(300):
        snap = sim.step(pointer=pointer_rng.uniform(-1, 1, size=2))
        assert np.all(np.abs(snap.positions[:, :2]) <= cfg.bound)


def test_reset_draws_inside_bounding_volume():
    cfg = ParticleConfig(count=200)
    sim = ParticleFieldSimulator(cfg, rng=make_rng(3))
    for _ in range(10):
        sim.step()
    sim.reset()

    assert sim.tick == 0
    assert sim.positions.shape == (200, 3)
    assert np.all(np.abs(sim.positions[:, :2]) <= cfg.bound)
    assert np.all(np.abs(sim.positions[:, 2]) <= cfg.depth)
    assert np.all(np.abs(sim.velocities[:, :2]) <= cfg.speed / 2)
    assert np.all(sim.velocities[:, 2] == 0)


def test_euler_step_without_pointer():
    sim = _single_particle(1.0, -2.0, vx=0.01, vy=-0.005)
    snap = sim.step()
    assert np.allclose(snap.positions[0, :2], [1.01, -2.005])
    assert snap.tick == 1


def test_pointer_repulsion_pushes_radially_outward():
    sim = _single_particle(1.0, 0.0)
    snap = sim.step(pointer=(0.0, 0.0))
    # (R - d) / R * k with R=3, d=1, k=0.02
    expected_push = (3.0 - 1.0) / 3.0 * 0.02
    assert np.isclose(snap.positions[0, 0], 1.0 + expected_push)
    assert np.isclose(snap.positions[0, 1], 0.0)


def test_pointer_is_scaled_by_half_viewport():
    # Pointer (0.5, 0) maps to x = 0.5 * 20 / 2 = 5
    sim = _single_particle(6.0, 0.0)
    snap = sim.step(pointer=(0.5, 0.0))
    assert snap.positions[0, 0] > 6.0


def test_repulsion_is_transient():
    sim = _single_particle(1.0, 0.0)
    sim.step(pointer=(0.0, 0.0))
    pushed = sim.positions[0, 0]
    sim.step()  # pointer gone
    assert np.isclose(sim.positions[0, 0], pushed)
    assert np.all(sim.velocities == 0)


def test_zero_distance_skips_repulsion():
    sim = _single_particle(0.0, 0.0)
    snap = sim.step(pointer=(0.0, 0.0))
    assert np.all(np.isfinite(snap.positions))
    assert np.allclose(snap.positions[0, :2], [0.0, 0.0])


def test_outside_radius_is_not_repelled():
    sim = _single_particle(5.0, 0.0)
    snap = sim.step(pointer=(0.0, 0.0))
    assert np.isclose(snap.positions[0, 0], 5.0)


@pytest.mark.parametrize(
    "start, velocity, expected",
    [
        (9.999, 0.01, -10.0),
        (-9.999, -0.01, 10.0),
    ],
)
def test_wrap_is_toroidal(start, velocity, expected):
    sim = _single_particle(start, 0.0, vx=velocity)
    snap = sim.step()
    assert snap.positions[0, 0] == expected


def test_empty_field_step_is_noop():
    sim = ParticleFieldSimulator(ParticleConfig(count=0), rng=make_rng(0))
    snap = sim.step(pointer=(0.1, 0.1))
    assert snap.tick == 0
    assert snap.positions.shape == (0, 3)
    assert snap.edges == ()


def test_negative_count_is_treated_as_empty():
    sim = ParticleFieldSimulator(ParticleConfig(count=-5), rng=make_rng(0))
    assert sim.step().positions.shape == (0, 3)


def test_snapshot_is_read_only_and_detached():
    sim = ParticleFieldSimulator(ParticleConfig(count=10), rng=make_rng(4))
    snap = sim.get_state()
    with pytest.raises(ValueError):
        snap.positions[0, 0] = 123.0
    before = snap.positions.copy()
    sim.step()
    assert np.array_equal(snap.positions, before)


def test_particles_view_matches_arrays():
    sim = ParticleFieldSimulator(ParticleConfig(count=3), rng=make_rng(5))
    particles = sim.particles
    assert len(particles) == 3
    assert particles[2].x == sim.positions[2, 0]
    assert particles[2].vy == sim.velocities[2, 1]


# ----------------------------------------------------------------------
# Proximity graph
# ----------------------------------------------------------------------

def test_edges_cap_counts_only_lower_endpoint():
    positions = np.zeros((5, 3))  # all coincident, every pair is close
    edges = build_edges(positions, max_degree=2, max_distance=1.0)
    assert edges == [(0, 1), (0, 2), (1, 2), (1, 3), (2, 3), (2, 4), (3, 4)]
    # Particle 2 ends up with four links although it only started two
    assert sum(2 in e for e in edges) == 4


def test_edges_take_first_neighbours_not_nearest():
    positions = np.array([
        [0.0, 0.0, 0.0],
        [2.0, 0.0, 0.0],
        [0.5, 0.0, 0.0],
    ])
    edges = build_edges(positions, max_degree=1, max_distance=2.5)
    assert edges == [(0, 1), (1, 2)]


def test_edges_use_three_dimensional_distance():
    positions = np.array([[0.0, 0.0, 0.0], [0.0, 0.0, 3.0]])
    assert build_edges(positions, max_degree=3, max_distance=2.5) == []


def test_edges_respect_degree_and_distance_on_random_field():
    rng = np.random.default_rng(7)
    positions = rng.uniform(-3, 3, size=(60, 3))
    edges = build_edges(positions, max_degree=3, max_distance=2.5)

    started = np.zeros(60, dtype=int)
    for i, j in edges:
        assert i < j
        assert np.linalg.norm(positions[i] - positions[j]) < 2.5
        started[i] += 1
    assert started.max() <= 3


@pytest.mark.parametrize("positions", [np.zeros((0, 3)), np.zeros((1, 3))])
def test_edges_on_tiny_fields(positions):
    assert build_edges(positions, max_degree=3, max_distance=2.5) == []


def test_edges_with_non_positive_degree():
    assert build_edges(np.zeros((4, 3)), max_degree=0, max_distance=2.5) == []


def test_step_recomputes_edges():
    cfg = ParticleConfig(count=40, bound=3.0, depth=1.0)
    sim = ParticleFieldSimulator(cfg, rng=make_rng(8))
    snap = sim.step()
    assert list(snap.edges) == build_edges(snap.positions, cfg.max_degree, cfg.max_distance)
    assert len(snap.edges) > 0
