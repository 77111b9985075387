"""Tests for the YAML-backed lab configuration."""
from pathlib import Path

import numpy as np
import pytest

from labsim.config import LabConfig, OptimizerConfig

CFG_DIR = Path(__file__).resolve().parents[1] / "cfgs"


def test_defaults():
    cfg = LabConfig()
    assert cfg.seed is None
    assert cfg.particles.count == 60
    assert cfg.optimizer.start == (4.0, 4.0)
    assert cfg.gridworld.size == 8
    assert cfg.regression.n_points == 20


def test_debug_yaml_overrides_only_listed_fields():
    cfg = LabConfig.from_yaml(CFG_DIR / "debug.yaml")

    assert cfg.seed == 123
    assert cfg.tag == "debug"
    assert cfg.particles.count == 12
    assert cfg.particles.bound == 10.0
    assert cfg.optimizer.objective == "himmelblau"
    assert cfg.optimizer.optimizer == "adam"
    assert cfg.gridworld.epsilon == 0.1
    assert cfg.gridworld.discount == 0.9
    assert cfg.regression.loss == "huber"


def test_base_yaml_matches_defaults():
    cfg = LabConfig.from_yaml(CFG_DIR / "base.yaml")
    assert cfg.optimizer == OptimizerConfig()
    assert isinstance(cfg.optimizer.start, tuple)


def test_saved_config_loads_back(tmp_path):
    cfg = LabConfig(seed=7, tag="sweep")
    cfg.optimizer.start = (-1.5, 2.0)
    cfg.gridworld.epsilon = 0.05
    path = tmp_path / "lab.yaml"
    cfg.to_yaml(path)

    loaded = LabConfig.from_yaml(path)
    assert loaded == cfg
    assert loaded._yaml_path == path


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert LabConfig.from_yaml(path) == LabConfig()


def test_unknown_field_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("gridworld:\n  gamma: 0.5\n", encoding="utf-8")
    with pytest.raises(TypeError):
        LabConfig.from_yaml(path)


def test_seeded_generators_repeat():
    cfg = LabConfig(seed=11)
    assert np.array_equal(cfg.make_rng().random(5), cfg.make_rng().random(5))


def test_set_global_seeds():
    cfg = LabConfig(seed=3)
    cfg.set_global_seeds()
    first = np.random.rand(3)
    cfg.set_global_seeds()
    assert np.array_equal(np.random.rand(3), first)
