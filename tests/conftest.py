"""Shared pytest fixtures: grids, deterministic random sources and config isolation."""

import pytest

from stepgrid.config import reset_config
from stepgrid.probability import GridConfiguration, make_rng

CONFIG_ENV_VARS = [
    "HOUSE_EDGE",
    "GRIDS",
    "DEFAULT_GRID_SIZE",
    "INITIAL_BALANCE",
    "DEFAULT_BET",
    "MIN_BET",
    "MAX_BET",
    "DEFAULT_ROUNDS",
    "DEFAULT_TARGET_STEP",
    "SIM_WORKERS",
    "RTP_TOLERANCE",
    "LOG_LEVEL",
]


class SequenceRng:
    """Random source that replays a fixed list of samples, cycling at the end."""

    def __init__(self, samples: list[float]):
        self.samples = list(samples)
        self.calls = 0

    def random(self) -> float:
        value = self.samples[self.calls % len(self.samples)]
        self.calls += 1
        return value


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Start every test from default settings, unaffected by the host environment.

    Runs from an empty directory so no stray .env file is picked up.
    """
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def grid3() -> GridConfiguration:
    """Classic 3x3 grid: 9 cells, 1 stop point."""
    return GridConfiguration(name="3", total_cells=9, stop_point_count=1)


@pytest.fixture
def grid4() -> GridConfiguration:
    """Advanced 4x4 grid: 16 cells, 2 stop points."""
    return GridConfiguration(name="4", total_cells=16, stop_point_count=2)


@pytest.fixture
def rng():
    """Seeded numpy Generator."""
    return make_rng(12345)


@pytest.fixture
def sequence_rng():
    """Factory for SequenceRng instances."""
    return SequenceRng
