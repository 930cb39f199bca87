import os
import sys

import numpy as np
import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from coastal_refraction.config import RefractionConfig
from coastal_refraction.terrain import TerrainModel
from coastal_refraction.runner.refraction_runner import RefractionRunner
from coastal_refraction.runner.wave_field import populate_wave_numbers


@pytest.fixture
def config():
    return RefractionConfig()


@pytest.fixture
def terrain(config):
    return TerrainModel(config)


@pytest.fixture
def coastline(terrain):
    return terrain.generate_coastline()


@pytest.fixture
def wave_grid(terrain, config):
    """Depth grid with k and c populated, direction field not yet solved."""
    grid = terrain.generate_depth_grid()
    return populate_wave_numbers(grid, config.period_s)


@pytest.fixture(scope="session")
def default_result():
    return RefractionRunner(RefractionConfig()).run()


@pytest.fixture(scope="session")
def oblique_result():
    return RefractionRunner(RefractionConfig(alpha0_deg=15.0)).run()


@pytest.fixture
def notch_coastline():
    """Straight coastline with one deep symmetric notch at x = 500."""
    from coastal_refraction.terrain import Coastline

    x = np.linspace(0.0, 1000.0, 301)
    y = 200.0 - 60.0 * np.exp(-0.5 * ((x - 500.0) / 40.0) ** 2)
    return Coastline(x=x, y=y)
