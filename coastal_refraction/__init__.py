"""
Coastal Refraction

Linear-theory wave refraction over a parametric coastline with a bay and a
cape: dispersion, depth grid, direction field, rays and wavefronts.
"""

from .config import RefractionConfig
from .grid import GridPoint, WaveStateGrid
from .terrain import Coastline, CoastlinePoint, DepthContour, TerrainModel
from .runner import (
    CoastalFeature,
    DirectionFieldMethod,
    DirectionFieldSolver,
    DispersionResult,
    RayTracer,
    RayTracerConfig,
    RefractionModelCache,
    RefractionResult,
    RefractionRunner,
    detect_coastal_features,
    solve_by_period,
    solve_by_wavelength,
)

__version__ = "0.1.0"

__all__ = [
    "RefractionConfig",
    "GridPoint",
    "WaveStateGrid",
    "Coastline",
    "CoastlinePoint",
    "DepthContour",
    "TerrainModel",
    "CoastalFeature",
    "DirectionFieldMethod",
    "DirectionFieldSolver",
    "DispersionResult",
    "RayTracer",
    "RayTracerConfig",
    "RefractionModelCache",
    "RefractionResult",
    "RefractionRunner",
    "detect_coastal_features",
    "solve_by_period",
    "solve_by_wavelength",
]
