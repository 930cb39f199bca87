"""
Refraction Model Runner

Numerical stages of the coastal refraction model, applied in order to the
depth grid built by the terrain model.

Components:
- wave_physics: Numba-accelerated linear wave theory kernels
- dispersion: Dispersion relation by period or by wavelength
- wave_field: Wavenumber and wave height population on the grid
- direction_field: Snell and finite-difference direction field solvers
- coastal_features: Bay and cape detection from coastline curvature
- ray_tracer: Ray integration and wavefront construction
- refraction_runner: Model orchestrator and result cache
"""

from .dispersion import (
    DispersionResult,
    solve_by_period,
    solve_by_wavelength,
    solve_reference_dispersion,
)
from .wave_field import populate_wave_numbers, populate_wave_heights
from .direction_field import DirectionFieldMethod, DirectionFieldSolver
from .coastal_features import CoastalFeature, detect_coastal_features
from .ray_tracer import (
    RayTracer,
    RayTracerConfig,
    RayResult,
    RayTracingResult,
    Wavefront,
    compute_wavefronts,
)
from .refraction_runner import (
    PointInspection,
    RefractionModelCache,
    RefractionResult,
    RefractionRunner,
)

__all__ = [
    # Dispersion
    "DispersionResult",
    "solve_by_period",
    "solve_by_wavelength",
    "solve_reference_dispersion",
    # Wave field
    "populate_wave_numbers",
    "populate_wave_heights",
    "DirectionFieldMethod",
    "DirectionFieldSolver",
    # Features and rays
    "CoastalFeature",
    "detect_coastal_features",
    "RayTracer",
    "RayTracerConfig",
    "RayResult",
    "RayTracingResult",
    "Wavefront",
    "compute_wavefronts",
    # Orchestration
    "PointInspection",
    "RefractionModelCache",
    "RefractionResult",
    "RefractionRunner",
]
