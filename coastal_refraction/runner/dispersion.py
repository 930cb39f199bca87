"""
Dispersion Relation Solver

Solves σ² = g·k·tanh(k·h) for the wavenumber given the still-water depth and
either the wave period or the wavelength.

Inputs are validated here, before any iteration starts. Newton
non-convergence is not fatal: the last iterate is returned with
converged=False and a warning is logged.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional

from ..constants import G, TWO_PI
from .wave_physics import solve_wavenumber_newton, angular_frequency_from_wavenumber

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispersionResult:
    """
    Mutually consistent wave properties at one depth.

    Attributes:
        k: Wavenumber (rad/m)
        L: Wavelength (m), L = 2π/k
        T: Wave period (s)
        C: Phase speed (m/s), C = L/T
        depth: Depth the relation was solved at (m)
        converged: False if the Newton solver hit its iteration cap
        iterations: Newton iterations used (0 when solved from wavelength)
    """
    k: float
    L: float
    T: float
    C: float
    depth: float
    converged: bool = True
    iterations: int = 0

    @property
    def sigma(self) -> float:
        """Angular frequency σ = 2π/T (rad/s)."""
        return TWO_PI / self.T

    def to_dict(self) -> Dict:
        return {
            'k': self.k,
            'L': self.L,
            'T': self.T,
            'C': self.C,
            'depth': self.depth,
            'converged': self.converged,
            'iterations': self.iterations,
        }

    def summary(self) -> str:
        status = "" if self.converged else " (NOT CONVERGED)"
        return (
            f"Dispersion at h={self.depth:.2f}m: k={self.k:.4f} rad/m, "
            f"L={self.L:.1f} m, T={self.T:.2f} s, C={self.C:.2f} m/s{status}"
        )


def _require_positive(name: str, value: float) -> None:
    if value is None or not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value}")


def solve_by_period(
    h: float,
    T: float,
    log: Optional[logging.Logger] = None,
) -> DispersionResult:
    """
    Solve the dispersion relation for a known period.

    Args:
        h: Water depth (m)
        T: Wave period (s)
        log: Logger that receives the non-convergence warning
             (defaults to this module's logger)

    Returns:
        DispersionResult

    Raises:
        ValueError: If h or T is not positive
    """
    _require_positive("depth", h)
    _require_positive("period", T)

    k, iterations, converged = solve_wavenumber_newton(float(h), float(T))

    if not converged:
        (log or logger).warning(
            f"Wavenumber solve did not converge after {iterations} iterations "
            f"(h={h}m, T={T}s), using last iterate k={k:.6f}"
        )

    L = TWO_PI / k
    return DispersionResult(
        k=float(k),
        L=float(L),
        T=float(T),
        C=float(L / T),
        depth=float(h),
        converged=bool(converged),
        iterations=int(iterations),
    )


def solve_by_wavelength(h: float, L: float) -> DispersionResult:
    """
    Solve the dispersion relation for a known wavelength.

    k is known directly, so no iteration is needed:
        k = 2π/L, σ = √(g·k·tanh(k·h)), T = 2π/σ

    Args:
        h: Water depth (m)
        L: Wavelength (m)

    Returns:
        DispersionResult

    Raises:
        ValueError: If h or L is not positive
    """
    _require_positive("depth", h)
    _require_positive("wavelength", L)

    k = TWO_PI / L
    sigma = angular_frequency_from_wavenumber(k, float(h))
    T = TWO_PI / sigma

    return DispersionResult(
        k=float(k),
        L=float(L),
        T=float(T),
        C=float(L / T),
        depth=float(h),
    )


def solve_reference_dispersion(
    config: 'RefractionConfig',
    log: Optional[logging.Logger] = None,
) -> DispersionResult:
    """
    Solve the dispersion relation at the configured reference depth.

    Uses the period when the config carries one, the wavelength otherwise.
    """
    if config.period_s is not None:
        return solve_by_period(config.reference_depth_m, config.period_s, log=log)
    if config.wavelength_m is not None:
        return solve_by_wavelength(config.reference_depth_m, config.wavelength_m)
    raise ValueError("Either period_s or wavelength_m must be provided")


def shallow_water_celerity(h: float) -> float:
    """Shallow water limit of the phase speed, C = √(g·h)."""
    return math.sqrt(G * h)
