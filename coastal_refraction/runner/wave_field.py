"""
Wave field population on the depth grid.

Fills wavenumber and phase speed before the direction field is solved, and
group velocity, shoaling, refraction and local wave height after it.
"""

import logging
from typing import Optional

import numpy as np

from ..grid import WaveStateGrid
from .dispersion import DispersionResult
from .wave_physics import batch_wavenumbers, batch_wave_heights, group_velocity_ratio

logger = logging.getLogger(__name__)


def populate_wave_numbers(
    grid: WaveStateGrid,
    T: float,
    log: Optional[logging.Logger] = None,
) -> WaveStateGrid:
    """
    Solve the dispersion relation at every wet cell of the grid.

    Cells at or below grid.dry_threshold get k = c = 0 regardless of the
    geometric land test.

    Args:
        grid: Depth grid (modified in place)
        T: Wave period (s)
        log: Logger for the non-convergence warning

    Returns:
        The same grid
    """
    if grid.frozen:
        raise ValueError("Cannot populate a frozen wave state grid")
    if T <= 0:
        raise ValueError(f"period must be positive, got {T}")

    k, c, converged = batch_wavenumbers(
        np.ascontiguousarray(grid.depth, dtype=np.float64), float(T), grid.dry_threshold
    )

    n_failed = int(np.count_nonzero(~converged))
    if n_failed:
        (log or logger).warning(
            f"Wavenumber solve did not converge at {n_failed} cells, using last iterates"
        )

    grid.k = k
    grid.c = c
    return grid


def populate_wave_heights(
    grid: WaveStateGrid,
    dispersion: DispersionResult,
    wave_height: float,
    alpha0: float,
    log: Optional[logging.Logger] = None,
) -> WaveStateGrid:
    """
    Shoal and refract the reference wave height across the grid.

    The reference wave is the configured height at the dispersion
    reference depth; local heights follow H = H_ref · Ks · Kr.

    Args:
        grid: Grid with k, c and alpha already solved (modified in place)
        dispersion: Reference dispersion result
        wave_height: Wave height at the reference depth (m)
        alpha0: Deep water angle (radians)
        log: Logger for the breaking count
    """
    if grid.frozen:
        raise ValueError("Cannot populate a frozen wave state grid")

    n_ref = group_velocity_ratio(dispersion.k, dispersion.depth)
    Cg_ref = n_ref * dispersion.C

    cg, ks, kr, H, breaking = batch_wave_heights(
        grid.depth, grid.k, grid.c, grid.alpha,
        float(wave_height), float(Cg_ref), float(alpha0), grid.dry_threshold,
    )

    grid.cg = cg
    grid.ks = ks
    grid.kr = kr
    grid.wave_height = H
    grid.is_breaking = breaking

    n_breaking = int(np.count_nonzero(breaking))
    if n_breaking:
        (log or logger).info(f"{n_breaking:,} cells exceed the breaking criterion")
    return grid
