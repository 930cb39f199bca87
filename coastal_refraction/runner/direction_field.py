"""
Wave Direction Field

Propagates the wave angle from the deep water edge of the grid toward the
coast. Two interchangeable algorithms are available:

- snell: per-column Snell's law, C·sin(α) conserved down each column
  (canonical)
- finite_difference: row-marching solution of the irrotationality condition
  on the wavenumber vector, ∂(k·sinα)/∂y = -∂(k·cosα)/∂x

Both expect k and c already populated on the grid (see wave_field).
"""

import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional, Union

import numpy as np
from numba import njit, prange

from ..constants import ANGLE_FALLBACK, MAX_SIN_RATIO
from ..grid import WaveStateGrid

logger = logging.getLogger(__name__)


class DirectionFieldMethod(str, Enum):
    SNELL = "snell"
    FINITE_DIFFERENCE = "finite_difference"


# =============================================================================
# Kernels
# =============================================================================

@njit(cache=True)
def stable_asin(ratio: float) -> float:
    """
    Wave angle from a sine ratio, limited to shoreward propagation.

    The ratio is clamped to ±0.999. A NaN result or a non-positive cosine
    falls back to sign(ratio)·(π/2 - 0.01).
    """
    sign = 1.0 if ratio >= 0 else -1.0
    clamped = min(MAX_SIN_RATIO, max(-MAX_SIN_RATIO, ratio))

    alpha = np.arcsin(clamped)
    if np.isnan(alpha):
        return sign * ANGLE_FALLBACK

    # Offshore-directed angle
    if np.cos(alpha) <= 0:
        return sign * ANGLE_FALLBACK

    return alpha


@njit(parallel=True, cache=True)
def snell_direction_field(
    depth: np.ndarray,
    k: np.ndarray,
    c: np.ndarray,
    alpha0: float,
    min_depth: float,
) -> np.ndarray:
    """
    Per-column Snell's law.

    For each column the first wet cell from the deep edge fixes the
    invariant C·sin(α₀); every wet cell below it gets
    α = asin(invariant / c). Columns are independent.

    Args:
        depth, k, c: Grids (n_rows, n_cols), last row is deep water
        alpha0: Deep water angle (radians)
        min_depth: Dry threshold (m)

    Returns:
        alpha grid (radians), 0 on dry cells
    """
    n_rows, n_cols = depth.shape
    alpha = np.zeros((n_rows, n_cols), dtype=np.float64)
    sin_alpha0 = np.sin(alpha0)

    for i in prange(n_cols):
        # Find the first wet cell scanning from deep water
        invariant = 0.0
        first_wet = -1
        for j in range(n_rows - 1, -1, -1):
            if depth[j, i] > min_depth and k[j, i] > 0:
                invariant = c[j, i] * sin_alpha0
                alpha[j, i] = alpha0
                first_wet = j
                break

        # A fully dry column or a normal incidence leaves zeros
        if first_wet > 0 and invariant != 0.0:
            for j in range(first_wet - 1, -1, -1):
                if depth[j, i] > min_depth and k[j, i] > 0:
                    alpha[j, i] = stable_asin(invariant / c[j, i])

    return alpha


@njit(cache=True)
def finite_difference_direction_field(
    depth: np.ndarray,
    k: np.ndarray,
    alpha0: float,
    dx: float,
    dy: float,
    min_depth: float,
) -> np.ndarray:
    """
    Row-marching solution of the wavenumber irrotationality condition.

    (k·sinα)_j = (k·sinα)_{j+1} + Δy · ∂(k·cosα)/∂x |_{j+1}

    with a centred difference in x (one-sided at the two x edges). The deep
    water row is set to α₀. Rows depend on the previous row, so the march
    is sequential.

    Args:
        depth, k: Grids (n_rows, n_cols), last row is deep water
        alpha0: Deep water angle (radians)
        dx, dy: Grid spacing (m)
        min_depth: Dry threshold (m)

    Returns:
        alpha grid (radians), 0 on dry cells
    """
    n_rows, n_cols = depth.shape
    alpha = np.zeros((n_rows, n_cols), dtype=np.float64)

    k_sin = np.zeros(n_cols, dtype=np.float64)
    k_cos = np.zeros(n_cols, dtype=np.float64)

    # Deep water boundary condition
    top = n_rows - 1
    for i in range(n_cols):
        if depth[top, i] > min_depth and k[top, i] > 0:
            alpha[top, i] = alpha0
            k_sin[i] = k[top, i] * np.sin(alpha0)
            k_cos[i] = k[top, i] * np.cos(alpha0)

    next_k_sin = np.zeros(n_cols, dtype=np.float64)
    next_k_cos = np.zeros(n_cols, dtype=np.float64)

    for j in range(n_rows - 2, -1, -1):
        for i in range(n_cols):
            if i == 0:
                d_kcos_dx = (k_cos[1] - k_cos[0]) / dx
            elif i == n_cols - 1:
                d_kcos_dx = (k_cos[n_cols - 1] - k_cos[n_cols - 2]) / dx
            else:
                d_kcos_dx = (k_cos[i + 1] - k_cos[i - 1]) / (2.0 * dx)

            current_k_sin = k_sin[i] + dy * d_kcos_dx

            if depth[j, i] <= min_depth or k[j, i] <= 0:
                alpha[j, i] = 0.0
                next_k_sin[i] = 0.0
                next_k_cos[i] = 0.0
                continue

            a = stable_asin(current_k_sin / k[j, i])
            alpha[j, i] = a
            next_k_sin[i] = k[j, i] * np.sin(a)
            next_k_cos[i] = k[j, i] * np.cos(a)

        for i in range(n_cols):
            k_sin[i] = next_k_sin[i]
            k_cos[i] = next_k_cos[i]

    return alpha


# =============================================================================
# Strategy table
# =============================================================================

def _solve_snell(grid: WaveStateGrid, alpha0: float) -> np.ndarray:
    return snell_direction_field(grid.depth, grid.k, grid.c, alpha0, grid.dry_threshold)


def _solve_finite_difference(grid: WaveStateGrid, alpha0: float) -> np.ndarray:
    return finite_difference_direction_field(
        grid.depth, grid.k, alpha0, grid.dx, grid.dy, grid.dry_threshold
    )


DIRECTION_FIELD_SOLVERS: Dict[DirectionFieldMethod, Callable[[WaveStateGrid, float], np.ndarray]] = {
    DirectionFieldMethod.SNELL: _solve_snell,
    DirectionFieldMethod.FINITE_DIFFERENCE: _solve_finite_difference,
}


class DirectionFieldSolver:
    """
    Solve the wave angle field with a selectable algorithm.

    Example usage:
        solver = DirectionFieldSolver("finite_difference")
        solver.solve(grid, alpha0=np.radians(15))
    """

    def __init__(self, method: Union[str, DirectionFieldMethod] = DirectionFieldMethod.SNELL):
        try:
            self.method = DirectionFieldMethod(method)
        except ValueError:
            available = ", ".join(m.value for m in DirectionFieldMethod)
            raise ValueError(f"Unknown direction field method '{method}'. Available: {available}")

    def solve(
        self,
        grid: WaveStateGrid,
        alpha0: float,
        log: Optional[logging.Logger] = None,
    ) -> WaveStateGrid:
        """
        Fill grid.alpha in place.

        Dry cells end with α = k = c = 0.

        Args:
            grid: Grid with k and c populated
            alpha0: Deep water angle (radians)
            log: Logger for progress messages

        Returns:
            The same grid
        """
        log = log or logger
        if grid.frozen:
            raise ValueError("Cannot solve the direction field on a frozen grid")
        if not np.any(grid.k):
            log.warning("Wavenumber field is empty; direction field will be all zero")

        t0 = time.perf_counter()
        alpha = DIRECTION_FIELD_SOLVERS[self.method](grid, float(alpha0))

        # Land cells carry no wave
        dry = ~grid.wet_mask | (grid.k <= 0)
        alpha[dry] = 0.0
        grid.alpha = alpha
        grid.k = np.where(dry, 0.0, grid.k)
        grid.c = np.where(dry, 0.0, grid.c)

        n_dry_columns = int(np.count_nonzero(~np.any(~dry, axis=0)))
        if n_dry_columns:
            log.warning(f"{n_dry_columns} grid columns have no wet cells")

        log.info(
            f"Direction field ({self.method.value}) solved in "
            f"{time.perf_counter() - t0:.3f}s, "
            f"angle range {np.degrees(alpha.min()):.1f}° to {np.degrees(alpha.max()):.1f}°"
        )
        return grid
