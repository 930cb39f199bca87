"""
Wave Physics for the Refraction Model

Numba-accelerated functions for linear wave theory.
All functions use SI units (meters, seconds, radians where applicable).

References:
- Linear dispersion relation: σ² = g·k·tanh(k·h)
- Snell's Law for wave refraction
- McCowan (1894): Breaking index
"""

import numpy as np
from numba import njit, prange
from typing import Tuple

from ..constants import (
    G,
    TWO_PI,
    NEWTON_MAX_ITERATIONS,
    NEWTON_TOLERANCE,
    MCCOWAN_BREAKER_INDEX,
)


# =============================================================================
# Dispersion Relation
# =============================================================================

@njit(cache=True)
def deep_water_wavenumber(T: float) -> float:
    """Deep water wavenumber k₀ = σ²/g."""
    sigma = TWO_PI / T
    return sigma * sigma / G


@njit(cache=True)
def solve_wavenumber_newton(
    h: float,
    T: float,
    tolerance: float = NEWTON_TOLERANCE,
    max_iterations: int = NEWTON_MAX_ITERATIONS,
) -> Tuple[float, int, bool]:
    """
    Solve the dispersion relation for wavenumber by Newton iteration.

    f(k)  = g·k·tanh(k·h) - σ²
    f'(k) = g·tanh(k·h) + g·k·h·sech²(k·h)

    Starts from the deep water guess k₀ = σ²/g.

    Args:
        h: Water depth (m), must be positive
        T: Wave period (s), must be positive
        tolerance: Stop when |Δk| falls below this (rad/m)
        max_iterations: Iteration cap

    Returns:
        Tuple of (k, iterations, converged). When the cap is hit the last
        iterate is returned with converged=False.
    """
    sigma = TWO_PI / T
    sigma2 = sigma * sigma

    k = deep_water_wavenumber(T)

    for i in range(max_iterations):
        kh = k * h
        tanh_kh = np.tanh(kh)
        cosh_kh = np.cosh(kh)
        sech2_kh = 1.0 / (cosh_kh * cosh_kh)

        f = G * k * tanh_kh - sigma2
        df = G * tanh_kh + G * k * h * sech2_kh

        k_new = k - f / df

        if abs(k_new - k) < tolerance:
            return k_new, i + 1, True

        k = k_new

    return k, max_iterations, False


@njit(cache=True)
def angular_frequency_from_wavenumber(k: float, h: float) -> float:
    """
    Angular frequency from the dispersion relation.

    σ = √(g·k·tanh(k·h))

    Args:
        k: Wavenumber (rad/m)
        h: Water depth (m)

    Returns:
        Angular frequency σ (rad/s)
    """
    return np.sqrt(G * k * np.tanh(k * h))


# =============================================================================
# Group Velocity, Shoaling and Refraction
# =============================================================================

@njit(cache=True)
def group_velocity_ratio(k: float, h: float) -> float:
    """
    Ratio n = Cg/C of group to phase speed at one cell.

    n = ½·(1 + 2kh / sinh(2kh)), between ½ (kh large) and 1 (kh small).
    Outside 0.01 < kh < 10 the limit value is returned.
    """
    kh = k * h
    if kh >= 10.0:
        return 0.5
    if kh <= 0.01:
        return 1.0
    return 0.5 * (1.0 + 2.0 * kh / np.sinh(2.0 * kh))


@njit(cache=True)
def shoaling_coefficient(Cg_ref: float, Cg: float) -> float:
    """
    Energy-flux shoaling gain relative to the reference depth.

    Ks = √(Cg_ref / Cg), where Cg_ref is the group velocity at the depth the
    input wave height is given at. Ks = 1 at that depth and grows as the
    water shallows and Cg drops. A cell with no group velocity gets Ks = 1.
    """
    if Cg <= 0.0:
        return 1.0
    return np.sqrt(Cg_ref / Cg)


@njit(cache=True)
def refraction_coefficient(alpha0: float, alpha: float) -> float:
    """
    Ray-spacing gain from the change in wave angle.

    Kr = √(cos α₀ / cos α) with both angles measured from the shore normal;
    α₀ is the incident angle on the deep row. Angles at or beyond 90° give
    Kr = 1.
    """
    cos_alpha = np.cos(alpha)
    if cos_alpha <= 0.0:
        return 1.0
    return np.sqrt(np.cos(alpha0) / cos_alpha)


@njit(cache=True)
def check_breaking(H: float, h: float, gamma_b: float = MCCOWAN_BREAKER_INDEX) -> bool:
    """
    Depth-limited breaking test H ≥ γ·h on a grid cell.

    Cells at 5 cm depth or less are the waterline, not the surf zone, and
    are never flagged.
    """
    if h <= 0.05:
        return False
    return H >= gamma_b * h


# =============================================================================
# Grid Operations
# =============================================================================

@njit(parallel=True, cache=True)
def batch_wavenumbers(
    depth: np.ndarray,
    T: float,
    min_depth: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Solve the dispersion relation at every wet cell of a depth grid.

    Args:
        depth: Water depth grid (n_rows, n_cols) (m)
        T: Wave period (s)
        min_depth: Cells at or below this depth are dry (m)

    Returns:
        Tuple of (k, c, converged) grids. Dry cells get k = c = 0 and
        converged = True.
    """
    n_rows, n_cols = depth.shape
    sigma = TWO_PI / T

    k = np.zeros((n_rows, n_cols), dtype=np.float64)
    c = np.zeros((n_rows, n_cols), dtype=np.float64)
    converged = np.ones((n_rows, n_cols), dtype=np.bool_)

    for j in prange(n_rows):
        for i in range(n_cols):
            h = depth[j, i]
            if h > min_depth:
                k_ij, _, ok = solve_wavenumber_newton(h, T, NEWTON_TOLERANCE, NEWTON_MAX_ITERATIONS)
                k[j, i] = k_ij
                c[j, i] = sigma / k_ij
                converged[j, i] = ok

    return k, c, converged


@njit(cache=True)
def batch_wave_heights(
    depth: np.ndarray,
    k: np.ndarray,
    c: np.ndarray,
    alpha: np.ndarray,
    H_ref: float,
    Cg_ref: float,
    alpha0: float,
    min_depth: float,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Shoal and refract a reference wave height onto every wet cell.

    H = H_ref · Ks · Kr

    Args:
        depth, k, c, alpha: Wave state grids (n_rows, n_cols)
        H_ref: Wave height at the reference depth (m)
        Cg_ref: Group velocity at the reference depth (m/s)
        alpha0: Deep water wave angle (radians)
        min_depth: Dry threshold (m)

    Returns:
        Tuple of (cg, ks, kr, wave_height, is_breaking) grids
    """
    n_rows, n_cols = depth.shape

    cg = np.zeros((n_rows, n_cols), dtype=np.float64)
    ks = np.zeros((n_rows, n_cols), dtype=np.float64)
    kr = np.zeros((n_rows, n_cols), dtype=np.float64)
    H = np.zeros((n_rows, n_cols), dtype=np.float64)
    breaking = np.zeros((n_rows, n_cols), dtype=np.bool_)

    for j in range(n_rows):
        for i in range(n_cols):
            h = depth[j, i]
            if h <= min_depth or k[j, i] <= 0:
                continue

            n = group_velocity_ratio(k[j, i], h)
            cg_ij = n * c[j, i]
            ks_ij = shoaling_coefficient(Cg_ref, cg_ij)
            kr_ij = refraction_coefficient(alpha0, alpha[j, i])
            H_ij = H_ref * ks_ij * kr_ij

            cg[j, i] = cg_ij
            ks[j, i] = ks_ij
            kr[j, i] = kr_ij
            H[j, i] = H_ij
            breaking[j, i] = check_breaking(H_ij, h, MCCOWAN_BREAKER_INDEX)

    return cg, ks, kr, H, breaking
