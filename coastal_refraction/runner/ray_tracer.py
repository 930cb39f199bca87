"""
Ray Tracer for Coastal Refraction

Traces discrete wave rays from deep water toward the coast through the solved
direction field, bending them laterally near the shore around detected bays
and capes, and builds wavefront polylines across the finished rays.

Rays read the wave state grid only; the grid must be frozen before a tracer
is built on it.

Coordinate System:
- x alongshore (m), y cross-shore (m) with deep water at y = height
- A ray advances x += sin(α)·step, y -= cos(α)·step
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from numba import njit

from ..grid import WaveStateGrid
from ..terrain import Coastline
from .coastal_features import CoastalFeature

logger = logging.getLogger(__name__)

# Termination codes returned by the kernel
REACHED_SHORE = 0
LEFT_DOMAIN = 1
MAX_STEPS = 2
DRY_START = 3

TERMINATION_REASONS = {
    REACHED_SHORE: "reached_shore",
    LEFT_DOMAIN: "left_domain",
    MAX_STEPS: "max_steps",
    DRY_START: "dry_start",
}

ARC_LENGTH_EPSILON = 1e-6


@dataclass
class RayTracerConfig:
    """Tunables for ray integration and wavefront construction."""

    # Integration
    step_fraction: float = 0.85       # Step size as a fraction of grid dy
    max_steps_factor: int = 3         # Step cap = factor x grid rows

    # Near-shore feature deflection
    influence_fraction: float = 0.35  # Deflection zone depth, fraction of domain height
    near_shore_power: float = 3.0     # Weight = (1 - d/d_max)^power
    lateral_tuning: float = 0.65      # Deflection scale, fraction of step
    max_shift_fraction: float = 0.75  # Per-step |Δx| cap, fraction of step

    # Wavefronts
    wavefront_curvature: float = 0.22  # Coastline-following strength at the coast


# =============================================================================
# Kernels
# =============================================================================

@njit(cache=True)
def coastline_height_uniform(x: float, x0: float, step: float, ys: np.ndarray) -> float:
    """
    Linear interpolation on an evenly sampled coastline.

    Positions beyond either end take the end value.
    """
    n = len(ys)
    if n == 1 or step <= 0 or x <= x0:
        return ys[0]

    pos = (x - x0) / step
    i = int(np.floor(pos))
    if i >= n - 1:
        return ys[n - 1]

    t = pos - i
    return ys[i] + t * (ys[i + 1] - ys[i])


@njit(cache=True)
def lateral_feature_adjustment(
    x: float,
    feat_center: np.ndarray,
    feat_sign: np.ndarray,
    feat_strength: np.ndarray,
    feat_bandwidth: np.ndarray,
) -> float:
    """
    Signed lateral adjustment from all coastal features at alongshore x.

    Each feature contributes a Gaussian-weighted offset. Bays (sign +1) pull
    the ray toward their center, capes (sign -1) push it away.
    """
    adjustment = 0.0
    for f in range(len(feat_center)):
        dx_center = x - feat_center[f]
        bandwidth = feat_bandwidth[f]
        variance = max(4.0, bandwidth * bandwidth)
        influence = np.exp(-(dx_center * dx_center) / (2.0 * variance))
        if influence < 1e-5:
            continue
        normalized_offset = dx_center / max(bandwidth, 10.0)
        adjustment -= feat_sign[f] * normalized_offset * feat_strength[f] * influence
    return adjustment


@njit(cache=True)
def trace_single_ray(
    start_x: float,
    start_y: float,
    # Wave state grid
    depth: np.ndarray,
    alpha: np.ndarray,
    grid_dx: float,
    grid_dy: float,
    width: float,
    height: float,
    # Coastline (evenly sampled)
    coast_x0: float,
    coast_step: float,
    coast_y: np.ndarray,
    # Coastal features
    feat_center: np.ndarray,
    feat_sign: np.ndarray,
    feat_strength: np.ndarray,
    feat_bandwidth: np.ndarray,
    # Deep water sample
    alpha0: float,
    deep_depth: float,
    # Configuration
    step_size: float,
    max_steps: int,
    min_depth: float,
    influence_zone: float,
    near_shore_power: float,
    lateral_tuning: float,
    max_shift: float,
):
    """
    Trace a single wave ray from deep water toward the coast.

    The direction comes from the nearest grid cell. Above the grid
    (y > height, x in range) a deep water sample with α₀ is used instead.

    Termination:
    - sampled depth <= min_depth: final point snapped onto the coastline
    - x or y leaves the domain: final point clamped onto the boundary
    - max_steps reached

    Returns:
        Tuple of (path_x, path_y, termination_code). A start on land or
        outside the domain returns empty paths with DRY_START.
    """
    n_rows, n_cols = depth.shape
    path_x = np.empty(max_steps + 1, dtype=np.float64)
    path_y = np.empty(max_steps + 1, dtype=np.float64)
    n = 0

    x = start_x
    y = start_y

    # Start must be wet or in the synthetic deep water band
    if x < 0.0 or x > width or y < 0.0:
        return path_x[:0].copy(), path_y[:0].copy(), DRY_START
    if y <= height:
        col = min(n_cols - 1, max(0, int(round(x / grid_dx))))
        row = min(n_rows - 1, max(0, int(round(y / grid_dy))))
        if depth[row, col] <= min_depth:
            return path_x[:0].copy(), path_y[:0].copy(), DRY_START

    termination_code = MAX_STEPS

    for step in range(max_steps):
        if y > height:
            h = deep_depth
            a = alpha0
        else:
            col = min(n_cols - 1, max(0, int(round(x / grid_dx))))
            row = min(n_rows - 1, max(0, int(round(y / grid_dy))))
            h = depth[row, col]
            a = alpha[row, col]

        if h <= min_depth:
            clamp_x = min(width, max(0.0, x))
            path_x[n] = clamp_x
            path_y[n] = coastline_height_uniform(clamp_x, coast_x0, coast_step, coast_y)
            n += 1
            termination_code = REACHED_SHORE
            break

        path_x[n] = x
        path_y[n] = y
        n += 1

        step_x = np.sin(a) * step_size
        step_y = np.cos(a) * step_size

        # Lateral deflection near the shore
        coast = coastline_height_uniform(x, coast_x0, coast_step, coast_y)
        distance_to_coast = max(0.0, y - coast)
        if 0.01 < distance_to_coast < influence_zone and len(feat_center) > 0:
            weight = (1.0 - distance_to_coast / influence_zone) ** near_shore_power
            lateral = lateral_feature_adjustment(
                x, feat_center, feat_sign, feat_strength, feat_bandwidth
            )
            if abs(lateral) > 1e-6:
                step_x += lateral * weight * lateral_tuning * step_size

        step_x = min(max_shift, max(-max_shift, step_x))

        x += step_x
        y -= step_y

        if x < 0.0 or x > width or y < 0.0:
            path_x[n] = min(width, max(0.0, x))
            path_y[n] = max(0.0, y)
            n += 1
            termination_code = LEFT_DOMAIN
            break

    return path_x[:n].copy(), path_y[:n].copy(), termination_code


# =============================================================================
# Results
# =============================================================================

@dataclass
class RayResult:
    """
    Result of tracing a single wave ray.

    Attributes:
        start_x, start_y: Launch position (m)
        path: (N, 2) array of (x, y) from deep water to the end point
        termination_reason: Why ray tracing stopped
    """
    start_x: float
    start_y: float
    path: np.ndarray
    termination_reason: str

    @property
    def n_points(self) -> int:
        return len(self.path)

    @property
    def reached_shore(self) -> bool:
        return self.termination_reason == "reached_shore"

    @property
    def length(self) -> float:
        """Arc length of the path (m)."""
        if len(self.path) < 2:
            return 0.0
        return float(np.sum(np.hypot(*np.diff(self.path, axis=0).T)))


@dataclass
class Wavefront:
    """A crest line at fixed distance from the coast, one point per ray."""
    distance_to_coast: float
    points: np.ndarray  # (M, 2) array of (x, y), ordered like the rays


@dataclass
class RayTracingResult:
    """Rays and wavefronts from one tracing pass."""
    rays: List[RayResult] = field(default_factory=list)
    wavefronts: List[Wavefront] = field(default_factory=list)

    @property
    def paths(self) -> List[np.ndarray]:
        return [ray.path for ray in self.rays]

    @property
    def n_rays(self) -> int:
        return len(self.rays)

    def termination_counts(self) -> Dict[str, int]:
        counts = {reason: 0 for reason in TERMINATION_REASONS.values()}
        for ray in self.rays:
            counts[ray.termination_reason] = counts.get(ray.termination_reason, 0) + 1
        return counts

    def summary(self) -> str:
        lines = [f"Ray tracing: {self.n_rays} rays, {len(self.wavefronts)} wavefronts"]
        for reason, count in self.termination_counts().items():
            if count:
                lines.append(f"  {reason}: {count}")
        if self.rays:
            lengths = [ray.length for ray in self.rays if ray.n_points > 1]
            if lengths:
                lines.append(
                    f"  Path length: {min(lengths):.1f} - {max(lengths):.1f} m"
                )
        return '\n'.join(lines)


# =============================================================================
# Wavefronts
# =============================================================================

def distance_to_coast_along(path: np.ndarray) -> np.ndarray:
    """Cumulative arc length measured backward from the last point."""
    if len(path) == 0:
        return np.zeros(0)
    segments = np.hypot(*np.diff(path, axis=0).T)
    return np.concatenate([np.cumsum(segments[::-1])[::-1], [0.0]])


def _point_at_distance(path: np.ndarray, distances: np.ndarray, target: float) -> Optional[np.ndarray]:
    for i in range(len(path) - 1):
        d_curr = distances[i]
        d_next = distances[i + 1]
        if d_curr >= target >= d_next:
            denom = d_curr - d_next
            ratio = (d_curr - target) / denom if denom > ARC_LENGTH_EPSILON else 0.0
            return path[i] + (path[i + 1] - path[i]) * ratio
    return None


def compute_wavefronts(
    ray_paths: Sequence[np.ndarray],
    count: int,
    coastline: Coastline,
    curvature: float = 0.22,
) -> List[Wavefront]:
    """
    Build wavefront polylines at evenly spaced distances from the coast.

    Target distances are w/(count+1) x the longest ray, w = 1..count. Each
    ray at least that long contributes its interpolated position; the
    wavefront y is the mean y plus the point's coastline deviation scaled
    by curvature x (1 - target / max). Wavefronts with fewer than 3 points
    are skipped.

    Args:
        ray_paths: (N, 2) ray paths ending at the coast
        count: Number of wavefronts requested
        coastline: Coastline used for the shape term
        curvature: Coastline-following strength at the coast

    Returns:
        Wavefronts ordered from the coast outward
    """
    paths = [np.asarray(p, dtype=np.float64) for p in ray_paths if len(p) > 2]
    if count <= 0 or len(paths) < 2:
        return []

    distances = [distance_to_coast_along(p) for p in paths]
    max_distance = max(d[0] for d in distances)
    if max_distance <= ARC_LENGTH_EPSILON:
        return []

    wavefronts = []
    for w in range(1, count + 1):
        target = w / (count + 1) * max_distance

        raw = []
        for path, dist in zip(paths, distances):
            if dist[0] < target:
                continue
            point = _point_at_distance(path, dist, target)
            if point is not None:
                raw.append(point)

        if len(raw) <= 2:
            logger.debug(f"Wavefront at {target:.1f}m has {len(raw)} points, skipped")
            continue

        raw = np.array(raw)
        coast_y = coastline.height_at(raw[:, 0])
        strength = curvature * (1.0 - target / (max_distance + ARC_LENGTH_EPSILON))
        y = raw[:, 1].mean() + (coast_y - coast_y.mean()) * strength

        wavefronts.append(Wavefront(
            distance_to_coast=float(target),
            points=np.column_stack([raw[:, 0], y]),
        ))

    return wavefronts


# =============================================================================
# High-Level Ray Tracer Class
# =============================================================================

class RayTracer:
    """
    High-level interface for wave ray tracing over a solved grid.

    Example usage:
        tracer = RayTracer(grid, coastline, features, alpha0, deep_depth)
        result = tracer.trace_from_deep_water(ray_count=18)
    """

    TERMINATION_REASONS = TERMINATION_REASONS

    def __init__(
        self,
        grid: WaveStateGrid,
        coastline: Coastline,
        features: Sequence[CoastalFeature],
        alpha0: float,
        deep_depth: float,
        config: Optional[RayTracerConfig] = None,
    ):
        """
        Args:
            grid: Frozen wave state grid with the direction field solved
            coastline: Evenly sampled coastline
            features: Detected coastal features
            alpha0: Deep water angle (radians)
            deep_depth: Depth assigned to synthetic samples above the grid (m)
            config: Tracer tunables
        """
        if not grid.frozen:
            raise ValueError("Ray tracing requires a frozen wave state grid")
        if len(coastline) == 0:
            raise ValueError("Ray tracing requires a non-empty coastline")

        self.grid = grid
        self.coastline = coastline
        self.features = list(features)
        self.alpha0 = float(alpha0)
        self.deep_depth = float(deep_depth)
        self.config = config or RayTracerConfig()

        cfg = self.config
        self.step_size = cfg.step_fraction * grid.dy
        self.max_steps = int(cfg.max_steps_factor * grid.n_rows)
        self.influence_zone = cfg.influence_fraction * grid.height
        self.max_shift = cfg.max_shift_fraction * self.step_size

        # Numba-compatible arrays
        self.coast_y = np.ascontiguousarray(coastline.y, dtype=np.float64)
        self.feat_center = np.array([f.center_x for f in self.features], dtype=np.float64)
        self.feat_sign = np.array([f.sign for f in self.features], dtype=np.float64)
        self.feat_strength = np.array([f.strength for f in self.features], dtype=np.float64)
        self.feat_bandwidth = np.array([f.bandwidth for f in self.features], dtype=np.float64)

        logger.debug(
            f"RayTracer initialized: step={self.step_size:.2f}m, "
            f"max_steps={self.max_steps}, {len(self.features)} features"
        )

    def trace_ray(self, start_x: float, start_y: float) -> RayResult:
        """
        Trace one ray from (start_x, start_y).

        Returns:
            RayResult; the path is empty for a dry or out-of-domain start
        """
        grid = self.grid
        path_x, path_y, code = trace_single_ray(
            float(start_x), float(start_y),
            grid.depth, grid.alpha, grid.dx, grid.dy, grid.width, grid.height,
            float(self.coastline.x[0]), self.coastline.step, self.coast_y,
            self.feat_center, self.feat_sign, self.feat_strength, self.feat_bandwidth,
            self.alpha0, self.deep_depth,
            self.step_size, self.max_steps, grid.dry_threshold,
            self.influence_zone, float(self.config.near_shore_power),
            self.config.lateral_tuning, self.max_shift,
        )

        return RayResult(
            start_x=float(start_x),
            start_y=float(start_y),
            path=np.column_stack([path_x, path_y]),
            termination_reason=TERMINATION_REASONS.get(code, "unknown"),
        )

    def start_columns(self, ray_count: int) -> List[int]:
        """Evenly spaced deep-row columns, round((r + 0.5) / count x (n_cols - 1))."""
        last = self.grid.n_cols - 1
        return [
            min(last, max(0, int(round((r + 0.5) / ray_count * last))))
            for r in range(ray_count)
        ]

    def trace_from_deep_water(
        self,
        ray_count: int,
        wavefront_count: int = 0,
    ) -> RayTracingResult:
        """
        Launch rays from evenly spaced cells of the deep water row.

        Rays starting on a dry cell are dropped.

        Args:
            ray_count: Number of rays to launch
            wavefront_count: Number of wavefronts to build across the rays

        Returns:
            RayTracingResult
        """
        grid = self.grid
        top = grid.n_rows - 1

        rays = []
        for col in self.start_columns(ray_count):
            ray = self.trace_ray(grid.x[top, col], grid.y[top, col])
            if ray.termination_reason == "dry_start":
                logger.debug(f"Column {col} is dry at the deep water edge, no ray")
                continue
            rays.append(ray)

        wavefronts = self.compute_wavefronts([ray.path for ray in rays], wavefront_count)
        result = RayTracingResult(rays=rays, wavefronts=wavefronts)

        counts = result.termination_counts()
        logger.info(
            f"Traced {result.n_rays}/{ray_count} rays "
            f"({counts['reached_shore']} reached shore), "
            f"{len(wavefronts)} wavefronts"
        )
        if counts['max_steps']:
            logger.warning(f"{counts['max_steps']} rays hit the step cap before the coast")
        return result

    def compute_wavefronts(self, ray_paths: Sequence[np.ndarray], count: int) -> List[Wavefront]:
        return compute_wavefronts(
            ray_paths, count, self.coastline, curvature=self.config.wavefront_curvature
        )
