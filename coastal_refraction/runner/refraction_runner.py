"""
Refraction Model Runner

Orchestrates a complete model evaluation for one configuration:
1. Build the coastline, depth contours and depth grid
2. Solve the reference dispersion relation
3. Populate wavenumber and phase speed on every wet cell
4. Solve the direction field and the shoaled wave height, then freeze
5. Detect coastal features and trace rays and wavefronts

Each run is a pure function of its RefractionConfig, so results can be
memoised by RefractionModelCache.
"""

import logging
import math
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..config import RefractionConfig
from ..grid import GridPoint, WaveStateGrid
from ..terrain import Coastline, DepthContour, TerrainModel
from .coastal_features import CoastalFeature, detect_coastal_features
from .direction_field import DirectionFieldSolver
from .dispersion import DispersionResult, solve_reference_dispersion
from .ray_tracer import RayTracer, RayTracerConfig, RayTracingResult
from .wave_field import populate_wave_heights, populate_wave_numbers

logger = logging.getLogger(__name__)


@dataclass
class PointInspection:
    """Wave state at the grid cell nearest to a queried position."""
    point: GridPoint
    distance_to_coast: float  # m, 0 on land
    alpha_deg: float
    wave_height: float
    is_breaking: bool


@dataclass
class RefractionResult:
    """Complete output of one model run."""
    config: RefractionConfig
    grid: WaveStateGrid
    coastline: Coastline
    contours: List[DepthContour]
    dispersion: DispersionResult
    features: List[CoastalFeature] = field(default_factory=list)
    rays: RayTracingResult = field(default_factory=RayTracingResult)
    timings: Dict[str, float] = field(default_factory=dict)

    def inspect_point(self, x: float, y: float) -> Optional[PointInspection]:
        """
        Look up the wave state nearest to (x, y).

        Returns:
            PointInspection, or None outside the domain
        """
        idx = self.grid.nearest_index(x, y)
        if idx is None:
            return None

        row, col = idx
        point = self.grid.point(row, col)
        coast_y = self.coastline.height_at(point.x)

        return PointInspection(
            point=point,
            distance_to_coast=max(0.0, point.y - coast_y),
            alpha_deg=math.degrees(point.alpha),
            wave_height=float(self.grid.wave_height[row, col]),
            is_breaking=bool(self.grid.is_breaking[row, col]),
        )

    def summary(self) -> str:
        cfg = self.config
        lines = [
            "=" * 60,
            "Refraction Model Result",
            "=" * 60,
            f"Domain: {cfg.domain_width_m:.0f} x {cfg.domain_height_m:.0f} m, "
            f"slope {cfg.slope}, alpha0 {cfg.alpha0_deg:.1f}°, "
            f"method {cfg.direction_method}",
            self.dispersion.summary(),
            self.grid.summary(),
            f"Coastline: {len(self.coastline)} samples, "
            f"{len(self.contours)} depth contours "
            f"({', '.join(f'{c.depth:g}m' for c in self.contours)})",
        ]
        if self.features:
            lines.append("Coastal features:")
            for f in self.features:
                lines.append(
                    f"  {f.kind:<4} at x={f.center_x:.1f}m, strength {f.strength:.2f}, "
                    f"bandwidth {f.bandwidth:.1f}m"
                )
        else:
            lines.append("Coastal features: none")
        lines.append(self.rays.summary())
        if self.timings:
            lines.append(
                "Timings: " + ", ".join(f"{k} {v:.3f}s" for k, v in self.timings.items())
            )
        return '\n'.join(lines)


class RefractionRunner:
    """
    Run the refraction model for one configuration.

    Example usage:
        result = RefractionRunner(RefractionConfig(alpha0_deg=15)).run()
        print(result.summary())
    """

    def __init__(
        self,
        config: RefractionConfig,
        tracer_config: Optional[RayTracerConfig] = None,
        log: Optional[logging.Logger] = None,
    ):
        """
        Args:
            config: Model configuration (validated here)
            tracer_config: Ray tracer tunables
            log: Logger receiving progress and warnings from every stage
        """
        self.config = config.validate()
        self.tracer_config = tracer_config or RayTracerConfig()
        self.log = log or logger
        self.terrain = TerrainModel(config)
        self.direction_solver = DirectionFieldSolver(config.direction_method)

    def run(self) -> RefractionResult:
        cfg = self.config
        log = self.log
        timings = {}

        t0 = time.perf_counter()
        coastline = self.terrain.generate_coastline()
        contours = self.terrain.generate_depth_contours(coastline)
        grid = self.terrain.generate_depth_grid()
        timings['terrain'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        dispersion = solve_reference_dispersion(cfg, log=log)
        populate_wave_numbers(grid, dispersion.T, log=log)
        timings['dispersion'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        self.direction_solver.solve(grid, cfg.alpha0_rad, log=log)
        populate_wave_heights(grid, dispersion, cfg.wave_height_m, cfg.alpha0_rad, log=log)
        grid.freeze()
        timings['direction_field'] = time.perf_counter() - t0

        t0 = time.perf_counter()
        features = detect_coastal_features(coastline)
        if cfg.ray_count > 0:
            tracer = RayTracer(
                grid, coastline, features,
                alpha0=cfg.alpha0_rad,
                deep_depth=dispersion.depth,
                config=self.tracer_config,
            )
            rays = tracer.trace_from_deep_water(cfg.ray_count, cfg.wavefront_count)
        else:
            rays = RayTracingResult()
        timings['rays'] = time.perf_counter() - t0

        log.info(
            f"Refraction run complete in {sum(timings.values()):.3f}s: "
            f"{grid.n_wet:,} wet cells, {len(features)} features, {rays.n_rays} rays"
        )

        return RefractionResult(
            config=cfg,
            grid=grid,
            coastline=coastline,
            contours=contours,
            dispersion=dispersion,
            features=features,
            rays=rays,
            timings=timings,
        )


class RefractionModelCache:
    """
    Memoise model results by configuration value.

    Keys are RefractionConfig.cache_key() hashes, so equal configurations
    share a result regardless of object identity. The least recently used
    entry is evicted once max_entries is exceeded.
    """

    def __init__(self, max_entries: int = 16, tracer_config: Optional[RayTracerConfig] = None):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.max_entries = max_entries
        self.tracer_config = tracer_config
        self._results: 'OrderedDict[str, RefractionResult]' = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, config: RefractionConfig) -> bool:
        return config.cache_key() in self._results

    def get(self, config: RefractionConfig) -> RefractionResult:
        """Return the cached result for config, running the model on a miss."""
        key = config.cache_key()
        if key in self._results:
            self._results.move_to_end(key)
            self.hits += 1
            return self._results[key]

        self.misses += 1
        result = RefractionRunner(config, tracer_config=self.tracer_config).run()
        self._results[key] = result

        while len(self._results) > self.max_entries:
            evicted, _ = self._results.popitem(last=False)
            logger.debug(f"Evicted cached result {evicted[:8]}")

        return result

    def clear(self) -> None:
        self._results.clear()
        self.hits = 0
        self.misses = 0
