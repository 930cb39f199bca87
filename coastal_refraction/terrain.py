"""
Parametric Coastline and Bathymetry

Closed-form coastline with a bay and a cape, depth contours offset from it,
and a plane-sloping depth grid that follows the coastline's lateral shape.

Coordinate System:
- All coordinates in meters
- y = 0 at the land-side edge of the domain, y = height at deep water
- Land lies below the coastline (y <= coastline_height(x))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Sequence, Union

import numpy as np

from .config import RefractionConfig
from .constants import (
    BAY_CENTER_RATIO,
    BAY_SCALE,
    CAPE_CENTER_RATIO,
    CAPE_SCALE,
    COASTLINE_MAX_RATIO,
    COASTLINE_MIN_RATIO,
)
from .grid import WaveStateGrid

logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]


class CoastlinePoint(NamedTuple):
    x: float
    y: float


@dataclass
class Coastline:
    """
    Coastline polyline sampled at a fixed step along the domain width.

    Attributes:
        x: Sample positions (m), strictly increasing
        y: Coastline height at each sample (m)
    """
    x: np.ndarray
    y: np.ndarray

    def __len__(self) -> int:
        return len(self.x)

    @property
    def step(self) -> float:
        """Sample spacing (m), 0 for a single-sample coastline."""
        if len(self.x) < 2:
            return 0.0
        return float(self.x[1] - self.x[0])

    def height_at(self, x: ArrayLike) -> ArrayLike:
        """
        Linearly interpolated coastline height.

        Positions beyond either end take the end value.
        """
        result = np.interp(x, self.x, self.y)
        if np.ndim(result) == 0:
            return float(result)
        return result

    def points(self) -> List[CoastlinePoint]:
        return [CoastlinePoint(float(x), float(y)) for x, y in zip(self.x, self.y)]


@dataclass
class DepthContour:
    """Polyline where the seabed reaches a target depth."""
    depth: float
    points: np.ndarray  # (M, 2) array of (x, y)

    @property
    def n_points(self) -> int:
        return len(self.points)


class TerrainModel:
    """
    Coastline, depth contours and depth grid for one configuration.

    Example usage:
        terrain = TerrainModel(config)
        coastline = terrain.generate_coastline()
        contours = terrain.generate_depth_contours(coastline)
        grid = terrain.generate_depth_grid()
    """

    def __init__(self, config: RefractionConfig):
        self.config = config

        width = config.domain_width_m
        height = config.domain_height_m

        self.baseline_y = config.coastline_baseline_ratio * height
        self.min_y = COASTLINE_MIN_RATIO * height
        self.max_y = COASTLINE_MAX_RATIO * height

        # Gaussian bay (cuts into land) and cape (protrudes into the sea)
        self.bay_center = BAY_CENTER_RATIO * width
        self.bay_sigma = 0.5 * config.bay_width_m
        self.bay_amplitude = BAY_SCALE * config.bay_depth_m

        self.cape_center = CAPE_CENTER_RATIO * width
        self.cape_sigma = 0.5 * config.cape_width_m
        self.cape_amplitude = CAPE_SCALE * config.cape_extension_m

    def coastline_height(self, x: ArrayLike) -> ArrayLike:
        """
        Coastline y coordinate at alongshore position x.

        y = baseline - bay(x) + cape(x), clamped to [0.02, 0.6] x height

        Args:
            x: Alongshore position(s) (m)

        Returns:
            Coastline height(s) (m), float for scalar input
        """
        x = np.asarray(x, dtype=np.float64)

        bay = self.bay_amplitude * np.exp(-0.5 * ((x - self.bay_center) / self.bay_sigma) ** 2)
        cape = self.cape_amplitude * np.exp(-0.5 * ((x - self.cape_center) / self.cape_sigma) ** 2)

        y = np.clip(self.baseline_y - bay + cape, self.min_y, self.max_y)

        if y.ndim == 0:
            return float(y)
        return y

    def generate_coastline(self, samples: Optional[int] = None) -> Coastline:
        """
        Sample the coastline at samples + 1 evenly spaced positions.

        Args:
            samples: Number of intervals (default: config.coastline_samples)
        """
        samples = self.config.coastline_samples if samples is None else samples
        if samples < 1:
            raise ValueError(f"samples must be >= 1, got {samples}")

        x = np.linspace(0.0, self.config.domain_width_m, samples + 1)
        return Coastline(x=x, y=self.coastline_height(x))

    def generate_depth_contours(
        self,
        coastline: Coastline,
        target_depths: Optional[Sequence[float]] = None,
    ) -> List[DepthContour]:
        """
        Offset the coastline seaward to each target depth.

        A contour at depth d sits at y + d / slope. Points falling outside
        the domain are dropped; contours left with fewer than 2 points are
        omitted.
        """
        if target_depths is None:
            target_depths = self.config.contour_depths

        height = self.config.domain_height_m
        contours = []

        for depth in target_depths:
            contour_y = coastline.y + depth / self.config.slope
            inside = (contour_y >= 0.0) & (contour_y <= height)

            if np.count_nonzero(inside) < 2:
                logger.debug(f"Depth contour {depth}m lies outside the domain, skipped")
                continue

            points = np.column_stack([coastline.x[inside], contour_y[inside]])
            contours.append(DepthContour(depth=float(depth), points=points))

        return contours

    def generate_depth_grid(self) -> WaveStateGrid:
        """
        Build the depth grid.

        depth = (y - coastline(x)) x slope seaward of the coastline, 0 on land.
        Wave fields are left at zero for the solvers to fill.
        """
        cfg = self.config

        xs = np.linspace(0.0, cfg.domain_width_m, cfg.grid_x)
        ys = np.linspace(0.0, cfg.domain_height_m, cfg.grid_y)
        x, y = np.meshgrid(xs, ys)

        coast_y = self.coastline_height(xs)[np.newaxis, :]
        depth = np.where(y <= coast_y, 0.0, (y - coast_y) * cfg.slope)

        grid = WaveStateGrid(x=x, y=y, depth=depth)

        logger.info(
            f"Depth grid {cfg.grid_x}x{cfg.grid_y}: "
            f"{grid.n_wet:,} wet cells, max depth {depth.max():.2f} m"
        )
        return grid
