"""
Wave State Grid

Regular row-major grid holding depth and the wave field solved on top of it.

Coordinate System:
- x: alongshore, 0 to domain width (m), increasing with column index
- y: cross-shore, 0 at the coast-side edge to domain height at the deep
  water edge (m), increasing with row index
- Waves arrive from the deep water edge (last row) and travel toward y = 0
- alpha: wave angle from the onshore normal (radians), positive toward +x
"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from .constants import DRY_DEPTH_THRESHOLD


class GridPoint(NamedTuple):
    """Wave state at a single grid cell."""
    x: float      # m
    y: float      # m
    h: float      # Depth (m), 0 on land
    k: float      # Wavenumber (rad/m), 0 if dry
    c: float      # Phase speed (m/s), 0 if dry
    alpha: float  # Wave angle (radians), 0 if dry


def _zeros_like(a: np.ndarray) -> np.ndarray:
    return np.zeros_like(a, dtype=np.float64)


@dataclass
class WaveStateGrid:
    """
    Depth and wave state on a regular grid.

    All arrays have shape (n_rows, n_cols). Row 0 is the coast-side edge,
    the last row is the deep water edge.
    """
    x: np.ndarray
    y: np.ndarray
    depth: np.ndarray
    k: Optional[np.ndarray] = None
    c: Optional[np.ndarray] = None
    alpha: Optional[np.ndarray] = None

    # Shoaling / refraction outputs
    cg: Optional[np.ndarray] = None
    ks: Optional[np.ndarray] = None
    kr: Optional[np.ndarray] = None
    wave_height: Optional[np.ndarray] = None
    is_breaking: Optional[np.ndarray] = None

    dry_threshold: float = DRY_DEPTH_THRESHOLD
    frozen: bool = field(default=False, init=False)

    def __post_init__(self):
        for name in ('k', 'c', 'alpha', 'cg', 'ks', 'kr', 'wave_height'):
            if getattr(self, name) is None:
                setattr(self, name, _zeros_like(self.depth))
        if self.is_breaking is None:
            self.is_breaking = np.zeros(self.depth.shape, dtype=bool)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.depth.shape

    @property
    def n_rows(self) -> int:
        return self.depth.shape[0]

    @property
    def n_cols(self) -> int:
        return self.depth.shape[1]

    @property
    def dx(self) -> float:
        return float(self.x[0, 1] - self.x[0, 0])

    @property
    def dy(self) -> float:
        return float(self.y[1, 0] - self.y[0, 0])

    @property
    def width(self) -> float:
        return float(self.x[0, -1])

    @property
    def height(self) -> float:
        return float(self.y[-1, 0])

    @property
    def wet_mask(self) -> np.ndarray:
        """Cells deep enough to carry a wave."""
        return self.depth > self.dry_threshold

    @property
    def n_wet(self) -> int:
        return int(np.count_nonzero(self.wet_mask))

    def freeze(self) -> 'WaveStateGrid':
        """
        Mark every array read-only.

        Called once the direction field is solved so that downstream readers
        (ray tracing) see a completed snapshot.
        """
        for name in ('x', 'y', 'depth', 'k', 'c', 'alpha',
                     'cg', 'ks', 'kr', 'wave_height', 'is_breaking'):
            getattr(self, name).flags.writeable = False
        self.frozen = True
        return self

    def nearest_index(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """
        Row/column of the cell nearest to (x, y).

        Returns:
            (row, col), or None if the point is outside the domain
        """
        if x < 0 or x > self.width or y < 0 or y > self.height:
            return None
        col = min(self.n_cols - 1, max(0, int(round(x / self.dx))))
        row = min(self.n_rows - 1, max(0, int(round(y / self.dy))))
        return row, col

    def point(self, row: int, col: int) -> GridPoint:
        return GridPoint(
            x=float(self.x[row, col]),
            y=float(self.y[row, col]),
            h=float(self.depth[row, col]),
            k=float(self.k[row, col]),
            c=float(self.c[row, col]),
            alpha=float(self.alpha[row, col]),
        )

    def sample(self, x: float, y: float) -> Optional[GridPoint]:
        """Nearest-cell lookup, None outside the domain."""
        idx = self.nearest_index(x, y)
        if idx is None:
            return None
        return self.point(*idx)

    def to_points(self) -> List[List[GridPoint]]:
        """Nested rows of GridPoint records (row 0 first)."""
        return [
            [self.point(j, i) for i in range(self.n_cols)]
            for j in range(self.n_rows)
        ]

    def summary(self) -> str:
        wet = self.wet_mask
        lines = [
            f"WaveStateGrid: {self.n_rows}x{self.n_cols} cells, "
            f"{int(wet.sum()):,} wet ({100 * wet.mean():.1f}%)",
        ]
        if wet.any():
            alpha_deg = np.degrees(self.alpha[wet])
            lines.extend([
                f"  Depth: {self.depth[wet].min():.2f} - {self.depth[wet].max():.2f} m",
                f"  Phase speed: {self.c[wet].min():.2f} - {self.c[wet].max():.2f} m/s",
                f"  Angle: {alpha_deg.min():.1f}° - {alpha_deg.max():.1f}°",
            ])
            if self.wave_height[wet].any():
                lines.append(
                    f"  Wave height: {self.wave_height[wet].min():.2f} - "
                    f"{self.wave_height[wet].max():.2f} m, "
                    f"{int(self.is_breaking.sum()):,} breaking cells"
                )
        return '\n'.join(lines)
