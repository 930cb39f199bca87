"""
Configuration for the coastal refraction model.

A single immutable record describes the domain, the coastline shape and the
incident wave. Everything downstream (terrain, dispersion, direction field,
ray tracing) is a pure function of this record, so it doubles as a cache key.
"""

import hashlib
import json
import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional, Tuple

from .constants import DEFAULT_CONTOUR_DEPTHS, DEFAULT_PERIOD_S

DIRECTION_METHODS = ("snell", "finite_difference")


@dataclass(frozen=True)
class RefractionConfig:
    """
    Configuration for a refraction model run.

    The incident wave is given by a period or a wavelength. When neither is
    set the period defaults to DEFAULT_PERIOD_S, so a wavelength alone is
    enough: RefractionConfig(wavelength_m=100.0).
    """

    # Domain extent (meters)
    domain_width_m: float = 1000.0
    domain_height_m: float = 800.0

    # Grid resolution (columns x rows)
    grid_x: int = 80
    grid_y: int = 60

    # Seabed and coastline shape
    slope: float = 0.01                    # Bottom slope (rise/run)
    bay_depth_m: float = 10.0              # How far the bay cuts into land
    bay_width_m: float = 100.0
    cape_extension_m: float = 50.0         # How far the cape protrudes into the sea
    cape_width_m: float = 200.0
    coastline_baseline_ratio: float = 0.15  # Baseline coastline height / domain height

    # Incident wave
    alpha0_deg: float = 0.0                # Deep water angle from the shore normal
    wave_height_m: float = 2.0             # Wave height at the reference depth
    period_s: Optional[float] = None       # At most one of period_s / wavelength_m
    wavelength_m: Optional[float] = None
    reference_depth_m: float = 20.0        # Still-water depth at the reference point

    # Solver selection
    direction_method: str = "snell"

    # Output sampling
    coastline_samples: int = 300
    contour_depths: Tuple[float, ...] = DEFAULT_CONTOUR_DEPTHS
    ray_count: int = 18
    wavefront_count: int = 6

    def __post_init__(self):
        # contour_depths is stored as a tuple of floats
        if not isinstance(self.contour_depths, tuple):
            object.__setattr__(self, 'contour_depths', tuple(float(d) for d in self.contour_depths))
        if self.period_s is None and self.wavelength_m is None:
            object.__setattr__(self, 'period_s', DEFAULT_PERIOD_S)

    @property
    def alpha0_rad(self) -> float:
        return math.radians(self.alpha0_deg)

    @property
    def dx(self) -> float:
        """Grid spacing in x (m)."""
        return self.domain_width_m / (self.grid_x - 1)

    @property
    def dy(self) -> float:
        """Grid spacing in y (m)."""
        return self.domain_height_m / (self.grid_y - 1)

    def validate(self) -> 'RefractionConfig':
        """
        Reject configurations the solvers cannot handle.

        Returns:
            self, so calls can be chained

        Raises:
            ValueError: If any field is out of range
        """
        if self.grid_x < 2 or self.grid_y < 2:
            raise ValueError(
                f"Grid resolution must be at least 2x2, got {self.grid_x}x{self.grid_y}"
            )

        positive = {
            'domain_width_m': self.domain_width_m,
            'domain_height_m': self.domain_height_m,
            'slope': self.slope,
            'reference_depth_m': self.reference_depth_m,
            'bay_width_m': self.bay_width_m,
            'cape_width_m': self.cape_width_m,
        }
        for name, value in positive.items():
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        if self.period_s is not None and self.wavelength_m is not None:
            raise ValueError("Provide only one of period_s or wavelength_m, not both")
        if self.period_s is not None and not (math.isfinite(self.period_s) and self.period_s > 0):
            raise ValueError(f"period_s must be positive, got {self.period_s}")
        if self.wavelength_m is not None and not (
            math.isfinite(self.wavelength_m) and self.wavelength_m > 0
        ):
            raise ValueError(f"wavelength_m must be positive, got {self.wavelength_m}")

        if self.wave_height_m < 0:
            raise ValueError(f"wave_height_m must be non-negative, got {self.wave_height_m}")
        if self.bay_depth_m < 0 or self.cape_extension_m < 0:
            raise ValueError("bay_depth_m and cape_extension_m must be non-negative")
        if not 0.0 <= self.coastline_baseline_ratio <= 1.0:
            raise ValueError(
                f"coastline_baseline_ratio must be in [0, 1], got {self.coastline_baseline_ratio}"
            )
        if not -90.0 < self.alpha0_deg < 90.0:
            raise ValueError(f"alpha0_deg must be within (-90, 90), got {self.alpha0_deg}")

        if self.direction_method not in DIRECTION_METHODS:
            raise ValueError(
                f"Unknown direction_method '{self.direction_method}'. "
                f"Available: {', '.join(DIRECTION_METHODS)}"
            )

        if self.coastline_samples < 1:
            raise ValueError(f"coastline_samples must be >= 1, got {self.coastline_samples}")
        if self.ray_count < 0 or self.wavefront_count < 0:
            raise ValueError("ray_count and wavefront_count must be non-negative")

        return self

    def to_dict(self) -> Dict:
        """Convert to dictionary for serialization."""
        d = asdict(self)
        d['contour_depths'] = list(self.contour_depths)
        return d

    @classmethod
    def from_dict(cls, d: Dict) -> 'RefractionConfig':
        """Create from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in d.items() if k in known_fields}
        return cls(**filtered)

    def cache_key(self) -> str:
        """Stable hash of all configuration fields."""
        payload = json.dumps(self.to_dict(), sort_keys=True)
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()
