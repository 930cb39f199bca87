"""
Coastal Feature Detection

Finds bays (concave, y curving upward toward the sea) and capes (convex)
along a sampled coastline from its discrete second derivative. The ray
tracer uses the features to bend rays laterally near the shore.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from ..terrain import Coastline

logger = logging.getLogger(__name__)

# Detection tuning
MIN_SAMPLES = 5
MIN_CURVATURE = 1e-6
THRESHOLD_FRACTION = 0.18      # Of the global peak |curvature|, to start a run
CONTINUATION_FRACTION = 0.4    # Of the threshold, to keep a run going
MIN_BANDWIDTH_STEPS = 8
BANDWIDTH_SCALE = 1.6


@dataclass(frozen=True)
class CoastalFeature:
    """
    A contiguous run of same-sign coastline curvature.

    Attributes:
        kind: "bay" (positive curvature) or "cape" (negative curvature)
        center_x: Curvature-weighted centroid (m)
        strength: Peak |curvature| in the run / global peak, in (0, 1]
        bandwidth: Lateral extent used for ray influence (m)
    """
    kind: str
    center_x: float
    strength: float
    bandwidth: float

    @property
    def sign(self) -> int:
        return 1 if self.kind == "bay" else -1

    def to_dict(self) -> Dict:
        return {
            'kind': self.kind,
            'center_x': self.center_x,
            'strength': self.strength,
            'bandwidth': self.bandwidth,
        }


def coastline_curvature(coastline: Coastline) -> np.ndarray:
    """
    Second difference (y[i+1] - 2y[i] + y[i-1]) / step² at interior samples.

    End samples get 0.
    """
    y = np.asarray(coastline.y, dtype=np.float64)
    curvature = np.zeros_like(y)
    step = coastline.step
    if len(y) < 3 or step <= 0:
        return curvature
    curvature[1:-1] = (y[2:] - 2.0 * y[1:-1] + y[:-2]) / (step * step)
    return curvature


def detect_coastal_features(coastline: Coastline) -> List[CoastalFeature]:
    """
    Scan the coastline curvature left to right for bay and cape features.

    A sample whose |curvature| reaches 18% of the global peak starts a run.
    The run grows while the sign matches and |curvature| stays at or above
    40% of that threshold; scanning resumes after the run.

    Args:
        coastline: Evenly sampled coastline

    Returns:
        Features in order of increasing x (empty for straight or short
        coastlines)
    """
    step = coastline.step
    n = len(coastline)
    if n < MIN_SAMPLES or step <= 0:
        return []

    curvature = coastline_curvature(coastline)
    magnitude = np.abs(curvature)
    max_curvature = float(magnitude.max())
    if max_curvature < MIN_CURVATURE:
        return []

    threshold = THRESHOLD_FRACTION * max_curvature
    continuation = CONTINUATION_FRACTION * threshold
    xs = coastline.x

    features = []
    idx = 1
    while idx < n - 1:
        if magnitude[idx] < threshold:
            idx += 1
            continue

        sign = np.sign(curvature[idx])
        start = idx
        end = idx
        while (end < n - 1
               and np.sign(curvature[end]) == sign
               and magnitude[end] >= continuation):
            end += 1

        weights = magnitude[start:end]
        center_x = float(np.sum(xs[start:end] * weights) / np.sum(weights))
        peak = float(weights.max())
        span = max(2, end - start + 1)
        bandwidth = max(MIN_BANDWIDTH_STEPS * step, np.sqrt(span) * step * BANDWIDTH_SCALE)

        features.append(CoastalFeature(
            kind="bay" if sign > 0 else "cape",
            center_x=center_x,
            strength=peak / max_curvature,
            bandwidth=float(bandwidth),
        ))

        idx = end + 1

    logger.debug(
        f"Detected {len(features)} coastal features: "
        + ", ".join(f"{f.kind}@{f.center_x:.0f}m" for f in features)
    )
    return features
