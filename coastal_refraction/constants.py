"""Shared constants"""

import numpy as np

# Physical constants
G = 9.81  # Gravitational acceleration (m/s²)
TWO_PI = 2.0 * np.pi

# Dispersion solver
NEWTON_MAX_ITERATIONS = 100
NEWTON_TOLERANCE = 1e-6

# Cells at or below this depth are treated as land (m)
DRY_DEPTH_THRESHOLD = 0.1

# Angle limits for the direction field
MAX_SIN_RATIO = 0.999
ANGLE_FALLBACK = np.pi / 2.0 - 0.01

# Coastline shape (fractions of domain width / height)
BAY_CENTER_RATIO = 0.28
CAPE_CENTER_RATIO = 0.68
BAY_SCALE = 2.6
CAPE_SCALE = 1.10
COASTLINE_MIN_RATIO = 0.02
COASTLINE_MAX_RATIO = 0.6

# McCowan (1894) constant breaker index
MCCOWAN_BREAKER_INDEX = 0.78

# Default depth contours (m)
DEFAULT_CONTOUR_DEPTHS = (5.0, 10.0, 15.0, 20.0, 25.0, 30.0)

# Wave period used when neither a period nor a wavelength is given (s)
DEFAULT_PERIOD_S = 8.0
