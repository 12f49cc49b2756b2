# tilechol/config.py
"""
Centralized configuration for the tilechol benchmark helpers.
This module provides a single source of truth for all fixed parameters.
"""

import numpy as np

# Element type of every dense matrix and tile buffer
DTYPE = np.float64

# Verification tolerances (fixed, not run-time configurable)
RELATIVE_TOLERANCE = 1.0e-5  # Max accepted |ref - actual| (relative once normalized)
ABSOLUTE_THRESHOLD = 1e-5  # |ref| above this switches to relative error

# Driver defaults
DEFAULT_MAT_SIZE = 10
DEFAULT_NUM_TILES = 2
DEFAULT_MAX_WORKERS = 4  # Thread pool size when parallel tiling is requested
