"""Core constants for the gammafit region-fit engine.

Numerical constants of the peak model and the thresholds used by the cycle
controller when it adds, deletes and constrains peaks between cycles.
"""

import math

# =============================================================================
# Peak Model
# =============================================================================

MU_FACTOR = math.sqrt(4.0 * math.log(2.0))
"""sqrt(4 ln 2): converts (x - centroid) / FWHM into the Gaussian exponent argument."""

MU_CONSTRAINT = 10.0
"""Hard clamp on the Gaussian exponent argument before squaring.

Bounds the model and its derivatives far from a peak; the clamp applies to
model values as well as the Jacobian.
"""

AREA_FACTOR_SQUARED = math.pi / (4.0 * math.log(2.0))
"""Square of the factor converting FWHM * height into Gaussian peak area."""

AREA_FACTOR = math.sqrt(AREA_FACTOR_SQUARED)

# =============================================================================
# 511 keV Annihilation Peak
# =============================================================================

ANNIHILATION_ENERGY_KEV = 511.0

PK511KEV_THRESHOLD = 0.6
"""A peak within this many keV of 511 keV receives the extra 511 width term."""

# =============================================================================
# Initial State
# =============================================================================

DEFAULT_PEAK_WIDTH_CHANNELS = 1.0
"""Average peak width used when the width calibration cannot be evaluated."""

SYNTHETIC_PEAK_EDGE_MARGIN = 2
"""A synthesized peak closer than this to a region edge moves to the midpoint."""

# =============================================================================
# Cycle Controller
# =============================================================================

DELETE_PEAK_WIDTH_FRACTION = 0.2
"""Peaks closer than this fraction of the initial peak width collide."""

ADD_PEAK_DELTA_THRESHOLD = 1.0
"""No peak is added within this many channels of an existing centroid."""

MIN_PEAK_HEIGHT_COUNTS = 10.0
"""Height floor applied to nonzero peaks when the model is constrained."""

CENTROID_EDGE_MARGIN = 2
"""Constrained centroids stay at least this many channels inside the region."""

MIN_DEGREES_OF_FREEDOM = 2
"""A cycle needs region width - vary count of at least this to run."""

EVALUATIONS_PER_VARIABLE = 100
"""Optimizer budget: EVALUATIONS_PER_VARIABLE * (n_variables + 1) evaluations."""

# =============================================================================
# Comparisons
# =============================================================================

PEAK_COMPARE_THRESHOLD = 1e-5
"""Peak positions closer than this compare equal (non-transitive)."""

CENTROID_FIXED_THRESHOLD = 1e-5
"""A channel uncertainty below this marks an output peak as fixed."""

# =============================================================================
# Solver Tolerances
# =============================================================================

FTOL_TABLE = (1.0e-6, 1.0e-5, 1.0e-5, 1.0e-4)
"""Relative sum-of-squares tolerances, indexed by convergence table entry."""

XTOL_TABLE = (1.0e-6, 1.0e-5, 3.0e-5, 1.0e-4)
"""Relative parameter tolerances, indexed by convergence table entry."""
