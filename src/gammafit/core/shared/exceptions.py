"""Exception taxonomy for gammafit.

A small hierarchy rooted at :class:`GammaFitError`. Region-fit failures are
split by where they happen: input validation before any cycle runs,
optimization failures inside one cycle, and calibration edge cases that
callers usually absorb with a documented default.
"""

from __future__ import annotations


class GammaFitError(Exception):
    """Base class for all gammafit-specific exceptions."""


class ConfigError(GammaFitError):
    """Configuration-related errors (invalid/missing options, bad job files)."""


class DataIOError(GammaFitError):
    """Data loading/saving errors (counts files, output files)."""


class InputValidationError(GammaFitError):
    """Region-fit inputs that cannot be fitted at all."""


class TooManyInputPeaksError(InputValidationError):
    """More input peaks than the configured maximum peak count."""

    def __init__(self, n_peaks: int, max_peaks: int) -> None:
        self.n_peaks = n_peaks
        self.max_peaks = max_peaks
        super().__init__(f"Too many input peaks: {n_peaks} > {max_peaks}")


class OptimizationError(GammaFitError):
    """Errors occurring during one optimization cycle."""


class OverdeterminedError(OptimizationError):
    """Region too narrow for the number of free parameters."""

    def __init__(self, region_width: int, vary_count: int) -> None:
        self.region_width = region_width
        self.vary_count = vary_count
        super().__init__(
            f"too many variables, overdetermined: region width {region_width}, "
            f"{vary_count} varying parameters"
        )


class OptimizerDivergenceError(OptimizationError):
    """The least-squares solver failed or did not converge."""


class NumericsError(GammaFitError):
    """Numeric instability or invalid arithmetic conditions (NaNs, overflows)."""


class CalibrationError(GammaFitError):
    """Degenerate calibration equation for the requested conversion."""


class InvalidWidthError(CalibrationError):
    """Width calibration evaluates to a negative width."""


class ConstantCalibrationError(CalibrationError):
    """Energy calibration has no channel dependence and cannot be inverted."""


class NegativeDiscriminantError(CalibrationError):
    """Quadratic energy calibration has no real inverse for the energy."""


__all__ = [
    "CalibrationError",
    "ConfigError",
    "ConstantCalibrationError",
    "DataIOError",
    "GammaFitError",
    "InputValidationError",
    "InvalidWidthError",
    "NegativeDiscriminantError",
    "NumericsError",
    "OptimizationError",
    "OptimizerDivergenceError",
    "OverdeterminedError",
    "TooManyInputPeaksError",
]
