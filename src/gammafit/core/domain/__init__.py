"""Domain models: regions, spectra, calibrations, peaks, settings and fit states."""

from gammafit.core.domain.calibration import (
    CalibrationResult,
    EnergyEquation,
    EnergyMode,
    WidthEquation,
    WidthMode,
)
from gammafit.core.domain.config import (
    ConvergenceCriteria,
    FitInputs,
    FitParameters,
    GammaFitConfig,
    OutputConfig,
    PeakWidthMode,
)
from gammafit.core.domain.peaks import Peak, PeakKind, compare_peaks, sort_peaks
from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum, counting_uncertainties
from gammafit.core.domain.state import FitState, PeakState, build_initial_state, is_near_511kev

__all__ = [
    "CalibrationResult",
    "ChannelRange",
    "ConvergenceCriteria",
    "EnergyEquation",
    "EnergyMode",
    "FitInputs",
    "FitParameters",
    "FitState",
    "GammaFitConfig",
    "OutputConfig",
    "Peak",
    "PeakKind",
    "PeakState",
    "PeakWidthMode",
    "Spectrum",
    "WidthEquation",
    "WidthMode",
    "build_initial_state",
    "compare_peaks",
    "counting_uncertainties",
    "is_near_511kev",
    "sort_peaks",
]
