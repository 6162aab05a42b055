"""gammafit - Gaussian region fitting for gamma-ray spectra.

Public API:
    - fit_region: Fit one region with a varying number of peaks
    - FitService: Job-file driven fitting with result export

Inputs:
    - Spectrum, ChannelRange, EnergyEquation, WidthEquation, Peak
    - FitParameters, FitInputs: Fit settings and the bundle one fit needs

Results:
    - FitRecord, FitCurve, FitSummary
"""

import contextlib
from importlib import metadata

__version__ = "0.1.0"

with contextlib.suppress(metadata.PackageNotFoundError):
    __version__ = metadata.version(__name__)

from gammafit.core.domain import (
    ChannelRange,
    ConvergenceCriteria,
    EnergyEquation,
    EnergyMode,
    FitInputs,
    FitParameters,
    GammaFitConfig,
    OutputConfig,
    Peak,
    PeakWidthMode,
    Spectrum,
    WidthEquation,
    WidthMode,
)
from gammafit.core.fitting import fit_region
from gammafit.core.results import FitCurve, FitRecord, FitSummary
from gammafit.core.shared.exceptions import GammaFitError
from gammafit.services import FitResult, FitService

__all__ = [
    "ChannelRange",
    "ConvergenceCriteria",
    "EnergyEquation",
    "EnergyMode",
    "FitCurve",
    "FitInputs",
    "FitParameters",
    "FitRecord",
    "FitResult",
    "FitService",
    "FitSummary",
    "GammaFitConfig",
    "GammaFitError",
    "OutputConfig",
    "Peak",
    "PeakWidthMode",
    "Spectrum",
    "WidthEquation",
    "WidthMode",
    "__version__",
    "fit_region",
]
