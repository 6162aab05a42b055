"""Shared foundational utilities for gammafit."""

from gammafit.core.shared import reporter, typing
from gammafit.core.shared.exceptions import (
    CalibrationError,
    ConfigError,
    ConstantCalibrationError,
    DataIOError,
    GammaFitError,
    InputValidationError,
    InvalidWidthError,
    NegativeDiscriminantError,
    NumericsError,
    OptimizationError,
    OptimizerDivergenceError,
    OverdeterminedError,
    TooManyInputPeaksError,
)
from gammafit.core.shared.reporter import (
    CompositeReporter,
    LoggingReporter,
    NullReporter,
    Reporter,
)

__all__ = [
    "CalibrationError",
    "CompositeReporter",
    "ConfigError",
    "ConstantCalibrationError",
    "DataIOError",
    "GammaFitError",
    "InputValidationError",
    "InvalidWidthError",
    "LoggingReporter",
    "NegativeDiscriminantError",
    "NullReporter",
    "NumericsError",
    "OptimizationError",
    "OptimizerDivergenceError",
    "OverdeterminedError",
    "Reporter",
    "TooManyInputPeaksError",
    "reporter",
    "typing",
]
