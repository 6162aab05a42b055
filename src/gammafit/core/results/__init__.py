"""Fit records, curves, summaries and statistics."""

from gammafit.core.results.curve import FitCurve, sample_count
from gammafit.core.results.record import BackgroundEquation, CycleAction, CycleOutcome, FitRecord
from gammafit.core.results.statistics import (
    ResidualStatistics,
    compute_chi_squared,
    compute_degrees_of_freedom,
    compute_reduced_chi_squared,
)
from gammafit.core.results.summary import FitSummary, PeakSummary, build_summary

__all__ = [
    "BackgroundEquation",
    "CycleAction",
    "CycleOutcome",
    "FitCurve",
    "FitRecord",
    "FitSummary",
    "PeakSummary",
    "ResidualStatistics",
    "build_summary",
    "compute_chi_squared",
    "compute_degrees_of_freedom",
    "compute_reduced_chi_squared",
    "sample_count",
]
