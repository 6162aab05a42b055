"""Fit service orchestrating region fits."""

from gammafit.services.fit.service import FitResult, FitService
from gammafit.services.fit.writer import write_all_outputs

__all__ = ["FitResult", "FitService", "write_all_outputs"]
