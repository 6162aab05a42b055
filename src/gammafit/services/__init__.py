"""Service layer between the core engine and the CLI."""

from gammafit.services.fit import FitResult, FitService

__all__ = ["FitResult", "FitService"]
