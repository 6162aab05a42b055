"""Fit statistics of a region cycle.

This module defines the chi-squared and degrees-of-freedom conventions used to
rank cycles, and summary statistics of the weighted residuals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from gammafit.core.shared.typing import FloatArray


def compute_chi_squared(residuals: FloatArray) -> float:
    """Compute chi-squared (sum of squared residuals).

    Args:
        residuals: Weighted residuals (count - model) / sigma

    Returns
    -------
        Chi-squared value (sum of residuals squared)
    """
    return float(np.sum(np.asarray(residuals) ** 2))


def compute_degrees_of_freedom(n_data: int, n_params: int) -> int:
    """Region width minus the number of varying parameters.

    Cycles only run with at least two degrees of freedom, so no floor is
    applied here.
    """
    return n_data - n_params


def compute_reduced_chi_squared(chi_squared: float, n_data: int, n_params: int) -> float:
    """Compute reduced chi-squared, the figure cycles are ranked by.

    Args:
        chi_squared: Sum of squared weighted residuals
        n_data: Number of region channels
        n_params: Number of varying parameters of the cycle

    Returns
    -------
        Reduced chi-squared value (chi_squared / dof)
    """
    return chi_squared / compute_degrees_of_freedom(n_data, n_params)


@dataclass(slots=True)
class ResidualStatistics:
    """Statistics computed from the weighted residuals of a cycle.

    Attributes
    ----------
        residuals: Weighted residuals (count - model) / sigma
        n_params: Number of varying parameters
    """

    residuals: FloatArray
    n_params: int

    @property
    def n_points(self) -> int:
        return int(np.asarray(self.residuals).size)

    @property
    def dof(self) -> int:
        """Degrees of freedom (n_points - n_params)."""
        return compute_degrees_of_freedom(self.n_points, self.n_params)

    @property
    def sum_squared(self) -> float:
        return compute_chi_squared(self.residuals)

    @property
    def reduced_chi_squared(self) -> float:
        return compute_reduced_chi_squared(self.sum_squared, self.n_points, self.n_params)

    @property
    def rms(self) -> float:
        if self.n_points == 0:
            return 0.0
        return float(np.sqrt(np.mean(np.asarray(self.residuals) ** 2)))

    @property
    def max_abs(self) -> float:
        """Largest absolute weighted residual."""
        if self.n_points == 0:
            return 0.0
        return float(np.max(np.abs(self.residuals)))

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary (excludes the residual array)."""
        return {
            "n_points": self.n_points,
            "n_params": self.n_params,
            "dof": self.dof,
            "sum_squared": self.sum_squared,
            "reduced_chi_squared": self.reduced_chi_squared,
            "rms": self.rms,
            "max_abs": self.max_abs,
        }
