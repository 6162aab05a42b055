"""Constrained Gaussian peak shape.

The peak is parameterized by height, centroid and FWHM (all in channel
units)::

    mu(x) = (x - centroid) * sqrt(4 ln 2) / fwhm
    G(x)  = height * exp(-clamp(mu, -10, 10)**2)

The exponent argument is clamped for the model value as well as for the
derivatives. The derivative terms below mix clamped and unclamped ``mu`` the
same way the fitted model always has: the exponential factor uses the clamped
value, the polynomial factors the raw one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gammafit.core.constants import MU_CONSTRAINT, MU_FACTOR

if TYPE_CHECKING:
    from gammafit.core.shared.typing import FloatArray


def mu(x: FloatArray, centroid: float, fwhm: float) -> FloatArray:
    """Scaled distance from the centroid; zero everywhere when fwhm is zero."""
    x_arr = np.asarray(x, dtype=float)
    if fwhm == 0.0:
        return np.zeros_like(x_arr)
    return (x_arr - centroid) * MU_FACTOR / fwhm


def clamp_mu(values: FloatArray) -> FloatArray:
    return np.clip(values, -MU_CONSTRAINT, MU_CONSTRAINT)


def gaussian(x: FloatArray, height: float, centroid: float, fwhm: float) -> FloatArray:
    """Evaluate the clamped Gaussian at ``x``."""
    clamped = clamp_mu(mu(x, centroid, fwhm))
    return height * np.exp(-clamped * clamped)


@dataclass(frozen=True, slots=True)
class GaussianTerms:
    """Value of one peak and its partial derivatives over a set of channels.

    Attributes:
        value: Peak value ``height * exp(-clamped_mu**2)``
        d_height: dG/dheight, ``exp(-clamped_mu**2)``
        d_centroid: dG/dcentroid, ``2 * value * mu * sqrt(4 ln 2) / fwhm``
        d_width: dG/dfwhm, ``2 * value * mu**2 / fwhm``; shared by the
            average width and the extra 511 keV width
    """

    value: FloatArray
    d_height: FloatArray
    d_centroid: FloatArray
    d_width: FloatArray


def gaussian_terms(x: FloatArray, height: float, centroid: float, fwhm: float) -> GaussianTerms:
    """Evaluate a peak and its derivatives in one pass."""
    raw = mu(x, centroid, fwhm)
    clamped = clamp_mu(raw)
    shape = np.exp(-clamped * clamped)
    value = height * shape
    if fwhm == 0.0:
        zeros = np.zeros_like(value)
        return GaussianTerms(value=value, d_height=shape, d_centroid=zeros, d_width=zeros)
    return GaussianTerms(
        value=value,
        d_height=shape,
        d_centroid=2.0 * value * raw * MU_FACTOR / fwhm,
        d_width=2.0 * value * raw * raw / fwhm,
    )
