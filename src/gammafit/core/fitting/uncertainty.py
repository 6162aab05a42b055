"""Propagation of the parameter covariance into physical uncertainties.

Covariance rows and columns follow the vector order of the cycle's vary
mask. Scalars that did not vary have zero uncertainty and zero covariance.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from gammafit.core.constants import AREA_FACTOR_SQUARED
from gammafit.core.fitting.parameters import ParameterKind, ParameterSlot

if TYPE_CHECKING:
    from gammafit.core.domain.calibration import EnergyEquation
    from gammafit.core.domain.state import FitState, PeakState
    from gammafit.core.fitting.parameters import VaryMask
    from gammafit.core.shared.typing import FloatArray


@dataclass(frozen=True, slots=True)
class PeakUncertainty:
    """One-sigma uncertainties of a fitted peak."""

    height: float = 0.0
    centroid: float = 0.0
    add_width_511: float = 0.0
    energy: float = 0.0
    fwhm: float = 0.0
    area: float = 0.0


@dataclass(frozen=True)
class StateUncertainty:
    """One-sigma uncertainties of a fitted state.

    Attributes:
        intercept: Background intercept uncertainty
        slope: Background slope uncertainty
        background_covariance: cov(intercept, slope)
        avg_width: Average peak width uncertainty
        peaks: Per-peak uncertainties, in state order
    """

    intercept: float
    slope: float
    background_covariance: float
    avg_width: float
    peaks: tuple[PeakUncertainty, ...]

    @classmethod
    def zeros(cls, n_peaks: int) -> StateUncertainty:
        return cls(
            intercept=0.0,
            slope=0.0,
            background_covariance=0.0,
            avg_width=0.0,
            peaks=tuple(PeakUncertainty() for _ in range(n_peaks)),
        )


def _sqrt_nonnegative(value: float) -> float:
    return math.sqrt(value) if value >= 0.0 else 0.0


def fwhm_variance(sigma_add: float, sigma_avg: float, cov_avg_add: float) -> float:
    """Variance of ``avg_width + add_width_511`` (may come out negative)."""
    return sigma_add * sigma_add + sigma_avg * sigma_avg + 2.0 * cov_avg_add


def area_variance(
    height: float,
    fwhm: float,
    sigma_height: float,
    var_fwhm: float,
    cov_height_add: float,
    cov_avg_height: float,
) -> float:
    """Variance of the Gaussian area ``AREA_FACTOR * fwhm * height``."""
    return AREA_FACTOR_SQUARED * (
        height * height * var_fwhm
        + fwhm * fwhm * sigma_height * sigma_height
        + 2.0 * fwhm * height * (cov_height_add + cov_avg_height)
    )


def energy_uncertainty(energy: EnergyEquation, centroid: float, sigma_centroid: float) -> float:
    """Centroid energy uncertainty ``(b + 2 x c) * sigma``.

    The stored quadratic coefficient always enters, also for a calibration
    in linear mode.
    """
    return (energy.linear + 2.0 * centroid * energy.quadratic) * sigma_centroid


class _Covariance:
    """Covariance lookup by parameter slot; absent slots read as zero."""

    def __init__(self, mask: VaryMask, covariance: FloatArray) -> None:
        self._index = mask.index_map()
        self._matrix = np.asarray(covariance, dtype=float)
        n = len(self._index)
        if self._matrix.shape != (n, n):
            msg = f"Covariance shape {self._matrix.shape} does not match {n} varying parameters"
            raise ValueError(msg)

    def sigma(self, slot: ParameterSlot) -> float:
        i = self._index.get(slot)
        if i is None:
            return 0.0
        return _sqrt_nonnegative(float(self._matrix[i, i]))

    def cov(self, a: ParameterSlot, b: ParameterSlot) -> float:
        i = self._index.get(a)
        j = self._index.get(b)
        if i is None or j is None:
            return 0.0
        return float(self._matrix[i, j])


def _peak_uncertainty(
    state: FitState,
    index: int,
    peak: PeakState,
    cov: _Covariance,
    sigma_avg: float,
    energy: EnergyEquation,
) -> PeakUncertainty:
    avg_slot = ParameterSlot(ParameterKind.AVG_WIDTH)
    height_slot = ParameterSlot(ParameterKind.HEIGHT, index)
    centroid_slot = ParameterSlot(ParameterKind.CENTROID, index)
    add_slot = ParameterSlot(ParameterKind.ADD_WIDTH_511, index)

    sigma_height = cov.sigma(height_slot)
    sigma_centroid = cov.sigma(centroid_slot)
    sigma_add = cov.sigma(add_slot)

    var_fwhm = fwhm_variance(sigma_add, sigma_avg, cov.cov(avg_slot, add_slot))
    var_area = area_variance(
        peak.height,
        state.fwhm(peak),
        sigma_height,
        var_fwhm,
        cov.cov(height_slot, add_slot),
        cov.cov(avg_slot, height_slot),
    )
    return PeakUncertainty(
        height=sigma_height,
        centroid=sigma_centroid,
        add_width_511=sigma_add,
        energy=energy_uncertainty(energy, peak.centroid, sigma_centroid),
        fwhm=_sqrt_nonnegative(var_fwhm),
        area=_sqrt_nonnegative(var_area),
    )


def propagate_uncertainty(
    state: FitState,
    mask: VaryMask,
    covariance: FloatArray,
    energy: EnergyEquation,
) -> StateUncertainty:
    """Turn the covariance of a converged cycle into parameter uncertainties.

    Args:
        state: Converged state
        mask: Vary mask of the cycle that produced ``covariance``
        covariance: Parameter covariance, in the mask's vector order
        energy: Energy calibration used for centroid energy uncertainties

    Returns
    -------
        Uncertainties of the background, the average width and every peak
    """
    cov = _Covariance(mask, covariance)
    intercept_slot = ParameterSlot(ParameterKind.INTERCEPT)
    slope_slot = ParameterSlot(ParameterKind.SLOPE)
    sigma_avg = cov.sigma(ParameterSlot(ParameterKind.AVG_WIDTH))
    peaks = tuple(
        _peak_uncertainty(state, i, peak, cov, sigma_avg, energy)
        for i, peak in enumerate(state.peaks)
    )
    return StateUncertainty(
        intercept=cov.sigma(intercept_slot),
        slope=cov.sigma(slope_slot),
        background_covariance=cov.cov(intercept_slot, slope_slot),
        avg_width=sigma_avg,
        peaks=peaks,
    )
