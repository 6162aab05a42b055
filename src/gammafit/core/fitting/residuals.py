"""Weighted residuals and analytic Jacobian of a region model.

The optimizer minimizes ``sum(r**2)`` with ``r = (counts - model) / sigma``
over the channels of the region. Candidate vectors are written back into a
:class:`FitState` before every evaluation, so the model is always computed
from a consistent set of parameters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

from gammafit.core.fitting.parameters import ParameterKind, extract_vector, write_vector
from gammafit.core.lineshapes.gaussian import gaussian, gaussian_terms

if TYPE_CHECKING:
    from gammafit.core.domain.region import ChannelRange
    from gammafit.core.domain.spectrum import Spectrum
    from gammafit.core.domain.state import FitState
    from gammafit.core.fitting.parameters import VaryMask
    from gammafit.core.shared.typing import FloatArray


def model_counts(state: FitState, region: ChannelRange) -> FloatArray:
    """Background plus every peak, evaluated at each channel of ``region``."""
    channels = region.channels()
    model = state.intercept + state.slope * region.offsets()
    for peak in state.peaks:
        model = model + gaussian(channels, peak.height, peak.centroid, state.fwhm(peak))
    return model


def weighted_residuals(
    counts: FloatArray, model: FloatArray, sigma: FloatArray
) -> FloatArray:
    """``(counts - model) / sigma``, zero where sigma is zero."""
    residuals = np.zeros_like(model)
    valid = sigma != 0.0
    residuals[valid] = (counts[valid] - model[valid]) / sigma[valid]
    return residuals


@dataclass
class RegionResidualModel:
    """Residual and Jacobian callbacks for one cycle of a region fit.

    The model owns the only mutable fit state of a cycle: every call with a
    new parameter vector replaces ``state`` with the snapshot built from that
    vector. Residuals and Jacobian are computed together and cached, because
    the optimizer asks for both at the same point.
    """

    spectrum: Spectrum
    region: ChannelRange
    state: FitState
    mask: VaryMask

    _counts: FloatArray = field(init=False, repr=False)
    _sigma: FloatArray = field(init=False, repr=False)
    _inv_sigma: FloatArray = field(init=False, repr=False)
    _channels: FloatArray = field(init=False, repr=False)
    _offsets: FloatArray = field(init=False, repr=False)
    _cache_hash: int | None = field(default=None, init=False, repr=False)
    _residuals: FloatArray | None = field(default=None, init=False, repr=False)
    _jacobian: FloatArray | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        """Pre-compute the region data, which does not change during a cycle."""
        self._counts = self.spectrum.region_values(self.region)
        self._sigma = np.asarray(self.spectrum.region_sigma(self.region), dtype=float)
        self._inv_sigma = np.zeros_like(self._sigma)
        valid = self._sigma != 0.0
        self._inv_sigma[valid] = 1.0 / self._sigma[valid]
        self._channels = self.region.channels()
        self._offsets = self.region.offsets()

    @property
    def n_points(self) -> int:
        return self.region.width

    @property
    def n_params(self) -> int:
        return self.mask.vary_count

    def initial_vector(self) -> FloatArray:
        return extract_vector(self.state, self.mask)

    def _update_state(self, x: FloatArray) -> None:
        """Write ``x`` into the state and refresh residuals and Jacobian."""
        x = np.asarray(x, dtype=float)
        cache_hash = hash(x.tobytes())
        if self._cache_hash == cache_hash:
            return

        state = write_vector(self.state, self.mask, x)
        terms = [
            gaussian_terms(self._channels, peak.height, peak.centroid, state.fwhm(peak))
            for peak in state.peaks
        ]
        model = state.intercept + state.slope * self._offsets
        for peak_terms in terms:
            model = model + peak_terms.value

        slots = self.mask.slots()
        jacobian = np.empty((self.n_points, len(slots)))
        for column, slot in enumerate(slots):
            if slot.kind is ParameterKind.INTERCEPT:
                jacobian[:, column] = 1.0
            elif slot.kind is ParameterKind.SLOPE:
                jacobian[:, column] = self._offsets
            elif slot.kind is ParameterKind.AVG_WIDTH:
                jacobian[:, column] = sum(t.d_width for t in terms) if terms else 0.0
            else:
                assert slot.peak_index is not None
                peak_terms = terms[slot.peak_index]
                if slot.kind is ParameterKind.HEIGHT:
                    jacobian[:, column] = peak_terms.d_height
                elif slot.kind is ParameterKind.CENTROID:
                    jacobian[:, column] = peak_terms.d_centroid
                else:
                    jacobian[:, column] = peak_terms.d_width

        # residual = target - model, so every column is the negated model derivative
        jacobian *= -self._inv_sigma[:, np.newaxis]

        self.state = state
        self._cache_hash = cache_hash
        self._residuals = weighted_residuals(self._counts, model, self._sigma)
        self._jacobian = jacobian

    def residuals(self, x: FloatArray) -> FloatArray:
        """Weighted residuals at ``x``."""
        self._update_state(x)
        assert self._residuals is not None
        return self._residuals

    def jacobian(self, x: FloatArray) -> FloatArray:
        """Analytic Jacobian of the residuals at ``x``, one column per varying scalar."""
        self._update_state(x)
        assert self._jacobian is not None
        return self._jacobian

    def chi_squared(self, x: FloatArray) -> float:
        """Sum of squared residuals divided by (region width - vary count)."""
        residuals = self.residuals(x)
        dof = self.n_points - self.n_params
        return float(np.sum(residuals * residuals) / dof)
