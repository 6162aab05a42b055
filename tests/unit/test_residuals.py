"""Tests for the region residual model and its analytic Jacobian."""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from gammafit.core.constants import MU_FACTOR
from gammafit.core.domain.config import PeakWidthMode
from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum
from gammafit.core.domain.state import FitState, PeakState
from gammafit.core.fitting.parameters import VaryMask
from gammafit.core.fitting.residuals import RegionResidualModel, model_counts, weighted_residuals


def finite_difference_jacobian(func, x, step=1e-6):
    columns = []
    for i in range(x.size):
        dx = np.zeros_like(x)
        dx[i] = step * max(1.0, abs(x[i]))
        columns.append((func(x + dx) - func(x - dx)) / (2.0 * dx[i]))
    return np.column_stack(columns)


@pytest.fixture
def jacobian_region():
    return ChannelRange(30, 70)


@pytest.fixture
def peak_state():
    return FitState(
        intercept=11.0,
        slope=0.05,
        avg_width=5.2,
        contains_511kev=False,
        initial_width=5.0,
        peaks=(PeakState(height=950.0, centroid=50.3),),
    )


class TestWeightedResiduals:
    def test_zero_sigma_gives_zero_residual(self):
        residuals = weighted_residuals(
            np.array([10.0, 20.0]), np.array([8.0, 8.0]), np.array([2.0, 0.0])
        )
        assert_allclose(residuals, [1.0, 0.0])


class TestRegionResidualModel:
    """Tests for residual and Jacobian callbacks."""

    def test_model_counts_include_background(self, jacobian_region, peak_state):
        model = model_counts(peak_state, jacobian_region)
        assert model.size == jacobian_region.width
        assert model[0] == pytest.approx(11.0, abs=1e-6)
        peak = 950.0 * np.exp(-((0.3 * MU_FACTOR / 5.2) ** 2))
        assert model[20] == pytest.approx(11.0 + 0.05 * 20 + peak)

    def test_residuals_at_initial_vector(self, noiseless_spectrum, jacobian_region, peak_state):
        mask = VaryMask.for_state(peak_state, PeakWidthMode.VARIES)
        model = RegionResidualModel(noiseless_spectrum, jacobian_region, peak_state, mask)
        x0 = model.initial_vector()
        counts = noiseless_spectrum.region_values(jacobian_region)
        sigma = noiseless_spectrum.region_sigma(jacobian_region)
        expected = (counts - model_counts(peak_state, jacobian_region)) / sigma
        assert_allclose(model.residuals(x0), expected)
        assert model.n_points == 41
        assert model.n_params == 5

    def test_jacobian_matches_finite_differences(
        self, noiseless_spectrum, jacobian_region, peak_state
    ):
        mask = VaryMask.for_state(peak_state, PeakWidthMode.VARIES)
        model = RegionResidualModel(noiseless_spectrum, jacobian_region, peak_state, mask)
        x0 = model.initial_vector()
        numeric = finite_difference_jacobian(lambda x: model.residuals(x).copy(), x0)
        analytic = model.jacobian(x0)
        assert analytic.shape == (41, 5)
        assert_allclose(analytic, numeric, rtol=1e-5, atol=1e-7)

    def test_jacobian_with_511_width(self, noiseless_spectrum, jacobian_region):
        state = FitState(
            intercept=10.0,
            slope=0.0,
            avg_width=4.0,
            contains_511kev=True,
            initial_width=4.0,
            peaks=(
                PeakState(height=900.0, centroid=49.5, add_width_511=1.2),
                PeakState(height=100.0, centroid=60.0),
            ),
        )
        mask = VaryMask.for_state(state, PeakWidthMode.VARIES)
        assert mask.vary_count == 8
        model = RegionResidualModel(noiseless_spectrum, jacobian_region, state, mask)
        x0 = model.initial_vector()
        numeric = finite_difference_jacobian(lambda x: model.residuals(x).copy(), x0)
        assert_allclose(model.jacobian(x0), numeric, rtol=1e-5, atol=1e-7)

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    @pytest.mark.parametrize("mode", ["varies", "fixed"])
    def test_jacobian_at_random_vectors(self, noiseless_spectrum, jacobian_region, seed, mode):
        rng = np.random.default_rng(seed)
        state = FitState(
            intercept=rng.uniform(5.0, 15.0),
            slope=rng.uniform(-0.1, 0.1),
            avg_width=rng.uniform(5.0, 7.0),
            contains_511kev=True,
            initial_width=5.0,
            peaks=(
                PeakState(
                    height=rng.uniform(100.0, 1000.0),
                    centroid=rng.uniform(46.0, 54.0),
                    add_width_511=rng.uniform(0.5, 2.0),
                ),
                PeakState(height=rng.uniform(100.0, 1000.0), centroid=rng.uniform(54.0, 58.0)),
            ),
        )
        channels = jacobian_region.channels()
        for peak in state.peaks:
            mu = (channels - peak.centroid) * MU_FACTOR / state.fwhm(peak)
            assert np.max(np.abs(mu)) <= 10.0

        mask = VaryMask.for_state(state, PeakWidthMode(mode))
        model = RegionResidualModel(noiseless_spectrum, jacobian_region, state, mask)
        x = model.initial_vector()
        numeric = finite_difference_jacobian(lambda v: model.residuals(v).copy(), x)
        assert_allclose(model.jacobian(x), numeric, rtol=1e-5, atol=1e-6)

    def test_zero_sigma_channels_have_zero_rows(self, jacobian_region, peak_state):
        counts = np.full(100, 20)
        sigma = np.full(100, 4.0)
        sigma[40] = 0.0
        spectrum = Spectrum.from_counts(counts, sigma=sigma)
        mask = VaryMask.for_state(peak_state, PeakWidthMode.VARIES)
        model = RegionResidualModel(spectrum, jacobian_region, peak_state, mask)
        jacobian = model.jacobian(model.initial_vector())
        assert_allclose(jacobian[40 - jacobian_region.first], 0.0)

    def test_state_follows_evaluated_vector(self, noiseless_spectrum, jacobian_region, peak_state):
        mask = VaryMask.for_state(peak_state, PeakWidthMode.VARIES)
        model = RegionResidualModel(noiseless_spectrum, jacobian_region, peak_state, mask)
        x = model.initial_vector()
        x[4] = 51.0
        model.residuals(x)
        assert model.state.peaks[0].centroid == 51.0
        assert peak_state.peaks[0].centroid == 50.3

    def test_chi_squared_uses_degrees_of_freedom(
        self, noiseless_spectrum, jacobian_region, peak_state
    ):
        mask = VaryMask.for_state(peak_state, PeakWidthMode.VARIES)
        model = RegionResidualModel(noiseless_spectrum, jacobian_region, peak_state, mask)
        x0 = model.initial_vector()
        residuals = model.residuals(x0)
        assert model.chi_squared(x0) == pytest.approx(np.sum(residuals**2) / (41 - 5))
