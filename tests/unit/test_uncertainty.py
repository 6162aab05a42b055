"""Tests for uncertainty propagation."""

import math

import numpy as np
import pytest

from gammafit.core.constants import AREA_FACTOR_SQUARED
from gammafit.core.domain.calibration import EnergyEquation, EnergyMode
from gammafit.core.domain.config import PeakWidthMode
from gammafit.core.domain.state import FitState, PeakState
from gammafit.core.fitting.parameters import VaryMask
from gammafit.core.fitting.uncertainty import (
    StateUncertainty,
    area_variance,
    energy_uncertainty,
    fwhm_variance,
    propagate_uncertainty,
)


@pytest.fixture
def state():
    return FitState(
        intercept=10.0,
        slope=0.1,
        avg_width=5.0,
        contains_511kev=False,
        initial_width=5.0,
        peaks=(PeakState(height=1000.0, centroid=50.0),),
    )


@pytest.fixture
def covariance():
    # slots: intercept, slope, avg_width, height, centroid
    cov = np.diag([1.0, 4.0, 0.09, 100.0, 0.01])
    cov[0, 1] = cov[1, 0] = 0.3
    cov[2, 3] = cov[3, 2] = 0.5
    return cov


class TestFormulas:
    def test_fwhm_variance(self):
        assert fwhm_variance(0.2, 0.3, 0.01) == pytest.approx(0.04 + 0.09 + 0.02)

    def test_area_variance(self):
        value = area_variance(100.0, 5.0, 2.0, 0.01, 0.1, 0.2)
        expected = AREA_FACTOR_SQUARED * (1e4 * 0.01 + 25.0 * 4.0 + 2 * 5.0 * 100.0 * 0.3)
        assert value == pytest.approx(expected)

    def test_energy_uncertainty_uses_local_slope(self):
        eq = EnergyEquation(constant=0.0, linear=0.5, quadratic=1e-3, mode=EnergyMode.QUADRATIC)
        assert energy_uncertainty(eq, 100.0, 0.2) == pytest.approx((0.5 + 0.2) * 0.2)

    def test_energy_uncertainty_keeps_quadratic_in_linear_mode(self):
        eq = EnergyEquation(constant=0.0, linear=0.5, quadratic=1e-3)
        assert eq.mode is EnergyMode.LINEAR
        assert energy_uncertainty(eq, 100.0, 0.2) == pytest.approx((0.5 + 0.2) * 0.2)
        assert energy_uncertainty(eq, 0.0, 0.2) == pytest.approx(0.1)


class TestPropagateUncertainty:
    """Tests for mapping a covariance onto a state."""

    def test_background_and_peak(self, state, covariance):
        mask = VaryMask.for_state(state, PeakWidthMode.VARIES)
        energy = EnergyEquation(constant=0.0, linear=0.5)
        result = propagate_uncertainty(state, mask, covariance, energy)

        assert result.intercept == pytest.approx(1.0)
        assert result.slope == pytest.approx(2.0)
        assert result.background_covariance == pytest.approx(0.3)
        assert result.avg_width == pytest.approx(0.3)

        peak = result.peaks[0]
        assert peak.height == pytest.approx(10.0)
        assert peak.centroid == pytest.approx(0.1)
        assert peak.add_width_511 == 0.0
        assert peak.energy == pytest.approx(0.05)
        assert peak.fwhm == pytest.approx(0.3)
        expected_area = AREA_FACTOR_SQUARED * (
            1000.0**2 * 0.09 + 25.0 * 100.0 + 2.0 * 5.0 * 1000.0 * 0.5
        )
        assert peak.area == pytest.approx(math.sqrt(expected_area))

    def test_fixed_parameters_have_zero_uncertainty(self, state):
        mask = VaryMask.for_state(state, PeakWidthMode.FIXED)
        cov = np.diag([1.0, 1.0, 4.0, 0.04])
        result = propagate_uncertainty(state, mask, cov, EnergyEquation())
        assert result.avg_width == 0.0
        assert result.peaks[0].fwhm == 0.0
        assert result.peaks[0].height == pytest.approx(2.0)
        assert result.peaks[0].centroid == pytest.approx(0.2)

    def test_negative_variance_clamped_to_zero(self, state):
        mask = VaryMask.for_state(state, PeakWidthMode.VARIES)
        cov = np.diag([1.0, 1.0, 0.01, 1.0, -0.5])
        cov[2, 3] = cov[3, 2] = -1000.0
        result = propagate_uncertainty(state, mask, cov, EnergyEquation())
        assert result.peaks[0].centroid == 0.0
        assert result.peaks[0].area == 0.0

    def test_shape_mismatch_rejected(self, state):
        mask = VaryMask.for_state(state, PeakWidthMode.VARIES)
        with pytest.raises(ValueError, match="does not match"):
            propagate_uncertainty(state, mask, np.eye(3), EnergyEquation())

    def test_zeros(self):
        zeros = StateUncertainty.zeros(2)
        assert len(zeros.peaks) == 2
        assert zeros.peaks[0].area == 0.0
