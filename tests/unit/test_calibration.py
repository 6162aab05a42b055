"""Tests for energy and width calibrations."""

import math

import pytest
from pydantic import ValidationError

from gammafit.core.domain.calibration import EnergyEquation, EnergyMode, WidthEquation, WidthMode
from gammafit.core.shared.exceptions import (
    ConstantCalibrationError,
    InvalidWidthError,
    NegativeDiscriminantError,
)


class TestEnergyEquation:
    """Tests for the energy calibration."""

    def test_linear_energy_and_inverse(self):
        eq = EnergyEquation(constant=2.0, linear=0.5)
        assert eq.energy_of(100.0) == pytest.approx(52.0)
        assert eq.channel_of(52.0) == pytest.approx(100.0)

    def test_quadratic_term_ignored_in_linear_mode(self):
        eq = EnergyEquation(constant=0.0, linear=1.0, quadratic=0.01)
        assert eq.effective_quadratic == 0.0
        assert eq.energy_of(10.0) == pytest.approx(10.0)

    def test_quadratic_energy_and_inverse(self):
        eq = EnergyEquation(constant=1.0, linear=0.5, quadratic=1e-4, mode=EnergyMode.QUADRATIC)
        channel = 300.0
        energy = eq.energy_of(channel)
        assert energy == pytest.approx(1.0 + 150.0 + 9.0)
        assert eq.channel_of(energy) == pytest.approx(channel)

    def test_quadratic_root_clamped_at_zero(self):
        eq = EnergyEquation(constant=10.0, linear=1.0, quadratic=0.01, mode=EnergyMode.QUADRATIC)
        assert eq.channel_of(5.0) == 0.0

    def test_constant_calibration_raises(self):
        eq = EnergyEquation(constant=5.0, linear=0.0)
        with pytest.raises(ConstantCalibrationError):
            eq.channel_of(10.0)

    def test_negative_discriminant_raises(self):
        eq = EnergyEquation(constant=0.0, linear=1.0, quadratic=-1.0, mode=EnergyMode.QUADRATIC)
        with pytest.raises(NegativeDiscriminantError):
            eq.channel_of(10.0)

    def test_try_channel_of_reports_failure(self):
        eq = EnergyEquation(constant=5.0, linear=0.0)
        result = eq.try_channel_of(10.0)
        assert not result.valid
        assert not result.fallback_used
        assert math.isnan(result.value)
        assert result.reason

        fallback = eq.try_channel_of(10.0, fallback=-1.0)
        assert fallback.value == -1.0
        assert fallback.fallback_used

    def test_try_channel_of_success(self):
        result = EnergyEquation(linear=2.0).try_channel_of(10.0)
        assert result.valid
        assert result.value == pytest.approx(5.0)

    def test_equation_is_frozen(self):
        eq = EnergyEquation()
        with pytest.raises(ValidationError):
            eq.linear = 2.0  # type: ignore[misc]

    def test_display(self):
        assert EnergyEquation(constant=1.0, linear=0.5).display() == "e(x) = 1.0 + 0.5X"


class TestWidthEquation:
    """Tests for the width calibration."""

    def test_linear_width(self):
        eq = WidthEquation(constant=2.0, linear=0.01)
        assert eq.peak_width(100.0) == pytest.approx(3.0)

    def test_square_root_width(self):
        eq = WidthEquation(constant=4.0, linear=0.05, mode=WidthMode.SQUARE_ROOT)
        assert eq.peak_width(100.0) == pytest.approx(3.0)

    def test_negative_width_raises(self):
        eq = WidthEquation(constant=-1.0, linear=0.0)
        with pytest.raises(InvalidWidthError):
            eq.peak_width(10.0)

    def test_try_peak_width_fallback(self):
        eq = WidthEquation(constant=-1.0, linear=0.0)
        result = eq.try_peak_width(10.0, fallback=1.0)
        assert result.value == 1.0
        assert result.fallback_used
        assert not result.valid

    def test_display(self):
        eq = WidthEquation(constant=4.0, linear=-0.5, mode=WidthMode.SQUARE_ROOT)
        assert eq.display() == "w(x) = sqrt(4.0 - 0.5X)"
