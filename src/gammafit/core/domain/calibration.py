"""Energy and width calibration equations.

Both equations are consumed, never fitted, by the region-fit engine. Each
offers a raising accessor and a ``try_*`` accessor that returns a
:class:`CalibrationResult`, so callers that can live with a default make the
fallback explicit instead of catching exceptions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from gammafit.core.shared.exceptions import (
    CalibrationError,
    ConstantCalibrationError,
    InvalidWidthError,
    NegativeDiscriminantError,
)


class EnergyMode(str, Enum):
    """Form of the energy calibration polynomial."""

    LINEAR = "linear"
    QUADRATIC = "quadratic"


class WidthMode(str, Enum):
    """Form of the peak width calibration."""

    LINEAR = "linear"
    SQUARE_ROOT = "square_root"


@dataclass(frozen=True, slots=True)
class CalibrationResult:
    """Outcome of a best-effort calibration lookup.

    Attributes:
        value: Calibrated value, or the fallback when the lookup failed
        valid: True when ``value`` came from the equation
        fallback_used: True when ``value`` is the caller's fallback
        reason: Failure message when the lookup failed
    """

    value: float
    valid: bool
    fallback_used: bool = False
    reason: str | None = None

    @classmethod
    def ok(cls, value: float) -> CalibrationResult:
        return cls(value=value, valid=True)

    @classmethod
    def failed(cls, error: CalibrationError, fallback: float | None) -> CalibrationResult:
        if fallback is None:
            return cls(value=math.nan, valid=False, reason=str(error))
        return cls(value=fallback, valid=False, fallback_used=True, reason=str(error))


def _signed(value: float) -> str:
    return f"+ {value}" if value >= 0 else f"- {abs(value)}"


class EnergyEquation(BaseModel):
    """Energy calibration ``e(x) = a + b*x (+ c*x^2)``, energies in keV."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    constant: float = Field(default=0.0, description="Constant coefficient a (keV)")
    linear: float = Field(default=1.0, description="Linear coefficient b (keV/channel)")
    quadratic: float = Field(default=0.0, description="Quadratic coefficient c")
    mode: EnergyMode = Field(default=EnergyMode.LINEAR, description="Polynomial form")
    chi_squared: float = Field(default=0.0, description="Chi-squared of the calibration fit")

    @property
    def effective_quadratic(self) -> float:
        """Quadratic coefficient actually in use (0 in linear mode)."""
        return self.quadratic if self.mode is EnergyMode.QUADRATIC else 0.0

    def energy_of(self, channel: float) -> float:
        """Energy (keV) at a channel."""
        return self.constant + channel * (self.linear + channel * self.effective_quadratic)

    def channel_of(self, energy: float) -> float:
        """Channel of an energy.

        Raises:
            ConstantCalibrationError: Linear form with zero slope
            NegativeDiscriminantError: Quadratic form has no real root
        """
        c = self.effective_quadratic
        if c == 0.0:
            if self.linear == 0.0:
                raise ConstantCalibrationError("energy is constant")
            return (energy - self.constant) / self.linear
        discriminant = self.linear * self.linear - 4.0 * c * (self.constant - energy)
        if discriminant < 0.0:
            raise NegativeDiscriminantError("b^2-4ac is negative")
        return max(0.0, (math.sqrt(discriminant) - self.linear) / (2.0 * c))

    def try_channel_of(self, energy: float, fallback: float | None = None) -> CalibrationResult:
        """Channel of an energy, with the failure reported in the result."""
        try:
            return CalibrationResult.ok(self.channel_of(energy))
        except CalibrationError as error:
            return CalibrationResult.failed(error, fallback)

    def display(self) -> str:
        if self.effective_quadratic == 0.0:
            return f"e(x) = {self.constant} {_signed(self.linear)}X"
        return f"e(x) = {self.constant} {_signed(self.linear)}X {_signed(self.quadratic)}X2"


class WidthEquation(BaseModel):
    """Peak width (FWHM, channels) calibration.

    ``w(x) = alpha + beta*x`` in linear mode, ``sqrt(alpha + beta*x)`` in
    square-root mode.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    constant: float = Field(default=1.0, description="Constant coefficient alpha")
    linear: float = Field(default=0.0, description="Linear coefficient beta")
    mode: WidthMode = Field(default=WidthMode.LINEAR, description="Functional form")
    chi_squared: float = Field(default=0.0, description="Chi-squared of the calibration fit")

    def peak_width(self, channel: float) -> float:
        """Peak FWHM in channels at a channel.

        Raises:
            InvalidWidthError: alpha + beta*x is negative
        """
        width = self.constant + self.linear * channel
        if width < 0.0:
            raise InvalidWidthError("peakwidth negative or undefined")
        if self.mode is WidthMode.SQUARE_ROOT:
            width = math.sqrt(width)
        return width

    def try_peak_width(self, channel: float, fallback: float | None = None) -> CalibrationResult:
        """Peak width at a channel, with the failure reported in the result."""
        try:
            return CalibrationResult.ok(self.peak_width(channel))
        except CalibrationError as error:
            return CalibrationResult.failed(error, fallback)

    def display(self) -> str:
        if self.mode is WidthMode.LINEAR:
            return f"w(x) = {self.constant} {_signed(self.linear)}X"
        return f"w(x) = sqrt({self.constant} {_signed(self.linear)}X)"
