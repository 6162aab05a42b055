"""Domain configuration models for gammafit."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gammafit.core.domain.calibration import EnergyEquation, WidthEquation
from gammafit.core.domain.peaks import Peak
from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum
from gammafit.core.shared.exceptions import InputValidationError

OutputFormat = Literal["json", "txt"]
LogFormat = Literal["text", "json"]


class PeakWidthMode(str, Enum):
    """Whether the shared average peak width is fitted or held."""

    VARIES = "varies"
    FIXED = "fixed"


class ConvergenceCriteria(str, Enum):
    """Solver tolerance preset."""

    LARGER = "larger"
    SMALLER = "smaller"
    LARGER_INC = "larger_inc"


class FitParameters(BaseModel):
    """Settings of one region fit.

    The model is frozen so every region fit owns an immutable copy.

    Example:
        [fitting]
        max_cycles = 10
        max_output_fits = 1
        max_peaks = 10
        max_residual_threshold = 20.0
        peak_width_mode = "varies"
        convergence_criteria = "larger"
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_cycles: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description="Maximum number of fit cycles per region.",
    )
    max_output_fits: Annotated[int, Field(ge=1)] = Field(
        default=1,
        description="Number of best fits returned.",
    )
    max_peaks: Annotated[int, Field(ge=1)] = Field(
        default=10,
        description="Maximum number of peaks in the model.",
    )
    max_residual_threshold: float = Field(
        default=20.0,
        description="Smallest weighted residual that triggers adding a peak.",
    )
    peak_width_mode: PeakWidthMode = Field(
        default=PeakWidthMode.VARIES,
        description="Fit the average peak width ('varies') or hold it ('fixed').",
    )
    convergence_criteria: ConvergenceCriteria = Field(
        default=ConvergenceCriteria.LARGER,
        description="Solver tolerance preset: 'larger', 'smaller' or 'larger_inc'.",
    )


class OutputConfig(BaseModel):
    """Configuration for output files."""

    model_config = ConfigDict(extra="forbid")

    directory: Path = Field(default=Path("Fits"), description="Output directory for results.")
    formats: list[OutputFormat] = Field(
        default_factory=lambda: ["json", "txt"],
        description="Output formats to generate.",
    )
    points_per_channel: Annotated[int, Field(ge=1, le=100)] = Field(
        default=4,
        description="Curve samples per channel in exported curves.",
    )
    log_format: LogFormat = Field(
        default="text",
        description="Log file format: 'text' or 'json' (JSON lines).",
    )

    @field_validator("formats")
    @classmethod
    def validate_formats(cls, v: list[OutputFormat]) -> list[OutputFormat]:
        """Drop duplicate formats, keeping order."""
        return list(dict.fromkeys(v))


class GammaFitConfig(BaseModel):
    """Main configuration for gammafit.

    Example TOML:
        [fitting]
        max_cycles = 10
        max_output_fits = 3

        [output]
        directory = "Fits"
        formats = ["json", "txt"]
    """

    model_config = ConfigDict(extra="forbid")

    fitting: FitParameters = Field(default_factory=FitParameters)
    output: OutputConfig = Field(default_factory=OutputConfig)


@dataclass(frozen=True)
class FitInputs:
    """Everything one region fit needs.

    Attributes:
        spectrum: Counts and count uncertainties
        region: Channels to fit
        energy: Energy calibration
        width: Peak width calibration
        peaks: Candidate peaks
        parameters: Fit settings
    """

    spectrum: Spectrum
    region: ChannelRange
    energy: EnergyEquation = field(default_factory=EnergyEquation)
    width: WidthEquation = field(default_factory=WidthEquation)
    peaks: tuple[Peak, ...] = ()
    parameters: FitParameters = field(default_factory=FitParameters)

    def __post_init__(self) -> None:
        object.__setattr__(self, "peaks", tuple(self.peaks))
        if not self.spectrum.covers(self.region):
            msg = (
                f"Region {self.region.display()} is outside the spectrum "
                f"[{self.spectrum.first_channel}, {self.spectrum.last_channel}]"
            )
            raise InputValidationError(msg)

    def calibrated_peaks(self) -> list[Peak]:
        """Candidate peaks with both representations derived from the energy calibration."""
        return [peak.with_calibration(self.energy) for peak in self.peaks]
