"""Job files describing one region fit.

A job file is TOML::

    counts_file = "spectrum.txt"   # or: counts = [12, 15, ...]
    first_channel = 0

    [region]
    first = 20
    last = 80

    [energy]
    constant = 0.0
    linear = 0.5
    mode = "linear"

    [width]
    constant = 5.0
    linear = 0.0
    mode = "linear"

    [[peaks]]
    channel = 50.0

    [[peaks]]
    energy = 511.0
    fixed = true

    [fitting]
    max_cycles = 10

The counts file holds one count per line, optionally followed by the count
uncertainty in a second column.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from gammafit.core.domain.calibration import EnergyEquation, WidthEquation
from gammafit.core.domain.config import FitInputs, FitParameters, OutputConfig
from gammafit.core.domain.peaks import Peak
from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum
from gammafit.core.shared.exceptions import ConfigError, DataIOError


class RegionSpec(BaseModel):
    """Channels to fit."""

    model_config = ConfigDict(extra="forbid")

    first: int = Field(description="First region channel")
    last: int = Field(description="Last region channel")


class PeakSpec(BaseModel):
    """Candidate peak, given by channel or by energy."""

    model_config = ConfigDict(extra="forbid")

    channel: float | None = Field(default=None, description="Peak channel")
    energy: float | None = Field(default=None, description="Peak energy (keV)")
    energy_uncertainty: float = Field(default=0.0, ge=0.0, description="Energy uncertainty")
    fixed: bool = Field(default=False, description="Hold the centroid during the fit")

    @model_validator(mode="after")
    def validate_position(self) -> PeakSpec:
        """Exactly one of channel and energy must be given."""
        if (self.channel is None) == (self.energy is None):
            msg = "a peak needs exactly one of 'channel' or 'energy'"
            raise ValueError(msg)
        return self

    def to_peak(self) -> Peak:
        if self.channel is not None:
            return Peak.from_channel(self.channel, fixed_centroid=self.fixed)
        assert self.energy is not None
        return Peak.from_energy(
            self.energy, energy_uncertainty=self.energy_uncertainty, fixed_centroid=self.fixed
        )


class JobSpec(BaseModel):
    """Validated content of a job file."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, description="Job name used in reports")
    counts: list[int] | None = Field(default=None, description="Inline channel counts")
    sigma: list[float] | None = Field(default=None, description="Inline count uncertainties")
    counts_file: Path | None = Field(default=None, description="Whitespace-separated counts")
    first_channel: int = Field(default=0, description="Channel number of the first count")
    region: RegionSpec
    energy: EnergyEquation = Field(default_factory=EnergyEquation)
    width: WidthEquation = Field(default_factory=WidthEquation)
    peaks: list[PeakSpec] = Field(default_factory=list)
    fitting: FitParameters = Field(default_factory=FitParameters)
    output: OutputConfig | None = Field(default=None)

    @model_validator(mode="after")
    def validate_counts(self) -> JobSpec:
        """Counts come either inline or from a file."""
        if (self.counts is None) == (self.counts_file is None):
            msg = "give exactly one of 'counts' or 'counts_file'"
            raise ValueError(msg)
        if self.sigma is not None and self.counts is None:
            msg = "'sigma' requires inline 'counts'"
            raise ValueError(msg)
        if self.sigma is not None and self.counts is not None:
            if len(self.sigma) != len(self.counts):
                msg = f"'sigma' has {len(self.sigma)} values, 'counts' has {len(self.counts)}"
                raise ValueError(msg)
        return self


@dataclass(frozen=True)
class FitJob:
    """A loaded job: the fit inputs and the output settings it asks for."""

    name: str
    inputs: FitInputs
    output: OutputConfig | None = None


def read_counts(path: Path, first_channel: int = 0) -> Spectrum:
    """Read a plain counts column (and optional sigma column).

    Raises:
        DataIOError: The file is missing or not numeric
    """
    if not path.exists():
        msg = f"Counts file not found: {path}"
        raise DataIOError(msg)
    try:
        table = np.loadtxt(path, ndmin=2, comments="#")
    except ValueError as e:
        msg = f"Cannot read counts from {path}: {e}"
        raise DataIOError(msg) from e
    if table.size == 0:
        msg = f"No counts in {path}"
        raise DataIOError(msg)
    counts = np.rint(table[:, 0]).astype(np.int64)
    sigma = table[:, 1] if table.shape[1] > 1 else None
    return Spectrum.from_counts(counts, first_channel=first_channel, sigma=sigma)


def _merge_parameters(job: FitParameters, defaults: FitParameters | None) -> FitParameters:
    if defaults is None:
        return job
    return defaults.model_copy(update=job.model_dump(exclude_unset=True))


def load_job(path: Path, defaults: FitParameters | None = None) -> FitJob:
    """Load and validate a job file.

    A relative ``counts_file`` is resolved against the job file's directory.
    Settings given in the job's ``[fitting]`` table override ``defaults``.

    Raises:
        FileNotFoundError: The job file does not exist
        ConfigError: The job file is invalid
        DataIOError: The counts cannot be read
    """
    if not path.exists():
        msg = f"Job file not found: {path}"
        raise FileNotFoundError(msg)
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
        spec = JobSpec.model_validate(data)
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e
    except ValidationError as e:
        msg = f"Invalid job file {path}:\n{e}"
        raise ConfigError(msg) from e

    if spec.counts_file is not None:
        counts_path = spec.counts_file
        if not counts_path.is_absolute():
            counts_path = path.parent / counts_path
        spectrum = read_counts(counts_path, spec.first_channel)
    else:
        assert spec.counts is not None
        spectrum = Spectrum.from_counts(
            spec.counts, first_channel=spec.first_channel, sigma=spec.sigma
        )

    inputs = FitInputs(
        spectrum=spectrum,
        region=ChannelRange(spec.region.first, spec.region.last),
        energy=spec.energy,
        width=spec.width,
        peaks=tuple(peak.to_peak() for peak in spec.peaks),
        parameters=_merge_parameters(spec.fitting, defaults),
    )
    return FitJob(name=spec.name or path.stem, inputs=inputs, output=spec.output)
