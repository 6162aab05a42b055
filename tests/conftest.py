"""Pytest fixtures for gammafit tests."""

import math

import numpy as np
import pytest

from gammafit.core.domain.calibration import EnergyEquation, WidthEquation
from gammafit.core.domain.config import FitInputs, FitParameters
from gammafit.core.domain.peaks import Peak
from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum

N_CHANNELS = 128
BACKGROUND = 10.0
HEIGHT = 1000.0
CENTROID = 50.0
FWHM = 5.0


def gaussian_counts(channels, height, centroid, fwhm):
    return height * np.exp(-4.0 * math.log(2.0) * (channels - centroid) ** 2 / fwhm**2)


def synthetic_counts(
    peaks=((HEIGHT, CENTROID, FWHM),),
    background=BACKGROUND,
    n_channels=N_CHANNELS,
    seed=None,
):
    """Expected counts (or Poisson draws when ``seed`` is given) of Gaussian peaks."""
    channels = np.arange(n_channels, dtype=float)
    expected = np.full(n_channels, background)
    for height, centroid, fwhm in peaks:
        expected += gaussian_counts(channels, height, centroid, fwhm)
    if seed is None:
        return np.rint(expected).astype(np.int64)
    rng = np.random.default_rng(seed)
    return rng.poisson(expected).astype(np.int64)


@pytest.fixture
def region():
    """Region around the synthetic peak."""
    return ChannelRange(20, 80)


@pytest.fixture
def width_equation():
    """Width calibration returning the synthetic FWHM everywhere."""
    return WidthEquation(constant=FWHM, linear=0.0)


@pytest.fixture
def energy_equation():
    """Half a keV per channel."""
    return EnergyEquation(constant=0.0, linear=0.5)


@pytest.fixture
def noiseless_spectrum():
    """Single peak on a flat background, rounded expected counts."""
    return Spectrum.from_counts(synthetic_counts())


@pytest.fixture
def noisy_spectrum():
    """Single peak on a flat background with Poisson noise (seed 42)."""
    return Spectrum.from_counts(synthetic_counts(seed=42))


@pytest.fixture
def single_peak_inputs(noisy_spectrum, region, energy_equation, width_equation):
    """Fit inputs with one candidate peak near the true centroid."""
    return FitInputs(
        spectrum=noisy_spectrum,
        region=region,
        energy=energy_equation,
        width=width_equation,
        peaks=(Peak.from_channel(49.0),),
        parameters=FitParameters(max_cycles=1),
    )


@pytest.fixture
def temp_output_dir(tmp_path):
    """Create a temporary output directory."""
    output_dir = tmp_path / "test_output"
    output_dir.mkdir()
    return output_dir


@pytest.fixture
def make_counts():
    """Factory for synthetic count arrays."""
    return synthetic_counts
