"""Tests for spectra and counting uncertainties."""

import math

import numpy as np
import pytest
from numpy.testing import assert_allclose

from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum, counting_uncertainties


class TestCountingUncertainties:
    """Tests for the per-channel uncertainty estimate."""

    def test_high_counts_use_square_root(self):
        counts = np.array([100, 400, 900, 1600, 2500, 3600])
        assert_allclose(counting_uncertainties(counts), np.sqrt(counts))

    def test_interior_low_count_uses_weighted_mean(self):
        counts = np.array([100, 100, 4, 100, 100, 100])
        sigma = counting_uncertainties(counts)
        expected = math.sqrt((100 + 100 + 2 * (100 + 100) + 3 * 4) / 9.0)
        assert sigma[2] == pytest.approx(expected)

    def test_leading_low_counts_use_forward_mean(self):
        counts = np.array([1, 2, 3, 100, 100, 100])
        sigma = counting_uncertainties(counts)
        assert sigma[0] == pytest.approx(math.sqrt((1 + 2 + 3) / 3.0))
        assert sigma[1] == pytest.approx(math.sqrt((2 + 3 + 100) / 3.0))

    def test_trailing_low_counts_use_backward_mean(self):
        counts = np.array([100, 100, 100, 100, 5, 6])
        sigma = counting_uncertainties(counts)
        assert sigma[4] == pytest.approx(math.sqrt((100 + 100 + 5) / 3.0))
        assert sigma[5] == pytest.approx(math.sqrt((100 + 5 + 6) / 3.0))

    def test_empty_spectrum_uses_fallbacks(self):
        sigma = counting_uncertainties(np.zeros(8, dtype=int))
        assert_allclose(sigma[:2], 0.5773503)
        assert_allclose(sigma[2:6], 0.3333333)
        assert_allclose(sigma[6:], 0.5773503)

    def test_short_spectrum_keeps_square_root(self):
        assert_allclose(counting_uncertainties([0, 4, 9]), [0.3, 2.0, 3.0])

    def test_never_zero(self):
        rng = np.random.default_rng(0)
        counts = rng.poisson(1.0, 200)
        assert np.all(counting_uncertainties(counts) > 0.0)


class TestSpectrum:
    """Tests for the Spectrum container."""

    def test_from_counts_estimates_sigma(self):
        spectrum = Spectrum.from_counts([100] * 10, first_channel=5)
        assert spectrum.first_channel == 5
        assert spectrum.last_channel == 14
        assert spectrum.n_channels == 10
        assert_allclose(spectrum.sigma, 10.0)

    def test_explicit_sigma_is_kept(self):
        spectrum = Spectrum.from_counts([1, 2, 3], sigma=[0.5, 0.5, 0.5])
        assert spectrum.sigma[1] == 0.5

    def test_arrays_are_read_only_copies(self):
        counts = np.array([10, 20, 30])
        spectrum = Spectrum.from_counts(counts)
        counts[0] = 99
        assert spectrum.count(0) == 10
        with pytest.raises(ValueError):
            spectrum.counts[0] = 5

    def test_mismatched_sigma_rejected(self):
        with pytest.raises(ValueError, match="sigma"):
            Spectrum.from_counts([1, 2, 3], sigma=[1.0])

    def test_channel_lookup_uses_first_channel(self):
        spectrum = Spectrum.from_counts([7, 8, 9], first_channel=100)
        assert spectrum.count(101) == 8
        with pytest.raises(IndexError):
            spectrum.count(99)

    def test_covers(self):
        spectrum = Spectrum.from_counts([1] * 100)
        assert spectrum.covers(ChannelRange(0, 99))
        assert not spectrum.covers(ChannelRange(50, 100))

    def test_region_counts_clip_to_spectrum(self):
        spectrum = Spectrum.from_counts(list(range(10)))
        assert list(spectrum.region_counts(ChannelRange(7, 15))) == [7, 8, 9]
        assert spectrum.region_counts(ChannelRange(20, 30)).size == 0

    def test_region_values_are_floats(self):
        spectrum = Spectrum.from_counts(list(range(10)))
        values = spectrum.region_values(ChannelRange(2, 4))
        assert values.dtype == float
        assert_allclose(values, [2.0, 3.0, 4.0])
