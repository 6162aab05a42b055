"""Tests for fit state snapshots and the initial state."""

import dataclasses

import numpy as np
import pytest

from gammafit.core.constants import AREA_FACTOR
from gammafit.core.domain.calibration import EnergyEquation, WidthEquation
from gammafit.core.domain.config import FitInputs
from gammafit.core.domain.peaks import Peak
from gammafit.core.domain.region import ChannelRange
from gammafit.core.domain.spectrum import Spectrum
from gammafit.core.domain.state import (
    FitState,
    PeakState,
    build_initial_state,
    is_near_511kev,
)


class RecordingReporter:
    def __init__(self):
        self.messages = []

    def action(self, message):
        self.messages.append(("action", message))

    def info(self, message):
        self.messages.append(("info", message))

    def warning(self, message):
        self.messages.append(("warning", message))

    def error(self, message):
        self.messages.append(("error", message))

    def success(self, message):
        self.messages.append(("success", message))


def make_state(*peaks, avg_width=5.0, contains_511kev=False):
    return FitState(
        intercept=10.0,
        slope=0.5,
        avg_width=avg_width,
        contains_511kev=contains_511kev,
        initial_width=avg_width,
        peaks=peaks,
    )


class TestFitState:
    """Tests for FitState snapshot operations."""

    def test_state_is_immutable(self):
        state = make_state(PeakState(100.0, 50.0))
        with pytest.raises(dataclasses.FrozenInstanceError):
            state.intercept = 1.0  # type: ignore[misc]

    def test_fwhm_and_area(self):
        peak = PeakState(height=100.0, centroid=50.0, add_width_511=1.0)
        state = make_state(peak, avg_width=4.0)
        assert state.fwhm(peak) == 5.0
        assert state.area(peak) == pytest.approx(5.0 * 100.0 * AREA_FACTOR)

    def test_fwhm_is_absolute(self):
        peak = PeakState(height=1.0, centroid=0.0, add_width_511=-6.0)
        assert make_state(peak, avg_width=4.0).fwhm(peak) == 2.0

    def test_add_peak_returns_new_snapshot(self):
        state = make_state()
        added = state.add_peak(40.0, 20.0, 300.0)
        assert state.n_peaks == 0
        assert added.n_peaks == 1
        assert added.peaks[0] == PeakState(height=300.0, centroid=40.0)

    def test_add_511_peak_gets_extra_width_once(self):
        state = make_state(avg_width=3.0)
        state = state.add_peak(1022.0, 511.3, 100.0)
        assert state.contains_511kev
        assert state.peaks[0].add_width_511 == 3.0
        state = state.add_peak(1023.0, 510.8, 100.0)
        assert state.peaks[1].add_width_511 == 0.0

    def test_peak_far_from_511_has_no_extra_width(self):
        state = make_state().add_peak(1000.0, 500.0, 10.0)
        assert not state.contains_511kev
        assert state.peaks[0].add_width_511 == 0.0

    def test_delete_511_peak_clears_flag(self):
        state = make_state(avg_width=3.0).add_peak(1022.0, 511.0, 100.0)
        state = state.add_peak(1040.0, 520.0, 50.0)
        deleted = state.delete_peak(0)
        assert not deleted.contains_511kev
        assert [p.centroid for p in deleted] == [1040.0]

    def test_delete_other_peak_keeps_flag(self):
        state = make_state(avg_width=3.0).add_peak(1022.0, 511.0, 100.0)
        state = state.add_peak(1040.0, 520.0, 50.0)
        assert state.delete_peak(1).contains_511kev

    def test_constrain_rules(self):
        region = ChannelRange(20, 80)
        state = make_state(
            PeakState(height=3.0, centroid=10.0),
            PeakState(height=0.0, centroid=90.0, add_width_511=-1.0),
            PeakState(height=-50.0, centroid=50.0),
        )
        constrained = state.constrain(region)
        first, second, third = constrained.peaks
        assert first.height == 10.0
        assert first.centroid == 22.0
        assert second.height == 0.0
        assert second.centroid == 78.0
        assert second.add_width_511 == state.initial_width
        assert third.height == 10.0
        assert third.centroid == 50.0

    def test_constrain_skips_new_peak(self):
        region = ChannelRange(20, 80)
        state = make_state(PeakState(1.0, 10.0), PeakState(1.0, 10.0))
        constrained = state.constrain(region, skip=1)
        assert constrained.peaks[0].centroid == 22.0
        assert constrained.peaks[1] == state.peaks[1]


class TestNear511:
    def test_threshold(self):
        assert is_near_511kev(511.5)
        assert is_near_511kev(510.5)
        assert not is_near_511kev(511.7)
        assert not is_near_511kev(500.0)


class TestBuildInitialState:
    """Tests for the starting model of a region fit."""

    def test_background_width_and_peaks(
        self, noiseless_spectrum, region, energy_equation, width_equation
    ):
        inputs = FitInputs(
            spectrum=noiseless_spectrum,
            region=region,
            energy=energy_equation,
            width=width_equation,
            peaks=(Peak.from_channel(50.0),),
        )
        state = build_initial_state(inputs)
        expected_intercept = (noiseless_spectrum.count(79) + noiseless_spectrum.count(80)) / 2.0
        assert state.intercept == expected_intercept
        assert state.slope == 0.0
        assert state.avg_width == 5.0
        assert state.initial_width == 5.0
        assert state.n_peaks == 1
        assert state.peaks[0].centroid == 50.0
        assert state.peaks[0].height == noiseless_spectrum.count(50) - expected_intercept

    def test_candidates_outside_region_are_ignored(
        self, noiseless_spectrum, region, width_equation
    ):
        inputs = FitInputs(
            spectrum=noiseless_spectrum,
            region=region,
            width=width_equation,
            peaks=(Peak.from_channel(10.0), Peak.from_channel(60.0), Peak.from_channel(40.0)),
        )
        state = build_initial_state(inputs)
        assert [p.centroid for p in state.peaks] == [40.0, 60.0]

    def test_rounded_channel_decides_membership(self, noiseless_spectrum, width_equation):
        inputs = FitInputs(
            spectrum=noiseless_spectrum,
            region=ChannelRange(20, 80),
            width=width_equation,
            peaks=(Peak.from_channel(80.4), Peak.from_channel(80.5)),
        )
        state = build_initial_state(inputs)
        assert [p.centroid for p in state.peaks] == [80.4]

    def test_fixed_candidate_stays_fixed(self, noiseless_spectrum, region, width_equation):
        inputs = FitInputs(
            spectrum=noiseless_spectrum,
            region=region,
            width=width_equation,
            peaks=(Peak.from_channel(50.0, fixed_centroid=True),),
        )
        assert build_initial_state(inputs).peaks[0].fixed_centroid

    def test_energy_candidate_near_511(self, width_equation):
        counts = np.full(2000, 20)
        spectrum = Spectrum.from_counts(counts)
        inputs = FitInputs(
            spectrum=spectrum,
            region=ChannelRange(1000, 1050),
            energy=EnergyEquation(constant=0.0, linear=0.5),
            width=width_equation,
            peaks=(Peak.from_energy(511.0),),
        )
        state = build_initial_state(inputs)
        assert state.contains_511kev
        assert state.peaks[0].centroid == pytest.approx(1022.0)
        assert state.peaks[0].add_width_511 == state.avg_width

    def test_synthetic_peak_at_maximum(self, noiseless_spectrum, region, width_equation):
        reporter = RecordingReporter()
        inputs = FitInputs(spectrum=noiseless_spectrum, region=region, width=width_equation)
        state = build_initial_state(inputs, reporter)
        assert state.n_peaks == 1
        assert state.peaks[0].centroid == 50.0
        assert state.peaks[0].height == noiseless_spectrum.count(50) - state.intercept
        assert any(kind == "info" for kind, _ in reporter.messages)

    def test_synthetic_peak_near_edge_moves_to_midpoint(self, width_equation):
        counts = np.full(100, 10)
        counts[21] = 500
        spectrum = Spectrum.from_counts(counts)
        inputs = FitInputs(spectrum=spectrum, region=ChannelRange(20, 80), width=width_equation)
        state = build_initial_state(inputs)
        assert state.peaks[0].centroid == 50.0
        assert state.peaks[0].height == 0.0

    def test_width_fallback_is_reported(self, noiseless_spectrum, region):
        reporter = RecordingReporter()
        inputs = FitInputs(
            spectrum=noiseless_spectrum,
            region=region,
            width=WidthEquation(constant=-1.0, linear=0.0),
            peaks=(Peak.from_channel(50.0),),
        )
        state = build_initial_state(inputs, reporter)
        assert state.avg_width == 1.0
        assert any(kind == "warning" for kind, _ in reporter.messages)

    def test_one_channel_region_at_spectrum_start(self, width_equation):
        counts = np.full(50, 10)
        counts[0] = 30
        spectrum = Spectrum.from_counts(counts)
        inputs = FitInputs(spectrum=spectrum, region=ChannelRange(0, 0), width=width_equation)
        state = build_initial_state(inputs)
        assert state.intercept == 30.0
        assert state.n_peaks == 1
