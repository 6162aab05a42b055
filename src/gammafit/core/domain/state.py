"""Immutable parameter snapshots of a region fit.

A :class:`FitState` holds every model parameter of one region: the linear
background, the average peak width shared by all peaks and, per peak, its
height, centroid and extra 511 keV width. Model mutations between cycles
(adding, deleting or constraining peaks) return new snapshots, so the
converged state of a cycle is never altered by the next one.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

import numpy as np

from gammafit.core.constants import (
    ANNIHILATION_ENERGY_KEV,
    AREA_FACTOR,
    CENTROID_EDGE_MARGIN,
    DEFAULT_PEAK_WIDTH_CHANNELS,
    MIN_PEAK_HEIGHT_COUNTS,
    PK511KEV_THRESHOLD,
    SYNTHETIC_PEAK_EDGE_MARGIN,
)
from gammafit.core.domain.peaks import sort_peaks
from gammafit.core.shared.reporter import NullReporter

if TYPE_CHECKING:
    from gammafit.core.domain.config import FitInputs
    from gammafit.core.domain.region import ChannelRange
    from gammafit.core.shared.reporter import Reporter


def is_near_511kev(energy: float) -> bool:
    """True when an energy lies within 0.6 keV of the annihilation line."""
    return abs(energy - ANNIHILATION_ENERGY_KEV) <= PK511KEV_THRESHOLD


@dataclass(frozen=True, slots=True)
class PeakState:
    """Parameters of one model peak."""

    height: float
    centroid: float
    add_width_511: float = 0.0
    fixed_centroid: bool = False

    def constrained(self, region: ChannelRange, initial_width: float) -> PeakState:
        """Return the peak pulled back into its physical bounds.

        Nonzero heights below 10 counts are raised to 10, a negative extra
        width is reset to the initial peak width and the centroid is kept at
        least two channels inside the region.
        """
        height = self.height
        if height < MIN_PEAK_HEIGHT_COUNTS and height != 0.0:
            height = MIN_PEAK_HEIGHT_COUNTS
        add_width = self.add_width_511
        if add_width < 0.0:
            add_width = initial_width
        centroid = min(
            max(self.centroid, region.first + CENTROID_EDGE_MARGIN),
            region.last - CENTROID_EDGE_MARGIN,
        )
        return replace(self, height=height, centroid=centroid, add_width_511=add_width)


@dataclass(frozen=True)
class FitState:
    """Snapshot of all parameters of a region model.

    Attributes:
        intercept: Background at the first region channel (counts)
        slope: Background slope (counts per channel)
        avg_width: Average peak FWHM shared by all peaks (channels)
        contains_511kev: True when one peak carries the extra 511 keV width
        initial_width: Average peak width the fit started from
        peaks: Model peaks, in fitting order
    """

    intercept: float
    slope: float
    avg_width: float
    contains_511kev: bool
    initial_width: float
    peaks: tuple[PeakState, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "peaks", tuple(self.peaks))

    @property
    def n_peaks(self) -> int:
        return len(self.peaks)

    def fwhm(self, peak: PeakState) -> float:
        """FWHM of a peak: |average width + extra 511 keV width|."""
        return abs(self.avg_width + peak.add_width_511)

    def area(self, peak: PeakState) -> float:
        """Gaussian area of a peak."""
        return self.fwhm(peak) * peak.height * AREA_FACTOR

    def add_peak(
        self, centroid: float, energy: float, height: float, fixed_centroid: bool = False
    ) -> FitState:
        """Return a snapshot with a new free peak appended.

        The new peak carries the extra 511 keV width when its energy is near
        511 keV and no other peak already does.
        """
        add_width = 0.0
        contains = self.contains_511kev
        if not contains and is_near_511kev(energy):
            contains = True
            add_width = self.avg_width
        peak = PeakState(
            height=height,
            centroid=centroid,
            add_width_511=add_width,
            fixed_centroid=fixed_centroid,
        )
        return replace(self, peaks=(*self.peaks, peak), contains_511kev=contains)

    def delete_peak(self, index: int) -> FitState:
        """Return a snapshot without the peak at ``index``."""
        removed = self.peaks[index]
        peaks = self.peaks[:index] + self.peaks[index + 1 :]
        contains = self.contains_511kev
        if removed.add_width_511 != 0.0:
            contains = False
        return replace(self, peaks=peaks, contains_511kev=contains)

    def constrain(self, region: ChannelRange, skip: int | None = None) -> FitState:
        """Return a snapshot with every peak except ``skip`` constrained."""
        peaks = tuple(
            peak if i == skip else peak.constrained(region, self.initial_width)
            for i, peak in enumerate(self.peaks)
        )
        return replace(self, peaks=peaks)


def build_initial_state(inputs: FitInputs, reporter: Reporter | None = None) -> FitState:
    """Build the starting parameters of a region fit.

    The background starts flat at the mean of the last two region channels.
    The average width comes from the width calibration at the region
    midpoint, falling back to one channel. Every candidate peak whose rounded
    channel lies in the region becomes a model peak; when none does, a single
    peak is placed at the highest count (or at the region midpoint when that
    maximum is within two channels of an edge).
    """
    reporter = reporter or NullReporter()
    spectrum = inputs.spectrum
    region = inputs.region

    # a one-channel region averages its only channel with itself
    before_last = max(region.first, region.last - 1)
    intercept = (spectrum.count(before_last) + spectrum.count(region.last)) / 2.0

    # integer midpoint, as the width calibration has always been evaluated
    midpoint = (region.first + region.last + 1) // 2
    width = inputs.width.try_peak_width(midpoint, fallback=DEFAULT_PEAK_WIDTH_CHANNELS)
    if width.fallback_used:
        reporter.warning(
            f"Width calibration failed at channel {midpoint} ({width.reason}); "
            f"using {DEFAULT_PEAK_WIDTH_CHANNELS} channel"
        )
    avg_width = width.value

    state = FitState(
        intercept=intercept,
        slope=0.0,
        avg_width=avg_width,
        contains_511kev=False,
        initial_width=avg_width,
    )

    usable = [
        peak
        for peak in sort_peaks(inputs.calibrated_peaks())
        if peak.channel_valid and region.contains(_round_channel(peak.channel))
    ]

    for peak in usable:
        height = spectrum.count(_round_channel(peak.channel)) - intercept
        state = state.add_peak(
            peak.channel,
            inputs.energy.energy_of(peak.channel),
            height,
            fixed_centroid=peak.fixed_centroid,
        )

    if not usable:
        counts = spectrum.region_values(region)
        max_count = 0.0
        channel = 0
        # strictly greater: the first maximum wins, nothing above zero keeps channel 0
        for offset, value in enumerate(counts):
            if value > max_count:
                max_count = value
                channel = region.first + offset
        if (
            channel < region.first + SYNTHETIC_PEAK_EDGE_MARGIN
            or channel > region.last - SYNTHETIC_PEAK_EDGE_MARGIN
        ):
            channel = (region.first + region.last) // 2
            max_count = spectrum.count(channel)
        reporter.info(f"No candidate peak in region; starting from channel {channel}")
        state = state.add_peak(
            float(channel), inputs.energy.energy_of(channel), max_count - intercept
        )

    return state


def _round_channel(channel: float) -> int:
    """Round half up, matching how candidate channels are mapped to counts."""
    return int(np.floor(channel + 0.5))
