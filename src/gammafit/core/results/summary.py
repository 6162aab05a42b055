"""Per-peak summaries of a fitted region."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from gammafit.core.constants import CENTROID_FIXED_THRESHOLD

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gammafit.core.domain.calibration import EnergyEquation
    from gammafit.core.domain.peaks import Peak
    from gammafit.core.domain.region import ChannelRange
    from gammafit.core.domain.spectrum import Spectrum
    from gammafit.core.domain.state import FitState
    from gammafit.core.fitting.uncertainty import StateUncertainty


@dataclass(frozen=True, slots=True)
class PeakSummary:
    """Reported values of one fitted peak, each with its uncertainty.

    Attributes:
        channel_fixed: The centroid matches a fixed input peak
        is_negative: The height is negative
        is_outside: The centroid lies outside the region
        of_pos_neg_pair: A negative and a positive peak lie within half the
            average width of each other
    """

    channel: float
    channel_uncertainty: float
    height: float
    height_uncertainty: float
    fwhm: float
    fwhm_uncertainty: float
    area: float
    area_uncertainty: float
    energy: float
    energy_uncertainty: float
    channel_fixed: bool = False
    is_negative: bool = False
    is_outside: bool = False
    of_pos_neg_pair: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel": self.channel,
            "channel_uncertainty": self.channel_uncertainty,
            "height": self.height,
            "height_uncertainty": self.height_uncertainty,
            "fwhm": self.fwhm,
            "fwhm_uncertainty": self.fwhm_uncertainty,
            "area": self.area,
            "area_uncertainty": self.area_uncertainty,
            "energy": self.energy,
            "energy_uncertainty": self.energy_uncertainty,
            "channel_fixed": self.channel_fixed,
            "is_negative": self.is_negative,
            "is_outside": self.is_outside,
            "of_pos_neg_pair": self.of_pos_neg_pair,
        }


@dataclass(frozen=True)
class FitSummary:
    """Peak summaries ordered by channel, and the region area ratio."""

    peaks: tuple[PeakSummary, ...]
    area_ratio: float

    @property
    def n_peaks(self) -> int:
        return len(self.peaks)

    def to_dict(self) -> dict[str, Any]:
        return {"area_ratio": self.area_ratio, "peaks": [p.to_dict() for p in self.peaks]}


def average_background(state: FitState, region: ChannelRange) -> float:
    """Background at the middle of the region."""
    return state.intercept + state.slope * (region.last - region.first) / 2.0


def area_ratio(
    spectrum: Spectrum, region: ChannelRange, state: FitState, areas: Iterable[float]
) -> float:
    """Net region counts over the summed peak areas (0 when the areas sum to 0)."""
    net_counts = float(
        (spectrum.region_values(region) - average_background(state, region)).sum()
    )
    total_area = sum(areas)
    if total_area == 0.0:
        return 0.0
    return net_counts / total_area


def _fixed_flags(channels: list[float], input_peaks: Iterable[Peak]) -> list[bool]:
    flags = [False] * len(channels)
    for peak in input_peaks:
        if not (peak.fixed_centroid and peak.channel_valid):
            continue
        for i, channel in enumerate(channels):
            if abs(channel - peak.channel) < CENTROID_FIXED_THRESHOLD:
                flags[i] = True
                break
    return flags


def _pair_flags(channels: list[float], heights: list[float], half_width: float) -> list[bool]:
    flags = [False] * len(channels)
    negatives = [i for i, h in enumerate(heights) if h < 0.0]
    positives = [i for i, h in enumerate(heights) if h > 0.0]
    for neg in negatives:
        for pos in positives:
            if abs(channels[neg] - channels[pos]) < half_width:
                flags[neg] = True
                flags[pos] = True
    return flags


def build_summary(
    spectrum: Spectrum,
    region: ChannelRange,
    energy: EnergyEquation,
    input_peaks: Iterable[Peak],
    state: FitState,
    uncertainty: StateUncertainty,
) -> FitSummary:
    """Summarize a converged state.

    Args:
        spectrum: Fitted spectrum
        region: Fitted channels
        energy: Energy calibration for centroid energies
        input_peaks: Candidate peaks, with channels derived
        state: Converged state
        uncertainty: Uncertainties of ``state``

    Returns
    -------
        Summaries sorted by channel, with flags and the area ratio
    """
    rows = sorted(
        zip(state.peaks, uncertainty.peaks, strict=True), key=lambda row: row[0].centroid
    )
    channels = [peak.centroid for peak, _ in rows]
    heights = [peak.height for peak, _ in rows]
    fixed = _fixed_flags(channels, input_peaks)
    pairs = _pair_flags(channels, heights, state.avg_width / 2.0)

    summaries = tuple(
        PeakSummary(
            channel=peak.centroid,
            channel_uncertainty=sigma.centroid,
            height=peak.height,
            height_uncertainty=sigma.height,
            fwhm=state.fwhm(peak),
            fwhm_uncertainty=sigma.fwhm,
            area=state.area(peak),
            area_uncertainty=sigma.area,
            energy=energy.energy_of(peak.centroid),
            energy_uncertainty=sigma.energy,
            channel_fixed=fixed[i],
            is_negative=peak.height < 0.0,
            is_outside=not region.contains(peak.centroid),
            of_pos_neg_pair=pairs[i],
        )
        for i, (peak, sigma) in enumerate(rows)
    )
    ratio = area_ratio(spectrum, region, state, (s.area for s in summaries))
    return FitSummary(peaks=summaries, area_ratio=ratio)
