"""Sampled model curves of a fitted region.

Curves are sampled ``points_per_channel`` times per channel from the first
to the last region channel, giving ``(last - first) * n + 1`` samples. Each
peak curve includes the background; the total curve adds the background only
once. Exact model values and weighted residuals are kept per channel.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from gammafit.core.fitting.residuals import weighted_residuals
from gammafit.core.lineshapes.gaussian import gaussian

if TYPE_CHECKING:
    from gammafit.core.domain.region import ChannelRange
    from gammafit.core.domain.spectrum import Spectrum
    from gammafit.core.domain.state import FitState
    from gammafit.core.shared.typing import FloatArray


def sample_count(region: ChannelRange, points_per_channel: int) -> int:
    """Number of curve samples over a region."""
    return (region.last - region.first) * points_per_channel + 1


def _sampled_curves(
    state: FitState, x: FloatArray, offsets: FloatArray
) -> tuple[FloatArray, FloatArray, FloatArray]:
    background = state.intercept + state.slope * offsets
    components = np.empty((state.n_peaks, x.size))
    for i, peak in enumerate(state.peaks):
        components[i] = background + gaussian(x, peak.height, peak.centroid, state.fwhm(peak))
    total = background + np.sum(components - background, axis=0)
    return background, components, total


@dataclass(frozen=True)
class FitCurve:
    """Background, per-peak and total model curves plus per-channel residuals.

    Attributes:
        region: Fitted channels
        points_per_channel: Samples per channel
        x: Sample positions (channels)
        background: Background at each sample
        components: One row per peak, background included
        total: Background plus every peak at each sample
        channels: Region channels
        fits: Exact model value at each channel
        residuals: ``(count - fit) / sigma`` at each channel
    """

    region: ChannelRange
    points_per_channel: int
    x: FloatArray = field(repr=False)
    background: FloatArray = field(repr=False)
    components: FloatArray = field(repr=False)
    total: FloatArray = field(repr=False)
    channels: FloatArray = field(repr=False)
    fits: FloatArray = field(repr=False)
    residuals: FloatArray = field(repr=False)

    @classmethod
    def build(
        cls,
        spectrum: Spectrum,
        region: ChannelRange,
        state: FitState,
        points_per_channel: int = 1,
    ) -> FitCurve:
        """Sample the model of ``state`` over ``region``."""
        if points_per_channel < 1:
            msg = f"points_per_channel must be at least 1, got {points_per_channel}"
            raise ValueError(msg)
        steps = np.arange(sample_count(region, points_per_channel), dtype=float)
        offsets = steps / points_per_channel
        x = region.first + offsets
        background, components, total = _sampled_curves(state, x, offsets)

        channels = region.channels()
        _, _, fits = _sampled_curves(state, channels, region.offsets())
        residuals = weighted_residuals(
            spectrum.region_values(region), fits, np.asarray(spectrum.region_sigma(region))
        )
        return cls(
            region=region,
            points_per_channel=points_per_channel,
            x=x,
            background=background,
            components=components,
            total=total,
            channels=channels,
            fits=fits,
            residuals=residuals,
        )

    @property
    def n_samples(self) -> int:
        return int(self.x.size)

    @property
    def n_peaks(self) -> int:
        return int(self.components.shape[0])

    def fit_at(self, channel: int) -> float:
        """Model value at a region channel."""
        return float(self.fits[channel - self.region.first])

    def residual_at(self, channel: int) -> float:
        """Weighted residual at a region channel."""
        return float(self.residuals[channel - self.region.first])

    def max_y(self, channel: int, delta: int) -> float:
        """Largest total or component value within ``channel +/- delta``.

        Returns 0 for a channel outside the region; the result is never
        below 0.
        """
        if not self.region.contains(channel):
            return 0.0
        low = max(channel - delta, self.region.first)
        high = min(channel + delta, self.region.last)
        window = (self.x >= low) & (self.x <= high)
        max_y = 0.0
        if np.any(window):
            max_y = max(max_y, float(np.max(self.total[window])))
            if self.n_peaks:
                max_y = max(max_y, float(np.max(self.components[:, window])))
        return max_y

    def to_dict(self) -> dict[str, Any]:
        """Curve points as plain lists, for export."""
        return {
            "points_per_channel": self.points_per_channel,
            "x": self.x.tolist(),
            "background": self.background.tolist(),
            "components": self.components.tolist(),
            "total": self.total.tolist(),
            "channels": self.channels.tolist(),
            "fits": self.fits.tolist(),
            "residuals": self.residuals.tolist(),
        }
