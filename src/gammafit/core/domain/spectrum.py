"""Count histograms (gamma-ray spectra) and their per-channel uncertainties."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gammafit.core.domain.region import ChannelRange
    from gammafit.core.shared.typing import FloatArray, IntArray

# Channels with this many counts or fewer get a smoothed uncertainty
LOW_COUNT_LIMIT = 10

_EMPTY_SIGMA = 0.3
_EDGE_FALLBACK_SIGMA = 0.5773503  # sqrt(1/3)
_INTERIOR_FALLBACK_SIGMA = 0.3333333  # sqrt(1/9)


def counting_uncertainties(counts: Sequence[int] | IntArray) -> FloatArray:
    """Estimate per-channel count uncertainties.

    The base estimate is ``sqrt(count)``. Low-count channels (count <= 10)
    use a smoothed estimate instead: the first and last two channels average
    three neighbouring channels, interior channels use the weighted 5-point
    mean ``(c[i-2] + c[i+2] + 2*(c[i-1] + c[i+1]) + 3*c[i]) / 9``. Each
    estimate has a small positive fallback so no channel gets zero
    uncertainty.

    Args:
        counts: Channel counts

    Returns
    -------
        Array of uncertainties, same length as ``counts``
    """
    c = np.asarray(counts, dtype=float)
    n = c.size
    sigma = np.sqrt(np.maximum(c, 0.0))
    sigma[sigma <= 0.0] = _EMPTY_SIGMA

    if n < 5:
        return sigma

    low = c <= LOW_COUNT_LIMIT

    for i in (0, 1):
        if low[i]:
            value = np.sqrt(max((c[i] + c[i + 1] + c[i + 2]) / 3.0, 0.0))
            sigma[i] = value if value > 0.0 else _EDGE_FALLBACK_SIGMA

    interior = np.arange(2, n - 2)
    smoothed = (
        c[interior - 2]
        + c[interior + 2]
        + 2.0 * (c[interior - 1] + c[interior + 1])
        + 3.0 * c[interior]
    ) / 9.0
    smoothed = np.sqrt(np.maximum(smoothed, 0.0))
    smoothed[smoothed <= 0.0] = _INTERIOR_FALLBACK_SIGMA
    mask = low[interior]
    sigma[interior[mask]] = smoothed[mask]

    for i in (n - 2, n - 1):
        if low[i]:
            value = np.sqrt(max((c[i - 2] + c[i - 1] + c[i]) / 3.0, 0.0))
            sigma[i] = value if value > 0.0 else _EDGE_FALLBACK_SIGMA

    return sigma


@dataclass(frozen=True)
class Spectrum:
    """Immutable histogram of counts per channel with count uncertainties.

    Attributes:
        first_channel: Channel number of the first count
        counts: Integer counts, one per channel
        sigma: Count uncertainty, one per channel
    """

    first_channel: int
    counts: IntArray
    sigma: FloatArray = field(repr=False)

    def __post_init__(self) -> None:
        """Take private read-only copies of the arrays."""
        counts = np.array(self.counts, dtype=np.int64, copy=True)
        sigma = np.array(self.sigma, dtype=float, copy=True)
        if counts.ndim != 1:
            raise ValueError("Spectrum counts must be one-dimensional")
        if sigma.shape != counts.shape:
            msg = f"sigma has {sigma.size} channels, counts has {counts.size}"
            raise ValueError(msg)
        counts.setflags(write=False)
        sigma.setflags(write=False)
        object.__setattr__(self, "counts", counts)
        object.__setattr__(self, "sigma", sigma)

    @classmethod
    def from_counts(
        cls,
        counts: Sequence[int] | IntArray,
        first_channel: int = 0,
        sigma: Sequence[float] | FloatArray | None = None,
    ) -> Spectrum:
        """Build a spectrum, estimating uncertainties when none are given."""
        if sigma is None:
            sigma = counting_uncertainties(counts)
        return cls(first_channel=first_channel, counts=np.asarray(counts), sigma=np.asarray(sigma))

    @property
    def last_channel(self) -> int:
        """Channel number of the last count."""
        return self.first_channel + self.counts.size - 1

    @property
    def n_channels(self) -> int:
        return int(self.counts.size)

    def covers(self, region: ChannelRange) -> bool:
        """Check whether every channel of ``region`` is in the spectrum."""
        return self.first_channel <= region.first and region.last <= self.last_channel

    def _index(self, channel: int) -> int:
        index = channel - self.first_channel
        if not 0 <= index < self.counts.size:
            msg = (
                f"Channel {channel} outside spectrum "
                f"[{self.first_channel}, {self.last_channel}]"
            )
            raise IndexError(msg)
        return index

    def count(self, channel: int) -> int:
        """Count at a channel."""
        return int(self.counts[self._index(channel)])

    def region_counts(self, region: ChannelRange) -> IntArray:
        """Counts of the part of ``region`` that overlaps the spectrum."""
        if region.first > self.last_channel or region.last < self.first_channel:
            return np.zeros(0, dtype=np.int64)
        bottom = max(region.first, self.first_channel)
        top = min(region.last, self.last_channel)
        return self.counts[bottom - self.first_channel : top - self.first_channel + 1]

    def region_sigma(self, region: ChannelRange) -> FloatArray:
        """Uncertainties over ``region``; the region must be covered."""
        start = self._index(region.first)
        stop = self._index(region.last) + 1
        return self.sigma[start:stop]

    def region_values(self, region: ChannelRange) -> FloatArray:
        """Counts over ``region`` as floats; the region must be covered."""
        start = self._index(region.first)
        stop = self._index(region.last) + 1
        return self.counts[start:stop].astype(float)
