"""Channel ranges (regions of interest) of a spectrum."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from gammafit.core.shared.typing import FloatArray


@dataclass(frozen=True, order=True)
class ChannelRange:
    """Contiguous, inclusive range of channels ``[first, last]``.

    The ends may be given in either order; they are stored sorted.
    """

    first: int
    last: int

    def __post_init__(self) -> None:
        """Normalize the ends so that first <= last."""
        if self.first > self.last:
            first, last = self.last, self.first
            object.__setattr__(self, "first", first)
            object.__setattr__(self, "last", last)

    @property
    def width(self) -> int:
        """Number of channels in the range."""
        return self.last - self.first + 1

    def contains(self, channel: float) -> bool:
        """Check whether a (possibly fractional) channel lies in the range."""
        return self.first <= channel <= self.last

    def inside(self, other: ChannelRange) -> bool:
        """Check whether this range lies entirely within ``other``."""
        return other.first <= self.first and other.last >= self.last

    def channels(self) -> FloatArray:
        """Channel numbers of the range as floats."""
        return np.arange(self.first, self.last + 1, dtype=float)

    def offsets(self) -> FloatArray:
        """Channel offsets 0..width-1 from the start of the range."""
        return np.arange(self.width, dtype=float)

    def display(self) -> str:
        """Short form used in tables, e.g. '20 -> 80'."""
        return f"{self.first} -> {self.last}"

    def __str__(self) -> str:
        return f"channelRange[first = {self.first} last = {self.last}]"
