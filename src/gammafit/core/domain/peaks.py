"""Input and output peaks, identified by channel or by energy."""

from __future__ import annotations

import functools
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

from gammafit.core.constants import PEAK_COMPARE_THRESHOLD

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gammafit.core.domain.calibration import EnergyEquation


class PeakKind(str, Enum):
    """Representation a peak was created in."""

    CHANNEL = "channel"
    ENERGY = "energy"


@dataclass(frozen=True, slots=True)
class Peak:
    """A peak position known by channel, energy, or both.

    A peak is created in one representation and can derive the other through
    an energy calibration (:meth:`with_calibration`). ``channel_valid`` and
    ``energy_valid`` record which of the two values can be trusted.
    """

    kind: PeakKind
    channel: float = 0.0
    channel_valid: bool = False
    energy: float = 0.0
    energy_valid: bool = False
    energy_uncertainty: float = 0.0
    fixed_centroid: bool = False

    @classmethod
    def from_channel(cls, channel: float, fixed_centroid: bool = False) -> Peak:
        return cls(
            kind=PeakKind.CHANNEL,
            channel=channel,
            channel_valid=True,
            fixed_centroid=fixed_centroid,
        )

    @classmethod
    def from_energy(
        cls,
        energy: float,
        energy_uncertainty: float = 0.0,
        fixed_centroid: bool = False,
    ) -> Peak:
        return cls(
            kind=PeakKind.ENERGY,
            energy=energy,
            energy_valid=True,
            energy_uncertainty=energy_uncertainty,
            fixed_centroid=fixed_centroid,
        )

    def with_calibration(self, equation: EnergyEquation) -> Peak:
        """Return a copy with the derived representation filled in.

        A channel peak gets its energy; an energy peak gets its channel. When
        the conversion fails the derived representation is marked invalid.
        """
        if self.kind is PeakKind.CHANNEL:
            return replace(
                self,
                energy=equation.energy_of(self.channel),
                energy_uncertainty=0.0,
                energy_valid=True,
            )
        result = equation.try_channel_of(self.energy)
        if not result.valid:
            return replace(self, channel_valid=False)
        return replace(self, channel=result.value, channel_valid=True)

    def __str__(self) -> str:
        parts = [f"{self.kind.value.capitalize()} Peak:"]
        if self.channel_valid:
            parts.append(f"channel = {self.channel}")
        if self.energy_valid:
            parts.append(f"energy = {self.energy} uncert = {self.energy_uncertainty}")
        parts.append("FIXED" if self.fixed_centroid else "not fixed")
        return " ".join(parts)


def _compare_values(a: float, b: float) -> int:
    if abs(a - b) <= PEAK_COMPARE_THRESHOLD:
        return 0
    return -1 if a < b else 1


def compare_peaks(a: Peak, b: Peak) -> int:
    """Three-way comparison of peak positions with a 1e-5 tolerance.

    Peaks of the same kind compare on their own representation; mixed kinds
    compare on channel if both channels are valid, else on energy. A peak
    with neither in common compares its channel against 0.

    The tolerance makes this comparison non-transitive: ``a == b`` and
    ``b == c`` do not imply ``a == c``.
    """
    if a.kind is b.kind:
        if a.kind is PeakKind.CHANNEL:
            return _compare_values(a.channel, b.channel)
        return _compare_values(a.energy, b.energy)
    if a.channel_valid and b.channel_valid:
        return _compare_values(a.channel, b.channel)
    if a.energy_valid and b.energy_valid:
        return _compare_values(a.energy, b.energy)
    if a.channel_valid:
        return _compare_values(a.channel, 0.0)
    return _compare_values(0.0, b.channel)


def sort_peaks(peaks: Iterable[Peak]) -> list[Peak]:
    """Sort peaks by position, keeping every peak that compares equal."""
    return sorted(peaks, key=functools.cmp_to_key(compare_peaks))
