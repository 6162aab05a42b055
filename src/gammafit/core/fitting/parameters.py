"""Vary masks and the mapping between fit states and parameter vectors.

Each cycle selects which scalars of a :class:`FitState` the optimizer may
change. The selected scalars are laid out in a flat vector in a fixed order:
background intercept, background slope, average width, then for every peak
its height, centroid and extra 511 keV width. A single slot list describes
that layout, so extraction and write-back cannot disagree.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING

import numpy as np

from gammafit.core.domain.config import PeakWidthMode

if TYPE_CHECKING:
    from gammafit.core.domain.state import FitState, PeakState
    from gammafit.core.shared.typing import FloatArray


class ParameterKind(str, Enum):
    """Scalar parameters of the region model."""

    INTERCEPT = "intercept"
    SLOPE = "slope"
    AVG_WIDTH = "avg_width"
    HEIGHT = "height"
    CENTROID = "centroid"
    ADD_WIDTH_511 = "add_width_511"


_PEAK_KINDS = (ParameterKind.HEIGHT, ParameterKind.CENTROID, ParameterKind.ADD_WIDTH_511)


@dataclass(frozen=True, slots=True)
class ParameterSlot:
    """Position of one varying scalar in the parameter vector."""

    kind: ParameterKind
    peak_index: int | None = None


@dataclass(frozen=True, slots=True)
class PeakVary:
    """Which parameters of one peak vary."""

    height: bool = True
    centroid: bool = True
    add_width_511: bool = False

    @property
    def vary_count(self) -> int:
        return int(self.height) + int(self.centroid) + int(self.add_width_511)

    def varies(self, kind: ParameterKind) -> bool:
        if kind is ParameterKind.HEIGHT:
            return self.height
        if kind is ParameterKind.CENTROID:
            return self.centroid
        if kind is ParameterKind.ADD_WIDTH_511:
            return self.add_width_511
        msg = f"{kind.value} is not a peak parameter"
        raise ValueError(msg)


@dataclass(frozen=True)
class VaryMask:
    """Selection of the scalars of a fit state that vary in one cycle."""

    intercept: bool
    slope: bool
    avg_width: bool
    peaks: tuple[PeakVary, ...]

    @classmethod
    def for_state(cls, state: FitState, mode: PeakWidthMode) -> VaryMask:
        """Build the mask of a cycle.

        The background always varies. The average width varies when the
        width mode is ``VARIES`` and at least one centroid is free. Every
        height varies, every centroid that is not fixed varies, and a nonzero
        extra 511 keV width varies when the region has several peaks or the
        width mode is ``FIXED``.
        """
        any_free = any(not peak.fixed_centroid for peak in state.peaks)
        n_peaks = state.n_peaks
        peaks = tuple(
            PeakVary(
                height=True,
                centroid=not peak.fixed_centroid,
                add_width_511=(
                    peak.add_width_511 != 0.0
                    and (n_peaks > 1 or mode is PeakWidthMode.FIXED)
                ),
            )
            for peak in state.peaks
        )
        return cls(
            intercept=True,
            slope=True,
            avg_width=mode is PeakWidthMode.VARIES and any_free,
            peaks=peaks,
        )

    @property
    def vary_count(self) -> int:
        count = int(self.intercept) + int(self.slope) + int(self.avg_width)
        return count + sum(peak.vary_count for peak in self.peaks)

    def slots(self) -> list[ParameterSlot]:
        """Slots of the varying scalars, in vector order."""
        slots = []
        if self.intercept:
            slots.append(ParameterSlot(ParameterKind.INTERCEPT))
        if self.slope:
            slots.append(ParameterSlot(ParameterKind.SLOPE))
        if self.avg_width:
            slots.append(ParameterSlot(ParameterKind.AVG_WIDTH))
        for index, peak in enumerate(self.peaks):
            slots.extend(
                ParameterSlot(kind, index) for kind in _PEAK_KINDS if peak.varies(kind)
            )
        return slots

    def index_map(self) -> dict[ParameterSlot, int]:
        """Vector index of every varying slot."""
        return {slot: i for i, slot in enumerate(self.slots())}


def _read(state: FitState, slot: ParameterSlot) -> float:
    if slot.kind is ParameterKind.INTERCEPT:
        return state.intercept
    if slot.kind is ParameterKind.SLOPE:
        return state.slope
    if slot.kind is ParameterKind.AVG_WIDTH:
        return state.avg_width
    assert slot.peak_index is not None
    peak = state.peaks[slot.peak_index]
    if slot.kind is ParameterKind.HEIGHT:
        return peak.height
    if slot.kind is ParameterKind.CENTROID:
        return peak.centroid
    return peak.add_width_511


def extract_vector(state: FitState, mask: VaryMask) -> FloatArray:
    """Gather the varying scalars of ``state`` into a parameter vector."""
    _check_shape(state, mask)
    return np.array([_read(state, slot) for slot in mask.slots()], dtype=float)


def write_vector(state: FitState, mask: VaryMask, x: FloatArray) -> FitState:
    """Return ``state`` with its varying scalars replaced by ``x``.

    The inverse of :func:`extract_vector`: ``write_vector(s, m,
    extract_vector(s, m)) == s``.
    """
    _check_shape(state, mask)
    slots = mask.slots()
    values = np.asarray(x, dtype=float)
    if values.shape != (len(slots),):
        msg = f"Expected {len(slots)} parameters, got {values.size}"
        raise ValueError(msg)

    background: dict[str, float] = {}
    peak_updates: dict[int, dict[str, float]] = {}
    for slot, value in zip(slots, values, strict=True):
        if slot.peak_index is None:
            background[slot.kind.value] = float(value)
        else:
            peak_updates.setdefault(slot.peak_index, {})[slot.kind.value] = float(value)

    peaks: tuple[PeakState, ...] = state.peaks
    if peak_updates:
        peaks = tuple(
            replace(peak, **peak_updates[i]) if i in peak_updates else peak
            for i, peak in enumerate(state.peaks)
        )
    return replace(state, peaks=peaks, **background)


def _check_shape(state: FitState, mask: VaryMask) -> None:
    if len(mask.peaks) != state.n_peaks:
        msg = f"Vary mask covers {len(mask.peaks)} peaks, state has {state.n_peaks}"
        raise ValueError(msg)
