"""Immutable records of fit cycles."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import TYPE_CHECKING

from gammafit.core.constants import CENTROID_FIXED_THRESHOLD
from gammafit.core.domain.peaks import Peak, sort_peaks
from gammafit.core.results.curve import FitCurve
from gammafit.core.results.statistics import ResidualStatistics
from gammafit.core.results.summary import FitSummary, build_summary

if TYPE_CHECKING:
    from gammafit.core.domain.config import FitInputs
    from gammafit.core.domain.state import FitState
    from gammafit.core.fitting.parameters import VaryMask
    from gammafit.core.fitting.uncertainty import StateUncertainty
    from gammafit.core.shared.exceptions import GammaFitError


class CycleAction(str, Enum):
    """Model change that preceded a cycle."""

    INITIAL = "initial"
    ADD_PEAK = "add_peak"
    DELETE_PEAK = "delete_peak"


class CycleOutcome(str, Enum):
    """How a cycle ended."""

    CONTINUE = "continue"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BackgroundEquation:
    """Fitted linear background ``intercept + slope * offset``.

    ``offset`` counts channels from the start of the region.
    """

    intercept: float
    intercept_uncertainty: float
    slope: float
    slope_uncertainty: float
    covariance: float = 0.0

    def value_at(self, offset: float) -> float:
        return self.intercept + self.slope * offset


@dataclass(frozen=True)
class FitRecord:
    """Outcome of one fit cycle; never modified after creation.

    Every cycle keeps the model it started from in ``start_state``. A
    successful cycle also carries its converged state, the vary mask it was
    run with, the propagated uncertainties and its chi-squared. A failed cycle
    carries the exception in ``failure`` and an infinite chi-squared.
    """

    cycle_number: int
    action: CycleAction
    outcome: CycleOutcome
    inputs: FitInputs
    start_state: FitState | None = None
    state: FitState | None = None
    mask: VaryMask | None = None
    uncertainty: StateUncertainty | None = None
    chi_squared: float = math.inf
    failure: GammaFitError | None = None
    nfev: int = 0

    @classmethod
    def failed(
        cls,
        cycle_number: int,
        action: CycleAction,
        inputs: FitInputs,
        error: GammaFitError,
        start_state: FitState | None = None,
    ) -> FitRecord:
        return cls(
            cycle_number=cycle_number,
            action=action,
            outcome=CycleOutcome.FAILED,
            inputs=inputs,
            start_state=start_state,
            failure=error,
        )

    @property
    def succeeded(self) -> bool:
        return self.outcome is not CycleOutcome.FAILED

    def converged_state(self) -> FitState:
        if self.state is None:
            msg = f"Cycle {self.cycle_number} failed: {self.failure}"
            raise ValueError(msg)
        return self.state

    def starting_state(self) -> FitState:
        if self.start_state is None:
            msg = f"Cycle {self.cycle_number} has no starting model"
            raise ValueError(msg)
        return self.start_state

    @property
    def n_peaks(self) -> int:
        return 0 if self.state is None else self.state.n_peaks

    @property
    def vary_count(self) -> int:
        return 0 if self.mask is None else self.mask.vary_count

    @cached_property
    def base_curve(self) -> FitCurve:
        """Model sampled once per channel."""
        return FitCurve.build(self.inputs.spectrum, self.inputs.region, self.converged_state())

    def curve(self, points_per_channel: int = 1) -> FitCurve:
        """Model sampled at ``points_per_channel`` samples per channel."""
        if points_per_channel == 1:
            return self.base_curve
        return FitCurve.build(
            self.inputs.spectrum,
            self.inputs.region,
            self.converged_state(),
            points_per_channel,
        )

    @cached_property
    def residual_statistics(self) -> ResidualStatistics:
        return ResidualStatistics(residuals=self.base_curve.residuals, n_params=self.vary_count)

    @property
    def background(self) -> BackgroundEquation:
        state = self.converged_state()
        assert self.uncertainty is not None
        return BackgroundEquation(
            intercept=state.intercept,
            intercept_uncertainty=self.uncertainty.intercept,
            slope=state.slope,
            slope_uncertainty=self.uncertainty.slope,
            covariance=self.uncertainty.background_covariance,
        )

    @cached_property
    def summary(self) -> FitSummary:
        assert self.uncertainty is not None
        return build_summary(
            self.inputs.spectrum,
            self.inputs.region,
            self.inputs.energy,
            self.inputs.calibrated_peaks(),
            self.converged_state(),
            self.uncertainty,
        )

    def output_peaks(self) -> list[Peak]:
        """Fitted peaks as channel peaks with energies, sorted by position.

        A peak whose channel uncertainty is below 1e-5 did not vary and is
        reported as fixed.
        """
        peaks = [
            Peak.from_channel(
                s.channel, fixed_centroid=abs(s.channel_uncertainty) < CENTROID_FIXED_THRESHOLD
            ).with_calibration(self.inputs.energy)
            for s in self.summary.peaks
        ]
        return sort_peaks(peaks)
