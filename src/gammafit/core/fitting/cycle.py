"""Cycle controller of a region fit.

A region fit runs the optimizer repeatedly. After every successful cycle the
model that cycle started from is checked: of two starting peaks closer than
the collision distance the smaller one is deleted, otherwise a peak may be
added at the largest positive residual of the converged fit. The next cycle
starts from the changed starting model. The loop ends when the model is left
unchanged, a cycle fails, or the cycle budget is spent. Successful cycles are
then ranked by chi-squared.

State machine::

    INIT -> OPTIMIZE -> CHECK_MODEL -> ADD_PEAK    -> OPTIMIZE
                                    -> DELETE_PEAK -> OPTIMIZE
                                    -> DONE
    OPTIMIZE -> FAILED
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from gammafit.core.constants import (
    ADD_PEAK_DELTA_THRESHOLD,
    DELETE_PEAK_WIDTH_FRACTION,
    MIN_DEGREES_OF_FREEDOM,
)
from gammafit.core.domain.state import build_initial_state
from gammafit.core.fitting.optimizer import LevenbergMarquardtOptimizer
from gammafit.core.fitting.parameters import VaryMask, write_vector
from gammafit.core.fitting.residuals import RegionResidualModel
from gammafit.core.fitting.uncertainty import propagate_uncertainty
from gammafit.core.results.record import CycleAction, CycleOutcome, FitRecord
from gammafit.core.results.statistics import compute_chi_squared, compute_reduced_chi_squared
from gammafit.core.shared.exceptions import (
    NumericsError,
    OptimizationError,
    OverdeterminedError,
    TooManyInputPeaksError,
)
from gammafit.core.shared.reporter import NullReporter

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from gammafit.core.domain.config import FitInputs
    from gammafit.core.domain.region import ChannelRange
    from gammafit.core.domain.spectrum import Spectrum
    from gammafit.core.domain.state import FitState
    from gammafit.core.fitting.optimizer import Optimizer
    from gammafit.core.results.curve import FitCurve
    from gammafit.core.shared.reporter import Reporter


class CycleState(str, Enum):
    """States of the cycle controller."""

    INIT = "init"
    OPTIMIZE = "optimize"
    CHECK_MODEL = "check_model"
    ADD_PEAK = "add_peak"
    DELETE_PEAK = "delete_peak"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ModelCheck:
    """Decision taken after a cycle.

    Attributes:
        next_state: ``ADD_PEAK``, ``DELETE_PEAK`` or ``DONE``
        model: Model for the next cycle (unchanged when done)
        channel: Channel of the added or deleted peak
        reason: Why the loop stops, when done
    """

    next_state: CycleState
    model: FitState
    channel: float | None = None
    reason: str = ""

    @property
    def action(self) -> CycleAction:
        if self.next_state is CycleState.ADD_PEAK:
            return CycleAction.ADD_PEAK
        if self.next_state is CycleState.DELETE_PEAK:
            return CycleAction.DELETE_PEAK
        msg = f"No model change after {self.next_state.value}"
        raise ValueError(msg)


def select_peak_to_delete(state: FitState) -> int | None:
    """Index of the peak to drop from the first colliding pair, if any.

    Two peaks of nonzero height collide when their centroids are closer than
    0.2 times the initial peak width. The lower of the two is dropped; on
    equal heights the earlier one goes.
    """
    threshold = DELETE_PEAK_WIDTH_FRACTION * state.initial_width
    peaks = state.peaks
    for j in range(len(peaks) - 1):
        if peaks[j].height == 0.0:
            continue
        for k in range(j + 1, len(peaks)):
            if peaks[k].height == 0.0:
                continue
            if abs(peaks[j].centroid - peaks[k].centroid) < threshold:
                return k if peaks[k].height < peaks[j].height else j
    return None


def select_peak_to_add(
    state: FitState,
    curve: FitCurve,
    spectrum: Spectrum,
    region: ChannelRange,
    max_peaks: int,
    residual_threshold: float,
) -> tuple[int, float] | None:
    """Channel and starting height of a new peak, or None.

    The candidate is the first channel holding the largest positive residual.
    It is rejected when the model is full, the residual is below the
    threshold, an existing centroid is within one channel, the channel is
    next to a region edge, or neither neighbouring residual is positive.
    """
    if state.n_peaks + 1 > max_peaks:
        return None

    max_residual = 0.0
    channel = None
    for ch, residual in zip(curve.channels, curve.residuals, strict=True):
        if residual > max_residual:
            max_residual = float(residual)
            channel = int(ch)
    if channel is None or max_residual < residual_threshold:
        return None

    if any(abs(peak.centroid - channel) < ADD_PEAK_DELTA_THRESHOLD for peak in state.peaks):
        return None
    if channel - 1 < region.first or channel + 1 >= region.last:
        return None
    if curve.residual_at(channel - 1) <= 0.0 and curve.residual_at(channel + 1) <= 0.0:
        return None

    height = spectrum.count(channel) - curve.fit_at(channel)
    return channel, height


def check_model(
    record: FitRecord, inputs: FitInputs, peak_counts: Collection[int]
) -> ModelCheck:
    """Decide how the model changes before the next cycle.

    The decision works on the model the cycle started from, not on the
    optimizer's output: colliding peaks are looked for among the starting
    peaks and the next model is derived from them. Only the residuals come
    from the converged fit.

    Deleting takes precedence over adding; at most one of them happens. A
    deletion that would bring the model back to a peak count some earlier
    cycle already had stops the loop instead. After a change every peak
    except a newly added one is constrained.

    Args:
        record: Last successful cycle
        inputs: Region fit inputs
        peak_counts: Peak counts of all completed cycles

    Returns
    -------
        The decision and the model for the next cycle
    """
    state = record.starting_state()
    region = inputs.region

    index = select_peak_to_delete(state)
    if index is not None:
        if state.n_peaks - 1 in peak_counts:
            return ModelCheck(
                CycleState.DONE,
                state,
                reason=f"a fit with {state.n_peaks - 1} peak(s) was already done",
            )
        channel = state.peaks[index].centroid
        model = state.delete_peak(index).constrain(region)
        return ModelCheck(CycleState.DELETE_PEAK, model, channel=channel)

    parameters = inputs.parameters
    candidate = select_peak_to_add(
        state,
        record.base_curve,
        inputs.spectrum,
        region,
        parameters.max_peaks,
        parameters.max_residual_threshold,
    )
    if candidate is None:
        return ModelCheck(CycleState.DONE, state, reason="no peak to add or delete")

    channel, height = candidate
    model = state.add_peak(float(channel), inputs.energy.energy_of(channel), height)
    model = model.constrain(region, skip=model.n_peaks - 1)
    return ModelCheck(CycleState.ADD_PEAK, model, channel=float(channel))


def run_cycle(
    cycle_number: int,
    action: CycleAction,
    inputs: FitInputs,
    state: FitState,
    optimizer: Optimizer,
) -> FitRecord:
    """Optimize one model and record the outcome.

    Optimization failures do not propagate; they come back as a record with
    outcome ``FAILED`` holding the exception.
    """
    region = inputs.region
    mask = VaryMask.for_state(state, inputs.parameters.peak_width_mode)
    if region.width - mask.vary_count < MIN_DEGREES_OF_FREEDOM:
        error = OverdeterminedError(region.width, mask.vary_count)
        return FitRecord.failed(cycle_number, action, inputs, error, start_state=state)

    model = RegionResidualModel(inputs.spectrum, region, state, mask)
    try:
        result = optimizer.solve(model.residuals, model.jacobian, model.initial_vector())
        final = write_vector(state, mask, result.x)
        residuals = model.residuals(result.x)
        uncertainty = propagate_uncertainty(final, mask, result.covariance, inputs.energy)
    except (OptimizationError, NumericsError) as error:
        return FitRecord.failed(cycle_number, action, inputs, error, start_state=state)

    chi_squared = compute_reduced_chi_squared(
        compute_chi_squared(residuals), region.width, mask.vary_count
    )
    return FitRecord(
        cycle_number=cycle_number,
        action=action,
        outcome=CycleOutcome.CONTINUE,
        inputs=inputs,
        start_state=state,
        state=final,
        mask=mask,
        uncertainty=uncertainty,
        chi_squared=chi_squared,
        nfev=result.nfev,
    )


def rank_records(records: Iterable[FitRecord], max_output_fits: int) -> list[FitRecord]:
    """Best successful records first; equal chi-squared keeps cycle order."""
    successful = [record for record in records if record.succeeded]
    return sorted(successful, key=lambda record: record.chi_squared)[:max_output_fits]


def _report_cycle(reporter: Reporter, record: FitRecord) -> None:
    if record.succeeded:
        reporter.info(
            f"Cycle {record.cycle_number}: {record.n_peaks} peak(s), "
            f"{record.vary_count} varying, chi2 = {record.chi_squared:.4f}"
        )
    else:
        reporter.warning(f"Cycle {record.cycle_number} failed: {record.failure}")


def fit_region(
    inputs: FitInputs,
    optimizer: Optimizer | None = None,
    reporter: Reporter | None = None,
) -> list[FitRecord]:
    """Fit a region with a varying number of peaks.

    Args:
        inputs: Spectrum, region, calibrations, candidate peaks and settings
        optimizer: Least-squares solver; defaults to Levenberg-Marquardt
            with the tolerances selected by the fit settings
        reporter: Progress reporter; silent by default

    Returns
    -------
        At most ``max_output_fits`` records, lowest chi-squared first

    Raises:
        TooManyInputPeaksError: More candidate peaks than ``max_peaks``
        OptimizationError: The first cycle failed
        NumericsError: The first cycle produced non-finite values
    """
    reporter = reporter or NullReporter()
    parameters = inputs.parameters
    if len(inputs.peaks) > parameters.max_peaks:
        raise TooManyInputPeaksError(len(inputs.peaks), parameters.max_peaks)
    optimizer = optimizer or LevenbergMarquardtOptimizer.from_parameters(parameters)

    reporter.action(
        f"Fitting region {inputs.region.display()} with {len(inputs.peaks)} input peak(s)"
    )
    state = build_initial_state(inputs, reporter)
    record = run_cycle(1, CycleAction.INITIAL, inputs, state, optimizer)
    _report_cycle(reporter, record)
    if record.failure is not None:
        raise record.failure

    records = [record]
    peak_counts = [record.n_peaks]
    for cycle_number in range(2, parameters.max_cycles + 1):
        check = check_model(record, inputs, peak_counts)
        if check.next_state is CycleState.DONE:
            reporter.info(f"Done after cycle {record.cycle_number}: {check.reason}")
            break
        verb = "Adding" if check.next_state is CycleState.ADD_PEAK else "Deleting"
        reporter.info(f"{verb} peak at channel {check.channel:.2f}")

        next_record = run_cycle(cycle_number, check.action, inputs, check.model, optimizer)
        _report_cycle(reporter, next_record)
        if not next_record.succeeded:
            break
        record = next_record
        records.append(record)
        peak_counts.append(record.n_peaks)
    else:
        reporter.info(f"Reached the maximum of {parameters.max_cycles} cycle(s)")

    ranked = rank_records(records, parameters.max_output_fits)
    best = ranked[0]
    reporter.success(
        f"Region {inputs.region.display()}: best fit from cycle {best.cycle_number} "
        f"with {best.n_peaks} peak(s), chi2 = {best.chi_squared:.4f}"
    )
    return ranked
