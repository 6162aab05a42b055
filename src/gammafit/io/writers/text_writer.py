"""Plain-text fit report."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gammafit.core.shared.exceptions import DataIOError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from gammafit.core.domain.config import FitInputs
    from gammafit.core.results.record import FitRecord
    from gammafit.core.results.summary import PeakSummary

REPORT_FILENAME = "fit_report.txt"


def _flag_text(peak: PeakSummary) -> str:
    flags = [
        name
        for name, is_set in (
            ("fixed", peak.channel_fixed),
            ("negative", peak.is_negative),
            ("outside", peak.is_outside),
            ("pos/neg pair", peak.of_pos_neg_pair),
        )
        if is_set
    ]
    return f"  [{', '.join(flags)}]" if flags else ""


def format_inputs(inputs: FitInputs) -> list[str]:
    """Region, calibration and parameter lines."""
    parameters = inputs.parameters
    lines = [
        f"Region: {inputs.region}",
        f"Energy calibration: {inputs.energy.display()}",
        f"Width calibration: {inputs.width.display()}",
        (
            f"Parameters: max cycles = {parameters.max_cycles}"
            f"  max output fits = {parameters.max_output_fits}"
            f"  max peaks = {parameters.max_peaks}"
            f"  residual threshold = {parameters.max_residual_threshold:g}"
        ),
        (
            f"            peak width = {parameters.peak_width_mode.value}"
            f"  convergence = {parameters.convergence_criteria.value}"
        ),
    ]
    lines.extend(f"Input peak: {peak}" for peak in inputs.calibrated_peaks())
    return lines


def format_peak(peak: PeakSummary) -> str:
    return (
        f"  channel {peak.channel:10.3f} +/- {peak.channel_uncertainty:.3f}"
        f"  height {peak.height:12.2f} +/- {peak.height_uncertainty:.2f}"
        f"  fwhm {peak.fwhm:8.3f} +/- {peak.fwhm_uncertainty:.3f}"
        f"  area {peak.area:12.1f} +/- {peak.area_uncertainty:.1f}"
        f"  energy {peak.energy:10.3f} +/- {peak.energy_uncertainty:.3f}"
        f"{_flag_text(peak)}"
    )


def format_record(record: FitRecord, rank: int) -> list[str]:
    """Cycle line followed by one line per peak and the background line."""
    if not record.succeeded:
        return [
            f"Fit {rank}: cycle {record.cycle_number}  {record.outcome.value}  {record.failure}"
        ]

    summary = record.summary
    lines = [
        (
            f"Fit {rank}: cycle {record.cycle_number}  {record.action.value}"
            f"  chi-squared {record.chi_squared:.4f}"
            f"  area ratio {summary.area_ratio:.4f}"
            f"  peaks {summary.n_peaks}"
        )
    ]
    lines.extend(format_peak(peak) for peak in summary.peaks)
    background = record.background
    lines.append(
        f"  background {background.intercept:.3f} +/- {background.intercept_uncertainty:.3f}"
        f"  slope {background.slope:.5f} +/- {background.slope_uncertainty:.5f}"
        f"  covariance {background.covariance:.4g}"
    )
    return lines


def format_report(records: Sequence[FitRecord]) -> str:
    """Complete report for the ranked records of one region fit."""
    if not records:
        return ""
    lines = format_inputs(records[0].inputs)
    for rank, record in enumerate(records, start=1):
        lines.append("")
        lines.extend(format_record(record, rank))
    return "\n".join(lines) + "\n"


def write_text_report(records: Sequence[FitRecord], path: Path) -> None:
    """Write ``format_report`` output to ``path``."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(format_report(records), encoding="utf-8")
    except OSError as e:
        msg = f"Cannot write {path}: {e}"
        raise DataIOError(msg) from e
