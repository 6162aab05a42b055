"""Output writing for region fit results."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gammafit.io.writers import REPORT_FILENAME, RESULTS_FILENAME, JSONWriter, write_text_report

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from gammafit.core.domain.config import OutputConfig
    from gammafit.core.results.record import FitRecord
    from gammafit.core.shared.reporter import Reporter

__all__ = ["write_all_outputs"]


def write_all_outputs(
    records: Sequence[FitRecord],
    output: OutputConfig,
    reporter: Reporter,
) -> list[Path]:
    """Write every requested output format.

    Args:
        records: Ranked fit records
        output: Output directory, formats and curve density
        reporter: Receives one success message per written file

    Returns
    -------
        Paths of the written files, in format order
    """
    output_dir = output.directory
    written: list[Path] = []
    for fmt in output.formats:
        if fmt == "json":
            path = output_dir / RESULTS_FILENAME
            JSONWriter(points_per_channel=output.points_per_channel).write_results(records, path)
        else:
            path = output_dir / REPORT_FILENAME
            write_text_report(records, path)
        reporter.success(f"Wrote {path}")
        written.append(path)
    return written
