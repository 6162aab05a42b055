"""UI tables for displaying fit results.

This module provides functions for creating and displaying Rich tables
with consistent styling across the application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich import box
from rich.table import Table

from gammafit.ui.console import console

if TYPE_CHECKING:
    from gammafit.core.results.record import FitRecord
    from gammafit.core.results.summary import PeakSummary

__all__ = [
    "create_table",
    "fit_record_table",
    "print_fit_records",
    "print_summary",
]


def create_table(title: str | None = None, show_header: bool = True) -> Table:
    """Create a standard table with consistent styling.

    Args:
        title: Optional table title
        show_header: Whether to show table header

    Returns
    -------
        Configured Table instance
    """
    return Table(
        title=title,
        title_style="header" if title else None,
        box=box.ROUNDED,
        show_header=show_header,
        header_style="bold cyan",
        border_style="dim",
    )


def print_summary(items: dict[str, Any], title: str = "Summary") -> None:
    """Print a standard two-column summary table."""
    table = create_table(title, show_header=False)
    table.add_column("Item", style="metric")
    table.add_column("Value", style="value")
    for key, value in items.items():
        table.add_row(key, str(value))
    console.print(table)


def _pm(value: float, sigma: float, digits: int = 3) -> str:
    return f"{value:.{digits}f} ± {sigma:.{digits}f}"


def _flags(peak: PeakSummary) -> str:
    flags = []
    if peak.channel_fixed:
        flags.append("fixed")
    if peak.is_negative:
        flags.append("negative")
    if peak.is_outside:
        flags.append("outside")
    if peak.of_pos_neg_pair:
        flags.append("+/- pair")
    return ", ".join(flags)


def fit_record_table(record: FitRecord, rank: int | None = None) -> Table:
    """Build the table of one fit record: one row per peak."""
    summary = record.summary
    title = (
        f"Cycle {record.cycle_number} ({record.action.value}) | "
        f"chi2 = {record.chi_squared:.4f} | area ratio = {summary.area_ratio:.4f}"
    )
    if rank is not None:
        title = f"#{rank} {title}"
    table = create_table(title)
    table.add_column("Peak", style="key", justify="right")
    table.add_column("Channel", style="number", justify="right")
    table.add_column("Height", style="number", justify="right")
    table.add_column("FWHM", style="number", justify="right")
    table.add_column("Area", style="number", justify="right")
    table.add_column("Energy (keV)", style="number", justify="right")
    table.add_column("Flags", style="flag")
    for i, peak in enumerate(summary.peaks, start=1):
        table.add_row(
            str(i),
            _pm(peak.channel, peak.channel_uncertainty),
            _pm(peak.height, peak.height_uncertainty, 1),
            _pm(peak.fwhm, peak.fwhm_uncertainty),
            _pm(peak.area, peak.area_uncertainty, 1),
            _pm(peak.energy, peak.energy_uncertainty),
            _flags(peak),
        )
    background = record.background
    table.caption = (
        f"background: {_pm(background.intercept, background.intercept_uncertainty)} "
        f"+ ({_pm(background.slope, background.slope_uncertainty, 4)}) x offset"
    )
    return table


def print_fit_records(records: list[FitRecord]) -> None:
    """Print one table per record, best first."""
    for rank, record in enumerate(records, start=1):
        console.print(fit_record_table(record, rank=rank))
