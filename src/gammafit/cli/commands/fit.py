"""Fit command implementation."""

from __future__ import annotations

import logging
import pathlib  # noqa: TC003
from typing import Annotated, cast, get_args

import typer
from rich.markup import escape

from gammafit.core.domain.config import GammaFitConfig, OutputFormat
from gammafit.core.shared.exceptions import GammaFitError
from gammafit.core.shared.reporter import CompositeReporter, LoggingReporter
from gammafit.io.config import load_config
from gammafit.services.fit import FitService
from gammafit.ui import (
    ConsoleReporter,
    close_logging,
    error,
    print_fit_records,
    print_summary,
    setup_logging,
    show_header,
)

VALID_OUTPUT_FORMATS = get_args(OutputFormat)


def fit_command(
    job: Annotated[
        pathlib.Path,
        typer.Argument(
            help="Path to the TOML job file describing the region",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    config: Annotated[
        pathlib.Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to TOML configuration file",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    output: Annotated[
        pathlib.Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory for results",
            file_okay=False,
            resolve_path=True,
        ),
    ] = None,
    formats: Annotated[
        list[str] | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format(s): json, txt. Can be specified multiple times.",
        ),
    ] = None,
    max_cycles: Annotated[
        int | None,
        typer.Option("--max-cycles", help="Maximum number of fit cycles", min=1),
    ] = None,
    nout: Annotated[
        int | None,
        typer.Option("--nout", "-n", help="Number of best fits to report", min=1),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show header and detailed output"),
    ] = False,
    log_file: Annotated[
        pathlib.Path | None,
        typer.Option(
            "--log-file",
            help="Write a log file (JSON lines when it ends in .json)",
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """Fit one spectrum region described by a job file.

    Examples
    --------
    Basic usage:
        $ gammafit fit region.toml

    Report the three best fits as JSON only:
        $ gammafit fit region.toml --nout 3 --format json
    """
    if formats:
        invalid_formats = [f for f in formats if f not in VALID_OUTPUT_FORMATS]
        if invalid_formats:
            msg = (
                f"Invalid format(s): {', '.join(invalid_formats)}. "
                f"Valid formats: {', '.join(VALID_OUTPUT_FORMATS)}"
            )
            raise typer.BadParameter(msg)
    output_formats = cast("list[OutputFormat] | None", formats or None)

    if verbose:
        show_header(f"gammafit: {job.name}")

    try:
        fit_config = load_config(config) if config is not None else GammaFitConfig()
    except GammaFitError as e:
        error(escape(str(e)))
        raise typer.Exit(code=1) from e

    setup_logging(
        log_file=log_file,
        level=logging.DEBUG if verbose else logging.INFO,
        log_format=fit_config.output.log_format if log_file is not None else None,
    )
    reporter = CompositeReporter([ConsoleReporter(), LoggingReporter()])
    service = FitService(reporter=reporter)

    try:
        result = service.run_job(
            job,
            fit_config,
            output_dir=output,
            formats=output_formats,
            max_cycles=max_cycles,
            max_output_fits=nout,
        )
    except (GammaFitError, FileNotFoundError) as e:
        reporter.error(f"Fitting failed: {e}")
        raise typer.Exit(code=1) from e
    finally:
        close_logging()

    print_fit_records(result.records)
    if verbose:
        print_summary(result.summary, title="Best fit")
