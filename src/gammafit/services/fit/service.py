"""High-level fitting service facade.

This service provides the primary API for fitting operations.
CLI and other adapters should import only from this module.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gammafit.core.domain.config import FitInputs, GammaFitConfig
from gammafit.core.fitting.cycle import fit_region
from gammafit.core.shared.reporter import NullReporter, Reporter
from gammafit.io.job import load_job
from gammafit.services.fit.writer import write_all_outputs

if TYPE_CHECKING:
    from gammafit.core.domain.config import OutputFormat
    from gammafit.core.fitting.optimizer import Optimizer
    from gammafit.core.results.record import FitRecord


@dataclass(frozen=True)
class FitResult:
    """Result of a fitting operation.

    Attributes
    ----------
        name: Job name
        inputs: Inputs the region was fitted with
        records: Returned fit records, lowest chi-squared first
        output_dir: Directory where results were written
        written: Files written
    """

    name: str
    inputs: FitInputs
    records: list[FitRecord]
    output_dir: Path
    written: list[Path]

    @property
    def best(self) -> FitRecord:
        return self.records[0]

    @property
    def summary(self) -> dict[str, Any]:
        best = self.best
        return {
            "name": self.name,
            "region": self.inputs.region.display(),
            "n_fits": len(self.records),
            "best_cycle": best.cycle_number,
            "chi_squared": best.chi_squared,
            "n_peaks": best.n_peaks,
        }


class FitService:
    """Service for gamma-ray region fitting.

    Example:
        service = FitService()
        result = service.run_job(Path("region.toml"))
        print(f"Best fit has {result.best.n_peaks} peaks")
    """

    def __init__(
        self, reporter: Reporter | None = None, optimizer: Optimizer | None = None
    ) -> None:
        """Initialize the fit service.

        Args:
            reporter: Reporter for status messages (default: silent)
            optimizer: Solver used for every cycle (default: Levenberg-Marquardt
                with tolerances from the fit settings)
        """
        self._reporter = reporter or NullReporter()
        self._optimizer = optimizer

    def fit(self, inputs: FitInputs) -> list[FitRecord]:
        """Fit one region and return the ranked records."""
        return fit_region(inputs, optimizer=self._optimizer, reporter=self._reporter)

    def run_job(
        self,
        job_path: Path,
        config: GammaFitConfig | None = None,
        *,
        output_dir: Path | None = None,
        formats: list[OutputFormat] | None = None,
        max_cycles: int | None = None,
        max_output_fits: int | None = None,
    ) -> FitResult:
        """Load a job file, fit its region and write the results.

        Settings are layered: the configuration file, then the job file,
        then the explicit keyword overrides. A relative output directory is
        resolved against the job file's directory.

        Raises
        ------
            FileNotFoundError: If the job file doesn't exist
            GammaFitError: If loading, fitting or writing fails
        """
        config = config or GammaFitConfig()
        job = load_job(job_path, defaults=config.fitting)

        overrides: dict[str, int] = {}
        if max_cycles is not None:
            overrides["max_cycles"] = max_cycles
        if max_output_fits is not None:
            overrides["max_output_fits"] = max_output_fits
        inputs = job.inputs
        if overrides:
            inputs = replace(inputs, parameters=inputs.parameters.model_copy(update=overrides))

        output = job.output or config.output
        output_updates: dict[str, Any] = {}
        if output_dir is not None:
            output_updates["directory"] = output_dir
        if formats is not None:
            output_updates["formats"] = list(dict.fromkeys(formats))
        if output_updates:
            output = output.model_copy(update=output_updates)
        if not output.directory.is_absolute():
            output = output.model_copy(update={"directory": job_path.parent / output.directory})

        records = self.fit(inputs)
        written = write_all_outputs(records, output, self._reporter)
        return FitResult(
            name=job.name,
            inputs=inputs,
            records=records,
            output_dir=output.directory,
            written=written,
        )
