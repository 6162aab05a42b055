"""Tests for the fit service facade."""

from pathlib import Path

import pytest

from gammafit.core.domain.config import FitParameters, GammaFitConfig, OutputConfig
from gammafit.services.fit import FitResult, FitService


@pytest.fixture
def job_file(tmp_path, make_counts):
    counts = ", ".join(str(int(c)) for c in make_counts(seed=8))
    path = tmp_path / "jobs" / "region.toml"
    path.parent.mkdir()
    path.write_text(
        f"counts = [{counts}]\n"
        "[region]\nfirst = 20\nlast = 80\n"
        "[width]\nconstant = 5.0\n"
        "[[peaks]]\nchannel = 50.0\n"
        "[fitting]\nmax_cycles = 4\n"
    )
    return path


class TestFitService:
    def test_fit_inputs(self, single_peak_inputs):
        records = FitService().fit(single_peak_inputs)
        assert len(records) == 1
        assert records[0].succeeded

    def test_run_job_defaults(self, job_file):
        result = FitService().run_job(job_file)
        assert isinstance(result, FitResult)
        assert result.name == "region"
        assert result.output_dir == job_file.parent / "Fits"
        assert [path.name for path in result.written] == ["fit_results.json", "fit_report.txt"]
        assert result.inputs.parameters.max_cycles == 4

    def test_summary(self, job_file):
        result = FitService().run_job(job_file, formats=["json"])
        summary = result.summary
        assert summary["name"] == "region"
        assert summary["region"] == "20 -> 80"
        assert summary["n_peaks"] == result.best.n_peaks
        assert summary["best_cycle"] == result.best.cycle_number

    def test_settings_layering(self, job_file, tmp_path):
        config = GammaFitConfig(
            fitting=FitParameters(max_cycles=9, max_peaks=3),
            output=OutputConfig(directory=Path("results"), formats=["txt"]),
        )
        result = FitService().run_job(
            job_file, config, max_output_fits=2, output_dir=tmp_path / "override"
        )
        parameters = result.inputs.parameters
        assert parameters.max_cycles == 4
        assert parameters.max_peaks == 3
        assert parameters.max_output_fits == 2
        assert result.output_dir == tmp_path / "override"
        assert [path.name for path in result.written] == ["fit_report.txt"]

    def test_missing_job(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FitService().run_job(tmp_path / "missing.toml")
