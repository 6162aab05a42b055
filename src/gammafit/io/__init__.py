"""Configuration, job files and result export."""

from gammafit.io.config import generate_default_config, load_config, save_config
from gammafit.io.job import FitJob, JobSpec, PeakSpec, RegionSpec, load_job, read_counts
from gammafit.io.writers import JSONWriter, NumpyEncoder, format_report, write_text_report

__all__ = [
    "FitJob",
    "JSONWriter",
    "JobSpec",
    "NumpyEncoder",
    "PeakSpec",
    "RegionSpec",
    "format_report",
    "generate_default_config",
    "load_config",
    "load_job",
    "read_counts",
    "save_config",
    "write_text_report",
]
