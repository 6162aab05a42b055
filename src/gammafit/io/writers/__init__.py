"""Result writers."""

from gammafit.io.writers.json_writer import RESULTS_FILENAME, JSONWriter, NumpyEncoder
from gammafit.io.writers.text_writer import REPORT_FILENAME, format_report, write_text_report

__all__ = [
    "REPORT_FILENAME",
    "RESULTS_FILENAME",
    "JSONWriter",
    "NumpyEncoder",
    "format_report",
    "write_text_report",
]
