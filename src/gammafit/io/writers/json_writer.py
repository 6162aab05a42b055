"""JSON output writer for region fit results.

Produces a machine-readable JSON file holding every returned fit record,
its summary and its sampled curves.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from gammafit.core.shared.exceptions import DataIOError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gammafit.core.domain.config import FitInputs
    from gammafit.core.results.record import FitRecord

SCHEMA_VERSION = "1.0.0"
RESULTS_FILENAME = "fit_results.json"


class NumpyEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy types and Path objects."""

    def default(self, o: Any) -> Any:
        """Convert numpy types and Path objects to Python types."""
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        if isinstance(o, np.ndarray):
            return o.tolist()
        if isinstance(o, datetime):
            return o.isoformat()
        if isinstance(o, Path):
            return str(o)
        return super().default(o)


def _finite_or_none(value: float) -> float | None:
    return value if np.isfinite(value) else None


class JSONWriter:
    """Writer for ``fit_results.json``."""

    def __init__(self, points_per_channel: int = 4, indent: int = 2) -> None:
        self.points_per_channel = points_per_channel
        self.indent = indent

    def serialize_inputs(self, inputs: FitInputs) -> dict[str, Any]:
        return {
            "region": {"first": inputs.region.first, "last": inputs.region.last},
            "energy": inputs.energy.model_dump(mode="json"),
            "width": inputs.width.model_dump(mode="json"),
            "parameters": inputs.parameters.model_dump(mode="json"),
            "peaks": [
                {
                    "kind": peak.kind.value,
                    "channel": peak.channel if peak.channel_valid else None,
                    "energy": peak.energy if peak.energy_valid else None,
                    "fixed": peak.fixed_centroid,
                }
                for peak in inputs.calibrated_peaks()
            ],
        }

    def serialize_record(self, record: FitRecord, rank: int) -> dict[str, Any]:
        """Serialize one successful record with its summary and curves."""
        output: dict[str, Any] = {
            "rank": rank,
            "cycle": record.cycle_number,
            "action": record.action.value,
            "outcome": record.outcome.value,
            "chi_squared": _finite_or_none(record.chi_squared),
            "n_peaks": record.n_peaks,
            "vary_count": record.vary_count,
            "nfev": record.nfev,
        }
        if not record.succeeded:
            output["failure"] = str(record.failure)
            return output

        background = record.background
        output["background"] = {
            "intercept": background.intercept,
            "intercept_uncertainty": background.intercept_uncertainty,
            "slope": background.slope,
            "slope_uncertainty": background.slope_uncertainty,
            "covariance": background.covariance,
        }
        output["summary"] = record.summary.to_dict()
        output["statistics"] = record.residual_statistics.to_dict()
        output["curve"] = record.curve(self.points_per_channel).to_dict()
        return output

    def write_results(self, records: Sequence[FitRecord], path: Path) -> None:
        """Write the ranked records of one region fit.

        Args:
            records: Records as returned by ``fit_region``, best first
            path: Output file path
        """
        if not records:
            msg = "No fit records to write"
            raise DataIOError(msg)
        output = {
            "schema_version": SCHEMA_VERSION,
            "created": datetime.now(),
            "inputs": self.serialize_inputs(records[0].inputs),
            "fits": [
                self.serialize_record(record, rank)
                for rank, record in enumerate(records, start=1)
            ],
        }
        self._write_json(output, path)

    def _write_json(self, data: dict[str, Any], path: Path) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("w", encoding="utf-8") as f:
                json.dump(data, f, cls=NumpyEncoder, indent=self.indent)
        except OSError as e:
            msg = f"Cannot write {path}: {e}"
            raise DataIOError(msg) from e
