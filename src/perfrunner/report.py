"""
Calculation reports.

The JSON report is the CI contract: an array with one object per calculation,
using the model's field names, the version as ``major.minor.patch`` text and
ISO 8601 timestamps. A CSV rendition is available for spreadsheet analysis.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Sequence, Union

import pandas as pd
from pydantic import TypeAdapter, ValidationError

from perfrunner import logger
from perfrunner.exceptions import PerfRunnerError
from perfrunner.models import Calculation

CALCULATION_COLUMNS = list(Calculation.model_fields)

_calculations_adapter = TypeAdapter(List[Calculation])


def _report_error(output_path: Path, error: OSError) -> PerfRunnerError:
    return PerfRunnerError(
        f"Could not write report: {error}",
        error_code="PERF_003",
        context={"file_path": output_path},
    )


def write_calculations(calculations: Sequence[Calculation], output_path: Union[str, Path]) -> Path:
    """
    Write calculations as a pretty-printed JSON array and return the path.

    Raises:
        PerfRunnerError: If the file or its directory cannot be written
    """
    output_path = Path(output_path)
    payload = [calc.model_dump(mode="json") for calc in calculations]

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
    except OSError as e:
        raise _report_error(output_path, e) from e

    logger.info(f"Wrote {len(payload)} calculation(s) to {output_path}")
    return output_path


def read_calculations(input_path: Union[str, Path]) -> List[Calculation]:
    """
    Read a report written by :func:`write_calculations`.

    Raises:
        PerfRunnerError: If the file is missing or does not hold calculations
    """
    input_path = Path(input_path)
    try:
        return _calculations_adapter.validate_json(input_path.read_bytes())
    except OSError as e:
        raise PerfRunnerError(
            f"Could not read calculations: {e}",
            context={"file_path": input_path},
        ) from e
    except ValidationError as e:
        raise PerfRunnerError(
            f"{input_path.name} is not a calculations report",
            context={"file_path": input_path, "validation_errors": [err["msg"] for err in e.errors()]},
        ) from e


def calculations_to_dataframe(calculations: Iterable[Calculation]) -> pd.DataFrame:
    """One row per calculation, columns in model field order."""
    rows = [calc.model_dump(mode="json") for calc in calculations]
    df = pd.DataFrame(rows, columns=CALCULATION_COLUMNS)
    if not df.empty:
        df["ts"] = pd.to_datetime(df["ts"], utc=True)
    return df


def write_csv_report(calculations: Iterable[Calculation], output_path: Union[str, Path]) -> pd.DataFrame:
    """Write the CSV report and return the DataFrame that was written."""
    output_path = Path(output_path)
    df = calculations_to_dataframe(calculations)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)
    except OSError as e:
        raise _report_error(output_path, e) from e

    logger.info(f"Wrote CSV report with {len(df)} row(s) to {output_path}")
    return df


def summarize(calculations: Sequence[Calculation]) -> Dict[str, Any]:
    """Totals plus the regressed ``project/metric`` names, in report order."""
    regressed = [calc for calc in calculations if calc.regression]
    return {
        "total": len(calculations),
        "regressions": len(regressed),
        "passed": len(calculations) - len(regressed),
        "regressed": [f"{calc.project}/{calc.metric}" for calc in regressed],
        "versions": sorted({str(calc.version) for calc in calculations}),
    }


def format_regression(calc: Calculation) -> str:
    return (
        f"REGRESSION {calc.project}/{calc.metric}: threshold {calc.threshold:.6f} "
        f"(mean {calc.mean:.6f} + {calc.sigma} * stddev {calc.stddev:.6f}) "
        f"vs baseline {calc.version}"
    )


def log_summary(calculations: Sequence[Calculation]) -> Dict[str, Any]:
    summary = summarize(calculations)
    logger.info(
        f"{summary['total']} calculation(s): {summary['passed']} passed, "
        f"{summary['regressions']} regression(s)"
    )
    for calc in calculations:
        if calc.regression:
            logger.warning(format_regression(calc))
    return summary


__all__ = [
    "CALCULATION_COLUMNS",
    "calculations_to_dataframe",
    "format_regression",
    "log_summary",
    "read_calculations",
    "summarize",
    "write_calculations",
    "write_csv_report",
]
