"""
Baseline loading.

The release process writes one JSON file per released version into a baseline
directory. This module reads those files back into validated models.
"""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Dict, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from perfrunner import logger
from perfrunner.exceptions import BaselineLoadError
from perfrunner.models import Baseline

ModelT = TypeVar("ModelT", bound=BaseModel)


def from_json_files(directory: Union[str, Path], model: Type[ModelT]) -> Dict[Path, ModelT]:
    """
    Parse every ``*.json`` file directly inside ``directory`` as ``model``.

    Files are read in file-name order so that callers iterating the result see
    a deterministic sequence.

    Args:
        directory: Directory holding the JSON files
        model: Pydantic model each file must validate against

    Returns:
        Dict[Path, ModelT]: Parsed records keyed by file path

    Raises:
        BaselineLoadError: If the directory is missing, or a file cannot be read,
            is not JSON, or fails validation
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise BaselineLoadError(
            f"Directory not found: {directory}",
            error_code="COLLAB_101",
            context={"directory": directory},
        )

    records: Dict[Path, ModelT] = {}
    for path in sorted(p for p in directory.iterdir() if p.suffix == ".json" and p.is_file()):
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise BaselineLoadError(
                f"Could not read {path.name}: {e}",
                error_code="COLLAB_102",
                context={"file_path": path},
            ) from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BaselineLoadError(
                f"Invalid JSON in {path.name}: {e}",
                error_code="COLLAB_103",
                context={"file_path": path},
            ) from e

        try:
            records[path] = model.model_validate(raw)
        except ValidationError as e:
            raise BaselineLoadError(
                f"{path.name} does not match the {model.__name__} schema",
                error_code="COLLAB_104",
                context={
                    "file_path": path,
                    "validation_errors": [err["msg"] for err in e.errors()],
                },
            ) from e

    logger.debug(f"Parsed {len(records)} {model.__name__} file(s) from {directory}")
    return records


def check_statistics(baseline: Baseline, source: Union[str, Path, None] = None) -> None:
    """
    Reject baselines whose statistics cannot produce a meaningful threshold.

    A NaN mean or stddev yields a threshold no value can exceed, and a negative
    stddev pulls the threshold below the mean.

    Raises:
        BaselineLoadError: On a non-finite mean/stddev or a negative stddev
    """
    for metric in baseline.metrics:
        mean = metric.measurement.mean
        stddev = metric.measurement.stddev
        if math.isfinite(mean) and math.isfinite(stddev) and stddev >= 0:
            continue
        raise BaselineLoadError(
            f"Baseline {baseline.version} has unusable statistics for "
            f"{metric.project}/{metric.metric}",
            error_code="COLLAB_105",
            context={
                "file_path": source,
                "project": metric.project,
                "metric": metric.metric,
                "mean": mean,
                "stddev": stddev,
            },
        )


def load_baselines(
    directory: Union[str, Path],
    *,
    validate_statistics: bool = True,
) -> Dict[Path, Baseline]:
    """
    Load every baseline file in ``directory``.

    Args:
        directory: Baseline directory
        validate_statistics: Reject NaN/infinite statistics and negative stddev

    Raises:
        BaselineLoadError: See :func:`from_json_files` and :func:`check_statistics`
    """
    baselines = from_json_files(directory, Baseline)

    if validate_statistics:
        for path, baseline in baselines.items():
            check_statistics(baseline, source=path)

    logger.info(
        f"Loaded {len(baselines)} baseline(s) from {directory}: "
        f"{', '.join(str(b.version) for b in baselines.values()) or 'none'}"
    )
    return baselines


__all__ = ["from_json_files", "check_statistics", "load_baselines"]
