"""
Benchmark sampling with hyperfine.

Every sub-directory of the projects directory is one project. Each configured
metric is timed once per project with ``hyperfine --runs 1``, hyperfine's JSON
export is written to a scratch directory, and each export becomes one
:class:`~perfrunner.models.Sample`. All samples of a run share one timestamp.
"""

from __future__ import annotations

import subprocess
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import List, NamedTuple, Optional, Union

from pydantic import ValidationError

from perfrunner import logger
from perfrunner.config import HyperfineCommand, RunnerSettings
from perfrunner.exceptions import MalformedMeasurementError, SamplingError, log_and_raise
from perfrunner.models import Measurements, Sample

SAMPLE_RUNS = 1


class ProjectRun(NamedTuple):
    """One scheduled hyperfine invocation."""

    project: str
    path: Path
    metric: HyperfineCommand


def discover_projects(projects_dir: Union[str, Path]) -> List[Path]:
    """
    List project directories, sorted by name.

    Raises:
        SamplingError: If ``projects_dir`` is not a directory
    """
    projects_dir = Path(projects_dir)
    if not projects_dir.is_dir():
        raise SamplingError(
            f"Projects directory not found: {projects_dir}",
            error_code="COLLAB_201",
            context={"projects_dir": projects_dir},
        )
    return sorted(p for p in projects_dir.iterdir() if p.is_dir())


def export_path(tmp_dir: Union[str, Path], metric: str, project: str) -> Path:
    return Path(tmp_dir) / f"{metric}___{project}.json"


def build_hyperfine_command(
    command: str,
    prepare: str,
    runs: int,
    output_file: Union[str, Path],
    settings: RunnerSettings,
) -> List[str]:
    """Argument vector for one hyperfine invocation."""
    argv = [
        settings.hyperfine_executable,
        "--runs", str(runs),
        "--warmup", str(settings.warmup),
    ]
    if prepare:
        argv.extend(["--prepare", prepare])
    argv.extend([
        command,
        "--export-json", str(output_file),
        "--style", "none",
    ])
    return argv


def run_hyperfine(
    run_dir: Union[str, Path],
    command: str,
    prepare: str,
    runs: int,
    output_file: Union[str, Path],
    settings: Optional[RunnerSettings] = None,
) -> subprocess.CompletedProcess:
    """
    Time ``command`` inside ``run_dir`` and export the result to ``output_file``.

    Raises:
        SamplingError: If hyperfine cannot be started, exits non-zero, or exceeds
            ``settings.timeout_seconds``
    """
    settings = settings or RunnerSettings()
    argv = build_hyperfine_command(command, prepare, runs, output_file, settings)
    context = {"command": command, "run_dir": str(run_dir), "output_file": str(output_file)}

    logger.debug(f"Executing in {run_dir}: {' '.join(argv)}")
    start_time = time.time()

    try:
        result = subprocess.run(
            argv,
            cwd=run_dir,
            capture_output=True,
            text=True,
            timeout=settings.timeout_seconds,
        )
    except OSError as e:
        raise SamplingError(
            f"Could not start {settings.hyperfine_executable}: {e}",
            error_code="COLLAB_202",
            context=context,
        ) from e
    except subprocess.TimeoutExpired as e:
        raise SamplingError(
            f"hyperfine timed out after {settings.timeout_seconds} seconds",
            error_code="COLLAB_204",
            context=context,
        ) from e

    logger.debug(f"hyperfine finished in {time.time() - start_time:.2f}s with code {result.returncode}")

    if result.returncode != 0:
        log_and_raise(
            SamplingError(
                f"hyperfine exited with status {result.returncode}",
                error_code="COLLAB_203",
                context={**context, "return_code": result.returncode, "stderr": (result.stderr or "").strip()},
            ),
            logger,
            level="debug",
        )
    return result


def read_export(path: Union[str, Path]) -> Measurements:
    """
    Parse one hyperfine JSON export.

    Raises:
        SamplingError: If the file cannot be read or does not match the schema
    """
    path = Path(path)
    try:
        return Measurements.model_validate_json(path.read_bytes())
    except OSError as e:
        raise SamplingError(
            f"Could not read hyperfine export {path.name}: {e}",
            error_code="COLLAB_205",
            context={"file_path": path},
        ) from e
    except ValidationError as e:
        raise SamplingError(
            f"hyperfine export {path.name} is malformed",
            error_code="COLLAB_205",
            context={"file_path": path, "validation_errors": [err["msg"] for err in e.errors()]},
        ) from e


def plan_runs(projects_dir: Union[str, Path], settings: RunnerSettings) -> List[ProjectRun]:
    """Every (project, metric) combination, project-major."""
    return [
        ProjectRun(project=path.name, path=path, metric=metric)
        for path in discover_projects(projects_dir)
        for metric in settings.metrics
    ]


def take_samples(
    projects_dir: Union[str, Path],
    tmp_dir: Union[str, Path],
    settings: Optional[RunnerSettings] = None,
) -> List[Sample]:
    """
    Benchmark every project and return one sample per (project, metric).

    Args:
        projects_dir: Directory whose sub-directories are the projects
        tmp_dir: Scratch directory for hyperfine exports (created if missing)
        settings: Runner settings; defaults from the environment if None

    Raises:
        SamplingError: If a hyperfine run fails
        MalformedMeasurementError: If an export holds no result or the result
            does not hold exactly one timing
    """
    settings = settings or RunnerSettings()
    tmp_dir = Path(tmp_dir)
    tmp_dir.mkdir(parents=True, exist_ok=True)

    runs = plan_runs(projects_dir, settings)
    logger.info(f"Sampling {len(runs)} project/metric pair(s) from {projects_dir}")

    for run in runs:
        logger.info(f"Running {run.metric.name} on {run.project}")
        run_hyperfine(
            run.path,
            settings.command_for(run.metric),
            run.metric.prepare,
            SAMPLE_RUNS,
            export_path(tmp_dir, run.metric.name, run.project),
            settings,
        )

    ts = datetime.now(timezone.utc)
    samples: List[Sample] = []
    for run in runs:
        path = export_path(tmp_dir, run.metric.name, run.project)
        measurements = read_export(path)
        if not measurements.results:
            raise MalformedMeasurementError(
                f"hyperfine export {path.name} contains no results",
                error_code="MEASURE_003",
                context={"file_path": path, "project": run.project, "metric": run.metric.name},
            )
        samples.append(
            Sample.from_measurement(run.project, run.metric.name, ts, measurements.results[0])
        )

    logger.info(f"Collected {len(samples)} sample(s)")
    return samples


__all__ = [
    "ProjectRun",
    "SAMPLE_RUNS",
    "build_hyperfine_command",
    "discover_projects",
    "export_path",
    "plan_runs",
    "read_export",
    "run_hyperfine",
    "take_samples",
]
