"""
Pydantic models for baseline statistics, fresh samples and calculation results.

``Measurement`` and ``Measurements`` mirror hyperfine's JSON export so that
baseline files and sampler output can be parsed with ``model_validate_json``.
Every model is frozen: records are immutable values once constructed.
"""

from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from perfrunner.exceptions import MalformedMeasurementError
from perfrunner.version import VersionField


class Measurement(BaseModel):
    """
    One hyperfine result: the reduced statistics for a single command.

    ``times`` holds the raw per-run timings and is empty when only the summary
    was persisted, as in baseline files.
    """

    model_config = ConfigDict(
        extra="ignore",  # hyperfine adds exit_codes, parameters, ...
        frozen=True,
    )

    command: str
    mean: float
    stddev: float
    median: float
    user: float
    system: float
    min: float
    max: float
    times: List[float] = Field(default_factory=list)


class Measurements(BaseModel):
    """Top-level shape of a hyperfine ``--export-json`` file."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    results: List[Measurement]


class BaselineMetric(BaseModel):
    """Historical statistics for one (project, metric) pair."""

    model_config = ConfigDict(frozen=True)

    project: str
    metric: str
    ts: datetime
    measurement: Measurement


class Baseline(BaseModel):
    """All metrics recorded for one release, as written by the release process."""

    model_config = ConfigDict(frozen=True)

    version: VersionField
    metrics: List[BaselineMetric] = Field(default_factory=list)


class Sample(BaseModel):
    """A single fresh observation for one (project, metric) pair."""

    model_config = ConfigDict(frozen=True)

    project: str
    metric: str
    value: float
    ts: datetime

    @classmethod
    def from_measurement(
        cls,
        project: str,
        metric: str,
        ts: datetime,
        measurement: Measurement,
    ) -> Sample:
        """
        Build a sample from a measurement taken with exactly one run.

        Raises:
            MalformedMeasurementError: If ``measurement.times`` does not hold
                exactly one value. The timings are never averaged or truncated.
        """
        times = measurement.times
        context = {
            "project": project,
            "metric": metric,
            "command": measurement.command,
            "times": len(times),
        }

        if not times:
            raise MalformedMeasurementError(
                "found a sample with no measurement",
                error_code="MEASURE_001",
                context=context,
            )
        if len(times) > 1:
            raise MalformedMeasurementError(
                "found a sample with too many measurements",
                error_code="MEASURE_002",
                context=context,
            )

        return cls(project=project, metric=metric, value=times[0], ts=ts)


class Calculation(BaseModel):
    """
    Comparison of one sample against its baseline statistics.

    Calculations are emitted for passes as well as regressions; filter on
    ``regression`` to get failures only.
    """

    model_config = ConfigDict(frozen=True)

    version: VersionField
    project: str
    metric: str
    regression: bool
    ts: datetime
    sigma: float
    mean: float
    stddev: float
    threshold: float


__all__ = [
    "Measurement",
    "Measurements",
    "BaselineMetric",
    "Baseline",
    "Sample",
    "Calculation",
]
