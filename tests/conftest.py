"""
Pytest configuration file for the perfrunner test suite.

Provides:
- Loguru-to-caplog bridging so tests can assert on log output
- Factories for measurements, baselines and samples
- A baseline directory builder writing JSON files the way the release process does
"""

import contextlib
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

# Add the src directory to the Python path
src_path = str(Path(__file__).parent.parent / "src")
sys.path.insert(0, src_path)

import pytest
from loguru import logger

from perfrunner.models import Baseline, BaselineMetric, Measurement, Sample
from perfrunner.version import Version

FIXED_TS = datetime(2024, 1, 15, 12, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True, scope="function")
def capture_loguru_logs_globally(caplog):
    """Forward Loguru records into pytest's caplog."""

    class PropagateHandler(logging.Handler):
        def emit(self, record):
            logging.getLogger(record.name or "perfrunner").handle(record)

    caplog.set_level(logging.DEBUG)
    handler_id = logger.add(
        PropagateHandler(),
        format="{message}",
        level="DEBUG",
        enqueue=False,
    )

    yield

    with contextlib.suppress(ValueError):
        logger.remove(handler_id)


@pytest.fixture
def fixed_ts() -> datetime:
    return FIXED_TS


@pytest.fixture
def make_measurement() -> Callable[..., Measurement]:
    def _make(
        mean: float = 1.0,
        stddev: float = 0.1,
        times: Optional[Sequence[float]] = None,
        command: str = "some command",
    ) -> Measurement:
        return Measurement(
            command=command,
            mean=mean,
            stddev=stddev,
            median=mean,
            user=mean,
            system=0.0,
            min=0.0,
            max=2.0 * mean,
            times=list(times) if times is not None else [],
        )

    return _make


@pytest.fixture
def make_baseline(make_measurement) -> Callable[..., Baseline]:
    """Build a baseline from ``(project, metric, mean, stddev)`` tuples."""

    def _make(version: Version, metrics: Sequence[tuple] = ()) -> Baseline:
        return Baseline(
            version=version,
            metrics=[
                BaselineMetric(
                    project=project,
                    metric=metric,
                    ts=FIXED_TS,
                    measurement=make_measurement(mean=mean, stddev=stddev),
                )
                for project, metric, mean, stddev in metrics
            ],
        )

    return _make


@pytest.fixture
def make_sample() -> Callable[..., Sample]:
    def _make(project: str = "test", metric: str = "m", value: float = 1.0, ts: datetime = FIXED_TS) -> Sample:
        return Sample(project=project, metric=metric, value=value, ts=ts)

    return _make


def _baseline_payload(version: str, metrics: List[Dict[str, Any]]) -> Dict[str, Any]:
    """JSON document in the shape the release process writes."""
    return {
        "version": version,
        "metrics": [
            {
                "project": m["project"],
                "metric": m["metric"],
                "ts": m.get("ts", "2024-01-15T12:30:00Z"),
                "measurement": {
                    "command": m.get("command", "dbt parse --no-version-check"),
                    "mean": m["mean"],
                    "stddev": m["stddev"],
                    "median": m.get("median", m["mean"]),
                    "user": m.get("user", m["mean"]),
                    "system": m.get("system", 0.0),
                    "min": m.get("min", 0.0),
                    "max": m.get("max", 2.0 * m["mean"]),
                    "times": m.get("times", []),
                },
            }
            for m in metrics
        ],
    }


@pytest.fixture
def baseline_payload() -> Callable[..., Dict[str, Any]]:
    return _baseline_payload


@pytest.fixture
def baseline_dir(tmp_path) -> Callable[..., Path]:
    """Write ``{file_name: payload}`` into a fresh baseline directory."""

    def _write(files: Dict[str, Any]) -> Path:
        directory = tmp_path / "baselines"
        directory.mkdir(exist_ok=True)
        for name, payload in files.items():
            content = payload if isinstance(payload, str) else json.dumps(payload)
            (directory / name).write_text(content, encoding="utf-8")
        return directory

    return _write
