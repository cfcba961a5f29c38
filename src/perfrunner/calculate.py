"""
Regression calculation.

Fresh samples are joined to the selected baseline's statistics by
``(project, metric)`` and each matched pair is judged against
``mean + sigma * stddev``. Pairs present on only one side have no comparison
basis and produce no calculation.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Tuple, Union

from perfrunner import logger
from perfrunner.baselines import load_baselines
from perfrunner.models import Baseline, Calculation, Sample
from perfrunner.sampler import take_samples
from perfrunner.selection import select_baseline

DEFAULT_SIGMA = 3.0

PathLike = Union[str, Path]
BaselineLoader = Callable[[PathLike], Mapping[Path, Baseline]]
Sampler = Callable[[PathLike, PathLike], List[Sample]]


class MetricKey(NamedTuple):
    """Identity of a benchmark series."""

    project: str
    metric: str


def calculate_regressions(
    samples: Iterable[Sample],
    baseline: Baseline,
    sigma: float,
) -> List[Calculation]:
    """
    Compare samples to baseline statistics.

    If several samples share a key, the last one wins. Calculations follow the
    order of ``baseline.metrics`` and include non-regressions. A sample equal to
    the threshold is not a regression.

    Args:
        samples: Fresh observations
        baseline: Statistics to compare against
        sigma: Standard deviations above the mean tolerated before flagging

    Returns:
        List[Calculation]: One entry per baseline metric that has a sample
    """
    by_key: Dict[MetricKey, Tuple[float, datetime]] = {
        MetricKey(s.project, s.metric): (s.value, s.ts) for s in samples
    }

    calculations: List[Calculation] = []
    for metric in baseline.metrics:
        match = by_key.get(MetricKey(metric.project, metric.metric))
        if match is None:
            continue

        value, ts = match
        model = metric.measurement
        threshold = model.mean + sigma * model.stddev
        calculations.append(
            Calculation(
                version=baseline.version,
                project=metric.project,
                metric=metric.metric,
                regression=value > threshold,
                ts=ts,
                sigma=sigma,
                mean=model.mean,
                stddev=model.stddev,
                threshold=threshold,
            )
        )

    logger.debug(
        f"Matched {len(calculations)} of {len(baseline.metrics)} baseline metric(s) "
        f"against {len(by_key)} sample key(s)"
    )
    return calculations


def regressions(
    baseline_dir: PathLike,
    projects_dir: PathLike,
    tmp_dir: PathLike,
    *,
    sigma: float = DEFAULT_SIGMA,
    loader: Optional[BaselineLoader] = None,
    sampler: Optional[Sampler] = None,
) -> List[Calculation]:
    """
    Load baselines, take fresh samples and compute every calculation.

    Calculations include all matched pairs regardless of whether they passed.

    Args:
        baseline_dir: Directory of baseline JSON files
        projects_dir: Directory of projects to benchmark
        tmp_dir: Scratch directory for the sampler
        sigma: Regression threshold in standard deviations
        loader: Replaces :func:`perfrunner.baselines.load_baselines`
        sampler: Replaces :func:`perfrunner.sampler.take_samples`

    Raises:
        CollaboratorError: Loader or sampler failures, unchanged
        MalformedMeasurementError: A sample could not be built
        ConfigurationError: No baselines were found
    """
    loader = loader or load_baselines
    sampler = sampler or take_samples

    baselines = list(loader(baseline_dir).values())
    samples = sampler(projects_dir, tmp_dir)
    baseline = select_baseline(baselines)

    logger.info(f"Comparing {len(samples)} sample(s) against baseline {baseline.version} at {sigma} sigma")
    return calculate_regressions(samples, baseline, sigma)


__all__ = [
    "DEFAULT_SIGMA",
    "MetricKey",
    "calculate_regressions",
    "regressions",
]
