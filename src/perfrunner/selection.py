"""Choose the baseline that fresh samples are compared against."""

from __future__ import annotations

from typing import Iterable, Optional

from perfrunner import logger
from perfrunner.exceptions import ConfigurationError
from perfrunner.models import Baseline


def select_baseline(baselines: Iterable[Baseline]) -> Baseline:
    """
    Return the baseline with the highest version.

    The current pick is only replaced by a strictly greater version, so when
    several baselines share the highest version the first one seen wins.

    Args:
        baselines: Baseline records, typically one per historical release

    Returns:
        Baseline: The latest release's baseline

    Raises:
        ConfigurationError: If ``baselines`` is empty
    """
    latest: Optional[Baseline] = None
    count = 0

    for baseline in baselines:
        count += 1
        if latest is None or baseline.version > latest.version:
            latest = baseline

    if latest is None:
        raise ConfigurationError("no baselines found", error_code="CONFIG_001")

    logger.debug(f"Selected baseline {latest.version} out of {count} candidate(s)")
    return latest


__all__ = ["select_baseline"]
