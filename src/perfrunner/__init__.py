"""
perfrunner - statistical performance regression detection for CI pipelines.

Fresh benchmark samples are compared against the latest historical baseline,
and every (project, metric) pair whose new timing exceeds the baseline mean by
more than ``sigma`` standard deviations is flagged as a regression.

This module also owns the Loguru sink configuration used by the library and
the command line entry point.
"""

__version__ = "0.1.0"

import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, TextIO, Union

from loguru import logger


class LoggingConfigError(Exception):
    """Exception raised when logging configuration fails validation or setup."""
    pass


class LoggerState:
    """Tracks the sinks perfrunner installed so they can be removed again."""

    def __init__(self):
        self._initialized = False
        self._sink_ids: List[int] = []

    def is_initialized(self) -> bool:
        return self._initialized

    def mark_initialized(self):
        self._initialized = True

    def add_sink_id(self, sink_id: int):
        self._sink_ids.append(sink_id)

    @property
    def sink_ids(self) -> List[int]:
        return list(self._sink_ids)

    def reset(self):
        self._initialized = False
        self._sink_ids.clear()


_logger_state = LoggerState()

VALID_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


def validate_log_level(level: str) -> str:
    """
    Validate and normalise a Loguru level name.

    Raises:
        LoggingConfigError: If log level is invalid
    """
    level_upper = str(level).upper()

    if level_upper not in VALID_LOG_LEVELS:
        raise LoggingConfigError(
            f"Invalid log level '{level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    return level_upper


def configure_console_logging(
    level: str = "INFO",
    format_template: Optional[str] = None,
    colorize: bool = True,
    destination: TextIO = sys.stderr
) -> int:
    """
    Add a console sink.

    Args:
        level: Log level for console output
        format_template: Custom format template (uses default if None)
        colorize: Enable colored console output
        destination: Console destination (default: sys.stderr)

    Returns:
        Sink ID for tracking and cleanup

    Raises:
        LoggingConfigError: If configuration fails
    """
    validated_level = validate_log_level(level)

    if format_template is None:
        format_template = (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        )

    try:
        sink_id = logger.add(
            destination,
            level=validated_level,
            format=format_template,
            colorize=colorize
        )
    except (TypeError, ValueError) as e:
        raise LoggingConfigError(f"Failed to configure console logging: {e}") from e

    _logger_state.add_sink_id(sink_id)
    return sink_id


def configure_file_logging(
    log_file_path: Union[str, Path],
    level: str = "DEBUG",
    rotation: str = "10 MB",
    retention: str = "7 days",
    format_template: Optional[str] = None,
    encoding: str = "utf-8"
) -> int:
    """
    Add a rotating file sink, creating parent directories as needed.

    Returns:
        Sink ID for tracking and cleanup

    Raises:
        LoggingConfigError: If configuration fails
    """
    validated_level = validate_log_level(level)
    log_path = Path(log_file_path)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise LoggingConfigError(
            f"Cannot create directory for log destination '{log_file_path}': {e}"
        ) from e

    if format_template is None:
        format_template = (
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | "
            "{level: <8} | "
            "{name}:{function}:{line} - {message}"
        )

    try:
        sink_id = logger.add(
            str(log_path),
            rotation=rotation,
            retention=retention,
            level=validated_level,
            format=format_template,
            encoding=encoding
        )
    except (TypeError, ValueError) as e:
        raise LoggingConfigError(f"Failed to configure file logging: {e}") from e

    _logger_state.add_sink_id(sink_id)
    return sink_id


def reset_logging():
    """Remove every Loguru sink and forget the tracked sink IDs."""
    logger.remove()
    _logger_state.reset()


def initialize_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
    colorize: bool = True,
) -> Dict[str, int]:
    """
    Replace all sinks with a console sink and an optional file sink.

    Returns:
        Dictionary mapping sink types to sink IDs
    """
    validated_level = validate_log_level(level)
    reset_logging()

    sink_ids = {'console': configure_console_logging(level=validated_level, colorize=colorize)}
    if log_file is not None:
        sink_ids['file'] = configure_file_logging(log_file, level="DEBUG")

    _logger_state.mark_initialized()
    logger.debug(f"perfrunner logging initialized at {validated_level}")
    return sink_ids


def get_logger_state() -> LoggerState:
    return _logger_state


def is_logging_initialized() -> bool:
    return _logger_state.is_initialized()


def _is_pytest_running() -> bool:
    return "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ


def _auto_initialize_logging():
    # Loguru's default sink logs DEBUG to stderr; library users get INFO.
    if not _logger_state.is_initialized() and not _is_pytest_running():
        level = os.environ.get("PERFRUNNER_LOG_LEVEL", "INFO")
        try:
            initialize_logging(level=level)
        except LoggingConfigError as e:
            initialize_logging(level="INFO")
            logger.warning(f"Ignoring PERFRUNNER_LOG_LEVEL: {e}")


_auto_initialize_logging()


from perfrunner.exceptions import (  # noqa: E402
    CalculateError,
    CollaboratorError,
    ConfigurationError,
    MalformedMeasurementError,
    ParseError,
    PerfRunnerError,
)
from perfrunner.version import Version  # noqa: E402
from perfrunner.models import (  # noqa: E402
    Baseline,
    BaselineMetric,
    Calculation,
    Measurement,
    Measurements,
    Sample,
)
from perfrunner.selection import select_baseline  # noqa: E402
from perfrunner.calculate import DEFAULT_SIGMA, calculate_regressions, regressions  # noqa: E402

__all__ = [
    "__version__",
    "logger",
    "LoggingConfigError",
    "configure_console_logging",
    "configure_file_logging",
    "initialize_logging",
    "reset_logging",
    "validate_log_level",
    "get_logger_state",
    "is_logging_initialized",
    "Version",
    "Measurement",
    "Measurements",
    "Sample",
    "BaselineMetric",
    "Baseline",
    "Calculation",
    "select_baseline",
    "calculate_regressions",
    "regressions",
    "DEFAULT_SIGMA",
    "PerfRunnerError",
    "CalculateError",
    "ParseError",
    "ConfigurationError",
    "MalformedMeasurementError",
    "CollaboratorError",
]
