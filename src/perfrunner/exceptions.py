"""
perfrunner Exception Hierarchy

This module provides the domain-specific exception hierarchy for perfrunner so
that every failure reachable from untrusted input (baseline files, hyperfine
output, settings files) surfaces as a typed, recoverable error instead of a
process abort.

The exception hierarchy follows a clear domain-based structure:
- PerfRunnerError: Base exception for all perfrunner-specific errors
- ParseError: Malformed ``major.minor.patch`` version text
- ConfigurationError: No baselines to compare against, invalid settings
- MalformedMeasurementError: A measurement that cannot be reduced to one sample
- CollaboratorError: Failures bubbled up from the baseline loader or the sampler

Each exception class provides:
- Context preservation utilities for exception chaining
- Error codes for programmatic error handling
- Structured logging integration

Usage Examples:
    Basic error handling:
    >>> try:
    ...     calculations = regressions(baseline_dir, projects_dir, tmp_dir)
    ... except ConfigurationError as e:
    ...     logger.error(f"Configuration error: {e}")

    Context preservation:
    >>> try:
    ...     run_hyperfine(...)
    ... except OSError as e:
    ...     raise SamplingError("hyperfine could not be started").with_context({
    ...         "original_error": str(e),
    ...     })
"""

from pathlib import Path
from typing import Any, Dict, Optional


class PerfRunnerError(Exception):
    """
    Base exception class for all perfrunner-specific errors.

    Attributes:
        error_code (str): Unique identifier for programmatic error handling
        context (Dict[str, Any]): Additional context information for debugging

    Error Codes:
        PERF_001: Generic perfrunner error
        PERF_002: Unexpected internal error
        PERF_003: Report could not be written
    """

    def __init__(
        self,
        message: str,
        error_code: str = "PERF_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Initialize the error with message, error code, and context.

        Args:
            message: Human-readable error description
            error_code: Unique identifier for programmatic error handling
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = dict(context) if context else {}
        for key, value in list(self.context.items()):
            if isinstance(value, Path):
                self.context[key] = str(value)

    def with_context(self, context: Dict[str, Any]) -> 'PerfRunnerError':
        """
        Add additional context to the exception and return self for chaining.

        Example:
            >>> raise BaselineLoadError("Invalid baseline").with_context({
            ...     "file_path": "/baselines/1.0.0.json",
            ... })
        """
        self.context.update(context)
        return self

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [Error Code: {self.error_code}, Context: {context_str}]"
        return f"{self.message} [Error Code: {self.error_code}]"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"context={self.context!r})"
        )


class ParseError(PerfRunnerError, ValueError):
    """
    Malformed ``major.minor.patch`` version text.

    Also a ``ValueError`` so that pydantic reports it as a validation error
    when it is raised while decoding a baseline file.

    Error Codes:
        PARSE_001: Wrong number of components
        PARSE_002: Non-integer component
    """

    def __init__(
        self,
        message: str,
        error_code: str = "PARSE_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class ConfigurationError(PerfRunnerError):
    """
    Deployment or configuration problems the caller should report cleanly.

    Error Codes:
        CONFIG_001: No baselines found to select from
        CONFIG_002: Settings file not found
        CONFIG_003: Settings file unreadable or not valid YAML
        CONFIG_004: Settings validation failure
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class MalformedMeasurementError(PerfRunnerError):
    """
    A measurement that cannot be turned into exactly one sample.

    Error Codes:
        MEASURE_001: Measurement has no raw timings
        MEASURE_002: Measurement has more than one raw timing
        MEASURE_003: Hyperfine export contains no results
    """

    def __init__(
        self,
        message: str,
        error_code: str = "MEASURE_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class CollaboratorError(PerfRunnerError):
    """
    Failures from the baseline loader or the sampler.

    The orchestration treats these as opaque and propagates them unchanged.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "COLLAB_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class BaselineLoadError(CollaboratorError):
    """
    Baseline directory could not be read into baseline records.

    Error Codes:
        COLLAB_101: Baseline directory not found
        COLLAB_102: Baseline file could not be read
        COLLAB_103: Baseline file is not valid JSON
        COLLAB_104: Baseline file failed schema validation
        COLLAB_105: Baseline statistics are not finite or stddev is negative
    """

    def __init__(
        self,
        message: str,
        error_code: str = "COLLAB_101",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class SamplingError(CollaboratorError):
    """
    Benchmark execution failed.

    Error Codes:
        COLLAB_201: Projects directory not found
        COLLAB_202: hyperfine executable could not be started
        COLLAB_203: hyperfine exited with a non-zero status
        COLLAB_204: hyperfine timed out
        COLLAB_205: hyperfine export could not be read
    """

    def __init__(
        self,
        message: str,
        error_code: str = "COLLAB_201",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


# Callers of the orchestration entry point catch this
CalculateError = PerfRunnerError


def log_and_raise(
    exception: PerfRunnerError,
    logger: Optional[Any] = None,
    level: str = "error"
) -> None:
    """
    Log an exception with context and then raise it.

    Args:
        exception: The exception to log and raise
        logger: Logger instance to use (optional)
        level: Log level ("error", "warning", "critical")

    Raises:
        The provided exception after logging
    """
    if logger is not None:
        log_method = getattr(logger, level, logger.error)
        log_method(f"{exception.__class__.__name__}: {exception.message}")

        if exception.context:
            for key, value in exception.context.items():
                log_method(f"  {key}: {value}")

    raise exception


__all__ = [
    'PerfRunnerError',
    'CalculateError',
    'ParseError',
    'ConfigurationError',
    'MalformedMeasurementError',
    'CollaboratorError',
    'BaselineLoadError',
    'SamplingError',
    'log_and_raise',
]
