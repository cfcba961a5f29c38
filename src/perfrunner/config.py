"""
Runner settings.

Settings come from three layers, highest priority first: explicit overrides
(e.g. CLI flags), an optional YAML settings file, and ``PERFRUNNER_*``
environment variables. Defaults reproduce the standard CI policy: one
``dbt parse`` metric per project, judged against a 3-sigma threshold.
"""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from perfrunner import logger
from perfrunner.exceptions import ConfigurationError


class HyperfineCommand(BaseModel):
    """One benchmarked metric: the command hyperfine times and its prepare step."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, description="Metric name recorded on samples")
    prepare: str = Field(default="", description="Command run before every timing run")
    cmd: str = Field(min_length=1, description="Command being timed")


def _default_metrics() -> List[HyperfineCommand]:
    return [
        HyperfineCommand(
            name="parse",
            prepare="rm -rf target/",
            cmd="dbt parse --no-version-check",
        )
    ]


class RunnerSettings(BaseSettings):
    """Environment-aware settings for sampling and regression detection."""

    model_config = SettingsConfigDict(
        env_prefix="PERFRUNNER_",
        case_sensitive=False,
        extra="ignore",
    )

    sigma: float = Field(
        default=3.0,
        description="Standard deviations above the baseline mean that count as a regression",
    )
    hyperfine_executable: str = Field(
        default="hyperfine",
        description="hyperfine binary name or path",
    )
    warmup: int = Field(default=1, ge=0, description="Warmup runs before timing")
    timeout_seconds: Optional[float] = Field(
        default=None,
        description="Per-hyperfine-invocation timeout; unlimited when unset",
    )
    profiles_dir: Optional[str] = Field(
        default="../../project_config/",
        description="Passed to every benchmarked command as --profiles-dir",
    )
    metrics: List[HyperfineCommand] = Field(default_factory=_default_metrics)

    @field_validator("sigma")
    @classmethod
    def validate_sigma(cls, v: float) -> float:
        if not math.isfinite(v) or v <= 0:
            raise ValueError("sigma must be a positive finite number")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    @field_validator("metrics")
    @classmethod
    def validate_metrics(cls, v: List[HyperfineCommand]) -> List[HyperfineCommand]:
        names = [metric.name for metric in v]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate metric names: {', '.join(duplicates)}")
        return v

    def command_for(self, metric: HyperfineCommand) -> str:
        """Full command line hyperfine times for ``metric``."""
        if self.profiles_dir:
            return f"{metric.cmd} --profiles-dir {self.profiles_dir}"
        return metric.cmd


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> RunnerSettings:
    """
    Build settings from an optional YAML file plus explicit overrides.

    ``None`` overrides are dropped so unset CLI flags fall through to the file
    and environment.

    Raises:
        ConfigurationError: If the file is missing, is not valid YAML, or the
            merged settings fail validation
    """
    data: Dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigurationError(
                f"Settings file not found: {path}",
                error_code="CONFIG_002",
                context={"config_path": path},
            )
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Could not read settings file: {e}",
                error_code="CONFIG_003",
                context={"config_path": path},
            ) from e
        except (yaml.YAMLError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Invalid YAML in settings file: {e}",
                error_code="CONFIG_003",
                context={"config_path": path},
            ) from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(
                "Settings file must contain a mapping",
                error_code="CONFIG_003",
                context={"config_path": path, "found_type": type(loaded).__name__},
            )
        data.update(loaded)
        logger.debug(f"Loaded settings from {path}")

    data.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return RunnerSettings(**data)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid runner settings",
            error_code="CONFIG_004",
            context={
                "config_path": config_path,
                "validation_errors": [err["msg"] for err in e.errors()],
            },
        ) from e


__all__ = ["HyperfineCommand", "RunnerSettings", "load_settings"]
