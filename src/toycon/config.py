"""Configuration loading and validation for engine runs."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigValidationError(ValueError):
    """Raised when a run config does not validate."""


class EngineSettings(BaseSettings):
    """Settings for driving a graph for a fixed number of ticks.

    Every field can also be set from the environment with a ``TOYCON_``
    prefix, e.g. ``TOYCON_SEED=7``.
    """

    model_config = SettingsConfigDict(extra="forbid", env_prefix="TOYCON_")

    dt: float = Field(default=1.0 / 60.0, gt=0.0)
    ticks: int = Field(default=60, ge=0, le=1_000_000)
    seed: int | None = None
    atomic_compile: bool = True
    trace: bool = True
    runs_root: Path = Path("runs")


def validate_config_dict(raw: object, model: type[BaseModel] = EngineSettings) -> BaseModel:
    """Validate a pre-loaded config mapping against a pydantic model."""
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigValidationError("Config file root must be a mapping/object.")

    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ConfigValidationError(str(exc)) from exc


def load_and_validate_config(path: Path, model: type[BaseModel] = EngineSettings) -> BaseModel:
    """Load YAML config and validate with the provided pydantic model."""
    with path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    return validate_config_dict(raw, model)
