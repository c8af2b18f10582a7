"""Configuration loader for taskbalance.

Loads config from a YAML cascade: config/default.yaml is always loaded,
then environment-specific overrides, then environment variables. Task
specs (a task name, its data and its driver table) are loaded from their
own YAML or JSON file.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from taskbalance.core.exceptions import ConfigurationError


# ---------------------------------------------------------------------------
# Config schema
# ---------------------------------------------------------------------------

class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class BalancerConfig(BaseModel):
    random_seed: Optional[int] = None  # None draws from system entropy


class AppConfig(BaseModel):
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    balancer: BalancerConfig = Field(default_factory=BalancerConfig)


# ---------------------------------------------------------------------------
# Task spec (task.yaml)
# ---------------------------------------------------------------------------

class DriverConfig(BaseModel):
    """One driver row of a task spec. `work` is an import reference."""
    name: str
    weight: int = Field(default=1, ge=0)
    backup: bool = False
    work: Optional[str] = None
    data: Any = None

    @field_validator("work")
    @classmethod
    def _work_is_reference(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and ":" not in value:
            raise ValueError(f"work must look like 'package.module:callable', got '{value}'")
        return value


class TaskSpec(BaseModel):
    name: str
    data: Any = None
    drivers: list[DriverConfig] = Field(default_factory=list)

    @field_validator("drivers")
    @classmethod
    def _unique_driver_names(cls, value: list[DriverConfig]) -> list[DriverConfig]:
        seen: set[str] = set()
        for driver in value:
            if driver.name in seen:
                raise ValueError(f"duplicate driver name '{driver.name}'")
            seen.add(driver.name)
        return value


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base, returning a new dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def load_config(
    config_dir: Optional[Path] = None,
    env: Optional[str] = None,
) -> AppConfig:
    """Load application config from YAML cascade.

    Order: default.yaml -> {env}.yaml -> env vars (TASKBALANCE_LOG_LEVEL,
    TASKBALANCE_SEED).
    """
    if config_dir is None:
        config_dir = Path(__file__).parent.parent.parent / "config"

    merged = _load_yaml(config_dir / "default.yaml")

    if env:
        overlay = _load_yaml(config_dir / f"{env}.yaml")
        merged = _deep_merge(merged, overlay)

    level = os.getenv("TASKBALANCE_LOG_LEVEL")
    if level:
        merged["logging"] = {**(merged.get("logging") or {}), "level": level}

    seed = os.getenv("TASKBALANCE_SEED")
    if seed:
        merged["balancer"] = {**(merged.get("balancer") or {}), "random_seed": seed}

    try:
        return AppConfig(**merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def load_task_spec(path: Path) -> TaskSpec:
    """Load a task spec from a YAML (.yaml/.yml) or JSON file."""
    if not path.exists():
        raise ConfigurationError(f"Task spec not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not parse task spec {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Task spec must be a JSON/YAML object.")

    try:
        return TaskSpec(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid task spec {path}: {e}") from e
