"""Persisted project configuration (``tangld.yaml``)."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from tangld.core.errors import ConfigError
from tangld.core.storage import atomic_write_bytes
from tangld.models.config import DEFAULT_DIRS, ProjectConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "tangld.yaml"


def default_root() -> Path:
    return Path(DEFAULT_DIRS["root"]).expanduser()


def config_path(root: Path) -> Path:
    return Path(root) / CONFIG_FILENAME


def load_project_config(root: Path) -> ProjectConfig:
    """Load and validate ``tangld.yaml`` under *root*.

    A missing file yields the default configuration.

    Raises
    ------
    ConfigError
        If the file cannot be read, is not YAML, or fails validation.
    """
    path = config_path(root)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No %s under %s; using defaults", CONFIG_FILENAME, root)
        return ProjectConfig()
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def write_project_config(root: Path, config: ProjectConfig) -> Path:
    """Persist *config* as ``tangld.yaml`` under *root*."""
    path = config_path(root)
    text = yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False)
    atomic_write_bytes(path, text.encode("utf-8"))
    return path
