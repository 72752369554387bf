"""Configuration loader — YAML file + env override."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from moltmatch.core.config.schema import Config

CONFIG_ENV = "MOLTMATCH_CONFIG"
DEFAULT_CONFIG = Path("config.yaml")


def load_config(config_path: str | Path | None = None) -> Config:
    """
    Load MoltMatch configuration.

    Resolution order for config file:
        1. Explicit ``config_path`` argument
        2. ``MOLTMATCH_CONFIG`` env variable
        3. ``./config.yaml`` in cwd

    Values priority (handled by pydantic-settings):
        env vars  >  .env file  >  YAML  >  defaults
    """
    path = _resolve_path(config_path)
    config = Config(**_load_yaml(path))
    logger.debug(
        f"Config loaded from {path or 'defaults'}: "
        f"api={config.network.api_base} db={config.database.path}"
    )
    return config


def _resolve_path(config_path: str | Path | None = None) -> Path | None:
    if config_path:
        return Path(config_path)
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    return DEFAULT_CONFIG if DEFAULT_CONFIG.exists() else None


def _load_yaml(path: Path | None) -> dict[str, Any]:
    """Sections from a YAML mapping; a missing or empty file is no overrides."""
    if not path or not path.exists():
        if path:
            logger.warning(f"Config file {path} not found, using defaults")
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping of config sections")
    return data
