"""Configuration module."""

from moltmatch.core.config.loader import load_config
from moltmatch.core.config.schema import Config

__all__ = ["Config", "load_config"]
