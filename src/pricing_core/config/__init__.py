"""Configuration system."""

from pricing_core.config.loader import load_config
from pricing_core.config.schema import AppConfig

__all__ = ["AppConfig", "load_config"]
