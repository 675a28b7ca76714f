"""Utility functions for configuration, logging, error context, and parallelism."""

from forecastgrid.utils.config_manager import ConfigManager, EngineConfig
from forecastgrid.utils.logging_config import setup_logging, setup_logging_from_config

__all__ = ["ConfigManager", "EngineConfig", "setup_logging", "setup_logging_from_config"]
