"""Common utilities for the back office."""

from .logger import configure_logging, setup_logger
from .config import load_config

__all__ = ["configure_logging", "load_config", "setup_logger"]
