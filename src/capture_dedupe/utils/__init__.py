"""Configuration and logging helpers."""

from capture_dedupe.utils.config import Config
from capture_dedupe.utils.logger import set_log_level, setup_logger

__all__ = ["Config", "set_log_level", "setup_logger"]
