"""Configuration management for capture-dedupe."""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from capture_dedupe.core.models import (
    DEFAULT_DISPLAY_PATTERN,
    DEFAULT_EXTENSIONS,
    DEFAULT_MANIFEST_FILENAME,
    KeepStrategy,
    ScanOptions,
)
from capture_dedupe.utils.logger import setup_logger

logger = setup_logger(__name__)


class Config:
    """Manages user configuration and scan defaults."""

    DEFAULT_CONFIG_DIR = Path.home() / ".capture-dedupe"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

    DEFAULT_SETTINGS = {
        "display_pattern": DEFAULT_DISPLAY_PATTERN,
        "extensions": list(DEFAULT_EXTENSIONS),
        "max_parallelism": None,  # None = one worker per CPU
        "keep_strategy": KeepStrategy.NEWEST.value,
        "manifest_filename": DEFAULT_MANIFEST_FILENAME,
        "use_recycle_bin": False,
        "report": {"verbosity": 1},
    }

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration.

        Args:
            config_file: Path to config file (default: ~/.capture-dedupe/config.json)
        """
        self.config_file = Path(config_file) if config_file else self.DEFAULT_CONFIG_FILE
        self.settings: Dict[str, Any] = {}
        self.load()

    def load(self) -> None:
        """Load configuration from file or create with defaults."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
                if not isinstance(loaded, dict):
                    raise ValueError("top-level value is not an object")
                self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
                self.settings.update(loaded)
                logger.debug(f"Loaded configuration from {self.config_file}")
            except (json.JSONDecodeError, ValueError) as e:
                logger.warning(f"Invalid config file: {e}. Using defaults.")
                self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        else:
            logger.info("No config file found. Creating with defaults.")
            self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
            self.save()

    def save(self) -> None:
        """Save configuration to file."""
        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w", encoding="utf-8") as f:
            json.dump(self.settings, f, indent=2)
        logger.debug(f"Saved configuration to {self.config_file}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (supports dot notation, e.g., 'report.verbosity')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.settings
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value.

        Args:
            key: Configuration key (supports dot notation)
            value: Value to set
        """
        keys = key.split(".")
        target = self.settings
        for k in keys[:-1]:
            if k not in target or not isinstance(target[k], dict):
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value
        self.save()

    def scan_options(self, root_path: Union[str, Path], **overrides: Any) -> ScanOptions:
        """
        Build scan options from settings, letting explicit overrides win.

        Overrides whose value is None fall back to the configured setting.

        Args:
            root_path: Capture root to scan
            **overrides: Any ScanOptions field

        Returns:
            Scan options
        """
        values: Dict[str, Any] = {
            "display_pattern": self.get("display_pattern", DEFAULT_DISPLAY_PATTERN),
            "extensions": tuple(self.get("extensions", list(DEFAULT_EXTENSIONS))),
            "max_parallelism": self.get("max_parallelism"),
            "keep_strategy": self.get("keep_strategy", KeepStrategy.NEWEST.value),
            "use_recycle_bin": bool(self.get("use_recycle_bin", False)),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        if isinstance(root_path, str):
            root_path = root_path.strip()

        if values.get("use_manifest") and not values.get("manifest_path"):
            filename = self.get("manifest_filename", DEFAULT_MANIFEST_FILENAME)
            values["manifest_path"] = Path(root_path) / filename

        # An unknown strategy is left as-is and reported by the scan
        try:
            values["keep_strategy"] = KeepStrategy.parse(values["keep_strategy"])
        except ValueError as e:
            logger.warning(f"Invalid keep_strategy setting: {e}")
        return ScanOptions(root_path=root_path, **values)
