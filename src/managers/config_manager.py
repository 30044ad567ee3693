"""
Config Manager

Loads harness settings from YAML (with include support) and validates them
into a HarnessSettings model. Falls back to built-in defaults when the file
is missing or invalid, so a broken config never blocks a test run.
"""

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from models.settings import HarnessSettings
from utils.enum_helper import EnumHelper
from utils.logger import LogCategory, LogLevel, configure_logger, get_logger

log = get_logger().for_category(LogCategory.CONFIG)

DEFAULT_CONFIG_PATH = "config/harness.yaml"


class ConfigManager:
    """
    Harness configuration manager with include system support

    Loads harness.yaml and merges any files listed under `include:`
    (paths relative to the main file). Overrides passed to the constructor
    are deep-merged on top before validation.

    Example:
        config = ConfigManager(settings_overrides={"clock": {"frame_interval_ms": 8}})
        settings = config.load()
        settings.clock.frame_interval_ms    # 8.0
        settings.style_presets[".rotating-text"]["animation_name"]
    """

    def __init__(
        self,
        config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
        settings_overrides: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            config_path: Main YAML file (relative paths resolve against src/)
            settings_overrides: Nested dict deep-merged over the file contents
        """
        self.config_path = Path(config_path)
        self.settings_overrides = settings_overrides or {}
        self.data: Dict[str, Any] = {}
        self.settings: HarnessSettings = HarnessSettings()

    def load(self) -> HarnessSettings:
        """
        Load YAML configuration and validate it

        Process:
        1. Load main harness.yaml
        2. Merge files from its 'include:' list
        3. Deep-merge constructor overrides
        4. Validate into HarnessSettings (defaults on failure)

        Returns:
            Validated HarnessSettings
        """
        try:
            full_path = self._resolve(self.config_path)
            main_config = _read_yaml(full_path)

            include = main_config.pop("include", None)
            if include:
                log.debug("Using include-based configuration", files=len(include))
                self.data = self._load_with_includes(include, full_path.parent)
                self.data = _deep_merge(self.data, main_config)
            else:
                self.data = main_config

        except (OSError, yaml.YAMLError, ValueError) as ex:
            log.error(
                f"Failed to load {self.config_path}",
                error=str(ex),
                error_type=type(ex).__name__
            )
            log.warn("Falling back to built-in defaults")
            self.data = {}

        merged = _deep_merge(self.data, self.settings_overrides)

        try:
            self.settings = HarnessSettings(**merged)
        except ValidationError as ex:
            if self.settings_overrides:
                # Invalid overrides propagate; only the file falls back
                raise
            log.error("Invalid harness settings, using defaults", error=str(ex))
            self.settings = HarnessSettings()

        self.apply_logging()
        log.debug(
            "Harness settings loaded",
            log_level=self.settings.log_level,
            frame_interval_ms=self.settings.clock.frame_interval_ms,
            presets=len(self.settings.style_presets)
        )
        return self.settings

    def apply_logging(self) -> None:
        """Configure the process logger from settings.log_level / use_colors"""
        configure_logging(self.settings)

    def get_style_presets(self) -> Dict[str, Dict[str, str]]:
        return copy.deepcopy(self.settings.style_presets)

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict[str, Any]:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: Filenames to load (e.g. ["style_presets.yaml"])
            config_dir: Directory containing the main config file

        Returns:
            Merged config dict
        """
        merged: Dict[str, Any] = {}

        for filename in include_list:
            filepath = config_dir / filename
            try:
                file_data = _read_yaml(filepath)
            except FileNotFoundError:
                log.error(f"File not found: {filename}")
                raise
            merged = _deep_merge(merged, file_data)
            log.debug(f"Loaded {filename}", keys=str(list(file_data.keys())))

        return merged

    @staticmethod
    def _resolve(path: Path) -> Path:
        if path.is_absolute():
            return path
        src_dir = Path(__file__).parent.parent
        return src_dir / path


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: expected a mapping at top level, got {type(data).__name__}")
    return data


def _deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Nested dict merge; values from overrides win, neither input is mutated"""
    result = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_settings(
    config_path: Union[str, Path] = DEFAULT_CONFIG_PATH,
    **overrides: Any
) -> HarnessSettings:
    """Shortcut for ConfigManager(config_path, overrides).load()"""
    return ConfigManager(config_path, settings_overrides=overrides).load()


def configure_logging(settings: HarnessSettings) -> None:
    """Point the logger singleton at settings.log_level / settings.use_colors"""
    try:
        level = EnumHelper.from_string(LogLevel, settings.log_level)
    except ValueError:
        log.warn("Unknown log level, using WARN", log_level=settings.log_level)
        level = LogLevel.WARN
    configure_logger(min_level=level, use_colors=settings.use_colors)
