"""
Configuration Management for SoupHeatMap

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (SOUPHEATMAP_*)
2. Configuration file
3. Default values
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import yaml

from soupheatmap.core import constants

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class DensityConfig:
    """Configuration for kernel density estimation."""

    viewport_size: int = constants.VIEWPORT_SIZE
    cell_size: int = constants.DENSITY_CELL_SIZE
    levels: int = constants.DENSITY_LEVELS

    # Default bandwidth = max(min_bandwidth, spread_factor * mean spread)
    min_bandwidth: float = constants.MIN_BANDWIDTH
    spread_factor: float = constants.BANDWIDTH_SPREAD_FACTOR

    # Memoized density results kept in memory
    cache_entries: int = 32


@dataclass
class FilterConfig:
    """Defaults applied when a new match or map becomes active."""

    time_window_low: float = constants.TIME_WINDOW_MIN
    time_window_high: float = constants.TIME_WINDOW_MAX


@dataclass
class RenderConfig:
    """Configuration for view building."""

    opacity: float = constants.DEFAULT_OPACITY
    deaths_opacity_factor: float = constants.DEATHS_LAYER_OPACITY_FACTOR
    recolor_debounce_seconds: float = constants.RECOLOR_DEBOUNCE_SECONDS
    show_arrows: bool = True
    show_context: bool = False
    # Single-category heatmaps use the per-category colors instead of the linked pair
    independent_kills_deaths: bool = False


@dataclass
class ColorConfig:
    """Default colors (any matplotlib color spec, usually hex)."""

    low: str = constants.DEFAULT_COLOR_LOW
    high: str = constants.DEFAULT_COLOR_HIGH
    kills_low: str = constants.DEFAULT_COLOR_LOW
    kills_high: str = constants.DEFAULT_COLOR_HIGH
    deaths_low: str = constants.DEFAULT_COLOR_LOW
    deaths_high: str = constants.DEFAULT_COLOR_DEATHS_HIGH
    killer_dot: str = constants.DEFAULT_COLOR_KILLER_DOT
    victim_dot: str = constants.DEFAULT_COLOR_VICTIM_DOT


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class SoupHeatmapConfig:
    """Main configuration container."""

    density: DensityConfig = field(default_factory=DensityConfig)
    filters: FilterConfig = field(default_factory=FilterConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    colors: ColorConfig = field(default_factory=ColorConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


SECTIONS = ("density", "filters", "render", "colors", "logging")


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "soupheatmap.yaml")
    paths.append(Path.cwd() / "soupheatmap.toml")
    paths.append(Path.cwd() / "soupheatmap.json")
    paths.append(Path.cwd() / ".soupheatmap.yaml")

    # User home directory
    home = Path.home()
    paths.append(home / ".config" / "soupheatmap" / "config.yaml")
    paths.append(home / ".config" / "soupheatmap" / "config.toml")

    # XDG config directory
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "soupheatmap" / "config.yaml")

    return paths


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a YAML file."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from a JSON file."""
    with open(path) as f:
        return json.load(f)


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return load_yaml_config(path)
    elif suffix == ".toml":
        return load_toml_config(path)
    elif suffix == ".json":
        return load_json_config(path)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


ENV_MAPPINGS = {
    "SOUPHEATMAP_LOG_LEVEL": ("logging", "level"),
    "SOUPHEATMAP_LOG_FILE": ("logging", "file"),
    "SOUPHEATMAP_VIEWPORT_SIZE": ("density", "viewport_size"),
    "SOUPHEATMAP_CELL_SIZE": ("density", "cell_size"),
    "SOUPHEATMAP_DENSITY_LEVELS": ("density", "levels"),
    "SOUPHEATMAP_MIN_BANDWIDTH": ("density", "min_bandwidth"),
    "SOUPHEATMAP_CACHE_ENTRIES": ("density", "cache_entries"),
    "SOUPHEATMAP_OPACITY": ("render", "opacity"),
    "SOUPHEATMAP_RECOLOR_DEBOUNCE": ("render", "recolor_debounce_seconds"),
    "SOUPHEATMAP_INDEPENDENT_COLORS": ("render", "independent_kills_deaths"),
}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    for env_var, (section, key) in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in config:
                config[section] = {}

            # Type conversion
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

            config[section][key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> SoupHeatmapConfig:
    """Convert a dictionary to SoupHeatmapConfig, ignoring unknown keys."""
    config = SoupHeatmapConfig()

    for section in SECTIONS:
        if section not in data:
            continue
        target = getattr(config, section)
        for key, value in data[section].items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.debug(f"Ignoring unknown config key: {section}.{key}")

    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> SoupHeatmapConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged SoupHeatmapConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: SoupHeatmapConfig) -> dict[str, Any]:
    """Convert SoupHeatmapConfig to a dictionary."""
    return asdict(config)


def save_config(config: SoupHeatmapConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (YAML or JSON, detected from extension)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")


# ============================================================================
# Logging
# ============================================================================


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Apply a logging section to the root logger."""
    config = config or get_config().logging

    logging.basicConfig(level=config.level.upper(), format=config.format, force=True)

    if config.file:
        handler = RotatingFileHandler(
            config.file,
            maxBytes=config.file_max_bytes,
            backupCount=config.file_backup_count,
        )
        handler.setFormatter(logging.Formatter(config.format))
        logging.getLogger().addHandler(handler)
        logger.debug(f"Logging to file: {config.file}")


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: SoupHeatmapConfig | None = None


def get_config() -> SoupHeatmapConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: SoupHeatmapConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None
