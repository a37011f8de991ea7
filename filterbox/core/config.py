# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filterbox Configuration System

Two kinds of configuration live here:

Settings (``FilterBoxConfig``), loaded from:
- ~/.filterbox/config.yaml
- .filterbox.yaml in the current directory
- an explicit file
- environment variables (FILTERBOX_*)

Chain configuration (``ChainConfig``), the structure a ``FilterChain`` is
built from:

    callbacks:
      - callback: "builtins:str.upper"
      - callback: "builtins:str.strip"
        priority: 10000
    filters:
      - name: strip_tags
        options:
          allowTags: img
          allowAttribs: id
        priority: 10100
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from filterbox.core.exceptions import (
    ConfigError,
    ConfigFileError,
    ConfigValidationError,
)
from filterbox.core.filters.callback import resolve_callable

logger = logging.getLogger("filterbox.config")

DEFAULT_PRIORITY = 1000

CHAIN_SECTIONS = ("callbacks", "filters")


def _validation_errors(error: ValidationError) -> List[Dict[str, Any]]:
    return [{"loc": list(item["loc"]), "msg": item["msg"]} for item in error.errors()]


def _format_errors(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(loc) for loc in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )


# ============================================================================
# Settings Models
# ============================================================================


class PathsConfig(BaseModel):
    """Path configuration"""

    filterbox_home: Path = Field(
        default_factory=lambda: Path.home() / ".filterbox",
        description="Filterbox home directory",
    )
    log_dir: Path = Field(
        default_factory=lambda: Path.home() / ".filterbox" / "logs",
        description="Log files directory",
    )

    @field_validator("*", mode="before")
    @classmethod
    def ensure_path(cls, v):
        """Convert strings to Path objects"""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class ChainSettings(BaseModel):
    """Filter chain defaults"""

    default_priority: int = Field(
        default=DEFAULT_PRIORITY, description="Priority used when none is given"
    )
    strict_config: bool = Field(
        default=False,
        description="Reject unknown top-level keys in chain configuration",
    )


class ObservabilityConfig(BaseModel):
    """Observability configuration"""

    log_level: str = Field(default="INFO", description="Logging level")
    file_logging: bool = Field(
        default=False, description="Also write logs to a rotating file in log_dir"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper


class FilterBoxConfig(BaseModel):
    """Complete filterbox settings"""

    paths: PathsConfig = Field(
        default_factory=PathsConfig, description="Path configuration"
    )
    chain: ChainSettings = Field(
        default_factory=ChainSettings, description="Filter chain defaults"
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )


# ============================================================================
# Chain Configuration Models
# ============================================================================


class CallbackSpec(BaseModel):
    """A callable entry of a chain configuration"""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    callback: Any = Field(description="Callable or 'module:attribute' reference")
    priority: Optional[int] = Field(default=None, description="Entry priority")
    params: List[Any] = Field(
        default_factory=list, description="Extra positional arguments"
    )

    @field_validator("callback", mode="before")
    @classmethod
    def resolve_reference(cls, v):
        if v is None:
            raise ValueError("callback is required")
        try:
            return resolve_callable(v)
        except ConfigError as e:
            raise ValueError(e.message)

    @field_validator("params", mode="before")
    @classmethod
    def none_means_empty(cls, v):
        return [] if v is None else v


class FilterSpec(BaseModel):
    """A named filter entry of a chain configuration"""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, description="Registered filter name or class path")
    options: Dict[str, Any] = Field(default_factory=dict, description="Filter options")
    priority: Optional[int] = Field(default=None, description="Entry priority")

    @field_validator("options", mode="before")
    @classmethod
    def none_means_empty(cls, v):
        return {} if v is None else v


class ChainConfig(BaseModel):
    """
    Chain configuration structure.

    Unknown top-level keys are kept in ``model_extra`` so the caller can
    warn about them or reject them. ``entries()`` returns the callbacks and
    filters in the order the configuration declared them.
    """

    model_config = ConfigDict(extra="allow")

    callbacks: List[CallbackSpec] = Field(default_factory=list)
    filters: List[FilterSpec] = Field(default_factory=list)

    # (section, entry count) runs in declaration order
    _sections: List[Tuple[str, int]] = PrivateAttr(default_factory=list)

    @field_validator("callbacks", "filters", mode="before")
    @classmethod
    def none_means_empty(cls, v):
        return [] if v is None else v

    @property
    def unknown_keys(self) -> List[str]:
        return sorted(self.model_extra or {})

    def entries(self) -> List[Union[CallbackSpec, FilterSpec]]:
        """All entries in declaration order"""
        sections = self._sections or [
            ("callbacks", len(self.callbacks)),
            ("filters", len(self.filters)),
        ]
        cursor = {section: 0 for section in CHAIN_SECTIONS}
        ordered: List[Union[CallbackSpec, FilterSpec]] = []
        for section, count in sections:
            start = cursor[section]
            ordered.extend(getattr(self, section)[start : start + count])
            cursor[section] = start + count
        return ordered


def _collect_pairs(pairs: Iterable[Any]) -> Tuple[Dict[str, Any], List[Tuple[str, int]]]:
    data: Dict[str, Any] = {}
    sections: List[Tuple[str, int]] = []
    for item in pairs:
        if isinstance(item, (str, bytes)) or not isinstance(item, Sequence) or len(item) != 2:
            raise ConfigError(
                f"Chain configuration pairs must be (key, value), got {item!r}"
            )
        key, value = item
        if key in CHAIN_SECTIONS:
            if value is None:
                value = []
            if isinstance(value, (list, tuple)):
                previous = data.get(key)
                data[key] = (previous if isinstance(previous, list) else []) + list(value)
                sections.append((key, len(value)))
                continue
        data[key] = value
    return data, sections


def parse_chain_config(data: Any, strict: bool = False) -> ChainConfig:
    """
    Validate a chain configuration structure.

    Args:
        data: Mapping, iterable of ``(key, value)`` pairs, or ``ChainConfig``
        strict: Reject unknown top-level keys instead of logging them

    Returns:
        ChainConfig with every callback reference already resolved

    Raises:
        ConfigError: ``data`` is not a mapping or an iterable of pairs
        ConfigValidationError: invalid entries or, in strict mode, unknown keys
    """
    if isinstance(data, ChainConfig):
        config = data
    else:
        if isinstance(data, Mapping):
            raw, sections = _collect_pairs(data.items())
        elif isinstance(data, Iterable) and not isinstance(data, (str, bytes)):
            raw, sections = _collect_pairs(data)
        else:
            raise ConfigError(
                f"Chain configuration must be a mapping or an iterable of pairs, "
                f"got {type(data).__name__}"
            )

        try:
            config = ChainConfig.model_validate(raw)
        except ValidationError as e:
            raise ConfigValidationError(
                f"Invalid chain configuration: {_format_errors(e)}",
                errors=_validation_errors(e),
                cause=e,
            )
        config._sections = sections

    unknown = config.unknown_keys
    if unknown:
        if strict:
            raise ConfigValidationError(
                f"Unknown chain configuration keys: {unknown}",
                details={"unknown_keys": unknown, "allowed": list(CHAIN_SECTIONS)},
            )
        logger.warning(f"Ignoring unknown chain configuration keys: {unknown}")

    return config


def load_chain_config(file_path: Path) -> Dict[str, Any]:
    """
    Read a chain configuration file (YAML or JSON).

    Raises:
        ConfigFileError: missing, unreadable or malformed file
    """
    file_path = Path(file_path)
    if not file_path.exists():
        raise ConfigFileError(f"Chain config file not found: {file_path}", path=str(file_path))

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigFileError(
            f"Failed to read chain config {file_path}", path=str(file_path), cause=e
        )

    if data is None:
        return {}
    if not isinstance(data, (dict, list)):
        raise ConfigFileError(
            f"Chain config {file_path} must contain a mapping, got {type(data).__name__}",
            path=str(file_path),
        )
    logger.debug(f"Loaded chain config from {file_path}")
    return data


# ============================================================================
# Configuration Loader
# ============================================================================


class ConfigLoader:
    """Load settings from multiple sources"""

    @staticmethod
    def load_from_env() -> Dict[str, Any]:
        """Load settings from environment variables"""
        config: Dict[str, Any] = {}

        # Paths
        home = os.getenv("FILTERBOX_HOME")
        if home:
            config.setdefault("paths", {})["filterbox_home"] = home

        log_dir = os.getenv("FILTERBOX_LOG_DIR")
        if log_dir:
            config.setdefault("paths", {})["log_dir"] = log_dir

        # Chain
        default_priority = os.getenv("FILTERBOX_DEFAULT_PRIORITY")
        if default_priority:
            config.setdefault("chain", {})["default_priority"] = default_priority

        strict_config = os.getenv("FILTERBOX_STRICT_CONFIG")
        if strict_config:
            config.setdefault("chain", {})["strict_config"] = (
                strict_config.lower() == "true"
            )

        # Observability
        log_level = os.getenv("FILTERBOX_LOG_LEVEL")
        if log_level:
            config.setdefault("observability", {})["log_level"] = log_level

        file_logging = os.getenv("FILTERBOX_FILE_LOGGING")
        if file_logging:
            config.setdefault("observability", {})["file_logging"] = (
                file_logging.lower() == "true"
            )

        return config

    @staticmethod
    def load_from_file(file_path: Path) -> Dict[str, Any]:
        """
        Load settings from a YAML or JSON file

        Raises:
            ConfigFileError: file exists but cannot be parsed
        """
        if not file_path.exists():
            return {}

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigFileError(
                f"Failed to load config file {file_path}", path=str(file_path), cause=e
            )

        if not isinstance(data, dict):
            raise ConfigFileError(
                f"Config file {file_path} must contain a mapping", path=str(file_path)
            )
        return data

    @staticmethod
    def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge multiple configuration dictionaries"""
        result: Dict[str, Any] = {}
        for config in configs:
            for key, value in config.items():
                if (
                    key in result
                    and isinstance(result[key], dict)
                    and isinstance(value, dict)
                ):
                    result[key] = ConfigLoader.merge_configs(result[key], value)
                else:
                    result[key] = value
        return result


# ============================================================================
# Global Configuration Instance
# ============================================================================

_config: Optional[FilterBoxConfig] = None


def get_config() -> FilterBoxConfig:
    """
    Get global filterbox settings

    Settings are loaded from (in order of precedence):
    1. Environment variables (FILTERBOX_*)
    2. .filterbox.yaml in current directory
    3. ~/.filterbox/config.yaml
    4. Default values

    Returns:
        FilterBoxConfig instance
    """
    global _config

    if _config is None:
        _config = load_config()

    return _config


def load_config(
    config_file: Optional[Path] = None, env_override: bool = True
) -> FilterBoxConfig:
    """
    Load settings from all sources

    Args:
        config_file: Optional specific config file to load
        env_override: Whether environment variables override file config

    Returns:
        FilterBoxConfig instance

    Raises:
        ConfigFileError: a settings file cannot be parsed
        ConfigValidationError: merged settings are invalid
    """
    configs = []

    # 1. Load from default locations
    default_locations = [
        Path.home() / ".filterbox" / "config.yaml",
        Path.cwd() / ".filterbox.yaml",
    ]

    for location in default_locations:
        file_config = ConfigLoader.load_from_file(location)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {location}")

    # 2. Load from specific file if provided
    if config_file:
        config_file = Path(config_file)
        if not config_file.exists():
            raise ConfigFileError(f"Config file not found: {config_file}", path=str(config_file))
        file_config = ConfigLoader.load_from_file(config_file)
        if file_config:
            configs.append(file_config)
            logger.debug(f"Loaded config from {config_file}")

    # 3. Load from environment variables
    if env_override:
        env_config = ConfigLoader.load_from_env()
        if env_config:
            configs.append(env_config)
            logger.debug("Loaded config from environment")

    # 4. Merge all configs
    merged = ConfigLoader.merge_configs(*configs) if configs else {}

    try:
        return FilterBoxConfig(**merged)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Config validation failed: {_format_errors(e)}",
            errors=_validation_errors(e),
            cause=e,
        )


def reload_config() -> FilterBoxConfig:
    """Reload global settings"""
    global _config
    _config = load_config()
    logger.info("Configuration reloaded")
    return _config


def set_config(config: Optional[FilterBoxConfig]) -> None:
    """Replace global settings (``None`` reloads them on next access)"""
    global _config
    _config = config


__all__ = [
    "DEFAULT_PRIORITY",
    "PathsConfig",
    "ChainSettings",
    "ObservabilityConfig",
    "FilterBoxConfig",
    "CallbackSpec",
    "FilterSpec",
    "ChainConfig",
    "parse_chain_config",
    "load_chain_config",
    "ConfigLoader",
    "get_config",
    "load_config",
    "reload_config",
    "set_config",
]
