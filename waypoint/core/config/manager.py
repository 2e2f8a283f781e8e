"""
ConfigManager: dot-notation access to tunable engine configuration (Waypoint).

Purpose
-------
- Provide hierarchical, dot-notation access to tunable engine values.
- Back configuration with built-in defaults plus YAML files.
- Allow in-process overrides (tests, host tuning) with per-key validation.

Responsibilities
----------------
- Load and deep-merge YAML defaults from the configured directory.
- Overlay in-memory overrides on top of YAML defaults.
- Validate values for known keys before accepting them.
- Log every load, override and fallback with structured context.

Key Design Decisions
--------------------
- Built-in defaults are the last resort; YAML overrides them; `set()` wins.
- Instance-based so tests and hosts can hold isolated managers.
- Missing or broken YAML never aborts startup; the manager degrades to
  built-in defaults and logs why.

Dependencies
------------
- PyYAML: YAML parsing.
- `waypoint.core.logging.logger.get_logger`: structured logging.
- `waypoint.core.exceptions.ConfigurationError`: rejected overrides.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, MutableMapping, Optional, Union

import yaml

from waypoint.core.config.config import Config
from waypoint.core.exceptions import ConfigurationError
from waypoint.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Defaults & Validators
# ============================================================================

DEFAULT_CONFIG: Dict[str, Any] = {
    "tutorial": {
        # Interval between pause checks while a run is paused.
        "pause_poll_interval_seconds": 0.05,
        # Fixed wait used by the headless presentation for tap/click waits.
        "headless_wait_seconds": 0.0,
    },
}


def _non_negative_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"must be non-negative, got {value}")
    return float(value)


def _positive_number(value: Any) -> float:
    number = _non_negative_number(value)
    if number == 0:
        raise ValueError("must be greater than zero")
    return number


VALIDATORS: Dict[str, Callable[[Any], Any]] = {
    "tutorial.pause_poll_interval_seconds": _positive_number,
    "tutorial.headless_wait_seconds": _non_negative_number,
}


# ============================================================================
# ConfigManager
# ============================================================================


class ConfigManager:
    """
    Tunable engine configuration with YAML backing.

    Examples
    --------
    >>> manager = ConfigManager.load()
    >>> manager.get("tutorial.pause_poll_interval_seconds")
    0.05
    >>> manager.set("tutorial.headless_wait_seconds", 0.25)
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, Any]] = None,
        config_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self._config_dir: Optional[Path] = Path(config_dir) if config_dir else None
        self._defaults: Dict[str, Any] = copy.deepcopy(
            dict(defaults) if defaults is not None else DEFAULT_CONFIG
        )
        self._cache: Dict[str, Any] = {}
        self._overrides: Dict[str, Any] = {}
        self.reload()

    @classmethod
    def load(cls, config_dir: Optional[Union[str, Path]] = None) -> "ConfigManager":
        """Build a manager reading YAML from `config_dir` or `Config.CONFIG_DIR`."""
        return cls(config_dir=config_dir or Config.CONFIG_DIR)

    # =========================================================================
    # YAML LOADING
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: Mapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, Mapping) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = copy.deepcopy(value)

    def _load_yaml_configs(self) -> Dict[str, Any]:
        """Load and deep-merge every YAML file under the config directory."""
        merged: Dict[str, Any] = {}
        config_dir = self._config_dir

        if config_dir is None:
            return merged

        if not config_dir.exists():
            logger.debug(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        yaml_files = sorted(config_dir.rglob("*.yaml")) + sorted(config_dir.rglob("*.yml"))
        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                logger.warning(
                    "Failed to load YAML config",
                    extra={
                        "file": str(yaml_file),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                continue

            if isinstance(data, dict):
                self._deep_merge_dict(merged, data)
                logger.debug("Loaded YAML config", extra={"file": str(yaml_file)})
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={"file": str(yaml_file), "root_type": type(data).__name__},
                )

        return merged

    def reload(self) -> None:
        """Rebuild the cache from defaults, YAML and current overrides."""
        cache = copy.deepcopy(self._defaults)
        yaml_values = self._load_yaml_configs()

        for key, value in self._flatten(yaml_values).items():
            try:
                self._assign(cache, key, self._validate(key, value))
            except ConfigurationError as exc:
                logger.warning(
                    "Invalid YAML config value; keeping default",
                    extra={"config_key": key, "error": exc.reason},
                )

        for key, value in self._overrides.items():
            self._assign(cache, key, value)

        self._cache = cache
        logger.debug(
            "Configuration loaded",
            extra={
                "config_dir": str(self._config_dir) if self._config_dir else None,
                "override_count": len(self._overrides),
            },
        )

    # =========================================================================
    # ACCESS
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at dot-notation `key`, or `default` when missing."""
        node: Any = self._cache
        for part in key.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return copy.deepcopy(node)

    def get_float(self, key: str, default: float) -> float:
        """Return `key` as a float, falling back to `default` when unusable."""
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(
                "Config value is not numeric; using default",
                extra={"config_key": key, "value": repr(value), "default": default},
            )
            return float(default)

    def set(self, key: str, value: Any) -> None:
        """
        Override `key` in memory.

        Raises
        ------
        ConfigurationError
            If a validator is registered for `key` and rejects `value`.
        """
        validated = self._validate(key, value)
        self._overrides[key] = validated
        self._assign(self._cache, key, validated)
        logger.info("Config override applied", extra={"config_key": key, "value": validated})

    def clear_overrides(self) -> None:
        self._overrides.clear()
        self.reload()

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._cache)

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _validate(key: str, value: Any) -> Any:
        validator = VALIDATORS.get(key)
        if validator is None:
            return value
        try:
            return validator(value)
        except ValueError as exc:
            raise ConfigurationError(key, str(exc)) from exc

    @staticmethod
    def _assign(target: Dict[str, Any], key: str, value: Any) -> None:
        parts = key.split(".")
        node = target
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    @classmethod
    def _flatten(cls, data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
        flat: Dict[str, Any] = {}
        for key, value in data.items():
            full_key = f"{prefix}{key}"
            if isinstance(value, Mapping):
                flat.update(cls._flatten(value, prefix=f"{full_key}."))
            else:
                flat[full_key] = value
        return flat


__all__ = ["ConfigManager", "DEFAULT_CONFIG", "VALIDATORS"]
