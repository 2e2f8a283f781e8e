"""
Configuration for Waypoint.

- `Config`: static, environment-driven settings (see `config.py`).
- `ConfigManager`: tunable engine values from defaults + YAML; import it from
  `waypoint.core.config.manager` (it depends on logging, which depends on
  `Config`).
"""

from waypoint.core.config.config import Config, Environment

__all__ = ["Config", "Environment"]
