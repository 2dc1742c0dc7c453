"""Process-wide configuration: grid geometries, house edge and simulation defaults."""

from stepgrid.config.settings import AppConfig, GridSpec, get_config, reset_config

__all__ = [
    "AppConfig",
    "GridSpec",
    "get_config",
    "reset_config",
]
