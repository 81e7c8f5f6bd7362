"""Shortcut for config - re-exports from core."""
from .core.config.settings import LaneselectConfig, get_config, init_config

__all__ = [
    "LaneselectConfig",
    "get_config",
    "init_config",
]
