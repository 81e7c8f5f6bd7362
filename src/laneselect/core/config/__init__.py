"""Configuration."""
from .settings import LaneselectConfig, get_config, init_config

__all__ = [
    "LaneselectConfig",
    "get_config",
    "init_config",
]
