"""Configuration management for Laneselect."""
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..schemas import DEFAULT_PREDICATE, LanePredicate
from ..stage.processor import OnRecordError


class LaneselectConfig(BaseSettings):
    """Main configuration for the lane selector.

    Configuration can be loaded from:
    1. Environment variables (prefixed with LANESELECT_)
    2. YAML configuration file (laneselect.yaml)
    3. Default values
    """

    # Routing Configuration
    lane_predicates: list[LanePredicate] = Field(
        default_factory=list,
        description="Ordered lane predicates; the last one must be 'default'",
    )
    constants: dict[str, Any] = Field(
        default_factory=dict,
        description="Constants available to predicates",
    )
    output_lanes: Optional[list[str]] = Field(
        default=None,
        description="Declared output lanes (defaults to the lanes of the predicates)",
    )
    on_record_error: OnRecordError = Field(
        default=OnRecordError.TO_ERROR,
        description="Handling of records whose predicates fail (to_error, discard, stop_pipeline)",
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: Optional[str] = Field(default=None, description="Log file path")

    model_config = SettingsConfigDict(
        env_prefix="LANESELECT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def get_output_lanes(self) -> list[str]:
        """Get the declared output lanes.

        Returns:
            ``output_lanes`` if set, otherwise the distinct lanes of the
            predicates in configuration order
        """
        if self.output_lanes is not None:
            return list(self.output_lanes)
        return list(dict.fromkeys(p.output_lane for p in self.lane_predicates))

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "LaneselectConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            LaneselectConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration file: {config_path}")

        return cls(**data)

    def to_yaml(self, config_path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save configuration file
        """
        config_path = Path(config_path)

        # Predicates are written with their configuration keys (outputLane)
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def create_default_config(cls, config_path: str | Path) -> "LaneselectConfig":
        """Create a default configuration file.

        The default routes records with a numeric ``/amount`` above
        ``threshold`` to ``high`` and everything else to ``low``.

        Args:
            config_path: Path to save configuration file

        Returns:
            LaneselectConfig instance with default values
        """
        config = cls(
            lane_predicates=[
                LanePredicate(
                    output_lane="high",
                    predicate="${record:exists('/amount') && record:value('/amount') > threshold}",
                ),
                LanePredicate(output_lane="low", predicate=DEFAULT_PREDICATE),
            ],
            constants={"threshold": 100},
        )
        config.to_yaml(config_path)
        return config


# Global configuration instance
_config: Optional[LaneselectConfig] = None


def init_config(config_path: Optional[str | Path] = None) -> LaneselectConfig:
    """Initialize the global configuration.

    Args:
        config_path: Optional path to YAML configuration file.
                    If not provided, uses environment variables and defaults.

    Returns:
        LaneselectConfig instance
    """
    global _config

    if config_path:
        _config = LaneselectConfig.from_yaml(config_path)
    else:
        # Try to load from default location
        default_paths = [
            Path("laneselect.yaml"),
            Path("laneselect.yml"),
            Path(".laneselect.yaml"),
            Path.home() / ".laneselect" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                _config = LaneselectConfig.from_yaml(path)
                return _config

        # No config file found, use defaults and env vars
        _config = LaneselectConfig()

    return _config


def get_config() -> LaneselectConfig:
    """Get the global configuration instance.

    Returns:
        LaneselectConfig instance
    """
    if _config is None:
        # Auto-initialize with defaults
        return init_config()
    return _config
