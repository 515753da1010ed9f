"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Optional

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.time_model import DEFAULT_TIMEZONE


class LoggingConfig(BaseModel):
    """Log output settings for the CLI."""
    level: str = "WARNING"
    rich_tracebacks: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Accept standard logging level names in any case."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


class EngineConfig(BaseModel):
    """Application configuration."""
    data_file: Optional[Path] = None
    default_timezone: str = DEFAULT_TIMEZONE
    default_slot_interval: int = 15
    max_range_days: int = 30
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("default_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("default_slot_interval", "max_range_days")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @model_validator(mode="after")
    def validate_range_limit(self) -> "EngineConfig":
        """A year is the longest range worth computing in one call."""
        if self.max_range_days > 366:
            raise ValueError("max_range_days must not exceed 366")
        return self

    def resolve_data_file(self, config_path: Optional[Path] = None) -> Optional[Path]:
        """Resolve a relative data_file against the config file's directory."""
        if self.data_file is None or self.data_file.is_absolute() or config_path is None:
            return self.data_file
        return config_path.parent / self.data_file

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "EngineConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            EngineConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of slotengine/)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
