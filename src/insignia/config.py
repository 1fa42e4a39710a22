from __future__ import annotations

import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from insignia.errors import ArgumentError


class TaggingConfig(BaseModel):
    """Tag container write settings."""

    # ID3v2 revision used when saving MP3/AIFF/WAVE tags
    id3_version: int = Field(default=4, ge=3, le=4)
    cover_description: str = Field(default="")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="WARNING")  # DEBUG, INFO, WARNING, ERROR
    format: str = Field(default="%(levelname)s %(name)s: %(message)s")
    hash_paths: bool = Field(default=False)


class Config(BaseModel):
    """
    Main configuration for insignia.

    Loads from TOML file with optional environment variable overrides.
    """

    tagging: TaggingConfig = Field(default_factory=TaggingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> Config:
        """
        Load configuration from TOML file with environment variable overrides.

        Environment variables take precedence and follow the pattern:
        INSIGNIA_<SECTION>_<KEY> (e.g., INSIGNIA_TAGGING_ID3_VERSION)

        Raises:
            ArgumentError: If the file cannot be parsed or holds invalid values
        """
        config_dict: dict[str, object] = {}

        if config_path and config_path.exists():
            try:
                config_dict = tomllib.loads(config_path.read_text())
            except (OSError, tomllib.TOMLDecodeError) as e:
                raise ArgumentError(f"Could not read config file {config_path}: {e}") from e

        config_dict = cls._merge_env_overrides(config_dict)
        try:
            return cls.model_validate(config_dict)
        except ValidationError as e:
            raise ArgumentError(f"Invalid configuration: {e}") from e

    @classmethod
    def _merge_env_overrides(cls, config_dict: dict[str, object]) -> dict[str, object]:
        """
        Merge environment variable overrides into config dictionary.

        Returns a new dictionary with env vars applied, ready for Pydantic validation.
        """
        env_prefix = "INSIGNIA_"

        tagging = config_dict.setdefault("tagging", {})
        if not isinstance(tagging, dict):
            tagging = {}
            config_dict["tagging"] = tagging

        if id3_version := os.getenv(f"{env_prefix}TAGGING_ID3_VERSION"):
            tagging["id3_version"] = id3_version

        if (description := os.getenv(f"{env_prefix}TAGGING_COVER_DESCRIPTION")) is not None:
            tagging["cover_description"] = description

        logging_cfg = config_dict.setdefault("logging", {})
        if not isinstance(logging_cfg, dict):
            logging_cfg = {}
            config_dict["logging"] = logging_cfg

        if log_level := os.getenv(f"{env_prefix}LOGGING_LEVEL"):
            logging_cfg["level"] = log_level

        if hash_paths := os.getenv(f"{env_prefix}LOGGING_HASH_PATHS"):
            logging_cfg["hash_paths"] = hash_paths.lower() in ("true", "1", "yes")

        return config_dict
