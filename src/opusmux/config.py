"""Configuration management for opusmux."""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class ToolsConfig(BaseModel):
    """External tool executables (names on PATH or absolute paths)."""

    ffprobe: str = Field(default="ffprobe", description="Stream probe")
    ffmpeg: str = Field(default="ffmpeg", description="Audio extractor")
    mkvmerge: str = Field(default="mkvmerge", description="Container probe and muxer")
    mediainfo: str = Field(default="mediainfo", description="Delay probe")
    sox: str = Field(default="sox", description="Normalizer")
    opusenc: str = Field(default="opusenc", description="Opus encoder")

    def required(self) -> dict[str, str]:
        """Map of tool role to executable, in the order they are checked."""
        return {
            "ffprobe": self.ffprobe,
            "mkvmerge": self.mkvmerge,
            "mediainfo": self.mediainfo,
            "ffmpeg": self.ffmpeg,
            "sox": self.sox,
            "opusenc": self.opusenc,
        }


class EncodingConfig(BaseModel):
    """Audio encoding configuration."""

    downmix: bool = Field(default=False, description="Downmix surround tracks to stereo")
    normalize_db: float = Field(
        default=-1.0, description="Peak level for sox --norm (dBFS)"
    )

    @field_validator("normalize_db")
    @classmethod
    def validate_normalize_db(cls, v: float) -> float:
        """Normalization target must leave headroom."""
        if v > 0:
            raise ValueError("normalize_db must be <= 0 dBFS")
        return v


class ProcessingConfig(BaseModel):
    """Processing configuration."""

    workers: int = Field(default=1, description="Tracks transcoded in parallel")
    timeout_seconds: Optional[int] = Field(
        default=None, description="Per external call timeout (None blocks indefinitely)"
    )
    temp_dir: Optional[str] = Field(
        default=None, description="Parent directory for the run workspace"
    )

    @field_validator("workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Validate worker count."""
        if v < 1:
            raise ValueError("workers must be at least 1")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    format: str = Field(default="text", description="Log format (json or text)")
    level: str = Field(default="info", description="Log level")
    output: Optional[str] = Field(default=None, description="Optional log file path")

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format."""
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        if v.lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError("Invalid log level")
        return v.lower()


class ExecutionConfig(BaseModel):
    """Execution configuration."""

    dry_run: bool = Field(default=False, description="Plan only, run no encoder or muxer")


class Config(BaseModel):
    """Main configuration model."""

    tools: ToolsConfig = Field(default_factory=ToolsConfig, description="Tool paths")
    encoding: EncodingConfig = Field(
        default_factory=EncodingConfig, description="Encoding configuration"
    )
    processing: ProcessingConfig = Field(
        default_factory=ProcessingConfig, description="Processing configuration"
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")
    execution: ExecutionConfig = Field(
        default_factory=ExecutionConfig, description="Execution configuration"
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path) as f:
            raw_config = yaml.safe_load(f)

        if raw_config is None:
            raw_config = {}

        raw_config = cls._substitute_env_vars(raw_config)

        return cls(**raw_config)

    @staticmethod
    def _substitute_env_vars(obj: Any) -> Any:
        """Recursively replace ${VAR_NAME} with os.environ['VAR_NAME']."""
        if isinstance(obj, dict):
            return {key: Config._substitute_env_vars(value) for key, value in obj.items()}
        elif isinstance(obj, list):
            return [Config._substitute_env_vars(item) for item in obj]
        elif isinstance(obj, str):
            pattern = r"\$\{([^}]+)\}"

            def replace_var(match):
                var_name = match.group(1)
                value = os.environ.get(var_name)
                if value is None:
                    raise ValueError(
                        f"Environment variable '{var_name}' not found "
                        f"(referenced in configuration)"
                    )
                return value

            return re.sub(pattern, replace_var, obj)
        else:
            return obj


def load_config(path: Optional[str | Path] = None) -> Config:
    """Load configuration from file or use defaults.

    Args:
        path: Optional path to configuration file. If None, uses defaults.

    Returns:
        Config instance
    """
    if path is None:
        return Config()

    return Config.from_yaml(path)
