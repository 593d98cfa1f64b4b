# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Engine configuration.

All tunables live in a YAML file validated with pydantic. Missing file means
defaults; a present but broken file is an error.
"""

import os
import yaml
from pathlib import Path
from typing import Optional, Union
from pydantic import BaseModel, Field, ValidationError, field_validator

from workflow_dag.core.errors import ConfigurationError


CONFIG_ENV_VAR = "WORKFLOW_DAG_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent.parent / "configs" / "engine.yaml"


class ExecutionSettings(BaseModel):
    """Per-run execution limits"""
    node_timeout: Optional[float] = Field(default=300.0, gt=0, description="Seconds per node, None disables")


class TransformSettings(BaseModel):
    """Defaults for LLM transform nodes"""
    default_provider: str = Field(default="anthropic")
    default_model: str = Field(default="claude-3-5-sonnet-20241022")
    max_tokens: int = Field(default=4096, gt=0, le=200000)
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)

    @field_validator('default_model')
    @classmethod
    def validate_model_name(cls, v):
        if not v or len(v) > 100:
            raise ValueError("Invalid model name length")
        if any(char in v for char in [';', '&', '|', '$', '`', '\n', '\r']):
            raise ValueError("Invalid characters in model name")
        return v


class LoggingSettings(BaseModel):
    """Logging Configuration"""
    level: str = Field(default="INFO")
    format: str = Field(default="json", description="Log format (json/text)")

    @field_validator('level')
    @classmethod
    def validate_level(cls, v):
        if v.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
            raise ValueError(f"Unknown log level: {v}")
        return v.upper()

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        if v not in ['json', 'text']:
            raise ValueError("Format must be 'json' or 'text'")
        return v


class EngineSettings(BaseModel):
    """Complete engine configuration"""
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    transform: TransformSettings = Field(default_factory=TransformSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


_config: Optional[EngineSettings] = None


def load_config(path: Optional[Union[str, Path]] = None) -> EngineSettings:
    """
    Load configuration from YAML file.

    Lookup order:
        1. Explicit path argument
        2. WORKFLOW_DAG_CONFIG environment variable
        3. configs/engine.yaml in the project root

    Returns defaults if no file exists at the resolved location.

    Raises:
        ConfigurationError: If the file is empty, not a mapping or fails validation
    """
    config_path = Path(path or os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)

    if not config_path.exists():
        return EngineSettings()

    with open(config_path, 'r') as f:
        # safe_load only, config files must never execute code
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}", config_file=str(config_path))

    if raw_config is None:
        raise ConfigurationError(f"Empty config file: {config_path}", config_file=str(config_path))
    if not isinstance(raw_config, dict):
        raise ConfigurationError(
            f"Config file must contain a mapping: {config_path}",
            config_file=str(config_path)
        )

    try:
        return EngineSettings(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {config_path}",
            config_file=str(config_path),
            details={"errors": e.errors(include_url=False)}
        )


def get_config() -> EngineSettings:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
