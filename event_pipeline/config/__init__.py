"""Configuration contracts, defaults and environment presets."""

from .defaults import DEFAULT_PIPELINE_CONFIG, LOG_RETENTION_DAYS
from .environments import get_environment_config
from .loader import load_config_file, source_code_hash, with_code_hash
from .types import EnvironmentConfig, PipelineConfig

__all__ = [
    "DEFAULT_PIPELINE_CONFIG",
    "LOG_RETENTION_DAYS",
    "EnvironmentConfig",
    "PipelineConfig",
    "get_environment_config",
    "load_config_file",
    "source_code_hash",
    "with_code_hash",
]
