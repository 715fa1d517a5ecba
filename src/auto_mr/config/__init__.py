"""Configuration management for auto-mr."""

from auto_mr.config.exceptions import (
    ConfigurationError,
    InvalidConfigurationError,
    InvalidDurationError,
    InvalidUsernameError,
)
from auto_mr.config.models import AutoMRConfig, parse_duration

__all__ = [
    "AutoMRConfig",
    "ConfigurationError",
    "InvalidConfigurationError",
    "InvalidDurationError",
    "InvalidUsernameError",
    "parse_duration",
]
