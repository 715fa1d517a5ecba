"""Exceptions raised while loading auto-mr configuration."""


class ConfigurationError(Exception):
    """Base exception for configuration errors."""


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""


class InvalidDurationError(InvalidConfigurationError):
    """Duration is malformed or outside the allowed range."""


class InvalidUsernameError(InvalidConfigurationError):
    """Platform username does not follow the naming rules."""
