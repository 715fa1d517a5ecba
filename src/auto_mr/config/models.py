"""Configuration models."""

import re
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import (
    BaseSettings,
    DotEnvSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from auto_mr.config.exceptions import InvalidConfigurationError, InvalidDurationError, InvalidUsernameError
from auto_mr.vcs.executor import LOCAL_GIT_TIMEOUT, NETWORK_GIT_TIMEOUT

MIN_PIPELINE_TIMEOUT = 60.0
MAX_PIPELINE_TIMEOUT = 8 * 60 * 60.0
DEFAULT_PIPELINE_TIMEOUT = 30 * 60.0

MAX_USERNAME_LENGTH = 39

_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")
_DURATION_RE = re.compile(r"^(?:\d+(?:\.\d+)?(?:h|m|s))+$")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9_-]*[A-Za-z0-9])?$")

_UNIT_SECONDS = {"h": 3600.0, "m": 60.0, "s": 1.0}


def parse_duration(value: str) -> float:
    """Parse a duration such as ``30m``, ``1h`` or ``1h30m``.

    Args:
        value: Duration string (units: h, m, s)

    Returns:
        Duration in seconds

    Raises:
        InvalidDurationError: If the format is invalid
    """
    text = value.strip()
    if not _DURATION_RE.match(text):
        raise InvalidDurationError(
            f"Invalid duration format '{value}'. Valid: \"30m\", \"1h\", \"1h30m\", \"90m\""
        )
    return sum(float(amount) * _UNIT_SECONDS[unit] for amount, unit in _DURATION_PART_RE.findall(text))


class AutoMRConfig(BaseSettings):
    """Configuration for auto-mr."""

    # Git settings
    remote_name: str = Field(
        default="origin",
        description="Remote used for push, pull, fetch and authentication",
    )
    local_git_timeout: float = Field(
        default=LOCAL_GIT_TIMEOUT,
        description="Timeout in seconds for local git operations (switch, delete)",
    )
    network_git_timeout: float = Field(
        default=NETWORK_GIT_TIMEOUT,
        description="Timeout in seconds for network git operations (push, pull, fetch)",
    )

    # Pipeline settings
    pipeline_timeout: str | None = Field(
        default=None,
        description="Pipeline/workflow timeout, e.g. '30m' or '1h30m' (1m to 8h)",
    )

    # Platform users
    gitlab_assignee: str | None = Field(default=None, description="GitLab assignee username")
    gitlab_reviewer: str | None = Field(default=None, description="GitLab reviewer username")
    github_assignee: str | None = Field(default=None, description="GitHub assignee username")
    github_reviewer: str | None = Field(default=None, description="GitHub reviewer username")

    model_config = SettingsConfigDict(
        env_file=[".env.automr", ".env"],
        env_file_encoding="utf-8",
        env_prefix="AUTO_MR_",
        case_sensitive=False,
        extra="ignore",
    )

    def __init__(
        self,
        _env_file: str | Path | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize configuration.

        Args:
            _env_file: Optional path to custom env file (use env_file for public API)
            **kwargs: Additional configuration values

        Raises:
            InvalidConfigurationError: If the env file is specified but does not exist
        """
        env_file = kwargs.pop("env_file", _env_file)

        if env_file is not None:
            env_path = Path(env_file)
            if not env_path.exists():
                raise InvalidConfigurationError(f"Environment file not found: {env_file}")
            kwargs["_custom_env_file"] = env_path

        super().__init__(**kwargs)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Use a custom env file instead of the default ones when one was given.

        Args:
            settings_cls: The settings class being instantiated
            init_settings: Settings from __init__ arguments
            env_settings: Settings from environment variables
            dotenv_settings: Settings from .env files
            file_secret_settings: Settings from secret files

        Returns:
            Tuple of settings sources in priority order
        """
        # init_kwargs exists at runtime but may not be in type stubs
        init_kwargs = init_settings.init_kwargs  # type: ignore[attr-defined]
        custom_env_path = init_kwargs.get("_custom_env_file")

        if custom_env_path is not None:
            custom_dotenv = DotEnvSettingsSource(
                settings_cls,
                env_file=custom_env_path,
                env_file_encoding="utf-8",
            )
            return (init_settings, custom_dotenv, env_settings, file_secret_settings)

        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    @field_validator("pipeline_timeout", mode="before")
    @classmethod
    def validate_pipeline_timeout(cls, v: str | None) -> str | None:
        """Check the pipeline timeout format and bounds.

        Args:
            v: Duration string or None

        Returns:
            Trimmed duration string, or None when unset

        Raises:
            InvalidDurationError: If the value is malformed or out of bounds
        """
        if v is None:
            return None
        text = str(v).strip()
        if not text:
            return None

        seconds = parse_duration(text)
        if seconds < MIN_PIPELINE_TIMEOUT:
            raise InvalidDurationError(f"pipeline_timeout must be at least 1m (got {text})")
        if seconds > MAX_PIPELINE_TIMEOUT:
            raise InvalidDurationError(f"pipeline_timeout must be at most 8h (got {text})")
        return text

    @field_validator("local_git_timeout", "network_git_timeout", mode="before")
    @classmethod
    def validate_git_timeout(cls, v: float | str, info: ValidationInfo) -> float:
        """Check a git timeout is a positive number of seconds.

        Raises:
            InvalidConfigurationError: If the value is not a number or not positive
        """
        try:
            seconds = float(v)
        except (TypeError, ValueError) as e:
            raise InvalidConfigurationError(f"{info.field_name} must be a number of seconds (got {v!r})") from e
        if not seconds > 0:
            raise InvalidConfigurationError(f"{info.field_name} must be greater than 0 (got {v})")
        return seconds

    @field_validator("gitlab_assignee", "gitlab_reviewer", "github_assignee", "github_reviewer", mode="before")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        """Trim and validate a platform username.

        Usernames must be 1-39 characters of letters, digits, ``-`` or ``_``,
        starting and ending with a letter or digit.

        Raises:
            InvalidUsernameError: If the username is invalid
        """
        if v is None:
            return None
        text = str(v).strip()
        if not text:
            return None
        if len(text) > MAX_USERNAME_LENGTH or not _USERNAME_RE.match(text):
            raise InvalidUsernameError(f"Invalid username: '{text}'")
        return text

    @property
    def pipeline_timeout_seconds(self) -> float:
        """Get the pipeline timeout in seconds.

        Returns:
            Configured timeout, or the 30 minute default
        """
        if self.pipeline_timeout is None:
            return DEFAULT_PIPELINE_TIMEOUT
        return parse_duration(self.pipeline_timeout)
