"""Hook configuration from the certbot environment.

Certbot hands the challenge to manual hooks through ``CERTBOT_*``
variables; dnshook's own knobs use the ``DNSHOOK_`` prefix. Both can
also come from an env file.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnshook.exceptions import ConfigurationError
from dnshook.lifecycle import DEFAULT_CONFLICT_MESSAGES, FREE_TTL_VALUE
from dnshook.propagation import PropagationPoller
from dnshook.resolver import DEFAULT_NAMESERVER

DEFAULT_ENV_FILE = Path("/etc/dnshook.env")


class HookSettings(BaseSettings):
    """Settings for one hook invocation."""

    model_config = SettingsConfigDict(
        env_prefix="DNSHOOK_",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
        env_file_encoding="utf-8",
    )

    # Set by certbot
    domain: str = Field(validation_alias="CERTBOT_DOMAIN", min_length=1)
    validation: str = Field(validation_alias="CERTBOT_VALIDATION", min_length=1)
    auth_output: str = Field(default="", validation_alias="CERTBOT_AUTH_OUTPUT")

    # Overall deadline in seconds, 0 for none
    timeout: float = Field(default=0.0, ge=0)

    nameserver: str = Field(default=DEFAULT_NAMESERVER, min_length=1)
    nameserver_port: int = Field(default=53, gt=0, le=65535)
    lookup_timeout: float = Field(default=PropagationPoller.LOOKUP_TIMEOUT, gt=0)
    retry_delay: float = Field(default=PropagationPoller.RETRY_DELAY, ge=0)
    max_attempts: int = Field(default=PropagationPoller.MAX_ATTEMPTS, ge=1)

    ttl_hint: str = FREE_TTL_VALUE
    conflict_messages: list[str] = Field(default_factory=lambda: list(DEFAULT_CONFLICT_MESSAGES))

    powerdns_api_url: str | None = None
    powerdns_api_key: str | None = None
    powerdns_server_id: str = "localhost"
    powerdns_timeout: int = Field(default=30, gt=0)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "json"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @property
    def delete_mode(self) -> bool:
        """True when replaying a previous create's output."""
        return bool(self.auth_output.strip())


def load_settings(env_file: Path | None = None, **overrides) -> HookSettings:
    """Load settings from the environment and an optional env file.

    Args:
        env_file: Env file to read; DEFAULT_ENV_FILE is used when it exists.
        **overrides: Values taking precedence over the environment.

    Raises:
        ConfigurationError: Required values are missing or invalid.
    """
    if env_file is None and DEFAULT_ENV_FILE.is_file():
        env_file = DEFAULT_ENV_FILE
    if env_file is not None and not env_file.is_file():
        raise ConfigurationError(f"Env file not found: {env_file}")

    try:
        return HookSettings(_env_file=env_file, **overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e
