"""
Shared configuration management for the Sentry exporter.
"""

from enum import Enum
from typing import Tuple

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


DEFAULT_SENTRY_API_ENDPOINT = "https://sentry.io/api/0/"
DEFAULT_SENTRY_API_TIMEOUT = 5.0
DEFAULT_WEB_LISTEN_ADDRESS = ":9115"
# Bind address used when the listen address has no host part
DEFAULT_HOST = "0.0.0.0"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")
LOG_LEVEL_ALIASES = {"warn": "warning", "fatal": "critical"}


class LabelMode(str, Enum):
    """Label schemes for the exported project metrics."""
    BASIC = "basic"
    WITH_SLUG = "with_slug"


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address.

    An empty host binds every interface; IPv6 hosts may be bracketed.
    """
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdecimal():
        raise ValueError(f"listen address must be host:port, got {address!r}")

    port_number = int(port)
    if not 1 <= port_number <= 65535:
        raise ValueError(f"port out of range: {port_number}")

    host = host.strip()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or DEFAULT_HOST, port_number


class ExporterSettings(BaseSettings):
    """Exporter settings, read once from the environment at startup."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # HTTP server
    web_listen_address: str = Field(default=DEFAULT_WEB_LISTEN_ADDRESS)

    # Sentry API
    sentry_api_key: SecretStr
    sentry_api_endpoint: str = Field(default=DEFAULT_SENTRY_API_ENDPOINT, min_length=1)
    sentry_organization_slug: str = Field(min_length=1)
    sentry_api_timeout: float = Field(default=DEFAULT_SENTRY_API_TIMEOUT, gt=0)

    # Exported metrics
    label_mode: LabelMode = Field(default=LabelMode.WITH_SLUG)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        level = str(value).strip().lower()
        level = LOG_LEVEL_ALIASES.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("web_listen_address")
    @classmethod
    def validate_web_listen_address(cls, value: str) -> str:
        parse_listen_address(value)
        return value

    @property
    def host(self) -> str:
        return parse_listen_address(self.web_listen_address)[0]

    @property
    def port(self) -> int:
        return parse_listen_address(self.web_listen_address)[1]


def get_settings(**overrides) -> ExporterSettings:
    """Build exporter settings from the environment plus explicit overrides."""
    try:
        return ExporterSettings(**overrides)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigurationError(
            f"Invalid exporter configuration: {', '.join(fields)}",
            details={"fields": fields}
        ) from e
