"""Configuration objects for the Tinybird Python SDK."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError

VERSION = "0.2.0"

DEFAULT_HOST = "api.tinybird.co"
DEFAULT_PROTOCOL = "https"
DEFAULT_API_VERSION = "v0"
DEFAULT_TIMEOUT = 15.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY = 2.0
DEFAULT_USER_AGENT = f"tinybird-sdk-python/{VERSION}"

TOKEN_ENV = "TINYBIRD_TOKEN"
HOST_ENV = "TINYBIRD_HOST"
API_VERSION_ENV = "TINYBIRD_API_VERSION"

_DEFAULTS: Dict[str, Any] = {
    "host": DEFAULT_HOST,
    "protocol": DEFAULT_PROTOCOL,
    "api_version": DEFAULT_API_VERSION,
    "token": "",
    "timeout": DEFAULT_TIMEOUT,
    "max_retries": DEFAULT_MAX_RETRIES,
    "retry_delay": DEFAULT_RETRY_DELAY,
    "user_agent": DEFAULT_USER_AGENT,
}


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client settings.

    ``None`` or empty values are replaced by the defaults above, so callers
    only pass what they want to change. Retry count and delay accept ``0``.
    """

    host: str = DEFAULT_HOST
    protocol: str = DEFAULT_PROTOCOL
    api_version: str = DEFAULT_API_VERSION
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    user_agent: str = DEFAULT_USER_AGENT
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name, default in _DEFAULTS.items():
            value = getattr(self, name)
            if value is None or value == "":
                object.__setattr__(self, name, default)
        if self.headers is None:
            object.__setattr__(self, "headers", {})
        # a scheme in the host would otherwise be doubled by base_url
        host = self.host.split("://", 1)[-1].rstrip("/")
        object.__setattr__(self, "host", host)
        if self.max_retries < 0:
            raise ConfigurationError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.retry_delay < 0:
            raise ConfigurationError(f"retry_delay must be >= 0, got {self.retry_delay}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {self.timeout}")

    @property
    def base_url(self) -> str:
        return f"{self.protocol}://{self.host}/{self.api_version}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any) -> "ClientConfig":
        """Resolve a config once from the environment plus explicit overrides.

        ``environ`` defaults to ``os.environ``. Explicit, non-empty overrides
        win over environment values.
        """
        env = os.environ if environ is None else environ
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigurationError(f"unknown config options: {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {
            "token": env.get(TOKEN_ENV, ""),
            "host": env.get(HOST_ENV, ""),
            "api_version": env.get(API_VERSION_ENV, ""),
        }
        values.update({key: value for key, value in overrides.items() if value is not None and value != ""})
        return cls(**values)


__all__ = ["ClientConfig", "VERSION", "TOKEN_ENV", "HOST_ENV", "API_VERSION_ENV"]
