"""
Connection options for the Connect client.

Options are validated with a voluptuous schema. Missing keys fall back to
environment variables, which may come from a .env file.
"""
from __future__ import annotations

import dataclasses
import logging
import os

import voluptuous as vol
from dotenv import load_dotenv

from .const import DEFAULT_HOST, ENV_API_KEY, ENV_HOST, PULL_INTERVAL, PULL_TIMEOUT, REQUEST_TIMEOUT
from .exceptions import ConfigError

_LOGGER = logging.getLogger(__name__)

non_empty_string = vol.All(str, vol.Length(min=1))
positive_seconds = vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))
host_url = vol.All(non_empty_string, vol.Match(r"^https?://"), lambda value: value.rstrip("/"))

CONNECTION_SCHEMA = vol.Schema(
    {
        vol.Required("api_key"): non_empty_string,
        vol.Required("host", default=DEFAULT_HOST): host_url,
        vol.Required("request_timeout", default=REQUEST_TIMEOUT): positive_seconds,
        vol.Required("pull_timeout", default=PULL_TIMEOUT): positive_seconds,
        vol.Required("pull_interval", default=PULL_INTERVAL): vol.All(vol.Coerce(float), vol.Range(min=0)),
        vol.Optional("async_response_ttl", default=None): vol.Any(None, positive_seconds),
    }
)


@dataclasses.dataclass(frozen=True)
class ConnectionConfig:
    """Validated connection options."""

    api_key: str
    host: str = DEFAULT_HOST
    request_timeout: float = REQUEST_TIMEOUT
    pull_timeout: float = PULL_TIMEOUT
    pull_interval: float = PULL_INTERVAL
    async_response_ttl: float | None = None

    def __repr__(self) -> str:
        return f"ConnectionConfig(host={self.host!r}, api_key='***')"


def load_config(options: dict | None = None, env_file: str | None = None) -> ConnectionConfig:
    """
    Build a ConnectionConfig from explicit options and the environment.

    Explicit options win; MBED_CLOUD_API_KEY and MBED_CLOUD_HOST fill the gaps.

    Raises:
        ConfigError: If the merged options do not validate
    """
    load_dotenv(env_file)
    merged = {key: value for key, value in (options or {}).items() if value is not None}

    if "api_key" not in merged and os.getenv(ENV_API_KEY):
        merged["api_key"] = os.getenv(ENV_API_KEY)
    if "host" not in merged and os.getenv(ENV_HOST):
        merged["host"] = os.getenv(ENV_HOST)

    try:
        validated = CONNECTION_SCHEMA(merged)
    except vol.Invalid as e:
        raise ConfigError(f"Invalid connection options: {e}") from e

    _LOGGER.debug("Loaded connection options for %s", validated["host"])
    return ConnectionConfig(**validated)
