"""Server configuration read from the environment."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional


class ConfigError(RuntimeError):
    """Raised when a required setting is missing."""


@dataclass(frozen=True)
class Config:
    """Database location and listening port for the server."""

    dsn: str
    port: str


def load(environ: Optional[Mapping] = None) -> Config:
    """Read SUBSCRIPTION_PORT and DATABASE_URL; both are required."""
    env = os.environ if environ is None else environ
    port = env.get("SUBSCRIPTION_PORT", "")
    if not port:
        raise ConfigError("SUBSCRIPTION_PORT is not set in env")
    dsn = env.get("DATABASE_URL", "")
    if not dsn:
        raise ConfigError("DATABASE_URL is not set in env")
    return Config(dsn=dsn, port=port)