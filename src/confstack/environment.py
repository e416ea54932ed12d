"""Deployment environment resolution (ENV)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from enum import Enum

from loguru import logger

from confstack.core.constants import ENV_VAR
from confstack.core.errors import InvalidEnvironmentError


class Environment(str, Enum):
    """Deployment environment. Value doubles as the file-name stem."""

    DEV = "dev"
    STAG = "stag"
    PROD = "prod"

    def __str__(self) -> str:
        return self.value


def resolve_environment(value: str | None) -> Environment:
    """Parse an environment name case-insensitively. Unset or empty means dev."""
    if value is None or not value.strip():
        logger.info("{} is not set, defaulting to dev environment", ENV_VAR)
        return Environment.DEV

    name = value.strip().lower()
    try:
        return Environment(name)
    except ValueError as exc:
        allowed = [e.value for e in Environment]
        raise InvalidEnvironmentError(
            f"Invalid value for {ENV_VAR}: {value!r} (expected one of {', '.join(allowed)})",
            code="invalid_environment",
            details={"value": value, "allowed": allowed},
            original_error=exc,
        ) from exc


def current_environment(environ: Mapping[str, str] | None = None) -> Environment:
    """Read ENV from the given mapping (default: process environment)."""
    env = os.environ if environ is None else environ
    return resolve_environment(env.get(ENV_VAR))
