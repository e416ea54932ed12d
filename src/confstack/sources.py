"""Source file naming and the two fixed precedence chains."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from confstack.core.constants import (
    CONFIG_DIR_VAR,
    DEFAULT_CONFIG_DIR,
    ENCRYPTED_SUFFIX,
    YAML_SUFFIXES,
    SourceKind,
)
from confstack.environment import Environment


@dataclass(frozen=True, slots=True)
class SourceDescriptor:
    """One entry of a precedence chain."""

    name: str
    path: Path
    kind: SourceKind
    encrypted: bool = False
    required: bool = False

    def exists(self) -> bool:
        return self.path.is_file()


def resolve_config_dir(environ: Mapping[str, str] | None = None) -> Path:
    """Base directory from CONFIG_DIR, default ./conf."""
    env = os.environ if environ is None else environ
    value = env.get(CONFIG_DIR_VAR)
    if not value:
        logger.info("{} is not set, defaulting to {}", CONFIG_DIR_VAR, DEFAULT_CONFIG_DIR)
        return DEFAULT_CONFIG_DIR
    return Path(value)


class SourceLayout:
    """Canonical file paths under one config directory for one environment.

    Dotenv chain (first write wins, see confstack.dotenv_merge):
        .env, local.env, <env>.env, default.env, <env>-secrets.env.enc

    YAML chain (later overrides earlier, see confstack.builder):
        default, <env>, <env>-secrets, <env>-secrets (enc),
        local-secrets (enc), local
    """

    def __init__(self, config_dir: str | Path, env: Environment) -> None:
        self.config_dir = Path(config_dir)
        self.env = env

    def __repr__(self) -> str:
        return f"SourceLayout(config_dir={str(self.config_dir)!r}, env={self.env.value!r})"

    def _dotenv(self, name: str, filename: str, *, encrypted: bool = False) -> SourceDescriptor:
        if encrypted:
            filename += ENCRYPTED_SUFFIX
        return SourceDescriptor(name, self.config_dir / filename, "dotenv", encrypted=encrypted)

    def _yaml(self, name: str, stem: str, *, encrypted: bool = False) -> SourceDescriptor:
        return SourceDescriptor(name, self.yaml_path(stem, encrypted=encrypted), "yaml", encrypted=encrypted)

    def yaml_path(self, stem: str, *, encrypted: bool = False) -> Path:
        """Path for a YAML stem. Prefers .yaml; falls back to an existing .yml."""
        tail = ENCRYPTED_SUFFIX if encrypted else ""
        candidates = [self.config_dir / f"{stem}{suffix}{tail}" for suffix in YAML_SUFFIXES]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return candidates[0]

    def dotenv_chain(self) -> tuple[SourceDescriptor, ...]:
        env = self.env.value
        return (
            self._dotenv("base dotenv", ".env"),
            self._dotenv("local dotenv", "local.env"),
            self._dotenv(f"{env} dotenv", f"{env}.env"),
            self._dotenv("default dotenv", "default.env"),
            self._dotenv(f"{env} dotenv secrets", f"{env}-secrets.env", encrypted=True),
        )

    def plain_dotenv_chain(self) -> tuple[SourceDescriptor, ...]:
        return tuple(s for s in self.dotenv_chain() if not s.encrypted)

    def secret_dotenv_chain(self) -> tuple[SourceDescriptor, ...]:
        return tuple(s for s in self.dotenv_chain() if s.encrypted)

    def yaml_chain(self) -> tuple[SourceDescriptor, ...]:
        env = self.env.value
        return (
            self._yaml("default yaml", "default"),
            self._yaml(f"{env} yaml", env),
            self._yaml(f"{env} yaml secrets", f"{env}-secrets"),
            self._yaml(f"{env} yaml secrets", f"{env}-secrets", encrypted=True),
            self._yaml("local yaml secrets", "local-secrets", encrypted=True),
            self._yaml("local yaml", "local"),
        )
