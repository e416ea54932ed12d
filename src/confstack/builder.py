"""Full load sequence: dotenv chain, YAML chain, environment variables.

Order of precedence (highest to lowest):
1. Environment variables (pre-existing, then .env / local / <env> / default
   dotenv files, then <env>-secrets.env.enc; first write wins)
2. local.yaml
3. local-secrets.yaml.enc
4. <env>-secrets.yaml.enc
5. <env>-secrets.yaml
6. <env>.yaml
7. default.yaml
"""

from __future__ import annotations

import os
from collections.abc import Iterable, MutableMapping
from pathlib import Path
from typing import Any

from loguru import logger

from confstack.core.constants import CONFIG_DIR_VAR
from confstack.dotenv_merge import merge_dotenv_sources
from confstack.encryption import SecretDecryptor
from confstack.env_source import EnvironmentSource
from confstack.environment import current_environment
from confstack.loader import _deep_update, load_config, parse_yaml
from confstack.sources import SourceDescriptor, SourceLayout, resolve_config_dir
from confstack.tree import ConfigTree


def _load_yaml_source(source: SourceDescriptor, decryptor: SecretDecryptor) -> dict[str, Any]:
    if not source.encrypted:
        return load_config(source.path)
    data = decryptor.decrypt_file(source.path)
    if data is None:
        return {}
    return parse_yaml(data, str(source.path))


def merge_yaml_chain(layout: SourceLayout, decryptor: SecretDecryptor) -> dict[str, Any]:
    """Merge the YAML chain in order, later sources overriding earlier ones."""
    merged: dict[str, Any] = {}
    for source in layout.yaml_chain():
        data = _load_yaml_source(source, decryptor)
        if data:
            logger.debug("Merged {} ({})", source.name, source.path)
            merged = _deep_update(merged, data)
    return merged


def build_config(
    prefix: str | None = None,
    list_parse_keys: Iterable[str] = (),
    *,
    environ: MutableMapping[str, str] | None = None,
    config_dir: str | Path | None = None,
) -> ConfigTree:
    """Run the whole load sequence once and return the immutable tree.

    environ defaults to os.environ and is mutated by the dotenv chain.
    """
    env_vars = os.environ if environ is None else environ
    # Parse behaviour for list keys is fixed before any variable is read.
    env_source = EnvironmentSource(prefix, list_parse_keys)

    directory = Path(config_dir) if config_dir is not None else resolve_config_dir(env_vars)
    if not directory.is_dir():
        logger.warning(
            "Config directory {} does not exist (set {}), only environment variables apply",
            directory,
            CONFIG_DIR_VAR,
        )
    env = current_environment(env_vars)
    layout = SourceLayout(directory, env)

    merge_dotenv_sources(layout.plain_dotenv_chain(), env_vars)
    # Read after the plaintext dotenv files, which may supply the key.
    decryptor = SecretDecryptor.from_env(env_vars)
    merge_dotenv_sources(layout.secret_dotenv_chain(), env_vars, decryptor)

    merged = merge_yaml_chain(layout, decryptor)
    merged = _deep_update(merged, env_source.collect(env_vars))

    logger.debug("Config built from {} for {} environment: {} top-level keys", directory, env, len(merged))
    return ConfigTree(merged)
