"""Fixed names: env vars, separators, file naming (see SourceLayout)."""

from __future__ import annotations

from pathlib import Path
from typing import Literal

CONFIG_DIR_VAR = "CONFIG_DIR"
ENV_VAR = "ENV"
SECRETS_KEY_VAR = "SECRETS_ENCRYPTION_KEY"

DEFAULT_CONFIG_DIR = Path("./conf")

# APP__DATABASE__HOST -> database.host
ENV_SEPARATOR = "__"
KEY_DELIMITER = "."
LIST_SEPARATOR = ","

ENCRYPTED_SUFFIX = ".enc"
YAML_SUFFIXES: tuple[str, ...] = (".yaml", ".yml")

SourceKind = Literal["dotenv", "yaml"]
