"""Layered configuration: env vars, dotenv files, YAML files and encrypted secrets.

Usage:
    import confstack
    from pydantic import BaseModel

    class Settings(confstack.LoadConfig, BaseModel):
        debug: bool = False

    confstack.init(prefix="app", list_parse_keys=["allowed_hosts"])
    settings = Settings.load()
"""

from confstack.builder import build_config
from confstack.core.errors import (
    ConfigNotInitializedError,
    ConfigurationError,
    ConfstackError,
    DeserializationError,
    InvalidEnvironmentError,
    SecretsError,
    SourceFormatError,
)
from confstack.encryption import SecretDecryptor, generate_key
from confstack.environment import Environment
from confstack.sources import SourceLayout
from confstack.state import (
    CellState,
    ConfigCell,
    LoadConfig,
    get_config,
    init,
    init_default,
    is_initialized,
    load,
)
from confstack.tree import ConfigTree

__version__ = "0.1.0"

__all__ = [
    "CellState",
    "ConfigCell",
    "ConfigNotInitializedError",
    "ConfigTree",
    "ConfigurationError",
    "ConfstackError",
    "DeserializationError",
    "Environment",
    "InvalidEnvironmentError",
    "LoadConfig",
    "SecretDecryptor",
    "SecretsError",
    "SourceFormatError",
    "SourceLayout",
    "__version__",
    "build_config",
    "generate_key",
    "get_config",
    "init",
    "init_default",
    "is_initialized",
    "load",
]
