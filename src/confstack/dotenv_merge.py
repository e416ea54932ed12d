"""Dotenv chain: fold dotenv files into the process environment.

First write wins. A variable already present (pre-existing, or set by an
earlier file in the chain) is never overwritten.

The plaintext files are applied before the encrypted tail so that
SECRETS_ENCRYPTION_KEY may itself come from a dotenv file.
"""

from __future__ import annotations

import io
import os
from collections.abc import Iterable, Mapping, MutableMapping

from dotenv.parser import parse_stream
from dotenv.variables import parse_variables
from loguru import logger

from confstack.core.encoding import decode_text
from confstack.core.errors import SourceFormatError
from confstack.encryption import SecretDecryptor
from confstack.sources import SourceDescriptor, SourceLayout


def read_dotenv(
    data: bytes,
    origin: str,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str | None]:
    """Parse dotenv bytes. Keys without '=' map to None.

    ``${VAR}`` expands against earlier keys of the same file, with environ
    (default: os.environ) taking precedence. Any unparsable line is fatal.
    """
    env = os.environ if environ is None else environ
    text = decode_text(data, origin)
    values: dict[str, str | None] = {}
    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            line = binding.original.line
            logger.error("Dotenv {} could not be parsed at line {}", origin, line)
            raise SourceFormatError(
                f"Dotenv {origin} could not be parsed at line {line}",
                code="invalid_dotenv",
                details={"source": origin, "line": line},
            )
        if binding.key is None:
            continue
        if binding.value is None:
            values[binding.key] = None
            continue
        scope = {**values, **env}
        values[binding.key] = "".join(atom.resolve(scope) for atom in parse_variables(binding.value))
    return values


def apply_dotenv(values: dict[str, str | None], environ: MutableMapping[str, str]) -> list[str]:
    """Set each key not already in environ. Returns the names that were set."""
    applied: list[str] = []
    for key, value in values.items():
        if value is None or key in environ:
            continue
        environ[key] = value
        applied.append(key)
    return applied


def _source_bytes(source: SourceDescriptor, decryptor: SecretDecryptor | None) -> bytes | None:
    if source.encrypted:
        return decryptor.decrypt_file(source.path) if decryptor is not None else None
    if not source.exists():
        logger.debug("Dotenv {} not found, skipping", source.path)
        return None
    return source.path.read_bytes()


def merge_dotenv_sources(
    sources: Iterable[SourceDescriptor],
    environ: MutableMapping[str, str],
    decryptor: SecretDecryptor | None = None,
) -> list[str]:
    """Apply sources in order to environ. Encrypted ones need a decryptor."""
    applied: list[str] = []
    for source in sources:
        data = _source_bytes(source, decryptor)
        if data is None:
            continue
        names = apply_dotenv(read_dotenv(data, str(source.path), environ), environ)
        logger.debug("Loaded {} ({}): {} new variables", source.name, source.path, len(names))
        applied.extend(names)
    return applied


def merge_dotenv_chain(
    layout: SourceLayout,
    decryptor: SecretDecryptor | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> list[str]:
    """Apply the dotenv chain to environ (default: os.environ).

    Without a decryptor one is built from environ after the plaintext files.
    """
    env = os.environ if environ is None else environ
    applied = merge_dotenv_sources(layout.plain_dotenv_chain(), env)
    if decryptor is None:
        decryptor = SecretDecryptor.from_env(env)
    applied.extend(merge_dotenv_sources(layout.secret_dotenv_chain(), env, decryptor))
    return applied
