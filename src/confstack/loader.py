"""YAML source loading and deep merge."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from confstack.core.encoding import decode_text
from confstack.core.errors import SourceFormatError


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def normalize_keys(value: Any) -> Any:
    """Lowercase every mapping key, descending into lists."""
    if isinstance(value, dict):
        return {str(k).lower(): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(v) for v in value]
    return value


def parse_yaml(data: bytes, origin: str) -> dict[str, Any]:
    """Parse YAML bytes into a key-normalized mapping. Empty input is {}."""
    text = decode_text(data, origin)
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", origin, exc)
        raise SourceFormatError(
            f"Failed to parse config {origin}: {exc}",
            code="invalid_yaml",
            details={"source": origin},
            original_error=exc,
        ) from exc

    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        logger.error("Config {} has invalid structure (expected mapping)", origin)
        raise SourceFormatError(
            f"Config {origin} has invalid structure (expected mapping, got {type(parsed).__name__})",
            code="invalid_structure",
            details={"source": origin, "type": type(parsed).__name__},
        )
    return normalize_keys(parsed)


def load_config(path: str | Path) -> dict[str, Any]:
    """Load an optional YAML file. Missing file is {}."""
    path = Path(path)
    if not path.is_file():
        logger.debug("Config file {} not found, skipping", path)
        return {}
    return parse_yaml(path.read_bytes(), str(path))
