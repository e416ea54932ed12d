"""Shared fixtures: temp config directories, keys, isolated global cell."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from confstack.encryption import SecretDecryptor, generate_key
from confstack.state import ConfigCell


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    d = tmp_path / "conf"
    d.mkdir()
    return d


@pytest.fixture
def secret_key() -> str:
    return generate_key()


@pytest.fixture
def write_encrypted(secret_key):
    """Write plaintext to path, encrypted with secret_key."""

    def _write(path: Path, text: str) -> Path:
        path.write_bytes(SecretDecryptor(secret_key).encrypt_bytes(text.encode("utf-8")))
        return path

    return _write


@pytest.fixture
def fresh_cell():
    """Swap the process-wide cell for an empty one."""
    cell = ConfigCell()
    with patch("confstack.state._cell", cell):
        yield cell
