"""Encrypted secret sources (Fernet, key from SECRETS_ENCRYPTION_KEY).

Every failure on the load path degrades to "source absent". Absent files and
failed decryptions are logged differently so a rotated or wrong key does not
silently disable secrets.
"""

from __future__ import annotations

import enum
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken
from loguru import logger

from confstack.core.constants import SECRETS_KEY_VAR
from confstack.core.errors import SecretsError


class DecryptStatus(enum.Enum):
    OK = "ok"
    DISABLED = "disabled"
    MISSING = "missing"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class DecryptOutcome:
    status: DecryptStatus
    path: Path
    data: bytes | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is DecryptStatus.OK


def generate_key() -> str:
    """New url-safe base64 key suitable for SECRETS_ENCRYPTION_KEY."""
    return Fernet.generate_key().decode("ascii")


def secret_key_from_env(environ: Mapping[str, str] | None = None) -> str | None:
    env = os.environ if environ is None else environ
    return env.get(SECRETS_KEY_VAR) or None


class SecretDecryptor:
    """Decrypts secret files with an optional key."""

    def __init__(self, key: str | bytes | None) -> None:
        self._fernet: Fernet | None = None
        if key is None:
            logger.info("{} not found, not loading encrypted secrets", SECRETS_KEY_VAR)
            return
        try:
            self._fernet = Fernet(key)
        except (ValueError, TypeError) as exc:
            logger.error("{} is not a valid key, not loading encrypted secrets: {}", SECRETS_KEY_VAR, exc)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SecretDecryptor:
        return cls(secret_key_from_env(environ))

    @property
    def enabled(self) -> bool:
        return self._fernet is not None

    def try_decrypt(self, path: str | Path) -> DecryptOutcome:
        """Decrypt one file, reporting why it was not loaded."""
        path = Path(path)
        if self._fernet is None:
            logger.debug("Secrets disabled, skipping {}", path)
            return DecryptOutcome(DecryptStatus.DISABLED, path)
        if not path.is_file():
            logger.debug("Encrypted source {} not found, skipping", path)
            return DecryptOutcome(DecryptStatus.MISSING, path)

        try:
            token = path.read_bytes()
            data = self._fernet.decrypt(token)
        except InvalidToken:
            reason = "wrong key or corrupted file"
        except OSError as exc:
            reason = str(exc)
        else:
            logger.debug("Decrypted {} ({} bytes)", path, len(data))
            return DecryptOutcome(DecryptStatus.OK, path, data=data)

        logger.warning("Failed to decrypt {} ({}), not loading it", path, reason)
        return DecryptOutcome(DecryptStatus.FAILED, path, reason=reason)

    def decrypt_file(self, path: str | Path) -> bytes | None:
        """Plaintext bytes, or None when the file is absent or undecryptable."""
        return self.try_decrypt(path).data

    def _require(self) -> Fernet:
        if self._fernet is None:
            raise SecretsError(
                f"{SECRETS_KEY_VAR} is missing or invalid",
                code="missing_key",
            )
        return self._fernet

    def encrypt_bytes(self, data: bytes) -> bytes:
        return self._require().encrypt(data)

    def encrypt_file(self, src: str | Path, dst: str | Path | None = None) -> Path:
        """Encrypt src into dst (default: src + .enc)."""
        src = Path(src)
        out = Path(dst) if dst is not None else src.with_name(src.name + ".enc")
        out.write_bytes(self.encrypt_bytes(src.read_bytes()))
        logger.info("Encrypted {} -> {}", src, out)
        return out

    def decrypt_strict(self, path: str | Path) -> bytes:
        """Decrypt or raise SecretsError. For tooling; the load chain uses try_decrypt."""
        fernet = self._require()
        path = Path(path)
        try:
            return fernet.decrypt(path.read_bytes())
        except InvalidToken as exc:
            raise SecretsError(
                f"Failed to decrypt {path}: wrong key or corrupted file",
                code="decrypt_failed",
                details={"path": str(path)},
                original_error=exc,
            ) from exc
        except OSError as exc:
            raise SecretsError(
                f"Failed to read {path}: {exc}",
                code="read_failed",
                details={"path": str(path)},
                original_error=exc,
            ) from exc
