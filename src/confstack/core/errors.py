"""Confstack exceptions."""

from __future__ import annotations


class ConfstackError(Exception):
    """Base for confstack errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class ConfigurationError(ConfstackError):
    """Config load failure."""


class InvalidEnvironmentError(ConfigurationError):
    """ENV names an environment outside dev/stag/prod."""


class SourceFormatError(ConfigurationError):
    """A located or decrypted source has malformed content."""


class SecretsError(ConfigurationError):
    """Explicit encrypt/decrypt request failed (tooling only, never the load chain)."""


class ConfigNotInitializedError(ConfstackError):
    """Typed access attempted before the config tree was built."""


class DeserializationError(ConfstackError):
    """Config tree does not fit the requested type."""
