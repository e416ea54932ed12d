"""Text decoding for located or decrypted sources."""

from __future__ import annotations

from loguru import logger

from confstack.core.errors import SourceFormatError


def decode_text(data: bytes, origin: str) -> str:
    """Strict UTF-8 decode; invalid encoding in a located source is fatal."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        logger.error("Source {} is not valid UTF-8: {}", origin, exc)
        raise SourceFormatError(
            f"Source {origin} is not valid UTF-8",
            code="invalid_encoding",
            details={"source": origin, "position": exc.start},
            original_error=exc,
        ) from exc
