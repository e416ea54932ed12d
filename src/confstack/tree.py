"""Immutable config tree and typed decode."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, TypeVar

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from confstack.core.constants import KEY_DELIMITER
from confstack.core.errors import DeserializationError

T = TypeVar("T")

_MISSING = object()


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


def _format_loc(loc: tuple[int | str, ...]) -> str:
    return KEY_DELIMITER.join(str(part) for part in loc) or "<root>"


class ConfigTree(Mapping[str, Any]):
    """Read-only nested mapping. Safe to share between threads once built."""

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: Mapping[str, Any] = _freeze(data or {})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ConfigTree({sorted(self._data)!r})"

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path (e.g. 'database.host'). Case-insensitive."""
        obj: Any = self._data
        for part in key.lower().split(KEY_DELIMITER):
            if isinstance(obj, Mapping) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return self.get(key, _MISSING) is not _MISSING

    def to_dict(self) -> dict[str, Any]:
        """Deep mutable copy."""
        return _thaw(self._data)

    def load(self, target: type[T]) -> T:
        """Decode the tree into target (pydantic model, dataclass, TypedDict, ...)."""
        try:
            return TypeAdapter(target).validate_python(self.to_dict())
        except ValidationError as exc:
            problems = [
                {"key": _format_loc(err["loc"]), "type": err["type"], "message": err["msg"]}
                for err in exc.errors()
            ]
            summary = "; ".join(f"{p['key']}: {p['message']}" for p in problems)
            name = getattr(target, "__name__", repr(target))
            logger.error("Config does not match {}: {}", name, summary)
            raise DeserializationError(
                f"Config does not match {name}: {summary}",
                code="deserialization_failed",
                details={"target": name, "errors": problems},
                original_error=exc,
            ) from exc
