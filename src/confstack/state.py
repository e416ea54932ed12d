"""Process-wide config handle with an exactly-once initializer."""

from __future__ import annotations

import enum
import threading
from collections.abc import Iterable
from typing import Any, TypeVar

from loguru import logger

from confstack.builder import build_config
from confstack.core.errors import ConfigNotInitializedError, ConfigurationError
from confstack.tree import ConfigTree

T = TypeVar("T")


class CellState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    INITIALIZED = "initialized"


class ConfigCell:
    """Holds one ConfigTree, built at most once.

    Concurrent callers block while one thread builds; all get the same tree.
    A failed build leaves the cell uninitialized and re-raises.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._state = CellState.UNINITIALIZED
        self._tree: ConfigTree | None = None

    @property
    def state(self) -> CellState:
        return self._state

    def is_initialized(self) -> bool:
        return self._state is CellState.INITIALIZED

    def init(
        self,
        prefix: str | None = None,
        list_parse_keys: Iterable[str] = (),
        **build_kwargs: Any,
    ) -> ConfigTree:
        """Build the tree on first call; later calls return it unchanged."""
        tree = self._tree
        if tree is not None:
            return tree

        with self._lock:
            if self._tree is not None:
                return self._tree
            if self._state is CellState.INITIALIZING:
                raise ConfigurationError(
                    "Config initialization re-entered while already initializing",
                    code="reentrant_init",
                )
            self._state = CellState.INITIALIZING
            try:
                built = build_config(prefix, list_parse_keys, **build_kwargs)
            except BaseException:
                self._state = CellState.UNINITIALIZED
                raise
            self._tree = built
            self._state = CellState.INITIALIZED
            logger.info("Config initialized")
            return built

    def get(self) -> ConfigTree:
        tree = self._tree
        if tree is None:
            raise ConfigNotInitializedError(
                "Config accessed before initialization; call confstack.init() at startup",
                code="not_initialized",
                details={"state": self._state.value},
            )
        return tree

    def load(self, target: type[T]) -> T:
        return self.get().load(target)


_cell = ConfigCell()


def init_default() -> ConfigTree:
    """Initialize the global config with no prefix and no list keys."""
    return _cell.init()


def init(prefix: str | None = None, list_parse_keys: Iterable[str] = ()) -> ConfigTree:
    """Initialize the global config. No-op after the first successful call."""
    return _cell.init(prefix, list_parse_keys)


def get_config() -> ConfigTree:
    return _cell.get()


def is_initialized() -> bool:
    return _cell.is_initialized()


def load(target: type[T]) -> T:
    """Decode the global config into target. Raises if not initialized."""
    return _cell.load(target)


class LoadConfig:
    """Mixin adding ``cls.load()`` from the global config.

    class Settings(LoadConfig, BaseModel):
        debug: bool = False
    """

    @classmethod
    def load(cls: type[T]) -> T:
        return _cell.load(cls)
