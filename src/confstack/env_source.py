"""Environment-variable config source.

``APP__DATABASE__HOST=db`` with prefix ``app`` becomes ``{"database": {"host": "db"}}``.
Names are lowercased; ``__`` separates nested segments.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from typing import Any

from confstack.core.constants import ENV_SEPARATOR, KEY_DELIMITER, LIST_SEPARATOR


def _normalize_key_path(key: str) -> str:
    return key.strip().lower()


class EnvironmentSource:
    """Builds a nested mapping from environment variables.

    ``list_parse_keys`` is fixed at construction: values of those dotted keys are
    split on ``,`` into a list of strings, everything else stays a string.
    """

    def __init__(
        self,
        prefix: str | None = None,
        list_parse_keys: Iterable[str] = (),
        *,
        separator: str = ENV_SEPARATOR,
        list_separator: str = LIST_SEPARATOR,
    ) -> None:
        self.prefix = prefix.lower() if prefix else None
        self.separator = separator
        self.list_separator = list_separator
        self.list_parse_keys: frozenset[str] = frozenset(_normalize_key_path(k) for k in list_parse_keys)

    def key_for(self, name: str) -> str | None:
        """Dotted config key for a variable name, or None when it does not bind."""
        name = name.lower()
        if self.prefix is not None:
            head = self.prefix + self.separator
            if not name.startswith(head):
                return None
            name = name[len(head) :]
        segments = name.split(self.separator)
        if not name or any(not s for s in segments):
            return None
        return KEY_DELIMITER.join(segments)

    def parse_value(self, key: str, value: str) -> str | list[str]:
        if key in self.list_parse_keys:
            return value.split(self.list_separator)
        return value

    def collect(self, environ: Mapping[str, str] | None = None) -> dict[str, Any]:
        env = os.environ if environ is None else environ
        tree: dict[str, Any] = {}
        # Sorted for determinism when names differ only in case; A__B__C beats A__B.
        for name in sorted(env):
            key = self.key_for(name)
            if key is None:
                continue
            _set_path(tree, key.split(KEY_DELIMITER), self.parse_value(key, env[name]))
        return tree


def _set_path(tree: dict[str, Any], segments: list[str], value: Any) -> None:
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if not isinstance(child, dict):
            child = node[segment] = {}
        node = child
    leaf = segments[-1]
    if isinstance(node.get(leaf), dict):
        return
    node[leaf] = value
