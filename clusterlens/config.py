"""A YAML-backed key/value configuration store."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml


def _default_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "clusterlens" / "config.yaml"


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_lower_keys(v) for v in value]
    return value


class ConfigStore:
    """Configuration values with case-insensitive, dotted keys."""

    def __init__(self, path: str | os.PathLike | None = None):
        self.path = Path(path) if path else _default_config_path()
        self._data: dict[str, Any] = {}
        if self.path.exists():
            with self.path.open(encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle)
            if loaded is None:
                loaded = {}
            if not isinstance(loaded, Mapping):
                raise ValueError(f"{self.path}: configuration must be a mapping")
            self._data = _lower_keys(loaded)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at ``key`` or ``default`` when it is missing."""
        node: Any = self._data
        for part in key.lower().split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def set(self, key: str, value: Any) -> None:
        """Set ``key`` to ``value``, creating intermediate sections."""
        parts = key.lower().split(".")
        node = self._data
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = _lower_keys(value)

    def get_string_list(self, key: str) -> list[str]:
        """Return ``key`` as a list of strings; a string is split on whitespace."""
        value = self.get(key)
        if value is None:
            return []
        if isinstance(value, str):
            return value.split()
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [str(value)]

    def write(self) -> None:
        """Save the configuration to its file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(self._data, handle, sort_keys=True)