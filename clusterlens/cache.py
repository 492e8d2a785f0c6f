"""Caching of analysis answers and remote cache configuration."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from clusterlens.config import ConfigStore
from clusterlens.util import file_exists


class CacheError(Exception):
    """Raised for invalid cache configuration changes."""


@dataclass
class CacheProvider:
    """Settings of a remote cache bucket."""

    bucket_name: str = ""
    region: str = ""


def _default_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(base) / "clusterlens"


def _load_provider(config: ConfigStore) -> CacheProvider:
    raw = config.get("cache")
    if raw is None:
        return CacheProvider()
    if not isinstance(raw, Mapping):
        raise CacheError("'cache' configuration must be a mapping")
    lowered = {str(k).lower(): v for k, v in raw.items()}
    return CacheProvider(
        bucket_name=str(lowered.get("bucketname") or ""),
        region=str(lowered.get("region") or ""),
    )


def _provider_mapping(provider: CacheProvider) -> dict[str, str]:
    return {"bucketname": provider.bucket_name, "region": provider.region}


class FileBasedCache:
    """A cache that keeps one file per key in a directory."""

    def __init__(self, no_cache: bool = False, directory: str | os.PathLike | None = None):
        self.no_cache = no_cache
        self.directory = Path(directory) if directory else _default_cache_dir()

    def _key_path(self, key: str) -> Path:
        path = self.directory / key
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def is_cache_disabled(self) -> bool:
        return self.no_cache

    def list(self) -> list[str]:
        """Return the cached keys in name order."""
        self.directory.parent.mkdir(parents=True, exist_ok=True)
        return sorted(os.listdir(self.directory))

    def exists(self, key: str) -> bool:
        """Return whether ``key`` is cached; problems are reported and count as absent."""
        try:
            return file_exists(self._key_path(key))
        except OSError as exc:
            print("warning: error while testing if cache key exists:", exc, file=sys.stderr)
            return False

    def load(self, key: str) -> str:
        """Return the cached text for ``key``."""
        return self._key_path(key).read_text(encoding="utf-8")

    def store(self, key: str, data: str) -> None:
        """Save ``data`` under ``key``, readable by the owner only."""
        path = self._key_path(key)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)


def new_cache(no_cache: bool = False, cache_dir: str | os.PathLike | None = None) -> FileBasedCache:
    """Create the local cache."""
    return FileBasedCache(no_cache=no_cache, directory=cache_dir)


def remote_cache_enabled(config: ConfigStore) -> bool:
    """Return whether a remote cache bucket and region are configured."""
    provider = _load_provider(config)
    return bool(provider.bucket_name and provider.region)


def add_remote_cache(config: ConfigStore, bucket_name: str, region: str) -> None:
    """Configure a remote cache; fails when one is already set."""
    provider = _load_provider(config)
    if provider.bucket_name:
        raise CacheError("Error: a cache is already configured, please remove it first")
    config.set("cache", _provider_mapping(CacheProvider(bucket_name, region)))
    config.write()


def remove_remote_cache(config: ConfigStore, bucket_name: str = "") -> None:
    """Clear the remote cache configuration; fails when none is set."""
    provider = _load_provider(config)
    if not provider.bucket_name:
        raise CacheError("Error: no cache is configured")
    config.set("cache", _provider_mapping(CacheProvider()))
    config.write()