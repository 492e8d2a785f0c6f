import pytest

from clusterlens.cache import (
    CacheError,
    CacheProvider,
    FileBasedCache,
    add_remote_cache,
    new_cache,
    remote_cache_enabled,
    remove_remote_cache,
)
from clusterlens.config import ConfigStore


def test_store_and_load_round_trip(tmp_path):
    cache = FileBasedCache(directory=tmp_path / "cache")
    cache.store("key1", "answer text")
    assert cache.load("key1") == "answer text"
    assert cache.exists("key1")
    assert not cache.exists("key2")


def test_store_overwrites(tmp_path):
    cache = FileBasedCache(directory=tmp_path / "cache")
    cache.store("k", "long first value")
    cache.store("k", "short")
    assert cache.load("k") == "short"


def test_list_sorted(tmp_path):
    cache = FileBasedCache(directory=tmp_path / "cache")
    for key in ["b", "a", "c"]:
        cache.store(key, key)
    assert cache.list() == ["a", "b", "c"]


def test_list_missing_directory_raises(tmp_path):
    cache = FileBasedCache(directory=tmp_path / "never")
    with pytest.raises(FileNotFoundError):
        cache.list()


def test_load_missing_raises(tmp_path):
    cache = FileBasedCache(directory=tmp_path / "cache")
    with pytest.raises(FileNotFoundError):
        cache.load("missing")


def test_new_cache_flag(tmp_path):
    assert new_cache(True, tmp_path).is_cache_disabled() is True
    assert new_cache(False, tmp_path).is_cache_disabled() is False


def test_remote_cache_lifecycle(tmp_path):
    path = tmp_path / "config.yaml"
    config = ConfigStore(path)
    assert remote_cache_enabled(config) is False
    add_remote_cache(config, "bucket", "region-1")
    assert remote_cache_enabled(ConfigStore(path)) is True
    remove_remote_cache(config, "bucket")
    assert remote_cache_enabled(ConfigStore(path)) is False


def test_add_remote_cache_twice_fails(tmp_path):
    config = ConfigStore(tmp_path / "config.yaml")
    add_remote_cache(config, "bucket", "region-1")
    with pytest.raises(CacheError, match="a cache is already configured"):
        add_remote_cache(config, "other", "region-2")


def test_remove_without_cache_fails(tmp_path):
    config = ConfigStore(tmp_path / "config.yaml")
    with pytest.raises(CacheError, match="no cache is configured"):
        remove_remote_cache(config, "bucket")


def test_bucket_without_region_not_enabled(tmp_path):
    config = ConfigStore(tmp_path / "config.yaml")
    config.set("cache", {"bucketname": "bucket"})
    assert remote_cache_enabled(config) is False


def test_invalid_cache_section(tmp_path):
    config = ConfigStore(tmp_path / "config.yaml")
    config.set("cache", "not-a-mapping")
    with pytest.raises(CacheError):
        remote_cache_enabled(config)


def test_cache_provider_defaults():
    provider = CacheProvider()
    assert (provider.bucket_name, provider.region) == ("", "")