"""
Unit tests for ZstoreConfig.
"""

import json

import pytest
from pydantic import ValidationError

from zstore.config import ZstoreConfig
from zstore.storage import MemoryPool, create_pool


class TestZstoreConfigDefaults:
    def test_defaults(self):
        config = ZstoreConfig()

        assert config.pool_backend == "zfs"
        assert config.pool_name == "zstore"
        assert config.api_prefix == "/v1/storage"
        assert config.api_port == 5000
        assert config.log_level == "INFO"

    def test_prefix_trailing_slash_removed(self):
        assert ZstoreConfig(api_prefix="/block/").api_prefix == "/block"

    def test_prefix_requires_leading_slash(self):
        with pytest.raises(ValidationError):
            ZstoreConfig(api_prefix="v1/storage")

    @pytest.mark.parametrize("prefix", ["/", "//"])
    def test_root_prefix_rejected(self, prefix):
        with pytest.raises(ValidationError):
            ZstoreConfig(api_prefix=prefix)

    def test_log_file(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ZSTORE_LOG_FILE", str(tmp_path / "zstored.log"))

        assert ZstoreConfig.from_env().log_file == str(tmp_path / "zstored.log")
        assert ZstoreConfig().log_file is None

    def test_unknown_backend(self):
        with pytest.raises(ValidationError):
            ZstoreConfig(pool_backend="lvm")

    def test_log_level_normalized(self):
        assert ZstoreConfig(log_level="debug").log_level == "DEBUG"


class TestZstoreConfigLoading:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ZSTORE_POOL_BACKEND", "memory")
        monkeypatch.setenv("ZSTORE_POOL_NAME", "tank")
        monkeypatch.setenv("ZSTORE_API_PORT", "8080")
        monkeypatch.setenv("ZSTORE_MEMORY_CAPACITY", "1024")

        config = ZstoreConfig.from_env()

        assert config.pool_backend == "memory"
        assert config.pool_name == "tank"
        assert config.api_port == 8080
        assert config.memory_pool_capacity_bytes == 1024

    def test_from_yaml_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("ZSTORE_POOL_NAME", raising=False)
        path = tmp_path / "zstored.yaml"
        path.write_text("pool_backend: memory\npool_name: tank\napi_prefix: /block\n")

        config = ZstoreConfig.from_file(str(path))

        assert config.pool_backend == "memory"
        assert config.pool_name == "tank"
        assert config.api_prefix == "/block"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZSTORE_POOL_NAME", "fromenv")
        path = tmp_path / "zstored.json"
        path.write_text(json.dumps({"pool_backend": "memory", "pool_name": "fromfile"}))

        assert ZstoreConfig.from_file(str(path)).pool_name == "fromenv"

    def test_unsupported_file(self, tmp_path):
        path = tmp_path / "zstored.toml"
        path.write_text("")

        with pytest.raises(ValueError):
            ZstoreConfig.from_file(str(path))


class TestCreatePool:
    def test_memory_pool(self):
        pool = create_pool(ZstoreConfig(pool_backend="memory", memory_pool_capacity_bytes=10))

        assert isinstance(pool, MemoryPool)
        assert pool.capacity_bytes == 10
