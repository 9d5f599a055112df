from typing import Optional

from pydantic import BaseModel, Field, field_validator

from zstore.storage.memory import DEFAULT_CAPACITY_BYTES
from zstore.storage.zfs import DEFAULT_TIMEOUT_SEC


class ZstoreConfig(BaseModel):
    """
    Runtime configuration for zstored.

    This configuration is loaded from:
    1. Environment variables (ZSTORE_*)
    2. Configuration file (if provided)
    3. Default values (hardcoded)

    Priority: Environment variables > Config file > Defaults
    """

    # Storage pool
    pool_backend: str = Field(
        default="zfs",
        description="Storage pool backend (zfs/memory)"
    )

    pool_name: str = Field(
        default="zstore",
        min_length=1,
        description="Name of the pool all volumes are created in"
    )

    memory_pool_capacity_bytes: int = Field(
        default=DEFAULT_CAPACITY_BYTES,
        ge=0,
        description="Capacity of the in-memory pool (memory backend only)"
    )

    # ZFS specific
    zfs_command: str = Field(
        default="zfs",
        description="Path to the zfs binary"
    )

    zpool_command: str = Field(
        default="zpool",
        description="Path to the zpool binary"
    )

    command_timeout_sec: int = Field(
        default=DEFAULT_TIMEOUT_SEC,
        ge=1,
        le=3600,
        description="Timeout for each zfs/zpool invocation (seconds)"
    )

    # API server
    api_prefix: str = Field(
        default="/v1/storage",
        description="Route prefix of the storage API"
    )

    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )

    api_port: int = Field(
        default=5000,
        ge=1,
        le=65535,
        description="API server port"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level (DEBUG/INFO/WARNING/ERROR)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Also write log records to this file"
    )

    @field_validator("pool_backend")
    @classmethod
    def validate_pool_backend(cls, v: str) -> str:
        if v not in ("zfs", "memory"):
            raise ValueError(f"pool_backend must be 'zfs' or 'memory', got '{v}'")
        return v

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"api_prefix must start with '/', got '{v}'")
        prefix = v.rstrip("/")
        if not prefix:
            raise ValueError("api_prefix must name a path below '/'")
        return prefix

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_env(cls, **overrides) -> "ZstoreConfig":
        """
        Load configuration from environment variables.

        Environment variables (ZSTORE_*) override defaults and ``overrides``:

        - ZSTORE_POOL_BACKEND: Pool backend (zfs/memory)
        - ZSTORE_POOL_NAME: Pool name
        - ZSTORE_MEMORY_CAPACITY: Memory pool capacity in bytes
        - ZSTORE_ZFS_COMMAND: zfs binary
        - ZSTORE_ZPOOL_COMMAND: zpool binary
        - ZSTORE_COMMAND_TIMEOUT: zfs/zpool timeout in seconds
        - ZSTORE_API_PREFIX: Storage API route prefix
        - ZSTORE_API_HOST: API server host
        - ZSTORE_API_PORT: API server port
        - ZSTORE_LOG_LEVEL: Log level
        - ZSTORE_LOG_FILE: Log file path
        """
        import os

        kwargs = dict(overrides)

        # Storage pool
        if "ZSTORE_POOL_BACKEND" in os.environ:
            kwargs["pool_backend"] = os.environ["ZSTORE_POOL_BACKEND"]
        if "ZSTORE_POOL_NAME" in os.environ:
            kwargs["pool_name"] = os.environ["ZSTORE_POOL_NAME"]
        if "ZSTORE_MEMORY_CAPACITY" in os.environ:
            kwargs["memory_pool_capacity_bytes"] = int(os.environ["ZSTORE_MEMORY_CAPACITY"])

        # ZFS
        if "ZSTORE_ZFS_COMMAND" in os.environ:
            kwargs["zfs_command"] = os.environ["ZSTORE_ZFS_COMMAND"]
        if "ZSTORE_ZPOOL_COMMAND" in os.environ:
            kwargs["zpool_command"] = os.environ["ZSTORE_ZPOOL_COMMAND"]
        if "ZSTORE_COMMAND_TIMEOUT" in os.environ:
            kwargs["command_timeout_sec"] = int(os.environ["ZSTORE_COMMAND_TIMEOUT"])

        # API server
        if "ZSTORE_API_PREFIX" in os.environ:
            kwargs["api_prefix"] = os.environ["ZSTORE_API_PREFIX"]
        if "ZSTORE_API_HOST" in os.environ:
            kwargs["api_host"] = os.environ["ZSTORE_API_HOST"]
        if "ZSTORE_API_PORT" in os.environ:
            kwargs["api_port"] = int(os.environ["ZSTORE_API_PORT"])

        if "ZSTORE_LOG_LEVEL" in os.environ:
            kwargs["log_level"] = os.environ["ZSTORE_LOG_LEVEL"]
        if "ZSTORE_LOG_FILE" in os.environ:
            kwargs["log_file"] = os.environ["ZSTORE_LOG_FILE"]

        return cls(**kwargs)

    @classmethod
    def from_file(cls, config_path: str) -> "ZstoreConfig":
        """
        Load configuration from a YAML or JSON file, then apply ZSTORE_*
        environment overrides.

        Supported formats: .yaml, .yml, .json
        """
        import yaml

        with open(config_path, "r") as f:
            if config_path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f) or {}
            elif config_path.endswith(".json"):
                import json
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config format: {config_path}")

        return cls.from_env(**data)
